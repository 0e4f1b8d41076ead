"""Derived forecast records. Never persisted; rebuilt on every projection run."""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from models.account import Account


@dataclass(frozen=True)
class Occurrence:
    id: str                 # '{rule_id}-{YYYYMMDD}' of the adjusted date
    date: date
    amount: Decimal
    type: str
    name: str
    category: str
    account_id: int
    destination_account_id: Optional[int]
    source_recurring_id: int


@dataclass(frozen=True)
class Event:
    date: date
    amount: Decimal
    type: str
    description: str
    category: str
    account_id: int
    destination_account_id: Optional[int] = None
    source_recurring_id: Optional[int] = None
    transaction_id: Optional[int] = None
    occurrence_id: Optional[str] = None
    is_confirmed: bool = False

    @property
    def kind(self) -> str:
        return "occurrence" if self.transaction_id is None else "transaction"

    def delta_for(self, account_id: int) -> Decimal:
        """Signed effect of this event on one account's balance."""
        if self.type == "income":
            return self.amount if self.account_id == account_id else Decimal("0")
        if self.type == "expense":
            return -self.amount if self.account_id == account_id else Decimal("0")
        if self.type == "transfer":
            delta = Decimal("0")
            if self.account_id == account_id:
                delta -= self.amount
            if self.destination_account_id == account_id:
                delta += self.amount
            return delta
        return Decimal("0")

    def touches(self, account_id: int) -> bool:
        if self.account_id == account_id:
            return True
        return self.type == "transfer" and self.destination_account_id == account_id


@dataclass
class LedgerEntry:
    date: date
    description: str
    delta: Decimal
    balance: Decimal
    kind: str               # 'income' | 'expense' | 'transfer' | 'override' | 'interest'
    is_confirmed: bool = False


@dataclass
class AccountProjection:
    account: Account
    month: str              # 'YYYY-MM'
    starting: Decimal
    ending: Decimal
    min: Decimal
    max: Decimal
    interest: Decimal = Decimal("0")
    daily_balances: list[Decimal] = field(default_factory=list)
    month_days: list[str] = field(default_factory=list)
    ledger_entries: list[LedgerEntry] = field(default_factory=list)

    def balance_on(self, day: int) -> Decimal:
        """Balance at the end of the given day of the month (1-based)."""
        return self.daily_balances[day - 1]


@dataclass
class MonthlyProjection:
    month: str
    accounts_data: list[AccountProjection] = field(default_factory=list)

    def for_account(self, account_id: int) -> Optional[AccountProjection]:
        return next((a for a in self.accounts_data if a.account.id == account_id), None)


@dataclass
class HorizonSummary:
    account: Account
    lowest: Decimal
    lowest_month: str
    highest: Decimal
    final: Decimal
    total_interest: Decimal
