from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass
class Transaction:
    id: int
    account_id: int
    type: str               # 'income' | 'expense' | 'transfer'
    date: str               # 'YYYY-MM-DD', actual or still-forecasted
    description: str = ""
    amount: Optional[Decimal] = None            # None until confirmed
    forecasted_amount: Optional[Decimal] = None
    forecasted_date: Optional[str] = None
    forecasted: bool = True
    destination_account_id: Optional[int] = None
    recurring_rule_id: Optional[int] = None
    category: str = ""
    created_at: str = ""
    updated_at: str = ""

    @property
    def effective_amount(self) -> Optional[Decimal]:
        return self.amount if self.amount is not None else self.forecasted_amount
