from dataclasses import dataclass
from decimal import Decimal


@dataclass
class BalanceOverride:
    account_id: int
    date: str               # 'YYYY-MM-DD'
    amount: Decimal         # known-true balance at the end of that day
    id: int | None = None
