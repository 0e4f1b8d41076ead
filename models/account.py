from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from utils.currency import to_decimal


@dataclass
class Account:
    id: int
    name: str
    account_type: str = "bank"
    interest_rate: Optional[Decimal] = None   # annual percentage, e.g. 4.5
    description: str = ""
    created_at: str = ""

    @property
    def monthly_rate(self) -> Decimal:
        """Fraction applied once per month; zero when the account earns nothing."""
        if not self.interest_rate:
            return Decimal("0")
        return to_decimal(self.interest_rate) / 12 / 100
