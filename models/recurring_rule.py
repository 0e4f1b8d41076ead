from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass
class RecurringRule:
    id: int
    name: str
    type: str               # 'income' | 'expense' | 'transfer'
    amount: Decimal         # always positive; sign comes from type
    account_id: int
    frequency: str          # 'daily' | 'weekly' | 'biweekly' | 'monthly' | 'yearly'
    start_date: str         # 'YYYY-MM-DD', inclusive
    end_date: Optional[str] = None      # inclusive; None = until horizon
    destination_account_id: Optional[int] = None   # transfers only
    category: str = ""
    weekend_policy: str = "post_on_date"   # 'post_on_date' | 'next_weekday'
    description: str = ""
    is_active: bool = True
    account_name: str = ""
