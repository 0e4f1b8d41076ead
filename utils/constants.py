from decimal import Decimal

APP_NAME = "Cashflow Forecast"
DB_FILE = "cashflow.db"

DATE_FORMAT = "%Y-%m-%d"
MONTH_FORMAT = "%Y-%m"
OCCURRENCE_ID_DATE_FORMAT = "%Y%m%d"

# Placeholder opening balance for the first projected month of an account
# that has no override on the first day of that month.
SEED_BALANCE = Decimal("2000")
DEFAULT_HORIZON_MONTHS = 3
RECURRING_CATCHUP_DAYS = 90

ACCOUNT_TYPES = ("bank", "credit", "investments")
TRANSACTION_TYPES = ("income", "expense", "transfer")
FREQUENCIES = ("daily", "weekly", "biweekly", "monthly", "yearly")
WEEKEND_POLICIES = ("post_on_date", "next_weekday")

DAY_INTERVALS = {
    "daily": 1,
    "weekly": 7,
    "biweekly": 14,
}
MONTH_INTERVALS = {
    "monthly": 1,
    "yearly": 12,
}

# Fields whose change alters when or how much a rule posts. Editing anything
# else leaves already materialized forecasts in place.
SCHEDULE_FIELDS = (
    "type", "amount", "frequency", "start_date", "end_date",
    "account_id", "destination_account_id", "weekend_policy",
)
