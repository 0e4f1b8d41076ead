from datetime import date
from decimal import Decimal

from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure

from models.forecast import MonthlyProjection
from utils.date_helpers import parse_date


class ChartService:
    """Renders projected daily balances to image files."""

    LINE_COLOR = "#2196F3"
    LOW_COLOR = "#F44336"

    @staticmethod
    def daily_series(
        projections: list[MonthlyProjection], account_id: int
    ) -> tuple[list[date], list[Decimal]]:
        """Concatenate one account's daily balances across the horizon."""
        days: list[date] = []
        balances: list[Decimal] = []
        for month in projections:
            data = month.for_account(account_id)
            if data is None:
                continue
            days.extend(parse_date(d) for d in data.month_days)
            balances.extend(data.daily_balances)
        return days, balances

    def render_account_balances(
        self, projections: list[MonthlyProjection], account_id: int, path: str
    ) -> bool:
        """Write a PNG line chart for the account. Returns False when there is no data."""
        days, balances = self.daily_series(projections, account_id)
        if not days:
            return False

        fig = Figure(figsize=(8, 2.8), dpi=80, tight_layout=True)
        FigureCanvasAgg(fig)
        ax = fig.add_subplot(111)
        values = [float(b) for b in balances]
        ax.plot(days, values, color=self.LINE_COLOR, linewidth=1.5)
        ax.axhline(0, color="#888888", linewidth=0.8)

        low = min(range(len(values)), key=values.__getitem__)
        ax.scatter([days[low]], [values[low]], color=self.LOW_COLOR, zorder=3)

        name = projections[0].for_account(account_id).account.name if projections else ""
        ax.set_title(f"{name} projected balance", fontsize=10)
        ax.tick_params(labelsize=8)
        ax.yaxis.set_major_formatter(
            lambda v, _: f"{v/1000:.0f}k" if abs(v) >= 1000 else f"{v:.0f}"
        )
        fig.autofmt_xdate()
        fig.savefig(path, format="png")
        return True
