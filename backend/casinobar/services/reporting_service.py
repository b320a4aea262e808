# Overview: Sales reporting derived from closed shifts; pure functions over shifts and products.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from ..models import Product, Shift
from ..validation import ValidationError
from casinobar.time_utils import local_day_start, local_date_key, to_utc_z

PERIOD_TODAY = "today"
PERIOD_WEEK = "week"
PERIOD_MONTH = "month"
PERIOD_ALL = "all"
PERIODS = (PERIOD_TODAY, PERIOD_WEEK, PERIOD_MONTH, PERIOD_ALL)


@dataclass
class SalesReport:
    shift_id: str
    date: datetime
    worker_name: str
    sold: dict[str, int] = field(default_factory=dict)
    revenue: int = 0
    cost: int = 0
    cash_difference: int = 0

    @property
    def profit(self) -> int:
        return self.revenue - self.cost

    @property
    def units(self) -> int:
        return sum(self.sold.values())

    def to_dict(self) -> dict:
        return {
            "shift_id": self.shift_id,
            "date": to_utc_z(self.date),
            "worker_name": self.worker_name,
            "sold": dict(self.sold),
            "units": self.units,
            "revenue": self.revenue,
            "cost": self.cost,
            "profit": self.profit,
            "cash_difference": self.cash_difference,
        }


def build_reports(shifts: list[Shift], products: list[Product]) -> list[SalesReport]:
    """
    One report per closed shift with a recorded count.

    Cost uses each product's current purchase cost; products that no longer
    exist contribute units but no cost.
    """
    costs = {p.id: p.purchase_cost for p in products}
    reports = []
    for shift in shifts:
        if shift.is_active or shift.sold is None or shift.expected_cash is None:
            continue
        sold = {product_id: int(qty) for product_id, qty in shift.sold.items()}
        cost = sum(qty * costs.get(product_id, 0) for product_id, qty in sold.items())
        actual = shift.actual_cash if shift.actual_cash is not None else 0
        reports.append(
            SalesReport(
                shift_id=shift.id,
                date=shift.end_time or shift.start_time,
                worker_name=shift.worker_name,
                sold=sold,
                revenue=shift.expected_cash,
                cost=cost,
                cash_difference=actual - shift.expected_cash,
            )
        )
    return reports


def period_start(period: str, now: datetime, tz_name: str) -> datetime | None:
    if period == PERIOD_TODAY:
        return local_day_start(now, tz_name)
    if period == PERIOD_WEEK:
        return now - timedelta(days=7)
    if period == PERIOD_MONTH:
        return now - timedelta(days=30)
    if period == PERIOD_ALL:
        return None
    raise ValidationError(f"period must be one of: {', '.join(PERIODS)}")


def filter_by_period(reports: list[SalesReport], period: str, now: datetime, tz_name: str = "America/Bogota") -> list[SalesReport]:
    start = period_start(period, now, tz_name)
    if start is None:
        return list(reports)
    return [r for r in reports if r.date >= start]


def group_by_day(reports: list[SalesReport], tz_name: str = "America/Bogota") -> list[dict]:
    days: dict[str, dict] = {}
    for report in reports:
        key = local_date_key(report.date, tz_name)
        row = days.setdefault(key, {"date": key, "revenue": 0, "profit": 0, "units": 0})
        row["revenue"] += report.revenue
        row["profit"] += report.profit
        row["units"] += report.units
    return [days[key] for key in sorted(days)]


def product_distribution(reports: list[SalesReport], products: list[Product]) -> list[dict]:
    """Units and revenue per product, products with nothing sold left out."""
    rows = []
    for product in products:
        units = sum(r.sold.get(product.id, 0) for r in reports)
        if units == 0:
            continue
        rows.append({
            "product_id": product.id,
            "name": product.name,
            "units": units,
            "revenue": units * product.selling_price,
        })
    return rows


def summarize(reports: list[SalesReport]) -> dict:
    revenue = sum(r.revenue for r in reports)
    cost = sum(r.cost for r in reports)
    profit = revenue - cost
    return {
        "shift_count": len(reports),
        "total_revenue": revenue,
        "total_cost": cost,
        "total_profit": profit,
        "total_units": sum(r.units for r in reports),
        "total_cash_difference": sum(r.cash_difference for r in reports),
        "margin_percent": round(profit / revenue * 100, 1) if revenue else 0.0,
    }


def sales_report(
    shifts: list[Shift],
    products: list[Product],
    *,
    period: str,
    now: datetime,
    tz_name: str,
) -> dict:
    """Everything the reports screen shows for one period."""
    reports = filter_by_period(build_reports(shifts, products), period, now, tz_name)
    start = period_start(period, now, tz_name)
    return {
        "period": period,
        "start": to_utc_z(start),
        "summary": summarize(reports),
        "daily": group_by_day(reports, tz_name),
        "products": product_distribution(reports, products),
        "shifts": [r.to_dict() for r in reports],
    }
