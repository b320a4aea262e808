# backend/casinobar/services/cash_service.py
"""
Cash reconciliation for the end-of-shift count.

Two separate checks run on every count:
- Sales variance: counted total vs. cash the shift's sales should have
  produced (expected_cash).
- Drawer base: counted total vs. the fixed float the drawer must hold
  (DRAWER_BASE_AMOUNT).

They answer different questions and are never merged into one figure.

All amounts are integer Colombian pesos.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from ..validation import ValidationError, coerce_int


# Bill denominations accepted in a count, largest first
BILL_DENOMINATIONS = (100000, 50000, 20000, 10000, 5000, 2000, 1000)

DEFAULT_DRAWER_BASE = 10_000_000

VARIANCE_EXACT = "exact"
VARIANCE_OVER = "over"
VARIANCE_UNDER = "under"

BASE_EXACT = "exact"
BASE_SHORTFALL = "shortfall"
BASE_SURPLUS = "surplus"


def format_cop(amount: int) -> str:
    """12345 -> "$12,345"; negatives keep their sign in front: "-$500"."""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,}"


def _empty_bills() -> dict[int, int]:
    return {denomination: 0 for denomination in BILL_DENOMINATIONS}


@dataclass
class CashBreakdown:
    """
    Physical count of a drawer.

    total is a property over the fields, so it can never drift from them.
    Counts and amounts entered below zero are clamped to 0, matching the
    counting form. Coins are a single flat amount, not per coin.
    """
    bills: dict[int, int] = field(default_factory=_empty_bills)
    coins: int = 0
    nequi: int = 0
    misc_bills: int = 0
    bonuses: int = 0
    prizes: int = 0

    def __post_init__(self):
        bills = _empty_bills()
        for denomination, count in (self.bills or {}).items():
            bills[self._denomination(denomination)] = max(0, coerce_int("bill count", count))
        self.bills = bills
        for name in ("coins", "nequi", "misc_bills", "bonuses", "prizes"):
            setattr(self, name, max(0, coerce_int(name, getattr(self, name))))

    @staticmethod
    def _denomination(value) -> int:
        denomination = coerce_int("denomination", value)
        if denomination not in BILL_DENOMINATIONS:
            raise ValidationError(f"Unsupported bill denomination: {value}")
        return denomination

    def set_bill(self, denomination, count) -> None:
        self.bills[self._denomination(denomination)] = max(0, coerce_int("bill count", count))

    def set_amount(self, name: str, amount) -> None:
        if name not in ("coins", "nequi", "misc_bills", "bonuses", "prizes"):
            raise ValidationError(f"Unknown cash field: {name}")
        setattr(self, name, max(0, coerce_int(name, amount)))

    @property
    def bills_total(self) -> int:
        return sum(denomination * count for denomination, count in self.bills.items())

    @property
    def total(self) -> int:
        return compute_total(self)

    def to_dict(self) -> dict:
        return {
            "bills": {str(denomination): count for denomination, count in self.bills.items()},
            "coins": self.coins,
            "nequi": self.nequi,
            "misc_bills": self.misc_bills,
            "bonuses": self.bonuses,
            "prizes": self.prizes,
            "bills_total": self.bills_total,
            "total": self.total,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "CashBreakdown":
        """
        Build from stored/posted JSON.

        Any "total" in the input is ignored and recomputed. Older payloads
        that still say "billetesVarios" are read as misc_bills.
        """
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValidationError("cash_breakdown must be an object")
        bills = data.get("bills") or {}
        if not isinstance(bills, dict):
            raise ValidationError("cash_breakdown.bills must be an object of denomination -> count")
        return cls(
            bills=bills,
            coins=data.get("coins", 0) or 0,
            nequi=data.get("nequi", 0) or 0,
            misc_bills=data.get("misc_bills", data.get("billetesVarios", 0)) or 0,
            bonuses=data.get("bonuses", 0) or 0,
            prizes=data.get("prizes", 0) or 0,
        )


def compute_total(breakdown: CashBreakdown) -> int:
    return (
        breakdown.bills_total
        + breakdown.coins
        + breakdown.nequi
        + breakdown.misc_bills
        + breakdown.bonuses
        + breakdown.prizes
    )


@dataclass(frozen=True)
class Variance:
    """Counted cash vs. expected cash from sales."""
    status: str
    magnitude: int

    @property
    def signed(self) -> int:
        return -self.magnitude if self.status == VARIANCE_UNDER else self.magnitude

    @property
    def display(self) -> str:
        if self.status == VARIANCE_OVER:
            return f"+{format_cop(self.magnitude)}"
        if self.status == VARIANCE_UNDER:
            return f"-{format_cop(self.magnitude)}"
        return format_cop(0)

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "magnitude": self.magnitude,
            "difference": self.signed,
            "display": self.display,
        }


def classify(expected: int, actual: int) -> Variance:
    if actual == expected:
        return Variance(VARIANCE_EXACT, 0)
    if actual > expected:
        return Variance(VARIANCE_OVER, actual - expected)
    return Variance(VARIANCE_UNDER, expected - actual)


@dataclass(frozen=True)
class BaseCheck:
    """Counted cash vs. the drawer's required float."""
    status: str
    amount: int
    base: int

    @property
    def message(self) -> str:
        if self.status == BASE_EXACT:
            return f"Exact base amount: {format_cop(self.base)}"
        if self.status == BASE_SHORTFALL:
            return f"Short of base by {format_cop(self.amount)}"
        return f"Over base by +{format_cop(self.amount)}"

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "amount": self.amount,
            "base": self.base,
            "message": self.message,
        }


def compare_to_base(counted: int, base: int = DEFAULT_DRAWER_BASE) -> BaseCheck:
    difference = counted - base
    if difference == 0:
        return BaseCheck(BASE_EXACT, 0, base)
    if difference < 0:
        return BaseCheck(BASE_SHORTFALL, -difference, base)
    return BaseCheck(BASE_SURPLUS, difference, base)
