"""Pro-forma model records (3-year revenue, cost, headcount and assumptions)."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from numbers import Integral, Real
from typing import Any


YEARS = (1, 2, 3)

FORECAST_MODES = {"custom", "ai", "hybrid"}

REVENUE_LINE_KEYS = ("subscriptions", "ai_tools", "advertising", "enterprise")
REVENUE_TOGGLE_KEY = "enterprise_enabled"
COGS_LINE_KEYS = ("hosting_ai", "video_processing", "payment_fees")
OPEX_LINE_KEYS = ("product_engineering", "sales_marketing", "gna", "customer_success", "contractors")
HEADCOUNT_FIELDS = ("department", "year1_count", "year2_count", "year3_count", "avg_salary")
ASSUMPTION_KEYS = (
    "revenue_growth",
    "churn_rate",
    "pricing_growth",
    "cogs_percent",
    "headcount_growth",
    "salary_growth",
    "cac_cost",
    "ltv_months",
    "cash_on_hand",
)

LINE_LABELS = {
    "subscriptions": "Subscriptions",
    "ai_tools": "AI Tools",
    "advertising": "Advertising",
    "enterprise": "Enterprise",
    "hosting_ai": "Hosting & AI",
    "video_processing": "Video Processing",
    "payment_fees": "Payment Fees",
    "product_engineering": "Product & Engineering",
    "sales_marketing": "Sales & Marketing",
    "gna": "G&A",
    "customer_success": "Customer Success",
    "contractors": "Contractors",
}


def _check_year(year: int) -> int:
    if isinstance(year, bool) or not isinstance(year, Integral) or int(year) not in YEARS:
        raise IndexError(f"year must be one of {YEARS}, got {year!r}.")
    return int(year)


def as_number(value: Any, name: str) -> float:
    """Return value as a finite float, rejecting booleans and non-numeric input."""
    if isinstance(value, bool) or not isinstance(value, Real):
        raise TypeError(f"{name} must be a number, got {type(value).__name__}.")
    try:
        number = float(value)
    except OverflowError:
        raise ValueError(f"{name} must be finite, got an out-of-range number.") from None
    if not math.isfinite(number):
        raise ValueError(f"{name} must be finite, got {number}.")
    return number


@dataclass(frozen=True)
class YearlyValues:
    """One line item projected over year 1..3. Negative values are allowed."""

    year1: float = 0.0
    year2: float = 0.0
    year3: float = 0.0

    def value(self, year: int) -> float:
        return getattr(self, f"year{_check_year(year)}")

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.year1, self.year2, self.year3)

    def with_year(self, year: int, value: float) -> "YearlyValues":
        values = list(self.as_tuple())
        values[_check_year(year) - 1] = as_number(value, f"year{year}")
        return YearlyValues(*values)

    def to_dict(self) -> dict[str, float]:
        return {"year1": self.year1, "year2": self.year2, "year3": self.year3}

    @classmethod
    def coerce(cls, value: Any, name: str = "value") -> "YearlyValues":
        """Build YearlyValues from an instance, a year1..year3 mapping, or a 3-item sequence."""
        if isinstance(value, YearlyValues):
            return value
        if isinstance(value, Mapping):
            missing = [k for k in ("year1", "year2", "year3") if k not in value]
            if missing:
                raise ValueError(f"{name} is missing {', '.join(missing)}.")
            return cls(*(as_number(value[k], f"{name}.{k}") for k in ("year1", "year2", "year3")))
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
            if len(value) != 3:
                raise ValueError(f"{name} needs exactly 3 yearly values, got {len(value)}.")
            return cls(*(as_number(v, f"{name}[{i}]") for i, v in enumerate(value)))
        raise TypeError(f"{name} must be YearlyValues, a year1..year3 mapping, or a 3-item sequence.")


def _line_sum(model: Any, keys: Sequence[str], year: int) -> float:
    return float(sum(getattr(model, key).value(year) for key in keys))


@dataclass(frozen=True)
class RevenueModel:
    subscriptions: YearlyValues = field(default_factory=YearlyValues)
    ai_tools: YearlyValues = field(default_factory=YearlyValues)
    advertising: YearlyValues = field(default_factory=YearlyValues)
    enterprise: YearlyValues = field(default_factory=YearlyValues)
    enterprise_enabled: bool = True

    def total(self, year: int) -> float:
        total = _line_sum(self, REVENUE_LINE_KEYS[:3], year)
        if self.enterprise_enabled:
            total += self.enterprise.value(year)
        return total


@dataclass(frozen=True)
class COGSModel:
    hosting_ai: YearlyValues = field(default_factory=YearlyValues)
    video_processing: YearlyValues = field(default_factory=YearlyValues)
    payment_fees: YearlyValues = field(default_factory=YearlyValues)

    def total(self, year: int) -> float:
        return _line_sum(self, COGS_LINE_KEYS, year)


@dataclass(frozen=True)
class OpExModel:
    product_engineering: YearlyValues = field(default_factory=YearlyValues)
    sales_marketing: YearlyValues = field(default_factory=YearlyValues)
    gna: YearlyValues = field(default_factory=YearlyValues)
    customer_success: YearlyValues = field(default_factory=YearlyValues)
    contractors: YearlyValues = field(default_factory=YearlyValues)

    def total(self, year: int) -> float:
        return _line_sum(self, OPEX_LINE_KEYS, year)


@dataclass(frozen=True)
class HeadcountRow:
    """Department headcount plan. Its cost is reported apart from OpEx."""

    department: str
    year1_count: float = 0.0
    year2_count: float = 0.0
    year3_count: float = 0.0
    avg_salary: float = 0.0

    def count(self, year: int) -> float:
        return getattr(self, f"year{_check_year(year)}_count")

    def cost(self, year: int) -> float:
        return float(self.count(year) * self.avg_salary)

    def to_dict(self) -> dict[str, Any]:
        return {k: getattr(self, k) for k in HEADCOUNT_FIELDS}

    @classmethod
    def coerce(cls, row: Any) -> "HeadcountRow":
        if isinstance(row, HeadcountRow):
            return row
        if not isinstance(row, Mapping):
            raise TypeError("headcount row must be a HeadcountRow or a mapping.")
        unknown = sorted(set(row) - set(HEADCOUNT_FIELDS))
        if unknown:
            raise KeyError(f"Unknown headcount fields: {', '.join(unknown)}.")
        if not isinstance(row.get("department"), str):
            raise TypeError("department must be a string.")
        return cls(
            department=row["department"],
            **{k: as_number(row.get(k, 0.0), k) for k in HEADCOUNT_FIELDS[1:]},
        )


@dataclass(frozen=True)
class Assumptions:
    revenue_growth: float = 0.0
    churn_rate: float = 0.0
    pricing_growth: float = 0.0
    cogs_percent: float = 0.0
    headcount_growth: float = 0.0
    salary_growth: float = 0.0
    cac_cost: float = 0.0
    ltv_months: float = 0.0
    cash_on_hand: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {k: getattr(self, k) for k in ASSUMPTION_KEYS}


@dataclass(frozen=True)
class CFOStudioV3State:
    forecast_mode: str = "custom"
    revenue: RevenueModel = field(default_factory=RevenueModel)
    cogs: COGSModel = field(default_factory=COGSModel)
    opex: OpExModel = field(default_factory=OpExModel)
    headcount: tuple[HeadcountRow, ...] = ()
    assumptions: Assumptions = field(default_factory=Assumptions)
