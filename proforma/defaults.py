"""Default pro-forma inputs for a new forecast session."""

from __future__ import annotations

from proforma.model import (
    Assumptions,
    CFOStudioV3State,
    COGSModel,
    HeadcountRow,
    OpExModel,
    RevenueModel,
    YearlyValues,
)


DEFAULT_CASH_ON_HAND = 2_000_000.0
DEFAULT_FORECAST_MODE = "custom"

DEFAULT_REVENUE = RevenueModel(
    subscriptions=YearlyValues(480_000, 1_200_000, 2_880_000),
    ai_tools=YearlyValues(120_000, 360_000, 840_000),
    advertising=YearlyValues(60_000, 240_000, 720_000),
    enterprise=YearlyValues(0, 100_000, 400_000),
    enterprise_enabled=True,
)

# Payment fees track ~3% of total revenue.
DEFAULT_COGS = COGSModel(
    hosting_ai=YearlyValues(48_000, 120_000, 290_000),
    video_processing=YearlyValues(48_000, 108_000, 240_000),
    payment_fees=YearlyValues(19_800, 57_000, 145_200),
)

DEFAULT_OPEX = OpExModel(
    product_engineering=YearlyValues(360_000, 540_000, 720_000),
    sales_marketing=YearlyValues(180_000, 360_000, 540_000),
    gna=YearlyValues(120_000, 180_000, 240_000),
    customer_success=YearlyValues(60_000, 120_000, 180_000),
    contractors=YearlyValues(48_000, 72_000, 96_000),
)

DEFAULT_HEADCOUNT = (
    HeadcountRow("Engineering", 4, 7, 12, 150_000),
    HeadcountRow("Product", 2, 3, 5, 140_000),
    HeadcountRow("Sales", 2, 4, 8, 110_000),
    HeadcountRow("Marketing", 1, 2, 4, 100_000),
    HeadcountRow("Customer Success", 1, 2, 4, 75_000),
    HeadcountRow("G&A", 2, 3, 4, 90_000),
)

# Percent fields are whole-number percents (5 means 5%).
DEFAULT_ASSUMPTIONS = Assumptions(
    revenue_growth=150.0,
    churn_rate=5.0,
    pricing_growth=5.0,
    cogs_percent=18.0,
    headcount_growth=60.0,
    salary_growth=4.0,
    cac_cost=85.0,
    ltv_months=24.0,
    cash_on_hand=DEFAULT_CASH_ON_HAND,
)


def default_state() -> CFOStudioV3State:
    return CFOStudioV3State(
        forecast_mode=DEFAULT_FORECAST_MODE,
        revenue=DEFAULT_REVENUE,
        cogs=DEFAULT_COGS,
        opex=DEFAULT_OPEX,
        headcount=DEFAULT_HEADCOUNT,
        assumptions=DEFAULT_ASSUMPTIONS,
    )
