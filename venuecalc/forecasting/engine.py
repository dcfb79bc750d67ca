from __future__ import annotations
import math
from dataclasses import dataclass, asdict
from typing import Dict, Optional, Sequence, Tuple

from venuecalc.forecasting.inputs import ScenarioInputs, to_camel

VAT_RATE = 0.19
WEEKS_PER_MONTH = 4.33  # 365.25 / 12 / 7, rounded
WEEKS_PER_YEAR = 52

_WIRE_NAMES = {"total_vat": "totalVAT", "weekly_vat": "weeklyVAT"}


@dataclass(frozen=True)
class ScenarioMetrics:
    # Weekly baselines
    base_weekly_revenue: float  # net
    base_weekly_revenue_gross: float
    base_weekly_costs: float

    # Annual values
    total_revenue: float  # net
    total_revenue_gross: float
    total_costs: float
    total_profit: float  # net
    total_profit_gross: float
    profit_margin_percent: float

    # Historical vs. projected
    historical_revenue: float
    historical_costs: float
    projected_revenue: float
    projected_costs: float
    projected_profit: float

    # Revenue breakdown (per week, gross)
    fixed_income_per_week: float
    ticket_revenue_per_week: float
    gastronomy_revenue_per_week: float
    course1_revenue_per_week: float
    course2_revenue_per_week: float
    course3_revenue_per_week: float
    workshop_revenue_per_week: float
    rental_revenue_per_week: float

    # Cost breakdown (per week)
    monthly_costs_per_week: float
    show_fees_per_week: float
    weekly_reserves: float

    # VAT
    total_vat: float
    weekly_vat: float
    net_revenue: float
    net_profit: float
    net_profit_margin: float

    def to_dict(self) -> Dict[str, float]:
        return {_WIRE_NAMES.get(k) or to_camel(k): v for k, v in asdict(self).items()}


def has_full_year(multipliers: Optional[Sequence[float]]) -> bool:
    return multipliers is not None and len(multipliers) == WEEKS_PER_YEAR


def split_vat(taxable_gross: float, exempt: float) -> Tuple[float, float]:
    """Back VAT out of ``taxable_gross`` and add the already-net ``exempt`` share.

    Returns (net, vat).
    """
    net_taxable = taxable_gross / (1 + VAT_RATE)
    return net_taxable + exempt, taxable_gross - net_taxable


def _weight(multipliers: Sequence[float]) -> float:
    return math.fsum(multipliers)


def compute_metrics(
    inputs: ScenarioInputs,
    current_week: Optional[int] = None,
    revenue_multipliers: Optional[Sequence[float]] = None,
    cost_multipliers: Optional[Sequence[float]] = None,
) -> ScenarioMetrics:
    """Derive weekly baselines, annual totals and the historical/projected split.

    Monthly figures convert to weekly with /4.33. Gastronomy profit is already
    net and stays outside the VAT split. Multiplier sequences of any length
    other than 52 are ignored; without a revenue sequence the year is the
    weekly baseline times 52. The historical/projected split needs both
    ``current_week`` and a 52-week revenue sequence: weeks before
    ``current_week`` are historical.
    """
    # Revenue (gross)
    fixed_income = inputs.profitraining / WEEKS_PER_MONTH
    tickets = inputs.ticket_price * inputs.tickets_per_week
    gastronomy = inputs.gastronomy_profit_per_ticket * inputs.tickets_per_week
    course_revenue = [
        (c.price_per_participant * c.participants - c.trainer_costs) * c.per_week
        for c in inputs.courses()
    ]
    workshop = (inputs.workshop_profit_per_participant * inputs.workshop_participants
                * inputs.workshops_per_month) / WEEKS_PER_MONTH
    rental = inputs.rentals_per_week * inputs.rental_price

    taxable = (fixed_income + tickets + course_revenue[0] + course_revenue[1]
               + course_revenue[2] + workshop + rental)
    base_gross = taxable + gastronomy
    base_net, weekly_vat = split_vat(taxable, gastronomy)

    # Costs
    monthly_costs_per_week = inputs.monthly_costs() / WEEKS_PER_MONTH
    show_fees = inputs.fee_per_show() * inputs.shows_per_week
    base_costs = monthly_costs_per_week + inputs.weekly_reserves + show_fees

    # Annual
    weighted = has_full_year(revenue_multipliers)
    if weighted:
        effective_costs = cost_multipliers if has_full_year(cost_multipliers) else revenue_multipliers
        revenue_weight = _weight(revenue_multipliers)
        cost_weight = _weight(effective_costs)
    else:
        effective_costs = None
        revenue_weight = cost_weight = float(WEEKS_PER_YEAR)

    total_gross = base_gross * revenue_weight
    total_revenue, total_vat = split_vat(taxable * revenue_weight, gastronomy * revenue_weight)
    total_costs = base_costs * cost_weight

    total_profit = total_revenue - total_costs
    total_profit_gross = total_gross - total_costs
    margin = (total_profit / total_revenue) * 100 if total_revenue > 0 else 0.0

    # Historical vs. projected
    historical_revenue = 0.0
    historical_costs = 0.0
    projected_revenue = total_revenue
    projected_costs = total_costs
    if current_week is not None and weighted:
        cut = min(max(int(current_week) - 1, 0), WEEKS_PER_YEAR)
        hist_w = _weight(revenue_multipliers[:cut])
        proj_w = _weight(revenue_multipliers[cut:])
        historical_revenue, _ = split_vat(taxable * hist_w, gastronomy * hist_w)
        projected_revenue, _ = split_vat(taxable * proj_w, gastronomy * proj_w)
        historical_costs = base_costs * _weight(effective_costs[:cut])
        projected_costs = base_costs * _weight(effective_costs[cut:])

    return ScenarioMetrics(
        base_weekly_revenue=base_net,
        base_weekly_revenue_gross=base_gross,
        base_weekly_costs=base_costs,
        total_revenue=total_revenue,
        total_revenue_gross=total_gross,
        total_costs=total_costs,
        total_profit=total_profit,
        total_profit_gross=total_profit_gross,
        profit_margin_percent=margin,
        historical_revenue=historical_revenue,
        historical_costs=historical_costs,
        projected_revenue=projected_revenue,
        projected_costs=projected_costs,
        projected_profit=projected_revenue - projected_costs,
        fixed_income_per_week=fixed_income,
        ticket_revenue_per_week=tickets,
        gastronomy_revenue_per_week=gastronomy,
        course1_revenue_per_week=course_revenue[0],
        course2_revenue_per_week=course_revenue[1],
        course3_revenue_per_week=course_revenue[2],
        workshop_revenue_per_week=workshop,
        rental_revenue_per_week=rental,
        monthly_costs_per_week=monthly_costs_per_week,
        show_fees_per_week=show_fees,
        weekly_reserves=inputs.weekly_reserves,
        total_vat=total_vat,
        weekly_vat=weekly_vat,
        net_revenue=total_revenue,
        net_profit=total_profit,
        net_profit_margin=margin,
    )
