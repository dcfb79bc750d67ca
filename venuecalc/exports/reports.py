from __future__ import annotations
from datetime import datetime
from typing import List, Sequence

from venuecalc.forecasting.engine import ScenarioMetrics, VAT_RATE, WEEKS_PER_YEAR
from venuecalc.forecasting.inputs import ScenarioInputs
from venuecalc.forecasting.weeks import weekly_rows
from venuecalc.scenarios.model import Scenario, now_iso

RULE = "=" * 50


def format_currency(value: float) -> str:
    return f"{value:,.2f} €"


def format_date(iso: str) -> str:
    try:
        return datetime.fromisoformat(iso).strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return iso


def format_multiplier(m: float) -> str:
    if m in (0, 0.5, 1.0, 1.2):
        return f"{m * 100:.0f}%"
    return f"{m * 100:.1f}%"


def _section(title: str) -> List[str]:
    return [RULE, title, RULE, ""]


def _input_lines(i: ScenarioInputs) -> List[str]:
    lines = ["REVENUE:",
             f"- Profitraining: {format_currency(i.profitraining)}/month",
             f"- Ticket price: {format_currency(i.ticket_price)}",
             f"- Tickets per week: {i.tickets_per_week:g}",
             f"- Gastronomy profit per ticket: {format_currency(i.gastronomy_profit_per_ticket)}"]
    for n, c in enumerate(i.courses(), start=1):
        lines += [
            f"- Course {n} - price per participant: {format_currency(c.price_per_participant)}",
            f"- Course {n} - participants: {c.participants:g}",
            f"- Course {n} - per week: {c.per_week:g}",
            f"- Course {n} - trainer costs: {format_currency(c.trainer_costs)}",
        ]
    lines += [
        f"- Workshop - profit per participant: {format_currency(i.workshop_profit_per_participant)}",
        f"- Workshop - participants: {i.workshop_participants:g}",
        f"- Workshops per month: {i.workshops_per_month:g}",
        f"- Rentals per week: {i.rentals_per_week:g}",
        f"- Rental price: {format_currency(i.rental_price)}",
        "",
        "COSTS:",
        f"- Rent: {format_currency(i.rent)}/month",
        f"- Salaries: {format_currency(i.salaries)}/month",
        f"- Marketing: {format_currency(i.marketing)}/month",
        f"- Technology: {format_currency(i.technology)}/month",
        f"- Heating: {format_currency(i.heating_costs)}/month",
        f"- Other costs: {format_currency(i.other_costs)}/month",
        f"- Weekly reserves: {format_currency(i.weekly_reserves)}/week",
        f"- Shows per week: {i.shows_per_week:g}",
        f"- GEMA fee per show: {format_currency(i.gema_fee_per_show)}",
        f"- KVR fee per show: {format_currency(i.kvr_fee_per_show)}",
        f"- Artist fee per show: {format_currency(i.artist_fee_per_show)}",
        "",
    ]
    return lines


def _metric_lines(m: ScenarioMetrics) -> List[str]:
    vat = f"{VAT_RATE * 100:.0f}%"
    lines = [
        "Weekly baseline:",
        f"- Revenue per week (net): {format_currency(m.base_weekly_revenue)}",
        f"- Revenue per week (gross): {format_currency(m.base_weekly_revenue_gross)}",
        f"- Costs per week: {format_currency(m.base_weekly_costs)}",
        f"- VAT per week ({vat}): {format_currency(m.weekly_vat)}",
        "",
        "Revenue by source (per week, gross):",
        f"- Fixed income: {format_currency(m.fixed_income_per_week)}",
        f"- Tickets: {format_currency(m.ticket_revenue_per_week)}",
        f"- Gastronomy (net): {format_currency(m.gastronomy_revenue_per_week)}",
        f"- Course 1: {format_currency(m.course1_revenue_per_week)}",
        f"- Course 2: {format_currency(m.course2_revenue_per_week)}",
        f"- Course 3: {format_currency(m.course3_revenue_per_week)}",
        f"- Workshops: {format_currency(m.workshop_revenue_per_week)}",
        f"- Rentals: {format_currency(m.rental_revenue_per_week)}",
        "",
        "Costs by source (per week):",
        f"- Monthly costs: {format_currency(m.monthly_costs_per_week)}",
        f"- Show fees: {format_currency(m.show_fees_per_week)}",
        f"- Weekly reserves: {format_currency(m.weekly_reserves)}",
        "",
        "Annual values:",
        f"- Revenue (gross): {format_currency(m.total_revenue_gross)}",
        f"- VAT ({vat}): {format_currency(m.total_vat)}",
        f"- Revenue (net): {format_currency(m.total_revenue)}",
        f"- Costs: {format_currency(m.total_costs)}",
        f"- Profit/loss (net): {format_currency(m.total_profit)}",
        f"- Profit/loss (gross): {format_currency(m.total_profit_gross)}",
        f"- Profit margin (net): {m.profit_margin_percent:.2f}%",
        "",
    ]
    if m.historical_revenue > 0 or m.projected_revenue > 0:
        lines += [
            "Period analysis:",
            f"- Historical revenue: {format_currency(m.historical_revenue)}",
            f"- Historical costs: {format_currency(m.historical_costs)}",
            f"- Projected revenue: {format_currency(m.projected_revenue)}",
            f"- Projected costs: {format_currency(m.projected_costs)}",
            f"- Projected profit: {format_currency(m.projected_profit)}",
            "",
        ]
    return lines


def interpretation(m: ScenarioMetrics) -> List[str]:
    """Rule-based verdict on annual profit and margin."""
    margin = f"{m.profit_margin_percent:.2f}%"
    if m.total_profit < 0:
        return [
            f"The scenario shows an annual loss of {format_currency(abs(m.total_profit))}.",
            f"Costs ({format_currency(m.total_costs)}) exceed revenue ({format_currency(m.total_revenue)}).",
            "",
            "Recommendations:",
            "- Review the cost structure for savings",
            "- Raise revenue through additional offers or price changes",
            "- Check that all costs are realistic",
        ]
    if m.profit_margin_percent < 10:
        return [
            f"The scenario shows an annual profit of {format_currency(m.total_profit)}.",
            f"The profit margin of {margin} is relatively low.",
            "",
            "Recommendations:",
            "- Increase revenue or reduce costs to improve the margin",
            "- Review pricing of courses and workshops",
        ]
    if m.profit_margin_percent < 20:
        return [
            f"The scenario shows an annual profit of {format_currency(m.total_profit)}.",
            f"The profit margin of {margin} is healthy.",
            "",
            "The scenario is financially viable.",
        ]
    return [
        f"Excellent: the scenario shows an annual profit of {format_currency(m.total_profit)}.",
        f"The profit margin of {margin} indicates high profitability.",
        "",
        "The scenario is financially very strong.",
    ]


def scenario_report(scenario: Scenario) -> str:
    lines = [RULE, f"FINANCIAL ANALYSIS: {scenario.name}", RULE, ""]
    lines += [f"Created: {format_date(scenario.created_at)}",
              f"Last modified: {format_date(scenario.updated_at)}", ""]
    lines += _section("INPUTS") + _input_lines(scenario.inputs)
    lines += _section("METRICS") + _metric_lines(scenario.metrics)
    lines += _section("INTERPRETATION") + interpretation(scenario.metrics)
    lines += ["", RULE, f"Report generated: {format_date(now_iso())}", RULE]
    return "\n".join(lines) + "\n"


def detailed_report(
    scenario: Scenario,
    revenue_multipliers: Sequence[float],
    cost_multipliers: Sequence[float],
    current_week: int,
) -> str:
    """Summary report followed by a week-by-week table and multiplier statistics."""
    lines = [RULE, f"DETAILED FINANCIAL ANALYSIS: {scenario.name}", RULE, "",
             f"Current calendar week: {current_week}", ""]
    body = scenario_report(scenario)

    rows = weekly_rows(scenario.metrics, revenue_multipliers, cost_multipliers, current_week)
    table = _section("WEEKLY DETAIL")
    table.append("Multipliers: 0% = excluded, 50% = weak, 100% = normal, 120% = strong")
    table.append("")
    table.append("Week".ljust(6) + "Status".ljust(12) + "Rev. mult.".ljust(12) + "Cost mult.".ljust(12)
                 + "Revenue".ljust(16) + "Costs".ljust(16) + "Profit/loss")
    table.append("-" * 90)
    for r in rows:
        table.append(
            f"W{r['week']:>2}".ljust(6)
            + r["status"].ljust(12)
            + format_multiplier(r["revenue_multiplier"]).ljust(12)
            + format_multiplier(r["cost_multiplier"]).ljust(12)
            + format_currency(r["revenue"]).ljust(16)
            + format_currency(r["costs"]).ljust(16)
            + format_currency(r["profit"])
        )

    historical_weeks = min(max(current_week - 1, 0), WEEKS_PER_YEAR)
    projected = [r for r in rows if not r["historical"]]
    rm = [r["revenue_multiplier"] for r in rows]
    stats = [""] + _section("WEEKLY SUMMARY") + [
        f"Weeks: {WEEKS_PER_YEAR}",
        f"Historical weeks: {historical_weeks}",
        f"Projected weeks: {WEEKS_PER_YEAR - historical_weeks}",
        "",
        "Revenue multipliers:",
        f"- Excluded (0%): {sum(1 for m in rm if m == 0)} weeks",
        f"- Weak (<100%): {sum(1 for m in rm if 0 < m < 1.0)} weeks",
        f"- Normal (100%): {sum(1 for m in rm if m == 1.0)} weeks",
        f"- Strong (>100%): {sum(1 for m in rm if m > 1.0)} weeks",
        "",
        f"Projected revenue (remaining weeks): {format_currency(sum(r['revenue'] for r in projected))}",
        f"Projected costs (remaining weeks): {format_currency(sum(r['costs'] for r in projected))}",
        f"Projected profit (remaining weeks): {format_currency(sum(r['profit'] for r in projected))}",
    ]
    return "\n".join(lines) + "\n" + body + "\n".join(table + stats) + "\n"
