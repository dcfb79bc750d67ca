from __future__ import annotations
import math
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from venuecalc.forecasting.engine import ScenarioMetrics, WEEKS_PER_YEAR

NORMAL = 1.0
WEAK = 0.5
STRONG = 1.2
EXCLUDED = 0.0

# 1.0 -> 0.5 -> 1.2 -> 0.0 -> 1.0; manual values go back to 1.0
_TOGGLE_CYCLE = {NORMAL: WEAK, WEAK: STRONG, STRONG: EXCLUDED, EXCLUDED: NORMAL}

PERIODS = {"year": 1, "quarter": 4, "month": 12, "week": WEEKS_PER_YEAR}


def current_week(today: Optional[date] = None) -> int:
    """Calendar week from the day of year: whole weeks since Jan 1, plus one, capped at 52."""
    today = today or date.today()
    elapsed = (today - date(today.year, 1, 1)).days
    return min(max(elapsed // 7 + 1, 1), WEEKS_PER_YEAR)


def default_multipliers() -> List[float]:
    return [NORMAL] * WEEKS_PER_YEAR


def validate_multipliers(multipliers: Sequence[Any], name: str = "multipliers") -> List[float]:
    """Coerce to floats; raise ValueError on wrong length or non-finite values."""
    if len(multipliers) != WEEKS_PER_YEAR:
        raise ValueError(f"{name} must have exactly {WEEKS_PER_YEAR} entries, got {len(multipliers)}")
    out: List[float] = []
    for i, m in enumerate(multipliers):
        try:
            v = float(m)
        except (TypeError, ValueError):
            raise ValueError(f"{name}[{i}] must be a number") from None
        if not math.isfinite(v):
            raise ValueError(f"{name}[{i}] must be a finite number")
        out.append(v)
    return out


def toggle_multiplier(multipliers: Sequence[float], index: int) -> List[float]:
    out = list(multipliers)
    out[index] = _TOGGLE_CYCLE.get(out[index], NORMAL)
    return out


def set_week_range(multipliers: Sequence[float], start: int, end: int, value: float) -> List[float]:
    """Set 0-based weeks ``start``..``end`` (inclusive) to ``value``."""
    out = list(multipliers)
    for i in range(max(start, 0), min(end, len(out) - 1) + 1):
        out[i] = value
    return out


def mark_christmas_weak(multipliers: Sequence[float]) -> List[float]:
    out = set_week_range(multipliers, 50, 51, WEAK)
    out[0] = WEAK
    return out


def mark_summer_weak(multipliers: Sequence[float]) -> List[float]:
    # weeks 28-35, July/August
    return set_week_range(multipliers, 27, 34, 0.7)


def week_status(week: int, current: int, revenue_multiplier: float, cost_multiplier: float) -> str:
    if week < current:
        return "Past"
    if revenue_multiplier == 0 and cost_multiplier == 0:
        return "Excluded"
    if revenue_multiplier == 0:
        return "No revenue"
    if cost_multiplier == 0:
        return "No costs"
    if revenue_multiplier == 1.0 and cost_multiplier == 1.0:
        return "Normal"
    if revenue_multiplier < 1.0 or cost_multiplier < 1.0:
        return "Weak"
    if revenue_multiplier > 1.0 or cost_multiplier > 1.0:
        return "Strong"
    return "Adjusted"


def weekly_rows(
    metrics: ScenarioMetrics,
    revenue_multipliers: Sequence[float],
    cost_multipliers: Sequence[float],
    current: int,
) -> List[Dict[str, Any]]:
    """One row per calendar week with net revenue, costs and profit at that week's multipliers."""
    rows: List[Dict[str, Any]] = []
    for i in range(WEEKS_PER_YEAR):
        rm = revenue_multipliers[i] if i < len(revenue_multipliers) else NORMAL
        cm = cost_multipliers[i] if i < len(cost_multipliers) else NORMAL
        revenue = metrics.base_weekly_revenue * rm
        costs = metrics.base_weekly_costs * cm
        rows.append({
            "week": i + 1,
            "status": week_status(i + 1, current, rm, cm),
            "historical": i + 1 < current,
            "revenue_multiplier": rm,
            "cost_multiplier": cm,
            "revenue": revenue,
            "costs": costs,
            "profit": revenue - costs,
        })
    return rows


def to_period(annual_value: float, period: str = "year") -> float:
    """Convert an annual figure to a per-quarter/month/week figure."""
    try:
        return annual_value / PERIODS[period]
    except KeyError:
        raise ValueError(f"unknown period '{period}'") from None
