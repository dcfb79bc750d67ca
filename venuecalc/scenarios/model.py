from __future__ import annotations
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

from venuecalc.forecasting.engine import ScenarioMetrics, compute_metrics
from venuecalc.forecasting.inputs import DEFAULT_INPUTS, EMPTY_INPUTS, ScenarioInputs

InputsLike = Union[ScenarioInputs, Mapping[str, Any], None]

SCHEMA_VERSION = 3

_KEEP = object()


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


@dataclass(frozen=True)
class WeekContext:
    """Week cutoff and multiplier sequences last used to compute a scenario's metrics."""
    current_week: Optional[int] = None
    revenue_multipliers: Optional[Tuple[float, ...]] = None
    cost_multipliers: Optional[Tuple[float, ...]] = None

    @classmethod
    def of(cls, current_week: Optional[int] = None,
           revenue_multipliers: Optional[Sequence[float]] = None,
           cost_multipliers: Optional[Sequence[float]] = None) -> "WeekContext":
        return cls(
            current_week=current_week,
            revenue_multipliers=tuple(revenue_multipliers) if revenue_multipliers is not None else None,
            cost_multipliers=tuple(cost_multipliers) if cost_multipliers is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentWeek": self.current_week,
            "revenueMultipliers": list(self.revenue_multipliers) if self.revenue_multipliers is not None else None,
            "costMultipliers": list(self.cost_multipliers) if self.cost_multipliers is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional["WeekContext"]:
        if not data:
            return None
        cw = data.get("currentWeek")
        return cls.of(
            current_week=int(cw) if cw is not None else None,
            revenue_multipliers=[float(m) for m in data["revenueMultipliers"]] if data.get("revenueMultipliers") is not None else None,
            cost_multipliers=[float(m) for m in data["costMultipliers"]] if data.get("costMultipliers") is not None else None,
        )


@dataclass(frozen=True)
class Scenario:
    id: str
    name: str
    created_at: str  # ISO 8601
    updated_at: str  # ISO 8601
    inputs: ScenarioInputs
    metrics: ScenarioMetrics
    weeks: Optional[WeekContext] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "schemaVersion": SCHEMA_VERSION,
            "id": self.id,
            "name": self.name,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "inputs": self.inputs.to_dict(),
            "metrics": self.metrics.to_dict(),
        }
        if self.weeks is not None:
            out["weeks"] = self.weeks.to_dict()
        return out


def metrics_for(inputs: ScenarioInputs, weeks: Optional[WeekContext]) -> ScenarioMetrics:
    if weeks is None:
        return compute_metrics(inputs)
    return compute_metrics(inputs, weeks.current_week, weeks.revenue_multipliers, weeks.cost_multipliers)


def create_scenario(name: str, inputs: InputsLike = None, weeks: Optional[WeekContext] = None) -> Scenario:
    merged = DEFAULT_INPUTS.merged(inputs)
    now = now_iso()
    return Scenario(
        id=str(uuid.uuid4()),
        name=name,
        created_at=now,
        updated_at=now,
        inputs=merged,
        metrics=metrics_for(merged, weeks),
        weeks=weeks,
    )


def create_empty_scenario(name: str = "Empty scenario") -> Scenario:
    return create_scenario(name, EMPTY_INPUTS)


def recalculate_metrics(scenario: Scenario) -> Scenario:
    return replace(scenario, metrics=metrics_for(scenario.inputs, scenario.weeks))


def update_scenario_metadata(
    scenario: Scenario,
    name: Optional[str] = None,
    inputs: InputsLike = None,
    weeks: Any = _KEEP,
) -> Scenario:
    """Apply a partial update and recompute metrics from the merged inputs.

    ``weeks`` replaces the week context when given (``None`` clears it).
    """
    merged = scenario.inputs.merged(inputs)
    context = scenario.weeks if weeks is _KEEP else weeks
    return replace(
        scenario,
        name=name if name is not None else scenario.name,
        inputs=merged,
        metrics=metrics_for(merged, context),
        weeks=context,
        updated_at=now_iso(),
    )


def reset_to_defaults(scenario: Scenario) -> Scenario:
    return update_scenario_metadata(scenario, inputs=DEFAULT_INPUTS)


def duplicate_scenario(scenario: Scenario, name: str) -> Scenario:
    return create_scenario(name, scenario.inputs, scenario.weeks)
