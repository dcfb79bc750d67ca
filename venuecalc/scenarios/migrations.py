"""Schema migrations for persisted scenario records.

Each step upgrades a raw record (camelCase dict, as stored) by one schema
version. ``migrate_scenario`` runs the pending steps, backfills any
remaining input from the defaults and recomputes metrics.
"""
from __future__ import annotations
import logging
import uuid
from typing import Any, Callable, Dict, List, Mapping, Tuple, Union

from venuecalc.forecasting.inputs import DEFAULT_INPUTS, ScenarioInputs
from venuecalc.scenarios.model import (
    SCHEMA_VERSION, Scenario, WeekContext, metrics_for, now_iso,
)

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

RETIRED_INPUTS = (
    "fundingPerMonth",
    "membershipCount",
    "membershipFeePerYear",
    "taxAdvisorCosts",
    "taxReturnCosts",
    "accountingCosts",
    "payrollAccountingCosts",
)


def _backfill(record: Record, names: Tuple[str, ...]) -> Record:
    inputs = dict(record.get("inputs") or {})
    defaults = DEFAULT_INPUTS.to_dict()
    for n in names:
        inputs.setdefault(n, defaults[n])
    return {**record, "inputs": inputs}


def add_show_and_gastronomy_fields(record: Record) -> Record:
    return _backfill(record, (
        "gastronomyProfitPerTicket", "showsPerWeek", "gemaFeePerShow",
        "kvrFeePerShow", "artistFeePerShow",
    ))


def add_weekly_reserves(record: Record) -> Record:
    return _backfill(record, ("weeklyReserves",))


def drop_retired_inputs(record: Record) -> Record:
    inputs = {k: v for k, v in (record.get("inputs") or {}).items() if k not in RETIRED_INPUTS}
    return {**record, "inputs": inputs}


MIGRATIONS: List[Tuple[int, Callable[[Record], Record]]] = [
    (1, add_show_and_gastronomy_fields),
    (2, add_weekly_reserves),
    (3, drop_retired_inputs),
]


def upgrade_record(record: Mapping[str, Any]) -> Record:
    """Run every migration step newer than the record's ``schemaVersion``."""
    out: Record = dict(record)
    if not isinstance(out.get("inputs", {}), Mapping):
        raise ValueError("scenario record has no inputs")
    version = int(out.get("schemaVersion") or 0)
    for target, step in MIGRATIONS:
        if version < target:
            logger.debug(f"Migrating scenario {out.get('id')} to v{target} ({step.__name__})")
            out = step(out)
            version = target
    out["schemaVersion"] = max(version, SCHEMA_VERSION)
    return out


def migrate_scenario(scenario: Union[Scenario, Mapping[str, Any]]) -> Scenario:
    """Bring a stored scenario (record or object) up to the current schema.

    Inputs are merged over the defaults so newly added fields get default
    values and existing ones are kept; metrics are recomputed with the
    record's week context.
    """
    record = scenario.to_dict() if isinstance(scenario, Scenario) else upgrade_record(scenario)
    if not isinstance(record.get("inputs"), Mapping):
        raise ValueError("scenario record has no inputs")
    inputs = ScenarioInputs.from_dict(record.get("inputs"), base=DEFAULT_INPUTS)
    weeks = WeekContext.from_dict(record.get("weeks"))
    now = now_iso()
    return Scenario(
        id=str(record.get("id") or uuid.uuid4()),
        name=str(record.get("name") or ""),
        created_at=record.get("createdAt") or now,
        updated_at=record.get("updatedAt") or now,
        inputs=inputs,
        metrics=metrics_for(inputs, weeks),
        weeks=weeks,
    )
