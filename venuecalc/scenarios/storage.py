from __future__ import annotations
import json
import logging
import os
import threading
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from venuecalc.forecasting.inputs import validate_inputs
from venuecalc.scenarios.migrations import migrate_scenario
from venuecalc.scenarios.model import Scenario, now_iso

logger = logging.getLogger(__name__)


class ScenarioStore:
    """All scenarios as one JSON array in a single file.

    Every record is migrated on load. Writers within one process are
    serialized by a lock; across processes the last write wins.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read_records(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read scenario store {self.path}: {e}")
            return []
        if not isinstance(data, list):
            logger.warning(f"Scenario store {self.path} does not hold a list, ignoring it")
            return []
        return [r for r in data if isinstance(r, dict)]

    def _write(self, records: List[Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(records, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)

    def _load(self) -> List[Scenario]:
        out: List[Scenario] = []
        for record in self._read_records():
            try:
                out.append(migrate_scenario(record))
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable scenario {record.get('id')}: {e}")
        return out

    def list(self) -> List[Scenario]:
        """Scenarios ordered by ``updated_at``, newest first."""
        with self._lock:
            scenarios = self._load()
        return sorted(scenarios, key=lambda s: s.updated_at, reverse=True)

    def get(self, scenario_id: str) -> Optional[Scenario]:
        with self._lock:
            for s in self._load():
                if s.id == scenario_id:
                    return s
        return None

    def save(self, scenario: Scenario) -> Scenario:
        """Insert or replace by id; stamps ``updated_at``.

        Other stored records are written back as they were read, including
        ones that currently fail to load.
        """
        saved = replace(scenario, updated_at=now_iso(), created_at=scenario.created_at or now_iso())
        with self._lock:
            records = self._read_records()
            for i, r in enumerate(records):
                if r.get("id") == saved.id:
                    records[i] = saved.to_dict()
                    break
            else:
                records.append(saved.to_dict())
            self._write(records)
        logger.info(f"Saved scenario {saved.id} ({saved.name})")
        return saved

    def delete(self, scenario_id: str) -> bool:
        with self._lock:
            records = self._read_records()
            kept = [r for r in records if r.get("id") != scenario_id]
            if len(kept) == len(records):
                return False
            self._write(kept)
        logger.info(f"Deleted scenario {scenario_id}")
        return True


def export_scenario_json(scenario: Scenario) -> str:
    return json.dumps(scenario.to_dict(), indent=2)


def import_scenario_json(text: str) -> Scenario:
    """Parse an exported scenario; the result gets a fresh id and timestamps."""
    try:
        record = json.loads(text)
    except json.JSONDecodeError:
        raise ValueError("invalid scenario document") from None
    if not isinstance(record, dict) or not record.get("inputs") or not record.get("metrics"):
        raise ValueError("invalid scenario document")
    now = now_iso()
    record = {
        **record,
        "id": str(uuid.uuid4()),
        "name": record.get("name") or "Imported scenario",
        "createdAt": now,
        "updatedAt": now,
    }
    scenario = migrate_scenario(record)
    validate_inputs(scenario.inputs)
    return scenario
