from __future__ import annotations
from typing import List, Dict, Any, Iterable
import csv
import io

from venuecalc.forecasting.engine import ScenarioMetrics

SCHEMAS = {
    "weekly": [
        "week","status","historical","revenue_multiplier","cost_multiplier","revenue","costs","profit"
    ],
    "metrics": ["metric","value"],
}


def write_csv(rows: Iterable[Dict[str, Any]], columns: List[str]) -> str:
    buf = io.StringIO()
    w = csv.DictWriter(buf, fieldnames=columns, extrasaction="ignore")
    w.writeheader()
    for r in rows:
        w.writerow({k: r.get(k) for k in columns})
    return buf.getvalue()


def write_weekly_csv(rows: Iterable[Dict[str, Any]]) -> str:
    return write_csv(rows, SCHEMAS["weekly"])


def write_metrics_csv(metrics: ScenarioMetrics) -> str:
    rows = [{"metric": k, "value": v} for k, v in metrics.to_dict().items()]
    return write_csv(rows, SCHEMAS["metrics"])
