from __future__ import annotations
import logging
import time
from collections import deque, defaultdict
from typing import Any, Dict, Optional

from flask import Flask, request, jsonify, Response

from venuecalc.config.env import get_api_config, get_storage_config, configure_logging
from venuecalc.exports.reports import scenario_report, detailed_report
from venuecalc.exports.writers import write_weekly_csv
from venuecalc.forecasting.engine import compute_metrics
from venuecalc.forecasting.inputs import DEFAULT_INPUTS, ScenarioInputs, validate_inputs
from venuecalc.forecasting.weeks import current_week, default_multipliers, validate_multipliers, weekly_rows
from venuecalc.scenarios.model import (
    WeekContext, create_scenario, create_empty_scenario, duplicate_scenario, update_scenario_metadata,
)
from venuecalc.scenarios.storage import ScenarioStore, export_scenario_json, import_scenario_json

logger = logging.getLogger(__name__)

app = Flask(__name__)

_default_store: Optional[ScenarioStore] = None


def _store() -> ScenarioStore:
    global _default_store
    store = app.config.get('SCENARIO_STORE')
    if store is not None:
        return store
    if _default_store is None:
        _default_store = ScenarioStore(get_storage_config().path)
    return _default_store


# Configuration helpers (overridable via app.config in tests)

def _get_api_key() -> str | None:
    if 'API_KEY' in app.config:
        return app.config.get('API_KEY')
    return get_api_config().api_key


def _get_rate_limit() -> tuple[int, float]:
    cfg = get_api_config()
    n = app.config.get('RATE_LIMIT_N')
    w = app.config.get('RATE_LIMIT_WINDOW_SEC')
    if n is None:
        n = cfg.rate_limit_n
    if w is None:
        w = cfg.rate_limit_window_sec
    return int(n), float(w)

_recent: dict[str, deque[float]] = defaultdict(lambda: deque(maxlen=100))


def _client_ip() -> str:
    xff = request.headers.get('X-Forwarded-For')
    if xff:
        return xff.split(',')[0].strip()
    return request.remote_addr or 'anon'


def _check_api_key():
    api_key = _get_api_key()
    if api_key:
        provided = request.headers.get('X-API-Key')
        if provided != api_key:
            return jsonify({'error': 'unauthorized'}), 401
    return None


def _check_rate_limit(ip: str):
    n, window = _get_rate_limit()
    if n <= 0:
        return None
    now = time.time()
    dq = _recent[ip]
    while dq and now - dq[0] > window:
        dq.popleft()
    if len(dq) >= n:
        retry = max(0.0, window - (now - dq[0]))
        resp = jsonify({'error': 'rate_limited'})
        resp.status_code = 429
        resp.headers['Retry-After'] = f"{retry:.2f}"
        return resp
    dq.append(now)
    return None

@app.before_request
def _auth_and_rate_limit():
    if request.path.startswith(('/scenarios', '/metrics')):
        unauthorized = _check_api_key()
        if unauthorized is not None:
            return unauthorized
        # Rate limit writes only
        if request.method in ('POST', 'PATCH', 'DELETE'):
            rl = _check_rate_limit(_client_ip())
            if rl is not None:
                return rl
    return None


@app.errorhandler(ValueError)
def _bad_request(e: ValueError):
    return jsonify({'error': str(e)}), 400


def _week_context(payload: Dict[str, Any]) -> Optional[WeekContext]:
    """Parse currentWeek / revenueMultipliers / costMultipliers from a request body."""
    keys = ('currentWeek', 'revenueMultipliers', 'costMultipliers')
    if not any(payload.get(k) is not None for k in keys):
        return None
    cw = payload.get('currentWeek')
    rev = payload.get('revenueMultipliers')
    cost = payload.get('costMultipliers')
    if cw is not None and (isinstance(cw, bool) or not isinstance(cw, int) or not 1 <= cw <= 52):
        raise ValueError('currentWeek must be an integer between 1 and 52')
    return WeekContext.of(
        current_week=cw,
        revenue_multipliers=validate_multipliers(rev, 'revenueMultipliers') if rev is not None else None,
        cost_multipliers=validate_multipliers(cost, 'costMultipliers') if cost is not None else None,
    )


def _inputs(payload: Dict[str, Any], base: ScenarioInputs) -> ScenarioInputs:
    raw = payload.get('inputs') or {}
    if not isinstance(raw, dict):
        raise ValueError('inputs must be an object')
    inputs = base.merged(raw)
    validate_inputs(inputs)
    return inputs


def _payload() -> Dict[str, Any]:
    payload = request.get_json(force=True, silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValueError('request body must be a JSON object')
    return payload


def _name(payload: Dict[str, Any], required: bool) -> Optional[str]:
    """Stripped scenario name; absent is allowed only when not ``required``."""
    raw = payload.get('name')
    if raw is None and not required:
        return None
    name = raw.strip() if isinstance(raw, str) else ''
    if not name:
        raise ValueError('name is required')
    return name


def _not_found():
    return jsonify({'error': 'not_found'}), 404


@app.post('/metrics')
def post_metrics():
    payload = _payload()
    inputs = _inputs(payload, DEFAULT_INPUTS)
    weeks = _week_context(payload) or WeekContext()
    metrics = compute_metrics(inputs, weeks.current_week, weeks.revenue_multipliers, weeks.cost_multipliers)
    return jsonify({'inputs': inputs.to_dict(), 'metrics': metrics.to_dict()})


@app.get('/weeks/current')
def get_current_week():
    return jsonify({'currentWeek': current_week()})


@app.get('/scenarios')
def list_scenarios():
    return jsonify({'scenarios': [s.to_dict() for s in _store().list()]})


@app.post('/scenarios')
def post_scenario():
    payload = _payload()
    name = _name(payload, required=True)
    if payload.get('empty'):
        scenario = create_empty_scenario(name)
        scenario = update_scenario_metadata(scenario, inputs=_inputs(payload, scenario.inputs),
                                            weeks=_week_context(payload))
    else:
        scenario = create_scenario(name, _inputs(payload, DEFAULT_INPUTS), _week_context(payload))
    saved = _store().save(scenario)
    return jsonify(saved.to_dict()), 201


@app.get('/scenarios/<sid>')
def get_scenario(sid: str):
    s = _store().get(sid)
    if s is None:
        return _not_found()
    return jsonify(s.to_dict())


@app.patch('/scenarios/<sid>')
def patch_scenario(sid: str):
    store = _store()
    s = store.get(sid)
    if s is None:
        return _not_found()
    payload = _payload()
    kwargs: Dict[str, Any] = {'name': _name(payload, required=False), 'inputs': _inputs(payload, s.inputs)}
    weeks = _week_context(payload)
    if weeks is not None:
        kwargs['weeks'] = weeks
    saved = store.save(update_scenario_metadata(s, **kwargs))
    return jsonify(saved.to_dict())


@app.delete('/scenarios/<sid>')
def delete_scenario(sid: str):
    if not _store().delete(sid):
        return _not_found()
    return jsonify({'deleted': sid})


@app.post('/scenarios/<sid>/duplicate')
def post_duplicate(sid: str):
    store = _store()
    s = store.get(sid)
    if s is None:
        return _not_found()
    payload = _payload()
    name = _name(payload, required=False) or f"{s.name} (copy)"
    saved = store.save(duplicate_scenario(s, name))
    return jsonify(saved.to_dict()), 201


@app.get('/scenarios/<sid>/report.txt')
def get_report(sid: str):
    s = _store().get(sid)
    if s is None:
        return _not_found()
    if request.args.get('detailed'):
        weeks = s.weeks or WeekContext()
        body = detailed_report(
            s,
            weeks.revenue_multipliers or default_multipliers(),
            weeks.cost_multipliers or weeks.revenue_multipliers or default_multipliers(),
            weeks.current_week or current_week(),
        )
    else:
        body = scenario_report(s)
    return Response(body, mimetype='text/plain')


@app.get('/scenarios/<sid>/weeks.csv')
def get_weeks_csv(sid: str):
    s = _store().get(sid)
    if s is None:
        return _not_found()
    weeks = s.weeks or WeekContext()
    rows = weekly_rows(
        s.metrics,
        weeks.revenue_multipliers or default_multipliers(),
        weeks.cost_multipliers or weeks.revenue_multipliers or default_multipliers(),
        weeks.current_week or current_week(),
    )
    return Response(write_weekly_csv(rows), mimetype='text/csv')


@app.get('/scenarios/<sid>/export.json')
def get_export(sid: str):
    s = _store().get(sid)
    if s is None:
        return _not_found()
    return Response(export_scenario_json(s), mimetype='application/json', headers={
        'Content-Disposition': f'attachment; filename="scenario-{s.id}.json"'
    })


@app.post('/scenarios/import')
def post_import():
    scenario = import_scenario_json(request.get_data(as_text=True))
    saved = _store().save(scenario)
    return jsonify(saved.to_dict()), 201


if __name__ == '__main__':
    configure_logging()
    app.run(host='0.0.0.0', port=8000)
