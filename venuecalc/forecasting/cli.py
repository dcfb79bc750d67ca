import json
import sys
from pathlib import Path

from venuecalc.config.env import configure_logging
from .engine import compute_metrics
from .inputs import ScenarioInputs, validate_inputs
from .weeks import validate_multipliers

USAGE = "Usage: python -m venuecalc.forecasting.cli [inputs.json] [--week N]"


def main(argv=None):
    configure_logging()
    args = list(sys.argv[1:] if argv is None else argv)
    week = None
    if "--week" in args:
        i = args.index("--week")
        try:
            week = int(args[i + 1])
        except (IndexError, ValueError):
            print(USAGE)
            sys.exit(2)
        del args[i:i + 2]
    if len(args) > 1:
        print(USAGE)
        sys.exit(2)

    payload = json.loads(Path(args[0]).read_text()) if args else {}
    inputs = ScenarioInputs.from_dict(payload.get("inputs", payload))
    validate_inputs(inputs)
    rev = payload.get("revenueMultipliers")
    cost = payload.get("costMultipliers")
    metrics = compute_metrics(
        inputs,
        current_week=week if week is not None else payload.get("currentWeek"),
        revenue_multipliers=validate_multipliers(rev, "revenueMultipliers") if rev is not None else None,
        cost_multipliers=validate_multipliers(cost, "costMultipliers") if cost is not None else None,
    )
    print(json.dumps({"inputs": inputs.to_dict(), "metrics": metrics.to_dict()}, indent=2))


if __name__ == "__main__":
    main()
