import json
import sys
from pathlib import Path

from dashboard.historical.series import NoDataError, build

USAGE = "Usage: python -m dashboard.historical.cli <records.json> [timeframe] [period|load_time]"


def main():
    if len(sys.argv) < 2 or len(sys.argv) > 4:
        print(USAGE)
        sys.exit(2)
    path = Path(sys.argv[1])
    timeframe = sys.argv[2] if len(sys.argv) > 2 else "1Y"
    convention = sys.argv[3] if len(sys.argv) > 3 else None
    if convention not in (None, "period", "load_time"):
        print(USAGE)
        sys.exit(2)
    payload = json.loads(path.read_text())
    # Accept a bare list or a QuickStats payload ({"data": [...]})
    records = payload.get("data") if isinstance(payload, dict) else payload
    try:
        series = build(records, convention)
    except NoDataError as e:
        print(json.dumps({"error": str(e)}))
        sys.exit(1)
    print(json.dumps(series.filter(timeframe).to_dict(), indent=2))


if __name__ == "__main__":
    main()
