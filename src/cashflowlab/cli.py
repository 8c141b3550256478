"""
Command-line interface for CashFlowLab.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date

from cashflowlab import __version__
from cashflowlab.alerts import derive_alerts
from cashflowlab.consolidation import ALL, weight_map
from cashflowlab.core.engine import simulate
from cashflowlab.core.errors import ConfigError
from cashflowlab.core.loader import load_config, load_snapshot
from cashflowlab.core.validation import validate_snapshot
from cashflowlab.kpi import summary_kpis

EXAMPLE_SNAPSHOT = {
    "settings": {"primeRate": 6.0, "vatRate": 17.0, "cpi": 100.0},
    "entities": [
        {"id": "holding", "name": "Holding", "targetBalance": 0},
        {
            "id": "opco",
            "name": "OpCo",
            "parentId": "holding",
            "ownershipPercentage": 60,
            "targetBalance": 10000,
        },
    ],
    "accounts": [
        {"id": "acc-h", "entityId": "holding", "bankName": "Bank", "openingBalance": 100000},
        {"id": "acc-o", "entityId": "opco", "bankName": "Bank", "openingBalance": -5000},
    ],
    "transactions": [
        {
            "id": "rent",
            "entityId": "opco",
            "type": "income",
            "category": "Rent",
            "description": "Office rent",
            "date": "2026-01-05",
            "amount": 4000,
            "includesVat": True,
            "isRecurring": True,
            "frequency": "Monthly",
            "recurringDayMode": "SameAsStart",
        }
    ],
}


class NumpyEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy scalars, dates and pandas objects."""

    def default(self, obj):
        import numpy as np
        import pandas as pd

        if isinstance(obj, np.ndarray):
            return obj.tolist()
        elif isinstance(obj, np.generic):
            return obj.item()
        elif isinstance(obj, (date, pd.Timestamp)):
            return obj.isoformat()
        elif isinstance(obj, pd.DataFrame):
            return obj.to_dict("records")
        elif isinstance(obj, pd.Series):
            return obj.to_dict()
        elif hasattr(obj, "to_dict"):
            return obj.to_dict()
        return super().default(obj)


def _save_json(path: str, data) -> None:
    """Save data as JSON to file path."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, cls=NumpyEncoder, ensure_ascii=False)


def _print_json(data) -> None:
    json.dump(data, sys.stdout, indent=2, cls=NumpyEncoder, ensure_ascii=False)
    sys.stdout.write("\n")


def _run(args):
    snapshot = load_snapshot(args.input)
    config = load_config(args.config) if args.config else None
    today = date.fromisoformat(args.today) if args.today else None
    results = simulate(snapshot, horizon_days=args.days, today=today, config=config)
    weights = weight_map(snapshot.entities, args.select or ALL)
    return snapshot, results, weights


def cmd_example(_) -> int:
    """Print a minimal working snapshot JSON."""
    _print_json(EXAMPLE_SNAPSHOT)
    return 0


def cmd_run(args) -> int:
    """Simulate a snapshot and export JSON results (and optionally the ledger)."""
    try:
        _, results, _ = _run(args)
        _save_json(args.output, results.to_records())
        if args.ledger:
            results.export_ledger_csv(args.ledger)
        print(f"Simulated {len(results)} days; results saved to {args.output}")
        return 0
    except (ConfigError, OSError, ValueError) as e:
        print(f"Error running simulation: {e}", file=sys.stderr)
        return 1


def cmd_kpi(args) -> int:
    """Print headline KPIs of a consolidated selection."""
    try:
        snapshot, results, weights = _run(args)
    except (ConfigError, OSError, ValueError) as e:
        print(f"Error running simulation: {e}", file=sys.stderr)
        return 1

    kpis = summary_kpis(results, snapshot, weights)
    if args.format == "json":
        _print_json(kpis)
    else:
        for key, value in kpis.items():
            if isinstance(value, float):
                print(f"{key:>20}: {value:,.2f}")
            else:
                print(f"{key:>20}: {value if value is not None else '-'}")
    return 0


def cmd_alerts(args) -> int:
    """Print derived alerts of a consolidated selection."""
    try:
        snapshot, results, weights = _run(args)
    except (ConfigError, OSError, ValueError) as e:
        print(f"Error running simulation: {e}", file=sys.stderr)
        return 1

    alerts = derive_alerts(results, snapshot, weights)
    if args.format == "json":
        _print_json([a.to_dict() for a in alerts])
    else:
        for alert in alerts:
            print(f"{alert.date.isoformat()}  [{alert.severity:<8}] {alert.message}")
        if not alerts:
            print("No alerts")
    return 0


def cmd_validate(args) -> int:
    """Validate a snapshot file."""
    try:
        snapshot = load_snapshot(args.input)
    except (ConfigError, OSError, ValueError) as e:
        if args.format == "json":
            _print_json(
                {
                    "has_errors": True,
                    "has_warnings": False,
                    "is_valid": False,
                    "exit_code": 1,
                    "error": str(e),
                }
            )
        else:
            print(f"❌ Validation failed: {e}")
        return 1

    report = validate_snapshot(snapshot)
    if args.format == "json":
        _print_json(report.to_dict())
    else:
        print(str(report))
    return report.get_exit_code()


def _add_run_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-i", "--input", required=True, help="Snapshot JSON/YAML file")
    parser.add_argument(
        "--days", type=int, default=None, help="Horizon in days (default: 730)"
    )
    parser.add_argument("--today", help="Day zero as YYYY-MM-DD (default: today)")
    parser.add_argument("--config", help="JSON/YAML file with a 'config' section")
    parser.add_argument(
        "--select",
        nargs="*",
        help="Entity ids to consolidate (default: the whole group)",
    )


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="cashflowlab",
        description="CashFlowLab - Multi-entity cash-flow forecasting",
    )

    parser.add_argument(
        "--version", action="version", version=f"CashFlowLab {__version__}"
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Increase log verbosity"
    )

    subparsers = parser.add_subparsers(
        dest="cmd", required=True, help="Available commands"
    )

    # Example command
    example_parser = subparsers.add_parser(
        "example", help="Print a minimal working snapshot JSON"
    )
    example_parser.set_defaults(func=cmd_example)

    # Run command
    run_parser = subparsers.add_parser(
        "run", help="Simulate a snapshot and export JSON results"
    )
    _add_run_options(run_parser)
    run_parser.add_argument(
        "-o", "--output", required=True, help="Output results JSON file"
    )
    run_parser.add_argument("--ledger", help="Optional ledger CSV output file")
    run_parser.set_defaults(func=cmd_run)

    # KPI command
    kpi_parser = subparsers.add_parser("kpi", help="Print headline KPIs")
    _add_run_options(kpi_parser)
    kpi_parser.add_argument(
        "--format", choices=["text", "json"], default="text", help="Output format"
    )
    kpi_parser.set_defaults(func=cmd_kpi)

    # Alerts command
    alerts_parser = subparsers.add_parser("alerts", help="Print derived alerts")
    _add_run_options(alerts_parser)
    alerts_parser.add_argument(
        "--format", choices=["text", "json"], default="text", help="Output format"
    )
    alerts_parser.set_defaults(func=cmd_alerts)

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a snapshot")
    validate_parser.add_argument(
        "-i", "--input", required=True, help="Snapshot JSON/YAML file"
    )
    validate_parser.add_argument(
        "--format", choices=["text", "json"], default="text", help="Output format"
    )
    validate_parser.set_defaults(func=cmd_validate)

    # Parse arguments and execute
    args = parser.parse_args(argv)
    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
