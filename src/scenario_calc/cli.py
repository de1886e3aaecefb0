"""Command-line interface for the scenario calculation engine.

Subcommands:
    run                 calculate every scenario and period of the demo model
    validate FORMULA    parse-check a formula and list its references
    graph               show the demo model's variables by dependency level

Examples:
    scenario-calc run
    scenario-calc run --json --force
    scenario-calc validate "(INPUT_OMZET / PARAM_BASELINE_OMZET) * 100"
"""

from __future__ import annotations

import argparse
import json
import sys

from scenario_calc.config.settings import get_settings
from scenario_calc.engine.batch import run_all_scenarios
from scenario_calc.engine.formula import validate_formula
from scenario_calc.engine.graph import compute_levels, validate_definitions
from scenario_calc.errors import GraphError
from scenario_calc.logging_config import configure_logging
from scenario_calc.models.results import CalculationResult
from scenario_calc.seed import DEMO_ORGANIZATION_ID, seed_demo_model

KEY_VARIABLES = [
    "OUTPUT_OMZET_PERCENTAGE",
    "OUTPUT_SKU_GROWTH",
    "OUTPUT_VOORRAAD_WEKEN_PERCENTAGE",
    "OUTPUT_VOORRAAD_PALLETS",
    "OUTPUT_VOORRAAD_PALLETS_GECORRIGEERD",
]

RULE = "=" * 70


def _format_result(result: CalculationResult) -> list[str]:
    period = result.period_start.year if result.period_start else "single"
    lines = [f"  {period}  {result.status.value}  ({result.execution_time_ms:.1f} ms)"]
    for name in KEY_VARIABLES:
        res = result.results.get(name)
        if res is None:
            lines.append(f"    {name:<40} n/a")
            continue
        line = f"    {name:<40} {res.value:>14,.2f}"
        if res.delta is not None:
            pct = f"{res.percent_change:+.1f}%" if res.percent_change is not None else "n/a"
            line += f"  Δ {res.delta:+,.2f} ({pct})"
        lines.append(line)
    for err in result.error_log:
        lines.append(f"    ! {err.variable_name}: {err.error_type.value}: {err.message}")
    return lines


def cmd_run(args: argparse.Namespace) -> int:
    store = seed_demo_model()
    results = run_all_scenarios(
        DEMO_ORGANIZATION_ID, store,
        max_workers=args.workers, force_recalculate=args.force,
    )

    if args.json:
        payload = {
            scenario_id: [r.model_dump(mode="json") for r in runs]
            for scenario_id, runs in results.items()
        }
        print(json.dumps(payload, indent=2))
    else:
        for scenario_id, runs in results.items():
            scenario = store.get_scenario(scenario_id)
            print(RULE)
            print(f"{scenario.name}{'  [baseline]' if scenario.is_baseline else ''}")
            print(RULE)
            for result in runs:
                print("\n".join(_format_result(result)))
        print(RULE)

    failed = any(r.status.value == "FAILED" for runs in results.values() for r in runs)
    return 1 if failed else 0


def cmd_validate(args: argparse.Namespace) -> int:
    check = validate_formula(args.formula)
    if check.valid:
        print("OK")
        if check.references:
            print("references: " + ", ".join(check.references))
        return 0
    for err in check.errors:
        print(f"ERROR: {err}")
    return 1


def cmd_graph(args: argparse.Namespace) -> int:
    store = seed_demo_model()
    variables = store.variables(DEMO_ORGANIZATION_ID)
    try:
        levels = compute_levels(variables)
    except GraphError as exc:
        print(f"ERROR: {exc.message}")
        return 1
    for var in sorted(variables, key=lambda v: (levels[v.name], v.display_order, v.name)):
        deps = f"  <- {', '.join(var.dependencies)}" if var.dependencies else ""
        print(f"  L{levels[var.name]}  {var.variable_type.value:<6}  {var.name}{deps}")
    problems = validate_definitions(variables, [p.name for p in store.parameters(DEMO_ORGANIZATION_ID)])
    for problem in problems:
        print(f"WARNING: {problem}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scenario-calc",
        description="Scenario calculation engine.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--log-level", default=None, help="Override SCENARIO_CALC_LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Calculate all demo scenarios and periods")
    run.add_argument("--json", action="store_true", help="Print results as JSON")
    run.add_argument("--force", action="store_true", help="Ignore cached results")
    run.add_argument("--workers", type=int, default=None, help="Thread-pool size (default: settings)")
    run.set_defaults(func=cmd_run)

    validate = sub.add_parser("validate", help="Check that a formula parses")
    validate.add_argument("formula")
    validate.set_defaults(func=cmd_validate)

    graph = sub.add_parser("graph", help="Show variables by dependency level")
    graph.set_defaults(func=cmd_graph)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level or get_settings().log_level)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
