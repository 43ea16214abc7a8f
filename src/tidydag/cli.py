"""Command line interface: ``tidydag adjust|dsep|paths|table``."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from tidydag.causal.adjustment import AdjustmentSetSolver, format_set
from tidydag.causal.dseparation import DSeparationAnalyzer
from tidydag.config import LAYOUTS, RenderConfig
from tidydag.core.dag import CausalDAG
from tidydag.core.formula import dagify
from tidydag.exceptions import TidyDAGError
from tidydag.tidy import TidyDAG, control_for, node_status


def _dag_from_args(args: argparse.Namespace) -> CausalDAG:
    return dagify(
        *args.formula,
        exposure=getattr(args, "exposure", None),
        outcome=getattr(args, "outcome", None),
        latent=getattr(args, "latent", None) or (),
    )


def _cmd_adjust(args: argparse.Namespace) -> int:
    dag = _dag_from_args(args)
    result = AdjustmentSetSolver(dag, max_size=args.max_size).solve()
    if not result.closable:
        print(f"No way to block backdoor paths from {result.exposure} to {result.outcome}")
        for path in result.unclosable_paths:
            print(f"  open: {path}")
        print("Common reasons include:")
        for reason in result.reasons:
            print(f"  * {reason}")
        return 1
    for adjustment in result.sets:
        print(format_set(adjustment))
    return 0


def _cmd_dsep(args: argparse.Namespace) -> int:
    dag = _dag_from_args(args)
    report = DSeparationAnalyzer(dag).check_conditional_independence(
        args.x, args.y, args.given
    )
    print("d-separated" if report["is_independent"] else "d-connected")
    for path in report["open_paths"]:
        print(f"  open: {path}")
    return 0


def _cmd_paths(args: argparse.Namespace) -> int:
    dag = _dag_from_args(args)
    analyzer = DSeparationAnalyzer(dag)
    for path in analyzer.paths.all_paths(args.source, args.target):
        print(analyzer.classify(path, args.given))
    return 0


def _cmd_table(args: argparse.Namespace) -> int:
    dag = _dag_from_args(args)
    tidy = node_status(TidyDAG.from_dag(dag, RenderConfig(layout=args.layout, seed=args.seed)))
    if args.control:
        tidy = control_for(tidy, args.control, as_factor=False)
    if args.json:
        print(json.dumps(tidy.to_records(), indent=2))
    else:
        print(tidy.data.to_string(index=False))
    return 0


def _add_graph_args(parser: argparse.ArgumentParser, roles: bool = True) -> None:
    parser.add_argument("formula", nargs="+", help='Relations such as "y ~ x + z" or "a ~~ b"')
    if roles:
        parser.add_argument("--exposure", help="Exposure node")
        parser.add_argument("--outcome", help="Outcome node")
    parser.add_argument("--latent", nargs="*", default=[], help="Unmeasured nodes")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="tidydag", description="Analyze causal DAGs")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    adjust = sub.add_parser("adjust", help="Print minimal adjustment sets")
    _add_graph_args(adjust)
    adjust.add_argument("--max-size", type=int, default=None, help="Largest set to try")
    adjust.set_defaults(func=_cmd_adjust)

    dsep = sub.add_parser("dsep", help="Test d-separation of two nodes")
    _add_graph_args(dsep, roles=False)
    dsep.add_argument("--x", required=True)
    dsep.add_argument("--y", required=True)
    dsep.add_argument("--given", nargs="*", default=[])
    dsep.set_defaults(func=_cmd_dsep)

    paths = sub.add_parser("paths", help="List paths between two nodes and their status")
    _add_graph_args(paths, roles=False)
    paths.add_argument("--from", dest="source", required=True)
    paths.add_argument("--to", dest="target", required=True)
    paths.add_argument("--given", nargs="*", default=[])
    paths.set_defaults(func=_cmd_paths)

    table = sub.add_parser("table", help="Print the tidy edge table")
    _add_graph_args(table)
    table.add_argument("--control", nargs="*", default=[], help="Variables to adjust for")
    table.add_argument("--layout", choices=LAYOUTS, default="spring")
    table.add_argument("--seed", type=int, default=1234)
    table.add_argument("--json", action="store_true", help="Print rows as JSON")
    table.set_defaults(func=_cmd_table)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    try:
        return args.func(args)
    except TidyDAGError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
