"""Command line demo that pushes priorities through a forest."""
from __future__ import annotations

import argparse
import sys
from typing import Iterable, List

from tabulate import tabulate

from .forest import PriorityForest


def _render_roots(forest: PriorityForest) -> str:
    rows = [[root.degree, 2 ** root.degree, root.priority] for root in forest.roots()]
    return tabulate(rows, headers=["Degree", "Tree size", "Root priority"], tablefmt="github")


def _render_order(forest: PriorityForest) -> str:
    rows: List[list] = []
    for position, entry in enumerate(forest.drain(), start=1):
        rows.append([position, entry.priority, entry.payload])
    return tabulate(rows, headers=["Position", "Priority", "Inserted as #"], tablefmt="github")


def parse_args(argv: Iterable[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Insert priorities into a binomial heap and print the extraction order."
    )
    parser.add_argument("priorities", nargs="+", type=int, help="Integer priorities to insert, in order.")
    parser.add_argument(
        "--roots",
        action="store_true",
        help="Show the root list (one tree per set bit of the entry count) before extracting.",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Validate the heap structure after every operation.",
    )
    return parser.parse_args(list(argv))


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    forest = PriorityForest.from_entries(
        ((priority, position) for position, priority in enumerate(args.priorities, start=1)),
        check_invariants=args.check or None,
    )

    print(f"Inserted {forest.size()} entries; minimum priority is {forest.peek_min().priority}")
    if args.roots:
        print(_render_roots(forest))
        print()
    print(_render_order(forest))
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
