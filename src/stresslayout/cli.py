# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
"""
Command line layout of JSON Lines node streams.

Each node is pulled towards ``--target-distance`` from every other node:

    stress(i, j) = target_distance / |p_i - p_j|

Usage:
    python -m stresslayout < nodes.jsonl > laid_out.jsonl
    python -m stresslayout -i nodes.jsonl --weight distance-inverse2-pow --trace
    python -m stresslayout --config layout.yaml -v
"""

import argparse
import logging
import math
import sys
from typing import List, Optional

from .config import MajorizationOptions, Measure, Termination, load_options
from .distance import euclidean
from .io import NodeRecord, read_nodes, write_nodes, write_trace
from .layout import attr_accessors, has_undefined_positions, stress_majorization
from .weight import WeightPresets, weight_factory

logger = logging.getLogger(__name__)


def setup_logging(level=logging.INFO, format_str=None):
    """
    Configure logging for the stresslayout package.

    Args:
        level: Logging level (default: INFO)
        format_str: Custom format string for log messages
    """
    format_str = format_str or "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    logging.basicConfig(level=level, format=format_str, stream=sys.stderr)
    logging.getLogger("stresslayout").setLevel(level)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='stresslayout',
        description='Stress majorization layout for JSON Lines node streams'
    )
    parser.add_argument('--input', '-i', default='-',
                        help='Input JSON Lines file (default: stdin)')
    parser.add_argument('--output', '-o', default='-',
                        help='Output JSON Lines file (default: stdout)')
    parser.add_argument('--target-distance', '-d', type=float, default=1.0,
                        help='Desired distance between every pair of nodes (default: 1)')
    parser.add_argument('--weight', '-w', default='one',
                        choices=[n.replace('_', '-') for n in WeightPresets.names()],
                        help='Weight preset over euclidean distance (default: one)')
    parser.add_argument('--epsilon', '-e', type=float, help='Convergence threshold')
    parser.add_argument('--max-iterations', '-n', type=int,
                        help='Iteration cap, <= 0 for unlimited')
    parser.add_argument('--termination', choices=[t.value for t in Termination],
                        help='Stopping rule (default: threshold)')
    parser.add_argument('--measure', choices=[m.value for m in Measure],
                        help='Per-iteration displacement reduction (default: mean)')
    parser.add_argument('--config', '-c', help='YAML or JSON options file')
    parser.add_argument('--trace', action='store_true',
                        help='Also write one trace object per iteration')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    if args.target_distance <= 0:
        parser.error('--target-distance must be positive')

    try:
        options = load_options(args.config) if args.config else MajorizationOptions()
        options = options.merged(
            epsilon=args.epsilon,
            max_iterations=args.max_iterations,
            termination=args.termination,
            measure=args.measure,
        )
    except (OSError, ValueError, TypeError) as e:
        parser.error(f'invalid options: {e}')

    preset = weight_factory(euclidean).get(args.weight)
    target = args.target_distance

    def weight(xi, yi, xj, yj, vi, vj):
        return preset((xi, yi), (xj, yj))

    def stress(xi, yi, xj, yj, vi, vj):
        d = euclidean((xi, yi), (xj, yj))
        return target / d if d else math.inf

    try:
        nodes = _read(args.input)
    except OSError as e:
        parser.error(f'cannot read input: {e}')
    logger.info(f"Read {len(nodes)} nodes")

    to_point, from_point = attr_accessors()
    try:
        result, trace = stress_majorization(
            nodes, weight, stress,
            to_point=to_point, from_point=from_point, options=options,
        )
    except ZeroDivisionError:
        logger.error(f"Weight preset '{args.weight}' is undefined for coincident nodes")
        return 1

    _write(args.output, result, trace if args.trace else None)

    if has_undefined_positions([(n.x, n.y) for n in result]):
        logger.error("Layout has undefined positions")
        return 1
    return 0


def _read(path: str) -> List[NodeRecord]:
    if path == '-':
        return list(read_nodes(sys.stdin))
    with open(path, encoding='utf-8') as f:
        return list(read_nodes(f))


def _write(path: str, nodes: List[NodeRecord], trace: Optional[List[float]]) -> None:
    if path == '-':
        write_nodes(nodes, sys.stdout)
        if trace is not None:
            write_trace(trace, sys.stdout)
        return
    with open(path, 'w', encoding='utf-8') as f:
        write_nodes(nodes, f)
        if trace is not None:
            write_trace(trace, f)


if __name__ == "__main__":
    sys.exit(main())
