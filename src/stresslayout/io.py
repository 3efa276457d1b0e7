# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# JSON Lines I/O for layout nodes
#
# Provides streaming I/O for node positions using JSON Lines format,
# so layouts can be chained with other tools via pipes.

"""
JSON Lines I/O for layout nodes.

Usage:
    from stresslayout.io import read_nodes, write_nodes

    nodes = list(read_nodes(sys.stdin))
    write_nodes(nodes, sys.stdout)

Input lines look like:
    {"type": "node", "id": "a", "x": 0, "y": 1, "props": {...}}
Lines of other types are skipped.
"""

import json
import math
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, TextIO
import logging

logger = logging.getLogger(__name__)


# ============================================================================
# DATA CLASSES
# ============================================================================

@dataclass
class NodeRecord:
    """A positioned node."""
    id: str
    x: float
    y: float
    props: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "type": "node",
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "props": self.props
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'NodeRecord':
        """Create from JSON dict."""
        return cls(
            id=str(d["id"]),
            x=float(d["x"]),
            y=float(d["y"]),
            props=d.get("props", {})
        )


# ============================================================================
# READER FUNCTIONS
# ============================================================================

def read_jsonl(stream: TextIO = sys.stdin) -> Iterator[Dict[str, Any]]:
    """Read raw JSON objects from JSON Lines stream."""
    for lineno, line in enumerate(stream, 1):
        line = line.strip()
        if not line:
            continue
        try:
            yield json.loads(line)
        except json.JSONDecodeError as e:
            logger.debug(f"Skipping malformed line {lineno}: {e}")


def read_nodes(stream: TextIO = sys.stdin) -> Iterator[NodeRecord]:
    """Read node records; objects of other types are skipped."""
    for obj in read_jsonl(stream):
        if not isinstance(obj, dict) or obj.get("type", "node") != "node":
            continue
        try:
            yield NodeRecord.from_dict(obj)
        except (KeyError, TypeError, ValueError) as e:
            logger.debug(f"Skipping incomplete node {obj!r}: {e}")


# ============================================================================
# WRITER FUNCTIONS
# ============================================================================

def write_jsonl(obj: Dict[str, Any], stream: TextIO = sys.stdout) -> None:
    """Write a JSON object as a single line."""
    print(json.dumps(obj, ensure_ascii=False), file=stream)


def write_nodes(nodes: Iterable[NodeRecord], stream: TextIO = sys.stdout) -> None:
    """Write node records as JSON Lines."""
    for node in nodes:
        write_jsonl(node.to_dict(), stream)


def write_trace(trace: List[float], stream: TextIO = sys.stdout) -> None:
    """Write one trace object per iteration (an undefined measure is written as null)."""
    for iteration, measure in enumerate(trace, 1):
        measure = float(measure)
        if math.isnan(measure):
            measure = None
        write_jsonl({"type": "trace", "iteration": iteration, "measure": measure}, stream)
