"""Fixed-width text tables for benchmark comparisons.

One table per metric family (time, throughput, allocations, bytes), in
that order, separated by a blank line. Columns are laid out like a tab
writer with a padding of five spaces, so the output can be split back into
fields on whitespace.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from funcbench.benchcmp import (
    ALLOCS_PER_OP,
    BYTES_PER_OP,
    MB_PER_S,
    NS_PER_OP,
    BenchCmp,
    Delta,
)

_PADDING = 5
_MISSING = "-"
_NO_DELTA = "~"


def format_ns(ns: float) -> str:
    """Format ns/op with the precision ``testing.B`` uses.

    Two decimals below 10, one below 100, none otherwise.
    """
    if ns < 10:
        return f"{ns:.2f}"
    if ns < 100:
        return f"{ns:.1f}"
    return f"{ns:.0f}"


def _format_mb(value: float) -> str:
    return f"{value:.2f}"


def _format_count(value: float) -> str:
    return str(int(value))


@dataclass(frozen=True)
class _Family:
    metric: str
    header: tuple[str, str, str, str]
    fmt: Callable[[float], str]
    delta: Callable[[Delta], str]


_FAMILIES = (
    _Family(
        NS_PER_OP,
        ("benchmark", "old ns/op", "new ns/op", "delta"),
        format_ns,
        Delta.percent,
    ),
    _Family(
        MB_PER_S,
        ("benchmark", "old MB/s", "new MB/s", "speedup"),
        _format_mb,
        Delta.multiple,
    ),
    _Family(
        ALLOCS_PER_OP,
        ("benchmark", "old allocs", "new allocs", "delta"),
        _format_count,
        Delta.percent,
    ),
    _Family(
        BYTES_PER_OP,
        ("benchmark", "old bytes", "new bytes", "delta"),
        _format_count,
        Delta.percent,
    ),
)


def _tabulate(rows: Sequence[Sequence[str]]) -> list[str]:
    """Left-align every column but the last to its widest cell plus padding."""
    ncols = max(len(row) for row in rows)
    widths = [0] * (ncols - 1)
    for row in rows:
        for ci, cell in enumerate(row[:-1]):
            widths[ci] = max(widths[ci], len(cell))

    lines: list[str] = []
    for row in rows:
        head = "".join(cell.ljust(widths[ci] + _PADDING) for ci, cell in enumerate(row[:-1]))
        lines.append(head + row[-1])
    return lines


def _family_rows(
    cmps: Sequence[BenchCmp],
    family: _Family,
    *,
    deltas_only: bool,
    show_both: bool,
) -> list[list[str]]:
    rows: list[list[str]] = []
    for cmp in cmps:
        if cmp.measured(family.metric):
            delta = cmp.delta(family.metric)
            if deltas_only and not delta.changed:
                continue
            rows.append(
                [
                    cmp.name,
                    family.fmt(delta.before),
                    family.fmt(delta.after),
                    family.delta(delta),
                ]
            )
        elif show_both and cmp.measured_any(family.metric):
            before = cmp.before.value(family.metric)
            after = cmp.after.value(family.metric)
            rows.append(
                [
                    cmp.name,
                    _MISSING if before is None else family.fmt(before),
                    _MISSING if after is None else family.fmt(after),
                    _NO_DELTA,
                ]
            )
    return rows


def render(
    cmps: Sequence[BenchCmp],
    *,
    deltas_only: bool = False,
    show_both: bool = False,
) -> str:
    """Render comparison records as text tables.

    Args:
        cmps: Comparison records, in display order.
        deltas_only: Drop rows whose value did not change.
        show_both: Also show rows measured on only one side, with ``-`` for
            the missing value and ``~`` as delta.

    Returns:
        The tables, newline-terminated, or ``""`` if nothing qualifies.
    """
    tables: list[list[str]] = []
    for family in _FAMILIES:
        rows = _family_rows(cmps, family, deltas_only=deltas_only, show_both=show_both)
        if rows:
            tables.append(_tabulate([list(family.header), *rows]))

    if not tables:
        return ""
    return "\n\n".join("\n".join(table) for table in tables) + "\n"
