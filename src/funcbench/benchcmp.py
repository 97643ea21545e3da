"""Benchmark comparison records.

Parses the standard Go benchmark output format and pairs the lines of an
old run with those of a new run. A line looks like::

    BenchmarkQuery-8   	  200000	      6012 ns/op	  35.21 MB/s	    1024 B/op	      12 allocs/op

Only the four standard units are recognised; anything else on the line is
ignored.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from funcbench.logging import get_logger

log = get_logger("benchcmp")

NS_PER_OP = "ns_per_op"
MB_PER_S = "mb_per_s"
ALLOCS_PER_OP = "allocs_per_op"
BYTES_PER_OP = "bytes_per_op"

# Display order of the metric families.
METRICS = (NS_PER_OP, MB_PER_S, ALLOCS_PER_OP, BYTES_PER_OP)

_UNITS = {
    "ns/op": NS_PER_OP,
    "MB/s": MB_PER_S,
    "allocs/op": ALLOCS_PER_OP,
    "B/op": BYTES_PER_OP,
}

_BENCH_LINE_RE = re.compile(r"^(?P<name>Benchmark\S*)\s+(?P<n>\d+)\s+(?P<rest>.+)$")


@dataclass
class Measurement:
    """One benchmark result line. Unmeasured metrics are None."""

    name: str
    iterations: int = 0
    ns_per_op: float | None = None
    mb_per_s: float | None = None
    allocs_per_op: int | None = None
    bytes_per_op: int | None = None
    ordinal: int = 0  # Nth occurrence of this name in the run (from -count).

    def value(self, metric: str) -> float | None:
        return getattr(self, metric)  # type: ignore[no-any-return]


@dataclass(frozen=True)
class Delta:
    """Change of one metric between the old and new run."""

    before: float
    after: float

    def ratio(self) -> float:
        if self.before != 0:
            return self.after / self.before
        if self.after == 0:
            return 1.0
        return math.inf

    @property
    def changed(self) -> bool:
        return self.before != self.after

    def percent_delta(self) -> float:
        return 100 * self.ratio() - 100

    def percent(self) -> str:
        """Signed percentage, e.g. ``-50.00%``."""
        return f"{self.percent_delta():+.2f}%"

    def multiple(self) -> str:
        """Speedup factor, e.g. ``1.25x``."""
        return f"{self.ratio():.2f}x"


@dataclass
class BenchCmp:
    """A pair of measurements of the same benchmark."""

    before: Measurement
    after: Measurement

    @property
    def name(self) -> str:
        if self.after.ordinal == 0:
            return self.after.name
        return f"{self.after.name}#{self.after.ordinal + 1}"

    def measured(self, metric: str) -> bool:
        """True if both sides have a value for *metric*."""
        return self.before.value(metric) is not None and self.after.value(metric) is not None

    def measured_any(self, metric: str) -> bool:
        return self.before.value(metric) is not None or self.after.value(metric) is not None

    def delta(self, metric: str) -> Delta:
        before = self.before.value(metric)
        after = self.after.value(metric)
        if before is None or after is None:
            raise ValueError(f"{self.name}: {metric} not measured on both sides")
        return Delta(float(before), float(after))


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_line(line: str) -> Measurement | None:
    """Parse one benchmark output line, or return None if it is not one."""
    m = _BENCH_LINE_RE.match(line.rstrip())
    if m is None:
        return None

    measurement = Measurement(name=m.group("name"), iterations=int(m.group("n")))
    fields = m.group("rest").split()
    found = False
    for value, unit in zip(fields[::2], fields[1::2]):
        metric = _UNITS.get(unit)
        if metric is None:
            continue
        try:
            number = float(value)
        except ValueError:
            log.debug("Ignoring unparsable %s value %r in %s", unit, value, measurement.name)
            continue
        if metric in (ALLOCS_PER_OP, BYTES_PER_OP):
            setattr(measurement, metric, int(number))
        else:
            setattr(measurement, metric, number)
        found = True
    return measurement if found else None


def parse_bench_output(text: str) -> list[Measurement]:
    """Parse all benchmark lines in ``go test -bench`` output, in order."""
    seen: dict[str, int] = {}
    results: list[Measurement] = []
    for line in text.splitlines():
        measurement = parse_line(line)
        if measurement is None:
            continue
        measurement.ordinal = seen.get(measurement.name, 0)
        seen[measurement.name] = measurement.ordinal + 1
        results.append(measurement)
    return results


def correlate(before: list[Measurement], after: list[Measurement]) -> list[BenchCmp]:
    """Pair old and new measurements by name and ordinal.

    Follows the order of *after*. Benchmarks present on one side only, and
    pairs with no metric measured on both sides, are dropped.
    """
    by_key = {(m.name, m.ordinal): m for m in before}
    cmps: list[BenchCmp] = []
    new_only = incomparable = 0
    for new in after:
        old = by_key.pop((new.name, new.ordinal), None)
        if old is None:
            log.debug("%s has no counterpart in the old run", new.name)
            new_only += 1
            continue
        cmp = BenchCmp(before=old, after=new)
        if not any(cmp.measured(metric) for metric in METRICS):
            log.debug("%s has no comparable metric", cmp.name)
            incomparable += 1
            continue
        cmps.append(cmp)

    if new_only:
        log.info("%d new benchmark result(s) missing from the old run", new_only)
    if by_key:
        log.info("%d old benchmark result(s) missing from the new run", len(by_key))
    if incomparable:
        log.info("%d benchmark pair(s) had no metric measured on both sides", incomparable)
    return cmps
