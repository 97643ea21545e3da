"""Run the Go benchmark suite on both sides of a comparison.

The new side is the environment's work tree as it stands; the old side is
a temporary detached worktree of the comparison target. Both runs use the
same command line, and their outputs are correlated into
:class:`~funcbench.benchcmp.BenchCmp` records.
"""

from __future__ import annotations

import os
import subprocess
import time
from pathlib import Path

from funcbench.benchcmp import BenchCmp, correlate, parse_bench_output
from funcbench.config import BenchOptions, BenchRequest
from funcbench.environment import Environment
from funcbench.errors import BenchmarkError
from funcbench.formatting import format_command, format_duration, tail
from funcbench.git import worktree
from funcbench.logging import get_logger

log = get_logger("runner")


def bench_command(options: BenchOptions, request: BenchRequest) -> list[str]:
    """Build the ``go test`` command line for *request*."""
    cmd = [
        options.go,
        "test",
        "-run",
        "^$",
        "-bench",
        request.bench_func,
        "-benchmem",
        "-benchtime",
        options.bench_time,
        "-count",
        str(options.count),
        "-timeout",
        f"{options.timeout}s",
    ]
    if request.race_enabled:
        cmd.append("-race")
    cmd.extend(options.packages)
    return cmd


def build_env(options: BenchOptions, request: BenchRequest) -> dict[str, str]:
    """Process environment for the benchmark run."""
    env = dict(os.environ)
    env.update(options.env)
    if request.race_enabled:
        # The race detector needs cgo.
        env["CGO_ENABLED"] = "1"
    return env


def run_benchmarks(cwd: Path, options: BenchOptions, request: BenchRequest) -> str:
    """Run the benchmark suite in *cwd* and return its standard output.

    Raises:
        BenchmarkError: If the runner cannot start, exits non-zero or times out.
    """
    cmd = bench_command(options, request)
    log.info("Running benchmarks in %s", cwd)
    log.debug("Command: %s", format_command(cmd))
    start = time.monotonic()
    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            cwd=str(cwd),
            env=build_env(options, request),
            # go's own -timeout fires first and names the hung benchmark.
            timeout=options.timeout + 60,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        raise BenchmarkError(f"benchmarks in {cwd} timed out after {options.timeout}s") from exc
    except OSError as exc:
        raise BenchmarkError(f"cannot run {options.go}: {exc}") from exc

    elapsed = time.monotonic() - start
    log.info("Benchmarks in %s finished in %s", cwd, format_duration(elapsed))
    if proc.stderr:
        log.debug("Benchmark stderr:\n%s", tail(proc.stderr, 3000))
    if proc.returncode != 0:
        output = tail(proc.stderr or proc.stdout)
        raise BenchmarkError(f"benchmarks in {cwd} failed (exit {proc.returncode}): {output}")
    return proc.stdout


def exec_benchmarks(env: Environment, options: BenchOptions | None = None) -> list[BenchCmp]:
    """Benchmark the work tree against the comparison target.

    The target's worktree is created before either side runs, so a target
    that does not resolve fails without spending a benchmark run.
    """
    options = options or BenchOptions()
    request = env.request

    with worktree(env.repo, request.compare_target) as target_dir:
        new_output = run_benchmarks(env.repo.root, options, request)
        old_output = run_benchmarks(target_dir, options, request)

    new = parse_bench_output(new_output)
    old = parse_bench_output(old_output)
    log.info(
        "Parsed %d new and %d old benchmark results for %r",
        len(new),
        len(old),
        request.bench_func,
    )
    if not new:
        raise BenchmarkError(f"no benchmarks matched {request.bench_func!r}")
    return correlate(old, new)
