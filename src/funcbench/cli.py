"""Command-line interface for funcbench.

Local mode benchmarks the work tree you are in against a comparison target
and prints the tables. Without ``--local`` funcbench runs as a GitHub
Actions step: it reads the triggering comment event and the request files
staged by the comment monitor, benchmarks the pull request and answers
with a comment.
"""

from __future__ import annotations

from pathlib import Path

import click

from funcbench import __version__
from funcbench.config import (
    BenchOptions,
    BenchRequest,
    RemoteConfig,
    load_bench_request,
    load_profile,
    options_from_profile,
)
from funcbench.environment import (
    Environment,
    new_local_env,
    new_remote_env,
    post_err,
    post_results,
)
from funcbench.errors import CommentPostError, FuncbenchError
from funcbench.logging import get_logger, setup_logging
from funcbench.runner import exec_benchmarks

log = get_logger("cli")


def _build_options(
    profile_path: Path | None,
    bench_time: str | None,
    count: int | None,
    timeout: int | None,
) -> BenchOptions:
    profile = load_profile(profile_path) if profile_path else {}
    return options_from_profile(
        profile,
        cli_overrides={"bench_time": bench_time, "count": count, "timeout": timeout},
    )


def _build_env(
    local: bool,
    compare_target: str | None,
    bench_func: str | None,
    no_race: bool,
) -> Environment:
    if local:
        request = BenchRequest(
            bench_func=bench_func or "",
            compare_target=compare_target or "",
            race_enabled=not no_race,
        )
        return new_local_env(request)

    config = RemoteConfig.from_env()
    request = load_bench_request(config.monitor_dir)
    return new_remote_env(config, request)


@click.command()
@click.version_option(version=__version__)
@click.argument("compare_target", required=False)
@click.argument("bench_func", metavar="BENCH_FUNC_REGEX", required=False)
@click.option(
    "-l",
    "--local",
    is_flag=True,
    help="Benchmark the current work tree and print results instead of commenting on a PR.",
)
@click.option(
    "-no-race",
    "--no-race",
    "no_race",
    is_flag=True,
    help="Disable the race detector (local mode).",
)
@click.option(
    "--profile",
    "profile_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML profile with benchmark runner options.",
)
@click.option("--bench-time", type=str, default=None, help="Value for go test -benchtime.")
@click.option("--count", type=int, default=None, help="Value for go test -count.")
@click.option("--timeout", type=int, default=None, help="Per-side timeout in seconds.")
@click.option("-v", "--verbose", is_flag=True, help="Show detailed output.")
@click.option("-q", "--quiet", is_flag=True, help="Only show errors.")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also write a DEBUG log to this file.",
)
def main(  # noqa: PLR0913
    compare_target: str | None,
    bench_func: str | None,
    local: bool,
    no_race: bool,
    profile_path: Path | None,
    bench_time: str | None,
    count: int | None,
    timeout: int | None,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Benchmark a change against COMPARE_TARGET.

    COMPARE_TARGET is a branch, tag or commit; BENCH_FUNC_REGEX selects the
    benchmarks to run (passed to go test -bench). Both are required with
    --local and ignored otherwise.

    \b
    Examples:
        # Compare the work tree against master, all benchmarks, no race detector
        funcbench -l master . -no-race

        # Inside a GitHub Actions job triggered by a PR comment
        funcbench
    """
    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    if local and (not compare_target or not bench_func):
        raise click.UsageError("--local requires COMPARE_TARGET and BENCH_FUNC_REGEX")

    try:
        options = _build_options(profile_path, bench_time, count, timeout)
        env = _build_env(local, compare_target, bench_func, no_race)
    except FuncbenchError as exc:
        log.error("%s", exc)
        raise SystemExit(1) from exc

    try:
        cmps = exec_benchmarks(env, options)
        post_results(env, cmps)
    except FuncbenchError as exc:
        log.error("%s", exc)
        try:
            post_err(env, str(exc))
        except CommentPostError as post_exc:
            log.error("Could not report the failure on the pull request: %s", post_exc)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        click.echo("\nBenchmark interrupted.", err=True)
        raise SystemExit(130)  # noqa: B904
