"""Benchmark requests, Remote configuration and runner profiles.

Handles:
- The benchmark request (filter regex, comparison target, race flag),
  built from CLI arguments or from the comment-monitor side-channel files.
- Remote configuration read from the CI environment variables.
- Loading optional runner profiles from YAML and merging CLI overrides.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from funcbench.errors import ConfigError, MissingRequiredVariableError
from funcbench.logging import get_logger

log = get_logger("config")

DEFAULT_EVENT_PATH = Path("/github/workflow/event.json")
COMMENT_MONITOR_DIR = "commentMonitor"
NO_RACE = "-no-race"

# Side-channel file names written by the comment monitor.
_REGEX_FILE = "REGEX"
_RACE_FILE = "RACE"
_BRANCH_FILE = "BRANCH"


# ---------------------------------------------------------------------------
# Benchmark request
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BenchRequest:
    """What to benchmark and what to compare it against."""

    bench_func: str
    compare_target: str
    race_enabled: bool = True


def parse_race_argument(value: str) -> bool:
    """Return True unless *value* is the ``-no-race`` switch."""
    return value.strip() != NO_RACE


def load_bench_request(monitor_dir: Path) -> BenchRequest:
    """Read the three side-channel files staged by the comment monitor.

    The directory holds ``REGEX`` (benchmark filter), ``RACE`` (``-no-race``
    disables the race detector) and ``BRANCH`` (comparison target).

    Raises:
        ConfigError: If a file is missing or the regex/target is empty.
    """
    values: dict[str, str] = {}
    for name in (_REGEX_FILE, _RACE_FILE, _BRANCH_FILE):
        path = monitor_dir / name
        try:
            values[name] = path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read benchmark request file {path}: {exc}") from exc

    if not values[_REGEX_FILE]:
        raise ConfigError(f"Empty benchmark regex in {monitor_dir / _REGEX_FILE}")
    if not values[_BRANCH_FILE]:
        raise ConfigError(f"Empty comparison target in {monitor_dir / _BRANCH_FILE}")

    request = BenchRequest(
        bench_func=values[_REGEX_FILE],
        compare_target=values[_BRANCH_FILE],
        race_enabled=parse_race_argument(values[_RACE_FILE]),
    )
    log.debug("Loaded benchmark request from %s: %s", monitor_dir, request)
    return request


# ---------------------------------------------------------------------------
# Remote configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RemoteConfig:
    """Everything Remote mode needs from the CI job environment."""

    workspace: Path
    home: Path
    token: str
    commit_sha: str
    event_path: Path = DEFAULT_EVENT_PATH

    @property
    def monitor_dir(self) -> Path:
        """Directory holding the side-channel request files."""
        return self.home / COMMENT_MONITOR_DIR

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> RemoteConfig:
        """Build a config from ``GITHUB_*`` and ``HOME`` variables.

        Raises:
            MissingRequiredVariableError: If a required variable is unset or empty.
        """
        env = os.environ if environ is None else environ

        def _require(name: str) -> str:
            value = env.get(name, "")
            if not value:
                raise MissingRequiredVariableError(name)
            return value

        return cls(
            workspace=Path(_require("GITHUB_WORKSPACE")),
            home=Path(_require("HOME")),
            token=_require("GITHUB_TOKEN"),
            commit_sha=_require("GITHUB_SHA"),
            event_path=Path(env.get("GITHUB_EVENT_PATH") or DEFAULT_EVENT_PATH),
        )


# ---------------------------------------------------------------------------
# Runner options
# ---------------------------------------------------------------------------


def _default_env() -> dict[str, str]:
    return {"GO111MODULE": "on", "CGO_ENABLED": "0"}


@dataclass
class BenchOptions:
    """How the external benchmark runner is invoked."""

    go: str = "go"
    packages: list[str] = field(default_factory=lambda: ["./..."])
    bench_time: str = "1s"
    count: int = 1
    timeout: int = 7200  # Seconds, per side.
    env: dict[str, str] = field(default_factory=_default_env)


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load a runner profile from a YAML file.

    Profile format::

        go: /usr/local/go/bin/go
        packages: ["./tsdb/...", "./promql/..."]
        bench_time: 2s
        count: 3
        timeout: 3600
        env:
          GOGC: "off"

    Returns:
        The parsed YAML as a dict.
    """
    if not profile_path.exists():
        raise ConfigError(f"Profile not found: {profile_path}")

    try:
        data = yaml.safe_load(profile_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {profile_path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Profile must be a YAML mapping, got {type(data).__name__}")
    return data


def options_from_profile(
    profile_data: dict[str, Any],
    *,
    cli_overrides: dict[str, Any] | None = None,
) -> BenchOptions:
    """Build BenchOptions from a parsed profile; non-None CLI values win."""
    cli = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    merged = {**profile_data, **cli}

    unknown = sorted(set(merged) - {"go", "packages", "bench_time", "count", "timeout", "env"})
    if unknown:
        raise ConfigError(f"Unknown profile keys: {', '.join(unknown)}")

    options = BenchOptions()
    if "go" in merged:
        options.go = str(merged["go"])
    if "packages" in merged:
        packages = merged["packages"]
        if isinstance(packages, str):
            packages = packages.split()
        if not isinstance(packages, list) or not packages:
            raise ConfigError("'packages' must be a non-empty list of package patterns")
        options.packages = [str(p) for p in packages]
    if "bench_time" in merged:
        options.bench_time = str(merged["bench_time"])
    for key in ("count", "timeout"):
        if key in merged:
            value = merged[key]
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ConfigError(f"'{key}' must be a positive integer (got {value!r})")
            setattr(options, key, value)
    if "env" in merged:
        env = merged["env"]
        if not isinstance(env, dict):
            raise ConfigError("'env' must be a mapping of NAME: value")
        options.env.update({str(k): str(v) for k, v in env.items()})
    return options
