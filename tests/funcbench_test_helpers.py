"""Shared test fixtures for funcbench tests."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import requests

from funcbench.benchcmp import BenchCmp, Measurement

GIT_AVAILABLE = shutil.which("git") is not None


def make_cmp(
    name: str,
    *,
    old_ns: float | None = None,
    new_ns: float | None = None,
    old_mb: float | None = None,
    new_mb: float | None = None,
    old_allocs: int | None = None,
    new_allocs: int | None = None,
    old_bytes: int | None = None,
    new_bytes: int | None = None,
) -> BenchCmp:
    """Build a BenchCmp from old/new metric values."""
    return BenchCmp(
        before=Measurement(
            name=name,
            ns_per_op=old_ns,
            mb_per_s=old_mb,
            allocs_per_op=old_allocs,
            bytes_per_op=old_bytes,
        ),
        after=Measurement(
            name=name,
            ns_per_op=new_ns,
            mb_per_s=new_mb,
            allocs_per_op=new_allocs,
            bytes_per_op=new_bytes,
        ),
    )


def make_event_payload(
    *,
    owner: str = "prometheus",
    repo: str = "prometheus",
    number: int = 42,
    body: str = "/funcbench master BenchmarkQuery",
    pull_request: bool = True,
) -> dict[str, Any]:
    """Build a minimal issue_comment webhook payload."""
    issue: dict[str, Any] = {"number": number}
    if pull_request:
        pr_url = f"https://api.github.com/repos/{owner}/{repo}/pulls/{number}"
        issue["pull_request"] = {"url": pr_url}
    return {
        "action": "created",
        "comment": {"body": body},
        "issue": issue,
        "repository": {"name": repo, "owner": {"login": owner}},
    }


def mock_session(status_code: int = 201, text: str = "") -> MagicMock:
    """A requests.Session stand-in whose post() returns *status_code*."""
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status_code
    resp.text = text
    session.post.return_value = resp
    return session


def completed(
    returncode: int = 0, stdout: str = "", stderr: str = ""
) -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


def init_git_repo(path: Path) -> Path:
    """Create a git repository with one commit at *path*."""
    path.mkdir(parents=True, exist_ok=True)

    def _git(*args: str) -> None:
        subprocess.run(["git", *args], cwd=str(path), check=True, capture_output=True, text=True)

    _git("init", "-q", "-b", "main")
    _git("config", "user.email", "bench@example.com")
    _git("config", "user.name", "Bench")
    (path / "README").write_text("bench\n")
    _git("add", "README")
    _git("commit", "-q", "-m", "initial")
    return path
