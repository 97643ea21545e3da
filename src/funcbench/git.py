"""Git workspace adapter.

Opens an existing work tree, clones a repository, switches a fresh clone to
a pull request head, and provides a throwaway worktree for the comparison
target. Everything shells out to ``git`` with an explicit ``cwd``; nothing
here changes the process working directory.
"""

from __future__ import annotations

import shutil
import subprocess
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from funcbench.errors import (
    CheckoutError,
    CloneError,
    FetchError,
    FuncbenchError,
    NotARepositoryError,
)
from funcbench.formatting import format_command, tail
from funcbench.logging import get_logger

log = get_logger("git")

PULL_REQUEST_BRANCH = "pullrequest"


@dataclass(frozen=True)
class Repository:
    """Handle on the root of a git work tree."""

    root: Path

    def rev_parse(self, rev: str) -> str | None:
        """Resolve *rev* to a full commit hash, or None."""
        return _resolve_rev(self.root, rev)

    def head(self) -> str | None:
        return self.rev_parse("HEAD")


def _git(args: list[str], cwd: Path, timeout: int = 60) -> subprocess.CompletedProcess[str]:
    log.debug("Running: %s (in %s)", format_command(["git", *args]), cwd)
    return subprocess.run(
        ["git", *args],
        capture_output=True,
        text=True,
        cwd=str(cwd),
        timeout=timeout,
        check=False,
    )


def _resolve_rev(
    repo_dir: Path,
    rev: str,
    *,
    error: type[FuncbenchError] = CheckoutError,
) -> str | None:
    """Resolve *rev* to a commit hash, or None if it names no commit.

    Raises:
        error: If git cannot be run or times out.
    """
    try:
        proc = _git(
            ["rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"], repo_dir, timeout=10
        )
    except (subprocess.TimeoutExpired, OSError) as exc:
        raise error(f"git rev-parse {rev}: {exc}") from exc
    if proc.returncode == 0:
        return proc.stdout.strip()
    return None


# ---------------------------------------------------------------------------
# Opening and cloning
# ---------------------------------------------------------------------------


def open_repository(path: Path | str = ".") -> Repository:
    """Open the work tree containing *path* (the directory or an ancestor).

    Raises:
        NotARepositoryError: If no enclosing git work tree exists.
    """
    start = Path(path).resolve()
    if not start.is_dir():
        raise NotARepositoryError(str(start))
    try:
        proc = _git(["rev-parse", "--show-toplevel"], start, timeout=10)
    except (subprocess.TimeoutExpired, OSError) as exc:
        log.debug("git rev-parse failed in %s: %s", start, exc)
        raise NotARepositoryError(str(start)) from exc
    if proc.returncode != 0:
        log.debug("git rev-parse: %s", tail(proc.stderr))
        raise NotARepositoryError(str(start))
    return Repository(root=Path(proc.stdout.strip()))


def clone_repository(url: str, dest: Path, *, timeout: int = 900) -> Repository:
    """Clone *url* into *dest* at full depth.

    An existing clone at *dest* is reused as is.

    Raises:
        CloneError: If ``git clone`` fails or times out.
    """
    if (dest / ".git").exists():
        log.info("Repository already exists at %s, reusing it", dest)
        return Repository(root=dest)

    dest.parent.mkdir(parents=True, exist_ok=True)
    log.info("Cloning %s into %s", url, dest)
    try:
        proc = _git(["clone", url, str(dest)], dest.parent, timeout=timeout)
    except (subprocess.TimeoutExpired, OSError) as exc:
        raise CloneError(f"git clone {url}: {exc}") from exc
    if proc.returncode != 0:
        raise CloneError(f"git clone {url}: {tail(proc.stderr)}")
    return Repository(root=dest)


# ---------------------------------------------------------------------------
# Switching to a pull request
# ---------------------------------------------------------------------------


def pull_request_refspec(number: int, branch: str = PULL_REQUEST_BRANCH) -> str:
    """Refspec that force-updates local *branch* from the PR head."""
    return f"+pull/{number}/head:{branch}"


def fetch(repo: Repository, refspec: str, *, remote: str = "origin", timeout: int = 600) -> bool:
    """Fetch *refspec* from *remote*.

    Returns:
        True if the destination ref moved, False if it was already up to date.

    Raises:
        FetchError: If ``git fetch`` fails or times out.
    """
    dest_ref = ""
    if ":" in refspec:
        dest_ref = f"refs/heads/{refspec.split(':', 1)[1]}"
    before = _resolve_rev(repo.root, dest_ref, error=FetchError) if dest_ref else None

    try:
        proc = _git(["fetch", "--update-head-ok", remote, refspec], repo.root, timeout=timeout)
    except (subprocess.TimeoutExpired, OSError) as exc:
        raise FetchError(f"git fetch {remote} {refspec}: {exc}") from exc
    if proc.returncode != 0:
        raise FetchError(f"git fetch {remote} {refspec}: {tail(proc.stderr)}")

    after = _resolve_rev(repo.root, dest_ref, error=FetchError) if dest_ref else None
    if dest_ref and before is not None and before == after:
        log.info("%s already up to date at %s", dest_ref, before[:7])
        return False
    return True


def checkout(repo: Repository, branch: str, *, timeout: int = 120) -> None:
    """Check out *branch*, discarding local modifications.

    Raises:
        CheckoutError: If ``git checkout`` fails or times out.
    """
    try:
        proc = _git(["checkout", "--force", branch], repo.root, timeout=timeout)
    except (subprocess.TimeoutExpired, OSError) as exc:
        raise CheckoutError(f"git checkout {branch}: {exc}") from exc
    if proc.returncode != 0:
        raise CheckoutError(f"git checkout {branch}: {tail(proc.stderr)}")


# ---------------------------------------------------------------------------
# Comparison target worktree
# ---------------------------------------------------------------------------


def resolve_target(repo: Repository, target: str) -> str:
    """Resolve a branch, tag or commit, falling back to ``origin/<target>``.

    Raises:
        CheckoutError: If neither form resolves.
    """
    for candidate in (target, f"origin/{target}"):
        commit = repo.rev_parse(candidate)
        if commit is not None:
            return commit
    raise CheckoutError(f"cannot resolve comparison target {target!r}")


@contextmanager
def worktree(repo: Repository, target: str) -> Iterator[Path]:
    """Yield a detached worktree of *target*, removed on exit.

    Raises:
        CheckoutError: If *target* does not resolve or the worktree cannot
            be created.
    """
    commit = resolve_target(repo, target)
    with tempfile.TemporaryDirectory(prefix="funcbench-") as tmp:
        path = Path(tmp) / "target"
        try:
            proc = _git(
                ["worktree", "add", "--detach", str(path), commit], repo.root, timeout=300
            )
        except (subprocess.TimeoutExpired, OSError) as exc:
            raise CheckoutError(f"git worktree add {target}: {exc}") from exc
        if proc.returncode != 0:
            raise CheckoutError(f"git worktree add {target}: {tail(proc.stderr)}")
        log.info("Checked out %s (%s) into %s", target, commit[:7], path)
        try:
            yield path
        finally:
            _remove_worktree(repo, path)


def _remove_worktree(repo: Repository, path: Path) -> None:
    """Drop the worktree at *path*; failures are logged, never raised."""
    try:
        remove = _git(["worktree", "remove", "--force", str(path)], repo.root)
    except (subprocess.TimeoutExpired, OSError) as exc:
        log.warning("git worktree remove failed: %s", exc)
    else:
        if remove.returncode == 0:
            return
        log.warning("git worktree remove failed: %s", tail(remove.stderr))

    shutil.rmtree(path, ignore_errors=True)
    try:
        _git(["worktree", "prune"], repo.root)
    except (subprocess.TimeoutExpired, OSError) as exc:
        log.warning("git worktree prune failed: %s", exc)
