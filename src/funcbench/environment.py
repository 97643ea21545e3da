"""Execution environments and result reporting.

An environment is either :class:`Local` (an already-open work tree; results
and errors go to the terminal) or :class:`Remote` (a fresh clone of a pull
request; results and errors are posted as PR comments). Both are built
once per run and never mutated. The reporting functions dispatch on the
variant and end in ``assert_never`` so a type checker flags any variant
left unhandled.
"""

from __future__ import annotations

import enum
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO, assert_never

import requests

from funcbench.benchcmp import BenchCmp
from funcbench.config import BenchRequest, RemoteConfig
from funcbench.errors import (
    CheckoutError,
    CommentPostError,
    FetchError,
    FuncbenchError,
    UnsupportedEventError,
)
from funcbench.event import load_issue_comment_event
from funcbench.git import (
    PULL_REQUEST_BRANCH,
    Repository,
    checkout,
    clone_repository,
    fetch,
    open_repository,
    pull_request_refspec,
)
from funcbench.github import ClientIdentity, GitHubClient
from funcbench.logging import get_logger
from funcbench.markdown import format_comment_to_md
from funcbench.render import render

log = get_logger("environment")

FETCH_FAILED_MESSAGE = "Switch (fetch) to a pull request branch failed"
CHECKOUT_FAILED_MESSAGE = "Switch to a pull request branch failed"
NOT_A_PULL_REQUEST_MESSAGE = "funcbench only runs on pull request comments"


@dataclass(frozen=True)
class Local:
    """A work tree the operator already has open."""

    repo: Repository
    request: BenchRequest


@dataclass(frozen=True)
class Remote:
    """A fresh clone of a pull request, reporting through PR comments."""

    repo: Repository
    request: BenchRequest
    client: GitHubClient
    log_link: str


Environment = Local | Remote


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def new_local_env(request: BenchRequest, path: Path | str = ".") -> Local:
    """Open the work tree containing *path*.

    Raises:
        NotARepositoryError: If *path* is not inside a git work tree.
    """
    repo = open_repository(path)
    log.info("Using local repository at %s", repo.root)
    return Local(repo=repo, request=request)


class RemoteState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    CLONING = "cloning"
    FETCHING = "fetching"
    CHECKING_OUT = "checking out"
    READY = "ready"
    FAILED = "failed"


class RemoteSetup:
    """Builds a :class:`Remote` from an issue-comment event.

    Walks ``UNINITIALIZED -> CLONING -> FETCHING -> CHECKING_OUT -> READY``.
    Any failure moves to ``FAILED``. A comment on a plain issue, and fetch or
    checkout failures, first try to post a diagnostic comment in reply.
    """

    def __init__(
        self,
        config: RemoteConfig,
        request: BenchRequest,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config
        self.request = request
        self.session = session
        self.state = RemoteState.UNINITIALIZED
        self.error: FuncbenchError | None = None

    def _enter(self, state: RemoteState) -> None:
        log.debug("Remote setup: %s -> %s", self.state.value, state.value)
        self.state = state

    def run(self) -> Remote:
        try:
            return self._run()
        except FuncbenchError as exc:
            log.error("Remote setup failed while %s: %s", self.state.value, exc)
            self.error = exc
            self._enter(RemoteState.FAILED)
            raise

    def _run(self) -> Remote:
        event = load_issue_comment_event(self.config.event_path)
        log.info("Benchmark requested on %s/%s#%d", event.owner, event.repo, event.number)

        identity = ClientIdentity.from_event(event, self.config.commit_sha)
        client = GitHubClient(identity, self.config.token, session=self.session)
        if not event.is_pull_request:
            exc = UnsupportedEventError(
                f"issue #{event.number} is not a pull request; "
                "only pull request comments are supported"
            )
            _post_setup_failure(client, identity.log_link, exc, NOT_A_PULL_REQUEST_MESSAGE)
            raise exc

        self._enter(RemoteState.CLONING)
        repo = clone_repository(event.clone_url, self.config.workspace / event.repo)

        remote = Remote(
            repo=repo,
            request=self.request,
            client=client,
            log_link=identity.log_link,
        )

        self._enter(RemoteState.FETCHING)
        try:
            fetch(repo, pull_request_refspec(event.number))
        except FetchError as exc:
            _post_setup_failure(client, remote.log_link, exc, FETCH_FAILED_MESSAGE)
            raise

        self._enter(RemoteState.CHECKING_OUT)
        try:
            checkout(repo, PULL_REQUEST_BRANCH)
        except CheckoutError as exc:
            _post_setup_failure(client, remote.log_link, exc, CHECKOUT_FAILED_MESSAGE)
            raise

        self._enter(RemoteState.READY)
        log.info("Checked out pull request #%d in %s", event.number, repo.root)
        return remote


def _post_setup_failure(
    client: GitHubClient,
    log_link: str,
    exc: FuncbenchError,
    message: str,
) -> None:
    """Best-effort comment about *exc*; if that fails too, raise both causes."""
    try:
        _post_error_comment(client, log_link, message)
    except CommentPostError as post_exc:
        raise type(exc)(
            f"{exc.message}; posting a comment for the failure also failed: {post_exc.message}"
        ) from post_exc


def new_remote_env(
    config: RemoteConfig,
    request: BenchRequest,
    *,
    session: requests.Session | None = None,
) -> Remote:
    """Clone the commented pull request and switch to its head."""
    return RemoteSetup(config, request, session=session).run()


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


def _post_error_comment(client: GitHubClient, log_link: str, message: str) -> None:
    try:
        client.post_comment(f"{message}. Logs: {log_link}")
    except CommentPostError as exc:
        raise CommentPostError(f"posting err: {exc.message}", exc.status_code) from exc


def post_err(env: Environment, message: str) -> None:
    """Make *message* visible to whoever requested the benchmark.

    A no-op locally: the operator already sees the failure on the terminal.
    """
    if isinstance(env, Local):
        log.debug("Not posting error for a local run: %s", message)
    elif isinstance(env, Remote):
        _post_error_comment(env.client, env.log_link, message)
    else:
        assert_never(env)


def post_results(
    env: Environment,
    cmps: Sequence[BenchCmp],
    *,
    out: TextIO | None = None,
) -> None:
    """Report comparison results on the terminal or as a PR comment."""
    table = render(cmps)
    if isinstance(env, Local):
        stream = out or sys.stdout
        stream.write("Results:\n")
        stream.write(table or "No comparable benchmark results.\n")
    elif isinstance(env, Remote):
        if not table:
            body = (
                f"No comparable benchmark results for `{env.request.bench_func}` "
                f"against `{env.request.compare_target}`."
            )
        else:
            body = format_comment_to_md(table)
        env.client.post_comment(body)
    else:
        assert_never(env)
