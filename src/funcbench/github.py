"""Minimal GitHub API client bound to one pull request.

Only the "create issue comment" endpoint is used.
"""

from __future__ import annotations

from dataclasses import dataclass

import requests

from funcbench import __version__
from funcbench.errors import CommentPostError
from funcbench.event import IssueCommentEvent
from funcbench.formatting import truncate
from funcbench.logging import get_logger

log = get_logger("github")

_API_URL = "https://api.github.com"
_USER_AGENT = f"funcbench/{__version__}"


@dataclass(frozen=True)
class ClientIdentity:
    """Which pull request the client reports to."""

    owner: str
    repo: str
    pr_number: int
    latest_commit_hash: str

    @classmethod
    def from_event(cls, event: IssueCommentEvent, commit_sha: str) -> ClientIdentity:
        return cls(
            owner=event.owner,
            repo=event.repo,
            pr_number=event.number,
            latest_commit_hash=commit_sha,
        )

    @property
    def log_link(self) -> str:
        """URL of the checks page holding the full job logs."""
        return (
            f"https://github.com/{self.owner}/{self.repo}/commit/"
            f"{self.latest_commit_hash}/checks"
        )


class GitHubClient:
    """Authenticated client that posts comments on one pull request."""

    def __init__(
        self,
        identity: ClientIdentity,
        token: str,
        *,
        session: requests.Session | None = None,
        api_url: str = _API_URL,
        timeout: float = 30.0,
    ) -> None:
        self.identity = identity
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"token {token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": _USER_AGENT,
            }
        )

    @property
    def comments_url(self) -> str:
        ident = self.identity
        return f"{self.api_url}/repos/{ident.owner}/{ident.repo}/issues/{ident.pr_number}/comments"

    def post_comment(self, body: str) -> None:
        """Create a new comment on the pull request.

        Raises:
            CommentPostError: On network errors or a non-201 response.
        """
        url = self.comments_url
        log.debug("Posting %d-character comment to %s", len(body), url)
        try:
            resp = self.session.post(url, json={"body": body}, timeout=self.timeout)
        except requests.RequestException as exc:
            raise CommentPostError(f"posting comment to {url}: {exc}") from exc

        if resp.status_code != 201:
            raise CommentPostError(
                f"posting comment to {url}: HTTP {resp.status_code}: {truncate(resp.text, 200)}",
                status_code=resp.status_code,
            )
        log.info(
            "Posted comment on %s/%s#%d",
            self.identity.owner,
            self.identity.repo,
            self.identity.pr_number,
        )
