"""Inbound issue-comment event payloads.

GitHub Actions writes the triggering webhook payload to a JSON file. Comments
on plain issues parse too; the caller decides what to do with them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from funcbench.errors import UnsupportedEventError


@dataclass(frozen=True)
class IssueCommentEvent:
    """The parts of an ``issue_comment`` payload funcbench uses."""

    owner: str
    repo: str
    number: int
    body: str = ""
    is_pull_request: bool = True

    @property
    def clone_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repo}.git"


def parse_issue_comment_event(data: dict[str, Any]) -> IssueCommentEvent:
    """Extract owner, repo and issue number from a decoded payload.

    Raises:
        UnsupportedEventError: If the payload is not an issue comment.
    """
    comment = data.get("comment")
    issue = data.get("issue")
    repository = data.get("repository")
    if not isinstance(comment, dict) or not isinstance(issue, dict):
        raise UnsupportedEventError("only issue_comment event is supported")
    if not isinstance(repository, dict):
        raise UnsupportedEventError("issue_comment event has no repository")

    try:
        owner = repository["owner"]["login"]
        repo = repository["name"]
        number = int(issue["number"])
    except (KeyError, TypeError, ValueError) as exc:
        raise UnsupportedEventError(f"malformed issue_comment event: {exc}") from exc

    return IssueCommentEvent(
        owner=owner,
        repo=repo,
        number=number,
        body=comment.get("body") or "",
        is_pull_request="pull_request" in issue,
    )


def load_issue_comment_event(path: Path) -> IssueCommentEvent:
    """Read and parse the event payload at *path*."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise UnsupportedEventError(f"cannot read event payload {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise UnsupportedEventError(f"event payload {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise UnsupportedEventError("event payload must be a JSON object")
    return parse_issue_comment_event(data)
