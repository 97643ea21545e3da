"""Text helpers for log lines and error messages.

Process output is cut from the front (the failure is at the end); HTTP
response bodies are cut from the back.
"""

from __future__ import annotations

import shlex
from collections.abc import Sequence

_ELLIPSIS = "..."


def format_duration(seconds: float) -> str:
    """Wall time of a benchmark or git run.

    Examples: ``'0.4s'``, ``'8s'``, ``'1m 05s'``, ``'2h 00m 07s'``. Runs under
    ten seconds keep one decimal; longer ones are truncated to whole seconds.
    """
    if seconds < 10:
        return f"{max(seconds, 0.0):.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    if minutes:
        return f"{minutes}m {secs:02d}s"
    return f"{secs}s"


def truncate(text: str, max_len: int) -> str:
    """Keep the first *max_len* characters of *text*, marking the cut."""
    text = text.strip()
    if len(text) <= max_len:
        return text
    if max_len <= len(_ELLIPSIS):
        return _ELLIPSIS[:max_len]
    return text[: max_len - len(_ELLIPSIS)] + _ELLIPSIS


def tail(text: str | None, max_len: int = 500) -> str:
    """Keep the last *max_len* characters of process output."""
    text = (text or "").strip()
    if len(text) <= max_len:
        return text
    return _ELLIPSIS + text[-max_len:]


def format_command(cmd: Sequence[str]) -> str:
    """Shell-quoted command line, as it would be typed to reproduce a run."""
    return shlex.join(cmd)
