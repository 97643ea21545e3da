"""Convert rendered benchmark tables into GitHub-flavoured markdown.

Header lines are recognised by their metric marker and replaced with a
fixed markdown header plus separator row. Every other non-blank line is
split on whitespace and re-joined with ``|``. This only works because the
renderer never puts whitespace inside a field.
"""

from __future__ import annotations

_SEPARATOR = "|-|-|-|-|"

# Checked in order; first marker contained in the line wins.
_HEADERS = (
    ("old ns/op", "| Benchmark | Old ns/op | New ns/op | Delta |"),
    ("old MB/s", "| Benchmark | Old MB/s | New MB/s | Speedup |"),
    ("old allocs", "| Benchmark | Old allocs | New allocs | Delta |"),
    ("old bytes", "| Benchmark | Old bytes | New bytes | Delta |"),
)


def markdown_header(line: str) -> str | None:
    """Return the markdown header for a renderer header line, or None."""
    for marker, header in _HEADERS:
        if marker in line:
            return header
    return None


def pipe_join(line: str) -> str:
    """Collapse whitespace runs into single ``|`` delimiters."""
    return "|".join(line.split())


def format_comment_to_md(raw_table: str) -> str:
    """Rewrite renderer output as markdown tables, preserving line order."""
    out: list[str] = []
    for line in raw_table.split("\n"):
        if line == "":
            out.append(line)
            continue
        header = markdown_header(line)
        if header is not None:
            out.append(header)
            out.append(_SEPARATOR)
        else:
            out.append(pipe_join(line))
    return "\n".join(out)
