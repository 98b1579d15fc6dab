"""Locate the statement under the cursor when nothing is selected."""

from typing import Optional, Union

from dbbase.constants import COMMENT_PREFIXES
from dbbase.database.models import Dialect


def _is_comment(line: str) -> bool:
    return line.strip().startswith(COMMENT_PREFIXES)


def _is_boundary(line: str) -> bool:
    """Blank lines and lines ending in ';' close a statement block."""
    stripped = line.strip()
    return not stripped or stripped.endswith(";")


def locate_statement(
    text: str,
    line: int,
    character: int = 0,
    dialect: Union[Dialect, str] = Dialect.SQL,
    selection: Optional[str] = None,
) -> str:
    """Return the statement the cursor is inside.

    A non-empty selection always wins and is returned verbatim. For the
    key-value dialect the unit is the cursor line. For SQL the unit is the
    block around the cursor line, delimited by blank lines and lines ending
    in ``;``. Statements typed on consecutive lines where the first lacks a
    trailing ``;`` end up in the same block.

    Args:
        text: Full document text
        line: Zero-based cursor line
        character: Zero-based cursor column (blocks are line-granular)
        dialect: ``sql`` or ``keyvalue``
        selection: Explicitly selected text, if any

    Returns:
        The trimmed statement, or an empty string when the cursor sits on a
        comment or outside the document
    """
    if selection:
        return selection

    lines = text.replace("\r\n", "\n").split("\n")
    if line < 0 or line >= len(lines):
        return ""

    current = lines[line]
    if _is_comment(current):
        return ""

    if Dialect(dialect) is Dialect.KEYVALUE:
        return current.strip()

    start = line
    while start > 0 and not _is_boundary(lines[start - 1]):
        start -= 1

    end = line
    while end < len(lines) - 1 and not _is_boundary(lines[end]):
        end += 1

    return "\n".join(lines[start : end + 1]).strip()
