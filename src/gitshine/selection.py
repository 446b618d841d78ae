"""Validation of user choices before any history is touched."""

import re
from collections.abc import Iterable
from typing import Optional

_RANGE = re.compile(r"^(\d+)-(\d+)$")


class SelectionError(Exception):
    """Raised when a selection or message is invalid and the user should retry."""

    pass


def validate_squash_selection(
    positions: Iterable[int], total: Optional[int] = None
) -> list[int]:
    """Check that squash positions are at least two, distinct and contiguous.

    Positions index the displayed commit list (0 = newest). Returns them sorted.
    """
    ordered = sorted(set(positions))

    if len(ordered) < 2:
        raise SelectionError("Need at least 2 commits to squash.")

    if total is not None and (ordered[0] < 0 or ordered[-1] >= total):
        raise SelectionError(f"Selection out of range: choose between 1 and {total}.")

    if ordered[-1] - ordered[0] != len(ordered) - 1:
        raise SelectionError("Selected commits must be contiguous (no gaps).")

    return ordered


def validate_message(message: str) -> str:
    """Return the trimmed message, rejecting one that is empty."""
    stripped = message.strip()
    if not stripped:
        raise SelectionError("Commit message cannot be empty")
    return stripped


def parse_selection(text: str) -> list[int]:
    """Parse "1-3", "1,2" or "2 3" (1-based, as displayed) into 0-based positions."""
    positions: list[int] = []
    normalized = re.sub(r"\s*-\s*", "-", text.strip())
    for token in re.split(r"[,\s]+", normalized):
        if not token:
            continue
        match = _RANGE.match(token)
        if match:
            start, end = int(match.group(1)), int(match.group(2))
            if start > end:
                start, end = end, start
            positions.extend(range(start - 1, end))
        elif token.isdigit():
            positions.append(int(token) - 1)
        else:
            raise SelectionError(f"Invalid selection: {token!r}")

    if any(position < 0 for position in positions):
        raise SelectionError("Commit numbers start at 1.")

    return positions
