"""gitshine: interactively reword a commit message or squash a run of commits."""

__version__ = "0.2.0"

from .core import CommitInfo, GitError, GitRepository
from .rewrite import HistoryRewriter, OperationError
from .selection import SelectionError

__all__ = [
    "CommitInfo",
    "GitError",
    "GitRepository",
    "HistoryRewriter",
    "OperationError",
    "SelectionError",
]
