"""History-rewrite engine: reword one commit or squash a contiguous run.

Commits are never edited in place. Each operation builds the new chain while
HEAD is detached (or on a throwaway orphan line), then repoints the branch in a
single step. Everything between the snapshot and that repoint runs inside a
``RewriteTransaction``: if any git step fails the branch is forced back to the
snapshot and the error is re-raised as ``OperationError``.
"""

import logging
import os
import tempfile
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .core import GitError, GitRepository
from .selection import SelectionError

logger = logging.getLogger(__name__)

TEMP_BRANCH_PREFIX = "gitshine-temp"


class RewordMode(Enum):
    AMEND_HEAD = "amend_head"  # target is the branch tip
    DETACHED_REPLAY = "detached_replay"


class SquashMode(Enum):
    PARENTED = "parented"
    ROOT = "root"  # run starts at the root commit


@dataclass
class RewriteTransaction:
    original_head: str
    current_branch: str
    message_file: str
    temp_branch: Optional[str] = None
    recovered: bool = True


class OperationError(Exception):
    """A rewrite failed and the branch was rolled back to ``original_head``.

    ``recovered`` is False when the rollback itself could not complete and the
    repository may need manual attention.
    """

    def __init__(
        self, message: str, original_head: str, branch: str, recovered: bool = True
    ) -> None:
        super().__init__(message)
        self.original_head = original_head
        self.branch = branch
        self.recovered = recovered


def plan_reword(target: str, tip: str) -> RewordMode:
    """Pick the reword mode by comparing full commit identifiers."""
    if target == tip:
        return RewordMode.AMEND_HEAD
    return RewordMode.DETACHED_REPLAY


def plan_squash(predecessor: Optional[str]) -> SquashMode:
    if predecessor is None:
        return SquashMode.ROOT
    return SquashMode.PARENTED


class HistoryRewriter:
    def __init__(self, repo: Optional[GitRepository] = None) -> None:
        self.repo = repo if repo is not None else GitRepository()

    def reword_commit(self, target: str, new_message: str) -> str:
        """Replace the message of ``target`` and replay its descendants.

        Returns the branch tip identifier from before the operation.
        """
        target_sha = self._resolve(target)
        if not self.repo.is_ancestor(target_sha, "HEAD"):
            raise SelectionError(f"Commit {target} is not part of the current branch")

        print("Editing commit message...")
        with self._transaction(new_message, "edit commit message") as txn:
            mode = plan_reword(target_sha, txn.original_head)
            logger.debug("Reword %s using %s", target_sha, mode.value)

            if mode is RewordMode.AMEND_HEAD:
                self.repo.amend_message(txn.message_file)
            else:
                self.repo.detach_to(target_sha)
                self.repo.amend_message(txn.message_file)
                amended = self.repo.current_tip()
                self.repo.replay_range(target_sha, amended, txn.original_head)
                self._fast_forward(txn, self.repo.current_tip())

        print("Commit message edited successfully!")
        return txn.original_head

    def squash_commits(self, commits: Sequence[str], new_message: str) -> str:
        """Collapse a contiguous run (newest first) into one commit.

        Returns the branch tip identifier from before the operation.
        """
        run = self._validate_run(commits)
        newest, oldest = run[0], run[-1]

        print(f"Squashing {len(run)} commits...")
        with self._transaction(new_message, "squash commits") as txn:
            predecessor = self.repo.predecessor_of(oldest)
            mode = plan_squash(predecessor)
            logger.debug("Squash %s..%s using %s", oldest, newest, mode.value)

            self.repo.detach_to(newest)
            if mode is SquashMode.PARENTED:
                self.repo.soft_reset_to(predecessor)
            else:
                txn.temp_branch = (
                    f"{TEMP_BRANCH_PREFIX}-{txn.original_head[:8]}-{os.getpid()}"
                )
                self.repo.create_orphan_line(txn.temp_branch)
            self.repo.commit_with_message(txn.message_file)
            squashed = self.repo.current_tip()

            if txn.original_head != newest:
                self.repo.replay_range(newest, squashed, txn.original_head)

            self._fast_forward(txn, self.repo.current_tip())

        print(f"Squashed {len(run)} commits into one!")
        return txn.original_head

    def _resolve(self, rev: str) -> str:
        try:
            return self.repo.resolve(rev)
        except GitError as e:
            raise SelectionError(f"Unknown commit: {rev}") from e

    def _validate_run(self, commits: Sequence[str]) -> list[str]:
        """Resolve the run and check it is a parent chain on the current branch."""
        if len(commits) < 2:
            raise SelectionError("Need at least 2 commits to squash.")

        run = [self._resolve(commit) for commit in commits]
        if len(set(run)) != len(run):
            raise SelectionError("The same commit was selected more than once.")

        for newer, older in zip(run, run[1:]):
            if self.repo.predecessor_of(newer) != older:
                raise SelectionError(
                    f"Commits must be contiguous: {older[:7]} is not the parent of {newer[:7]}"
                )

        if not self.repo.is_ancestor(run[0], "HEAD"):
            raise SelectionError("Selected commits are not part of the current branch")

        return run

    @contextmanager
    def _transaction(self, message: str, action: str) -> Iterator[RewriteTransaction]:
        branch = self.repo.current_branch()
        if not branch:
            raise SelectionError(f"Cannot {action}: HEAD is detached, check out a branch first")
        original_head = self.repo.current_tip()

        with tempfile.NamedTemporaryFile(
            mode="w", prefix="gitshine-msg-", suffix=".txt", delete=False, encoding="utf-8"
        ) as f:
            f.write(message)
            message_file = f.name

        txn = RewriteTransaction(
            original_head=original_head,
            current_branch=branch,
            message_file=message_file,
        )
        try:
            yield txn
        except KeyboardInterrupt:
            print(f"Interrupted, cannot {action}")
            self._rollback(txn)
            raise
        except Exception as e:
            print(f"Failed to {action}")
            self._rollback(txn)
            raise OperationError(
                f"Failed to {action}: {e}",
                original_head=txn.original_head,
                branch=txn.current_branch,
                recovered=txn.recovered,
            ) from e
        finally:
            self._cleanup(txn)

    def _fast_forward(self, txn: RewriteTransaction, new_tip: str) -> None:
        self.repo.force_branch_to(txn.current_branch, new_tip)
        self.repo.checkout(txn.current_branch)

    def _rollback(self, txn: RewriteTransaction) -> None:
        """Force the branch back to the snapshot, degrading to a forced checkout."""
        print(f"Restoring {txn.current_branch} to {txn.original_head[:8]} due to error...")

        if self.repo.is_rebase_in_progress():
            self.repo.abort_replay()

        try:
            self.repo.checkout(txn.current_branch)
            self.repo.hard_reset_to(txn.original_head)
            return
        except GitError as e:
            logger.warning("Checkout of %s failed during recovery: %s", txn.current_branch, e)

        try:
            self.repo.force_checkout(txn.current_branch)
            self.repo.hard_reset_to(txn.original_head)
        except GitError as e:
            txn.recovered = False
            logger.error(
                "Could not restore %s to %s: %s", txn.current_branch, txn.original_head, e
            )

    def _cleanup(self, txn: RewriteTransaction) -> None:
        try:
            os.unlink(txn.message_file)
        except FileNotFoundError:
            pass

        if txn.temp_branch and not self.repo.delete_branch(txn.temp_branch):
            # An orphan line that never got a commit has no ref to delete
            logger.debug("Temporary branch %s was not deleted", txn.temp_branch)
