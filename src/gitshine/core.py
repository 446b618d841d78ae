"""Git plumbing for gitshine.

Wraps the ``git`` executable behind a small query/mutation interface used by the
history-rewrite engine, plus the read-only helpers the CLI needs for preflight
checks and commit listing.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Optional, TypedDict, Union

logger = logging.getLogger(__name__)

# ASCII unit separator, cannot appear in a commit subject line
FIELD_SEPARATOR = "\x1f"
LOG_FORMAT = FIELD_SEPARATOR.join(["%H", "%h", "%s", "%an", "%ar"])


class CommitInfo(TypedDict):
    sha: str
    short_sha: str
    message: str
    author: str
    date: str


class GitRepository:
    def __init__(self, repo_path: Optional[Union[str, Path]] = None) -> None:
        self.repo_path = str(repo_path) if repo_path is not None else None

    def run_git(
        self,
        cmd: list[str],
        check_output: bool = True,
        env: Optional[dict[str, str]] = None,
    ) -> subprocess.CompletedProcess[str]:
        """Run git command with error handling."""
        logger.debug("git %s", " ".join(cmd))
        try:
            result = subprocess.run(
                ["git"] + cmd,
                capture_output=True,
                text=True,
                check=check_output,
                env=env,
                cwd=self.repo_path,
            )
            return result
        except subprocess.CalledProcessError as e:
            raise GitError(
                f"Git command failed: {' '.join(cmd)}\nError: {e.stderr}"
            ) from e

    # Repository queries

    def current_tip(self) -> str:
        """Return the full identifier of HEAD."""
        return self.run_git(["rev-parse", "HEAD"]).stdout.strip()

    def current_branch(self) -> str:
        """Return the checked out branch name, or "" when HEAD is detached."""
        return self.run_git(["branch", "--show-current"]).stdout.strip()

    def resolve(self, rev: str) -> str:
        """Resolve any revision expression to a full commit identifier."""
        return self.run_git(["rev-parse", "--verify", f"{rev}^{{commit}}"]).stdout.strip()

    def predecessor_of(self, sha: str) -> Optional[str]:
        """Return the first parent of ``sha``, or None for a root commit."""
        result = self.run_git(
            ["rev-parse", "--verify", "--quiet", f"{sha}^"], check_output=False
        )
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        result = self.run_git(
            ["merge-base", "--is-ancestor", ancestor, descendant], check_output=False
        )
        return result.returncode == 0

    def get_commits(self, limit: Optional[int] = 20) -> list[CommitInfo]:
        """List commits reachable from HEAD, newest first."""
        # An unborn branch has no HEAD commit and git log would fail
        head = self.run_git(["rev-parse", "--verify", "--quiet", "HEAD"], check_output=False)
        if head.returncode != 0:
            return []

        cmd = ["log", f"--format={LOG_FORMAT}"]
        if limit:
            cmd.insert(1, f"-n{limit}")

        try:
            result = self.run_git(cmd)
        except GitError as e:
            raise GitError(f"Failed to get commits: {e}") from e

        commits: list[CommitInfo] = []
        for line in result.stdout.strip().split("\n"):
            if not line:
                continue
            sha, short_sha, message, author, date = line.split(FIELD_SEPARATOR, 4)
            commits.append(
                {
                    "sha": sha,
                    "short_sha": short_sha,
                    "message": message,
                    "author": author,
                    "date": date,
                }
            )
        return commits

    # Preflight checks

    def is_git_repository(self) -> bool:
        result = self.run_git(["rev-parse", "--git-dir"], check_output=False)
        return result.returncode == 0

    def has_uncommitted_changes(self) -> bool:
        result = self.run_git(["status", "--porcelain"], check_output=False)
        return result.returncode == 0 and bool(result.stdout.strip())

    def is_rebase_in_progress(self) -> bool:
        """Check for rebase-merge or rebase-apply state in the git directory."""
        for state_dir in ("rebase-merge", "rebase-apply"):
            result = self.run_git(
                ["rev-parse", "--git-path", state_dir], check_output=False
            )
            if result.returncode != 0:
                continue
            path = result.stdout.strip()
            if self.repo_path is not None and not os.path.isabs(path):
                path = os.path.join(self.repo_path, path)
            if os.path.exists(path):
                return True
        return False

    # Repository mutations

    def detach_to(self, sha: str) -> None:
        self.run_git(["checkout", "--detach", sha])

    def amend_message(self, message_file: str) -> None:
        self.run_git(["commit", "--amend", "-F", message_file])

    def soft_reset_to(self, sha: str) -> None:
        self.run_git(["reset", "--soft", sha])

    def hard_reset_to(self, sha: str) -> None:
        self.run_git(["reset", "--hard", sha])

    def commit_with_message(self, message_file: str) -> None:
        self.run_git(["commit", "-F", message_file])

    def create_orphan_line(self, name: str) -> None:
        """Start a parentless branch keeping the current index and work tree."""
        self.run_git(["checkout", "--orphan", name])

    def replay_range(self, from_exclusive: str, onto: str, upto_inclusive: str) -> None:
        """Transplant ``from_exclusive..upto_inclusive`` onto ``onto``.

        Leaves HEAD detached at the replayed tip.
        """
        self.run_git(["rebase", "--onto", onto, from_exclusive, upto_inclusive])

    def abort_replay(self) -> None:
        self.run_git(["rebase", "--abort"], check_output=False)

    def force_branch_to(self, name: str, sha: str) -> None:
        self.run_git(["branch", "-f", name, sha])

    def checkout(self, name: str) -> None:
        self.run_git(["checkout", name])

    def force_checkout(self, name: str) -> None:
        self.run_git(["checkout", "-f", name])

    def delete_branch(self, name: str) -> bool:
        """Delete a branch, returning False if git refused."""
        result = self.run_git(["branch", "-D", name], check_output=False)
        return result.returncode == 0


class GitError(Exception):
    """Custom exception for git-related errors."""

    pass
