"""Command-line interface for gitshine."""

import argparse
import logging
import sys
from typing import Optional

from . import __version__, ui
from .core import CommitInfo, GitError, GitRepository
from .rewrite import HistoryRewriter, OperationError
from .selection import SelectionError

DEFAULT_COMMIT_LIMIT = 20


def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}") from e
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def print_undo_guidance(original_head: str) -> None:
    print(f"\nTo undo: git reset --hard {original_head[:7]}")
    print("\nNote: If this branch has been pushed, you will need to force push:")
    print("  git push --force-with-lease")


def run_reword(rewriter: HistoryRewriter, commits: list[CommitInfo]) -> None:
    """Pick a commit, ask for its new message and reword it."""
    selected = ui.select_commit(commits)
    if selected is None:
        print("No commit selected. Exiting.")
        return

    print("\nCurrent commit message:")
    print(f'  "{selected["message"]}"\n')

    new_message = ui.edit_commit_message(selected["message"])
    if new_message == selected["message"]:
        print("\nCommit message unchanged. No action taken.")
        return

    print("\nNew commit message:")
    print(f'  "{new_message}"\n')

    if not ui.confirm_action(
        "Are you sure you want to edit this commit message? This will rewrite history."
    ):
        print("\nOperation cancelled.")
        return

    original_head = rewriter.reword_commit(selected["sha"], new_message)
    print_undo_guidance(original_head)


def run_squash(rewriter: HistoryRewriter, commits: list[CommitInfo]) -> None:
    """Pick a contiguous run of commits and squash it into one."""
    if len(commits) < 2:
        print("Need at least 2 commits to squash.")
        return

    selected = ui.select_commits_to_squash(commits)
    if not selected:
        print("\nNo commits selected. Exiting.")
        return

    squash_message = ui.input_squash_message(selected)

    print("\nSquash commit message:")
    print(f'  "{squash_message}"\n')

    if not ui.confirm_action(
        f"Are you sure you want to squash {len(selected)} commits? This will rewrite history."
    ):
        print("\nOperation cancelled.")
        return

    original_head = rewriter.squash_commits([c["sha"] for c in selected], squash_message)
    print_undo_guidance(original_head)


def preflight_check(repo: GitRepository) -> Optional[str]:
    """Return an error message if the repository is not ready to be rewritten."""
    if not repo.is_git_repository():
        return (
            "Error: Not a git repository\n"
            "Please run this command from within a git repository."
        )
    if repo.has_uncommitted_changes():
        return (
            "Error: You have uncommitted changes\n"
            "Please commit or stash them first:\n"
            "  git stash"
        )
    if repo.is_rebase_in_progress():
        return (
            "Error: A rebase is already in progress\n"
            "Please complete or abort it first:\n"
            "  git rebase --continue\n"
            "  git rebase --abort"
        )
    if not repo.current_branch():
        return (
            "Error: HEAD is detached\n"
            "Please check out the branch you want to rewrite first."
        )
    return None


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="gitshine",
        description="Shine up your git commits: reword a message or squash commits",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  gitshine
  gitshine --reword
  gitshine --squash --number 50
  gitshine --all
        """.strip(),
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-n",
        "--number",
        type=positive_int,
        default=DEFAULT_COMMIT_LIMIT,
        help=f"Number of commits to display (default: {DEFAULT_COMMIT_LIMIT})",
    )
    parser.add_argument(
        "-a",
        "--all",
        action="store_true",
        help="Show all commits",
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "-s",
        "--squash",
        action="store_true",
        help="Squash multiple commits into one",
    )
    mode.add_argument(
        "-r",
        "--reword",
        action="store_true",
        help="Reword a commit message",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log every git command that is run",
    )

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    repo = GitRepository()

    try:
        problem = preflight_check(repo)
        if problem:
            print(problem, file=sys.stderr)
            sys.exit(1)

        limit = None if args.all else args.number
        commits = repo.get_commits(limit)
        if not commits:
            print("No commits found in this repository.")
            return

        print("\ngitshine - Shine Up Your Git Commits\n")

        if args.squash:
            mode = "squash"
        elif args.reword:
            mode = "reword"
        else:
            mode = ui.select_operation()

        if mode is None:
            print("Operation cancelled.")
            return

        rewriter = HistoryRewriter(repo)
        if mode == "squash":
            run_squash(rewriter, commits)
        else:
            run_reword(rewriter, commits)

    except (KeyboardInterrupt, EOFError):
        print("\nOperation cancelled.")
    except OperationError as e:
        print(f"\nError: {e}", file=sys.stderr)
        if e.recovered:
            print(f"The repository was restored to {e.original_head[:7]}.")
        else:
            print(
                "Automatic recovery failed. Restore the previous state with:\n"
                f"  git checkout -f {e.branch} && git reset --hard {e.original_head}"
            )
        sys.exit(1)
    except (SelectionError, GitError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
