"""Interactive terminal prompts."""

from typing import Optional

from .core import CommitInfo
from .selection import (
    SelectionError,
    parse_selection,
    validate_message,
    validate_squash_selection,
)

SUBJECT_WIDTH = 50

OPERATIONS = [
    ("reword", "Reword a commit message"),
    ("squash", "Squash multiple commits into one"),
]


def truncate(text: str, length: int) -> str:
    """Truncate a string to a specified length."""
    if len(text) <= length:
        return text
    return text[: length - 3] + "..."


def format_commit(commit: CommitInfo, number: int) -> str:
    return (
        f"{number:>3}) {commit['short_sha']} {truncate(commit['message'], SUBJECT_WIDTH)}"
        f" ({commit['author']}, {commit['date']})"
    )


def print_commits(commits: list[CommitInfo]) -> None:
    for i, commit in enumerate(commits, 1):
        print(format_commit(commit, i))


def select_operation() -> Optional[str]:
    """Ask whether to reword or squash. Returns None when cancelled."""
    print("What would you like to do?")
    for i, (_name, label) in enumerate(OPERATIONS, 1):
        print(f"  {i}) {label}")

    while True:
        response = input("Choose an operation (blank to cancel): ").strip().lower()
        if not response or response == "q":
            return None
        for i, (name, _label) in enumerate(OPERATIONS, 1):
            if response in (str(i), name):
                return name
        print(f"Please enter a number between 1 and {len(OPERATIONS)}")


def select_commit(commits: list[CommitInfo]) -> Optional[CommitInfo]:
    """Display commits and let user select one."""
    print_commits(commits)

    while True:
        response = input("\nSelect a commit to edit (number, blank to cancel): ").strip()
        if not response or response.lower() == "q":
            return None
        if response.isdigit() and 1 <= int(response) <= len(commits):
            return commits[int(response) - 1]
        print(f"Please enter a number between 1 and {len(commits)}")


def edit_commit_message(current_message: str) -> str:
    """Prompt for a new message. A blank answer keeps the current one."""
    response = input("Enter new commit message (blank keeps current): ")
    if not response.strip():
        return current_message
    return validate_message(response)


def select_commits_to_squash(commits: list[CommitInfo]) -> Optional[list[CommitInfo]]:
    """Let the user pick a contiguous run, e.g. "1-3" or "2,3". Newest first."""
    print_commits(commits)

    while True:
        response = input(
            "\nSelect commits to squash (e.g. 1-3 or 1,2; blank to cancel): "
        ).strip()
        if not response or response.lower() == "q":
            return None
        try:
            positions = validate_squash_selection(
                parse_selection(response), total=len(commits)
            )
        except SelectionError as e:
            print(e)
            continue
        return [commits[position] for position in positions]


def input_squash_message(selected: list[CommitInfo]) -> str:
    """Prompt for the squash commit message, defaulting to the oldest message."""
    default = selected[-1]["message"]
    print("\nSquashing:")
    for commit in selected:
        print(f"  {commit['short_sha']} {truncate(commit['message'], SUBJECT_WIDTH)}")

    response = input(f"Enter message for the squashed commit [{default}]: ")
    if not response.strip():
        return default
    return validate_message(response)


def confirm_action(message: str) -> bool:
    """Ask for confirmation, defaulting to no."""
    response = input(f"{message} (y/N): ")
    return response.strip().lower() == "y"
