"""Shared fixtures: throwaway git repositories built with pygit2."""

import tempfile
from pathlib import Path

import pygit2
import pytest


class RepositoryBuilder:
    """Utility class for building test git repositories."""

    def __init__(self, repo_path: Path):
        """Initialize repository builder."""
        self.repo_path = repo_path
        self.repo = pygit2.init_repository(str(repo_path), bare=False, initial_head="main")
        self.author = pygit2.Signature("Test Author", "test@example.com")
        self.committer = pygit2.Signature("Test Committer", "test@example.com")
        # git itself commits during rewrites, so it needs an identity too
        self.repo.config["user.name"] = "Test Committer"
        self.repo.config["user.email"] = "test@example.com"
        self.repo.config["commit.gpgsign"] = "false"
        self.commits: list[str] = []

    def create_file(self, path: str, content: str) -> Path:
        """Create a file with given content."""
        file_path = self.repo_path / path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content)
        return file_path

    def add_and_commit(self, files: dict[str, str], message: str) -> str:
        """Add files and create a commit, returning its full identifier."""
        for file_path, content in files.items():
            self.create_file(file_path, content)
            self.repo.index.add(file_path)
        self.repo.index.write()

        tree_id = self.repo.index.write_tree()

        try:
            parents = [self.repo.head.target]
        except pygit2.GitError:
            parents = []

        commit_id = self.repo.create_commit(
            "HEAD", self.author, self.committer, message, tree_id, parents
        )
        self.commits.append(str(commit_id))
        return str(commit_id)

    def open(self) -> pygit2.Repository:
        """Reopen the repository so state written by the git CLI is visible."""
        return pygit2.Repository(str(self.repo_path))

    def history(self) -> list[pygit2.Commit]:
        """First-parent history of HEAD, newest first."""
        repo = self.open()
        commit = repo[repo.head.target]
        commits = [commit]
        while commit.parents:
            commit = commit.parents[0]
            commits.append(commit)
        return commits

    def messages(self) -> list[str]:
        return [commit.message.strip() for commit in self.history()]

    def tree_of(self, sha: str) -> str:
        return str(self.open()[sha].tree_id)

    def branch_names(self) -> set[str]:
        return set(self.open().branches.local)

    def head_branch(self) -> str:
        repo = self.open()
        assert not repo.head_is_detached, "HEAD should be attached to a branch"
        return repo.head.shorthand


@pytest.fixture
def temp_dir() -> Path:
    """Create a temporary directory for repositories."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def linear_repo(temp_dir: Path) -> RepositoryBuilder:
    """C1 (root) --- C2 --- C3 (main), each commit adding its own file."""
    builder = RepositoryBuilder(temp_dir / "repo_linear")
    builder.add_and_commit({"file1.py": "print('one')\n"}, "C1: Add file1")
    builder.add_and_commit({"file2.py": "print('two')\n"}, "C2: Add file2")
    builder.add_and_commit({"file3.py": "print('three')\n"}, "C3: Add file3")
    return builder


@pytest.fixture
def long_repo(temp_dir: Path) -> RepositoryBuilder:
    """C1 --- C2 --- C3 --- C4 --- C5 (main), touching shared and separate files."""
    builder = RepositoryBuilder(temp_dir / "repo_long")
    builder.add_and_commit({"app.py": "# app\n"}, "C1: Create app")
    builder.add_and_commit({"app.py": "# app\nprint('v2')\n"}, "C2: Update app")
    builder.add_and_commit({"util.py": "# util\n"}, "C3: Add util")
    builder.add_and_commit(
        {"app.py": "# app\nprint('v2')\nprint('v4')\n"}, "C4: Update app again"
    )
    builder.add_and_commit({"README.md": "# Project\n"}, "C5: Add readme")
    return builder
