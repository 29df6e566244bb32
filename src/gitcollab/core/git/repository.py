"""
Git repository adapter for gitcollab.

Thin synchronous wrapper around the `git` command line. Every method runs a
single git command (or a short fixed sequence) with the working directory as
cwd and returns parsed text results. There is no policy here: deciding which
branch the working tree may be on is the job of the branch-mode machine.

Failures surface as GitError carrying the git stderr, except for the probe
methods (`remote_branch_exists`, `is_ignored`, `is_tracked`) where a non-zero
exit is the answer rather than an error.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


class GitError(Exception):
    """Exception raised when a git operation fails."""

    def __init__(self, message: str, command: list[str] | None = None, stderr: str = ""):
        super().__init__(message)
        self.command = command
        self.stderr = stderr

    def __str__(self) -> str:
        base = super().__str__()
        if self.stderr:
            return f"{base}: {self.stderr}"
        return base


class GitRepository:
    """
    Git operations against a single working directory.

    Example:
        >>> repo = GitRepository(Path("."))
        >>> repo.current_branch()
        'main'
        >>> repo.behind_count("main")
        0
    """

    DEFAULT_REMOTE = "origin"

    def __init__(
        self,
        working_dir: Path | None = None,
        *,
        remote: str = DEFAULT_REMOTE,
        timeout: int = 120,
    ) -> None:
        """
        Initialize the adapter.

        Args:
            working_dir: Repository working directory (defaults to cwd)
            remote: Name of the remote to fetch/push/pull against
            timeout: Per-command timeout in seconds
        """
        self.working_dir = (working_dir or Path.cwd()).resolve()
        self.remote = remote
        self.timeout = timeout

    def _run_git(
        self,
        args: list[str],
        *,
        check: bool = True,
        cwd: Path | None = None,
    ) -> str:
        """
        Run a git command and return its stdout.

        Args:
            args: Git command arguments (without "git" prefix).
            check: Whether to raise on non-zero exit code.
            cwd: Directory to run in (defaults to the working directory).

        Returns:
            Command stdout as string (stripped).

        Raises:
            GitError: If the command fails and check=True.
        """
        cmd = ["git"] + args

        logger.debug("Running git command: %s", " ".join(cmd))

        try:
            result = subprocess.run(
                cmd,
                cwd=cwd or self.working_dir,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise GitError(f"Git command timed out: {' '.join(cmd)}", command=cmd) from e
        except FileNotFoundError as e:
            if not (cwd or self.working_dir).is_dir():
                raise GitError(
                    f"Working directory is not accessible: {cwd or self.working_dir}",
                    command=cmd,
                ) from e
            raise GitError("git not found in PATH", command=cmd) from e
        except NotADirectoryError as e:
            raise GitError(f"Working directory is not accessible: {cwd or self.working_dir}") from e

        if check and result.returncode != 0:
            stderr = result.stderr.strip() if result.stderr else ""
            if not stderr and result.stdout:
                stderr = result.stdout.strip()
            raise GitError(
                f"Git command failed: {' '.join(cmd)}",
                command=cmd,
                stderr=stderr,
            )

        return result.stdout.strip() if result.stdout else ""

    def _probe(self, args: list[str]) -> bool:
        """Run a git command and report only whether it exited zero."""
        try:
            self._run_git(args)
            return True
        except GitError as e:
            logger.debug("Probe failed: %s", e)
            return False

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_repository(self) -> bool:
        """Check whether the working directory holds a `.git` directory."""
        return (self.working_dir / ".git").exists()

    def current_branch(self) -> str:
        """
        Get the checked-out branch name.

        Returns:
            Branch name, or an empty string on a detached HEAD.
        """
        return self._run_git(["branch", "--show-current"])

    def status_porcelain(self) -> list[str]:
        """Get `git status --porcelain` output as a list of lines."""
        output = self._run_git(["status", "--porcelain"])
        return [line for line in output.splitlines() if line.strip()]

    def has_uncommitted_changes(self) -> bool:
        """Check whether the working tree has staged, unstaged or untracked changes."""
        return bool(self.status_porcelain())

    def behind_count(self, branch: str) -> int:
        """
        Count commits on the remote-tracking branch that HEAD lacks.

        Args:
            branch: Branch name (compared against `<remote>/<branch>`)

        Returns:
            Number of commits HEAD is behind.

        Raises:
            GitError: If the remote-tracking branch does not exist.
        """
        output = self._run_git(["rev-list", "--count", f"HEAD..{self.remote}/{branch}"])
        try:
            return int(output or "0")
        except ValueError as e:
            raise GitError(f"Unexpected rev-list output: {output!r}") from e

    def list_branches(self, *, all_refs: bool = False, remote_only: bool = False) -> list[str]:
        """
        List branch names.

        Args:
            all_refs: Include remote-tracking refs (`branch -a`)
            remote_only: Only remote-tracking refs (`branch -r`)

        Returns:
            Branch names with the current-branch marker stripped. Remote refs
            keep their `remotes/<remote>/` or `<remote>/` prefix; symbolic
            `HEAD ->` entries are skipped.
        """
        args = ["branch"]
        if remote_only:
            args.append("-r")
        elif all_refs:
            args.append("-a")

        branches = []
        for line in self._run_git(args).splitlines():
            name = line.replace("*", "", 1).strip()
            if not name or "->" in name:
                continue
            branches.append(name)
        return branches

    def remote_branch_exists(self, branch: str) -> bool:
        """Check whether `branch` exists on the remote (`ls-remote --exit-code`)."""
        return self._probe(["ls-remote", "--exit-code", self.remote, f"refs/heads/{branch}"])

    def local_branch_exists(self, branch: str) -> bool:
        """Check whether a local branch exists."""
        return self._probe(["rev-parse", "--verify", "--quiet", f"refs/heads/{branch}"])

    def remote_default_branch(self) -> str | None:
        """
        Ask the remote for its HEAD branch (`git remote show <remote>`).

        Returns:
            Default branch name, or None if the remote does not say.
        """
        output = self._run_git(["remote", "show", self.remote])
        for line in output.splitlines():
            line = line.strip()
            if line.startswith("HEAD branch:"):
                name = line[len("HEAD branch:") :].strip()
                if name and name != "(unknown)":
                    return name
        return None

    def is_ignored(self, path: str) -> bool:
        """Check whether `path` is ignored by git."""
        return self._probe(["check-ignore", "--quiet", path])

    def is_tracked(self, path: str) -> bool:
        """Check whether `path` is tracked by git."""
        return self._probe(["ls-files", "--error-unmatch", path])

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def checkout(self, branch: str, *, create: bool = False) -> None:
        """Check out `branch`, creating it from HEAD when `create` is set."""
        args = ["checkout", "-b", branch] if create else ["checkout", branch]
        self._run_git(args)

    def add_all(self) -> None:
        """Stage every change in the working tree (`git add .`)."""
        self._run_git(["add", "."])

    def commit(self, message: str) -> None:
        """Commit staged changes with `message`."""
        self._run_git(["commit", "-m", message])

    def commit_all(self, message: str) -> None:
        """Stage everything and commit it."""
        self.add_all()
        self.commit(message)

    def fetch(self) -> None:
        """Fetch from the remote."""
        self._run_git(["fetch", self.remote])

    def pull(self, branch: str) -> None:
        """Pull `branch` from the remote into the current branch."""
        self._run_git(["pull", self.remote, branch])

    def push(self, branch: str, *, set_upstream: bool = False) -> None:
        """Push `branch` to the remote."""
        args = ["push"]
        if set_upstream:
            args.append("-u")
        self._run_git(args + [self.remote, branch])

    def rename_current_branch(self, name: str) -> None:
        """Force-rename the current branch (`branch -M`)."""
        self._run_git(["branch", "-M", name])

    def delete_branch(self, name: str) -> None:
        """Delete a fully merged local branch (`branch -d`)."""
        self._run_git(["branch", "-d", name])

    def init(self) -> None:
        """Create a repository in the working directory."""
        self._run_git(["init"])

    def clone(self, url: str, destination: Path) -> None:
        """Clone `url` into `destination`."""
        self._run_git(["clone", url, str(destination)])

    def set_user(self, name: str | None = None, email: str | None = None) -> None:
        """Set the repository-local commit identity; empty values are skipped."""
        if name:
            self._run_git(["config", "user.name", name])
        if email:
            self._run_git(["config", "user.email", email])

    def add_remote(self, url: str) -> None:
        """Register `url` as the remote."""
        self._run_git(["remote", "add", self.remote, url])
