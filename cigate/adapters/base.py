"""Abstract base for Git platform adapters."""

from abc import ABC, abstractmethod
from typing import List

from cigate.errors import GitPlatformError
from cigate.models import CombinedStatus, CommitStatus, PullRequest

__all__ = ["GitPlatformAdapter", "GitPlatformError"]


class GitPlatformAdapter(ABC):
    """Interface to the source-hosting platform used by the gate.

    Every method is a live remote call; nothing is cached. Failures raise
    GitPlatformError with a reason code.
    """

    @abstractmethod
    def get_pr(self, repo: str, pr_number: int) -> PullRequest:
        """Fetch PR by number (includes the mergeable tri-state)."""
        ...

    @abstractmethod
    def list_open_prs(self, repo: str) -> List[PullRequest]:
        """List open PRs of a repository."""
        ...

    @abstractmethod
    def list_pr_files(self, repo: str, pr_number: int) -> List[str]:
        """Return filenames changed by a PR."""
        ...

    @abstractmethod
    def merge_pr(
        self,
        repo: str,
        pr_number: int,
        sha: str,
        commit_message: str,
        merge_method: str = "merge",
    ) -> None:
        """Merge a PR if its head is still ``sha``."""
        ...

    @abstractmethod
    def get_issue_labels(self, repo: str, issue_number: int) -> List[str]:
        """Return label names on an issue or PR."""
        ...

    @abstractmethod
    def remove_issue_label(self, repo: str, issue_number: int, label: str) -> None:
        """Remove one label; raises GitPlatformError(NOT_FOUND) if absent."""
        ...

    @abstractmethod
    def create_comment(self, repo: str, issue_number: int, body: str) -> None:
        """Post a comment on an issue or PR."""
        ...

    @abstractmethod
    def create_status(self, repo: str, sha: str, status: CommitStatus) -> None:
        """Post a commit status (supersedes the same context)."""
        ...

    @abstractmethod
    def get_combined_status(self, repo: str, sha: str) -> CombinedStatus:
        """Fetch the combined status of a commit."""
        ...

    @abstractmethod
    def has_write_access(self, repo: str, username: str) -> bool:
        """True if the user is a collaborator with write access."""
        ...
