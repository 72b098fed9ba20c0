"""Shared fixtures: an in-memory GitHub and test configuration."""

from typing import Dict, List, Set, Tuple

import pytest

from cigate.adapters.base import GitPlatformAdapter
from cigate.config import AppConfig, BuildkiteConfig, GateConfig, GitHubConfig, LoggingConfig, ServerConfig
from cigate.errors import GitPlatformError
from cigate.models import CombinedStatus, CommitStatus, PullRequest


class FakeGitHub(GitPlatformAdapter):
    """GitHub state kept in dicts; records every mutation in ``calls``."""

    def __init__(self) -> None:
        self.prs: Dict[Tuple[str, int], PullRequest] = {}
        self.labels: Dict[Tuple[str, int], List[str]] = {}
        self.files: Dict[Tuple[str, int], List[str]] = {}
        self.writers: Set[str] = set()
        self.combined: Dict[str, CombinedStatus] = {}
        self.statuses: List[Tuple[str, str, CommitStatus]] = []
        self.comments: List[Tuple[str, int, str]] = []
        self.merges: List[Tuple[str, int, str, str, str]] = []
        self.calls: List[str] = []

    def add_pr(self, pr: PullRequest, labels: List[str] | None = None) -> None:
        self.prs[(pr.repo, pr.number)] = pr
        self.labels[(pr.repo, pr.number)] = list(labels or [])

    def get_pr(self, repo: str, pr_number: int) -> PullRequest:
        pr = self.prs[(repo, pr_number)]
        return pr.model_copy(update={"labels": list(self.labels[(repo, pr_number)])})

    def list_open_prs(self, repo: str) -> List[PullRequest]:
        return [self.get_pr(r, n) for (r, n), pr in self.prs.items() if r == repo and pr.is_open]

    def list_pr_files(self, repo: str, pr_number: int) -> List[str]:
        return list(self.files.get((repo, pr_number), []))

    def merge_pr(self, repo: str, pr_number: int, sha: str, commit_message: str, merge_method: str = "merge") -> None:
        self.calls.append("merge_pr")
        self.merges.append((repo, pr_number, sha, commit_message, merge_method))

    def get_issue_labels(self, repo: str, issue_number: int) -> List[str]:
        return list(self.labels.get((repo, issue_number), []))

    def remove_issue_label(self, repo: str, issue_number: int, label: str) -> None:
        self.calls.append(f"remove_label:{label}")
        current = self.labels.get((repo, issue_number), [])
        for name in current:
            if name.lower() == label.lower():
                current.remove(name)
                return
        raise GitPlatformError("Label does not exist", status_code=404)

    def create_comment(self, repo: str, issue_number: int, body: str) -> None:
        self.calls.append("create_comment")
        self.comments.append((repo, issue_number, body))

    def create_status(self, repo: str, sha: str, status: CommitStatus) -> None:
        self.calls.append(f"create_status:{status.state}")
        self.statuses.append((repo, sha, status))

    def get_combined_status(self, repo: str, sha: str) -> CombinedStatus:
        return self.combined.get(sha, CombinedStatus(sha=sha, state="pending"))

    def has_write_access(self, repo: str, username: str) -> bool:
        return username in self.writers


@pytest.fixture
def github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def app_config() -> AppConfig:
    """Config built from explicit values (environment is not consulted for these)."""
    return AppConfig(
        buildkite=BuildkiteConfig(
            token="bk-token",
            org_slug="acme",
            pipeline_public_log_whitelist="widget,gadget",
            expose_all_logs=False,
        ),
        github=GitHubConfig(token="gh-token", webhook_secret="s3cret", webhook_path="/github"),
        server=ServerConfig(host="127.0.0.1", port=5000, public_url_root="https://ci.example.com/"),
        gate=GateConfig(user_whitelist="friend", public_pipeline_repos="acme/open", status_context="ci-gate"),
        logging=LoggingConfig(level="INFO", format="%(message)s"),
    )
