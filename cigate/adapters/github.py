"""GitHub API adapter."""

from typing import Any, Dict, List
from urllib.parse import quote

import requests

from cigate.adapters.base import GitPlatformAdapter
from cigate.errors import ErrorReason, GitPlatformError
from cigate.models import CombinedStatus, CommitStatus, PullRequest

PER_PAGE = 100
# GitHub stops listing PR files after 3000 entries
MAX_FILE_PAGES = 30

WRITE_PERMISSIONS = frozenset({"admin", "maintain", "write"})


def pull_request_from_api(repo: str, data: Dict[str, Any]) -> PullRequest:
    """Build PullRequest from a GitHub pull request object (API or webhook)."""
    head = data.get("head") or {}
    base = data.get("base") or {}
    user = data.get("user") or {}
    return PullRequest(
        repo=repo,
        number=data["number"],
        head_sha=head.get("sha", ""),
        base_branch=base.get("ref", ""),
        author=user.get("login", ""),
        title=data.get("title") or "",
        state=data.get("state", "open"),
        merged=bool(data.get("merged")),
        mergeable=data.get("mergeable"),
        labels=[lb["name"] for lb in (data.get("labels") or []) if isinstance(lb, dict) and "name" in lb],
    )


def _status_from_api(data: Dict[str, Any]) -> CommitStatus:
    return CommitStatus(
        context=data.get("context") or "",
        state=data.get("state", "pending"),
        description=data.get("description") or "",
        target_url=data.get("target_url"),
    )


class GitHubAdapter(GitPlatformAdapter):
    """GitHub REST API implementation."""

    def __init__(self, token: str, api_url: str = "https://api.github.com", timeout: float = 30) -> None:
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers["Authorization"] = f"token {token}"
        self._session.headers["Accept"] = "application/vnd.github.v3+json"

    def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] | None = None,
        json: Dict[str, Any] | None = None,
    ) -> requests.Response:
        url = f"{self._api_url}{path}" if path.startswith("/") else f"{self._api_url}/{path}"
        try:
            resp = self._session.request(method, url, params=params, json=json, timeout=self._timeout)
        except requests.RequestException as e:
            raise GitPlatformError(f"{method} {path}: {e}", reason=ErrorReason.NETWORK) from e
        if resp.status_code >= 400:
            msg = resp.text or resp.reason or str(resp.status_code)
            try:
                msg = resp.json().get("message", msg)
            except (ValueError, AttributeError):
                pass
            raise GitPlatformError(f"{method} {path}: {resp.status_code}: {msg}", status_code=resp.status_code)
        return resp

    def _get_json(self, path: str, params: Dict[str, Any] | None = None) -> Any:
        """GET and decode; a non-JSON 2xx body (proxy or captive page) is an upstream error."""
        resp = self._request("GET", path, params=params)
        try:
            return resp.json()
        except ValueError as e:
            raise GitPlatformError(f"GET {path}: invalid JSON response: {e}", reason=ErrorReason.OTHER) from e

    def get_pr(self, repo: str, pr_number: int) -> PullRequest:
        return pull_request_from_api(repo, self._get_json(f"/repos/{repo}/pulls/{pr_number}"))

    def list_open_prs(self, repo: str) -> List[PullRequest]:
        prs: List[PullRequest] = []
        page = 1
        while True:
            data = self._get_json(
                f"/repos/{repo}/pulls",
                params={"state": "open", "per_page": PER_PAGE, "page": page},
            ) or []
            prs.extend(pull_request_from_api(repo, d) for d in data)
            if len(data) < PER_PAGE:
                return prs
            page += 1

    def list_pr_files(self, repo: str, pr_number: int) -> List[str]:
        files: List[str] = []
        for page in range(1, MAX_FILE_PAGES + 1):
            data = self._get_json(
                f"/repos/{repo}/pulls/{pr_number}/files",
                params={"per_page": PER_PAGE, "page": page},
            ) or []
            files.extend(d["filename"] for d in data if d.get("filename"))
            if len(data) < PER_PAGE:
                break
        return files

    def merge_pr(
        self,
        repo: str,
        pr_number: int,
        sha: str,
        commit_message: str,
        merge_method: str = "merge",
    ) -> None:
        self._request(
            "PUT",
            f"/repos/{repo}/pulls/{pr_number}/merge",
            json={"sha": sha, "commit_message": commit_message, "merge_method": merge_method},
        )

    def get_issue_labels(self, repo: str, issue_number: int) -> List[str]:
        data = self._get_json(f"/repos/{repo}/issues/{issue_number}/labels", params={"per_page": PER_PAGE}) or []
        return [lb["name"] for lb in data if isinstance(lb, dict) and "name" in lb]

    def remove_issue_label(self, repo: str, issue_number: int, label: str) -> None:
        self._request("DELETE", f"/repos/{repo}/issues/{issue_number}/labels/{quote(label, safe='')}")

    def create_comment(self, repo: str, issue_number: int, body: str) -> None:
        self._request("POST", f"/repos/{repo}/issues/{issue_number}/comments", json={"body": body})

    def create_status(self, repo: str, sha: str, status: CommitStatus) -> None:
        self._request("POST", f"/repos/{repo}/statuses/{sha}", json=status.to_api())

    def get_combined_status(self, repo: str, sha: str) -> CombinedStatus:
        data = self._get_json(f"/repos/{repo}/commits/{sha}/status", params={"per_page": PER_PAGE}) or {}
        statuses = [_status_from_api(s) for s in (data.get("statuses") or [])]
        return CombinedStatus(
            sha=data.get("sha", sha),
            state=data.get("state", "pending"),
            statuses=statuses,
            total_count=data.get("total_count", len(statuses)),
        )

    def has_write_access(self, repo: str, username: str) -> bool:
        try:
            data = self._get_json(f"/repos/{repo}/collaborators/{quote(username, safe='')}/permission") or {}
        except GitPlatformError as e:
            if e.is_not_found:
                return False
            raise
        permission = data.get("permission") or "none"
        return permission in WRITE_PERMISSIONS
