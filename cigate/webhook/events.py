"""Webhook event kinds and payload schemas for GitHub deliveries.

Handled events:
- ping: logged only
- pull_request: opened, reopened, synchronize, labeled
- pull_request_review: any action (re-evaluates automerge)
- status: commit status created or updated
"""

from enum import StrEnum
from typing import Any, Dict

from pydantic import BaseModel

from cigate.adapters.github import pull_request_from_api
from cigate.models import CommitStatus, PullRequest


class EventKind(StrEnum):
    """Value of the X-GitHub-Event header for events the router handles."""

    PING = "ping"
    PULL_REQUEST = "pull_request"
    PULL_REQUEST_REVIEW = "pull_request_review"
    STATUS = "status"

    @classmethod
    def parse(cls, name: str) -> "EventKind | None":
        """Return the kind for a header value, None for unhandled events."""
        try:
            return cls(name)
        except ValueError:
            return None


class PullRequestEvent(BaseModel):
    """pull_request webhook (also used for pull_request_review)."""

    action: str
    repo: str
    pull_request: PullRequest
    label: str | None = None


class StatusEvent(BaseModel):
    """status webhook: a commit status was posted."""

    repo: str
    sha: str
    status: CommitStatus


def _repo_name(payload: Dict[str, Any]) -> str:
    repo = (payload.get("repository") or {}).get("full_name") or payload.get("name")
    if not repo:
        raise ValueError("payload has no repository full_name")
    return repo


def parse_pull_request_event(payload: Dict[str, Any]) -> PullRequestEvent:
    """Build PullRequestEvent from a pull_request or pull_request_review payload."""
    repo = _repo_name(payload)
    pull = payload.get("pull_request")
    if not pull:
        raise ValueError("payload has no pull_request")
    label = (payload.get("label") or {}).get("name")
    return PullRequestEvent(
        action=payload.get("action") or "",
        repo=repo,
        pull_request=pull_request_from_api(repo, pull),
        label=label,
    )


def parse_status_event(payload: Dict[str, Any]) -> StatusEvent:
    """Build StatusEvent from a status payload."""
    return StatusEvent(
        repo=_repo_name(payload),
        sha=payload["sha"],
        status=CommitStatus(
            context=payload.get("context") or "",
            state=payload.get("state", "pending"),
            description=payload.get("description") or "",
            target_url=payload.get("target_url"),
        ),
    )
