"""Commit status models."""

from typing import List, Literal

from pydantic import BaseModel, Field

StatusState = Literal["pending", "success", "failure", "error"]

# GitHub rejects longer status descriptions
MAX_DESCRIPTION_LENGTH = 140


class CommitStatus(BaseModel):
    """One status report on a commit, keyed by (sha, context)."""

    context: str
    state: StatusState
    description: str = ""
    target_url: str | None = None

    def to_api(self) -> dict:
        data = {
            "state": self.state,
            "context": self.context,
            "description": self.description[:MAX_DESCRIPTION_LENGTH],
        }
        if self.target_url:
            data["target_url"] = self.target_url
        return data


class CombinedStatus(BaseModel):
    """Aggregate verdict over all statuses of a commit."""

    sha: str
    state: str
    statuses: List[CommitStatus] = Field(default_factory=list)
    total_count: int = 0
