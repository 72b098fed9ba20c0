"""Pull request reference model."""

from typing import List

from pydantic import BaseModel, Field


class PullRequest(BaseModel):
    """Pull request as observed on one event or API read.

    Never cached across events. ``mergeable`` is None while GitHub is
    still computing it. ``labels`` is a snapshot; use the label helpers
    for decisions.
    """

    repo: str
    number: int
    head_sha: str
    base_branch: str = ""
    author: str = ""
    title: str = ""
    state: str = "open"
    merged: bool = False
    mergeable: bool | None = None
    labels: List[str] = Field(default_factory=list)

    @property
    def is_open(self) -> bool:
        return self.state == "open"

    @property
    def short_sha(self) -> str:
        return self.head_sha[:8]
