"""Data models for pull requests, commit statuses and CI builds (Pydantic)."""

from cigate.models.build import Artifact, Build, Job, Pipeline
from cigate.models.pr import PullRequest
from cigate.models.status import CombinedStatus, CommitStatus

__all__ = [
    "Artifact",
    "Build",
    "CombinedStatus",
    "CommitStatus",
    "Job",
    "Pipeline",
    "PullRequest",
]
