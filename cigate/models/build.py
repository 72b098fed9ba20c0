"""Buildkite pipeline, build, job and artifact models.

Timestamps are filled in as a build or job progresses. Only read
``started_at`` once the state has reached running, and ``finished_at``
once it is finished; the ``started``/``finished`` properties enforce it.
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

PUBLIC_JOB_MARKER = "[public]"

# States that imply the build or job has begun running
RUN_STATES = frozenset(
    {
        "running",
        "failing",
        "passed",
        "failed",
        "canceling",
        "canceled",
        "timing_out",
        "timed_out",
    }
)

FINISHED_STATES = frozenset(
    {
        "passed",
        "failed",
        "canceled",
        "timed_out",
        "skipped",
        "not_run",
        "broken",
        "expired",
        "waiting_failed",
        "blocked_failed",
        "unblocked_failed",
    }
)


class Pipeline(BaseModel):
    """Buildkite pipeline."""

    slug: str
    name: str = ""
    web_url: str | None = None


class Artifact(BaseModel):
    """File uploaded by a job."""

    id: str
    job_id: str | None = None
    filename: str = ""
    path: str = ""
    file_size: int | None = None
    download_url: str | None = None


class _Progress(BaseModel):
    state: str
    scheduled_at: datetime | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def started(self) -> datetime | None:
        return self.started_at if self.state in RUN_STATES else None

    @property
    def finished(self) -> datetime | None:
        return self.finished_at if self.state in FINISHED_STATES else None

    @property
    def is_finished(self) -> bool:
        return self.state in FINISHED_STATES


class Job(_Progress):
    """Step within a build."""

    id: str
    state: str = ""
    type: str = "script"
    name: str | None = None
    command: str | None = None
    web_url: str | None = None

    @property
    def is_public(self) -> bool:
        return PUBLIC_JOB_MARKER in (self.name or "").lower()

    @property
    def display_name(self) -> str:
        name = self.name or self.command or self.id
        idx = name.lower().find(PUBLIC_JOB_MARKER)
        while idx >= 0:
            name = name[:idx] + name[idx + len(PUBLIC_JOB_MARKER) :]
            idx = name.lower().find(PUBLIC_JOB_MARKER)
        return name.strip()


class Build(_Progress):
    """Buildkite build, keyed by (pipeline, number)."""

    id: str
    number: int
    message: str = ""
    branch: str = ""
    commit: str = ""
    web_url: str | None = None
    pipeline: str = ""
    jobs: List[Job] = Field(default_factory=list)

    @property
    def script_jobs(self) -> List[Job]:
        return [job for job in self.jobs if job.type == "script"]
