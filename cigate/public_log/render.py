"""Render the public build log page with Jinja2.

The set of Buildkite build and job states is closed: an unknown state is
a contract violation and makes rendering fail with ValueError instead of
guessing a style.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import List

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape
from markupsafe import Markup

from cigate.models import Artifact, Build, Job
from cigate.public_log.timing import describe_timing

# state -> (css class, label)
STATES = {
    "creating": ("pending", "Creating"),
    "pending": ("pending", "Pending"),
    "scheduled": ("pending", "Scheduled"),
    "assigned": ("pending", "Assigned"),
    "accepted": ("pending", "Accepted"),
    "limiting": ("pending", "Limiting"),
    "limited": ("pending", "Limited"),
    "platform_limiting": ("pending", "Platform limiting"),
    "platform_limited": ("pending", "Platform limited"),
    "waiting": ("pending", "Waiting"),
    "blocked": ("pending", "Blocked"),
    "unblocked": ("pending", "Unblocked"),
    "running": ("running", "Running"),
    "failing": ("failing", "Failing"),
    "canceling": ("running", "Canceling"),
    "timing_out": ("running", "Timing out"),
    "passed": ("passed", "Passed"),
    "failed": ("failed", "Failed"),
    "timed_out": ("failed", "Timed out"),
    "broken": ("failed", "Broken"),
    "expired": ("failed", "Expired"),
    "waiting_failed": ("failed", "Waiting failed"),
    "blocked_failed": ("failed", "Blocked failed"),
    "unblocked_failed": ("failed", "Unblocked failed"),
    "canceled": ("canceled", "Canceled"),
    "skipped": ("canceled", "Skipped"),
    "not_run": ("canceled", "Not run"),
}

REFRESH_SECONDS = 30

_TEMPLATE_DIR = Path(__file__).parent


def _lookup(state: str) -> tuple[str, str]:
    try:
        return STATES[state]
    except KeyError:
        raise ValueError(f"Unknown Buildkite state: {state!r}") from None


def state_class(state: str) -> str:
    """CSS class for a build or job state."""
    return f"state-{_lookup(state)[0]}"


def state_label(state: str) -> str:
    """Human readable name of a build or job state."""
    return _lookup(state)[1]


@dataclass
class ArtifactLink:
    artifact: Artifact
    href: str


@dataclass
class JobSection:
    """Everything the page shows for one job."""

    job: Job
    anchor: str
    public: bool
    log_html: Markup | None = None
    artifacts: List[ArtifactLink] = field(default_factory=list)
    timing: str = ""


def _environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(_TEMPLATE_DIR),
        autoescape=select_autoescape(["html", "xml", "j2"]),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["state_class"] = state_class
    env.filters["state_label"] = state_label
    return env


_ENV = _environment()


def render_build_page(
    build: Build,
    sections: List[JobSection],
    self_url: str,
    now: datetime | None = None,
) -> str:
    """Full HTML page for a build: header, job index and per-job logs."""
    now = now or datetime.now(UTC)
    # fail before any output on an unknown state
    state_class(build.state)
    for section in sections:
        state_class(section.job.state)
        section.timing = describe_timing(section.job, now)
    return _ENV.get_template("build_log.html.j2").render(
        build=build,
        build_timing=describe_timing(build, now),
        sections=sections,
        finished=build.is_finished,
        refresh_seconds=REFRESH_SECONDS,
        self_url=self_url,
    )


def render_not_found(what: str, retry_url: str) -> str:
    """Short page for a build that is not (yet) among the recent builds."""
    return _ENV.get_template("not_found.html.j2").render(what=what, retry_url=retry_url)
