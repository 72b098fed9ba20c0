"""Human readable timing for builds and jobs."""

from datetime import UTC, datetime

from cigate.models import Build, Job

_UNITS = (("day", 86400), ("hour", 3600), ("minute", 60))


def humanize_duration(seconds: float) -> str:
    """Compact duration: ``45s``, ``2m 5s``, ``1h 3m``."""
    total = max(0, int(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h {minutes}m"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def humanize_ago(then: datetime, now: datetime) -> str:
    """Relative time: ``just now``, ``3 minutes ago``, ``1 day ago``."""
    seconds = (now - then).total_seconds()
    for name, size in _UNITS:
        if seconds >= size:
            count = int(seconds // size)
            return f"{count} {name}{'s' if count != 1 else ''} ago"
    return "just now"


def describe_timing(item: Build | Job, now: datetime | None = None) -> str:
    """One line timing summary for a build or job.

    Timestamps are only consulted for the life stage the state implies.
    """
    now = now or datetime.now(UTC)
    started = item.started
    finished = item.finished

    if started and finished:
        ran = humanize_duration((finished - started).total_seconds())
        return f"Ran for {ran}, finished {humanize_ago(finished, now)}"
    if started:
        return f"Running for {humanize_duration((now - started).total_seconds())}"
    if finished:
        return f"Finished {humanize_ago(finished, now)}"
    if item.scheduled_at:
        return f"Queued {humanize_ago(item.scheduled_at, now)}"
    return ""
