"""Recognize Buildkite build and artifact URLs and build proxy URLs.

Matching is exact on purpose: anything that does not look like a build
page or artifact download of the configured organization is rejected,
so the proxy cannot be pointed at arbitrary URLs.
"""

import re

from pydantic import BaseModel

DEFAULT_WEB_URL = "https://buildkite.com"
DEFAULT_API_URL = "https://api.buildkite.com/v2"

PUBLIC_LOG_PATH = "/buildkite_public_log"
PUBLIC_ARTIFACT_PATH = "/buildkite_public_artifact"

_SLUG = r"[a-z0-9][a-z0-9-]*"
_BUILD_LOG_RE = re.compile(
    rf"^(?P<pipeline>{_SLUG})/builds/"
    r"(?:(?P<number>[1-9][0-9]*)|latest/(?P<branch>[A-Za-z0-9._/-]+))"
    r"(?:\?[^#\s]*)?$"
)
_ARTIFACT_RE = re.compile(
    rf"^pipelines/(?P<pipeline>{_SLUG})/builds/(?P<number>[1-9][0-9]*)"
    r"/jobs/(?P<job_id>[0-9a-fA-F-]+)/artifacts/(?P<artifact_id>[0-9a-fA-F-]+)/download$"
)


class BuildLogRef(BaseModel):
    """Build addressed by a Buildkite build page URL."""

    url: str
    pipeline: str
    build_number: int | None = None
    branch: str | None = None


class ArtifactRef(BaseModel):
    """Artifact addressed by a Buildkite artifact download API URL."""

    url: str
    pipeline: str
    build_number: int
    job_id: str
    artifact_id: str


def parse_build_log_url(url: object, org_slug: str, web_url: str = DEFAULT_WEB_URL) -> BuildLogRef | None:
    """Parse ``<web>/<org>/<pipeline>/builds/<N|latest/branch>[?query]``.

    Returns None for anything else (including non-strings).
    """
    if not isinstance(url, str):
        return None
    prefix = f"{web_url.rstrip('/')}/{org_slug}/"
    if not url.startswith(prefix):
        return None
    match = _BUILD_LOG_RE.match(url[len(prefix) :])
    if not match:
        return None
    number = match.group("number")
    return BuildLogRef(
        url=url,
        pipeline=match.group("pipeline"),
        build_number=int(number) if number else None,
        branch=match.group("branch"),
    )


def parse_artifact_url(url: object, org_slug: str, api_url: str = DEFAULT_API_URL) -> ArtifactRef | None:
    """Parse ``<api>/organizations/<org>/pipelines/<p>/builds/<N>/jobs/<id>/artifacts/<id>/download``."""
    if not isinstance(url, str):
        return None
    prefix = f"{api_url.rstrip('/')}/organizations/{org_slug}/"
    if not url.startswith(prefix):
        return None
    match = _ARTIFACT_RE.match(url[len(prefix) :])
    if not match:
        return None
    return ArtifactRef(
        url=url,
        pipeline=match.group("pipeline"),
        build_number=int(match.group("number")),
        job_id=match.group("job_id"),
        artifact_id=match.group("artifact_id"),
    )


def public_log_url(public_root: str, url: str) -> str:
    """Same-origin proxy URL for a build page; the original URL is kept verbatim."""
    return f"{public_root.rstrip('/')}{PUBLIC_LOG_PATH}?{url}"


def public_artifact_url(public_root: str, url: str) -> str:
    """Same-origin proxy URL for an artifact download."""
    return f"{public_root.rstrip('/')}{PUBLIC_ARTIFACT_PATH}?{url}"
