"""Public, login-free view of Buildkite builds for whitelisted pipelines."""

from cigate.public_log.render import render_build_page, render_not_found
from cigate.public_log.urls import (
    PUBLIC_ARTIFACT_PATH,
    PUBLIC_LOG_PATH,
    parse_artifact_url,
    parse_build_log_url,
    public_artifact_url,
    public_log_url,
)
from cigate.public_log.views import PublicLogViews, ViewResponse

__all__ = [
    "PUBLIC_ARTIFACT_PATH",
    "PUBLIC_LOG_PATH",
    "PublicLogViews",
    "ViewResponse",
    "parse_artifact_url",
    "parse_build_log_url",
    "public_artifact_url",
    "public_log_url",
    "render_build_page",
    "render_not_found",
]
