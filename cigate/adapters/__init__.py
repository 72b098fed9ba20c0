"""Source-host and CI backend adapters."""

from cigate.adapters.base import GitPlatformAdapter, GitPlatformError
from cigate.adapters.buildkite import BuildkiteClient
from cigate.adapters.github import GitHubAdapter

__all__ = ["BuildkiteClient", "GitPlatformAdapter", "GitPlatformError", "GitHubAdapter"]
