"""ci-gate: GitHub pull request gatekeeper for Buildkite CI."""

__version__ = "0.1.0"
