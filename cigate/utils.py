"""Shared utilities (pipeline slugs, PR branch names)."""


def pipeline_slug(repo: str) -> str:
    """Return the Buildkite pipeline slug for a repository.

    The slug is the repository basename with dots turned into dashes
    (``org/my.repo`` -> ``my.repo`` -> ``my-repo``). Case and other
    characters are kept as they are.
    """
    return repo.rstrip("/").rsplit("/", 1)[-1].replace(".", "-")


def pull_request_branch(pr_number: int) -> str:
    """Git ref CI checks out for a PR head (fetchable without fork access)."""
    return f"pull/{pr_number}/head"
