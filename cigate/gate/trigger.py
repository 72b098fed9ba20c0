"""Forward an approved pull request to Buildkite.

Order matters: the gate status is posted only after the build request
went through, so a network failure never leaves an "accepted" status
behind without a build.
"""

import logging

from cigate.adapters.base import GitPlatformAdapter
from cigate.adapters.buildkite import BuildkiteClient
from cigate.config import APPROVAL_LABEL, SUPPRESSION_LABEL
from cigate.gate.labels import has_label, remove_label, set_status
from cigate.utils import pipeline_slug, pull_request_branch

LOG = logging.getLogger("cigate.gate.trigger")

AFFECTED_FILES_KEY = "affected_files"


def build_message(pr_number: int, head_sha: str) -> str:
    return f"Pull Request #{pr_number} - {head_sha[:8]}"


class CITrigger:
    """Create a Buildkite build for a PR head and report it as a status."""

    def __init__(
        self,
        github: GitPlatformAdapter,
        buildkite: BuildkiteClient,
        status_context: str = "ci-gate",
    ) -> None:
        self._github = github
        self._buildkite = buildkite
        self._context = status_context

    def trigger(self, repo: str, pr_number: int, head_sha: str, base_branch: str | None = None) -> None:
        """Trigger CI for ``repo#pr_number`` at ``head_sha``.

        1. ``noCI`` label present: failure status, no build.
        2. Collect affected files for the build meta-data.
        3. Pipeline missing: success status saying so (the gate only gates).
        4. Otherwise create the build and post a success status.
        5. Remove the approval label so the next push needs approval again.
        """
        if has_label(self._github, repo, pr_number, SUPPRESSION_LABEL):
            LOG.info("%s#%s carries %s, not triggering CI", repo, pr_number, SUPPRESSION_LABEL)
            set_status(
                self._github,
                repo,
                head_sha,
                self._context,
                "failure",
                f"Remove the '{SUPPRESSION_LABEL}' label to run CI",
            )
            return

        branch = pull_request_branch(pr_number)
        slug = pipeline_slug(repo)
        affected_files = ":".join(self._github.list_pr_files(repo, pr_number))

        pipeline = self._buildkite.get_pipeline(slug)
        if pipeline is None:
            LOG.warning("No Buildkite pipeline %s for %s, skipping build", slug, repo)
            description = f"Pipeline '{slug}' is not configured, CI skipped"
        else:
            pull_request = {
                "pull_request_id": pr_number,
                "pull_request_repository": repo,
            }
            if base_branch:
                pull_request["pull_request_base_branch"] = base_branch
            build = self._buildkite.create_build(
                slug,
                commit=head_sha,
                branch=branch,
                message=build_message(pr_number, head_sha),
                meta_data={AFFECTED_FILES_KEY: affected_files},
                pull_request=pull_request,
            )
            LOG.info("Created build %s#%s for %s#%s (%s)", slug, build.number, repo, pr_number, build.web_url)
            description = "Pull Request accepted for CI"

        set_status(self._github, repo, head_sha, self._context, "success", description)
        remove_label(self._github, repo, pr_number, APPROVAL_LABEL)
