"""ci-gate entry point.

Loads configuration, checks Buildkite access, wires the gate components
and serves webhooks and public logs. Usage: cigate [--config PATH] [--check].
"""

import argparse
import logging
import sys
from pathlib import Path

from cigate.adapters import BuildkiteClient, GitHubAdapter
from cigate.config import AppConfig, load_config
from cigate.errors import ConfigError, UpstreamError
from cigate.gate import AutoMerger, CITrigger, PublicLogRewriter, SweepCoordinator
from cigate.logging import CigateLogging
from cigate.public_log.views import PublicLogViews
from cigate.webhook.handlers import EventRouter
from cigate.webhook.server import run_webhook_server

LOG = logging.getLogger("cigate.main")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        prog="cigate",
        description="ci-gate - gate GitHub pull requests into Buildkite CI",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Optional YAML config file (environment is used otherwise)",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only load and validate config, then exit",
    )
    return parser.parse_args(argv)


def build_router(config: AppConfig, github: GitHubAdapter, buildkite: BuildkiteClient) -> EventRouter:
    """Wire gate components into an EventRouter."""
    automerger = AutoMerger(github)
    return EventRouter(
        config,
        github,
        trigger=CITrigger(github, buildkite, config.gate.status_context),
        rewriter=PublicLogRewriter(
            github,
            org_slug=buildkite.org_slug,
            public_root=config.server.public_root,
            public_repos=config.gate.public_repos,
            web_url=config.buildkite.web_url,
        ),
        automerger=automerger,
        coordinator=SweepCoordinator(automerger.sweep),
    )


def main(argv: list[str] | None = None) -> int:
    """Entry point: load config, resolve the Buildkite org, serve."""
    args = parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        logging.basicConfig(level=logging.INFO)
        LOG.error("%s", e)
        return 1

    CigateLogging(config.logging).setup()

    if args.check:
        print("Config OK:", config.buildkite.org_slug, config.server.public_root)
        return 0

    github = GitHubAdapter(config.github.token, config.github.api_url)
    buildkite = BuildkiteClient(config.buildkite.token, config.buildkite.org_slug, config.buildkite.api_url)
    try:
        org = buildkite.get_organization()
    except UpstreamError as e:
        LOG.error("Cannot access Buildkite organization %s: %s", config.buildkite.org_slug, e)
        return 1
    LOG.info(
        "ci-gate started | org=%s | public pipelines=%s | public root=%s",
        org.get("slug", config.buildkite.org_slug),
        ",".join(sorted(config.buildkite.public_log_pipelines)) or "-",
        config.server.public_root,
    )

    router = build_router(config, github, buildkite)
    views = PublicLogViews(buildkite, config.buildkite, config.server.public_root)
    try:
        run_webhook_server(config, router, views)
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        LOG.exception("Fatal error: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
