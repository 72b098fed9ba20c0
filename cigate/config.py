"""Configuration loading from environment and optional YAML.

Every setting can come from the environment (the usual deployment) or
from a YAML file whose sections mirror the classes below. Secrets may
also be read from files (Docker secrets) via ``<NAME>_FILE``. A missing
required value raises ConfigError, which is fatal at startup.
"""

import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from cigate.errors import ConfigError

APPROVAL_LABEL = "CI"
SUPPRESSION_LABEL = "noCI"
AUTOMERGE_LABEL = "automerge"


def parse_csv(value: str | None) -> frozenset[str]:
    """Split a comma separated list, trimming blanks and dropping empties."""
    if not value:
        return frozenset()
    return frozenset(item.strip() for item in value.split(",") if item.strip())


class BuildkiteConfig(BaseSettings):
    """Buildkite API access and public log exposure."""

    model_config = SettingsConfigDict(env_prefix="BUILDKITE_", extra="ignore")

    # Scopes: read_builds, write_builds, read_build_logs, read_artifacts,
    # read_organizations, read_pipelines
    token: str = Field(min_length=1, description="API access token")
    org_slug: str = Field(min_length=1, description="Organization slug")
    pipeline_public_log_whitelist: str = Field(
        default="", description="Comma separated pipeline slugs whose logs may be shown publicly"
    )
    expose_all_logs: bool = Field(default=False, description="Show logs of all jobs, not only [public] ones")
    api_url: str = Field(default="https://api.buildkite.com/v2", description="REST API base URL")
    web_url: str = Field(default="https://buildkite.com", description="Web UI base URL (build log links)")

    @property
    def public_log_pipelines(self) -> frozenset[str]:
        return parse_csv(self.pipeline_public_log_whitelist)


class GitHubConfig(BaseSettings):
    """GitHub API and webhook settings."""

    model_config = SettingsConfigDict(env_prefix="GITHUB_", extra="ignore")

    token: str = Field(min_length=1, description="Token with repo access (labels, statuses, merges)")
    webhook_secret: str = Field(min_length=1, description="Shared secret for webhook signatures")
    api_url: str = Field(default="https://api.github.com", description="API base URL")
    webhook_path: str = Field(default="/github", description="Webhook URL path")


class ServerConfig(BaseSettings):
    """HTTP server settings."""

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=5000, ge=1, le=65535, description="Bind port")
    public_url_root: str = Field(min_length=1, description="Externally reachable base URL of this service")

    @property
    def public_root(self) -> str:
        return self.public_url_root.rstrip("/")


class GateConfig(BaseSettings):
    """Trust and status policy."""

    model_config = SettingsConfigDict(env_prefix="CI_", extra="ignore")

    user_whitelist: str = Field(
        default="", description="Comma separated logins granted CI without write access"
    )
    public_pipeline_repos: str = Field(
        default="", description="Comma separated repos whose CI logs are already public"
    )
    status_context: str = Field(default="ci-gate", description="Commit status context")

    @property
    def trusted_users(self) -> frozenset[str]:
        return parse_csv(self.user_whitelist)

    @property
    def public_repos(self) -> frozenset[str]:
        return parse_csv(self.public_pipeline_repos)


class LoggingConfig(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOGGING_", extra="ignore")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - [%(threadName)s] %(message)s",
        description="Log format",
    )


class AppConfig(BaseModel):
    """Root application config."""

    buildkite: BuildkiteConfig
    github: GitHubConfig
    server: ServerConfig
    gate: GateConfig = Field(default_factory=GateConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# (section, field) -> env var holding a path to the secret
_SECRET_FILES = {
    ("buildkite", "token"): "BUILDKITE_TOKEN_FILE",
    ("github", "token"): "GITHUB_TOKEN_FILE",
    ("github", "webhook_secret"): "GITHUB_WEBHOOK_SECRET_FILE",
}

_SECTIONS: dict[str, type[BaseSettings]] = {
    "buildkite": BuildkiteConfig,
    "github": GitHubConfig,
    "server": ServerConfig,
    "gate": GateConfig,
    "logging": LoggingConfig,
}


def _substitute_env(value: Any, env: Mapping[str, str]) -> Any:
    """Replace ${VAR} and $VAR strings with values from env."""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            key = value[2:-1].strip()
            return env.get(key, value)
        if value.startswith("$") and not value.startswith("${"):
            key = value[1:].strip()
            return env.get(key, value)
        return value
    if isinstance(value, dict):
        return {k: _substitute_env(v, env) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env(v, env) for v in value]
    return value


def _env_name(settings_cls: type[BaseSettings], field: str) -> str:
    prefix = settings_cls.model_config.get("env_prefix") or ""
    return f"{prefix}{field}".upper()


def _build_section(
    name: str,
    raw: dict[str, Any],
    env: Mapping[str, str],
    problems: list[str],
) -> BaseSettings | None:
    """Build one settings section; append validation problems instead of raising."""
    settings_cls = _SECTIONS[name]
    values = dict(raw)
    for (section, field), file_key in _SECRET_FILES.items():
        if section != name or values.get(field) or env.get(_env_name(settings_cls, field)):
            continue
        file_path = env.get(file_key)
        if file_path:
            values[field] = Path(file_path).read_text().strip()
    try:
        return settings_cls(**values)
    except ValidationError as e:
        for err in e.errors():
            field = str(err["loc"][0]) if err.get("loc") else "?"
            problems.append(f"{_env_name(settings_cls, field)} ({err['msg']})")
        return None


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load config from environment and, when present, a YAML file.

    YAML sections (buildkite, github, server, gate, logging) override the
    environment; ``${VAR}`` references inside YAML are substituted.

    Raises:
        ConfigError: a required value is missing or a value is invalid.
    """
    env = os.environ
    raw: dict[str, Any] = {}
    if config_path is not None and config_path.is_file():
        raw = _substitute_env(yaml.safe_load(config_path.read_text()) or {}, env)
        if not isinstance(raw, dict):
            raise ConfigError(f"{config_path}: top level must be a mapping")

    sections: dict[str, Any] = {}
    problems: list[str] = []
    for name in _SECTIONS:
        sections[name] = _build_section(name, raw.get(name) or {}, env, problems)
    if problems:
        raise ConfigError("Invalid or missing configuration: " + ", ".join(problems))
    return AppConfig(**sections)
