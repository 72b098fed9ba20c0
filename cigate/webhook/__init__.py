"""GitHub webhook intake: signature check, event parsing and routing."""

from cigate.webhook.events import EventKind, PullRequestEvent, StatusEvent
from cigate.webhook.handlers import EventRouter
from cigate.webhook.signature import verify_signature

__all__ = ["EventKind", "EventRouter", "PullRequestEvent", "StatusEvent", "verify_signature"]
