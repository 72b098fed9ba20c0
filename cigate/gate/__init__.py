"""Gate logic: trust, labels and statuses, CI trigger, public logs, auto-merge."""

from cigate.gate.automerge import AutoMerger, MergeOutcome, SweepCoordinator
from cigate.gate.labels import has_label, remove_label, set_status
from cigate.gate.public_log import PublicLogRewriter
from cigate.gate.trigger import CITrigger
from cigate.gate.trust import is_trusted

__all__ = [
    "AutoMerger",
    "CITrigger",
    "MergeOutcome",
    "PublicLogRewriter",
    "SweepCoordinator",
    "has_label",
    "is_trusted",
    "remove_label",
    "set_status",
]
