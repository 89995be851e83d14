from .queue import ModerationError, ModerationQueue, QueueEntry, build_entries, filter_entries, latest_actions

__all__ = [
    "ModerationError",
    "ModerationQueue",
    "QueueEntry",
    "build_entries",
    "filter_entries",
    "latest_actions",
]
