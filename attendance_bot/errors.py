class PersistenceUnavailable(Exception):
    """Loading or saving an activity log failed (storage unreachable, commit error...)."""


class MalformedEvent(Exception):
    """An inbound chat event is missing a field the bot needs (sender, chat)."""
