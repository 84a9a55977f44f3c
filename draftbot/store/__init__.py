from draftbot.store.base import RowStore, PRESERVING_STATUSES, REQUIRED_HEADERS

__all__ = ["RowStore", "PRESERVING_STATUSES", "REQUIRED_HEADERS"]
