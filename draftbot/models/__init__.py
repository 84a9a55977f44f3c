from draftbot.models.lead import Lead

__all__ = ["Lead"]
