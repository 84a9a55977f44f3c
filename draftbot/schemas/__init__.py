from draftbot.schemas.row import Row, SelectionStats

__all__ = ["Row", "SelectionStats"]
