from typing import Optional

from pydantic import BaseModel, field_validator


class Row(BaseModel):
    """One outreach candidate as read from the row store."""

    row_index: int
    username: str
    source: str = ""
    status: str = ""
    message: str = ""
    session_id: Optional[str] = None
    date_added: str = ""
    date_sent: str = ""
    name: str = ""
    bio: str = ""

    @field_validator("username")
    @classmethod
    def normalize_username(cls, v: str) -> str:
        return (v or "").strip().lower()

    @field_validator("source", "status", "message", "date_added", "date_sent", "name", "bio")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return (v or "").strip()


class SelectionStats(BaseModel):
    primary_eligible: int = 0
    fallback_eligible: int = 0
    selected_primary: int = 0
    selected_fallback: int = 0
    total_selected: int = 0
