from sqlalchemy import Column, Integer, String, Text
from draftbot.database import Base


class Lead(Base):
    """
    Local mirror of the outreach sheet. One row per sheet row, same columns.

    Row numbering follows the sheet: the header is row 1, so a lead's
    row_index is id + 1.
    """

    __tablename__ = "leads"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(32), default="")
    date_added = Column(String(40), default="")
    username = Column(String(100), nullable=False, default="", index=True)
    source = Column(String(50), default="")
    date_sent = Column(String(40), default="")
    message = Column(Text, default="")
    status = Column(String(50), default="", index=True)
    name = Column(String(200), default="")
    bio = Column(Text, default="")

    @property
    def row_index(self) -> int:
        return self.id + 1

    def to_cells(self) -> list[str]:
        return [
            self.session_id or "",
            self.date_added or "",
            self.username or "",
            self.source or "",
            self.date_sent or "",
            self.message or "",
            self.status or "",
            self.name or "",
            self.bio or "",
        ]
