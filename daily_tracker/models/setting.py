"""Setting model for persisted application state."""

from sqlalchemy import Column, String, Text

from daily_tracker.database import Base


class Setting(Base):
    """Key-value row holding the external cursor and the status triple."""

    __tablename__ = "settings"

    key = Column(String(100), primary_key=True)
    value = Column(Text)

    def __repr__(self) -> str:
        return f"<Setting(key='{self.key}', value={self.value!r})>"
