"""Data session entries shared across process runs."""

import json
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from . import Base


class SharedSession(Base):
    """One persisted data session, keyed by its derived store key."""

    __tablename__ = "shared_data_sessions"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)  # JSON encoded entry
    saved_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), onupdate=func.now(),
    )

    def get_value(self) -> Any:
        """Get the stored value decoded from JSON."""
        return json.loads(self.value)

    def set_value(self, value: Any) -> None:
        """Set the stored value, JSON encoding it."""
        self.value = json.dumps(value)
