"""
Mosque Models

A mosque is the facility an admin manages. Each mosque holds exactly one
current verification code; rotating the code overwrites the previous value
in the same row, so the old code stops working the moment the rotation
commits.
"""

from datetime import UTC, datetime

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from mosque_registry.modules.shared import BaseModel


class Mosque(BaseModel):
    """Mosque record with its rotating verification code."""

    __tablename__ = "mosques"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    location: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    contact_phone: Mapped[str] = mapped_column(String(20), nullable=False)
    contact_email: Mapped[str] = mapped_column(String(255), nullable=False)
    admin_instructions: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Congregation times by prayer name ("HH:MM"); maintained by the mosque admin
    prayer_times: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # Current shared secret; uniqueness is the data-layer backstop for the generator
    verification_code: Mapped[str] = mapped_column(
        String(32),
        unique=True,
        nullable=False,
    )
    verification_code_expires: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    version_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Mosque(id={self.id}, name={self.name})>"

    def code_is_expired(self, now: datetime | None = None) -> bool:
        """Codes are valid only while now < expires."""
        now = now or datetime.now(UTC)
        return now >= self.verification_code_expires

    def days_until_expiry(self, now: datetime | None = None) -> int:
        now = now or datetime.now(UTC)
        return max(0, (self.verification_code_expires - now).days)
