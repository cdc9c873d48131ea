from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Identity, Index, Integer, Text, func, literal_column
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from appletree.database.base import Base

# Mutable business fields, in declaration order. Insert and update write exactly these.
MUTABLE_FIELDS: tuple[str, ...] = (
    "name", "level", "contact", "phone", "email", "website", "address", "mode",
)


class School(Base):
    """
    SQLAlchemy model for a school record.

    `id`, `created_at` and `version` are assigned by the database. `version`
    starts at 1 and is bumped by every successful update; it doubles as the
    optimistic-concurrency token.

    Instances handed out by SchoolRepository are transient: they are built from
    result rows and never added to a session, so editing one has no effect
    until it is passed back to `SchoolRepository.update`.
    """
    __tablename__ = "schools"

    id: Mapped[int] = mapped_column(
        BigInteger,
        Identity(always=False),
        primary_key=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(Text, nullable=False)
    level: Mapped[str] = mapped_column(Text, nullable=False)
    contact: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    website: Mapped[str] = mapped_column(Text, nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)

    # Delivery modes, e.g. ["online", "in-person"]; a small set stored as text[]
    mode: Mapped[list[str]] = mapped_column(ARRAY(Text), nullable=False)

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        server_default="1",
    )

    __table_args__ = (
        CheckConstraint("version >= 1", name="version_positive"),
    )

    def __repr__(self) -> str:
        return f"<School(id={self.id!r}, name={self.name!r}, version={self.version!r})>"


# Full-text search on name/level uses the 'simple' configuration; mode filtering uses @>.
Index(
    "ix_schools_name_fts",
    func.to_tsvector(literal_column("'simple'"), School.name),
    postgresql_using="gin",
)
Index(
    "ix_schools_level_fts",
    func.to_tsvector(literal_column("'simple'"), School.level),
    postgresql_using="gin",
)
Index("ix_schools_mode", School.mode, postgresql_using="gin")
