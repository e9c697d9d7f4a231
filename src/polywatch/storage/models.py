"""SQLAlchemy database models."""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class Category(Base):
    """User-defined grouping of saved markets."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    # Global category when null
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    markets: Mapped[list["Market"]] = relationship(back_populates="category")


class Market(Base):
    """Local mirror of an upstream market."""

    __tablename__ = "markets"

    id: Mapped[int] = mapped_column(primary_key=True)
    external_id: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    title: Mapped[str] = mapped_column(String(1000))
    image: Mapped[str] = mapped_column(String(1000), default="")
    volume: Mapped[float] = mapped_column(Float, default=0.0)
    outcomes: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    category_id: Mapped[int | None] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    category: Mapped["Category | None"] = relationship(back_populates="markets")
    watchlist_entries: Mapped[list["WatchlistEntry"]] = relationship(
        back_populates="market", cascade="all, delete-orphan", passive_deletes=True
    )

    def to_dict(self) -> dict[str, Any]:
        """Render the camelCase wire shape."""
        return {
            "id": self.id,
            "polymarketId": self.external_id,
            "title": self.title,
            "image": self.image,
            "volume": self.volume,
            "outcomes": list(self.outcomes or []),
            "endDate": _isoformat(self.end_date),
            "categoryId": self.category_id,
            "createdAt": _isoformat(self.created_at),
            "updatedAt": _isoformat(self.updated_at),
        }


class WatchlistEntry(Base):
    """A market bookmarked by a user."""

    __tablename__ = "watchlist_entries"
    __table_args__ = (UniqueConstraint("user_id", "market_id"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    market_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("markets.id", ondelete="CASCADE"), index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    market: Mapped["Market"] = relationship(back_populates="watchlist_entries")
