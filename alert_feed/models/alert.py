from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from alert_feed.core.database import Base


class Alert(Base):
    """
    Feed entry persisted under a tracked keyword.

    ``id`` is the surrogate key used as ordering tie-break; the identifier
    supplied by the feed lives in ``entry_id``.
    """
    __tablename__ = "alerts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entry_id: Mapped[str] = mapped_column(String(1000), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    link: Mapped[str] = mapped_column(String(2000), nullable=False, default="")
    published: Mapped[str] = mapped_column(String(64), nullable=False)
    source: Mapped[str] = mapped_column(String(500), nullable=False)
    keyword: Mapped[str] = mapped_column(String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("title", "published", name="uq_alerts_title_published"),
        Index("ix_alerts_keyword_published", "keyword", "published"),
        Index("ix_alerts_link", "link"),
        Index("ix_alerts_created_at", "created_at"),
    )
