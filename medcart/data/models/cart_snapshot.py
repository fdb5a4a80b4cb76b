# medcart/data/models/cart_snapshot.py
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text

from medcart.data.database import Base


class CartSnapshotModel(Base):
    __tablename__ = "cart_snapshots"

    key = Column(String(200), primary_key=True)
    blob = Column(Text, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
