from sqlalchemy import Column, String, DateTime, Integer, JSON, UniqueConstraint
from sqlalchemy.sql import func
from partybar.database import Base


class Record(Base):
    """
    One stored record of a named collection (events, drinks, orders, coin_codes,
    sessions). ``data`` holds the entity's JSON; ``version`` increments on every
    write and backs the optimistic concurrency check. ``seq`` gives insertion order.
    """
    __tablename__ = "records"
    __table_args__ = (UniqueConstraint("collection", "key", name="uq_records_collection_key"),)

    seq        = Column(Integer,     primary_key=True, autoincrement=True)
    collection = Column(String(30),  nullable=False, index=True)
    key        = Column(String(64),  nullable=False)
    data       = Column(JSON,        nullable=False)
    version    = Column(Integer,     default=1, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )
