from sqlalchemy import JSON, Column, DateTime, String, func

from database import Base


class KeyValueEntry(Base):
    __tablename__ = "kv_entries"

    key = Column(String(255), primary_key=True, index=True)
    # Whole collection (usually a list of camelCase records) under one key
    value = Column(JSON, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
