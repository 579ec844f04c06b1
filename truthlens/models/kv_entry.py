from sqlalchemy import Column, String, DateTime, JSON, func
from truthlens.database import Base


class KVEntry(Base):
    __tablename__ = "kv_store"

    key = Column(String(128), primary_key=True, index=True)  # analysis_... | video_...
    value = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
