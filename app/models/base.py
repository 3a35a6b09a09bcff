from sqlalchemy import Column, DateTime, String
from datetime import datetime, timezone
import uuid

from ..database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, the format every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_uuid() -> str:
    return str(uuid.uuid4())


# Abstract base with the columns shared by every table.
class BaseModel(Base):
    __abstract__ = True
    id = Column(String(36), primary_key=True, default=new_uuid)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
