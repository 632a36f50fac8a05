# tutorbill/models/setting.py
from sqlalchemy import Column, String, JSON, DateTime
from sqlalchemy.sql import func
from tutorbill.models.base import Base


class AppSetting(Base):
    """Keyed settings documents; the business profile lives under key "business"."""

    __tablename__ = "settings"

    key = Column(String(64), primary_key=True)
    value = Column(JSON, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<AppSetting(key={self.key})>"
