from datetime import datetime

from sqlalchemy import Column, DateTime, Index, Integer, String

from adminpanel.core.database import Base


class AdminAccount(Base):
    """Dashboard administrator stored in the local database."""

    __tablename__ = "admin_accounts"
    __table_args__ = (
        Index("ix_admin_accounts_email", "email", unique=True),
    )

    id = Column(Integer, primary_key=True)
    email = Column(String, nullable=False)
    first_name = Column(String, nullable=False, default="")
    last_name = Column(String, nullable=False, default="")
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


__all__ = ["AdminAccount"]
