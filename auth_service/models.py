"""Defines the 'users' table with the SQLAlchemy ORM."""

from sqlalchemy import Column, Integer, String, DateTime, func
from common.db import Base


class User(Base):
    """
    SQLAlchemy model for the 'users' table.
    Holds identity and credential data for marketplace customers.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    full_name = Column(String(255), nullable=False)

    # Login identifier, one account per email
    email = Column(String(255), unique=True, index=True, nullable=False)

    # bcrypt hash; accounts created through other channels may not have one yet
    password_hash = Column(String(255), nullable=True)

    mobile_number = Column(String(20), nullable=True)
    location = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
