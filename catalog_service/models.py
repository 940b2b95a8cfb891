"""Defines the catalog tables (events, services, packages, vendors, stories) with the SQLAlchemy ORM."""

from sqlalchemy import Column, Integer, String, Float, Text, Boolean, ForeignKey, DateTime, JSON, func
from common.db import Base


class Event(Base):
    """An event category offered on the marketplace (Wedding, Corporate Event...)."""
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String(50), nullable=True)
    features = Column(JSON, nullable=True)

    # Free-form currency text as entered by the team, e.g. "₹15L - ₹50L"
    avg_budget = Column(String(100), nullable=True)
    duration = Column(String(100), nullable=True)
    team_size = Column(String(100), nullable=True)

    min_guests = Column(Integer, nullable=True)
    max_guests = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class EventService(Base):
    __tablename__ = "event_services"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(String(100), nullable=True)
    price_label = Column(String(100), nullable=True)
    category = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class EventPackage(Base):
    __tablename__ = "event_packages"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(String(100), nullable=True)
    features = Column(JSON, nullable=True)
    service_ids = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Vendor(Base):
    """
    A marketplace listing. Only rows with status 'active' are listed publicly.
    """
    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    category = Column(String(255), index=True, nullable=True)
    rating = Column(Float, nullable=True)
    events_count = Column(Integer, nullable=True)
    price = Column(String(100), nullable=True)
    price_label = Column(String(100), nullable=True)
    response_time = Column(String(100), nullable=True)
    badge = Column(String(50), nullable=True)
    image = Column(String(500), nullable=True)
    description = Column(Text, nullable=True)
    features = Column(JSON, nullable=True)
    location = Column(String(255), nullable=True)
    experience = Column(String(100), nullable=True)
    team_size = Column(String(100), nullable=True)
    availability = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    service_areas = Column(JSON, nullable=True)
    services_offered = Column(JSON, nullable=True)
    portfolio_images = Column(JSON, nullable=True)
    status = Column(String(20), nullable=False, default="active", index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class CommunityStory(Base):
    """Customer stories; published ones feed the event-type counts."""
    __tablename__ = "community_stories"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    event_type = Column(String(100), index=True, nullable=False)
    is_published = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
