import logging
from typing import Optional

from fastapi import FastAPI, Depends, HTTPException, Query, status
from fastapi.responses import Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from common.db import engine, Base, get_db
from common.middleware import install_error_handlers, install_metrics
from .debug import debug_router
from .models import CommunityStory, Event, EventPackage, EventService, Vendor
from .schema_check import SCHEMA_VERSION, verify_schema
from .transforms import (
    count_event_types,
    transform_event,
    transform_package,
    transform_service,
    transform_vendor,
)

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

try:
    Base.metadata.create_all(bind=engine)
    logger.info("Catalog tables verified/created.")
    drift = verify_schema(engine)
    if drift:
        logger.warning(f"Live schema differs from contract v{SCHEMA_VERSION}: {drift}")
except Exception as e:
    logger.error(f"Error initializing database: {e}", exc_info=True)


app = FastAPI(
    title="Catalog Service - Evea",
    description="Read-only access to events, packages, event types and marketplace vendors.",
    version="1.0.0"
)

install_error_handlers(app)
install_metrics(app, "catalog")
app.include_router(debug_router)


@app.get("/metrics", tags=["Monitoring"])
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

@app.get("/health", tags=["Monitoring"])
def health_check():
    return {"status": "ok", "service": "catalog_service"}


# --- Events ---

@app.get("/events", tags=["Events"])
def list_events(id: Optional[int] = Query(None), db: Session = Depends(get_db)):
    """
    Returns every event reshaped for the frontend, or a single one when `id` is given.
    """
    try:
        if id is not None:
            event = db.query(Event).filter(Event.id == id).first()
            if not event:
                raise HTTPException(status.HTTP_404_NOT_FOUND, "Event not found")
            return {"success": True, "data": transform_event(event)}

        events = db.query(Event).order_by(Event.id).all()
    except SQLAlchemyError as e:
        logger.error(f"Events query failed: {e}", exc_info=True)
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch events")

    logger.info(f"Returning {len(events)} events")
    return {"success": True, "data": [transform_event(e) for e in events]}


@app.get("/events/{event_id}/services", tags=["Events"])
def list_event_services(event_id: int, db: Session = Depends(get_db)):
    try:
        services = (
            db.query(EventService)
            .filter(EventService.event_id == event_id)
            .order_by(EventService.name)
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"Error fetching services for event {event_id}: {e}", exc_info=True)
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch event services")

    return {"success": True, "data": [transform_service(s) for s in services]}


@app.get("/events/{event_id}/packages", tags=["Events"])
def list_event_packages(event_id: int, db: Session = Depends(get_db)):
    try:
        packages = (
            db.query(EventPackage)
            .filter(EventPackage.event_id == event_id)
            .order_by(EventPackage.name)
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"Error fetching packages for event {event_id}: {e}", exc_info=True)
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch event packages")

    return {"success": True, "data": [transform_package(p) for p in packages]}


@app.get("/event-types", tags=["Events"])
def list_event_types(db: Session = Depends(get_db)):
    """Counts published community stories per event type, most popular first."""
    try:
        rows = (
            db.query(CommunityStory.event_type)
            .filter(CommunityStory.is_published.is_(True))
            .order_by(CommunityStory.id)
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"Error fetching event types: {e}", exc_info=True)
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch event types")

    return {"success": True, "data": count_event_types(row.event_type for row in rows)}


# --- Vendors ---

@app.get("/vendors", tags=["Vendors"])
def list_vendors(
    category: Optional[str] = None,
    location: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """
    Marketplace listing of active vendors with optional filters and pagination.
    """
    query = db.query(Vendor).filter(Vendor.status == "active")

    if category and category != "All Vendors":
        query = query.filter(Vendor.category == category)
    if location:
        query = query.filter(Vendor.location.ilike(f"%{location}%"))
    if search:
        query = query.filter(or_(Vendor.name.ilike(f"%{search}%"), Vendor.description.ilike(f"%{search}%")))

    try:
        total = query.count()
        vendors = (
            query.order_by(Vendor.rating.desc(), Vendor.events_count.desc(), Vendor.id)
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"Vendor query failed: {e}", exc_info=True)
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch vendors")

    total_pages = (total + limit - 1) // limit
    return {
        "success": True,
        "vendors": [transform_vendor(v) for v in vendors],
        "pagination": {
            "currentPage": page,
            "totalPages": total_pages,
            "totalItems": total,
            "itemsPerPage": limit,
            "hasNextPage": page < total_pages,
            "hasPrevPage": page > 1,
        },
    }


@app.get("/vendors/{vendor_id}", tags=["Vendors"])
def get_vendor(vendor_id: int, db: Session = Depends(get_db)):
    try:
        vendor = db.query(Vendor).filter(Vendor.id == vendor_id, Vendor.status == "active").first()
    except SQLAlchemyError as e:
        logger.error(f"Vendor {vendor_id} fetch error: {e}", exc_info=True)
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch vendor")

    if not vendor:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Vendor not found")
    return {"success": True, "vendor": transform_vendor(vendor)}
