"""Development-only probes of the live schema and table contents.

Served only when DEBUG_ENDPOINTS_ENABLED is true; otherwise every route answers 404.
"""

import os
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from dotenv import load_dotenv

from common.db import get_db
from auth_service.models import User
from .models import Vendor
from .schema_check import EXPECTED_COLUMNS, SCHEMA_VERSION, verify_schema
from .transforms import transform_vendor

load_dotenv()

logger = logging.getLogger(__name__)

DEBUG_ENDPOINTS_ENABLED = os.getenv("DEBUG_ENDPOINTS_ENABLED", "false").strip().lower() in ("1", "true", "yes", "on")

# Column spellings the frontend has used for the users table over time
USER_COLUMN_CANDIDATES = [
    "id", "full_name", "fullName", "email", "mobile_number", "mobileNumber",
    "location", "password", "password_hash", "created_at", "updated_at",
]


def require_debug_enabled():
    if not DEBUG_ENDPOINTS_ENABLED:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Not Found")


debug_router = APIRouter(tags=["Debug"], dependencies=[Depends(require_debug_enabled)])


@debug_router.get("/check-schema")
def check_schema(db: Session = Depends(get_db)):
    """Reports which candidate user columns exist, plus drift against the schema contract."""
    try:
        engine = db.get_bind()
        present = {column["name"] for column in inspect(engine).get_columns("users")}
        drift = verify_schema(engine)
    except SQLAlchemyError as e:
        logger.error(f"Schema check failed: {e}", exc_info=True)
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to check schema")

    return {
        "success": True,
        "schema": {name: {"exists": name in present} for name in USER_COLUMN_CANDIDATES},
        "contract": {"version": SCHEMA_VERSION, "drift": drift},
    }


@debug_router.get("/debug-users")
def debug_users(db: Session = Depends(get_db)):
    """Lists users, newest first. Password hashes are never included."""
    try:
        users = db.query(User).order_by(User.created_at.desc()).all()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching users: {e}", exc_info=True)
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch users")

    return {
        "success": True,
        "users": [
            {
                "id": user.id,
                "full_name": user.full_name,
                "email": user.email,
                "mobile_number": user.mobile_number,
                "location": user.location,
                "has_password": bool(user.password_hash),
                "created_at": user.created_at.isoformat() if user.created_at else None,
            }
            for user in users
        ],
        "count": len(users),
    }


@debug_router.get("/debug-vendors")
def debug_vendors(db: Session = Depends(get_db)):
    """Dumps the vendors table columns and a few sample rows."""
    try:
        columns = inspect(db.get_bind()).get_columns("vendors")
        vendors = db.query(Vendor).limit(3).all()
    except SQLAlchemyError as e:
        logger.error(f"Debug vendors error: {e}", exc_info=True)
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    return {
        "success": True,
        "columns": [{"name": c["name"], "type": str(c["type"]), "nullable": c["nullable"]} for c in columns],
        "expected": EXPECTED_COLUMNS["vendors"],
        "vendors": [transform_vendor(v) for v in vendors],
    }


@debug_router.get("/debug-vendors-simple")
def debug_vendors_simple(db: Session = Depends(get_db)):
    try:
        vendors = db.query(Vendor).limit(2).all()
        count = db.query(func.count(Vendor.id)).scalar()
    except SQLAlchemyError as e:
        logger.error(f"Debug vendors simple error: {e}", exc_info=True)
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    return {
        "success": True,
        "vendors": [transform_vendor(v) for v in vendors],
        "vendorCount": count or 0,
    }
