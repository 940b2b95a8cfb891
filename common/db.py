"""Database connection shared by the services, using SQLAlchemy."""

import os
import logging
from sqlalchemy import create_engine, exc
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from fastapi import HTTPException
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()

# DATABASE_URL wins; otherwise build a MySQL URL from the individual credentials.
DATABASE_URL = os.getenv("DATABASE_URL")

if not DATABASE_URL:
    DB_USER = os.getenv("DB_USER")
    DB_PASS = os.getenv("DB_PASS")
    DB_HOST = os.getenv("DB_HOST")
    DB_NAME = os.getenv("DB_NAME")

    required_db_vars = {"DB_USER", "DB_PASS", "DB_HOST", "DB_NAME"}
    missing_vars = required_db_vars - set(os.environ)
    if missing_vars:
        logger.error(f"Missing database environment variables: {', '.join(sorted(missing_vars))}")

    DATABASE_URL = f"mysql+pymysql://{DB_USER}:{DB_PASS}@{DB_HOST}/{DB_NAME}"


def build_engine(url: str):
    """Create the engine; in-memory SQLite shares a single connection across threads."""
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, pool_pre_ping=True)


try:
    engine = build_engine(DATABASE_URL)
    with engine.connect() as connection:
        logger.info("Database connection established.")
except exc.SQLAlchemyError as e:
    logger.error(f"Could not connect to the database: {e}", exc_info=True)
    engine = None

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine) if engine else None

Base = declarative_base()


def get_db():
    """
    FastAPI dependency yielding one database session per request.
    The session is always closed when the request finishes.
    """
    if SessionLocal is None:
        logger.error("Database session factory is not initialised.")
        raise HTTPException(status_code=503, detail="Database service unavailable")

    db = SessionLocal()
    try:
        yield db
    except exc.SQLAlchemyError as e:
        logger.error(f"Database error during request: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal database error")
    finally:
        db.close()
