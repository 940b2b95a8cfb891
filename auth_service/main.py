import logging
from fastapi import FastAPI, Depends, HTTPException, status
from fastapi.responses import Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from common.db import engine, Base, get_db
from common.middleware import install_error_handlers, install_metrics
from . import schemas
from .authenticator import (
    AuthError,
    Credentials,
    PasswordAuthenticator,
    get_authenticator,
)
from .models import User
from .utils import create_session_token, decode_token, get_password_hash

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# Create tables on startup if they do not exist
try:
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables verified/created.")
except Exception as e:
    logger.error(f"Error initializing database: {e}", exc_info=True)


app = FastAPI(
    title="Auth Service - Evea",
    description="Handles customer signup, password login and session token verification.",
    version="1.0.0"
)

install_error_handlers(app)
install_metrics(app, "auth")


# --- Health and metrics endpoints ---
@app.get("/metrics", tags=["Monitoring"])
def metrics():
    """Exposes application metrics for Prometheus."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

@app.get("/health", tags=["Monitoring"])
def health_check():
    """Performs a basic health check of the service."""
    return {"status": "ok", "service": "auth_service"}


# --- API endpoints ---

@app.post("/login", response_model=schemas.AuthResponse, response_model_exclude_none=True, tags=["Authentication"])
def login(body: schemas.LoginRequest, authenticator: PasswordAuthenticator = Depends(get_authenticator)):
    """
    Authenticates a user by email and password.
    Returns a 7-day session token and the user without any password field.
    """
    logger.info(f"Login attempt for user: {body.email}")
    try:
        result = authenticator.authenticate(Credentials(email=body.email, password=body.password))
    except SQLAlchemyError as e:
        logger.error(f"Database error during login for {body.email}: {e}", exc_info=True)
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    if isinstance(result, AuthError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=result.reason,
            headers={"WWW-Authenticate": "Bearer"},
        )

    return {"success": True, "token": result.token, "user": result.user}


@app.post("/passport-login", response_model=schemas.AuthResponse, response_model_exclude_none=True, tags=["Authentication"])
def passport_login(body: schemas.LoginRequest, authenticator: PasswordAuthenticator = Depends(get_authenticator)):
    """Legacy login path kept for old clients; shares the same authenticator and token format."""
    logger.info("Legacy /passport-login used, routing through the password authenticator")
    return login(body, authenticator)


@app.post("/signup", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED, tags=["Authentication"])
def signup(user: schemas.SignupRequest, db: Session = Depends(get_db)):
    """
    Registers a new user and logs them in straight away.
    """
    logger.info(f"Signup attempt for email: {user.email}")
    existing = db.query(User).filter(User.email == user.email).first()
    if existing:
        logger.warning(f"Signup failed: email {user.email} already exists.")
        raise HTTPException(status.HTTP_409_CONFLICT, "User with this email already exists")

    new_user = User(
        full_name=user.full_name,
        email=user.email,
        mobile_number=user.mobile_number,
        location=user.location,
        password_hash=get_password_hash(user.password),
    )

    try:
        db.add(new_user)
        db.commit()
        db.refresh(new_user)
        logger.info(f"User created with ID: {new_user.id} for email: {user.email}")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error during user creation for email {user.email}: {e}", exc_info=True)
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Could not save user")

    token = create_session_token(new_user.id, new_user.email, new_user.full_name)
    return {"success": True, "message": "User created successfully", "token": token, "user": new_user}


@app.get("/users/{user_id}", tags=["Users"])
def get_user_by_id(user_id: int, db: Session = Depends(get_db)):
    """
    Returns the public profile of a user.
    Used by the gateway for /api/auth/me.
    """
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        logger.warning(f"User with ID {user_id} not found.")
        raise HTTPException(status.HTTP_404_NOT_FOUND, "User not found")

    return {"success": True, "user": schemas.UserResponse.model_validate(user).model_dump(by_alias=True)}


@app.get("/verify", response_model=schemas.TokenPayload, tags=["Internal"])
def verify(token: str):
    """
    Validates a session token (query parameter 'token') and returns its claims.
    Used by the API gateway.
    """
    payload = decode_token(token)
    if payload is None or "sub" not in payload:
        logger.warning("Verification attempted with an invalid, expired or subject-less token.")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    return {
        "sub": payload["sub"],
        "email": payload.get("email"),
        "name": payload.get("name"),
        "exp": payload.get("exp"),
    }
