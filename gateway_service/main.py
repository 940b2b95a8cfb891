"""API gateway for Evea. Single public entry point: verifies session tokens and routes /api/* to the services."""

import os
import httpx
import logging
import time
from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI, Request, HTTPException, status, Depends
from fastapi.responses import JSONResponse, Response
from dotenv import load_dotenv
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

from common.middleware import GENERIC_ERROR, error_response, install_error_handlers

load_dotenv()

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# --- Internal service URLs ---
AUTH_URL = os.getenv("AUTH_SERVICE_URL")
CATALOG_URL = os.getenv("CATALOG_SERVICE_URL")
MEDIA_URL = os.getenv("MEDIA_SERVICE_URL")
MESSAGING_URL = os.getenv("MESSAGING_SERVICE_URL")

required_urls = {"AUTH_SERVICE_URL", "CATALOG_SERVICE_URL", "MEDIA_SERVICE_URL", "MESSAGING_SERVICE_URL"}
missing_urls = required_urls - set(os.environ)
if missing_urls:
    logger.critical(f"Missing internal service URLs: {', '.join(sorted(missing_urls))}")
    raise EnvironmentError(f"Missing internal service URLs: {', '.join(sorted(missing_urls))}")

app = FastAPI(
    title="API Gateway - Evea",
    description="Single entry point for the event marketplace services.",
    version="1.0.0"
)

install_error_handlers(app)

# --- CORS ---
origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Routes that need a verified session token ---
PROTECTED_ROUTES = [
    "/api/auth/me",
    "/api/media",
    "/api/check-schema",
    "/api/debug-",
]

# Reusable async HTTP client
client = httpx.AsyncClient(timeout=15.0)

REQUEST_COUNT = Counter(
    "gateway_requests_total",
    "Total requests processed by API Gateway",
    ["method", "endpoint", "status_code"]
)
REQUEST_LATENCY = Histogram(
    "gateway_request_latency_seconds",
    "Request latency in seconds for API Gateway",
    ["endpoint"]
)


async def verify_bearer_token(request: Request) -> int:
    """Checks the Authorization header against the auth service and returns the user id."""
    token = request.headers.get("Authorization")
    if not token or not token.startswith("Bearer "):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Missing or invalid Authorization header")

    token_value = token.split(" ", 1)[1]
    try:
        verify_response = await client.get(f"{AUTH_URL}/verify", params={"token": token_value})
    except httpx.RequestError:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Authentication service unavailable")

    if verify_response.status_code != 200:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid or expired token")

    try:
        return int(verify_response.json()["sub"])
    except (KeyError, ValueError, TypeError):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token payload")


# --- Middleware (security and metrics) ---

@app.middleware("http")
async def combined_middleware(request: Request, call_next):
    """Authenticates protected routes and records request metrics."""
    start_time = time.time()
    response = None
    status_code = 500
    endpoint = request.url.path

    try:
        request.state.user_id = None
        if request.method != "OPTIONS" and any(endpoint.startswith(p) for p in PROTECTED_ROUTES):
            request.state.user_id = await verify_bearer_token(request)

        response = await call_next(request)
        status_code = response.status_code

    except HTTPException as http_exc:
        status_code = http_exc.status_code
        response = error_response(status_code, http_exc.detail)

    except Exception as exc:
        logger.error(f"Unexpected middleware error on {endpoint}: {exc}", exc_info=True)
        response = error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR)
        status_code = 500
    finally:
        latency = time.time() - start_time
        final_status_code = getattr(response, 'status_code', status_code)
        REQUEST_LATENCY.labels(endpoint=endpoint).observe(latency)
        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=final_status_code
        ).inc()

    return response


async def get_current_user_id(request: Request) -> int:
    """
    Dependency returning the user id verified by the middleware.
    Used on every protected endpoint.
    """
    user_id = getattr(request.state, "user_id", None)
    if user_id is None:
        logger.error(f"get_current_user_id called on a route without an authenticated user ({request.url.path})")
        raise HTTPException(status.HTTP_403_FORBIDDEN, "User ID not available")
    return user_id


@app.get("/metrics", tags=["Monitoring"])
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

@app.get("/health", tags=["Monitoring"])
def health_check():
    return {"status": "ok", "service": "gateway_service"}


# --- Proxy helper ---
async def forward_request(request: Request, target_url: str):
    """Forwards the incoming request to an internal service and relays its answer."""
    headers_to_forward = {}
    user_id = getattr(request.state, "user_id", None)
    if user_id:
        headers_to_forward["X-User-Id"] = str(user_id)

    params = dict(request.query_params)

    try:
        if request.method in ["POST", "PUT", "PATCH"]:
            content_type = request.headers.get("content-type", "")

            if "application/json" in content_type.lower():
                try:
                    payload = await request.json()
                except ValueError:
                    raise HTTPException(status.HTTP_400_BAD_REQUEST, "Malformed JSON body")
                response = await client.request(request.method, target_url, json=payload, params=params, headers=headers_to_forward)
            else:
                # Multipart and other bodies are relayed byte for byte with their boundary intact
                headers_to_forward["content-type"] = content_type
                response = await client.request(request.method, target_url, content=await request.body(), params=params, headers=headers_to_forward)
        else:
            response = await client.request(request.method, target_url, params=params, headers=headers_to_forward)

        try:
            return JSONResponse(status_code=response.status_code, content=response.json())
        except ValueError:
            return Response(status_code=response.status_code, content=response.content)

    except httpx.RequestError as e:
        logger.error(f"Connection error forwarding to {target_url}: {e}", exc_info=True)
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Internal service unavailable")


# --- Public endpoints: auth ---

@app.post("/api/auth/login", tags=["Authentication"])
async def proxy_login(request: Request):
    logger.info("Proxying request to /auth/login")
    return await forward_request(request, f"{AUTH_URL}/login")

@app.post("/api/auth/passport-login", tags=["Authentication"])
async def proxy_passport_login(request: Request):
    logger.info("Proxying request to /auth/passport-login")
    return await forward_request(request, f"{AUTH_URL}/passport-login")

@app.post("/api/auth/signup", tags=["Authentication"])
async def proxy_signup(request: Request):
    logger.info("Proxying request to /auth/signup")
    return await forward_request(request, f"{AUTH_URL}/signup")

@app.get("/api/auth/me", tags=["Authentication"])
async def proxy_me(request: Request, user_id: int = Depends(get_current_user_id)):
    """Returns the profile of the authenticated user."""
    return await forward_request(request, f"{AUTH_URL}/users/{user_id}")


# --- Public endpoints: catalog ---

@app.get("/api/events", tags=["Catalog"])
async def proxy_events(request: Request):
    return await forward_request(request, f"{CATALOG_URL}/events")

@app.get("/api/events/{event_id}/services", tags=["Catalog"])
async def proxy_event_services(event_id: int, request: Request):
    return await forward_request(request, f"{CATALOG_URL}/events/{event_id}/services")

@app.get("/api/events/{event_id}/packages", tags=["Catalog"])
async def proxy_event_packages(event_id: int, request: Request):
    return await forward_request(request, f"{CATALOG_URL}/events/{event_id}/packages")

@app.get("/api/event-types", tags=["Catalog"])
async def proxy_event_types(request: Request):
    return await forward_request(request, f"{CATALOG_URL}/event-types")

@app.get("/api/vendors", tags=["Catalog"])
async def proxy_vendors(request: Request):
    return await forward_request(request, f"{CATALOG_URL}/vendors")

@app.get("/api/vendors/{vendor_id}", tags=["Catalog"])
async def proxy_vendor(vendor_id: int, request: Request):
    return await forward_request(request, f"{CATALOG_URL}/vendors/{vendor_id}")


# --- Public endpoints: messaging ---

@app.post("/api/whatsapp/send", tags=["Messaging"])
async def proxy_whatsapp_send(request: Request):
    logger.info("Proxying request to /whatsapp/send")
    return await forward_request(request, f"{MESSAGING_URL}/whatsapp/send")


# --- Protected endpoints: media ---

@app.post("/api/media/upload", tags=["Media"])
async def proxy_upload(request: Request, user_id: int = Depends(get_current_user_id)):
    logger.info(f"Proxying image upload for user_id: {user_id}")
    return await forward_request(request, f"{MEDIA_URL}/upload")

@app.post("/api/media/upload-multiple", tags=["Media"])
async def proxy_upload_multiple(request: Request, user_id: int = Depends(get_current_user_id)):
    logger.info(f"Proxying batch image upload for user_id: {user_id}")
    return await forward_request(request, f"{MEDIA_URL}/upload-multiple")

@app.delete("/api/media/images/{public_id:path}", tags=["Media"])
async def proxy_delete_image(public_id: str, request: Request, user_id: int = Depends(get_current_user_id)):
    logger.info(f"Proxying image delete of {public_id} for user_id: {user_id}")
    return await forward_request(request, f"{MEDIA_URL}/images/{public_id}")


# --- Protected endpoints: development probes ---

@app.get("/api/check-schema", tags=["Debug"])
async def proxy_check_schema(request: Request, user_id: int = Depends(get_current_user_id)):
    return await forward_request(request, f"{CATALOG_URL}/check-schema")

@app.get("/api/debug-{probe}", tags=["Debug"])
async def proxy_debug(probe: str, request: Request, user_id: int = Depends(get_current_user_id)):
    if probe not in ("users", "vendors", "vendors-simple"):
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Not Found")
    return await forward_request(request, f"{CATALOG_URL}/debug-{probe}")


@app.on_event("shutdown")
async def shutdown_event():
    """Closes the HTTP client on shutdown."""
    await client.aclose()
