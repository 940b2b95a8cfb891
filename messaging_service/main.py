import logging

from fastapi import FastAPI
from fastapi.responses import Response
from prometheus_client import Counter, generate_latest, CONTENT_TYPE_LATEST

from common.middleware import install_error_handlers, install_metrics
from . import schemas
from .utils import simulated_message_id

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Messaging Service - Evea",
    description="WhatsApp notifications. Messages are validated and logged; no provider is wired in yet.",
    version="1.0.0"
)

install_error_handlers(app)
install_metrics(app, "messaging")

MESSAGES_LOGGED = Counter("messaging_whatsapp_logged_total", "WhatsApp messages accepted and logged")


@app.get("/metrics", tags=["Monitoring"])
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

@app.get("/health", tags=["Monitoring"])
def health_check():
    return {"status": "ok", "service": "messaging_service"}


@app.post("/whatsapp/send", response_model=schemas.WhatsAppSendResponse, tags=["Messaging"])
def send_whatsapp(payload: schemas.WhatsAppMessage):
    """
    Validates the destination and body, then logs the message instead of sending it.
    """
    # TODO: hand the message to the Twilio WhatsApp API once the sender number is approved
    message_id = simulated_message_id()
    logger.info(f"WhatsApp message {message_id} to {payload.to}: {payload.message}")
    MESSAGES_LOGGED.inc()

    return schemas.WhatsAppSendResponse(
        message_id=message_id,
        message="WhatsApp message logged (provider integration pending)",
    )
