import logging
from typing import List

from fastapi import FastAPI, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from common.middleware import error_response, install_error_handlers, install_metrics
from .cloudinary_client import CloudinaryClient, MediaUploadError, get_media_client, upload_many

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

MAX_FILE_BYTES = 10 * 1024 * 1024

app = FastAPI(
    title="Media Service - Evea",
    description="Uploads vendor images to the media host and deletes them.",
    version="1.0.0"
)

install_error_handlers(app)
install_metrics(app, "media")


@app.get("/metrics", tags=["Monitoring"])
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

@app.get("/health", tags=["Monitoring"])
def health_check():
    return {"status": "ok", "service": "media_service"}


async def read_image(file: UploadFile) -> bytes:
    """Reads an uploaded file, rejecting empty, oversized or non-image payloads."""
    content_type = file.content_type or ""
    if not content_type.startswith("image/"):
        raise HTTPException(status.HTTP_400_BAD_REQUEST, f"{file.filename}: only image files are accepted")

    data = await file.read()
    if not data:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, f"{file.filename}: file is empty")
    if len(data) > MAX_FILE_BYTES:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, f"{file.filename}: file exceeds 10 MB")
    return data


@app.post("/upload", tags=["Media"])
async def upload_image(file: UploadFile = File(...), client: CloudinaryClient = Depends(get_media_client)):
    """Uploads one image and returns its hosted URL."""
    data = await read_image(file)
    logger.info(f"Uploading {file.filename} ({len(data)} bytes)")

    try:
        image = await client.upload(data, file.content_type)
    except MediaUploadError as e:
        logger.error(f"Upload of {file.filename} failed: {e}")
        raise HTTPException(status.HTTP_502_BAD_GATEWAY, "Failed to upload image")

    return {"success": True, "url": image.url, "publicId": image.public_id}


@app.post("/upload-multiple", tags=["Media"])
async def upload_images(files: List[UploadFile] = File(...), client: CloudinaryClient = Depends(get_media_client)):
    """
    Uploads every file concurrently.
    The URL list is only returned when all files succeed; per-file results are always returned.
    """
    payloads = [(f.filename or f"file-{i}", await read_image(f), f.content_type) for i, f in enumerate(files)]
    logger.info(f"Uploading batch of {len(payloads)} images")

    outcomes = await upload_many(client, payloads)
    results = [o.to_dict() for o in outcomes]

    failed = [o for o in outcomes if not o.ok]
    if failed:
        logger.error(f"{len(failed)} of {len(outcomes)} uploads failed")
        return error_response(status.HTTP_502_BAD_GATEWAY, "Failed to upload images", results=results)

    return {"success": True, "urls": [o.url for o in outcomes], "results": results}


@app.delete("/images/{public_id:path}", tags=["Media"])
async def delete_image(public_id: str, client: CloudinaryClient = Depends(get_media_client)):
    logger.info(f"Deleting image {public_id}")
    try:
        await client.destroy(public_id)
    except MediaUploadError as e:
        logger.error(f"Delete of {public_id} failed: {e}")
        raise HTTPException(status.HTTP_502_BAD_GATEWAY, "Failed to delete image")

    return {"success": True}
