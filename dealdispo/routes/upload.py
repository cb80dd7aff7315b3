import logging

from fastapi import APIRouter, Depends, File, Query, UploadFile

from ..auth import require_session
from ..services.image_host import DIMENSION_RULES, accept_upload, get_image_host

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/upload", tags=["Upload"], dependencies=[Depends(require_session)])

IMAGE_KINDS = "|".join(DIMENSION_RULES)


@router.post("")
async def upload_image(
    image: UploadFile = File(...),
    kind: str = Query("main", pattern=f"^({IMAGE_KINDS})$"),
    host=Depends(get_image_host),
):
    """Upload a listing photo and return its public URL"""
    logger.info(f"📤 Uploading {kind} image: {image.filename} ({image.content_type})")
    result = await accept_upload(image, kind, host)
    return {key: result[key] for key in ("url", "width", "height", "size")}
