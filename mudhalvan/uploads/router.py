import logging
import time
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from mudhalvan.auth.session import get_settings
from mudhalvan.config import UPLOAD_URL_EXPIRY_SECONDS, Settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Uploads"])


def get_s3_client(request: Request) -> Any:
    return request.app.state.s3_client


@router.get("/upload-url")
async def get_upload_url(
    fileName: Optional[str] = Query(None),
    fileType: Optional[str] = Query(None),
    s3_client: Any = Depends(get_s3_client),
    settings: Settings = Depends(get_settings),
):
    """Pre-signed PUT for course videos; the browser uploads straight to the bucket"""
    if not fileName or not fileType:
        raise HTTPException(status_code=400, detail="Missing fileName or fileType")

    key = f"videos/{int(time.time() * 1000)}-{fileName}"
    params = {
        "Bucket": settings.s3_bucket_name,
        "Key": key,
        "ContentType": fileType,
    }
    if settings.allow_public_acl:
        params["ACL"] = "public-read"

    try:
        upload_url = s3_client.generate_presigned_url(
            "put_object", Params=params, ExpiresIn=UPLOAD_URL_EXPIRY_SECONDS,
        )
    except Exception:
        logger.exception("Error generating pre-signed URL")
        raise HTTPException(status_code=500, detail="Failed to generate upload URL")

    public_url = f"https://{settings.s3_bucket_name}.s3.{settings.aws_region}.amazonaws.com/{key}"
    return {"uploadUrl": upload_url, "publicUrl": public_url, "key": key}
