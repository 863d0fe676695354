"""Signed upload parameters for the external image host (Cloudinary).

The browser uploads the image directly to the host; this backend only signs
the request so the host accepts it.
"""
import logging
import time
from typing import Any

import cloudinary.utils

from ..errors import InternalError

logger = logging.getLogger(__name__)

AVATAR_TRANSFORMATION = "c_fill,w_300,h_300,g_face"
IMAGE_URL_TEMPLATE = "https://res.cloudinary.com/{cloud_name}/image/upload/v{version}/{public_id}.jpg"


def avatar_public_id(user_id: int) -> str:
    return f"user_{user_id}"


def build_image_url(cloud_name: str | None, public_id: str, version: str) -> str:
    return IMAGE_URL_TEMPLATE.format(
        cloud_name=cloud_name or "",
        version=version,
        public_id=public_id,
    )


def build_upload_signature(
    user_id: int,
    *,
    cloud_name: str | None,
    api_key: str | None,
    api_secret: str | None,
    now: float | None = None,
) -> dict[str, Any]:
    if not api_secret:
        logger.error("Upload signature requested but CLOUDINARY_API_SECRET is not set")
        raise InternalError("Signature generation failed")

    timestamp = int(round(now if now is not None else time.time()))
    public_id = avatar_public_id(user_id)
    signature = cloudinary.utils.api_sign_request(
        {
            "timestamp": timestamp,
            "public_id": public_id,
            "overwrite": True,
            "transformation": AVATAR_TRANSFORMATION,
        },
        api_secret,
    )
    return {
        "timestamp": timestamp,
        "signature": signature,
        "publicId": public_id,
        "cloudName": cloud_name,
        "apiKey": api_key,
    }
