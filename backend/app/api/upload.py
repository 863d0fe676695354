from fastapi import APIRouter, Depends

from ..config import settings
from ..dependencies import get_current_user
from ..schemas.auth import SessionUser
from ..schemas.upload import UploadSignatureResponse
from ..services.upload_service import build_upload_signature

router = APIRouter(prefix="/upload", tags=["upload"])


@router.get("/cloudinary-signature", response_model=UploadSignatureResponse)
async def get_upload_signature(
    user: SessionUser = Depends(get_current_user),
) -> UploadSignatureResponse:
    payload = build_upload_signature(
        user.id,
        cloud_name=settings.cloudinary_cloud_name,
        api_key=settings.cloudinary_api_key,
        api_secret=settings.cloudinary_api_secret,
    )
    return UploadSignatureResponse(**payload)
