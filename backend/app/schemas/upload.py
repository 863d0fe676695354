from pydantic import BaseModel


class UploadSignatureResponse(BaseModel):
    timestamp: int
    signature: str
    publicId: str
    cloudName: str | None
    apiKey: str | None
