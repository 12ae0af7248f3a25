from app.infrastructure.external.cloudinary.cloudinary_client import (
    CloudinaryClient,
    UploadResult,
    resource_type_for,
)

__all__ = ["CloudinaryClient", "UploadResult", "resource_type_for"]
