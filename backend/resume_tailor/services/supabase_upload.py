"""
Supabase Storage Upload Service

Uploads resume files to Supabase Storage with an explicit Content-Length
header, and creates signed download URLs for the private bucket.
"""
import asyncio
import logging
import re
import uuid
from typing import Optional

import httpx

from ..config import get_settings
from ..exceptions import StorageUploadError

logger = logging.getLogger(__name__)

UPLOAD_ATTEMPTS = 3


def _credentials():
    settings = get_settings()
    supabase_url = settings.supabase_url
    supabase_key = settings.supabase_service_role_key
    if not supabase_url or not supabase_key:
        raise StorageUploadError("Supabase configuration missing")
    return supabase_url.rstrip("/"), supabase_key


def _headers(supabase_key: str, **extra) -> dict:
    return {
        "Authorization": f"Bearer {supabase_key}",
        "apikey": supabase_key,
        **extra,
    }


async def upload_bytes_to_supabase(
    content: bytes,
    bucket: str,
    file_path: str,
    content_type: str = "application/octet-stream"
) -> str:
    """
    Upload raw bytes to Supabase Storage.

    Args:
        content: File bytes
        bucket: Supabase storage bucket name
        file_path: Path within the bucket (e.g., "user_abc/1a2b3c_resume.pdf")
        content_type: MIME type stored with the object

    Returns:
        Storage path of the uploaded object (``bucket/file_path``)

    Raises:
        StorageUploadError on upload failure
    """
    supabase_url, supabase_key = _credentials()

    try:
        async with httpx.AsyncClient(timeout=120.0) as client:
            response = await client.post(
                f"{supabase_url}/storage/v1/object/{bucket}/{file_path}",
                headers=_headers(
                    supabase_key,
                    **{"Content-Type": content_type, "Content-Length": str(len(content))}
                ),
                content=content
            )
    except httpx.TimeoutException as e:
        raise StorageUploadError("Upload timeout - file too large or slow connection", cause=e)
    except httpx.HTTPError as e:
        raise StorageUploadError(f"Upload failed: {e}", cause=e)

    if response.status_code not in (200, 201):
        error_detail = response.text[:500] if response.text else "Unknown error"
        raise StorageUploadError(
            f"Supabase upload failed ({response.status_code}): {error_detail}",
            details={"status_code": response.status_code}
        )
    return f"{bucket}/{file_path}"


async def create_signed_url(storage_path: str, expires_in: int = 3600) -> str:
    """Signed download URL for an object stored as ``bucket/path``."""
    supabase_url, supabase_key = _credentials()
    async with httpx.AsyncClient(timeout=30.0) as client:
        response = await client.post(
            f"{supabase_url}/storage/v1/object/sign/{storage_path}",
            headers=_headers(supabase_key),
            json={"expiresIn": expires_in}
        )
    if response.status_code != 200:
        raise StorageUploadError(
            f"Could not sign URL ({response.status_code})",
            details={"path": storage_path}
        )
    signed = response.json().get("signedURL") or response.json().get("signedUrl")
    return f"{supabase_url}/storage/v1{signed}"


async def delete_from_supabase(storage_path: str) -> None:
    supabase_url, supabase_key = _credentials()
    async with httpx.AsyncClient(timeout=30.0) as client:
        response = await client.delete(
            f"{supabase_url}/storage/v1/object/{storage_path}",
            headers=_headers(supabase_key)
        )
    if response.status_code not in (200, 204):
        raise StorageUploadError(
            f"Supabase delete failed ({response.status_code})",
            details={"path": storage_path}
        )


def safe_storage_name(file_name: str) -> str:
    safe = file_name.replace(" ", "_").replace("/", "_").replace("\\", "_")
    safe = re.sub(r'[\[\]\(\)\{\}<>\'\"#%&\+\=\|\^]', '', safe)
    return re.sub(r'_+', '_', safe)


class SupabaseResumeStorage:
    """Import pipeline storage: uploads the original file, retrying briefly."""

    def __init__(self, bucket: Optional[str] = None):
        self.bucket = bucket or get_settings().resume_bucket

    async def upload_resume(self, user_id: str, document) -> str:
        storage_path = f"{user_id}/{uuid.uuid4().hex[:12]}_{safe_storage_name(document.file_name)}"
        content_type = document.content_type or "application/octet-stream"

        last_error: Optional[Exception] = None
        for attempt in range(UPLOAD_ATTEMPTS):
            try:
                path = await upload_bytes_to_supabase(
                    content=document.content,
                    bucket=self.bucket,
                    file_path=storage_path,
                    content_type=content_type
                )
                logger.info(f"✅ Resume uploaded to Supabase: {path}")
                return path
            except StorageUploadError as e:
                last_error = e
                logger.warning(f"Supabase attempt {attempt + 1}/{UPLOAD_ATTEMPTS} failed: {e}")
                if attempt < UPLOAD_ATTEMPTS - 1:
                    await asyncio.sleep(1 * (attempt + 1))
        raise last_error
