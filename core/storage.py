# core/storage.py
# Supabase Storage wrapper: the blob store behind avatars, team logos,
# ID documents and resource files.

import logging
import re
import uuid
from urllib.parse import quote

from django.conf import settings
from supabase import create_client

from core.exceptions import StorageFailure

logger = logging.getLogger("portal.storage")

_supabase_client = None


def get_supabase_client():
    """
    Get the Supabase client instance (singleton pattern).
    Uses service_role key for admin access.
    """
    global _supabase_client

    if _supabase_client is None:
        url = settings.SUPABASE_URL
        key = settings.SUPABASE_SERVICE_ROLE_KEY

        if not url or not key:
            logger.warning("Supabase credentials not configured")
            return None

        _supabase_client = create_client(url, key)
        logger.info("Supabase client initialized")

    return _supabase_client


def bucket_name(name: str) -> str:
    return settings.PORTAL[f"{name.upper()}_BUCKET"]


def build_key(prefix: str, filename: str) -> str:
    """
    Per-entity storage key: "<prefix>/<uuid>-<safe filename>".
    """
    safe = re.sub(r"[^A-Za-z0-9._-]+", "_", filename or "file").strip("._") or "file"
    return f"{prefix.strip('/')}/{uuid.uuid4().hex}-{safe[-100:]}"


def upload_blob(bucket: str, key: str, content: bytes, content_type: str, filename: str = "") -> dict:
    """
    Upload bytes under `key` and return its descriptor.

    Returns:
        {"key", "view_url", "download_url"}

    Raises StorageFailure when the store is not configured or rejects the upload.
    """
    client = get_supabase_client()
    if not client:
        raise StorageFailure()

    try:
        store = client.storage.from_(bucket)
        store.upload(
            key,
            content,
            file_options={"content-type": content_type or "application/octet-stream", "upsert": "false"},
        )
        view_url = store.get_public_url(key)
    except Exception as e:
        logger.error(f"Failed to upload blob {bucket}/{key}: {e}")
        raise StorageFailure() from e

    download_name = quote(filename or key.rsplit("/", 1)[-1])
    logger.info(f"Uploaded blob to storage: {bucket}/{key}")
    return {
        "key": key,
        "view_url": view_url,
        "download_url": f"{view_url}?download={download_name}",
    }


def upload_file(bucket: str, prefix: str, uploaded_file) -> dict:
    """
    Upload a Django UploadedFile. Adds name/mime/size to the descriptor.
    """
    key = build_key(prefix, uploaded_file.name)
    descriptor = upload_blob(
        bucket,
        key,
        uploaded_file.read(),
        getattr(uploaded_file, "content_type", "") or "application/octet-stream",
        filename=uploaded_file.name,
    )
    descriptor.update(
        {
            "original_name": uploaded_file.name,
            "mime_type": getattr(uploaded_file, "content_type", "") or "application/octet-stream",
            "size": uploaded_file.size,
        }
    )
    return descriptor


def remove_blobs(bucket: str, keys) -> bool:
    """
    Delete blobs from storage. Best effort: failures are logged, never raised.

    Returns:
        True if successful (or nothing to delete), False otherwise
    """
    keys = [k for k in keys if k]
    if not keys:
        return True

    client = get_supabase_client()
    if not client:
        logger.error(f"Cannot release blobs {bucket}/{keys}: storage not configured")
        return False

    try:
        client.storage.from_(bucket).remove(keys)
        logger.info(f"Deleted blobs from storage: {bucket}/{keys}")
        return True
    except Exception as e:
        logger.error(f"Failed to delete blobs {bucket}/{keys}: {e}")
        return False


def remove_blob(bucket: str, key: str) -> bool:
    return remove_blobs(bucket, [key])
