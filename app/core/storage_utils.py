# app/core/storage_utils.py
from pathlib import PurePath

from app.core.config import get_settings
from app.core.supabase_client import supabase_admin


def upload_to_storage(path: str, file_bytes: bytes, content_type: str) -> str:
    """
    Upload raw bytes to the avatar bucket and return a public URL.

    If a file already exists at this path, it will be overwritten
    thanks to the 'upsert' option.

    Args:
        path: Full object path inside the bucket.
              Example: "avatars/<user uuid>_me.png"
        file_bytes: File content in bytes.
        content_type: MIME type stored with the object.

    Raises:
        Any exception raised by Supabase client if upload fails.
    """
    bucket = supabase_admin().storage.from_(get_settings().AVATAR_BUCKET)
    bucket.upload(path, file_bytes, {"content-type": content_type, "upsert": "true"})
    return bucket.get_public_url(path)


def safe_filename(filename: str | None, default: str = "avatar") -> str:
    """
    Strip any directory part from a client-supplied filename.

    "../../etc/me.png" -> "me.png"; empty names fall back to `default`.
    """
    name = PurePath((filename or "").replace("\\", "/")).name.strip()
    return name or default
