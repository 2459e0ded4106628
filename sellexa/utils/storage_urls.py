"""Public URL helpers for files kept in backend storage buckets."""

from typing import Optional

import sellexa.config as config
from sellexa.utils.logger import get_current_logger


def get_storage_url(bucket_name: str, file_path: str, base_url: Optional[str] = None) -> Optional[str]:
    """
    Build the public URL of a file stored in a storage bucket.

    Args:
        bucket_name: Storage bucket name
        file_path: Path of the file inside the bucket, or an absolute URL
        base_url: Backend base URL (defaults to ``config.SUPABASE_URL``)

    Returns:
        The public URL, the input unchanged when it is already absolute,
        or None when the path is empty or no base URL is configured
    """
    if not file_path:
        return None

    if file_path.startswith("http"):
        return file_path

    base_url = base_url if base_url is not None else config.SUPABASE_URL
    if not base_url:
        get_current_logger().error("SUPABASE_URL is not defined, cannot build storage URL")
        return None

    return f"{base_url.rstrip('/')}/storage/v1/object/public/{bucket_name}/{file_path}"


def get_product_image_url(image_path: str, base_url: Optional[str] = None) -> Optional[str]:
    return get_storage_url(config.PRODUCT_IMAGES_BUCKET, image_path, base_url)


def get_profile_avatar_url(avatar_path: str, base_url: Optional[str] = None) -> Optional[str]:
    return get_storage_url(config.AVATARS_BUCKET, avatar_path, base_url)
