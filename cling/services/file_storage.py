import logging
import os
import uuid

from cling.core.config import settings

logger = logging.getLogger(__name__)

GENERATED_IMAGES_SUBDIR = "generated-images"


def _ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def _normalize_ext(ext: str) -> str:
    ext = (ext or "").lstrip(".").lower()
    return ext or "png"


def ext_for_content_type(content_type: str) -> str:
    return {
        "image/png": "png",
        "image/jpeg": "jpg",
        "image/jpg": "jpg",
        "image/webp": "webp",
        "image/gif": "gif",
    }.get((content_type or "").split(";")[0].strip().lower(), "png")


def public_url_for(relative_path: str) -> str:
    """``{PUBLIC_BASE_URL}/uploads/<relative_path>``; host-relative when no base URL is set"""
    return f"{settings.PUBLIC_BASE_URL}/uploads/{relative_path}"


def save_generated_image(content: bytes, ext: str = "png") -> str:
    """
    Write generated image bytes under ``{UPLOADS_DIR}/generated-images`` with a
    collision-free name and return the public URL that the ``/uploads`` mount
    serves it under.
    """
    target_dir = os.path.abspath(os.path.join(settings.UPLOADS_DIR, GENERATED_IMAGES_SUBDIR))
    _ensure_dir(target_dir)
    filename = f"{uuid.uuid4().hex}.{_normalize_ext(ext)}"
    with open(os.path.join(target_dir, filename), "wb") as f:
        f.write(content)
    logger.info(f"Saved generated image {filename} ({len(content)} bytes)")
    return public_url_for(f"{GENERATED_IMAGES_SUBDIR}/{filename}")
