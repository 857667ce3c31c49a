# utils/uploads.py
import logging
import shutil
import uuid
from pathlib import Path
from typing import Optional

from fastapi import HTTPException, UploadFile

from config import settings

logger = logging.getLogger(__name__)

# Stored extension comes from the accepted type, never from the client file name
IMAGE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


def upload_dir() -> Path:
    path = Path(settings.UPLOAD_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path


def save_image(file: UploadFile) -> str:
    """Store an uploaded image under a random hex name with the extension of its image type.

    Returns only the file name; callers persist it on the product row.
    """
    ext = IMAGE_EXTENSIONS.get(file.content_type)
    if ext is None:
        raise HTTPException(status_code=400, detail="Invalid file type")

    filename = f"{uuid.uuid4().hex}{ext}"
    save_path = upload_dir() / filename
    try:
        with open(save_path, "wb") as buffer:
            shutil.copyfileobj(file.file, buffer)
    except OSError:
        logger.exception("Could not write product image %s", save_path)
        raise HTTPException(status_code=500, detail="File save error")
    finally:
        file.file.close()

    logger.info("Product image stored as %s", filename)
    return filename


def remove_image(filename: Optional[str]) -> None:
    if not filename:
        return
    path = Path(settings.UPLOAD_DIR) / Path(filename).name
    try:
        path.unlink(missing_ok=True)
    except OSError:
        logger.warning("Could not remove old product image %s", path, exc_info=True)
