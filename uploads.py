import os
import re
import shutil
import time
from typing import Optional

import structlog
from starlette.datastructures import FormData, UploadFile

from errors import UploadRejected

logger = structlog.get_logger()

MEDIA_FIELD = "media"
URL_PREFIX = "/uploads"

# Matched anywhere in the extension and in the declared content type.
ALLOWED_TYPES = re.compile(r"jpeg|jpg|png|mp4")


def pick_media(form: FormData) -> Optional[UploadFile]:
    """Return the single file sent under ``media``, or None when there is none.

    Files under any other field, or more than one ``media`` file, are rejected.
    """
    found = []
    for key, value in form.multi_items():
        if not isinstance(value, UploadFile) or not value.filename:
            continue
        if key != MEDIA_FIELD or found:
            raise UploadRejected("Unexpected field")
        found.append(value)
    return found[0] if found else None


def check_media(filename: str, content_type: Optional[str]):
    extension = os.path.splitext(filename)[1].lower()
    extension_ok = bool(ALLOWED_TYPES.search(extension))
    mimetype_ok = bool(ALLOWED_TYPES.search(content_type or ""))
    if not (extension_ok and mimetype_ok):
        logger.warning("upload.rejected", filename=filename, content_type=content_type)
        raise UploadRejected("Only images and videos are allowed")


def save_media(upload: UploadFile, upload_dir: str) -> str:
    """Validate and store an uploaded file, returning its public path.

    Names are ``<epoch-millis><original-extension>``; two uploads in the same
    millisecond with the same extension overwrite each other.
    """
    check_media(upload.filename, upload.content_type)
    os.makedirs(upload_dir, exist_ok=True)
    filename = f"{int(time.time() * 1000)}{os.path.splitext(upload.filename)[1]}"
    with open(os.path.join(upload_dir, filename), "wb") as out:
        shutil.copyfileobj(upload.file, out)
    logger.info("upload.stored", filename=filename, original=upload.filename)
    return f"{URL_PREFIX}/{filename}"


def remove_media(media: str, upload_dir: str):
    if not media:
        return
    target = os.path.join(upload_dir, os.path.basename(media))
    try:
        os.remove(target)
    except FileNotFoundError:
        return
    logger.info("upload.removed", filename=os.path.basename(media))
