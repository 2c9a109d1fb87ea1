"""
Document blob store backed by a local upload directory.
Files get generated names; callers only ever keep the returned
"uploads/<name>" references, which are also the public URL paths.
"""

import uuid
from pathlib import Path
from typing import Iterable, Optional

from fastapi import UploadFile

from vehicle_portal.config import Settings, settings
from vehicle_portal.services import errors
from vehicle_portal.utils.logger import get_logger

logger = get_logger(__name__)

URL_PREFIX = "uploads"
CHUNK_SIZE = 1024 * 1024
EXTENSIONS = {"image/png": ".png", "image/jpeg": ".jpg", "application/pdf": ".pdf"}


def upload_root(config: Settings = settings) -> Path:
    root = Path(config.UPLOAD_DIR).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


def _path_for(reference: str, config: Settings) -> Optional[Path]:
    """Map a reference back to a file inside the upload root, or None if it points elsewhere."""
    root = upload_root(config)
    path = (root / Path(reference).name).resolve()
    return path if path.parent == root else None


def _save_one(file: UploadFile, root: Path, config: Settings) -> str:
    content_type = (file.content_type or "").lower()
    if content_type not in config.allowed_upload_types:
        raise errors.ValidationError(f"Unsupported document type for {file.filename}: {content_type or 'unknown'}")

    name = f"{uuid.uuid4().hex}{EXTENSIONS.get(content_type, '')}"
    dest = root / name
    limit = config.MAX_UPLOAD_MB * 1024 * 1024
    total = 0
    with dest.open("wb") as out:
        while True:
            chunk = file.file.read(CHUNK_SIZE)
            if not chunk:
                break
            total += len(chunk)
            if total > limit:
                break
            out.write(chunk)
    if total > limit:
        dest.unlink(missing_ok=True)
        raise errors.ValidationError(f"{file.filename} exceeds the {config.MAX_UPLOAD_MB}MB limit")
    return f"{URL_PREFIX}/{name}"


def save_documents(files: Iterable[UploadFile], config: Settings = settings) -> list[str]:
    """Store every upload; on any rejection, already-stored files of this batch are removed."""
    root = upload_root(config)
    saved = []
    try:
        for file in files:
            if file is None or not file.filename:
                continue
            saved.append(_save_one(file, root, config))
    except errors.PortalError:
        discard_documents(saved, config)
        raise
    if saved:
        logger.info(f"[BLOB] Stored {len(saved)} document(s)")
    return saved


def discard_documents(references: Iterable[str], config: Settings = settings) -> None:
    """Best-effort removal; a file that cannot be removed is logged and left behind."""
    for reference in references:
        path = _path_for(reference, config)
        if path is None:
            logger.warning(f"[BLOB] Ignoring reference outside upload dir: {reference}")
            continue
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"[BLOB] Could not remove {reference}: {e}")
