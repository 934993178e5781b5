"""
Storage service — proof-of-payment files on local disk.

Files live under ``<UPLOAD_DIR>/<bucket>/`` and are addressed by a storage path
``<bucket>/<name>``; that path is what PaymentProof.file_url records. Disk I/O
runs in the shared thread pool.
"""
import logging
import mimetypes
import os
import secrets
from pathlib import Path

from config import settings
from domain.constants import PROOF_ALLOWED_EXTENSIONS, PROOF_PDF_CONTENT_TYPE
from domain.errors import NotFoundError, StorageError, ValidationError
from services.async_executor import run_blocking

logger = logging.getLogger(__name__)


def _root() -> Path:
    return Path(settings.upload_dir).resolve()


def resolve_path(storage_path: str, bucket: str | None = None) -> Path:
    """Map ``<bucket>/<name>`` to a file inside that bucket's directory, refusing traversal."""
    bucket_root = (_root() / (bucket or settings.proof_bucket)).resolve()
    candidate = (_root() / storage_path).resolve()
    if bucket_root not in candidate.parents:
        raise ValidationError("Invalid storage path", field="file_url")
    return candidate


def file_extension(filename: str | None) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower()


def validate_proof_upload(filename: str | None, content_type: str | None, data: bytes) -> str:
    """
    Check a proof-of-payment upload and return the content type to store.

    Accepts images and PDFs up to MAX_PROOF_BYTES; both the declared content
    type and the file extension must agree with that.
    """
    if not data:
        raise ValidationError("Proof of payment file is empty", field="proof")
    if len(data) > settings.max_proof_bytes:
        limit_mb = settings.max_proof_bytes / (1024 * 1024)
        raise ValidationError(f"Proof of payment must be under {limit_mb:g} MB", field="proof")

    ext = file_extension(filename)
    if ext not in PROOF_ALLOWED_EXTENSIONS:
        raise ValidationError(
            "Proof of payment must be an image or PDF "
            f"({', '.join(sorted(PROOF_ALLOWED_EXTENSIONS))})",
            field="proof",
        )

    content_type = (content_type or "").split(";")[0].strip().lower()
    if not content_type or content_type == "application/octet-stream":
        content_type = mimetypes.types_map.get(f".{ext}", "")
    if ext == "pdf":
        if content_type != PROOF_PDF_CONTENT_TYPE:
            raise ValidationError("PDF proof must be uploaded as application/pdf", field="proof")
    elif not content_type.startswith("image/"):
        raise ValidationError("Proof of payment must be an image or PDF", field="proof")
    return content_type


def _write_sync(target: Path, data: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_suffix(target.suffix + ".part")
    with open(tmp, "wb") as fh:
        fh.write(data)
    os.replace(tmp, target)


def _read_sync(target: Path) -> bytes:
    with open(target, "rb") as fh:
        return fh.read()


async def save(bucket: str, *, prefix: str, filename: str | None, data: bytes) -> str:
    """
    Store ``data`` as ``<bucket>/<prefix>-<random>.<ext>`` and return that path.
    """
    ext = file_extension(filename) or "bin"
    name = f"{prefix}-{secrets.token_hex(8)}.{ext}"
    storage_path = f"{bucket}/{name}"
    target = resolve_path(storage_path, bucket)
    try:
        await run_blocking(_write_sync, target, data)
    except OSError as e:
        logger.error(f"Failed to store {storage_path}: {e}")
        raise StorageError("Could not store proof of payment. Please try again.")
    logger.info(f"Stored {storage_path} ({len(data)} bytes)")
    return storage_path


async def read(storage_path: str, bucket: str | None = None) -> bytes:
    target = resolve_path(storage_path, bucket)
    if not target.is_file():
        raise NotFoundError("Stored file", storage_path)
    try:
        return await run_blocking(_read_sync, target)
    except OSError as e:
        logger.error(f"Failed to read {storage_path}: {e}")
        raise StorageError("Could not read stored file.")


async def delete(storage_path: str, bucket: str | None = None) -> bool:
    """Remove a stored file; returns False if it was already gone."""
    target = resolve_path(storage_path, bucket)
    try:
        await run_blocking(target.unlink)
    except FileNotFoundError:
        return False
    logger.info(f"Deleted {storage_path}")
    return True


async def save_proof(order_id: int, filename: str | None, data: bytes) -> str:
    return await save(settings.proof_bucket, prefix=str(order_id), filename=filename, data=data)
