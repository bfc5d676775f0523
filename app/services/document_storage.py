import logging
import os
import uuid
from dataclasses import dataclass
from typing import BinaryIO, Iterator

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import HTTPException

from app.config import settings

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class StoredFile:
    storage_path: str
    file_name: str
    file_size: int


class StorageService:
    """Byte storage for uploaded documents.

    Uses S3/MinIO when it is fully configured and the local filesystem
    otherwise. ``storage_path`` is an object key for S3 and a filesystem
    path for the local backend.
    """

    @staticmethod
    def is_configured() -> bool:
        return bool(
            settings.s3_endpoint_url
            and settings.s3_access_key
            and settings.s3_secret_key
        )

    @staticmethod
    def _get_client():  # type: ignore[return]
        if not StorageService.is_configured():
            raise RuntimeError(
                "S3 storage is not configured. "
                "Set S3_ENDPOINT_URL, S3_ACCESS_KEY, and S3_SECRET_KEY."
            )
        return boto3.client(
            "s3",
            endpoint_url=settings.s3_endpoint_url,
            aws_access_key_id=settings.s3_access_key,
            aws_secret_access_key=settings.s3_secret_key,
            region_name=settings.s3_region,
            config=Config(signature_version="s3v4"),
        )

    @staticmethod
    def generate_storage_key(owner_id: str, file_name: str) -> str:
        unique = uuid.uuid4().hex[:12]
        safe_name = os.path.basename(file_name).replace(" ", "_") or "upload"
        return f"documents/{owner_id}/{unique}/{safe_name}"

    @staticmethod
    def save_upload(fileobj: BinaryIO, owner_id: str, file_name: str) -> StoredFile:
        storage_key = StorageService.generate_storage_key(owner_id, file_name)
        stored_name = storage_key.rsplit("/", 1)[-1]
        max_size = settings.document_max_size_bytes

        if StorageService.is_configured():
            data = fileobj.read(max_size + 1)
            if len(data) > max_size:
                raise HTTPException(status_code=413, detail="File too large")
            client = StorageService._get_client()
            client.put_object(
                Bucket=settings.s3_bucket_name, Key=storage_key, Body=data
            )
            logger.info("Stored %d bytes at s3://%s", len(data), storage_key)
            return StoredFile(storage_key, stored_name, len(data))

        path = os.path.join(settings.document_upload_dir, storage_key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        size = 0
        try:
            with open(path, "wb") as out:
                while True:
                    chunk = fileobj.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > max_size:
                        raise HTTPException(status_code=413, detail="File too large")
                    out.write(chunk)
        except HTTPException:
            os.remove(path)
            raise
        logger.info("Stored %d bytes at %s", size, path)
        return StoredFile(path, stored_name, size)

    @staticmethod
    def iter_chunks(storage_path: str) -> Iterator[bytes]:
        """Yield the stored bytes; raises OSError when they cannot be read."""
        if StorageService.is_configured():
            client = StorageService._get_client()
            try:
                response = client.get_object(
                    Bucket=settings.s3_bucket_name, Key=storage_path
                )
            except (BotoCoreError, ClientError) as e:
                raise OSError(f"Object {storage_path} is not readable: {e}") from e
            try:
                yield from response["Body"].iter_chunks(CHUNK_SIZE)
            except (BotoCoreError, ClientError) as e:
                raise OSError(
                    f"Object {storage_path} could not be read to the end: {e}"
                ) from e
            return

        with open(storage_path, "rb") as fh:
            while True:
                chunk = fh.read(CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk

    @staticmethod
    def read_bytes(storage_path: str) -> bytes:
        return b"".join(StorageService.iter_chunks(storage_path))

    @staticmethod
    def delete(storage_path: str) -> None:
        if StorageService.is_configured():
            client = StorageService._get_client()
            client.delete_object(Bucket=settings.s3_bucket_name, Key=storage_path)
        elif os.path.isfile(storage_path):
            os.remove(storage_path)
        logger.info("Removed stored file %s", storage_path)

    @staticmethod
    def generate_download_url(storage_path: str) -> str:
        client = StorageService._get_client()
        url: str = client.generate_presigned_url(
            "get_object",
            Params={
                "Bucket": settings.s3_bucket_name,
                "Key": storage_path,
            },
            ExpiresIn=settings.s3_presigned_url_expiry,
        )
        return url


storage = StorageService()
