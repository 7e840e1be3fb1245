import logging
import os
import random
import time
from pathlib import Path
from typing import Iterable, Optional

import boto3
from botocore.exceptions import ClientError
from reviewdesk.database.config import settings
from reviewdesk.workflow.errors import ValidationError

logger = logging.getLogger(__name__)

PAPER_EXTENSIONS = {".pdf", ".docx", ".doc", ".txt"}
BANNER_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}

PAPERS_FOLDER = "papers"
BANNERS_FOLDER = "events"


def unique_filename(original_filename: str) -> str:
    """`<millis>-<random><ext>`, keeping the original extension."""
    ext = Path(original_filename or "").suffix.lower()
    return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"


def validate_upload(
    filename: Optional[str],
    content: bytes,
    allowed_extensions: Iterable[str],
    max_size: Optional[int] = None,
) -> None:
    allowed = set(allowed_extensions)
    ext = Path(filename or "").suffix.lower()
    if ext not in allowed:
        names = "/".join(sorted(e.lstrip(".").upper() for e in allowed))
        raise ValidationError(f"Invalid file type. Allowed: {names}")
    if max_size is not None and len(content) > max_size:
        raise ValidationError(
            f"File too large. Maximum size is {max_size // (1024 * 1024)} MB"
        )


class StorageService:
    """
    Stores uploaded files on local disk, or in S3 when a bucket is configured.

    The returned file URL is either a local path under UPLOAD_DIR or the
    object's https URL. `read` accepts either form.
    """

    def __init__(self):
        self.bucket_name = settings.S3_BUCKET_NAME
        self.upload_dir = settings.UPLOAD_DIR
        self._s3_client = None

    @property
    def uses_s3(self) -> bool:
        return bool(self.bucket_name)

    @property
    def s3_client(self):
        if self._s3_client is None:
            self._s3_client = boto3.client(
                "s3",  # type: ignore
                aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
                aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
                region_name=settings.AWS_REGION,
            )
        return self._s3_client

    def _object_url(self, object_key: str) -> str:
        return (
            f"https://{self.bucket_name}.s3.{settings.AWS_REGION}.amazonaws.com/"
            f"{object_key}"
        )

    def _object_key(self, file_url: str) -> Optional[str]:
        prefix = self._object_url("")
        if self.uses_s3 and file_url.startswith(prefix):
            return file_url[len(prefix) :]
        return None

    def save(self, content: bytes, original_filename: str, folder: str) -> str:
        """
        Store file bytes and return the URL to persist on the record.

        Args:
            content: Raw file bytes.
            original_filename: Client-side name, used only for its extension.
            folder: Sub-folder under the upload root.
        """
        filename = unique_filename(original_filename)

        if self.uses_s3:
            object_key = f"{self.upload_dir}/{folder}/{filename}"
            try:
                self.s3_client.put_object(
                    Bucket=self.bucket_name, Key=object_key, Body=content
                )
            except ClientError as e:
                logger.error(f"Error uploading file to S3: {e}", exc_info=True)
                raise
            return self._object_url(object_key)

        directory = Path(self.upload_dir) / folder
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / filename
        path.write_bytes(content)
        return str(path)

    def read(self, file_url: str) -> bytes:
        object_key = self._object_key(file_url)
        if object_key is not None:
            try:
                response = self.s3_client.get_object(
                    Bucket=self.bucket_name, Key=object_key
                )
            except ClientError as e:
                logger.error(f"Error reading {object_key} from S3: {e}", exc_info=True)
                raise
            return response["Body"].read()

        path = file_url if os.path.isabs(file_url) else os.path.join(os.getcwd(), file_url)
        with open(path, "rb") as file_obj:
            return file_obj.read()

    def save_paper(self, content: bytes, original_filename: str) -> str:
        validate_upload(
            original_filename,
            content,
            PAPER_EXTENSIONS,
            max_size=settings.MAX_PAPER_SIZE_BYTES,
        )
        return self.save(content, original_filename, PAPERS_FOLDER)

    def save_banner(self, content: bytes, original_filename: str) -> str:
        validate_upload(original_filename, content, BANNER_EXTENSIONS)
        return self.save(content, original_filename, BANNERS_FOLDER)


storage_service = StorageService()
