"""Storage service for Google Cloud Storage operations."""

import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import BinaryIO

import google.auth
import google.auth.exceptions
import google.auth.transport.requests
from google.cloud import storage  # type: ignore[attr-defined]
from google.cloud.exceptions import GoogleCloudError, NotFound
from google.oauth2 import service_account

from ..errors import StorageError
from ..logging_config import get_logger
from ..models.asset import file_extension

logger = get_logger(__name__)

ASSET_KEY_PREFIX = "assets/"


@dataclass
class StoredObject:
    """A blob listed from the assets bucket."""

    key: str
    created_at: datetime | None
    size: int | None = None


class StorageService:
    """Service for Google Cloud Storage operations on the assets bucket."""

    def __init__(
        self,
        bucket_name: str,
        project_id: str,
        public_base_url: str | None = None,
        upload_url_expiration: int = 7200,
        download_url_expiration: int = 3600,
    ) -> None:
        """
        Initialize the storage service.

        Args:
            bucket_name: GCS bucket that holds asset binaries
            project_id: GCP project ID
            public_base_url: Base address the bucket is publicly served from
            upload_url_expiration: Lifetime of signed upload URLs in seconds
            download_url_expiration: Lifetime of signed download URLs in seconds

        Raises:
            StorageError: If configuration is missing or the client cannot be created
        """
        if not bucket_name:
            raise StorageError("Assets bucket name is required", code="missing_bucket")
        if not project_id:
            raise StorageError("GCP project ID is required", code="missing_project")

        self.bucket_name = bucket_name
        self.project_id = project_id
        self.public_base_url = (public_base_url or f"https://storage.googleapis.com/{bucket_name}").rstrip("/")
        self.upload_url_expiration = upload_url_expiration
        self.download_url_expiration = download_url_expiration

        try:
            self.client = storage.Client(project=self.project_id)
            self.bucket = self.client.bucket(self.bucket_name)
            logger.info(
                "storage_service_initialized",
                bucket=self.bucket_name,
                project_id=self.project_id,
                public_base_url=self.public_base_url,
            )
        except Exception as e:
            raise StorageError(f"Failed to initialize GCS client: {e}", original_exception=e) from e

    @classmethod
    def from_settings(cls, settings) -> "StorageService":
        return cls(
            bucket_name=settings.assets_bucket,
            project_id=settings.project_id,
            public_base_url=settings.public_base_url,
            upload_url_expiration=settings.upload_url_expiration,
            download_url_expiration=settings.download_url_expiration,
        )

    @staticmethod
    def generate_key(original_filename: str) -> str:
        """
        Generate a unique object key for an upload.

        The key is ``assets/<epoch-ms>-<random>.<ext>`` where ``<ext>`` is the
        lowercase extension of the original filename; names without an
        extension get no suffix.

        Args:
            original_filename: Name supplied by the user

        Returns:
            str: Object key
        """
        timestamp = int(time.time() * 1000)
        random_part = uuid.uuid4().hex[:12]
        extension = file_extension(original_filename)
        key = f"{ASSET_KEY_PREFIX}{timestamp}-{random_part}"
        return f"{key}.{extension}" if extension else key

    def public_url(self, key: str) -> str:
        """Public address of a stored object."""
        return f"{self.public_base_url}/{key}"

    def _signing_kwargs(self) -> dict:
        """
        Extra arguments for ``generate_signed_url``.

        Service-account key credentials sign locally. Anything else (Cloud Run,
        workload identity, user credentials) signs through the IAM API with a
        fresh access token.
        """
        if isinstance(getattr(self.client, "_credentials", None), service_account.Credentials):
            return {}

        credentials, _ = google.auth.default()
        try:
            credentials.refresh(google.auth.transport.requests.Request())
        except google.auth.exceptions.RefreshError as e:
            # Local user credentials cannot mint tokens for every scope
            logger.warning("signing_credentials_refresh_failed", error=str(e))

        kwargs = {"access_token": credentials.token}
        service_account_email = getattr(credentials, "service_account_email", None)
        if service_account_email:
            kwargs["service_account_email"] = service_account_email
        return kwargs

    def issue_upload_url(self, key: str, mime_type: str) -> str:
        """
        Generate a signed URL the client can PUT the raw bytes to.

        Args:
            key: Object key from ``generate_key``
            mime_type: Content type the PUT must be sent with

        Returns:
            str: Signed upload URL valid for ``upload_url_expiration`` seconds

        Raises:
            StorageError: If URL generation fails
        """
        try:
            blob = self.bucket.blob(key)
            upload_url: str = blob.generate_signed_url(
                version="v4",
                expiration=timedelta(seconds=self.upload_url_expiration),
                method="PUT",
                content_type=mime_type or "application/octet-stream",
                **self._signing_kwargs(),
            )
            logger.info("upload_url_issued", key=key, mime_type=mime_type, expires_in=self.upload_url_expiration)
            return upload_url

        except GoogleCloudError as e:
            raise StorageError(f"Failed to generate upload URL for '{key}': {e}", original_exception=e) from e
        except Exception as e:
            raise StorageError(f"Unexpected error generating upload URL: {e}", original_exception=e) from e

    def issue_download_url(self, key: str, download_name: str | None = None) -> str:
        """
        Generate a short-lived signed URL for downloading an object.

        Args:
            key: Object key
            download_name: Filename the browser should save the download as

        Returns:
            str: Signed download URL valid for ``download_url_expiration`` seconds

        Raises:
            StorageError: If URL generation fails
        """
        try:
            blob = self.bucket.blob(key)
            options = {}
            if download_name:
                safe_name = download_name.replace('"', "")
                options["response_disposition"] = f'attachment; filename="{safe_name}"'

            download_url: str = blob.generate_signed_url(
                version="v4",
                expiration=timedelta(seconds=self.download_url_expiration),
                method="GET",
                **options,
                **self._signing_kwargs(),
            )
            logger.debug("download_url_issued", key=key, expires_in=self.download_url_expiration)
            return download_url

        except GoogleCloudError as e:
            raise StorageError(f"Failed to generate download URL for '{key}': {e}", original_exception=e) from e
        except Exception as e:
            raise StorageError(f"Unexpected error generating download URL: {e}", original_exception=e) from e

    def put(self, key: str, data: bytes | BinaryIO, mime_type: str) -> str:
        """
        Upload an object through the application server.

        Args:
            key: Object key
            data: Raw bytes or a readable binary stream
            mime_type: Content type to store

        Returns:
            str: Public URL of the stored object

        Raises:
            StorageError: If upload fails
        """
        content_type = mime_type or "application/octet-stream"
        try:
            blob = self.bucket.blob(key)
            if isinstance(data, (bytes, bytearray)):
                blob.upload_from_string(bytes(data), content_type=content_type)
                size = len(data)
            else:
                blob.upload_from_file(data, content_type=content_type, rewind=True)
                size = blob.size

            logger.info("object_uploaded", key=key, size=size, content_type=content_type)
            return self.public_url(key)

        except GoogleCloudError as e:
            raise StorageError(f"Failed to upload '{key}': {e}", original_exception=e) from e
        except Exception as e:
            raise StorageError(f"Unexpected error uploading '{key}': {e}", original_exception=e) from e

    def delete(self, key: str) -> None:
        """
        Delete an object. Deleting a missing object is a no-op.

        Raises:
            StorageError: If deletion fails
        """
        try:
            self.bucket.blob(key).delete()
            logger.info("object_deleted", key=key)

        except NotFound:
            logger.warning("object_not_found_for_deletion", key=key)
        except GoogleCloudError as e:
            raise StorageError(f"Failed to delete '{key}': {e}", original_exception=e) from e
        except Exception as e:
            raise StorageError(f"Unexpected error deleting '{key}': {e}", original_exception=e) from e

    def list_keys(self, prefix: str = ASSET_KEY_PREFIX) -> list[StoredObject]:
        """
        List stored objects under a prefix.

        Raises:
            StorageError: If listing fails
        """
        try:
            blobs = self.client.list_blobs(self.bucket, prefix=prefix)
            objects = [StoredObject(key=blob.name, created_at=blob.time_created, size=blob.size) for blob in blobs]
            logger.debug("objects_listed", prefix=prefix, count=len(objects))
            return objects

        except GoogleCloudError as e:
            raise StorageError(f"Failed to list objects under '{prefix}': {e}", original_exception=e) from e
        except Exception as e:
            raise StorageError(f"Unexpected error listing objects: {e}", original_exception=e) from e

    def check_bucket_exists(self) -> bool:
        """
        Check if the configured bucket exists and is accessible.

        Returns:
            bool: True if bucket exists and is accessible
        """
        try:
            self.bucket.reload()
            return True
        except NotFound:
            logger.error("bucket_not_found", bucket=self.bucket_name)
            return False
        except Exception as e:
            logger.error("bucket_check_failed", bucket=self.bucket_name, error=str(e))
            return False
