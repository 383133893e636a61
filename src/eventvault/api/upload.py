"""Upload endpoints: server-mediated upload and the direct-upload steps."""

import json

from fastapi import APIRouter, Depends, File, Form, UploadFile

from ..context import AppServices
from ..errors import UploadError, ValidationError, error_message
from ..logging_config import get_logger, log_user_action
from ..models.asset import AssetMetadata, derive_file_type
from ..services.reconcile import discard_unreferenced
from .dependencies import get_services
from .schemas import DiscardRequest, MetadataRequest, PresignedUrlRequest

logger = get_logger(__name__)

router = APIRouter()


def _parse_metadata(raw: str) -> AssetMetadata:
    try:
        data = json.loads(raw) if raw else {}
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid metadata JSON: {e}", code="invalid_metadata") from e
    if not isinstance(data, dict):
        raise ValidationError("Invalid metadata JSON: expected an object", code="invalid_metadata")

    metadata = AssetMetadata.from_dict(data)
    metadata.validate()
    return metadata


@router.post("")
def upload_files(
    files: list[UploadFile] | None = File(None),
    metadata: str = Form(""),
    batchMode: str = Form("false"),
    services: AppServices = Depends(get_services),
):
    """
    Upload files through the server and register them.

    Files are stored one after another. The first failure aborts the request;
    files stored before it are kept. If the record for a stored file cannot
    be created, that file's object is deleted again.
    """
    if not files:
        raise ValidationError("No files provided", code="no_files")
    shared = _parse_metadata(metadata)

    logger.info(
        "server_upload_started", file_count=len(files), event_name=shared.event, batch_mode=batchMode.lower() == "true"
    )

    results = []
    for upload in files:
        name = upload.filename or "upload"
        mime_type = upload.content_type or "application/octet-stream"
        key = services.storage.generate_key(name)
        try:
            public_url = services.storage.put(key, upload.file, mime_type)
            size = upload.size if upload.size is not None else upload.file.tell()
            fields = {
                "filename": key,
                "original_filename": name,
                "url": public_url,
                "file_type": derive_file_type(mime_type, name),
                "mime_type": mime_type,
                "size": size,
                **shared.to_dict(),
            }
            try:
                asset = services.metadata.create(fields)
            except Exception:
                _discard_quietly(services, key)
                raise
        except Exception as e:
            raise UploadError(f"Failed to upload {name}: {error_message(e)}", details={"key": key}) from e

        results.append({"id": asset.id, "filename": name, "url": public_url})

    log_user_action("server_upload_completed", file_count=len(results), event_name=shared.event)
    return {"success": True, "assets": results}


def _discard_quietly(services: AppServices, key: str) -> None:
    try:
        discard_unreferenced(services.storage, services.metadata, key)
    except Exception as e:
        logger.warning("orphan_object_discard_failed", key=key, error=str(e))


@router.post("/presigned-url")
def presigned_url(body: PresignedUrlRequest, services: AppServices = Depends(get_services)):
    if not body.fileName:
        raise ValidationError("fileName is required", code="missing_filename")

    key = services.storage.generate_key(body.fileName)
    upload_url = services.storage.issue_upload_url(key, body.fileType)
    logger.info("presigned_url_issued", key=key, file_type=body.fileType, file_size=body.fileSize)
    return {
        "success": True,
        "presignedUrl": upload_url,
        "key": key,
        "publicUrl": services.storage.public_url(key),
    }


@router.post("/metadata")
def save_metadata(body: MetadataRequest, services: AppServices = Depends(get_services)):
    asset = services.metadata.create(body.record_fields())
    return {"success": True, "asset": asset.to_api_dict()}


@router.post("/discard")
def discard_object(body: DiscardRequest, services: AppServices = Depends(get_services)):
    """Delete a stored upload that no record references."""
    discard_unreferenced(services.storage, services.metadata, body.key)
    return {"success": True}
