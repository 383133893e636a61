"""
Operator tasks for eventvault.

Run with invoke, for example:

    invoke -r src/eventvault/cli -c tasks batch-upload --directory ./shoot --event "TechConf" --date 2024-05-01
    invoke -r src/eventvault/cli -c tasks sweep-orphans --dry-run
    invoke -r src/eventvault/cli -c tasks serve-api --port 8000
"""

import os

import structlog
import uvicorn
from dotenv import load_dotenv
from invoke import Context, task

from eventvault.api import create_app
from eventvault.config import load_settings
from eventvault.context import create_services
from eventvault.errors import EventVaultError
from eventvault.logging_config import configure_structured_logging
from eventvault.models.asset import AssetMetadata
from eventvault.services.reconcile import sweep_orphans as run_orphan_sweep
from eventvault.services.upload import (
    HttpUploadGateway,
    UploadItem,
    UploadOrchestrator,
    format_file_size,
)

logger = structlog.get_logger()

SUPPORTED_EXTENSIONS = {
    ".jpg",
    ".jpeg",
    ".png",
    ".gif",
    ".webp",
    ".heic",
    ".heif",
    ".tif",
    ".tiff",
    ".mp4",
    ".mov",
    ".avi",
    ".wmv",
    ".flv",
    ".webm",
    ".mkv",
}


def _load_env(env_file: str) -> None:
    if os.path.exists(env_file):
        logger.info("env_file_loaded", env_file=env_file)
        load_dotenv(dotenv_path=env_file)
    else:
        logger.warning("env_file_not_found", env_file=env_file)
    configure_structured_logging(force=True)


def find_media_files(directory: str, recursive: bool = False) -> list[str]:
    """Supported image and video files under ``directory``, sorted by path."""
    found = []
    if recursive:
        for root, _, files in os.walk(directory):
            for name in files:
                if os.path.splitext(name)[1].lower() in SUPPORTED_EXTENSIONS:
                    found.append(os.path.join(root, name))
    else:
        for name in os.listdir(directory):
            path = os.path.join(directory, name)
            if os.path.isfile(path) and os.path.splitext(name)[1].lower() in SUPPORTED_EXTENSIONS:
                found.append(path)
    return sorted(found)


def _print_progress(progress) -> None:
    current = next((entry for entry in progress if entry.status == "uploading"), None)
    if current:
        print(f"\r{current.filename}: {current.progress:3d}%", end="", flush=True)


@task
def batch_upload(
    c: Context,
    directory: str,
    event: str,
    date: str,
    photographer: str = "",
    location: str = "",
    tags: str = "",
    description: str = "",
    api_url: str = "",
    env_file: str = ".env",
    recursive: bool = False,
    dry_run: bool = False,
):
    """
    Upload photos and videos from a local directory as one event batch.

    Args:
        c (Context): Invoke context.
        directory (str): Directory containing the files.
        event (str): Event name applied to every file.
        date (str): Event date (YYYY-MM-DD) applied to every file.
        photographer (str): Photographer credit.
        location (str): Event location.
        tags (str): Comma-separated tags.
        description (str): Free-text description.
        api_url (str): REST API base URL. When empty the services are called in-process.
        env_file (str): Path to the environment file. Default is '.env'.
        recursive (bool): Search for files in subdirectories. Default is False.
        dry_run (bool): List the files that would be uploaded without uploading. Default is False.
    """
    _load_env(env_file)

    if not os.path.isdir(directory):
        logger.error("directory_not_found", directory=directory)
        return

    metadata = AssetMetadata(
        event=event,
        date=date,
        photographer=photographer,
        location=location,
        tags=tags,  # type: ignore[arg-type]
        description=description,
    )
    try:
        metadata.validate()
    except EventVaultError as e:
        logger.error("invalid_metadata", error=e.message, details=e.details)
        return

    paths = find_media_files(directory, recursive)
    if not paths:
        logger.warning("no_media_files_found", directory=directory)
        return

    items = [UploadItem.from_path(path) for path in paths]
    logger.info("batch_upload_planned", directory=directory, files=len(items), recursive=recursive, dry_run=dry_run)

    if dry_run:
        print("\n--- Dry Run Mode: Files to be uploaded ---")
        for item, path in zip(items, paths, strict=True):
            print(f"- {path} ({format_file_size(item.size)}, {item.mime_type})")
        print("--- End of Dry Run ---")
        return

    if api_url:
        gateway = HttpUploadGateway(api_url)
    else:
        gateway = create_services(load_settings()).upload_gateway()

    result = UploadOrchestrator(gateway, on_progress=_print_progress).run(items, metadata)
    print()

    for warning in result.warnings:
        print(f"! {warning}")

    completed = sum(1 for entry in result.progress if entry.status == "completed")
    if result.success:
        print(f"\nBatch upload complete. Uploaded: {completed}/{len(items)}")
    else:
        print(f"\nBatch upload stopped. Uploaded: {completed}/{len(items)}. {result.error}")


@task
def sweep_orphans(c: Context, grace_hours: int = -1, dry_run: bool = False, env_file: str = ".env"):
    """
    Delete stored objects that no asset record references.

    Args:
        c (Context): Invoke context.
        grace_hours (int): Minimum object age in hours. Defaults to ORPHAN_GRACE_HOURS.
        dry_run (bool): Report orphans without deleting them.
        env_file (str): Path to the environment file. Default is '.env'.
    """
    _load_env(env_file)

    try:
        settings = load_settings()
        services = create_services(settings)
    except EventVaultError as e:
        logger.error("sweep_setup_failed", error=str(e))
        return

    hours = settings.orphan_grace_hours if grace_hours < 0 else grace_hours
    report = run_orphan_sweep(services.storage, services.metadata, grace_hours=hours, dry_run=dry_run)

    print(f"Scanned {report.scanned} object(s); {len(report.orphans)} orphan(s) older than {hours}h.")
    for key in report.orphans:
        print(f"- {key}")
    if not dry_run:
        print(f"Deleted: {len(report.deleted)}, Failed: {len(report.failed)}")


@task
def serve_api(c: Context, host: str = "127.0.0.1", port: int = 8000, env_file: str = ".env"):
    """
    Run the REST API with uvicorn.

    Args:
        c (Context): Invoke context.
        host (str): Interface to bind.
        port (int): Port to listen on.
        env_file (str): Path to the environment file. Default is '.env'.
    """
    _load_env(env_file)
    app = create_app(load_settings())
    logger.info("api_server_starting", host=host, port=port)
    uvicorn.run(app, host=host, port=port)
