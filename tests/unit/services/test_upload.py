"""
Unit tests for the sequential upload orchestrator and its gateways.
"""

import io
from unittest.mock import MagicMock, Mock, patch

import pytest
import requests

from eventvault.errors import NetworkError, StorageError, UploadError, ValidationError
from eventvault.models.asset import Asset, AssetMetadata
from eventvault.services.upload import (
    COMPLETED,
    ERROR,
    PENDING,
    UPLOADING,
    HttpUploadGateway,
    ProgressReader,
    ServiceUploadGateway,
    UploadGateway,
    UploadItem,
    UploadOrchestrator,
    UploadTicket,
    build_record_fields,
    format_file_size,
    size_warnings,
)

METADATA = {"event": "TechConf 2024", "date": "2024-05-01", "photographer": "Jane", "tags": ["Keynote"]}


class FakeGateway(UploadGateway):
    """In-memory gateway recording every call; failures are injected per step and filename."""

    def __init__(self, fail_url=(), fail_put=(), fail_metadata=(), fail_discard=False):
        self.fail_url = set(fail_url)
        self.fail_put = set(fail_put)
        self.fail_metadata = set(fail_metadata)
        self.fail_discard = fail_discard
        self.calls = []
        self.stored = {}
        self.discarded = []

    def request_upload_url(self, item):
        self.calls.append(("url", item.filename))
        if item.filename in self.fail_url:
            raise UploadError("500 - signing unavailable")
        key = f"assets/{len(self.calls)}-{item.filename}"
        return UploadTicket(upload_url=f"https://signed/{key}", key=key, public_url=f"https://cdn/{key}")

    def put_bytes(self, ticket, body, mime_type):
        self.calls.append(("put", ticket.key))
        data = b""
        while chunk := body.read(4):
            data += chunk
        if any(ticket.key.endswith(name) for name in self.fail_put):
            raise UploadError("Upload failed with status: 403")
        self.stored[ticket.key] = data

    def create_metadata(self, fields):
        self.calls.append(("metadata", fields["original_filename"]))
        if fields["original_filename"] in self.fail_metadata:
            raise UploadError("500 - database locked")
        return Asset.from_dict({**fields, "id": f"id-{fields['original_filename']}"})

    def discard(self, key):
        self.calls.append(("discard", key))
        if self.fail_discard:
            raise StorageError("delete failed")
        self.discarded.append(key)
        self.stored.pop(key, None)


def make_items(*names, size=10):
    return [UploadItem.from_bytes(name, b"x" * size, "image/jpeg") for name in names]


class TestHelpers:
    @pytest.mark.parametrize(
        "size,expected",
        [(512, "512 B"), (2048, "2.0 KB"), (5 * 1024 * 1024, "5.0 MB"), (3 * 1024**3, "3.00 GB")],
    )
    def test_format_file_size(self, size, expected):
        assert format_file_size(size) == expected

    def test_size_warnings_none_for_small_files(self):
        assert size_warnings(make_items("a.jpg")) == []

    def test_size_warnings_large(self):
        items = [UploadItem(filename="big.mp4", mime_type="video/mp4", size=150 * 1024 * 1024, data=b"")]

        warnings = size_warnings(items)

        assert warnings == ["Large files detected: big.mp4 (150.0 MB). Upload may take 3-8 minutes per file."]

    def test_size_warnings_very_large_wins(self):
        items = [
            UploadItem(filename="big.mp4", mime_type="video/mp4", size=150 * 1024 * 1024, data=b""),
            UploadItem(filename="huge.mp4", mime_type="video/mp4", size=600 * 1024 * 1024, data=b""),
        ]

        warnings = size_warnings(items)

        assert len(warnings) == 1
        assert warnings[0].startswith("Very large files detected: huge.mp4 (600.0 MB)")
        assert "big.mp4" not in warnings[0]

    def test_upload_item_requires_content(self):
        with pytest.raises(ValueError):
            UploadItem(filename="a.jpg", mime_type="image/jpeg", size=1)

    def test_upload_item_from_path(self, temp_dir):
        path = temp_dir / "clip.mp4"
        path.write_bytes(b"12345")

        item = UploadItem.from_path(path)

        assert item.filename == "clip.mp4"
        assert item.mime_type == "video/mp4"
        assert item.size == 5
        with item.open() as stream:
            assert stream.read() == b"12345"

    def test_upload_item_from_bytes_guesses_mime_type(self):
        assert UploadItem.from_bytes("photo.png", b"data").mime_type == "image/png"
        assert UploadItem.from_bytes("mystery", b"data").mime_type == "application/octet-stream"

    def test_build_record_fields(self):
        item = UploadItem.from_bytes("clip.mov", b"abc", "video/quicktime")
        ticket = UploadTicket(upload_url="u", key="assets/1-a.mov", public_url="https://cdn/assets/1-a.mov")

        fields = build_record_fields(item, ticket, AssetMetadata.from_dict(METADATA))

        assert fields["filename"] == "assets/1-a.mov"
        assert fields["original_filename"] == "clip.mov"
        assert fields["url"] == "https://cdn/assets/1-a.mov"
        assert fields["file_type"] == "video"
        assert fields["size"] == 3
        assert fields["event"] == "TechConf 2024"


class TestProgressReader:
    def test_reports_bytes_read(self):
        callback = Mock()
        reader = ProgressReader(io.BytesIO(b"abcdef"), 6, callback)

        assert len(reader) == 6
        assert reader.read(4) == b"abcd"
        assert reader.read(4) == b"ef"
        assert reader.read(4) == b""

        assert [c.args for c in callback.call_args_list] == [(4, 6), (6, 6)]

    def test_seek_to_start_resets_counter(self):
        reader = ProgressReader(io.BytesIO(b"abcdef"), 6)
        reader.read(3)

        reader.seek(0)

        assert reader.sent == 0
        assert reader.tell() == 0

    def test_iteration_yields_all_bytes(self):
        reader = ProgressReader(io.BytesIO(b"abc"), 3)
        assert b"".join(reader) == b"abc"


class TestUploadOrchestrator:
    def test_successful_batch(self):
        gateway = FakeGateway()

        result = UploadOrchestrator(gateway).run(make_items("a.jpg", "b.jpg"), METADATA)

        assert result.success is True
        assert result.error is None
        assert [a.original_filename for a in result.assets] == ["a.jpg", "b.jpg"]
        assert all(p.status == COMPLETED and p.progress == 100 for p in result.progress)
        assert gateway.discarded == []

    def test_files_are_processed_strictly_in_order(self):
        gateway = FakeGateway()

        UploadOrchestrator(gateway).run(make_items("a.jpg", "b.jpg"), METADATA)

        assert [step for step, _ in gateway.calls] == ["url", "put", "metadata", "url", "put", "metadata"]
        assert gateway.calls[2] == ("metadata", "a.jpg")
        assert gateway.calls[3] == ("url", "b.jpg")

    def test_metadata_is_applied_to_every_file(self):
        result = UploadOrchestrator(FakeGateway()).run(make_items("a.jpg", "b.jpg"), METADATA)

        assert {a.event for a in result.assets} == {"TechConf 2024"}
        assert all(a.tags == ["Keynote"] for a in result.assets)

    def test_progress_checkpoints(self):
        snapshots = []

        UploadOrchestrator(FakeGateway(), on_progress=snapshots.append).run(make_items("a.jpg", size=8), METADATA)

        values = [s[0].progress for s in snapshots]
        assert snapshots[0][0].status == PENDING
        assert snapshots[1][0].status == UPLOADING
        assert values == [0, 5, 20, 55, 90, 95, 100]
        assert values == sorted(values)
        assert snapshots[-1][0].status == COMPLETED

    def test_progress_snapshots_are_copies(self):
        snapshots = []

        UploadOrchestrator(FakeGateway(), on_progress=snapshots.append).run(make_items("a.jpg"), METADATA)

        assert snapshots[0][0].progress == 0
        assert snapshots[0] is not snapshots[-1]

    def test_no_files_is_rejected_before_any_call(self):
        gateway = FakeGateway()

        with pytest.raises(ValidationError, match="No files provided"):
            UploadOrchestrator(gateway).run([], METADATA)

        assert gateway.calls == []

    @pytest.mark.parametrize("missing", ["event", "date"])
    def test_missing_metadata_is_rejected_before_any_call(self, missing):
        gateway = FakeGateway()
        metadata = {**METADATA, missing: ""}

        with pytest.raises(ValidationError, match="Missing required metadata fields"):
            UploadOrchestrator(gateway).run(make_items("a.jpg"), metadata)

        assert gateway.calls == []

    def test_malformed_date_is_rejected_before_any_call(self):
        gateway = FakeGateway()

        with pytest.raises(ValidationError, match="expected YYYY-MM-DD"):
            UploadOrchestrator(gateway).run(make_items("a.jpg"), {**METADATA, "date": "2024-5-1"})

        assert gateway.calls == []

    def test_batch_is_audited_with_event_name(self):
        gateway = MagicMock()
        gateway.create_metadata.return_value = Asset.from_dict({"id": "rec1", "filename": "assets/1-a.jpg"})

        with patch("eventvault.services.upload.log_user_action") as mock_log:
            result = UploadOrchestrator(gateway).run(make_items("a.jpg"), METADATA)

        assert result.success is True
        gateway.request_upload_url.assert_called_once()
        mock_log.assert_called_with("batch_upload_completed", file_count=1, event_name="TechConf 2024")

    def test_url_failure_stops_batch(self):
        gateway = FakeGateway(fail_url={"b.jpg"})

        result = UploadOrchestrator(gateway).run(make_items("a.jpg", "b.jpg", "c.jpg"), METADATA)

        assert result.success is False
        assert result.error == "Upload failed: Failed to get upload URL: 500 - signing unavailable"
        assert [a.original_filename for a in result.assets] == ["a.jpg"]
        assert ("url", "c.jpg") not in gateway.calls

        first, second, third = result.progress
        assert first.status == COMPLETED
        assert second.status == ERROR
        assert second.error == "Failed to get upload URL: 500 - signing unavailable"
        assert third.status == ERROR
        assert third.error == result.error

    def test_put_failure_reports_status(self):
        gateway = FakeGateway(fail_put={"a.jpg"})

        result = UploadOrchestrator(gateway).run(make_items("a.jpg", "b.jpg"), METADATA)

        assert result.success is False
        assert result.progress[0].error == "Upload failed with status: 403"
        assert result.error == "Upload failed: Upload failed with status: 403"
        assert [step for step, _ in gateway.calls] == ["url", "put"]

    def test_metadata_failure_discards_stored_object(self):
        gateway = FakeGateway(fail_metadata={"a.jpg"})

        result = UploadOrchestrator(gateway).run(make_items("a.jpg"), METADATA)

        assert result.success is False
        assert result.progress[0].error == "Failed to save metadata: 500 - database locked"
        assert len(gateway.discarded) == 1
        assert gateway.stored == {}

    def test_discard_failure_does_not_mask_original_error(self):
        gateway = FakeGateway(fail_metadata={"a.jpg"}, fail_discard=True)

        result = UploadOrchestrator(gateway).run(make_items("a.jpg"), METADATA)

        assert result.error == "Upload failed: Failed to save metadata: 500 - database locked"

    def test_completed_files_stay_completed_after_later_failure(self):
        gateway = FakeGateway(fail_metadata={"b.jpg"})

        result = UploadOrchestrator(gateway).run(make_items("a.jpg", "b.jpg"), METADATA)

        assert result.progress[0].status == COMPLETED
        assert result.progress[0].error is None
        assert len(gateway.stored) == 1

    def test_large_files_produce_warning_but_upload(self):
        item = UploadItem(filename="big.mp4", mime_type="video/mp4", size=200 * 1024 * 1024, data=b"abc")

        result = UploadOrchestrator(FakeGateway()).run([item], METADATA)

        assert result.success is True
        assert result.warnings and result.warnings[0].startswith("Large files detected")


class TestHttpUploadGateway:
    def _response(self, status=200, body=None):
        response = Mock()
        response.status_code = status
        response.ok = 200 <= status < 400
        response.json.return_value = body if body is not None else {}
        response.text = ""
        response.reason = "Error"
        return response

    def test_request_upload_url(self):
        session = MagicMock()
        session.post.return_value = self._response(
            body={"success": True, "presignedUrl": "https://signed", "key": "assets/k.jpg", "publicUrl": "https://c"}
        )
        gateway = HttpUploadGateway("http://api.local/", session=session)

        ticket = gateway.request_upload_url(UploadItem.from_bytes("a.jpg", b"abc"))

        assert ticket == UploadTicket(upload_url="https://signed", key="assets/k.jpg", public_url="https://c")
        url = session.post.call_args.args[0]
        assert url == "http://api.local/api/upload/presigned-url"
        assert session.post.call_args.kwargs["json"] == {"fileName": "a.jpg", "fileType": "image/jpeg", "fileSize": 3}

    def test_api_error_includes_status_and_detail(self):
        session = MagicMock()
        session.post.return_value = self._response(500, {"success": False, "error": "bucket missing"})
        gateway = HttpUploadGateway("http://api.local", session=session)

        with pytest.raises(UploadError, match="500 - bucket missing"):
            gateway.request_upload_url(UploadItem.from_bytes("a.jpg", b"abc"))

    def test_transport_error_is_network_error(self):
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("refused")
        gateway = HttpUploadGateway("http://api.local", session=session)

        with pytest.raises(NetworkError):
            gateway.discard("assets/k.jpg")

    def test_put_bytes_non_2xx(self):
        session = MagicMock()
        session.put.return_value = self._response(403)
        gateway = HttpUploadGateway("http://api.local", session=session)
        ticket = UploadTicket(upload_url="https://signed", key="assets/k.jpg", public_url="https://c")

        with pytest.raises(UploadError, match="Upload failed with status: 403"):
            gateway.put_bytes(ticket, ProgressReader(io.BytesIO(b"abc"), 3), "image/jpeg")

        assert session.put.call_args.kwargs["headers"] == {"Content-Type": "image/jpeg"}

    def test_create_metadata_payload(self, asset_factory):
        session = MagicMock()
        asset = asset_factory.asset(id="rec1")
        session.post.return_value = self._response(body={"success": True, "asset": asset.to_api_dict()})
        gateway = HttpUploadGateway("http://api.local", session=session)
        item = UploadItem.from_bytes("IMG_0001.jpg", b"abc")
        ticket = UploadTicket(upload_url="u", key="assets/k.jpg", public_url="https://c/assets/k.jpg")

        created = gateway.create_metadata(build_record_fields(item, ticket, AssetMetadata.from_dict(METADATA)))

        payload = session.post.call_args.kwargs["json"]
        assert payload["key"] == "assets/k.jpg"
        assert payload["originalFilename"] == "IMG_0001.jpg"
        assert payload["publicUrl"] == "https://c/assets/k.jpg"
        assert payload["metadata"]["event"] == "TechConf 2024"
        assert created.id == "rec1"


class TestServiceUploadGateway:
    def test_round_trip_through_services(self, metadata_service):
        storage = MagicMock()
        storage.generate_key.return_value = "assets/1-abc.jpg"
        storage.issue_upload_url.return_value = "https://signed"
        storage.public_url.return_value = "https://cdn.example.com/assets/1-abc.jpg"
        gateway = ServiceUploadGateway(storage, metadata_service)

        result = UploadOrchestrator(gateway).run(make_items("a.jpg"), METADATA)

        assert result.success is True
        storage.put.assert_called_once()
        assert storage.put.call_args.args[0] == "assets/1-abc.jpg"
        assert metadata_service.get_by_id(result.assets[0].id).filename == "assets/1-abc.jpg"

    def test_metadata_failure_deletes_object(self, metadata_service):
        storage = MagicMock()
        storage.generate_key.side_effect = ["assets/1-abc.jpg", "assets/2-abc.jpg"]
        storage.public_url.side_effect = lambda key: f"https://cdn.example.com/{key}"
        gateway = ServiceUploadGateway(storage, metadata_service)
        item = UploadItem.from_bytes("a.jpg", b"abc")

        result = UploadOrchestrator(gateway).run([item], {"event": "Gala", "date": "2024-05-01"})
        assert result.success is True

        metadata_service.create = Mock(side_effect=UploadError("insert failed"))
        result = UploadOrchestrator(gateway).run([item], {"event": "Gala", "date": "2024-05-01"})

        assert result.success is False
        storage.delete.assert_called_once_with("assets/2-abc.jpg")

    def test_discard_keeps_object_of_existing_record(self, metadata_service, asset_factory):
        metadata_service.create(asset_factory.fields(filename="assets/1-live.jpg"))
        storage = MagicMock()
        gateway = ServiceUploadGateway(storage, metadata_service)

        with pytest.raises(ValidationError, match="still referenced"):
            gateway.discard("assets/1-live.jpg")

        storage.delete.assert_not_called()
