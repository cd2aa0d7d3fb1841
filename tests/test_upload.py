"""Tests for single-file upload: service behavior and the POST /files route."""

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

from fastapi.testclient import TestClient

from filemanager.main import create_app
from filemanager.services.upload_service import parse_recorded_at

JSON = {"Accept": "application/json"}


def _upload(client: TestClient, filename: str = "clip.mp4", content: bytes = b"video-bytes", **data):
    return client.post(
        "/files",
        files={"file": (filename, content, "video/mp4")},
        data=data,
        follow_redirects=False,
    )


def _as_utc(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class TestParseRecordedAt:
    def test_fixed_format(self):
        assert parse_recorded_at("2024-03-01T10:00") == datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)

    def test_missing_or_garbage_means_now(self):
        now = datetime.now(timezone.utc)
        for value in (None, "", "yesterday", "2024-03-01 10:00", "2024-13-01T10:00"):
            assert abs(parse_recorded_at(value) - now) < timedelta(seconds=5)

    def test_garbage_is_logged_as_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="filemanager.services.upload_service"):
            parse_recorded_at("yesterday")
        assert [r.levelno for r in caplog.records] == [logging.WARNING]
        assert "yesterday" in caplog.records[0].getMessage()


class TestUploadRoute:
    def test_redirects_to_listing(self, client: TestClient):
        resp = _upload(client)
        assert resp.status_code == 302
        assert resp.headers["location"] == "/files"

    def test_name_defaults_to_filename(self, client: TestClient):
        _upload(client, "holiday.mp4", b"12345")

        files = client.get("/files", headers=JSON).json()

        assert len(files) == 1
        assert files[0]["name"] == "holiday.mp4"
        assert files[0]["size"] == 5
        assert files[0]["uuid"] == ""
        assert files[0]["duration"] == 0

    def test_supplied_name_and_recorded_at(self, client: TestClient):
        _upload(client, name="Beach day", recorded_at="2024-03-01T10:00")

        record = client.get("/files", headers=JSON).json()[0]

        assert record["name"] == "Beach day"
        assert _as_utc(record["recorded_at"]) == datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)

    def test_unparsable_recorded_at_defaults_to_now(self, client: TestClient):
        resp = _upload(client, recorded_at="not-a-date")
        assert resp.status_code == 302

        record = client.get("/files", headers=JSON).json()[0]

        assert abs(_as_utc(record["recorded_at"]) - datetime.now(timezone.utc)) < timedelta(minutes=1)

    def test_bytes_written_to_storage(self, client: TestClient, test_settings):
        _upload(client, "notes.txt", b"hello")

        record = client.get("/files", headers=JSON).json()[0]

        assert Path(record["path"]).read_bytes() == b"hello"
        assert Path(record["path"]).parent == Path(test_settings.FILE_STORAGE_PATH)

    def test_uploaded_file_is_served(self, client: TestClient):
        _upload(client, "notes.txt", b"hello")

        resp = client.get("/uploads/notes.txt")

        assert resp.status_code == 200
        assert resp.content == b"hello"

    def test_missing_file_part_is_bad_request(self, client: TestClient):
        resp = client.post("/files", data={"name": "nothing"}, follow_redirects=False)

        assert resp.status_code == 400
        assert resp.json()["detail"] == "File upload failed"
        assert client.get("/files", headers=JSON).json() == []

    def test_same_filename_overwrites_by_default(self, client: TestClient):
        _upload(client, "a.txt", b"one")
        _upload(client, "a.txt", b"two")

        files = client.get("/files", headers=JSON).json()

        assert len(files) == 2
        assert files[0]["path"] == files[1]["path"]
        assert Path(files[0]["path"]).read_bytes() == b"two"


def test_reject_policy_returns_conflict(test_settings):
    settings = test_settings.model_copy(update={"COLLISION_POLICY": "reject"})
    with TestClient(create_app(settings)) as client:
        assert _upload(client, "a.txt", b"one").status_code == 302
        resp = _upload(client, "a.txt", b"two")

        assert resp.status_code == 409
        assert len(client.get("/files", headers=JSON).json()) == 1


def test_rename_policy_keeps_both_files(test_settings):
    settings = test_settings.model_copy(update={"COLLISION_POLICY": "rename"})
    with TestClient(create_app(settings)) as client:
        _upload(client, "a.txt", b"one")
        _upload(client, "a.txt", b"two")

        files = client.get("/files", headers=JSON).json()

        assert [Path(f["path"]).name for f in files] == ["a.txt", "a_1.txt"]
        assert [f["name"] for f in files] == ["a.txt", "a.txt"]
