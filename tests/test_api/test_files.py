"""Tests for the sample file endpoints."""

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from schema_discovery.api.main import app
from schema_discovery.api.routes.files import get_file

client = TestClient(app)


class TestListFiles:
    """Tests for GET /v1/files."""

    def test_lists_files(self, sample_dir):
        response = client.get("/v1/files")

        assert response.status_code == 200
        assert response.json() == {"files": ["customers.csv", "orders.json"], "count": 2}

    def test_missing_directory(self, sample_dir, monkeypatch):
        from schema_discovery.config import config

        monkeypatch.setattr(config.tools, "sample_files_dir", str(sample_dir / "gone"))

        response = client.get("/v1/files")

        assert response.status_code == 500


class TestGetFile:
    """Tests for GET /v1/files/{filename}."""

    def test_returns_content(self, sample_dir):
        response = client.get("/v1/files/orders.json")

        assert response.status_code == 200
        assert response.json() == {
            "filename": "orders.json",
            "content": '[{"order_id": 10, "customer_id": 1, "total": 9.5}]',
        }

    def test_nested_file(self, sample_dir):
        (sample_dir / "nested").mkdir()
        (sample_dir / "nested" / "a.xml").write_text("<a/>")

        response = client.get("/v1/files/nested/a.xml")

        assert response.status_code == 200
        assert response.json()["content"] == "<a/>"

    def test_missing_file(self, sample_dir):
        response = client.get("/v1/files/nope.csv")
        assert response.status_code == 404

    def test_path_escape_rejected(self, sample_dir):
        with pytest.raises(HTTPException) as exc_info:
            get_file("../outside.txt")
        assert exc_info.value.status_code == 400
