from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import count_bt, hex_of, page_content
from redactor import document
from redactor.main import app

SECRET_REGION = {"x": 40, "y": 690, "width": 300, "height": 30}


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(document, "UPLOAD_DIR", tmp_path)
    return TestClient(app)


@pytest.fixture
def doc_id(client, sample_pdf):
    resp = client.post("/api/upload", files={"file": ("sample.pdf", sample_pdf, "application/pdf")})
    assert resp.status_code == 200
    assert resp.json()["page_count"] == 1
    return resp.json()["doc_id"]


def test_upload_rejects_non_pdf_names(client, sample_pdf):
    resp = client.post("/api/upload", files={"file": ("sample.txt", sample_pdf, "text/plain")})
    assert resp.status_code == 400


def test_upload_rejects_empty_and_invalid(client):
    assert client.post("/api/upload", files={"file": ("a.pdf", b"", "application/pdf")}).status_code == 400
    assert client.post("/api/upload", files={"file": ("a.pdf", b"garbage", "application/pdf")}).status_code == 400


def test_page_info_and_image(client, doc_id):
    info = client.get(f"/api/documents/{doc_id}/pages/1").json()
    assert info == {"page_num": 1, "width": 595, "height": 842}

    image = client.get(f"/api/documents/{doc_id}/pages/1/image")
    assert image.status_code == 200
    assert image.content.startswith(b"\x89PNG")

    assert client.get(f"/api/documents/{doc_id}/pages/2").status_code == 404


def test_bad_and_unknown_ids(client):
    assert client.get("/api/documents/../regions").status_code in (400, 404)
    assert client.get("/api/documents/not-hex/regions").status_code == 400
    assert client.get("/api/documents/0123456789abcdef/regions").status_code == 404


def test_region_management(client, doc_id):
    url = f"/api/documents/{doc_id}/regions"
    resp = client.post(url, json={"page_num": 1, "rects": [SECRET_REGION, {"x": 0, "y": 0, "width": 5, "height": 5}]})
    assert resp.status_code == 200
    assert len(resp.json()["regions"]["1"]) == 2

    resp = client.delete(f"{url}/1/1")
    assert resp.json()["regions"] == {"1": [SECRET_REGION]}

    resp = client.delete(url)
    assert resp.json()["regions"] == {}


def test_region_validation(client, doc_id):
    url = f"/api/documents/{doc_id}/regions"
    bad = {"x": 0, "y": 0, "width": -1, "height": 5}
    assert client.post(url, json={"page_num": 1, "rects": [bad]}).status_code == 422
    assert client.post(url, json={"page_num": 4, "rects": [SECRET_REGION]}).status_code == 404


def test_css_regions_are_converted(client, doc_id):
    url = f"/api/documents/{doc_id}/regions"
    css = {"x": 80, "y": 244, "width": 600, "height": 60}
    resp = client.post(url, json={"page_num": 1, "rects": [css], "units": "css", "scale": 2})
    assert resp.json()["regions"]["1"] == [SECRET_REGION]


def test_redact_without_regions_is_rejected(client, doc_id):
    assert client.post(f"/api/documents/{doc_id}/redact").status_code == 400


def test_redact_and_download(client, doc_id):
    client.post(f"/api/documents/{doc_id}/regions", json={"page_num": 1, "rects": [SECRET_REGION]})

    resp = client.post(f"/api/documents/{doc_id}/redact")
    assert resp.status_code == 200
    assert resp.json() == {"redacted_pages": [1], "skipped_pages": {}}

    # Regions are consumed by the run
    assert client.get(f"/api/documents/{doc_id}/regions").json()["regions"] == {}

    download = client.get(f"/api/documents/{doc_id}/download")
    assert download.status_code == 200
    assert download.headers["content-type"] == "application/pdf"
    content = page_content(download.content)
    assert count_bt(content) == 2
    assert hex_of("SECRET data") not in content


def test_page_regions_listing_and_clear(client, doc_id):
    url = f"/api/documents/{doc_id}/regions"
    client.post(url, json={"page_num": 1, "rects": [SECRET_REGION]})

    pdf_units = client.get(f"{url}/1").json()
    assert pdf_units == {"page_num": 1, "units": "pdf", "rects": [SECRET_REGION]}

    css_units = client.get(f"{url}/1", params={"units": "css", "scale": 2}).json()
    assert css_units["rects"] == [{"x": 80, "y": 244, "width": 600, "height": 60}]

    assert client.get(f"{url}/2").json()["rects"] == []

    resp = client.delete(f"{url}/1")
    assert resp.json()["regions"] == {}
