import pytest
from werkzeug.http import parse_options_header

from app.vendorhub.modules.files.api import content_type_for


@pytest.mark.parametrize(
    "filename,content_type",
    [
        ("label.pdf", "application/pdf"),
        ("photo.PNG", "image/png"),
        ("scan.jpg", "image/jpeg"),
        ("scan.jpeg", "image/jpeg"),
        ("notes.txt", "application/octet-stream"),
        ("README", "application/octet-stream"),
    ],
)
def test_content_type_for(filename, content_type):
    assert content_type_for(filename) == content_type


def test_requires_session(client):
    r = client.get("/api/files/labels/1/label.pdf")
    assert r.status_code == 401


def test_missing_file_is_json_404(seller_client):
    r = seller_client.get("/api/files/labels/1/missing.pdf")
    assert r.status_code == 404
    assert r.json == {"error": "File not found"}


def test_relay_stored_file(app, seller_client):
    app.extensions["storage"].put_bytes("labels", "9/2024-01-01/label.png", b"\x89PNG", content_type="image/png")
    r = seller_client.get("/api/files/labels/9/2024-01-01/label.png")
    assert r.status_code == 200
    assert r.data == b"\x89PNG"
    assert r.headers["Content-Type"] == "image/png"
    assert parse_options_header(r.headers["Content-Disposition"]) == ("inline", {"filename": "label.png"})
    assert r.headers["Cache-Control"] == "private, max-age=3600"


def test_disposition_filename_is_quoted(app, seller_client):
    app.extensions["storage"].put_bytes("labels", '9/2024-01-01/a"b.pdf', b"%PDF", content_type="application/pdf")
    r = seller_client.get("/api/files/labels/9/2024-01-01/a%22b.pdf")
    assert r.status_code == 200
    assert r.data == b"%PDF"
    assert parse_options_header(r.headers["Content-Disposition"]) == ("inline", {"filename": 'a"b.pdf'})
