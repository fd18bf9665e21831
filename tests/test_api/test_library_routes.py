"""
API tests — library CRUD, upload, duplicates and single-file auto-tag.

Run: pytest tests/test_api/test_library_routes.py -v
"""

import sys
from pathlib import Path

import pytest

BACKEND_DIR = Path(__file__).resolve().parents[2] / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from helpers import PNG_1X1, box_triangles, build_3mf, build_binary_stl, model_xml


def _upload(client, name, content, prefix="/api/v1"):
    return client.post(f"{prefix}/library/upload", files={"file": (name, content, "application/octet-stream")})


@pytest.fixture
def holder_stl():
    return build_binary_stl(box_triangles(25, 25, 25))


class TestHealth:

    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["database"] == "ok"


class TestUpload:

    def test_upload_stl_is_described(self, client, holder_stl):
        r = _upload(client, "phone_holder_v2.stl", holder_stl)
        assert r.status_code == 201, r.text
        body = r.json()
        assert body["file_type"] == "stl"
        assert body["file_name"] == f"{body['id']}_phone_holder_v2.stl"
        assert body["file_size"] == len(holder_stl)
        assert {"functional", "household", "miniature"} <= set(body["tags"])
        assert body["description"] == "25×25×25mm - small model (< 30mm)"
        assert body["duplicate_of"] is None

    def test_upload_3mf_metadata(self, client):
        content = build_3mf(model_xml(Description="Great &amp;lt;b&amp;gt;vase&amp;lt;/b&amp;gt;"))
        r = _upload(client, "vase.3mf", content)
        assert r.status_code == 201, r.text
        assert r.json()["description"] == "Great vase"

    def test_duplicate_upload_reported(self, client, holder_stl):
        first = _upload(client, "a.stl", holder_stl).json()
        second = _upload(client, "b.stl", holder_stl).json()
        assert second["duplicate_of"] == first["id"]
        assert second["file_hash"] == first["file_hash"]

    def test_unsupported_extension(self, client):
        r = _upload(client, "notes.txt", b"hello")
        assert r.status_code == 400

    def test_empty_file(self, client):
        r = _upload(client, "empty.stl", b"")
        assert r.status_code == 400

    def test_too_large(self, client, monkeypatch):
        from core.config import settings
        monkeypatch.setattr(settings, "upload_max_bytes", 10)
        r = _upload(client, "big.gcode", b"G1 X1\n" * 10)
        assert r.status_code == 413

    def test_legacy_prefix(self, client, holder_stl):
        assert _upload(client, "x.stl", holder_stl, prefix="/api").status_code == 201


class TestCrud:

    def test_list_and_filters(self, client, holder_stl):
        _upload(client, "phone_holder_v2.stl", holder_stl)
        _upload(client, "gear.gcode", b"G28\n")

        all_files = client.get("/api/v1/library").json()
        assert len(all_files) == 2

        by_tag = client.get("/api/v1/library", params={"tag": "mechanical"}).json()
        assert [f["original_name"] for f in by_tag] == ["gear.gcode"]

        by_type = client.get("/api/v1/library", params={"file_type": "stl"}).json()
        assert [f["original_name"] for f in by_type] == ["phone_holder_v2.stl"]

        by_search = client.get("/api/v1/library", params={"search": "HOLDER"}).json()
        assert len(by_search) == 1

    def test_get_missing(self, client):
        assert client.get("/api/v1/library/99999").status_code == 404

    def test_update_description(self, client, holder_stl):
        file_id = _upload(client, "a.stl", holder_stl).json()["id"]
        r = client.put(f"/api/v1/library/{file_id}/description", json={"description": "  Hand written  "})
        assert r.status_code == 200
        assert r.json()["description"] == "Hand written"

    def test_update_tags_normalized(self, client, holder_stl):
        file_id = _upload(client, "a.stl", holder_stl).json()["id"]
        r = client.put(f"/api/v1/library/{file_id}/tags", json={"tags": [" Vase ", "vase", "", "GIFT"]})
        assert r.status_code == 200
        assert r.json()["tags"] == ["vase", "gift"]

    def test_update_missing_file(self, client):
        r = client.put("/api/v1/library/99999/tags", json={"tags": ["a"]})
        assert r.status_code == 404

    def test_delete(self, client, library_dir, holder_stl):
        body = _upload(client, "a.stl", holder_stl).json()
        r = client.delete(f"/api/v1/library/{body['id']}")
        assert r.status_code == 204
        assert client.get(f"/api/v1/library/{body['id']}").status_code == 404
        assert not list(library_dir.glob(f"{body['id']}_*"))

    def test_delete_missing(self, client):
        assert client.delete("/api/v1/library/99999").status_code == 404


class TestSingleAutoTag:

    def test_auto_tag_overwrites_manual_edits(self, client, holder_stl):
        file_id = _upload(client, "phone_holder_v2.stl", holder_stl).json()["id"]
        client.put(f"/api/v1/library/{file_id}/tags", json={"tags": ["mine"]})

        r = client.post(f"/api/v1/library/{file_id}/auto-tag")
        assert r.status_code == 200
        body = r.json()
        assert body["file_id"] == file_id
        assert "household" in body["tags"]
        assert body["language"] == "en"

        stored = client.get(f"/api/v1/library/{file_id}").json()
        assert stored["tags"] == body["tags"]

    def test_auto_tag_3mf_returns_metadata(self, client):
        content = build_3mf(model_xml(Title="Desk Caddy", Designer="maker"))
        file_id = _upload(client, "caddy.3mf", content).json()["id"]
        body = client.post(f"/api/v1/library/{file_id}/auto-tag").json()
        assert body["metadata"]["title"] == "Desk Caddy"
        assert body["metadata"]["designer"] == "maker"
        assert "remix" in body["tags"]

    def test_auto_tag_3mf_returns_print_settings(self, client):
        content = build_3mf(
            model_xml(Title="Vase"),
            extra={"Metadata/model_settings.config": "layer_height = 0.2\nwall_loops = 2\n"},
        )
        file_id = _upload(client, "vase.3mf", content).json()["id"]
        body = client.post(f"/api/v1/library/{file_id}/auto-tag").json()
        assert body["metadata"]["print_settings"] == {"layer_height": "0.2", "wall_loops": "2"}

    def test_auto_tag_missing(self, client):
        assert client.post("/api/v1/library/99999/auto-tag").status_code == 404


class TestThumbnail:

    def test_plate_thumbnail_served(self, client):
        content = build_3mf(model_xml(Title="Vase"), extra={"Metadata/plate_1.png": PNG_1X1})
        body = _upload(client, "vase.3mf", content).json()
        assert body["thumbnail_path"]
        r = client.get(f"/api/v1/library/{body['id']}/thumbnail")
        assert r.status_code == 200
        assert r.headers["content-type"] == "image/png"
        assert r.content == PNG_1X1

    def test_no_thumbnail(self, client, holder_stl):
        file_id = _upload(client, "a.stl", holder_stl).json()["id"]
        assert client.get(f"/api/v1/library/{file_id}/thumbnail").status_code == 404

    def test_thumbnail_removed_with_file(self, client):
        content = build_3mf(model_xml(Title="Vase"), extra={"Metadata/plate_1.png": PNG_1X1})
        body = _upload(client, "vase.3mf", content).json()
        assert client.delete(f"/api/v1/library/{body['id']}").status_code == 204
        assert not Path(body["thumbnail_path"]).exists()


class TestDuplicates:

    def test_group_by_hash(self, client, holder_stl):
        a = _upload(client, "a.stl", holder_stl).json()
        b = _upload(client, "b.stl", holder_stl).json()
        _upload(client, "c.gcode", b"G28\n")

        r = client.get("/api/v1/library/duplicates")
        assert r.status_code == 200
        body = r.json()
        assert body["group_by"] == "hash"
        assert body["total_groups"] == 1
        assert body["reclaimable_bytes"] == len(holder_stl)
        group = body["duplicates"][0]
        assert [f["id"] for f in group["files"]] == [a["id"], b["id"]]
        assert group["reason"] == "same content hash"

    def test_group_by_name(self, client):
        _upload(client, "Benchy.gcode", b"G28\n")
        _upload(client, "benchy.stl", build_binary_stl(box_triangles(10, 10, 10)))
        body = client.get("/api/v1/library/duplicates", params={"groupBy": "name"}).json()
        assert body["total_groups"] == 1
        assert body["duplicates"][0]["name"] == "benchy"

    def test_group_by_size(self, client):
        _upload(client, "a.gcode", b"G1 X1\n")
        _upload(client, "b.gcode", b"G1 X2\n")
        body = client.get("/api/v1/library/duplicates", params={"groupBy": "size"}).json()
        assert body["total_groups"] == 1
        assert body["duplicates"][0]["name"] == "6 bytes"

    def test_invalid_group_by(self, client):
        assert client.get("/api/v1/library/duplicates", params={"groupBy": "colour"}).status_code == 422

    def test_no_duplicates(self, client):
        body = client.get("/api/v1/library/duplicates").json()
        assert body == {"group_by": "hash", "total_groups": 0, "reclaimable_bytes": 0, "duplicates": []}
