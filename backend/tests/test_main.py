"""Tests for the FastAPI endpoints."""

import json

import pytest
from fastapi.testclient import TestClient

import main


@pytest.fixture
def client(monkeypatch, snapshot):
    """Client with the sample family loaded."""
    monkeypatch.setattr(main, "current_snapshot", snapshot)
    return TestClient(main.app)


@pytest.fixture
def empty_client(monkeypatch):
    """Client with no family data loaded."""
    monkeypatch.setattr(main, "current_snapshot", None)
    return TestClient(main.app)


class TestHealthAndUpload:
    """Tests for health and data upload endpoints."""

    def test_health(self, empty_client):
        response = empty_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "data_loaded": False}

    def test_upload_family(self, empty_client, sample_family_path):
        with open(sample_family_path, "rb") as f:
            response = empty_client.post(
                "/upload-family",
                files={"file": ("sample-family.json", f, "application/json")},
            )
        assert response.status_code == 200
        data = response.json()
        assert data["individual_count"] == 19
        assert data["family_count"] == 6
        assert data["individuals"][0]["name"] == "Archie Mountbatten-Windsor"
        assert main.current_snapshot is not None

    def test_upload_wrong_extension(self, empty_client):
        response = empty_client.post(
            "/upload-family",
            files={"file": ("tree.ged", b"0 HEAD", "text/plain")},
        )
        assert response.status_code == 400

    def test_upload_invalid_content(self, empty_client):
        response = empty_client.post(
            "/upload-family",
            files={"file": ("tree.json", json.dumps({"individuals": [{"id": "a"}]}), "application/json")},
        )
        assert response.status_code == 400
        assert "Failed to parse" in response.json()["detail"]

    def test_queries_require_data(self, empty_client):
        for url in ("/individuals", "/tree/i1", "/relationship?start=i1&end=i3", "/roots", "/youngest"):
            assert empty_client.get(url).status_code == 400


class TestIndividualEndpoints:
    """Tests for individual listing and profile endpoints."""

    def test_list_individuals(self, client):
        data = client.get("/individuals").json()
        assert len(data["individuals"]) == 19

    def test_search_individuals(self, client):
        data = client.get("/individuals", params={"q": "harry"}).json()
        assert [p["id"] for p in data["individuals"]] == ["i11"]

    def test_get_individual(self, client):
        data = client.get("/individuals/i1").json()
        assert data["name"] == "Queen Elizabeth II"
        assert data["childInFamilyId"] == "f0"

    def test_get_individual_not_found(self, client):
        assert client.get("/individuals/nobody").status_code == 404

    def test_relations(self, client):
        data = client.get("/individuals/i6/relations").json()
        types = [group["type"] for group in data["relations"]]
        assert types == ["Anak", "Pasangan", "Orang Tua", "Saudara Kandung"]

    def test_relations_not_found(self, client):
        assert client.get("/individuals/nobody/relations").status_code == 404

    def test_roots_and_youngest(self, client):
        assert len(client.get("/roots").json()["individuals"]) == 7
        assert len(client.get("/youngest").json()["individuals"]) == 9


class TestTreeEndpoint:
    """Tests for the tree endpoint."""

    def test_descendant_tree(self, client):
        data = client.get("/tree/i1").json()
        assert data["orientation"] == "descendants"
        assert data["root_person"]["id"] == "i1"
        assert [c["id"] for c in data["tree"]["children"]] == ["i3", "i15", "i16", "i17"]

    def test_ancestor_tree(self, client):
        data = client.get("/tree/i1", params={"orientation": "ancestors"}).json()
        assert data["tree"]["ahnentafel"] == 1
        assert [c["id"] for c in data["tree"]["children"]] == ["i18", "i19"]

    def test_max_depth(self, client):
        data = client.get("/tree/i18", params={"max_depth": 1}).json()
        child = data["tree"]["children"][0]
        assert child["id"] == "i1"
        assert "children" not in child

    def test_invalid_orientation(self, client):
        assert client.get("/tree/i1", params={"orientation": "sideways"}).status_code == 422

    def test_tree_not_found(self, client):
        assert client.get("/tree/nobody").status_code == 404


class TestRelationshipEndpoint:
    """Tests for the relationship path endpoint."""

    def test_path_found(self, client):
        data = client.get("/relationship", params={"start": "i8", "end": "i18"}).json()
        assert data["found"] is True
        assert data["hops"] == 4
        assert [n["individualId"] for n in data["path"]] == ["i8", "i6", "i3", "i1", "i18"]
        assert data["path"][1]["relationship"] == "Ayah"
        assert data["path"][-1]["displayTerm"] == "Canggah"

    def test_same_person(self, client):
        data = client.get("/relationship", params={"start": "i3", "end": "i3"}).json()
        assert data == {"found": False, "hops": None, "path": None}

    def test_unknown_person(self, client):
        response = client.get("/relationship", params={"start": "i3", "end": "nobody"})
        assert response.status_code == 404
