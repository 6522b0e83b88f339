"""Tests for the folder endpoints."""


def _create(client, headers, name, **extra):
    resp = client.post("/api/folders", json={"name": name, **extra}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestFolderCrud:

    def test_create_returns_folder(self, client, auth_headers):
        data = _create(client, auth_headers, "Work", icon="briefcase")
        assert data["id"].startswith("fld-")
        assert data["owner_type"] == "PERSONAL"
        assert data["sort_order"] == 0

    def test_new_folder_unshifts_siblings(self, client, auth_headers):
        _create(client, auth_headers, "Work")
        _create(client, auth_headers, "Reading")
        items = client.get("/api/folders", headers=auth_headers).json()
        assert [(i["name"], i["sort_order"]) for i in items] == [("Reading", 0), ("Work", 1)]

    def test_duplicate_returns_409(self, client, auth_headers):
        _create(client, auth_headers, "Work")
        resp = client.post("/api/folders", json={"name": "Work"}, headers=auth_headers)
        assert resp.status_code == 409
        assert resp.json()["error"] == "DUPLICATE_NAME"

    def test_blank_name_returns_422(self, client, auth_headers):
        resp = client.post("/api/folders", json={"name": "   "}, headers=auth_headers)
        assert resp.status_code == 422
        assert resp.json()["error"] == "VALIDATION_ERROR"

    def test_team_folder_without_team_returns_403(self, client, solo_headers):
        resp = client.post("/api/folders", json={"name": "T", "owner_type": "TEAM"}, headers=solo_headers)
        assert resp.status_code == 403
        assert resp.json()["error"] == "NO_ACTIVE_TEAM"

    def test_update(self, client, auth_headers):
        folder = _create(client, auth_headers, "Old")
        resp = client.put(f"/api/folders/{folder['id']}", json={"name": "New"}, headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["name"] == "New"

    def test_delete_reports_counts(self, client, auth_headers):
        outer = _create(client, auth_headers, "Outer")
        _create(client, auth_headers, "Inner", parent_id=outer["id"])
        client.post(
            "/api/links",
            json={"folder_id": outer["id"], "url": "https://a.example", "title": "A"},
            headers=auth_headers,
        )

        resp = client.delete(f"/api/folders/{outer['id']}", headers=auth_headers)

        assert resp.status_code == 200
        assert resp.json() == {"folder_id": outer["id"], "deleted_folders": 2, "deleted_links": 1}

    def test_other_users_folder_returns_404(self, client, auth_headers, solo_headers):
        theirs = _create(client, solo_headers, "Theirs")
        resp = client.delete(f"/api/folders/{theirs['id']}", headers=auth_headers)
        assert resp.status_code == 404


class TestMoveAndReorder:

    def test_cyclic_move_returns_400(self, client, auth_headers):
        a = _create(client, auth_headers, "A")
        b = _create(client, auth_headers, "B", parent_id=a["id"])
        c = _create(client, auth_headers, "C", parent_id=b["id"])

        resp = client.put(f"/api/folders/{a['id']}/move", json={"parent_id": c["id"]}, headers=auth_headers)

        assert resp.status_code == 400
        assert resp.json()["error"] == "CYCLIC_MOVE"

    def test_move_to_root(self, client, auth_headers):
        parent = _create(client, auth_headers, "Parent")
        child = _create(client, auth_headers, "Child", parent_id=parent["id"])
        resp = client.put(f"/api/folders/{child['id']}/move", json={"parent_id": None}, headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["parent_id"] is None

    def test_reorder(self, client, auth_headers):
        c = _create(client, auth_headers, "C")
        _create(client, auth_headers, "B")
        _create(client, auth_headers, "A")

        resp = client.put(
            "/api/folders/reorder",
            json={"items": [{"id": c["id"], "sort_order": 0}]},
            headers=auth_headers,
        )

        assert resp.status_code == 200
        assert [f["name"] for f in resp.json()] == ["C", "A", "B"]

    def test_reorder_negative_order_returns_422(self, client, auth_headers):
        c = _create(client, auth_headers, "C")
        resp = client.put(
            "/api/folders/reorder",
            json={"items": [{"id": c["id"], "sort_order": -1}]},
            headers=auth_headers,
        )
        assert resp.status_code == 422


class TestTree:

    def test_tree_has_both_scopes(self, client, auth_headers):
        work = _create(client, auth_headers, "Work")
        _create(client, auth_headers, "Tools", parent_id=work["id"])
        _create(client, auth_headers, "Shared", owner_type="TEAM")

        tree = client.get("/api/folders/tree", headers=auth_headers).json()

        assert tree["has_team"] is True
        assert tree["personal"][0]["children"][0]["name"] == "Tools"
        assert [n["name"] for n in tree["team"]] == ["Shared"]

    def test_flat_list_has_paths(self, client, auth_headers):
        work = _create(client, auth_headers, "Work")
        _create(client, auth_headers, "Tools", parent_id=work["id"])
        items = client.get("/api/folders", params={"owner_type": "PERSONAL"}, headers=auth_headers).json()
        assert [i["path"] for i in items] == ["Work", "Work > Tools"]
