# tests/server/test_nodes.py
"""
Tests for node CRUD and cluster statistics endpoints
"""

from database.models import LogEntry, Resource


def worker(name="worker-1", **overrides):
    body = {
        "name": name,
        "role": "worker",
        "status": "online",
        "ip": "10.0.0.2",
        "cpu_total": 4,
        "cpu_used": 1,
        "mem_total": "16GB",
        "mem_used": "4GB",
        "disk_total": "100GB",
        "disk_used": "10GB",
    }
    body.update(overrides)
    return body


class TestNodeList:

    def test_main_node_is_seeded(self, client, viewer_headers):
        nodes = client.get("/api/nodes", headers=viewer_headers).json()

        assert len(nodes) == 1
        assert nodes[0]["role"] == "main"
        assert nodes[0]["mem_total"] == "32GB"
        assert nodes[0]["disk_total"] == "500GB"

    def test_main_listed_first(self, client, operator_headers):
        client.post("/api/nodes", json=worker("aaa"), headers=operator_headers)

        nodes = client.get("/api/nodes", headers=operator_headers).json()
        assert [n["role"] for n in nodes] == ["main", "worker"]


class TestNodeCreate:

    def test_create_node_updates_stats(self, client, operator_headers):
        response = client.post("/api/nodes", json=worker(), headers=operator_headers)
        assert response.status_code == 201
        assert response.json()["mem_total"] == "16GB"

        stats = client.get("/api/cluster/stats", headers=operator_headers).json()
        assert stats["cpu"]["total"] >= 8
        assert stats["cpu"]["total"] == 12
        assert stats["memory"]["total"] == "48.0GB"
        assert stats["nodes"] == {"total": 2, "online": 2}

    def test_capacity_units_are_normalized(self, client, operator_headers):
        body = worker(mem_total="2048MB", disk_total="1024gb")
        created = client.post("/api/nodes", json=body, headers=operator_headers).json()

        assert created["mem_total"] == "2GB"
        assert created["disk_total"] == "1TB"

    def test_malformed_capacity_is_rejected(self, client, operator_headers):
        response = client.post("/api/nodes", json=worker(mem_total="lots"), headers=operator_headers)
        assert response.status_code == 422

    def test_duplicate_name_is_conflict(self, client, operator_headers):
        client.post("/api/nodes", json=worker("dup"), headers=operator_headers)
        response = client.post("/api/nodes", json=worker("dup"), headers=operator_headers)

        assert response.status_code == 409
        assert response.json()["detail"]["error_code"] == "CONFLICT"

    def test_second_main_is_conflict(self, client, operator_headers):
        response = client.post("/api/nodes", json=worker("main-2", role="main"), headers=operator_headers)
        assert response.status_code == 409

    def test_viewer_cannot_create(self, client, viewer_headers):
        assert client.post("/api/nodes", json=worker(), headers=viewer_headers).status_code == 403

    def test_creation_is_audited(self, client, operator_headers, db_session):
        client.post("/api/nodes", json=worker("audited"), headers=operator_headers)

        entry = db_session.query(LogEntry).filter(LogEntry.action == "NODE_CREATE").one()
        assert "audited" in entry.details


class TestNodeUpdate:

    def test_replace_worker(self, client, operator_headers):
        created = client.post("/api/nodes", json=worker(), headers=operator_headers).json()

        response = client.put(
            f"/api/nodes/{created['id']}",
            json=worker("renamed", status="offline", mem_used="8GB"),
            headers=operator_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "renamed"
        assert body["status"] == "offline"
        assert body["mem_used"] == "8GB"

    def test_update_missing_node_is_404(self, client, operator_headers):
        assert client.put("/api/nodes/999", json=worker(), headers=operator_headers).status_code == 404

    def test_demoting_main_is_conflict(self, client, operator_headers):
        main = client.get("/api/nodes", headers=operator_headers).json()[0]

        response = client.put(
            f"/api/nodes/{main['id']}", json=worker(main["name"]), headers=operator_headers
        )
        assert response.status_code == 409

    def test_promoting_worker_is_conflict(self, client, operator_headers):
        created = client.post("/api/nodes", json=worker(), headers=operator_headers).json()

        response = client.put(
            f"/api/nodes/{created['id']}", json=worker(role="main"), headers=operator_headers
        )
        assert response.status_code == 409

    def test_rename_to_taken_name_is_conflict(self, client, operator_headers):
        client.post("/api/nodes", json=worker("one"), headers=operator_headers)
        two = client.post("/api/nodes", json=worker("two"), headers=operator_headers).json()

        response = client.put(f"/api/nodes/{two['id']}", json=worker("one"), headers=operator_headers)
        assert response.status_code == 409


class TestNodeDelete:

    def test_delete_detaches_resources(self, client, admin_headers, db_session):
        node = client.post("/api/nodes", json=worker(), headers=admin_headers).json()
        resource = client.post(
            "/api/vms", json={"name": "placed", "node_id": node["id"]}, headers=admin_headers
        ).json()

        response = client.delete(f"/api/nodes/{node['id']}", headers=admin_headers)
        assert response.status_code == 204

        names = [n["name"] for n in client.get("/api/nodes", headers=admin_headers).json()]
        assert "worker-1" not in names

        stored = db_session.get(Resource, resource["id"])
        assert stored is not None
        assert stored.node_id is None

        listed = client.get(f"/api/vms/{resource['id']}", headers=admin_headers).json()
        assert listed["node_id"] is None
        assert listed["node_name"] is None

    def test_delete_main_is_conflict(self, client, admin_headers):
        main = client.get("/api/nodes", headers=admin_headers).json()[0]
        assert client.delete(f"/api/nodes/{main['id']}", headers=admin_headers).status_code == 409

    def test_delete_missing_is_404(self, client, admin_headers):
        assert client.delete("/api/nodes/999", headers=admin_headers).status_code == 404

    def test_operator_cannot_delete(self, client, operator_headers):
        node = client.post("/api/nodes", json=worker(), headers=operator_headers).json()
        assert client.delete(f"/api/nodes/{node['id']}", headers=operator_headers).status_code == 403


class TestClusterStats:

    def test_seeded_main_only(self, client, viewer_headers):
        stats = client.get("/api/cluster/stats", headers=viewer_headers).json()

        assert stats["cpu"] == {"total": 8, "used": 2, "percentage": 25}
        assert stats["memory"] == {"total": "32.0GB", "used": "8.0GB", "percentage": 25}
        assert stats["disk"]["total"] == "500.0GB"
        assert stats["disk"]["percentage"] == 24
        assert stats["nodes"] == {"total": 1, "online": 1}

    def test_requires_token(self, client):
        assert client.get("/api/cluster/stats").status_code == 401
