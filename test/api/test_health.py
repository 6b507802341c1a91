from app.core.auth import Auth


def test_health_endpoint(client):
    """Test the basic health endpoint works correctly"""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert "version" in data
    assert "timestamp" in data


def test_root_endpoint(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["success"] is True


def test_stats_requires_token(client):
    response = client.get("/stats")
    assert response.status_code == 401


def test_stats_rejects_bad_token(client):
    response = client.get("/stats", headers={"Authorization": "Bearer nonsense"})
    assert response.status_code == 401


def test_stats_for_new_tenant(client, auth_headers):
    response = client.get("/stats", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total_tables"] == 0
    assert data["total_rows"] == 0
    assert data["storage_used"] == "0 MB"
    assert data["api_calls"] == 0
    assert data["realtime_connections"] == 0


def test_stats_counts_rows(client, auth_headers):
    project = client.post(
        "/projects", json={"name": "Shop", "region": "us-east-1"}, headers=auth_headers
    ).json()["data"]
    table = client.post(
        f"/projects/{project['id']}/tables",
        json={"name": "notes", "columns": [{"name": "body", "type": "text"}]},
        headers=auth_headers,
    ).json()["data"]
    for body in ("a", "b", "c"):
        client.post(
            f"/projects/{project['id']}/tables/{table['id']}/rows",
            json={"body": body},
            headers=auth_headers,
        )

    data = client.get("/stats", headers=auth_headers).json()["data"]
    assert data["total_tables"] == 1
    assert data["total_rows"] == 3


def test_close_session(client, auth_headers):
    client.post("/projects", json={"name": "Shop", "region": "us-east-1"}, headers=auth_headers)

    response = client.delete("/session", headers=auth_headers)
    assert response.json()["message"] == "Session closed"
    response = client.delete("/session", headers=auth_headers)
    assert response.json()["message"] == "No open session"

    # Projects are reloaded from storage on the next request
    projects = client.get("/projects", headers=auth_headers).json()["data"]
    assert [p["name"] for p in projects] == ["Shop"]


def test_tenants_see_only_their_projects(client, auth_headers):
    client.post("/projects", json={"name": "Shop", "region": "us-east-1"}, headers=auth_headers)

    other = {"Authorization": f"Bearer {Auth.create_access_token('someone_else')}"}
    response = client.get("/projects", headers=other)
    assert response.json()["data"] == []
