from fastapi.testclient import TestClient

from jobboard.api.app import create_app


def test_job_create_list_update_delete_api() -> None:
    with TestClient(create_app()) as client:
        assert client.get("/health").json() == {"status": "ok"}

        create_resp = client.post(
            "/api/users/alice/jobs",
            json={"title": "Backend Engineer", "company": "Acme", "url": "https://acme.example/jobs/1"},
        )
        assert create_resp.status_code == 201
        record_id = create_resp.json()["id"]

        list_resp = client.get("/api/users/alice/jobs")
        assert list_resp.status_code == 200
        (item,) = list_resp.json()
        assert item["id"] == record_id
        assert item["status"] == "saved"
        assert item["notes"] is None

        patch_resp = client.patch(f"/api/jobs/{record_id}", json={"status": "interview_stage"})
        assert patch_resp.status_code == 204
        assert client.get("/api/users/alice/jobs").json()[0]["status"] == "interview_stage"

        assert client.get("/api/users/bob/jobs").json() == []

        delete_resp = client.delete(f"/api/jobs/{record_id}")
        assert delete_resp.status_code == 204
        assert client.get("/api/users/alice/jobs").json() == []


def test_job_api_rejects_invalid_input() -> None:
    with TestClient(create_app()) as client:
        empty_title = client.post("/api/users/alice/jobs", json={"title": " ", "company": "Acme"})
        assert empty_title.status_code == 400
        assert "title" in empty_title.json()["detail"]

        bad_status = client.post(
            "/api/users/alice/jobs",
            json={"title": "Backend Engineer", "company": "Acme", "status": "ghosted"},
        )
        assert bad_status.status_code == 422

        missing = client.patch("/api/jobs/nope", json={"status": "offer"})
        assert missing.status_code == 404


def test_change_stream_pushes_events_for_the_user() -> None:
    with TestClient(create_app()) as client:
        with client.websocket_connect("/api/users/alice/changes") as ws:
            create_resp = client.post("/api/users/alice/jobs", json={"title": "Backend Engineer", "company": "Acme"})
            record_id = create_resp.json()["id"]
            assert ws.receive_json() == {"type": "INSERT", "record_id": record_id, "user_id": "alice"}

            client.post("/api/users/bob/jobs", json={"title": "Designer", "company": "Globex"})
            client.delete(f"/api/jobs/{record_id}")
            assert ws.receive_json() == {"type": "DELETE", "record_id": record_id, "user_id": "alice"}


def test_job_api_rejects_null_for_required_fields() -> None:
    with TestClient(create_app()) as client:
        record_id = client.post("/api/users/alice/jobs", json={"title": "A", "company": "B"}).json()["id"]

        for field in ("title", "company", "status"):
            resp = client.patch(f"/api/jobs/{record_id}", json={field: None})
            assert resp.status_code == 400
            assert f"{field} must not be null" in resp.json()["detail"]

        (item,) = client.get("/api/users/alice/jobs").json()
        assert (item["title"], item["company"], item["status"]) == ("A", "B", "saved")
