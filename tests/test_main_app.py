from fastapi.testclient import TestClient


def test_health_and_error_envelope(app, hr_headers):
    # `app` fixture has already pointed the database module at the test DB.
    from backend.app.main import app as main_app

    client = TestClient(main_app)
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "Backend running"

    r = client.get("/score/404", headers=hr_headers)
    assert r.status_code == 404
    body = r.json()
    assert body["success"] is False
    assert body["status_code"] == 404
    assert body["error"]


def test_startup_seeds_statuses(app):
    from backend.app import database
    from backend.app.main import app as main_app
    from backend.app.models.application import ApplicationStatus

    with TestClient(main_app) as client:
        assert client.get("/db/health").json() == {"status": "ok"}

    db = database.new_session()
    try:
        labels = {s.status for s in db.query(ApplicationStatus).all()}
    finally:
        db.close()
    assert {"Applied", "Shortlisted", "Interview", "Selected", "Rejected", "On Hold"} <= labels
