"""
HTTP route tests against the in-memory store.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt

from coursehub.courses import config
from coursehub.courses.app import setup_course_routes
from coursehub.courses.dependencies import get_current_user_id, get_store


@pytest.fixture
def app(store):
    app = FastAPI()
    setup_course_routes(app)
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_current_user_id] = lambda: "u1"
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


def bearer_headers(monkeypatch, claims, scheme="Bearer"):
    monkeypatch.setattr("coursehub.courses.auth.JWT_SECRET_KEY", "secret")
    token = jwt.encode(claims, "secret", algorithm="HS256")
    return {"Authorization": f"{scheme} {token}"}


def admin_headers(monkeypatch, role):
    return bearer_headers(monkeypatch, {"sub": "admin-1", "role": role})


class TestProgressRoutes:

    def test_progress(self, client):
        resp = client.get("/courses/course/C1/progress")
        assert resp.status_code == 200
        body = resp.json()
        assert body["total_lessons"] == 3
        assert body["completed_lesson_ids"] == []
        assert body["progress"] == 0

    def test_not_enrolled(self, app, client):
        app.dependency_overrides[get_current_user_id] = lambda: "stranger"
        resp = client.get("/courses/course/C1/progress")
        assert resp.status_code == 404

    def test_unknown_course(self, client):
        assert client.get("/courses/course/nope/progress").status_code == 404

    def test_toggle_and_set(self, client):
        resp = client.post("/courses/course/C1/lessons/L1/toggle")
        assert resp.status_code == 200
        assert resp.json()["completed_lesson_ids"] == ["L1"]

        resp = client.put("/courses/course/C1/lessons/L1/completion", json={"completed": True})
        assert resp.json()["completed_lesson_ids"] == ["L1"]

        resp = client.put("/courses/course/C1/lessons/L1/completion", json={"completed": False})
        assert resp.json()["completed_lesson_ids"] == []

    def test_completion_event_in_response(self, client):
        for lesson in ("L1", "L2"):
            body = client.post(f"/courses/course/C1/lessons/{lesson}/toggle").json()
            assert body["course_completed"] is None
        body = client.post("/courses/course/C1/lessons/L3/toggle").json()
        assert body["progress"] == 100
        assert body["course_completed"]["course_id"] == "C1"

    def test_unknown_lesson_is_rejected(self, store, client):
        resp = client.put("/courses/course/C1/lessons/BOGUS/completion", json={"completed": True})
        assert resp.status_code == 404
        assert store.tables["enrollments"][0]["completed_lesson_ids"] == []

        resp = client.post("/courses/course/C1/lessons/BOGUS/toggle")
        assert resp.status_code == 404
        assert store.tables["enrollments"][0]["completed_lesson_ids"] == []

    def test_store_outage(self, store, client):
        store.fail = True
        resp = client.post("/courses/course/C1/lessons/L1/toggle")
        assert resp.status_code == 503
        assert "detail" in resp.json()


class TestQuizRoutes:

    def test_submit_quiz(self, client):
        resp = client.post(
            "/courses/course/C1/lessons/L1/quiz",
            json={"answers": {"q1": 0, "q2": 1, "q3": 0, "q4": 0}},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["score"] == 75.0
        assert body["passed"] is True
        assert body["lesson_completed"] is True
        assert body["correct_answers"] == {"q1": 0, "q2": 1, "q3": 2, "q4": 0}

        resp = client.get("/courses/course/C1/performance")
        assert resp.json()["average_score"] == 75.0

    def test_quiz_on_lesson_without_quiz(self, client):
        resp = client.post("/courses/course/C1/lessons/L2/quiz", json={"answers": {}})
        assert resp.status_code == 422


class TestEnrollmentRoutes:

    def test_enroll_and_list(self, app, client):
        app.dependency_overrides[get_current_user_id] = lambda: "u2"
        resp = client.post("/courses/enroll", json={"course_id": "C1"})
        assert resp.status_code == 200
        assert resp.json()["enrollment_id"].startswith("ENR_")

        resp = client.get("/courses/my-courses")
        assert resp.json()["count"] == 1

    def test_enroll_unknown_course(self, client):
        resp = client.post("/courses/enroll", json={"course_id": "nope"})
        assert resp.status_code == 404


class TestCatalogRoutes:

    def test_catalog_list(self, client):
        body = client.get("/courses/catalog").json()
        assert body["count"] == 1
        assert body["courses"][0]["lesson_count"] == 3

    def test_catalog_hides_answer_key(self, client):
        body = client.get("/courses/catalog/C1").json()
        question = body["modules"][0]["lessons"][0]["quiz"]["questions"][0]
        assert "correct_option_index" not in question

    def test_invalid_coupon(self, client):
        resp = client.post("/courses/coupons/validate", json={"code": "nope", "course_id": "C1"})
        assert resp.status_code == 400


class TestAdminRoutes:

    def test_overview_requires_admin(self, client, monkeypatch):
        resp = client.get("/courses/admin/progress", headers=admin_headers(monkeypatch, "ALUNO"))
        assert resp.status_code == 403

    def test_overview_without_token(self, client):
        assert client.get("/courses/admin/progress").status_code == 401

    def test_overview(self, client, monkeypatch):
        client.post("/courses/course/C1/lessons/L1/toggle")
        resp = client.get(
            "/courses/admin/progress",
            headers=admin_headers(monkeypatch, config.ADMIN_ROLE),
        )
        assert resp.status_code == 200
        entries = resp.json()
        assert len(entries) == 1
        assert entries[0]["user_id"] == "u1"
        assert entries[0]["progress"] == pytest.approx(100 / 3)

    def test_token_without_subject(self, client, monkeypatch):
        headers = bearer_headers(monkeypatch, {"role": config.ADMIN_ROLE})
        assert client.get("/courses/admin/progress", headers=headers).status_code == 401

    def test_scheme_is_case_insensitive(self, client, monkeypatch):
        headers = bearer_headers(
            monkeypatch, {"sub": "admin-1", "role": config.ADMIN_ROLE}, scheme="bearer"
        )
        assert client.get("/courses/admin/progress", headers=headers).status_code == 200

    def test_malformed_token(self, client):
        headers = {"Authorization": "Bearer not-a-jwt"}
        assert client.get("/courses/admin/progress", headers=headers).status_code == 401
