"""
Integration tests for programs, enrollment and discovery.
"""
from fastapi.testclient import TestClient


class TestPrograms:
    def test_list_programs(self, test_client: TestClient, acme_headers):
        response = test_client.get("/api/lms/programs", headers=acme_headers)

        assert response.status_code == 200
        ids = [p["id"] for p in response.json()["docs"]]
        assert ids == ["program-acme-dressage", "program-acme-foundations"]

    def test_filter_by_level(self, test_client: TestClient, acme_headers):
        response = test_client.get(
            "/api/lms/programs", params={"level": "Beginner"}, headers=acme_headers
        )
        assert [p["id"] for p in response.json()["docs"]] == ["program-acme-foundations"]

    def test_get_program_orders_lessons(self, test_client: TestClient, acme_headers):
        response = test_client.get("/api/lms/programs/program-acme-foundations", headers=acme_headers)

        assert response.status_code == 200
        data = response.json()
        assert [lesson["order"] for lesson in data["lessons"]] == [1, 2]
        assert data["lessons_count"] == 2

    def test_get_program_of_other_tenant(self, test_client: TestClient, acme_headers):
        response = test_client.get("/api/lms/programs/program-riverside-jumping", headers=acme_headers)
        assert response.status_code == 404


class TestEnrollment:
    def test_enroll(self, test_client: TestClient, student_headers):
        response = test_client.post(
            "/api/lms/programs/program-acme-foundations/enroll", headers=student_headers
        )

        assert response.status_code == 201
        assert response.json()["status"] == "active"
        assert response.json()["user_id"] == "user-acme-student"

        again = test_client.post(
            "/api/lms/programs/program-acme-foundations/enroll", headers=student_headers
        )
        assert again.status_code == 409

    def test_enroll_requires_tier(self, test_client: TestClient, student_headers):
        response = test_client.post(
            "/api/lms/programs/program-acme-dressage/enroll", headers=student_headers
        )

        assert response.status_code == 403
        assert response.json()["error"]["details"]["access_level"] == "premium"

    def test_enroll_requires_login(self, test_client: TestClient, acme_headers):
        response = test_client.post(
            "/api/lms/programs/program-acme-foundations/enroll", headers=acme_headers
        )
        assert response.status_code == 401


class TestDiscovery:
    def test_featured_content(self, test_client: TestClient, acme_headers):
        response = test_client.get("/api/lms/featured-content", headers=acme_headers)

        assert response.status_code == 200
        data = response.json()
        assert [v["id"] for v in data["videos"]] == ["video-acme-1"]
        assert [p["id"] for p in data["programs"]] == ["program-acme-foundations"]

    def test_search(self, test_client: TestClient, acme_headers):
        response = test_client.get("/api/lms/search", params={"q": "dressage"}, headers=acme_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["query"] == "dressage"
        assert data["results"][0]["title"] == "Dressage Intensive"
        assert {r["type"] for r in data["results"]} == {"video", "program"}
        assert data["total"] == len(data["results"])

    def test_search_is_tenant_scoped(self, test_client: TestClient):
        response = test_client.get(
            "/api/lms/search",
            params={"q": "jumping"},
            headers={"Host": "riverside.lms.example.com"},
        )

        ids = [r["id"] for r in response.json()["results"]]
        assert "video-riverside-1" in ids
        assert "program-riverside-jumping" in ids

    def test_empty_search(self, test_client: TestClient, acme_headers):
        response = test_client.get("/api/lms/search", headers=acme_headers)
        assert response.json() == {"results": [], "query": "", "total": 0}
