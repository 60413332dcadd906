"""
Integration tests for learner dashboard endpoints:
progress, enrollments, notifications, profile and permissions.
"""
from fastapi.testclient import TestClient


class TestProgressAPI:
    def test_user_progress(self, test_client: TestClient, pro_headers):
        response = test_client.get("/api/lms/user-progress", headers=pro_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["overall_progress"] == 50
        assert data["completed_enrollments"] == 1
        assert data["total_enrollments"] == 2
        assert data["total_programs"] == 2
        assert data["total_watch_time"] == 2300
        assert data["monthly_goal"] == 20

    def test_user_progress_requires_login(self, test_client: TestClient, acme_headers):
        response = test_client.get("/api/lms/user-progress", headers=acme_headers)
        assert response.status_code == 401

    def test_recent_videos_progress(self, test_client: TestClient, pro_headers):
        response = test_client.get(
            "/api/lms/recent-videos-progress", params={"limit": 1}, headers=pro_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0]["video_id"] == "video-acme-1"
        assert data[0]["title"] == "Groundwork Fundamentals"

    def test_user_enrollments(self, test_client: TestClient, pro_headers):
        response = test_client.get("/api/lms/user-enrollments", headers=pro_headers)

        assert response.status_code == 200
        programs = {e["program"]["slug"] for e in response.json()}
        assert programs == {"foundations", "dressage-intensive"}


class TestNotificationsAPI:
    def test_list(self, test_client: TestClient, pro_headers):
        response = test_client.get("/api/lms/notifications", headers=pro_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["unread_count"] == 2
        assert data["notifications"][0]["title"] == "New reply"

    def test_mark_selected_then_all(self, test_client: TestClient, pro_headers):
        inbox = test_client.get("/api/lms/notifications", headers=pro_headers).json()
        first_id = inbox["notifications"][0]["id"]

        response = test_client.post(
            "/api/lms/notifications/mark-read",
            json={"notification_ids": [first_id]},
            headers=pro_headers,
        )
        assert response.json() == {"success": True, "updated": 1}

        response = test_client.post(
            "/api/lms/notifications/mark-read", json={"mark_all": True}, headers=pro_headers
        )
        assert response.json()["updated"] == 1

        inbox = test_client.get("/api/lms/notifications", headers=pro_headers).json()
        assert inbox["unread_count"] == 0

    def test_cannot_mark_other_users_notifications(
        self, test_client: TestClient, pro_headers, login_as
    ):
        rider_headers = login_as("rider@riverside.com", host="riverside.lms.example.com")
        rider_inbox = test_client.get("/api/lms/notifications", headers=rider_headers).json()
        rider_notification = rider_inbox["notifications"][0]["id"]

        response = test_client.post(
            "/api/lms/notifications/mark-read",
            json={"notification_ids": [rider_notification]},
            headers=pro_headers,
        )

        assert response.json()["updated"] == 0
        rider_inbox = test_client.get("/api/lms/notifications", headers=rider_headers).json()
        assert rider_inbox["unread_count"] == 1

    def test_enrollment_adds_notification(self, test_client: TestClient, student_headers):
        test_client.post("/api/lms/programs/program-acme-foundations/enroll", headers=student_headers)

        inbox = test_client.get("/api/lms/notifications", headers=student_headers).json()
        assert inbox["unread_count"] == 1
        assert inbox["notifications"][0]["type"] == "enrollment"


class TestProfileAPI:
    def test_get_profile(self, test_client: TestClient, student_headers):
        response = test_client.get("/api/lms/profile", headers=student_headers)

        assert response.status_code == 200
        # No name set: falls back to the email local part
        assert response.json()["name"] == "student"

    def test_update_profile(self, test_client: TestClient, student_headers):
        response = test_client.patch(
            "/api/lms/profile", json={"name": "  Sam Student "}, headers=student_headers
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Sam Student"
        assert test_client.get("/api/auth/me", headers=student_headers).json()["name"] == "Sam Student"

    def test_update_profile_rejects_empty_name(self, test_client: TestClient, student_headers):
        response = test_client.patch("/api/lms/profile", json={"name": ""}, headers=student_headers)
        assert response.status_code == 422

    def test_permissions_by_tier(self, test_client: TestClient, pro_headers, student_headers):
        pro = test_client.get("/api/lms/permissions", headers=pro_headers).json()
        student = test_client.get("/api/lms/permissions", headers=student_headers).json()

        assert pro["can_access_live_lessons"] is True
        assert pro["can_access_programs"] is True
        assert student["can_access_programs"] is False
        assert student["can_access_videos"] is True
        assert student["tier"] == "basic"
