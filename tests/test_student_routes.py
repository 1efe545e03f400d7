"""Tests for blueprints/student.py — day tasks, check-ins, undo, analytics, history."""

from datetime import date

SUCCESS = {"period": "Morning", "completed": True, "minutes": 50, "note": "ok"}
FAILURE = {"period": "Night", "completed": False, "reason": "Tired"}


class TestAccess:
    def test_anonymous(self, client):
        assert client.get("/api/student/tasks").status_code == 401

    def test_admin_forbidden(self, admin_client):
        assert admin_client.get("/api/student/tasks").status_code == 403


class TestDayTasks:
    def test_monday(self, student_client):
        data = student_client.get("/api/student/tasks?day=Monday").get_json()
        assert data["day"] == "Monday"
        assert [t["id"] for t in data["tasks"]] == [1]
        task = data["tasks"][0]
        assert task["status"] == "pending"
        assert task["checkin"] is None
        assert task["is_personalized"] is False

    def test_defaults_to_today(self, student_client):
        data = student_client.get("/api/student/tasks").get_json()
        weekdays = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
        assert data["day"] == weekdays[date.today().weekday()]

    def test_other_cohort_tasks_hidden(self, student_client):
        data = student_client.get("/api/student/tasks?day=Monday").get_json()
        assert 3 not in [t["id"] for t in data["tasks"]]

    def test_personalized_task_flag(self, admin_client, student_client):
        admin_client.post("/api/planner/tasks", json={
            "cohort_id": 1, "student_id": 2, "subject": "History", "mode": "Reading",
            "duration_minutes": 30, "day_of_week": "Monday",
        })
        tasks = student_client.get("/api/student/tasks?day=Monday").get_json()["tasks"]
        flags = {t["subject"]: t["is_personalized"] for t in tasks}
        assert flags == {"Math": False, "History": True}

    def test_invalid_day(self, student_client):
        assert student_client.get("/api/student/tasks?day=Someday").status_code == 400


class TestCheckin:
    def test_success(self, student_client):
        resp = student_client.post("/api/student/tasks/1/checkin", json=SUCCESS)
        assert resp.status_code == 201
        data = resp.get_json()
        assert data["status"] == "completed"
        assert data["checkin"]["actual_duration_minutes"] == 50

        task = student_client.get("/api/student/tasks?day=Monday").get_json()["tasks"][0]
        assert task["status"] == "completed"

    def test_failure_stores_label(self, student_client):
        resp = student_client.post("/api/student/tasks/1/checkin", json=FAILURE)
        data = resp.get_json()
        assert data["status"] == "failed"
        assert data["checkin"]["reason_for_failure"] == "Tired"
        assert data["checkin"]["actual_duration_minutes"] is None

    def test_unknown_reason(self, student_client):
        resp = student_client.post("/api/student/tasks/1/checkin", json={**FAILURE, "reason": "Aliens"})
        assert resp.status_code == 400

    def test_missing_period(self, student_client):
        resp = student_client.post("/api/student/tasks/1/checkin", json={"completed": True, "minutes": 10})
        assert resp.status_code == 400

    def test_string_completed_rejected(self, student_client):
        resp = student_client.post("/api/student/tasks/1/checkin", json={**SUCCESS, "completed": "false"})
        assert resp.status_code == 400
        assert student_client.get("/api/student/tasks?day=Monday").get_json()["tasks"][0]["status"] == "pending"

    def test_duplicate_rejected(self, student_client):
        student_client.post("/api/student/tasks/1/checkin", json=SUCCESS)
        resp = student_client.post("/api/student/tasks/1/checkin", json=FAILURE)
        assert resp.status_code == 409

    def test_task_of_other_cohort(self, student_client):
        assert student_client.post("/api/student/tasks/3/checkin", json=SUCCESS).status_code == 404


class TestUndo:
    def test_round_trip(self, app, student_client):
        checkin = student_client.post("/api/student/tasks/1/checkin", json=SUCCESS).get_json()["checkin"]

        assert student_client.delete(f"/api/student/checkins/{checkin['id']}").status_code == 400

        resp = student_client.delete(f"/api/student/checkins/{checkin['id']}", json={"confirm": True})
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "pending"

        task = student_client.get("/api/student/tasks?day=Monday").get_json()["tasks"][0]
        assert task["status"] == "pending"
        with app.app_context():
            from db_stores import CheckInStoreDB
            assert CheckInStoreDB.get(checkin["id"]) is None

    def test_cannot_undo_someone_elses(self, app, student_client):
        with app.app_context():
            from db_stores import CheckInStoreDB
            other = CheckInStoreDB.create(task_id=1, student_id=3, completed=True,
                                          period="Morning", actual_duration_minutes=10)
        resp = student_client.delete(f"/api/student/checkins/{other.id}", json={"confirm": True})
        assert resp.status_code == 404


class TestAnalytics:
    def test_summary(self, student_client):
        student_client.post("/api/student/tasks/1/checkin", json=SUCCESS)
        student_client.post("/api/student/tasks/2/checkin", json=FAILURE)

        data = student_client.get("/api/student/analytics").get_json()
        assert data["efficiency"] == 50
        assert data["completed_total"] == 1
        assert data["streak"] == 1
        assert len(data["series"]) == 7
        assert data["series"][-1]["date"] == date.today().isoformat()
        assert data["series"][-1]["real"] == 0.8


class TestHistory:
    def test_filters(self, admin_client, student_client):
        student_client.post("/api/student/tasks/1/checkin", json=SUCCESS)
        student_client.post("/api/student/tasks/2/checkin", json=FAILURE)
        today = date.today().isoformat()

        rows = student_client.get("/api/student/history").get_json()["history"]
        assert {r["subject"] for r in rows} == {"Math", "Physics"}

        rows = student_client.get(f"/api/student/history?date={today}&subject=Physics").get_json()["history"]
        assert [r["subject"] for r in rows] == ["Physics"]

        rows = student_client.get("/api/student/history?date=2000-01-01").get_json()["history"]
        assert rows == []

    def test_removed_task(self, admin_client, student_client):
        student_client.post("/api/student/tasks/1/checkin", json=SUCCESS)
        admin_client.delete("/api/planner/tasks/1", json={"confirm": True})
        rows = student_client.get("/api/student/history").get_json()["history"]
        assert rows[0]["subject"] == "Removed task"
        assert rows[0]["task_id"] is None

    def test_bad_date(self, student_client):
        assert student_client.get("/api/student/history?date=03/02/2026").status_code == 400


class TestOptions:
    def test_lists(self, student_client):
        data = student_client.get("/api/student/options").get_json()
        assert data["periods"] == ["Morning", "Afternoon", "Night", "Dawn"]
        assert [r["label"] for r in data["failure_reasons"]] == ["Tired", "Work"]
        # Empty registry falls back to the default study modes
        assert [m["value"] for m in data["study_modes"]] == ["Video", "Reading", "Questions", "Review"]
        assert len(data["subjects"]) == 3
