"""
Integration tests for the task routes.
"""
from datetime import datetime, timedelta

from spacos.models.task import Task, TaskPriority, TaskStatus


def _task(db, title="Draft proxy", **kwargs):
    task = Task(title=title, **kwargs)
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


class TestTaskCrud:

    def test_create(self, client, make_spac):
        spac = make_spac()
        response = client.post("/api/tasks", json={"title": "Draft proxy", "spac_id": spac.id, "priority": "HIGH"})

        assert response.status_code == 201
        assert response.json()["status"] == "NOT_STARTED"
        assert response.json()["completed_at"] is None

    def test_create_completed_stamps_completion(self, client):
        response = client.post("/api/tasks", json={"title": "Done already", "status": "COMPLETED"})
        assert response.json()["completed_at"] is not None

    def test_list_orders_by_priority_then_due(self, client, db):
        now = datetime.utcnow()
        _task(db, "Low", priority=TaskPriority.LOW)
        _task(db, "High later", priority=TaskPriority.HIGH, due_date=now + timedelta(days=5))
        _task(db, "High sooner", priority=TaskPriority.HIGH, due_date=now + timedelta(days=1))
        _task(db, "Critical", priority=TaskPriority.CRITICAL)

        titles = [t["title"] for t in client.get("/api/tasks").json()["items"]]
        assert titles == ["Critical", "High sooner", "High later", "Low"]

    def test_soft_delete(self, client, db):
        task = _task(db)
        client.delete(f"/api/tasks/{task.id}")
        assert client.get(f"/api/tasks/{task.id}").status_code == 404
        assert client.get("/api/tasks").json()["total"] == 0


class TestTaskStatus:

    def test_complete_stamps_and_reopen_clears(self, client, db):
        task = _task(db, status=TaskStatus.IN_PROGRESS)

        done = client.post(f"/api/tasks/{task.id}/status", json={"status": "COMPLETED"}).json()
        assert done["completed_at"] is not None

        reopened = client.post(f"/api/tasks/{task.id}/status", json={"status": "IN_PROGRESS"}).json()
        assert reopened["completed_at"] is None

    def test_illegal_transition(self, client, db):
        task = _task(db, status=TaskStatus.BLOCKED)
        response = client.post(f"/api/tasks/{task.id}/status", json={"status": "COMPLETED"})
        assert response.status_code == 400

    def test_transitions(self, client, db):
        task = _task(db, status=TaskStatus.COMPLETED)
        assert client.get(f"/api/tasks/{task.id}/transitions").json()["allowed"] == ["IN_PROGRESS"]

    def test_assign(self, client, db):
        task = _task(db)
        assert client.post(f"/api/tasks/{task.id}/assign", json={"assignee_id": "u-1"}).json()["assignee_id"] == "u-1"
        assert client.post(f"/api/tasks/{task.id}/assign", json={"assignee_id": None}).json()["assignee_id"] is None


class TestTaskViews:

    def test_my_tasks_hides_closed(self, client, db):
        _task(db, "Open", assignee_id="u-1")
        _task(db, "Done", assignee_id="u-1", status=TaskStatus.COMPLETED)
        _task(db, "Someone else", assignee_id="u-2")

        titles = [t["title"] for t in client.get("/api/tasks/my-tasks", params={"assignee_id": "u-1"}).json()]
        assert titles == ["Open"]

        everything = client.get("/api/tasks/my-tasks", params={"assignee_id": "u-1", "include_closed": True}).json()
        assert len(everything) == 2

    def test_overdue_and_due_soon(self, client, db):
        now = datetime.utcnow()
        _task(db, "Late", due_date=now - timedelta(days=2))
        _task(db, "Late but done", due_date=now - timedelta(days=2), status=TaskStatus.COMPLETED)
        _task(db, "Soon", due_date=now + timedelta(days=3))
        _task(db, "Later", due_date=now + timedelta(days=20))

        assert [t["title"] for t in client.get("/api/tasks/overdue").json()] == ["Late"]
        assert [t["title"] for t in client.get("/api/tasks/due-soon").json()] == ["Soon"]
        assert len(client.get("/api/tasks/due-soon", params={"days": 30}).json()) == 2
        assert client.get("/api/tasks/due-soon", params={"days": 31}).status_code == 422

    def test_workload(self, client, db):
        now = datetime.utcnow()
        _task(db, "A", assignee_id="u-1")
        _task(db, "B", assignee_id="u-1", due_date=now - timedelta(days=1), priority=TaskPriority.HIGH)
        _task(db, "C", assignee_id="u-2")
        _task(db, "D", assignee_id="u-2", status=TaskStatus.CANCELLED)

        workload = client.get("/api/tasks/workload").json()
        assert [w["assignee_id"] for w in workload] == ["u-1", "u-2"]
        assert workload[0]["open_tasks"] == 2
        assert workload[0]["overdue"] == 1
        assert workload[0]["by_priority"] == {"MEDIUM": 1, "HIGH": 1}

    def test_statistics(self, client, db):
        _task(db, "Open")
        _task(db, "Done", status=TaskStatus.COMPLETED, completed_at=datetime.utcnow())

        stats = client.get("/api/tasks/statistics").json()
        assert stats["total"] == 2
        assert stats["by_status"]["COMPLETED"] == 1
        assert stats["completed_this_week"] == 1

    def test_bulk_update(self, client, db):
        first = _task(db, "First")
        second = _task(db, "Second", status=TaskStatus.BLOCKED)

        response = client.post(
            "/api/tasks/bulk-update",
            json={"ids": [first.id, second.id], "status": "COMPLETED", "assignee_id": "u-9"},
        )
        assert response.json() == {"updated": 2}

        body = client.get(f"/api/tasks/{second.id}").json()
        assert body["status"] == "COMPLETED"
        assert body["completed_at"] is not None
        assert body["assignee_id"] == "u-9"
