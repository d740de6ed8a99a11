from __future__ import annotations

from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from itad_portal import celery_app as worker
from itad_portal.models import Notification
from itad_portal.services.notifications import NotificationDispatcher
from itad_portal.services.recipients import Recipient


class _SessionStub:
    def __init__(self, *, fail_commit: bool = False) -> None:
        self.added: list[object] = []
        self.commit_calls = 0
        self.rollback_calls = 0
        self.fail_commit = fail_commit

    def add(self, obj: object) -> None:
        self.added.append(obj)

    def commit(self) -> None:
        self.commit_calls += 1
        if self.fail_commit:
            raise OperationalError("INSERT INTO notifications", {}, Exception("disk full"))

    def rollback(self) -> None:
        self.rollback_calls += 1


class _ResolverStub:
    def __init__(self, staff_ids) -> None:
        self.staff_ids = staff_ids

    def resolve_staff_recipients(self):
        return [Recipient(id=user_id, email=f"{user_id}@itad.test") for user_id in self.staff_ids]

    def resolve_company_recipients(self, company_id):
        return []


def test_row_write_failure_is_a_hard_failure_and_skips_delivery() -> None:
    db = _SessionStub(fail_commit=True)
    scheduled: list[dict] = []
    dispatcher = NotificationDispatcher(db, _ResolverStub([uuid4(), uuid4()]), schedule_delivery=scheduled.append)

    with pytest.raises(OperationalError):
        dispatcher.broadcast(type="quote_declined", context={"quote_number": "QTE-1"})

    assert len(db.added) == 2
    assert db.rollback_calls == 1
    assert scheduled == []


def test_dispatch_task_writes_rows_and_runs_delivery_inline(engine, db, world, monkeypatch) -> None:
    monkeypatch.setattr(worker, "SessionLocal", sessionmaker(bind=engine, autoflush=False, autocommit=False))
    delivered: list[dict] = []
    monkeypatch.setattr(worker, "enqueue_delivery", delivered.append)

    result = worker.dispatch_workflow_notification(
        "quote_sent",
        {
            "quote_id": str(uuid4()),
            "quote_number": "QTE-7",
            "company_id": str(world["company"].id),
            "request_id": str(world["request"].id),
        },
    )

    assert result == {"event": "quote_sent", "created": 1}
    rows = db.query(Notification).all()
    assert [row.user_id for row in rows] == [world["client"].id]
    assert delivered[0]["notification_ids"] == [str(rows[0].id)]


def test_deliver_task_skips_unconfigured_provider(engine, db, world, monkeypatch) -> None:
    monkeypatch.setattr(worker, "SessionLocal", sessionmaker(bind=engine, autoflush=False, autocommit=False))

    result = worker.deliver_notification(
        {
            "target": {"external_user_ids": [str(world["client"].id)]},
            "notification_ids": [],
            "title": "Job Complete",
            "message": "Job #JOB-1 has been completed.",
            "action_url": "/jobs/1",
            "priority": "high",
            "data": {},
        }
    )

    assert result == {"push": False, "email": False}


def test_celery_notifier_enqueues_dispatch(monkeypatch) -> None:
    calls: list[tuple] = []
    monkeypatch.setattr(worker.dispatch_workflow_notification, "delay", lambda *args: calls.append(args))

    worker.CeleryWorkflowNotifier().notify("job_complete", {"job_id": "j1"})

    assert calls == [("job_complete", {"job_id": "j1"})]
