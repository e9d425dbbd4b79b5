from datetime import datetime, timezone


def _status_id(db, label: str) -> int:
    from backend.app.services.application_status import find_status_by_label

    return int(find_status_by_label(db, label).id)


class _FakeBackgroundTasks:
    def __init__(self):
        self.tasks = []

    def add_task(self, func, *args, **kwargs):
        self.tasks.append((func, args, kwargs))


def test_dispatcher_only_queues(pipeline):
    from backend.app.services.notifications import NotificationDispatcher, TransitionEvent, dispatch_transition_event

    tasks = _FakeBackgroundTasks()
    dispatcher = NotificationDispatcher(tasks, enabled=True)
    event = TransitionEvent(application_id=1, previous_status="Applied", new_status="Rejected")

    assert dispatcher.enqueue(event) is True
    assert tasks.tasks == [(dispatch_transition_event, (event,), {})]


def test_disabled_dispatcher_queues_nothing():
    from backend.app.services.notifications import NotificationDispatcher, TransitionEvent

    tasks = _FakeBackgroundTasks()
    dispatcher = NotificationDispatcher(tasks, enabled=False)
    assert dispatcher.enqueue(TransitionEvent(application_id=1, previous_status=None, new_status="Rejected")) is False
    assert tasks.tasks == []


def test_queue_failure_does_not_raise():
    from backend.app.services.notifications import NotificationDispatcher, TransitionEvent

    class _Broken:
        def add_task(self, *args, **kwargs):
            raise RuntimeError("runner closed")

    dispatcher = NotificationDispatcher(_Broken(), enabled=True)
    assert dispatcher.enqueue(TransitionEvent(application_id=1, previous_status=None, new_status="Selected")) is False


def test_transition_fans_out_to_candidate_and_roles(client, make_user, pipeline, sent_emails):
    from backend.app.models.notification import Notification

    hr_user, hr_headers = make_user("hr")
    recruiter, _ = make_user("recruiter")
    interviewer, _ = make_user("interviewer")
    candidate_user, candidate_headers = make_user("candidate")

    job = pipeline.job(title="Platform Engineer")
    candidate = pipeline.candidate(user_id=candidate_user.id)
    application = pipeline.apply(job, candidate)

    r = client.put(
        f"/applications/{application.id}",
        headers=hr_headers,
        json={"status_id": _status_id(pipeline.db, "Selected")},
    )
    assert r.status_code == 200, r.text

    pipeline.db.expire_all()
    rows = pipeline.db.query(Notification).order_by(Notification.id).all()
    recipients = {n.user_id for n in rows}
    assert recipients == {candidate_user.id, hr_user.id, recruiter.id}
    assert interviewer.id not in recipients

    candidate_row = next(n for n in rows if n.user_id == candidate_user.id)
    assert candidate_row.title == "Job Offer"
    assert "Platform Engineer" in candidate_row.message
    assert candidate_row.related_entity_type == "JobApplication"
    assert candidate_row.related_entity_id == application.id

    assert len(sent_emails) == 1
    assert sent_emails[0]["to_email"] == candidate.email
    assert sent_emails[0]["subject"] == "Job Offer - Platform Engineer"

    r = client.get("/notifications/unread-count", headers=candidate_headers)
    assert r.json()["count"] == 1


def test_email_failure_keeps_in_app_notifications(client, make_user, pipeline, monkeypatch):
    from backend.app.models.notification import Notification
    from backend.app.services import emailer

    def _smtp_down(**kwargs):
        raise ConnectionRefusedError("smtp down")

    monkeypatch.setattr(emailer, "send_email", _smtp_down)

    _, hr_headers = make_user("hr")
    application = pipeline.apply(pipeline.job(), pipeline.candidate())

    r = client.put(
        f"/applications/{application.id}",
        headers=hr_headers,
        json={"status_id": _status_id(pipeline.db, "Rejected")},
    )
    assert r.status_code == 200, r.text
    pipeline.db.expire_all()
    assert pipeline.db.query(Notification).count() == 1


def test_worker_swallows_missing_application(app, sent_emails):
    from backend.app.services.notifications import TransitionEvent, dispatch_transition_event

    # Must not raise: the worker logs and drops.
    dispatch_transition_event(TransitionEvent(application_id=12345, previous_status="Applied", new_status="Rejected"))
    assert sent_emails == []


def test_score_event_notifies_hr_and_recruiters(client, make_user, pipeline):
    from backend.app.models.notification import Notification

    hr_user, hr_headers = make_user("hr")
    recruiter, _ = make_user("recruiter")
    make_user("interviewer")
    application = pipeline.apply(pipeline.job(required=["Go"]), pipeline.candidate(skills={"Go": 5}))

    r = client.post(f"/score/{application.id}", headers=hr_headers)
    assert r.status_code == 200, r.text

    pipeline.db.expire_all()
    rows = pipeline.db.query(Notification).filter(Notification.related_entity_type == "AutomatedScore").all()
    assert {n.user_id for n in rows} == {hr_user.id, recruiter.id}

    # Same inputs, same total: no second round of notifications.
    client.post(f"/score/{application.id}", headers=hr_headers)
    pipeline.db.expire_all()
    assert pipeline.db.query(Notification).filter(Notification.related_entity_type == "AutomatedScore").count() == 2


def test_notification_read_endpoints(client, make_user, db_session):
    from backend.app.models.notification import Notification

    user, headers = make_user("recruiter")
    other, _ = make_user("recruiter")
    now = datetime.now(timezone.utc)
    db_session.add_all(
        [
            Notification(user_id=user.id, title="A", message="first", created_at=now),
            Notification(user_id=user.id, title="B", message="second", created_at=now),
            Notification(user_id=other.id, title="C", message="not mine", created_at=now),
        ]
    )
    db_session.commit()

    r = client.get("/notifications", headers=headers)
    assert r.status_code == 200
    items = r.json()["notifications"]
    assert {n["title"] for n in items} == {"A", "B"}

    first_id = next(n["id"] for n in items if n["title"] == "A")
    r = client.put(f"/notifications/{first_id}/mark-read", headers=headers)
    assert r.status_code == 200
    assert r.json()["notification"]["is_read"] is True
    assert client.get("/notifications/unread-count", headers=headers).json()["count"] == 1

    other_id = db_session.query(Notification).filter(Notification.user_id == other.id).first().id
    assert client.put(f"/notifications/{other_id}/mark-read", headers=headers).status_code == 404

    r = client.put("/notifications/mark-all-read", headers=headers)
    assert r.json()["updated"] == 1
    assert client.get("/notifications/unread-count", headers=headers).json()["count"] == 0
    assert client.get("/notifications", headers=headers, params={"unread_only": True}).json()["notifications"] == []


def test_delete_own_notification(client, make_user, db_session):
    from backend.app.models.notification import Notification

    user, headers = make_user("hr")
    other, _ = make_user("hr")
    mine = Notification(user_id=user.id, title="Mine", message="m")
    theirs = Notification(user_id=other.id, title="Theirs", message="t")
    db_session.add_all([mine, theirs])
    db_session.commit()

    assert client.delete(f"/notifications/{theirs.id}", headers=headers).status_code == 404

    r = client.delete(f"/notifications/{mine.id}", headers=headers)
    assert r.status_code == 200, r.text
    assert client.get("/notifications", headers=headers).json()["notifications"] == []
    assert client.delete(f"/notifications/{mine.id}", headers=headers).status_code == 404

    db_session.expire_all()
    assert db_session.query(Notification).filter(Notification.user_id == other.id).count() == 1
