"""Tests for the event lifecycle.

Covers:
- Event create, field validation, partial update while DRAFT
- Publish / cancel / delete rules
- Listing order and status filter
- Transition table of the event state machine
"""
from datetime import datetime, timezone, timedelta

import pytest

from reservio.exceptions import InvalidStateError, NotFoundError, ValidationError
from reservio.models.event import EVENT_TRANSITIONS, EventStatus, can_transition
from reservio.models.registration import Registration
from reservio.services import event_service, registration_service
from tests.conftest import auth_headers, insert_event


def _make_event(client, admin, title: str = "Jazz Night", capacity: int = 10,
                start_offset_hours: int = 24, duration_hours: int = 2, metadata: dict = None):
    """Helper — create an event via the API."""
    start = datetime.now(timezone.utc) + timedelta(hours=start_offset_hours)
    end = start + timedelta(hours=duration_hours)
    payload = {
        "title": title,
        "description": "An evening of live music downtown.",
        "location": "Le Caveau, Paris",
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "capacity": capacity,
    }
    if metadata is not None:
        payload["metadata"] = metadata
    return client.post("/api/events/", json=payload, headers=auth_headers(admin))


class TestEventCreate:
    """Event creation and initial state."""

    def test_create_event_starts_as_draft(self, client, admin):
        resp = _make_event(client, admin, title="Jazz Night", metadata={"genre": "jazz"})
        assert resp.status_code == 201
        data = resp.json()
        assert data["title"] == "Jazz Night"
        assert data["status"] == "DRAFT"
        assert data["created_by"] == admin.user_id
        assert data["metadata"] == {"genre": "jazz"}

    def test_end_before_start_rejected(self, client, admin):
        resp = _make_event(client, admin, duration_hours=-1)
        assert resp.status_code == 400
        assert resp.json()["code"] == "validation_error"
        assert resp.json()["detail"] == "End date must be after start date"

    def test_end_equal_to_start_rejected(self, client, admin):
        resp = _make_event(client, admin, duration_hours=0)
        assert resp.status_code == 400
        assert resp.json()["code"] == "validation_error"

    def test_start_in_past_rejected(self, client, admin):
        resp = _make_event(client, admin, start_offset_hours=-5)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Start date cannot be in the past"

    def test_non_positive_capacity_rejected_by_schema(self, client, admin):
        resp = _make_event(client, admin, capacity=0)
        assert resp.status_code == 400
        body = resp.json()
        assert body["code"] == "validation_error"
        assert body["detail"].startswith("capacity:")

    def test_short_title_has_same_error_shape(self, client, admin):
        resp = _make_event(client, admin, title="ab")
        assert resp.status_code == 400
        assert resp.json()["code"] == "validation_error"
        assert "title" in resp.json()["detail"]

    def test_non_positive_capacity_rejected_by_service(self, db, admin):
        start = datetime.now(timezone.utc) + timedelta(days=1)
        with pytest.raises(ValidationError, match="positive"):
            event_service.create_event(
                db, "Workshop", "Hands-on pottery workshop.", "Lyon",
                start, start + timedelta(hours=3), -2, admin.user_id,
            )

    def test_participant_cannot_create(self, client, participant):
        start = datetime.now(timezone.utc) + timedelta(days=1)
        resp = client.post("/api/events/", json={
            "title": "Sneaky",
            "description": "Not allowed to exist.",
            "location": "Nowhere",
            "start_date": start.isoformat(),
            "end_date": (start + timedelta(hours=1)).isoformat(),
            "capacity": 5,
        }, headers=auth_headers(participant))
        assert resp.status_code == 403


class TestEventUpdate:
    """Partial updates, only while the event is a draft."""

    def test_update_only_supplied_fields(self, client, admin):
        event = _make_event(client, admin, title="Original", capacity=10).json()
        resp = client.put(
            f"/api/events/{event['event_id']}",
            json={"capacity": 25},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["capacity"] == 25
        assert data["title"] == "Original"
        assert data["location"] == event["location"]

    def test_update_validates_against_merged_dates(self, client, admin):
        event = _make_event(client, admin, start_offset_hours=48, duration_hours=2).json()
        # New end lands before the stored start
        new_end = datetime.now(timezone.utc) + timedelta(hours=24)
        resp = client.put(
            f"/api/events/{event['event_id']}",
            json={"end_date": new_end.isoformat()},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "End date must be after start date"

    def test_update_published_event_rejected(self, client, admin):
        event = _make_event(client, admin).json()
        client.post(f"/api/events/{event['event_id']}/publish", headers=auth_headers(admin))
        resp = client.put(
            f"/api/events/{event['event_id']}",
            json={"title": "Renamed"},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_state"

    def test_update_unknown_event(self, client, admin):
        resp = client.put("/api/events/does-not-exist", json={"title": "Ghost"}, headers=auth_headers(admin))
        assert resp.status_code == 404
        assert resp.json()["code"] == "not_found"

    def test_update_metadata(self, db, admin):
        event = insert_event(db, admin, status=EventStatus.DRAFT)
        updated = event_service.update_event(db, event.event_id, {"metadata": {"dress_code": "formal"}})
        assert updated.extra_metadata == {"dress_code": "formal"}

    def test_null_fields_leave_values_alone(self, db, admin):
        event = insert_event(db, admin, title="Kept", capacity=7, status=EventStatus.DRAFT)
        updated = event_service.update_event(
            db, event.event_id, {"title": None, "capacity": None, "location": "Annex"}
        )
        assert updated.title == "Kept"
        assert updated.capacity == 7
        assert updated.location == "Annex"

    def test_null_capacity_over_http(self, client, db, admin):
        event = insert_event(db, admin, capacity=7, status=EventStatus.DRAFT)
        resp = client.put(
            f"/api/events/{event.event_id}",
            json={"capacity": None},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 200
        assert resp.json()["capacity"] == 7

    def test_caller_updates_not_modified(self, db, admin):
        event = insert_event(db, admin, status=EventStatus.DRAFT)
        new_start = datetime(2999, 3, 1, 10, 0)
        updates = {"start_date": new_start, "end_date": datetime(2999, 3, 1, 12, 0)}
        event_service.update_event(db, event.event_id, updates)
        assert updates["start_date"] is new_start
        assert updates["start_date"].tzinfo is None

    def test_update_rejects_unknown_fields(self, db, admin):
        event = insert_event(db, admin, status=EventStatus.DRAFT)
        with pytest.raises(ValidationError, match="status"):
            event_service.update_event(db, event.event_id, {"status": EventStatus.PUBLISHED})


class TestEventPublish:
    """DRAFT -> PUBLISHED."""

    def test_publish_draft(self, client, admin):
        event = _make_event(client, admin).json()
        resp = client.post(f"/api/events/{event['event_id']}/publish", headers=auth_headers(admin))
        assert resp.status_code == 200
        assert resp.json()["status"] == "PUBLISHED"

    def test_publish_twice_rejected(self, client, admin):
        event = _make_event(client, admin).json()
        client.post(f"/api/events/{event['event_id']}/publish", headers=auth_headers(admin))
        resp = client.post(f"/api/events/{event['event_id']}/publish", headers=auth_headers(admin))
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Only draft events can be published"

    def test_publish_cancelled_rejected(self, db, admin):
        event = insert_event(db, admin, status=EventStatus.CANCELLED)
        with pytest.raises(InvalidStateError):
            event_service.publish_event(db, event.event_id)

    def test_publish_past_start_rejected(self, db, admin):
        event = insert_event(db, admin, status=EventStatus.DRAFT, start_offset_hours=-3)
        with pytest.raises(InvalidStateError, match="past start date"):
            event_service.publish_event(db, event.event_id)
        db.expire_all()
        assert event_service.get_event(db, event.event_id).status == EventStatus.DRAFT

    def test_publish_unknown_event(self, db):
        with pytest.raises(NotFoundError):
            event_service.publish_event(db, "missing")


class TestEventCancel:
    """DRAFT / PUBLISHED -> CANCELLED."""

    def test_cancel_published(self, client, admin):
        event = _make_event(client, admin).json()
        client.post(f"/api/events/{event['event_id']}/publish", headers=auth_headers(admin))
        resp = client.post(f"/api/events/{event['event_id']}/cancel", headers=auth_headers(admin))
        assert resp.status_code == 200
        assert resp.json()["status"] == "CANCELLED"

    def test_cancel_draft(self, db, admin):
        event = insert_event(db, admin, status=EventStatus.DRAFT)
        assert event_service.cancel_event(db, event.event_id).status == EventStatus.CANCELLED

    def test_cancel_twice_rejected(self, client, admin):
        event = _make_event(client, admin).json()
        client.post(f"/api/events/{event['event_id']}/cancel", headers=auth_headers(admin))
        resp = client.post(f"/api/events/{event['event_id']}/cancel", headers=auth_headers(admin))
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Event is already cancelled"

    def test_cancel_keeps_registrations(self, db, admin, participant):
        event = insert_event(db, admin)
        registration = registration_service.create_registration(db, event.event_id, participant.user_id)
        event_service.cancel_event(db, event.event_id)
        db.expire_all()
        assert db.get(Registration, registration.registration_id) is not None


class TestEventDelete:
    """Hard delete, only outside PUBLISHED."""

    def test_delete_draft(self, client, admin):
        event = _make_event(client, admin).json()
        resp = client.delete(f"/api/events/{event['event_id']}", headers=auth_headers(admin))
        assert resp.status_code == 204
        assert client.get(f"/api/events/{event['event_id']}").status_code == 404

    def test_delete_published_rejected(self, client, admin):
        event = _make_event(client, admin).json()
        client.post(f"/api/events/{event['event_id']}/publish", headers=auth_headers(admin))
        resp = client.delete(f"/api/events/{event['event_id']}", headers=auth_headers(admin))
        assert resp.status_code == 400
        assert "Cancel it first" in resp.json()["detail"]

    def test_delete_cancelled_removes_registrations(self, db, admin, participant):
        event = insert_event(db, admin)
        registration = registration_service.create_registration(db, event.event_id, participant.user_id)
        event_service.cancel_event(db, event.event_id)
        event_service.delete_event(db, event.event_id)
        db.expire_all()
        assert db.get(Registration, registration.registration_id) is None

    def test_delete_unknown_event(self, client, admin):
        resp = client.delete("/api/events/missing", headers=auth_headers(admin))
        assert resp.status_code == 404


class TestEventListing:
    """Listings are ordered by start date; published listing is public."""

    def test_list_ordered_by_start_date(self, db, admin):
        later = insert_event(db, admin, title="Later", start_offset_hours=72)
        sooner = insert_event(db, admin, title="Sooner", start_offset_hours=12)
        middle = insert_event(db, admin, title="Middle", start_offset_hours=36, status=EventStatus.DRAFT)
        ids = [e.event_id for e in event_service.list_events(db)]
        assert ids == [sooner.event_id, middle.event_id, later.event_id]

    def test_list_filtered_by_status(self, client, admin, db):
        insert_event(db, admin, title="Draft", status=EventStatus.DRAFT)
        insert_event(db, admin, title="Live")
        resp = client.get("/api/events/", params={"status": "DRAFT"}, headers=auth_headers(admin))
        assert resp.status_code == 200
        assert [e["title"] for e in resp.json()] == ["Draft"]

    def test_published_listing_is_public(self, client, admin, db):
        insert_event(db, admin, title="Draft", status=EventStatus.DRAFT)
        insert_event(db, admin, title="Cancelled", status=EventStatus.CANCELLED)
        insert_event(db, admin, title="Live")
        resp = client.get("/api/events/published")
        assert resp.status_code == 200
        assert [e["title"] for e in resp.json()] == ["Live"]

    def test_admin_listing_requires_admin(self, client, participant):
        assert client.get("/api/events/", headers=auth_headers(participant)).status_code == 403

    def test_get_event_is_public(self, client, admin, db):
        event = insert_event(db, admin, title="Open Day")
        resp = client.get(f"/api/events/{event.event_id}")
        assert resp.status_code == 200
        assert resp.json()["title"] == "Open Day"


class TestEventStateMachine:
    """The transition table is closed and matches the lifecycle."""

    @pytest.mark.parametrize("current,target,allowed", [
        (EventStatus.DRAFT, EventStatus.PUBLISHED, True),
        (EventStatus.DRAFT, EventStatus.CANCELLED, True),
        (EventStatus.PUBLISHED, EventStatus.CANCELLED, True),
        (EventStatus.PUBLISHED, EventStatus.DRAFT, False),
        (EventStatus.CANCELLED, EventStatus.DRAFT, False),
        (EventStatus.CANCELLED, EventStatus.PUBLISHED, False),
        (EventStatus.DRAFT, EventStatus.DRAFT, False),
    ])
    def test_transitions(self, current, target, allowed):
        assert can_transition(current, target) is allowed

    def test_every_status_has_an_entry(self):
        assert set(EVENT_TRANSITIONS) == set(EventStatus)
