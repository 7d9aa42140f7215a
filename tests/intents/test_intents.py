"""
Tests for widget snapshots and quick actions.
"""
from datetime import timedelta

import pytest

from medtracker.intents import service as intent_service
from medtracker.main import app
from medtracker.intents.schemas import QuickAction
from medtracker.medications import service as medication_service
from medtracker.medications.models import IntakeGoal, GoalPeriod
from tests.factories import NOW

BASE_URL = "/api/v1/intents"


@pytest.fixture
def refreshed(client):
    """Collect medication ids passed to the application's snapshot refresher."""
    calls = []
    refresher = app.state.snapshot_refresher
    refresher.add_listener(calls.append)
    yield calls
    refresher.remove_listener(calls.append)


def test_snapshot_of_prescription(db, prescription):
    prescription.intake_goal = IntakeGoal(target_doses=2, period=GoalPeriod.PER_DAY)
    db.commit()
    medication_service.take_medication(db, prescription, 1, now=NOW - timedelta(hours=1))
    medication_service.refill_medication(db, prescription, now=NOW - timedelta(minutes=30))

    snapshot = intent_service.build_snapshot(prescription, NOW)

    assert snapshot.id == prescription.id
    assert snapshot.total_mg_remaining == 1180
    assert snapshot.pills_remaining == 59
    assert snapshot.refills_remaining == 2
    assert snapshot.number_of_days_supply is None
    assert snapshot.days_until_refill == 29
    assert snapshot.goal_progress_completed == 1
    assert snapshot.goal_progress_target == 2
    assert snapshot.doses_left_in_period == 1
    assert snapshot.adherence_streak == 0
    assert snapshot.total_today_mg == 20
    assert snapshot.last_dose.mg == 20
    assert snapshot.last_dose.timestamp == NOW - timedelta(hours=1)


def test_snapshot_of_supplement(supplement):
    snapshot = intent_service.build_snapshot(supplement, NOW)

    assert snapshot.medication_type.value == "Non-Prescription"
    assert snapshot.last_filled_on is None
    assert snapshot.next_fill_date is None
    assert snapshot.refills_remaining is None
    assert snapshot.pills_per_day_left == 0
    assert snapshot.days_until_refill == 0
    assert snapshot.average_since_refill_mg == 0
    assert snapshot.goal_progress_completed is None
    assert snapshot.adherence_streak is None
    assert snapshot.doses_left_in_period is None
    assert snapshot.last_dose is None


@pytest.mark.parametrize("action,expected", [
    (QuickAction.TAKE_FULL, 580),
    (QuickAction.TAKE_HALF, 590),
    (QuickAction.REFILL, 1200),
])
def test_quick_actions(db, prescription, action, expected):
    assert intent_service.perform_quick_action(db, prescription.id, action, NOW) is True
    assert prescription.total_mg_remaining == expected
    assert len(prescription.logs) == 1


def test_quick_refill_of_supplement_is_not_applied(db, supplement):
    assert intent_service.perform_quick_action(db, supplement.id, QuickAction.REFILL, NOW) is False
    assert supplement.total_mg_remaining == 100
    assert supplement.logs == []


def test_quick_action_on_unknown_medication(db):
    assert intent_service.perform_quick_action(db, "missing", QuickAction.TAKE_FULL, NOW) is False


def test_refresher_notifies_current_listeners():
    refresher = intent_service.SnapshotRefresher()
    first, second = [], []
    refresher.add_listener(first.append)
    refresher.add_listener(second.append)

    refresher.request_refresh("abc")
    refresher.remove_listener(first.append)
    refresher.request_refresh("def")

    assert first == ["abc"]
    assert second == ["abc", "def"]


def test_refreshers_do_not_share_listeners():
    calls = []
    intent_service.SnapshotRefresher().add_listener(calls.append)

    intent_service.SnapshotRefresher().request_refresh("abc")
    assert calls == []


# Endpoints

def test_quick_action_endpoint(client, prescription, refreshed):
    response = client.post(f"{BASE_URL}/medications/{prescription.id}/take-half")

    assert response.status_code == 202
    assert response.json() == {"medication_id": prescription.id, "action": "take-half", "applied": True}
    assert refreshed == [prescription.id]
    assert client.get(f"{BASE_URL}/medications/{prescription.id}").json()["total_mg_remaining"] == 590


def test_failed_quick_action_still_requests_refresh(client, supplement, refreshed):
    response = client.post(f"{BASE_URL}/medications/{supplement.id}/refill")

    assert response.status_code == 202
    assert response.json()["applied"] is False
    assert refreshed == [supplement.id]


def test_unknown_quick_action(client, prescription):
    response = client.post(f"{BASE_URL}/medications/{prescription.id}/take-double")
    assert response.status_code == 422


def test_snapshot_endpoints(client, prescription, supplement):
    response = client.get(f"{BASE_URL}/medications")
    assert response.status_code == 200
    assert [item["name"] for item in response.json()] == ["Sertraline", "Vitamin D"]

    response = client.get(f"{BASE_URL}/medications/{supplement.id}")
    assert response.status_code == 200
    assert response.json()["pills_remaining"] == 100

    assert client.get(f"{BASE_URL}/medications/missing").status_code == 404
