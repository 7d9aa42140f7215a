"""
Tests for the medication API endpoints.
"""
from datetime import datetime

BASE_URL = "/api/v1/medications"


def create(client, **fields):
    response = client.post(f"{BASE_URL}/", json=fields)
    assert response.status_code == 201, response.text
    return response.json()


def create_prescription(client, **overrides):
    fields = {
        "name": "Lisinopril",
        "medication_type": "Prescription",
        "mg_per_pill": 10,
        "initial_pill_count": 30,
        "refills_remaining": 2,
    }
    fields.update(overrides)
    return create(client, **fields)


def create_supplement(client, **overrides):
    fields = {
        "name": "Magnesium",
        "medication_type": "Non-Prescription",
        "form": "Capsule",
        "mg_per_pill": 250,
        "initial_pill_count": 60,
    }
    fields.update(overrides)
    return create(client, **fields)


# CRUD

def test_create_prescription_starts_with_full_supply(client):
    data = create_prescription(client)

    assert data["medication_type"] == "Prescription"
    assert data["form"] == "Tablet"
    assert data["total_mg_remaining"] == 300
    assert data["pills_remaining"] == 30
    assert data["refills_remaining"] == 2
    assert data["revision"] == 1
    assert data["goal_progress"] is None
    assert data["adherence_streak"] is None


def test_create_supplement_uses_container_size(client):
    data = create_supplement(client, serving_size=2, servings_per_container=45)

    assert data["medication_type"] == "Non-Prescription"
    assert data["total_mg_remaining"] == 2 * 45 * 250
    assert data["refills_remaining"] is None


def test_create_keeps_explicit_supply(client):
    data = create_prescription(client, total_mg_remaining=55)
    assert data["total_mg_remaining"] == 55


def test_create_rejects_fields_of_other_type(client):
    response = client.post(f"{BASE_URL}/", json={
        "name": "Fish Oil",
        "medication_type": "Non-Prescription",
        "refills_remaining": 3,
    })
    assert response.status_code == 422

    response = client.post(f"{BASE_URL}/", json={
        "name": "Metformin",
        "medication_type": "Prescription",
        "brand_name": "Glucophage",
    })
    assert response.status_code == 422


def test_create_requires_type(client):
    response = client.post(f"{BASE_URL}/", json={"name": "Unknown"})
    assert response.status_code == 422
    assert response.json()["detail"] == "Validation error"


def test_get_medication(client):
    created = create_prescription(client)

    response = client.get(f"{BASE_URL}/{created['id']}")
    assert response.status_code == 200
    assert response.json()["name"] == "Lisinopril"


def test_get_unknown_medication(client):
    response = client.get(f"{BASE_URL}/does-not-exist")
    assert response.status_code == 404
    assert response.json()["detail"] == "Medication not found"


def test_list_medications(client):
    create_supplement(client, name="Zinc")
    create_prescription(client, name="Atorvastatin")
    create_supplement(client, name="Magnesium")

    response = client.get(f"{BASE_URL}/")
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert [item["name"] for item in data["items"]] == ["Atorvastatin", "Magnesium", "Zinc"]

    response = client.get(f"{BASE_URL}/", params={"medication_type": "Non-Prescription"})
    assert [item["name"] for item in response.json()["items"]] == ["Magnesium", "Zinc"]

    response = client.get(f"{BASE_URL}/", params={"page": 2, "size": 2})
    data = response.json()
    assert [item["name"] for item in data["items"]] == ["Zinc"]
    assert data["pages"] == 2
    assert data["has_prev"] is True
    assert data["has_next"] is False


def test_update_medication(client):
    created = create_prescription(client)

    response = client.patch(f"{BASE_URL}/{created['id']}", json={
        "name": "Lisinopril 10mg",
        "next_fill_date": "2030-01-01T09:00:00",
        "rx_number": "RX-1234",
    })
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Lisinopril 10mg"
    assert data["rx_number"] == "RX-1234"
    assert data["next_fill_date"] == "2030-01-01T09:00:00"
    assert data["revision"] == 2


def test_update_rejects_fields_of_other_type(client):
    supplement = create_supplement(client)

    response = client.patch(f"{BASE_URL}/{supplement['id']}", json={"refills_remaining": 4})
    assert response.status_code == 400
    assert "refills_remaining" in response.json()["detail"]


def test_update_rejects_null_for_required_fields(client):
    created = create_prescription(client)

    response = client.patch(f"{BASE_URL}/{created['id']}", json={"name": None, "mg_per_pill": None})
    assert response.status_code == 400
    assert "mg_per_pill" in response.json()["detail"]
    assert "name" in response.json()["detail"]

    data = client.get(f"{BASE_URL}/{created['id']}").json()
    assert data["name"] == "Lisinopril"
    assert data["revision"] == 1


def test_update_allows_clearing_optional_fields(client):
    created = create_prescription(client, rx_number="RX-1")

    response = client.patch(f"{BASE_URL}/{created['id']}", json={"rx_number": None})
    assert response.status_code == 200
    assert response.json()["rx_number"] is None


def test_delete_medication(client):
    created = create_prescription(client)
    client.post(f"{BASE_URL}/{created['id']}/take")

    response = client.delete(f"{BASE_URL}/{created['id']}")
    assert response.status_code == 204

    assert client.get(f"{BASE_URL}/{created['id']}").status_code == 404
    assert client.get(f"{BASE_URL}/{created['id']}/logs").status_code == 404


# Transactions

def test_take_default_dose(client):
    created = create_prescription(client)

    response = client.post(f"{BASE_URL}/{created['id']}/take")
    assert response.status_code == 200
    data = response.json()
    assert data["medication"]["total_mg_remaining"] == 290
    assert data["log"]["mg_intake"] == -10
    assert data["log"]["total_mg_remaining"] == 290
    assert data["log"]["is_refill"] is False


def test_take_in_mg(client):
    created = create_prescription(client)

    response = client.post(f"{BASE_URL}/{created['id']}/take", json={"dose": 5, "unit": "mg"})
    assert response.json()["medication"]["total_mg_remaining"] == 295


def test_take_rejects_negative_dose(client):
    created = create_prescription(client)

    response = client.post(f"{BASE_URL}/{created['id']}/take", json={"dose": -1})
    assert response.status_code == 422


def test_refill(client):
    created = create_prescription(client, number_of_days_supply=90)
    client.post(f"{BASE_URL}/{created['id']}/take")

    response = client.post(f"{BASE_URL}/{created['id']}/refill")
    assert response.status_code == 200
    medication = response.json()["medication"]
    assert medication["total_mg_remaining"] == 590
    assert medication["refills_remaining"] == 1
    last_filled = datetime.fromisoformat(medication["last_filled_on"])
    next_fill = datetime.fromisoformat(medication["next_fill_date"])
    assert (next_fill - last_filled).days == 90
    assert medication["days_until_refill"] in (89, 90)
    assert response.json()["log"]["is_refill"] is True


def test_refill_non_prescription(client):
    supplement = create_supplement(client)

    response = client.post(f"{BASE_URL}/{supplement['id']}/refill")
    assert response.status_code == 400
    assert response.json()["detail"] == "This action is only available for prescription medications."

    data = client.get(f"{BASE_URL}/{supplement['id']}").json()
    assert data["total_mg_remaining"] == supplement["total_mg_remaining"]


def test_restock(client):
    supplement = create_supplement(client, total_mg_remaining=500)

    response = client.post(f"{BASE_URL}/{supplement['id']}/restock")
    assert response.status_code == 200
    assert response.json()["medication"]["total_mg_remaining"] == 500 + 60 * 250

    response = client.post(f"{BASE_URL}/{supplement['id']}/restock", json={"quantity": 2})
    assert response.json()["log"]["mg_intake"] == 500


def test_restock_prescription(client):
    created = create_prescription(client)

    response = client.post(f"{BASE_URL}/{created['id']}/restock")
    assert response.status_code == 400
    assert response.json()["detail"] == "This action is only available for non-prescription medications."


def test_transaction_on_unknown_medication(client):
    response = client.post(f"{BASE_URL}/does-not-exist/take")
    assert response.status_code == 404


# Goal

def test_set_and_clear_goal(client):
    created = create_prescription(client)
    goal = {"target_doses": 2, "period": "Per Day", "times_of_day": [{"hour": 8}, {"hour": 20}]}

    response = client.put(f"{BASE_URL}/{created['id']}/goal", json=goal)
    assert response.status_code == 200
    data = response.json()
    assert data["intake_goal"]["constraint_type"] == "At Least"
    assert data["goal_progress"] == {"completed": 0, "target": 2, "maximum": None, "meets_goal": False}
    assert data["adherence_streak"] == 0
    assert data["calculated_next_dose_time"] is not None

    client.post(f"{BASE_URL}/{created['id']}/take")
    client.post(f"{BASE_URL}/{created['id']}/take")
    data = client.get(f"{BASE_URL}/{created['id']}").json()
    assert data["goal_progress"]["completed"] == 2
    assert data["goal_progress"]["meets_goal"] is True
    assert data["adherence_streak"] == 1

    response = client.delete(f"{BASE_URL}/{created['id']}/goal")
    assert response.status_code == 200
    assert response.json()["intake_goal"] is None
    assert response.json()["goal_progress"] is None


def test_set_goal_validates_body(client):
    created = create_prescription(client)

    response = client.put(f"{BASE_URL}/{created['id']}/goal", json={"target_doses": 1, "period": "Per Year"})
    assert response.status_code == 422


# Logs

def test_log_corrections_do_not_touch_balance(client):
    created = create_prescription(client)
    log = client.post(f"{BASE_URL}/{created['id']}/take").json()["log"]

    response = client.patch(
        f"{BASE_URL}/{created['id']}/logs/{log['id']}",
        json={"timestamp": "2025-03-20T08:00:00", "mg_intake": -30}
    )
    assert response.status_code == 200
    assert response.json()["timestamp"] == "2025-03-20T08:00:00"
    assert response.json()["mg_intake"] == -30
    assert response.json()["total_mg_remaining"] == 290

    response = client.delete(f"{BASE_URL}/{created['id']}/logs/{log['id']}")
    assert response.status_code == 204

    assert client.get(f"{BASE_URL}/{created['id']}/logs").json() == []
    assert client.get(f"{BASE_URL}/{created['id']}").json()["total_mg_remaining"] == 290


def test_logs_are_ordered(client):
    created = create_prescription(client)
    first = client.post(f"{BASE_URL}/{created['id']}/take").json()["log"]
    second = client.post(f"{BASE_URL}/{created['id']}/refill").json()["log"]
    client.patch(f"{BASE_URL}/{created['id']}/logs/{second['id']}", json={"timestamp": "2020-01-01T00:00:00"})

    logs = client.get(f"{BASE_URL}/{created['id']}/logs").json()
    assert [log["id"] for log in logs] == [second["id"], first["id"]]


def test_log_of_other_medication(client):
    first = create_prescription(client)
    second = create_prescription(client, name="Other")
    log = client.post(f"{BASE_URL}/{first['id']}/take").json()["log"]

    response = client.delete(f"{BASE_URL}/{second['id']}/logs/{log['id']}")
    assert response.status_code == 404
    assert response.json()["detail"] == "Log entry not found"


# Export

def test_export_medication_logs(client):
    created = create_prescription(client)
    client.post(f"{BASE_URL}/{created['id']}/take")

    response = client.get(f"{BASE_URL}/{created['id']}/export")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="medication_logs_' in response.headers["content-disposition"]
    lines = response.text.splitlines()
    assert len(lines) == 2
    assert lines[1].startswith("Lisinopril,Prescription,")
    assert lines[1].endswith(",Dose Taken")


def test_export_all_logs_as_json(client):
    first = create_prescription(client)
    second = create_supplement(client)
    client.post(f"{BASE_URL}/{first['id']}/take")
    client.post(f"{BASE_URL}/{second['id']}/restock")

    response = client.get(f"{BASE_URL}/export", params={"format": "json"})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/json")
    assert 'filename="all_medication_logs_' in response.headers["content-disposition"]
    records = response.json()
    assert {record["actionType"] for record in records} == {"dose", "refill"}


def test_export_rejects_unknown_format(client):
    response = client.get(f"{BASE_URL}/export", params={"format": "xml"})
    assert response.status_code == 422
