import uuid

from sqlmodel import select

from adorchestrator.models.conversion_models import ConversionEvent


def _create(client, **fields):
    body = {"event_name": "purchase", **fields}
    return client.post("/api/conversions", json=body)


def test_requires_authentication(anon_client) -> None:
    response = anon_client.get("/api/conversions")
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_missing_event_name_is_rejected_without_writing(client, session) -> None:
    response = client.post("/api/conversions", json={"user_email": "a@b.com"})

    assert response.status_code == 400
    assert response.json() == {"error": "event_name is required"}
    assert session.exec(select(ConversionEvent)).all() == []


def test_create_hashes_pii_and_generates_event_id(client) -> None:
    response = _create(client, user_email="Buyer@Example.com", event_value=20)

    assert response.status_code == 201
    body = response.json()
    assert body["event_id"].startswith("purchase_")
    assert body["sync_status"] == "pending"
    assert body["currency"] == "USD"
    assert len(body["user_email_hash"]) == 64
    assert "user_email" not in body


def test_duplicate_event_id_returns_existing_row(client, session) -> None:
    first = _create(client, event_id="order-1", event_value=10)
    second = _create(client, event_id="order-1", event_value=999)

    assert first.status_code == 201
    assert second.status_code == 200
    assert second.json()["id"] == first.json()["id"]
    assert second.json()["event_value"] == 10
    assert len(session.exec(select(ConversionEvent)).all()) == 1


def test_list_filters_and_paginates(client) -> None:
    campaign_id = str(uuid.uuid4())
    for i in range(3):
        _create(client, event_id=f"p-{i}", campaign_id=campaign_id)
    _create(client, event_name="lead", event_id="l-1")

    response = client.get("/api/conversions", params={"event_name": "purchase", "limit": 2})
    body = response.json()
    assert response.status_code == 200
    assert body["count"] == 3
    assert len(body["data"]) == 2
    assert body["limit"] == 2
    assert body["offset"] == 0

    by_campaign = client.get("/api/conversions", params={"campaign_id": campaign_id}).json()
    assert by_campaign["count"] == 3

    pending = client.get("/api/conversions", params={"status": "pending"}).json()
    assert pending["count"] == 4


def test_list_rejects_bad_pagination(client) -> None:
    assert client.get("/api/conversions", params={"limit": 0}).status_code == 400
    assert client.get("/api/conversions", params={"limit": 5000}).status_code == 400
    assert client.get("/api/conversions", params={"offset": -1}).status_code == 400


def test_get_by_id(client) -> None:
    created = _create(client).json()

    response = client.get(f"/api/conversions/{created['id']}")
    assert response.status_code == 200
    assert response.json()["event_id"] == created["event_id"]


def test_malformed_and_unknown_ids(client) -> None:
    bad = client.get("/api/conversions/not-a-uuid")
    assert bad.status_code == 400
    assert bad.json() == {"error": "Invalid conversion event ID format"}

    missing = client.get(f"/api/conversions/{uuid.uuid4()}")
    assert missing.status_code == 404
    assert missing.json() == {"error": "Conversion event not found"}


def test_patch_only_changes_sync_fields(client) -> None:
    created = _create(client, event_value=10).json()

    response = client.patch(
        f"/api/conversions/{created['id']}",
        json={"sync_status": "sent", "sync_attempts": 1, "event_value": 5000, "event_name": "x"},
    )

    body = response.json()
    assert response.status_code == 200
    assert body["sync_status"] == "sent"
    assert body["sync_attempts"] == 1
    assert body["event_value"] == 10
    assert body["event_name"] == "purchase"


def test_patch_rejects_null_status(client) -> None:
    created = _create(client).json()
    response = client.patch(f"/api/conversions/{created['id']}", json={"sync_status": None})
    assert response.status_code == 400


def test_delete(client) -> None:
    created = _create(client).json()

    response = client.delete(f"/api/conversions/{created['id']}")
    assert response.status_code == 204
    assert response.content == b""
    assert client.get(f"/api/conversions/{created['id']}").status_code == 404


def test_list_is_newest_first_and_honours_offset(client) -> None:
    for day in (3, 1, 4, 2):
        _create(client, event_id=f"day-{day}", event_time=f"2024-05-0{day}T09:00:00Z")

    first_page = client.get("/api/conversions", params={"limit": 2}).json()
    second_page = client.get("/api/conversions", params={"limit": 2, "offset": 2}).json()

    assert [e["event_id"] for e in first_page["data"]] == ["day-4", "day-3"]
    assert [e["event_id"] for e in second_page["data"]] == ["day-2", "day-1"]
    assert second_page["offset"] == 2
    assert second_page["count"] == 4

    past_end = client.get("/api/conversions", params={"offset": 10}).json()
    assert past_end["data"] == []
    assert past_end["count"] == 4


def test_patch_records_delivery_details(client) -> None:
    created = _create(client).json()

    response = client.patch(
        f"/api/conversions/{created['id']}",
        json={
            "sync_status": "failed",
            "sync_error": "CONVERSION_PRECEDES_CLICK",
            "synced_at": "2024-06-01T12:30:00Z",
        },
    )

    assert response.status_code == 200
    stored = client.get(f"/api/conversions/{created['id']}").json()
    assert stored["sync_status"] == "failed"
    assert stored["sync_error"] == "CONVERSION_PRECEDES_CLICK"
    assert stored["synced_at"].startswith("2024-06-01T12:30:00")
