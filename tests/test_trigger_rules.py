import uuid

import pytest

from adorchestrator.models.brand_models import Brand, Product
from adorchestrator.models.campaign_models import Campaign
from adorchestrator.models.data_source_models import DataSource, DataSourceValue
from adorchestrator.models.trigger_models import TriggerRule
from adorchestrator.services.trigger_engine import (
    evaluate_all_rules,
    evaluate_condition,
    evaluate_rule,
)

WEATHER_NOW = {
    "temperature": 31,
    "humidity": 40,
    "conditions": "Clear",
    "description": "clear sky",
    "location": "Berlin",
}


@pytest.mark.parametrize(
    "operator, current, target, expected",
    [
        ("eq", "Clear", "clear", True),
        ("eq", 21.0, "21", True),
        ("neq", "Rain", "clear", True),
        ("gt", 31, "30", True),
        ("gt", "30", "30", False),
        ("gte", "30", "30", True),
        ("lt", "12.5°C", "13", True),
        ("lte", 14, "13", False),
        ("gt", "warm", "30", False),
        ("contains", "light rain showers", "RAIN", True),
        ("not_contains", "clear sky", "rain", True),
        ("between", 5, "1", False),
    ],
)
def test_evaluate_condition(operator, current, target, expected) -> None:
    assert evaluate_condition(operator, current, target) is expected


def test_missing_value_never_triggers() -> None:
    assert evaluate_condition("neq", None, "anything") is False

    rule = TriggerRule(
        name="r", data_source_id=uuid.uuid4(), condition_key="uv_index",
        condition_operator="neq", condition_value="0", action_value="awareness",
    )
    assert evaluate_rule(rule, []) == (False, None)


def test_rule_reads_weather_snapshot_then_direct_keys() -> None:
    source_id = uuid.uuid4()
    values = [
        DataSourceValue(data_source_id=source_id, key="current", value=WEATHER_NOW),
        DataSourceValue(data_source_id=source_id, key="data", value={"target": 5}),
        DataSourceValue(data_source_id=source_id, key="footfall", value=1200),
    ]

    hot = TriggerRule(
        name="hot", data_source_id=source_id, condition_key="temperature",
        condition_operator="gte", condition_value="30", action_value="conversion",
    )
    busy = TriggerRule(
        name="busy", data_source_id=source_id, condition_key="footfall",
        condition_operator="gt", condition_value="1000", action_value="awareness",
    )

    assert evaluate_rule(hot, values) == (True, 31)
    assert evaluate_rule(busy, values) == (True, 1200)


# ── Routes ──


@pytest.fixture
def weather_source(session) -> DataSource:
    source = DataSource(name="Berlin", type="weather", config={"location": "Berlin"})
    session.add(source)
    session.commit()
    session.add(DataSourceValue(data_source_id=source.id, key="current", value=WEATHER_NOW))
    session.commit()
    session.refresh(source)
    return source


@pytest.fixture
def complete_campaign(session) -> Campaign:
    brand = Brand(name="Northwind")
    session.add(brand)
    session.commit()
    product = Product(brand_id=brand.id, name="Sunscreen")
    session.add(product)
    session.commit()
    campaign = Campaign(product_id=product.id, name="Heatwave", goal="conversion", status="complete")
    session.add(campaign)
    session.add(Campaign(product_id=product.id, name="Draft", goal="conversion"))
    session.commit()
    session.refresh(campaign)
    return campaign


def _rule(source, **overrides):
    body = {
        "name": "Hot day",
        "data_source_id": str(source.id),
        "condition_key": "temperature",
        "condition_operator": "gte",
        "condition_value": 30,
        "action_value": "conversion",
    }
    return {**body, **overrides}


def test_create_stores_value_as_text(client, weather_source) -> None:
    response = client.post("/api/trigger-rules", json=_rule(weather_source))

    body = response.json()
    assert response.status_code == 201
    assert body["condition_value"] == "30"
    assert body["action_type"] == "recommend_goal"
    assert body["data_source"]["name"] == "Berlin"


@pytest.mark.parametrize(
    "overrides, error",
    [
        ({"name": ""}, "Name is required"),
        ({"data_source_id": None}, "data_source_id is required"),
        ({"data_source_id": "x"}, "Invalid data_source_id format"),
        ({"condition_key": None}, "condition_key is required"),
        ({"condition_operator": None}, "condition_operator is required"),
        (
            {"condition_operator": "between"},
            "Invalid condition_operator. Must be one of: "
            "eq, neq, gt, gte, lt, lte, contains, not_contains",
        ),
        ({"condition_value": None}, "condition_value is required"),
        ({"action_value": ""}, "action_value is required"),
        (
            {"action_type": "send_email"},
            "Invalid action_type. Must be one of: recommend_goal, recommend_tag, show_message",
        ),
    ],
)
def test_create_validation(client, weather_source, overrides, error) -> None:
    response = client.post("/api/trigger-rules", json=_rule(weather_source, **overrides))
    assert response.status_code == 400
    assert response.json() == {"error": error}


def test_create_for_unknown_source(client, weather_source) -> None:
    body = _rule(weather_source, data_source_id=str(uuid.uuid4()))
    response = client.post("/api/trigger-rules", json=body)
    assert response.status_code == 404
    assert response.json() == {"error": "Data source not found"}


def test_list_orders_by_priority_and_filters(client, weather_source) -> None:
    client.post("/api/trigger-rules", json=_rule(weather_source, name="low", priority=1))
    client.post(
        "/api/trigger-rules", json=_rule(weather_source, name="high", priority=9, is_active=False)
    )

    assert [r["name"] for r in client.get("/api/trigger-rules").json()] == ["high", "low"]
    active = client.get("/api/trigger-rules", params={"active": "true"}).json()
    assert [r["name"] for r in active] == ["low"]
    by_source = client.get(
        "/api/trigger-rules", params={"data_source_id": str(weather_source.id)}
    ).json()
    assert len(by_source) == 2


def test_get_includes_evaluation_and_recommendations(
    client, weather_source, complete_campaign
) -> None:
    rule_id = client.post("/api/trigger-rules", json=_rule(weather_source)).json()["id"]

    body = client.get(f"/api/trigger-rules/{rule_id}").json()

    assert body["evaluation"]["triggered"] is True
    assert body["evaluation"]["current_value"] == 31
    assert [c["name"] for c in body["evaluation"]["recommended_campaigns"]] == ["Heatwave"]


def test_untriggered_rule_recommends_nothing(client, weather_source, complete_campaign) -> None:
    rule_id = client.post(
        "/api/trigger-rules", json=_rule(weather_source, condition_value=35)
    ).json()["id"]

    evaluation = client.get(f"/api/trigger-rules/{rule_id}").json()["evaluation"]
    assert evaluation["triggered"] is False
    assert evaluation["recommended_campaigns"] == []


def test_evaluate_all_active_rules(client, session, weather_source, complete_campaign) -> None:
    client.post("/api/trigger-rules", json=_rule(weather_source))
    client.post(
        "/api/trigger-rules",
        json=_rule(weather_source, name="Rainy", condition_key="conditions",
                   condition_operator="eq", condition_value="rain", action_value="awareness"),
    )
    client.post("/api/trigger-rules", json=_rule(weather_source, name="Off", is_active=False))

    assert len(evaluate_all_rules(session)) == 2

    body = client.get("/api/trigger-rules/evaluate").json()
    triggered = {e["name"]: e["triggered"] for e in body["evaluations"]}
    assert triggered == {"Hot day": True, "Rainy": False}
    assert [c["name"] for c in body["recommended_campaigns"]] == ["Heatwave"]


def test_patch_and_delete(client, weather_source) -> None:
    rule_id = client.post("/api/trigger-rules", json=_rule(weather_source)).json()["id"]

    bad = client.patch(f"/api/trigger-rules/{rule_id}", json={"condition_operator": "~"})
    assert bad.status_code == 400

    patched = client.patch(
        f"/api/trigger-rules/{rule_id}", json={"condition_value": 25.5, "priority": 3}
    ).json()
    assert patched["condition_value"] == "25.5"
    assert patched["priority"] == 3

    assert client.delete(f"/api/trigger-rules/{rule_id}").json()["success"] is True
    missing = client.get(f"/api/trigger-rules/{rule_id}")
    assert missing.status_code == 404
    assert missing.json() == {"error": "Trigger rule not found"}


def test_deleting_data_source_removes_its_rules(client, weather_source) -> None:
    client.post("/api/trigger-rules", json=_rule(weather_source))

    client.delete(f"/api/data-sources/{weather_source.id}")

    assert client.get("/api/trigger-rules").json() == []
