import pytest
from sqlmodel import select

from adorchestrator.ai.base_provider import ChatMessage
from adorchestrator.ai.chat import (
    CHAT_SYSTEM_PROMPT,
    ChatContext,
    build_chat_system_prompt,
    stream_chat_response,
)
from adorchestrator.api import chat_routes
from adorchestrator.models.brand_models import Brand, BrandTone, Product
from adorchestrator.models.usage_models import APIUsage


def test_system_prompt_without_context() -> None:
    assert build_chat_system_prompt(ChatContext()) == CHAT_SYSTEM_PROMPT


def test_system_prompt_includes_brand_context() -> None:
    prompt = build_chat_system_prompt(
        ChatContext(
            brand_name="Northwind",
            brand_tone=["Adventurous", "Warm"],
            product_names=["Tent", "Kayak"],
        )
    )

    assert prompt.startswith(CHAT_SYSTEM_PROMPT)
    assert "You represent Northwind." in prompt
    assert "Brand voice: Adventurous, Warm." in prompt
    assert "Available products: Tent, Kayak." in prompt


async def test_stream_sends_last_message_after_history(fake_provider) -> None:
    provider = fake_provider(fragments=("Try ", "", "the tent."))
    messages = [
        ChatMessage(role="user", content="Hi"),
        ChatMessage(role="assistant", content="Hello! What are you after?"),
        ChatMessage(role="user", content="Something for camping"),
    ]

    fragments = [f async for f in stream_chat_response(provider, messages, ChatContext())]

    assert fragments == ["Try ", "the tent."]
    history, message, system = provider.chat_calls[0]
    assert [m.content for m in history] == ["Hi", "Hello! What are you after?"]
    assert message == "Something for camping"
    assert system == CHAT_SYSTEM_PROMPT


async def test_stream_rejects_empty_messages(fake_provider) -> None:
    with pytest.raises(ValueError):
        async for _ in stream_chat_response(fake_provider(), [], ChatContext()):
            pass


# ── Route ──


@pytest.fixture
def chat_provider(monkeypatch, fake_provider):
    provider = fake_provider(fragments=("We have ", "a great tent."))
    monkeypatch.setattr(chat_routes, "select_provider", lambda name="auto": ("fake", provider))
    return provider


def test_chat_requires_messages(client, chat_provider) -> None:
    response = client.post("/api/chat", json={"messages": []})
    assert response.status_code == 400
    assert response.json() == {"error": "Messages required"}


def test_chat_requires_authentication(anon_client) -> None:
    response = anon_client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})
    assert response.status_code == 401


def test_chat_streams_plain_text(client, session, chat_provider) -> None:
    response = client.post(
        "/api/chat", json={"messages": [{"role": "user", "content": "Any tents?"}]}
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == "We have a great tent."
    assert session.exec(select(APIUsage)).one().api_endpoint == "chat"


def test_chat_uses_brand_context(client, session, chat_provider) -> None:
    brand = Brand(name="Northwind")
    session.add(brand)
    session.commit()
    session.refresh(brand)
    session.add(BrandTone(brand_id=brand.id, descriptor="Adventurous"))
    session.add(Product(brand_id=brand.id, name="Tent"))
    session.commit()

    client.post(
        "/api/chat",
        json={"messages": [{"role": "user", "content": "Hi"}], "brandId": str(brand.id)},
    )

    system = chat_provider.chat_calls[0][2]
    assert "You represent Northwind." in system
    assert "Brand voice: Adventurous." in system
    assert "Available products: Tent." in system


def test_chat_ignores_unknown_brand(client, chat_provider) -> None:
    client.post(
        "/api/chat",
        json={"messages": [{"role": "user", "content": "Hi"}], "brandId": "not-a-uuid"},
    )
    assert chat_provider.chat_calls[0][2] == CHAT_SYSTEM_PROMPT
