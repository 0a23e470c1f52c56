import pytest
from pydantic import ValidationError
from app.consumers.registry import HandlerRegistry, build_default_registry
from app.schemas.events import EventType, UserContactPayload
from app.testing.testing_mocks import RecordingHandler


def test_default_registry_covers_known_event_types():
    registry = build_default_registry()

    for event_type in EventType:
        assert event_type.value in registry
    assert "invoice.paid" not in registry
    assert registry.get("nope") is None


def test_decodes_payload_into_its_schema():
    handler = build_default_registry().get("user.created")

    payload = handler.decode('{"userId": "u-1", "email": "a@example.com", "name": "Ada"}')

    assert isinstance(payload, UserContactPayload)
    assert payload.user_id == "u-1"


def test_invalid_payload_raises():
    handler = build_default_registry().get(EventType.DIGEST_WEEKLY)

    with pytest.raises(ValidationError):
        handler.decode('{"userId": "u-1"}')


@pytest.mark.asyncio
async def test_schemaless_handler_receives_dict():
    fake = RecordingHandler(audit=False)
    registry = HandlerRegistry().register("test.event", fake)

    result = await registry.get("test.event")('{"id": "x", "seq": 3}')

    assert result is None
    assert fake.calls == [{"id": "x", "seq": 3}]
    assert list(registry) == ["test.event"]
    assert len(registry) == 1
