from datetime import datetime, timezone

import pytest

from chathub.domain.chat.models import (
    AttachmentRef,
    AuthenticatedContext,
    GatewayResult,
    MediaType,
    MessageRepresentation,
)
from chathub.domain.chat.registry import ConnectionRegistry
from chathub.domain.chat.service import ERROR_MESSAGE, RECEIVE_MESSAGE, ChatSessionHandler


class RecordingSink:
    def __init__(self, failing: set[str] | None = None) -> None:
        self.events: list[tuple[str, str, object]] = []
        self.failing = failing or set()

    async def send(self, connection_id: str, event: str, payload: object) -> None:
        if connection_id in self.failing:
            raise RuntimeError("socket closed")
        self.events.append((connection_id, event, payload))

    def of(self, event: str) -> list[tuple[str, object]]:
        return [(cid, payload) for cid, name, payload in self.events if name == event]


class StubGateway:
    def __init__(self, result: GatewayResult | None = None, error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.calls: list[tuple] = []

    async def create_message(self, user_id, content, receiver_id=None, group_id=None, attachments=None):
        self.calls.append((user_id, content, receiver_id, group_id, attachments))
        if self.error is not None:
            raise self.error
        return self.result


def _message(message_id: str = "m1", content: str = "hello") -> MessageRepresentation:
    return MessageRepresentation(
        id=message_id,
        content=content,
        sender_id="profile-alice",
        sender_name="Alice Liddell",
        sent_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


def _setup(gateway: StubGateway, *contexts: AuthenticatedContext, sink: RecordingSink | None = None):
    registry = ConnectionRegistry()
    sink = sink or RecordingSink()
    handler = ChatSessionHandler(registry=registry, gateway=gateway, sink=sink)
    for ctx in contexts:
        handler.connect(ctx)
    return handler, registry, sink


ALICE = AuthenticatedContext(connection_id="alice-conn", user_id="alice")
BOB = AuthenticatedContext(connection_id="bob-conn", user_id="bob")
CAROL = AuthenticatedContext(connection_id="carol-conn", user_id="carol")


@pytest.mark.asyncio
async def test_conv_42_scenario_delivers_three_times():
    gateway = StubGateway(result=GatewayResult.success(_message("m1")))
    handler, _, sink = _setup(gateway, ALICE, BOB)
    handler.join_room(ALICE, "conv-42")
    handler.join_room(BOB, "conv-42")

    stored = await handler.send_message(ALICE, "conv-42", "hello", None, None, None)

    assert stored is not None and stored.id == "m1"
    deliveries = sink.of(RECEIVE_MESSAGE)
    assert [cid for cid, _ in deliveries] == ["alice-conn", "bob-conn", "alice-conn"]
    assert all(payload["id"] == "m1" for _, payload in deliveries)
    assert sink.of(ERROR_MESSAGE) == []
    assert gateway.calls == [("alice", "hello", None, None, None)]


@pytest.mark.asyncio
async def test_sender_outside_room_receives_single_copy():
    gateway = StubGateway(result=GatewayResult.success(_message()))
    handler, _, sink = _setup(gateway, ALICE, BOB)
    handler.join_room(BOB, "conv-1")

    await handler.send_message(ALICE, "conv-1", "hello", "bob", None, None)

    deliveries = [cid for cid, _ in sink.of(RECEIVE_MESSAGE)]
    assert sorted(deliveries) == ["alice-conn", "bob-conn"]
    assert deliveries.count("alice-conn") == 1


@pytest.mark.asyncio
async def test_non_members_do_not_receive_broadcast():
    gateway = StubGateway(result=GatewayResult.success(_message()))
    handler, _, sink = _setup(gateway, ALICE, BOB, CAROL)
    handler.join_room(BOB, "conv-1")
    handler.join_room(CAROL, "conv-2")

    await handler.send_message(ALICE, "conv-1", "hello", None, "group-1", None)

    assert "carol-conn" not in {cid for cid, _ in sink.of(RECEIVE_MESSAGE)}


@pytest.mark.asyncio
async def test_unauthenticated_caller_gets_single_error_and_no_persistence():
    gateway = StubGateway(result=GatewayResult.success(_message()))
    anonymous = AuthenticatedContext(connection_id="anon-conn", user_id=None)
    handler, _, sink = _setup(gateway, anonymous, BOB)
    handler.join_room(BOB, "conv-1")

    result = await handler.send_message(anonymous, "conv-1", "hello", None, None, None)

    assert result is None
    assert gateway.calls == []
    assert sink.of(RECEIVE_MESSAGE) == []
    assert sink.of(ERROR_MESSAGE) == [("anon-conn", "User is not authenticated")]


@pytest.mark.asyncio
async def test_blank_user_id_counts_as_unauthenticated():
    gateway = StubGateway(result=GatewayResult.success(_message()))
    blank = AuthenticatedContext(connection_id="blank-conn", user_id="   ")
    handler, _, sink = _setup(gateway, blank)

    await handler.send_message(blank, "conv-1", "hello")

    assert gateway.calls == []
    assert len(sink.of(ERROR_MESSAGE)) == 1


@pytest.mark.asyncio
async def test_rejection_is_reported_verbatim_to_caller_only():
    gateway = StubGateway(result=GatewayResult.failure("Profile not found"))
    handler, _, sink = _setup(gateway, ALICE, BOB)
    handler.join_room(ALICE, "conv-1")
    handler.join_room(BOB, "conv-1")

    result = await handler.send_message(ALICE, "conv-1", "hello", "bob", None, None)

    assert result is None
    assert sink.of(RECEIVE_MESSAGE) == []
    assert sink.events == [("alice-conn", ERROR_MESSAGE, "Profile not found")]


@pytest.mark.asyncio
async def test_unexpected_exception_is_wrapped_and_not_raised():
    gateway = StubGateway(error=RuntimeError("database unavailable"))
    handler, registry, sink = _setup(gateway, ALICE, BOB)
    handler.join_room(BOB, "conv-1")

    result = await handler.send_message(ALICE, "conv-1", "hello", "bob", None, None)

    assert result is None
    assert sink.events == [("alice-conn", ERROR_MESSAGE, "Failed to send message: database unavailable")]
    assert registry.is_connected("alice-conn")


@pytest.mark.asyncio
async def test_failed_delivery_to_one_member_does_not_block_others():
    gateway = StubGateway(result=GatewayResult.success(_message()))
    sink = RecordingSink(failing={"bob-conn"})
    handler, _, sink = _setup(gateway, ALICE, BOB, CAROL, sink=sink)
    for ctx in (ALICE, BOB, CAROL):
        handler.join_room(ctx, "conv-1")

    await handler.send_message(ALICE, "conv-1", "hello", None, "group-1", None)

    assert [cid for cid, _ in sink.of(RECEIVE_MESSAGE)] == ["alice-conn", "carol-conn", "alice-conn"]
    assert sink.of(ERROR_MESSAGE) == []


@pytest.mark.asyncio
async def test_disconnected_connection_is_not_delivered_to():
    gateway = StubGateway(result=GatewayResult.success(_message()))
    handler, registry, sink = _setup(gateway, ALICE, BOB)
    handler.join_room(ALICE, "conv-1")
    handler.join_room(BOB, "conv-1")

    handler.disconnect("bob-conn")
    await handler.send_message(ALICE, "conv-1", "hello", None, "group-1", None)

    assert "bob-conn" not in {cid for cid, _ in sink.events}
    assert registry.rooms_of("bob-conn") == frozenset()


@pytest.mark.asyncio
async def test_sender_disconnecting_mid_send_still_persists_and_broadcasts():
    handler_ref: dict = {}

    class DisconnectingGateway(StubGateway):
        async def create_message(self, *args, **kwargs):
            handler_ref["handler"].disconnect("alice-conn")
            return await super().create_message(*args, **kwargs)

    gateway = DisconnectingGateway(result=GatewayResult.success(_message()))
    handler, _, sink = _setup(gateway, ALICE, BOB)
    handler_ref["handler"] = handler
    handler.join_room(ALICE, "conv-1")
    handler.join_room(BOB, "conv-1")

    result = await handler.send_message(ALICE, "conv-1", "hello", None, "group-1", None)

    assert result is not None
    assert [cid for cid, _ in sink.of(RECEIVE_MESSAGE)] == ["bob-conn"]


@pytest.mark.asyncio
async def test_attachments_are_passed_through_in_order():
    gateway = StubGateway(result=GatewayResult.success(_message()))
    handler, _, _ = _setup(gateway, ALICE)
    refs = [
        AttachmentRef(file_path="Uploads/a.png", file_name="a.png", media_type=MediaType.IMAGE),
        AttachmentRef(file_path="Uploads/b.pdf", file_name="b.pdf", media_type=MediaType.DOCUMENT),
    ]

    await handler.send_message(ALICE, "conv-1", "", "bob", None, refs)

    assert gateway.calls[0][4] == refs


def test_join_and_leave_ignore_blank_rooms():
    handler, registry, _ = _setup(StubGateway(), ALICE)

    assert handler.join_room(ALICE, "   ") is False
    assert handler.join_room(ALICE, None) is False
    assert handler.leave_room(ALICE, "") is False
    assert registry.room_count == 0


def test_join_requires_authenticated_context():
    anonymous = AuthenticatedContext(connection_id="anon-conn")
    handler, registry, _ = _setup(StubGateway(), anonymous)

    assert handler.join_room(anonymous, "conv-1") is False
    assert registry.members_of("conv-1") == frozenset()


def test_leave_room_is_symmetric_to_join():
    handler, registry, _ = _setup(StubGateway(), ALICE)

    assert handler.join_room(ALICE, "conv-1") is True
    assert handler.leave_room(ALICE, "conv-1") is True
    assert handler.leave_room(ALICE, "conv-1") is False
    assert registry.rooms_of("alice-conn") == frozenset()
