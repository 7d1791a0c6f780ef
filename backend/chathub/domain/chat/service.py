"""Chat session handling: room membership and message fan-out."""

from __future__ import annotations

import time
from typing import Optional, Protocol, Sequence

from chathub.obs import logging as obs_logging
from chathub.obs import metrics as obs_metrics

from .gateway import PersistenceGateway
from .models import AttachmentRef, AuthenticatedContext, MessageRepresentation
from .registry import ConnectionRegistry

RECEIVE_MESSAGE = "ReceiveMessage"
ERROR_MESSAGE = "ErrorMessage"

UNAUTHENTICATED_REASON = "User is not authenticated"
UNEXPECTED_PREFIX = "Failed to send message: "

logger = obs_logging.get_logger(__name__)


class MessageSink(Protocol):
	"""Transport hook that delivers one event to one connection."""

	async def send(self, connection_id: str, event: str, payload: object) -> None:
		...


def _clean_room(room_id: Optional[str]) -> Optional[str]:
	if room_id is None:
		return None
	text = str(room_id).strip()
	return text or None


class ChatSessionHandler:
	"""Transport-agnostic handler for JoinChat / LeaveChat / SendMessage.

	The caller identity always arrives as an explicit AuthenticatedContext.
	A message reaches a room only after the gateway confirms it was stored;
	the sender additionally receives its own copy on its connection whether
	or not it joined the room.
	"""

	def __init__(
		self,
		registry: ConnectionRegistry,
		gateway: PersistenceGateway,
		sink: MessageSink,
	) -> None:
		self.registry = registry
		self.gateway = gateway
		self.sink = sink

	def connect(self, ctx: AuthenticatedContext) -> None:
		self.registry.connect(ctx.connection_id, ctx)
		logger.info("chat_connected", extra={"rooms": 0})

	def disconnect(self, connection_id: str) -> None:
		rooms = self.registry.disconnect(connection_id)
		logger.info("chat_disconnected", extra={"rooms": len(rooms)})

	def join_room(self, ctx: AuthenticatedContext, room_id: Optional[str]) -> bool:
		room = _clean_room(room_id)
		if room is None:
			return False
		if not ctx.is_authenticated:
			logger.warning("chat_join_unauthenticated", extra={"room_id": room})
			return False
		joined = self.registry.join(ctx.connection_id, room)
		if joined:
			obs_metrics.inc_room_join()
		return joined

	def leave_room(self, ctx: AuthenticatedContext, room_id: Optional[str]) -> bool:
		room = _clean_room(room_id)
		if room is None:
			return False
		left = self.registry.leave(ctx.connection_id, room)
		if left:
			obs_metrics.inc_room_leave()
		return left

	async def send_message(
		self,
		ctx: AuthenticatedContext,
		room_id: Optional[str],
		content: Optional[str],
		receiver_id: Optional[str] = None,
		group_id: Optional[str] = None,
		attachments: Optional[Sequence[AttachmentRef]] = None,
	) -> Optional[MessageRepresentation]:
		"""Persist a message and fan it out; returns the stored message or None.

		Transports pass an unauthenticated context (no user id) for callers
		they could not resolve; those get an ErrorMessage.
		"""
		if not ctx.is_authenticated:
			obs_metrics.inc_chat_error("unauthenticated")
			await self.reject(ctx.connection_id, UNAUTHENTICATED_REASON)
			return None

		try:
			start = time.perf_counter()
			result = await self.gateway.create_message(
				ctx.user_id,
				content,
				receiver_id,
				group_id,
				list(attachments) if attachments else None,
			)
			obs_metrics.observe_gateway_latency(time.perf_counter() - start)

			if not result.ok or result.message is None:
				obs_metrics.inc_chat_error("rejected")
				logger.info("chat_send_rejected", extra={"reason": result.error})
				await self.reject(ctx.connection_id, result.error or "Message rejected")
				return None

			message = result.message
			payload = message.to_dict()
			room = _clean_room(room_id)
			members = self.registry.members_of(room) if room else frozenset()
			for member in sorted(members):
				await self._deliver(member, payload, target="room")
			await self._deliver(ctx.connection_id, payload, target="caller")
			obs_metrics.inc_chat_send()
			logger.info(
				"chat_message_sent",
				extra={"message_id": message.id, "room_id": room, "recipients": len(members)},
			)
			return message
		except Exception as exc:
			obs_metrics.inc_chat_error("unexpected")
			logger.exception("chat_send_failed")
			await self.reject(ctx.connection_id, f"{UNEXPECTED_PREFIX}{exc}")
			return None

	async def reject(self, connection_id: str, reason: str) -> None:
		"""Send an ErrorMessage to a single connection."""
		try:
			await self.sink.send(connection_id, ERROR_MESSAGE, reason)
		except Exception:
			logger.warning("chat_error_delivery_failed", exc_info=True)

	async def _deliver(self, connection_id: str, payload: dict, *, target: str) -> None:
		if not self.registry.is_connected(connection_id):
			return
		obs_metrics.inc_chat_delivery(target)
		try:
			await self.sink.send(connection_id, RECEIVE_MESSAGE, payload)
		except Exception:
			obs_metrics.inc_chat_delivery_failure()
			logger.warning(
				"chat_delivery_failed",
				extra={"target_connection": connection_id},
				exc_info=True,
			)
