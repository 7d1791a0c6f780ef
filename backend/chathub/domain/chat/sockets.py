"""Socket.IO namespace for the chat hub."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Optional, Sequence, Tuple
from urllib.parse import parse_qs

import socketio

from chathub.infra.auth import AuthError, AuthenticatedUser, user_from_dev_payload, verify_access_jwt
from chathub.obs import logging as obs_logging
from chathub.obs import metrics as obs_metrics
from chathub.settings import settings

from . import attachments
from .gateway import InMemoryMessageGateway, PersistenceGateway
from .models import AuthenticatedContext
from .registry import ConnectionRegistry
from .service import UNEXPECTED_PREFIX, ChatSessionHandler

logger = obs_logging.get_logger(__name__)

# Wire event names → handler suffixes
_EVENT_HANDLERS = {
	"JoinChat": "join_chat",
	"LeaveChat": "leave_chat",
	"SendMessage": "send_message",
}


def _header(scope: dict, name: str) -> Optional[str]:
	target = name.encode().lower()
	for key, value in scope.get("headers", []):
		if key.lower() == target:
			return value.decode()
	return None


def _query_param(environ: dict, scope: dict, name: str) -> Optional[str]:
	raw = environ.get("QUERY_STRING")
	if raw is None:
		query = scope.get("query_string", b"")
		raw = query.decode() if isinstance(query, bytes) else str(query or "")
	values = parse_qs(raw).get(name)
	return values[0] if values else None


def _optional_id(value: object) -> Optional[str]:
	if value is None:
		return None
	text = str(value).strip()
	return text or None


class SocketIOSink:
	"""Delivers handler events to individual Socket.IO sessions."""

	def __init__(self, namespace: socketio.AsyncNamespace) -> None:
		self._namespace = namespace

	async def send(self, connection_id: str, event: str, payload: object) -> None:
		obs_metrics.socket_event(self._namespace.namespace, event)
		await self._namespace.emit(event, payload, room=connection_id)


class ChatNamespace(socketio.AsyncNamespace):
	"""Namespace exposing JoinChat / LeaveChat / SendMessage."""

	def __init__(
		self,
		gateway: Optional[PersistenceGateway] = None,
		registry: Optional[ConnectionRegistry] = None,
		namespace: Optional[str] = None,
	) -> None:
		super().__init__(namespace or settings.chat_namespace)
		self.registry = registry or ConnectionRegistry()
		self.handler = ChatSessionHandler(
			registry=self.registry,
			gateway=gateway or InMemoryMessageGateway(),
			sink=SocketIOSink(self),
		)

	async def trigger_event(self, event: str, *args: Any) -> Any:
		return await super().trigger_event(_EVENT_HANDLERS.get(event, event), *args)

	async def on_connect(self, sid: str, environ: dict, auth: Optional[dict] = None) -> None:
		try:
			user = self._authorise(environ, auth)
		except AuthError as exc:
			obs_metrics.socket_rejected(self.namespace, str(exc))
			logger.info("chat_connect_refused", extra={"reason": str(exc)})
			raise ConnectionRefusedError("unauthorized") from None
		obs_metrics.socket_connected(self.namespace)
		ctx = AuthenticatedContext(
			connection_id=sid,
			user_id=user.id,
			display_name=user.display_name,
			roles=user.roles,
			session_id=user.session_id,
		)
		with self._bound(sid, "connect", ctx):
			self.handler.connect(ctx)

	async def on_disconnect(self, sid: str, reason: Optional[str] = None) -> None:
		ctx = self.registry.context_for(sid)
		if ctx is None:
			return
		obs_metrics.socket_disconnected(self.namespace)
		with self._bound(sid, "disconnect", ctx):
			self.handler.disconnect(sid)

	async def on_join_chat(self, sid: str, payload: Any = None) -> None:
		obs_metrics.socket_event(self.namespace, "JoinChat")
		ctx = self._context(sid)
		with self._bound(sid, "JoinChat", ctx):
			self.handler.join_room(ctx, self._room_from(payload))

	async def on_leave_chat(self, sid: str, payload: Any = None) -> None:
		obs_metrics.socket_event(self.namespace, "LeaveChat")
		ctx = self._context(sid)
		with self._bound(sid, "LeaveChat", ctx):
			self.handler.leave_room(ctx, self._room_from(payload))

	async def on_send_message(self, sid: str, *args: Any) -> None:
		obs_metrics.socket_event(self.namespace, "SendMessage")
		ctx = self._context(sid)
		with self._bound(sid, "SendMessage", ctx):
			try:
				room_id, content, receiver_id, group_id, raw_attachments = self._send_args(args)
				refs = attachments.normalize_attachments(
					raw_attachments,
					max_items=settings.chat_max_attachments,
				)
			except ValueError as exc:
				obs_metrics.inc_chat_error("rejected")
				await self.handler.reject(sid, str(exc))
				return
			except Exception as exc:
				obs_metrics.inc_chat_error("unexpected")
				logger.exception("chat_payload_failed")
				await self.handler.reject(sid, f"{UNEXPECTED_PREFIX}{exc}")
				return
			await self.handler.send_message(ctx, room_id, content, receiver_id, group_id, refs)

	def _context(self, sid: str) -> AuthenticatedContext:
		return self.registry.context_for(sid) or AuthenticatedContext(connection_id=sid)

	@contextmanager
	def _bound(self, sid: str, event: str, ctx: Optional[AuthenticatedContext]) -> Iterator[None]:
		tokens = obs_logging.bind_context(
			connection_id=sid,
			user_id=ctx.user_id if ctx and ctx.user_id else None,
			event=event,
		)
		try:
			yield
		finally:
			obs_logging.reset_context(tokens)

	@staticmethod
	def _room_from(payload: Any) -> Optional[str]:
		if isinstance(payload, Mapping):
			payload = payload.get("roomId") or payload.get("room_id") or payload.get("chatId")
		elif isinstance(payload, (list, tuple)) and len(payload) == 1:
			payload = payload[0]
		if isinstance(payload, bool) or not isinstance(payload, (str, int)):
			return None
		return _optional_id(payload)

	@staticmethod
	def _send_args(args: Sequence[Any]) -> Tuple[Optional[str], Optional[str], Optional[str], Optional[str], Any]:
		"""Accept either one object payload or the positional hub argument list."""
		if len(args) == 1 and isinstance(args[0], Mapping):
			data = args[0]
			room_id = data.get("roomId") or data.get("room_id") or data.get("chatId")
			content = data.get("content")
			receiver_id = data.get("receiverId", data.get("receiver_id"))
			group_id = data.get("groupId", data.get("group_id"))
			raw_attachments = data.get("attachments")
		else:
			values = list(args[0]) if len(args) == 1 and isinstance(args[0], (list, tuple)) else list(args)
			values.extend([None] * (5 - len(values)))
			room_id, content, receiver_id, group_id, raw_attachments = values[:5]
		if content is not None and not isinstance(content, str):
			raise ValueError("content must be a string")
		return (
			_optional_id(room_id),
			content,
			_optional_id(receiver_id),
			_optional_id(group_id),
			raw_attachments,
		)

	def _authorise(self, environ: dict, auth: Optional[dict]) -> AuthenticatedUser:
		scope = environ.get("asgi.scope", environ)
		auth_payload = auth if isinstance(auth, Mapping) else (environ.get("auth") or scope.get("auth") or {})
		token = auth_payload.get("token") or auth_payload.get("access_token")
		if not token:
			token = _query_param(environ, scope, "access_token")
		if not token:
			auth_header = _header(scope, "authorization") or environ.get("HTTP_AUTHORIZATION")
			if auth_header and auth_header.lower().startswith("bearer "):
				token = auth_header.split(" ", 1)[1]
		if token:
			return verify_access_jwt(str(token))
		user = user_from_dev_payload(auth_payload)
		if user is None:
			raise AuthError("missing_token")
		return user
