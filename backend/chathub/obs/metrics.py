"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram


REQUEST_COUNTER = Counter(
	"chathub_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"chathub_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

SOCKET_CLIENTS = Gauge(
	"chathub_socketio_clients",
	"Active Socket.IO clients per namespace",
	["namespace"],
)

SOCKET_EVENTS = Counter(
	"chathub_socketio_events_total",
	"Socket.IO events handled per namespace",
	["namespace", "event"],
)

SOCKET_REJECTS = Counter(
	"chathub_socketio_connect_rejects_total",
	"Socket.IO connections refused at connect time",
	["namespace", "reason"],
)

CHAT_SEND = Counter(
	"chathub_chat_send_total",
	"Chat messages persisted and broadcast",
)

CHAT_DELIVERIES = Counter(
	"chathub_chat_deliveries_total",
	"ReceiveMessage deliveries attempted",
	["target"],
)

CHAT_DELIVERY_FAILURES = Counter(
	"chathub_chat_delivery_failures_total",
	"ReceiveMessage deliveries that raised",
)

CHAT_ERRORS = Counter(
	"chathub_chat_errors_total",
	"SendMessage operations that ended in an ErrorMessage",
	["kind"],
)

CHAT_GATEWAY_LATENCY = Histogram(
	"chathub_chat_gateway_seconds",
	"Persistence gateway create_message latency in seconds",
	buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

ROOMS_JOIN = Counter(
	"chathub_rooms_join_total",
	"Room join operations",
)

ROOMS_LEAVE = Counter(
	"chathub_rooms_leave_total",
	"Room leave operations",
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def socket_connected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).inc()


def socket_disconnected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).dec()


def socket_event(namespace: str, event: str) -> None:
	SOCKET_EVENTS.labels(namespace=namespace, event=event).inc()


def socket_rejected(namespace: str, reason: str) -> None:
	SOCKET_REJECTS.labels(namespace=namespace, reason=reason).inc()


def inc_chat_send() -> None:
	CHAT_SEND.inc()


def inc_chat_delivery(target: str) -> None:
	CHAT_DELIVERIES.labels(target=target).inc()


def inc_chat_delivery_failure() -> None:
	CHAT_DELIVERY_FAILURES.inc()


def inc_chat_error(kind: str) -> None:
	CHAT_ERRORS.labels(kind=kind).inc()


def observe_gateway_latency(elapsed_seconds: float) -> None:
	CHAT_GATEWAY_LATENCY.observe(elapsed_seconds)


def inc_room_join() -> None:
	ROOMS_JOIN.inc()


def inc_room_leave() -> None:
	ROOMS_LEAVE.inc()
