"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram


REQUEST_COUNTER = Counter(
	"campuscart_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"campuscart_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

SOCKET_CLIENTS = Gauge(
	"campuscart_socketio_clients",
	"Active Socket.IO clients per namespace",
	["namespace"],
)

SOCKET_EVENTS = Counter(
	"campuscart_socketio_events_total",
	"Socket.IO events handled per namespace",
	["namespace", "event"],
)

SOCKET_REJECTS = Counter(
	"campuscart_socketio_rejects_total",
	"Socket.IO connection attempts refused",
	["reason"],
)

CHAT_SEND = Counter(
	"campuscart_chat_messages_sent_total",
	"Chat messages persisted and fanned out",
)

CHAT_REJECTED = Counter(
	"campuscart_chat_messages_rejected_total",
	"Chat messages rejected before persistence",
	["reason"],
)

CHAT_READ_UPDATES = Counter(
	"campuscart_chat_read_updates_total",
	"Messages flipped to read",
)

NOTIFICATIONS_PERSISTED = Counter(
	"campuscart_notifications_persisted_total",
	"Notifications written to storage",
	["type"],
)

NOTIFICATIONS_DELIVERED = Counter(
	"campuscart_notifications_delivered_live_total",
	"Notifications pushed to a live personal channel",
	["type"],
)

NOTIFICATIONS_FAILED = Counter(
	"campuscart_notifications_failed_total",
	"Notification deliveries that raised",
	["type"],
)

NOTIFICATIONS_BROADCAST = Counter(
	"campuscart_notifications_broadcast_total",
	"Non-persisted broadcast notifications",
)


def observe_request(route: str, method: str, status: int, seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(seconds)


def socket_connected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).inc()


def socket_disconnected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).dec()


def socket_event(namespace: str, event: str) -> None:
	SOCKET_EVENTS.labels(namespace=namespace, event=event).inc()


def socket_rejected(reason: str) -> None:
	SOCKET_REJECTS.labels(reason=reason).inc()


def inc_chat_send() -> None:
	CHAT_SEND.inc()


def inc_chat_rejected(reason: str) -> None:
	CHAT_REJECTED.labels(reason=reason).inc()


def inc_chat_read(count: int) -> None:
	CHAT_READ_UPDATES.inc(count)


def notification_persisted(kind: str) -> None:
	NOTIFICATIONS_PERSISTED.labels(type=kind).inc()


def notification_pushed(kind: str) -> None:
	NOTIFICATIONS_DELIVERED.labels(type=kind).inc()


def notification_failed(kind: str) -> None:
	NOTIFICATIONS_FAILED.labels(type=kind).inc()


def notification_broadcast() -> None:
	NOTIFICATIONS_BROADCAST.inc()
