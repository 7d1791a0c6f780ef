"""FastAPI application entrypoint.

Serve `chathub.main:socket_app` so Socket.IO traffic reaches the chat
namespace and everything else falls through to the FastAPI routes.
"""

from __future__ import annotations

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chathub.api import ops
from chathub.domain.chat.gateway import InMemoryMessageGateway
from chathub.domain.chat.sockets import ChatNamespace
from chathub.obs import init as obs_init
from chathub.obs import logging as obs_logging
from chathub.settings import settings

logger = obs_logging.get_logger(__name__)


def _allowed_origins() -> list[str]:
	allow_origins = list(settings.cors_allow_origins)
	if not allow_origins:
		allow_origins = ["http://localhost:3000"] if settings.is_dev() else []
	# Starlette disallows wildcard '*' with allow_credentials=True.
	if "*" in allow_origins:
		allow_origins = ["http://localhost:3000", "http://127.0.0.1:3000"] if settings.is_dev() else []
	return allow_origins


app = FastAPI(title="Social Media Chat Hub")
obs_init(app)

allow_origins = _allowed_origins()
app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

app.include_router(ops.router, tags=["ops"])

sio = socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=allow_origins)
chat_namespace = ChatNamespace(gateway=InMemoryMessageGateway(provision_unknown=settings.is_dev()))
sio.register_namespace(chat_namespace)
app.state.chat_registry = chat_namespace.registry
socket_app = socketio.ASGIApp(sio, other_asgi_app=app)

logger.info("chat_hub_ready", extra={"namespace": chat_namespace.namespace})


if __name__ == "__main__":
	import uvicorn

	uvicorn.run("chathub.main:socket_app", host="0.0.0.0", port=8000)
