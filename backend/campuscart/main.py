"""FastAPI application entrypoint.

Serve ``campuscart.main:socket_app`` so Socket.IO traffic on ``/socket.io``
reaches the realtime namespace and everything else falls through to FastAPI.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from campuscart.api import admin, health, messages, notifications, roommates
from campuscart.api.errors import install_error_handlers
from campuscart.container import Services, build_services
from campuscart.domain.realtime.gateway import RealtimeGateway, SocketIOGateway
from campuscart.domain.realtime.namespace import MarketplaceNamespace
from campuscart.infra import postgres
from campuscart.obs import init as obs_init
from campuscart.settings import settings

logger = logging.getLogger(__name__)


def _allowed_origins() -> List[str]:
	allow_origins = list(getattr(settings, "cors_allow_origins", []))
	if not allow_origins:
		allow_origins = ["http://localhost:3000"]
	# Starlette disallows wildcard '*' with allow_credentials=True.
	if "*" in allow_origins:
		allow_origins = ["http://localhost:3000", "http://127.0.0.1:3000"] if settings.is_dev() else []
	return allow_origins


def create_sio() -> socketio.AsyncServer:
	client_manager = None
	if settings.realtime_redis_url:
		client_manager = socketio.AsyncRedisManager(settings.realtime_redis_url)
	return socketio.AsyncServer(
		async_mode="asgi",
		cors_allowed_origins=_allowed_origins(),
		ping_interval=settings.socket_ping_interval,
		ping_timeout=settings.socket_ping_timeout,
		client_manager=client_manager,
	)


@asynccontextmanager
async def lifespan(app: FastAPI):
	manage_pool = getattr(app.state, "manage_pool", True)
	if manage_pool:
		await postgres.init_pool()
		logger.info("postgres pool ready")
	try:
		yield
	finally:
		if manage_pool:
			await postgres.close_pool()


def create_app(
	sio: Optional[socketio.AsyncServer] = None,
	services: Optional[Services] = None,
	gateway: Optional[RealtimeGateway] = None,
) -> FastAPI:
	sio = sio or create_sio()
	gateway = gateway or SocketIOGateway(sio)
	manage_pool = services is None
	services = services or build_services(gateway)

	app = FastAPI(title="Campus Cart Realtime API", lifespan=lifespan)
	app.state.sio = sio
	app.state.services = services
	app.state.manage_pool = manage_pool
	install_error_handlers(app)
	app.add_middleware(
		CORSMiddleware,
		allow_origins=_allowed_origins(),
		allow_credentials=True,
		allow_methods=["*"],
		allow_headers=["*"],
	)
	obs_init(app)

	app.include_router(health.router)
	app.include_router(notifications.router)
	app.include_router(messages.router)
	app.include_router(roommates.router)
	app.include_router(admin.router)

	sio.register_namespace(MarketplaceNamespace(services, gateway))
	return app


app = create_app()
socket_app = socketio.ASGIApp(app.state.sio, other_asgi_app=app)
