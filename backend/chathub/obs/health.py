"""Health check helpers for liveness and readiness probes."""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from chathub.domain.chat.registry import ConnectionRegistry


async def liveness() -> Dict[str, Any]:
	return {"status": "ok"}


async def readiness(registry: Optional[ConnectionRegistry]) -> Tuple[int, Dict[str, Any]]:
	if registry is None:
		return 503, {"status": "starting", "chat": {"ok": False, "error": "hub_not_initialised"}}
	return (
		200,
		{
			"status": "ok",
			"chat": {
				"ok": True,
				"connections": registry.connection_count,
				"rooms": registry.room_count,
			},
		},
	)
