"""In-memory registry of live connections and the rooms they observe."""

from __future__ import annotations

import threading
from typing import Dict, FrozenSet, Optional, Set

from .models import AuthenticatedContext


class ConnectionRegistry:
	"""Tracks connection → context and room → member connections.

	Safe for concurrent use from event-loop tasks or worker threads. The lock
	only guards dictionary updates and snapshots; callers never hold it while
	awaiting I/O.
	"""

	def __init__(self) -> None:
		self._lock = threading.Lock()
		self._contexts: Dict[str, AuthenticatedContext] = {}
		self._rooms: Dict[str, Set[str]] = {}
		self._connection_rooms: Dict[str, Set[str]] = {}

	def connect(self, connection_id: str, context: AuthenticatedContext) -> None:
		with self._lock:
			self._contexts[connection_id] = context
			self._connection_rooms.setdefault(connection_id, set())

	def context_for(self, connection_id: str) -> Optional[AuthenticatedContext]:
		with self._lock:
			return self._contexts.get(connection_id)

	def join(self, connection_id: str, room_id: str) -> bool:
		"""Add the connection to the room.

		Returns False if it was already a member or is no longer connected.
		"""
		with self._lock:
			rooms = self._connection_rooms.get(connection_id)
			if rooms is None:
				return False
			members = self._rooms.setdefault(room_id, set())
			if connection_id in members:
				return False
			members.add(connection_id)
			rooms.add(room_id)
			return True

	def leave(self, connection_id: str, room_id: str) -> bool:
		"""Remove the connection from the room. Returns False if it was not a member."""
		with self._lock:
			members = self._rooms.get(room_id)
			if not members or connection_id not in members:
				return False
			members.discard(connection_id)
			if not members:
				del self._rooms[room_id]
			rooms = self._connection_rooms.get(connection_id)
			if rooms is not None:
				rooms.discard(room_id)
			return True

	def disconnect(self, connection_id: str) -> FrozenSet[str]:
		"""Forget the connection and drop it from every room it joined."""
		with self._lock:
			self._contexts.pop(connection_id, None)
			rooms = self._connection_rooms.pop(connection_id, set())
			for room_id in rooms:
				members = self._rooms.get(room_id)
				if members is None:
					continue
				members.discard(connection_id)
				if not members:
					del self._rooms[room_id]
			return frozenset(rooms)

	def members_of(self, room_id: str) -> FrozenSet[str]:
		with self._lock:
			return frozenset(self._rooms.get(room_id, ()))

	def rooms_of(self, connection_id: str) -> FrozenSet[str]:
		with self._lock:
			return frozenset(self._connection_rooms.get(connection_id, ()))

	def is_connected(self, connection_id: str) -> bool:
		with self._lock:
			return connection_id in self._contexts

	@property
	def connection_count(self) -> int:
		with self._lock:
			return len(self._contexts)

	@property
	def room_count(self) -> int:
		with self._lock:
			return len(self._rooms)
