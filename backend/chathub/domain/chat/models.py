"""Domain models for the realtime chat hub."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any, List, Optional, Tuple


class MediaType(IntEnum):
	IMAGE = 0
	VIDEO = 1
	DOCUMENT = 2
	GIF = 3
	OTHER = 99

	@classmethod
	def parse(cls, value: object) -> "MediaType":
		"""Accept the integer value or the case-insensitive member name."""
		if isinstance(value, MediaType):
			return value
		if isinstance(value, bool):
			raise ValueError(f"unsupported media type: {value!r}")
		if isinstance(value, int):
			return cls(value)
		if isinstance(value, str):
			text = value.strip()
			if text.lstrip("-").isdigit():
				return cls(int(text))
			try:
				return cls[text.upper()]
			except KeyError:
				pass
		raise ValueError(f"unsupported media type: {value!r}")

	@property
	def label(self) -> str:
		return self.name.capitalize()


@dataclass(slots=True, frozen=True)
class AuthenticatedContext:
	"""Identity attached to one live connection.

	`user_id` is None when the transport could not resolve the caller.
	"""

	connection_id: str
	user_id: Optional[str] = None
	display_name: Optional[str] = None
	roles: Tuple[str, ...] = ()
	session_id: Optional[str] = None

	@property
	def is_authenticated(self) -> bool:
		return bool(self.user_id and self.user_id.strip())


@dataclass(slots=True, frozen=True)
class AttachmentRef:
	file_path: str
	file_name: str
	media_type: MediaType


@dataclass(slots=True, frozen=True)
class MessageMedia:
	id: str
	url: str
	file_name: str
	media_type: MediaType
	order: int

	def to_dict(self) -> dict:
		return {
			"id": self.id,
			"url": self.url,
			"fileName": self.file_name,
			"mediaType": int(self.media_type),
			"order": self.order,
		}


@dataclass(slots=True)
class MessageRepresentation:
	"""Display-ready form of a stored message, emitted verbatim to clients."""

	id: str
	content: str
	sender_id: str
	sender_name: str
	sent_at: datetime
	sender_photo: Optional[str] = None
	is_edited: bool = False
	media: Tuple[MessageMedia, ...] = ()
	reactions: List[Any] = field(default_factory=list)

	def to_dict(self) -> dict:
		return {
			"id": self.id,
			"content": self.content,
			"senderId": self.sender_id,
			"senderName": self.sender_name,
			"senderPhoto": self.sender_photo,
			"sentAt": self.sent_at.isoformat(),
			"isEdited": self.is_edited,
			"media": [item.to_dict() for item in sorted(self.media, key=lambda m: m.order)],
			"reactions": list(self.reactions),
		}


@dataclass(slots=True, frozen=True)
class GatewayResult:
	"""Outcome of a persistence call: a stored message or a failure reason."""

	message: Optional[MessageRepresentation] = None
	error: Optional[str] = None

	@property
	def ok(self) -> bool:
		return self.message is not None and self.error is None

	@classmethod
	def success(cls, message: MessageRepresentation) -> "GatewayResult":
		return cls(message=message)

	@classmethod
	def failure(cls, reason: str) -> "GatewayResult":
		return cls(error=reason or "Message rejected")
