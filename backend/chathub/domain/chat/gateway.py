"""Persistence gateway contract and the in-memory reference store."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

import ulid

from chathub.settings import settings

from .models import AttachmentRef, GatewayResult, MessageMedia, MessageRepresentation


class PersistenceGateway(Protocol):
	async def create_message(
		self,
		user_id: str,
		content: Optional[str],
		receiver_id: Optional[str] = None,
		group_id: Optional[str] = None,
		attachments: Optional[Sequence[AttachmentRef]] = None,
	) -> GatewayResult:
		...


@dataclass(slots=True, frozen=True)
class Profile:
	id: str
	user_id: str
	first_name: str
	last_name: str = ""
	photo: Optional[str] = None

	@property
	def full_name(self) -> str:
		return f"{self.first_name} {self.last_name}".strip()


class ProfileDirectory:
	"""Maps authenticated user ids to the profile that sends on their behalf."""

	def __init__(self, profiles: Sequence[Profile] = ()) -> None:
		self._by_user: Dict[str, Profile] = {}
		for profile in profiles:
			self.add(profile)

	def add(self, profile: Profile) -> None:
		self._by_user[profile.user_id] = profile

	def remove(self, user_id: str) -> None:
		self._by_user.pop(user_id, None)

	def by_user(self, user_id: str) -> Optional[Profile]:
		return self._by_user.get(user_id)


@dataclass(slots=True, frozen=True)
class StoredMessage:
	representation: MessageRepresentation
	receiver_id: Optional[str]
	group_id: Optional[str]
	attachments: Tuple[AttachmentRef, ...]


def _media_url(base_url: str, file_path: str) -> str:
	return f"{base_url.rstrip('/')}/{file_path.lstrip('/')}"


class InMemoryMessageGateway:
	"""Gateway used in development and tests when no database is configured."""

	def __init__(
		self,
		profiles: Optional[ProfileDirectory] = None,
		*,
		media_base_url: Optional[str] = None,
		max_attachments: Optional[int] = None,
		max_length: Optional[int] = None,
		provision_unknown: bool = False,
	) -> None:
		self.profiles = profiles or ProfileDirectory()
		# Dev servers have no profile store; unknown senders get a bare profile.
		self._provision_unknown = provision_unknown
		self._media_base_url = media_base_url or settings.media_base_url
		self._max_attachments = max_attachments if max_attachments is not None else settings.chat_max_attachments
		self._max_length = max_length if max_length is not None else settings.chat_max_message_length
		self._lock = asyncio.Lock()
		self._messages: List[StoredMessage] = []

	async def create_message(
		self,
		user_id: str,
		content: Optional[str],
		receiver_id: Optional[str] = None,
		group_id: Optional[str] = None,
		attachments: Optional[Sequence[AttachmentRef]] = None,
	) -> GatewayResult:
		sender = self.profiles.by_user(user_id)
		if sender is None and self._provision_unknown:
			sender = Profile(id=user_id, user_id=user_id, first_name=user_id)
			self.profiles.add(sender)
		if sender is None:
			return GatewayResult.failure("Profile not found")
		text = content or ""
		attachments = tuple(attachments or ())
		if not text.strip() and not attachments:
			return GatewayResult.failure("Message must have content or attachments")
		if len(text) > self._max_length:
			return GatewayResult.failure(f"Message cannot exceed {self._max_length} characters")
		if len(attachments) > self._max_attachments:
			return GatewayResult.failure(f"You can attach at most {self._max_attachments} files")

		media = tuple(
			MessageMedia(
				id=str(ulid.new()),
				url=_media_url(self._media_base_url, att.file_path),
				file_name=att.file_name,
				media_type=att.media_type,
				order=order,
			)
			for order, att in enumerate(attachments)
		)
		message = MessageRepresentation(
			id=str(ulid.new()),
			content=text,
			sender_id=sender.id,
			sender_name=sender.full_name,
			sender_photo=sender.photo,
			sent_at=datetime.now(timezone.utc),
			is_edited=False,
			media=media,
			reactions=[],
		)
		async with self._lock:
			self._messages.append(
				StoredMessage(
					representation=message,
					receiver_id=receiver_id,
					group_id=group_id,
					attachments=attachments,
				)
			)
		return GatewayResult.success(message)

	async def messages_for_group(self, group_id: str) -> List[MessageRepresentation]:
		async with self._lock:
			return [m.representation for m in self._messages if m.group_id == group_id]

	async def messages_between(self, profile_a: str, profile_b: str) -> List[MessageRepresentation]:
		"""Direct messages exchanged between two profiles, oldest first."""
		pair = {profile_a, profile_b}
		async with self._lock:
			return [
				m.representation
				for m in self._messages
				if m.receiver_id is not None and {m.representation.sender_id, m.receiver_id} == pair
			]

	async def count(self) -> int:
		async with self._lock:
			return len(self._messages)
