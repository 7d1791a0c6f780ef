"""Attachment helpers for chat messages."""

from __future__ import annotations

import posixpath
from typing import Iterable, List, Mapping, Optional

from .models import AttachmentRef, MediaType

_EXTENSION_TYPES = {
	".jpg": MediaType.IMAGE,
	".jpeg": MediaType.IMAGE,
	".png": MediaType.IMAGE,
	".webp": MediaType.IMAGE,
	".mp4": MediaType.VIDEO,
	".avi": MediaType.VIDEO,
	".mov": MediaType.VIDEO,
	".pdf": MediaType.DOCUMENT,
	".docx": MediaType.DOCUMENT,
	".txt": MediaType.DOCUMENT,
	".gif": MediaType.GIF,
}


def media_type_for(file_name: str) -> MediaType:
	_, extension = posixpath.splitext(file_name.replace("\\", "/"))
	return _EXTENSION_TYPES.get(extension.lower(), MediaType.OTHER)


def _pick(entry: Mapping[str, object], *keys: str) -> Optional[object]:
	for key in keys:
		value = entry.get(key)
		if value not in (None, ""):
			return value
	return None


def normalize_attachments(
	items: Iterable[Mapping[str, object]] | None,
	*,
	max_items: Optional[int] = None,
) -> List[AttachmentRef]:
	"""Validate and normalise attachment payloads sent by clients.

	Each attachment must include:
	- filePath / file_path (path of an already uploaded file)
	- fileName / file_name
	and may include mediaType / media_type (int value or name). When the
	media type is missing it is inferred from the file extension.

	Raises ValueError on malformed entries or unsupported media.
	"""

	normalized: List[AttachmentRef] = []
	if not items:
		return normalized
	if not isinstance(items, (list, tuple)):
		raise ValueError("attachments must be a list")
	entries = list(items)
	if max_items is not None and len(entries) > max_items:
		raise ValueError(f"You can attach at most {max_items} files")
	for entry in entries:
		if not isinstance(entry, Mapping):
			raise ValueError("attachment must be an object")
		file_path = _pick(entry, "filePath", "file_path")
		file_name = _pick(entry, "fileName", "file_name")
		if not file_path or not file_name:
			raise ValueError("attachment requires filePath and fileName")
		raw_type = _pick(entry, "mediaType", "media_type")
		media_type = MediaType.parse(raw_type) if raw_type is not None else media_type_for(str(file_name))
		if media_type is MediaType.OTHER:
			raise ValueError("unsupported media type")
		normalized.append(
			AttachmentRef(
				file_path=str(file_path).replace("\\", "/"),
				file_name=str(file_name),
				media_type=media_type,
			)
		)
	return normalized
