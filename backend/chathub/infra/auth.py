"""Authentication helpers shared by the socket transport.

Tokens are HS256 JWTs signed with settings.secret_key. Dev-only identity
payloads are accepted when no token is presented and the environment is dev.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from chathub.infra import jwt as jwt_helper
from chathub.settings import settings


class AuthError(Exception):
	"""Raised when a connection cannot be authenticated."""


@dataclass(slots=True)
class AuthenticatedUser:
	id: str
	display_name: Optional[str] = None
	roles: Tuple[str, ...] = ()
	session_id: Optional[str] = None

	def has_role(self, role: str) -> bool:
		return role in self.roles


def _parse_roles(claim: object) -> Tuple[str, ...]:
	if isinstance(claim, (list, tuple)):
		return tuple(str(r).strip() for r in claim if str(r).strip())
	if isinstance(claim, str):
		return tuple(part.strip() for part in claim.split(",") if part.strip())
	return ()


def verify_access_jwt(token: str) -> AuthenticatedUser:
	"""Decode and validate an access JWT and return an AuthenticatedUser.

	Roles can be list[str] or a comma-separated string under `roles`,
	`role`, or `scp`.
	"""
	try:
		payload = jwt_helper.decode_access(token)
	except Exception as exc:
		raise AuthError("invalid_token") from exc

	sub = str(payload.get("sub") or "").strip()
	if not sub:
		raise AuthError("invalid_token")
	display_name = payload.get("name") or payload.get("display_name")
	roles = _parse_roles(payload.get("roles") or payload.get("role") or payload.get("scp"))
	session_id = payload.get("sid")
	return AuthenticatedUser(
		id=sub,
		display_name=str(display_name) if display_name is not None else None,
		roles=roles,
		session_id=str(session_id).strip() if session_id is not None else None,
	)


def user_from_dev_payload(payload: Mapping[str, object]) -> Optional[AuthenticatedUser]:
	"""Build a user from `userId`/`user_id` in dev; None in every other environment."""
	if not settings.is_dev():
		return None
	user_id = payload.get("userId") or payload.get("user_id")
	if not user_id:
		return None
	display_name = payload.get("displayName") or payload.get("display_name")
	return AuthenticatedUser(
		id=str(user_id),
		display_name=str(display_name) if display_name else None,
		session_id="dev-session",
	)
