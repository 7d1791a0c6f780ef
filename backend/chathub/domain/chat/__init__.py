"""Chat domain exports."""

from .gateway import InMemoryMessageGateway, PersistenceGateway, Profile, ProfileDirectory
from .models import AttachmentRef, AuthenticatedContext, GatewayResult, MediaType, MessageRepresentation
from .registry import ConnectionRegistry
from .service import ERROR_MESSAGE, RECEIVE_MESSAGE, ChatSessionHandler

__all__ = [
	"AttachmentRef",
	"AuthenticatedContext",
	"ChatSessionHandler",
	"ConnectionRegistry",
	"ERROR_MESSAGE",
	"GatewayResult",
	"InMemoryMessageGateway",
	"MediaType",
	"MessageRepresentation",
	"PersistenceGateway",
	"Profile",
	"ProfileDirectory",
	"RECEIVE_MESSAGE",
]
