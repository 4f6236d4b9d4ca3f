"""Real-time transport: channels, gateway, connection auth and the socket namespace."""

from .channels import ConversationKey, conversation_channel, personal_channel, roommate_channel, university_channel
from .gateway import RealtimeGateway, SocketIOGateway

__all__ = [
	"ConversationKey",
	"RealtimeGateway",
	"SocketIOGateway",
	"conversation_channel",
	"personal_channel",
	"roommate_channel",
	"university_channel",
]
