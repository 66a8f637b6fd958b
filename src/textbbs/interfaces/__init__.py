"""Abstract interfaces for the text BBS daemon."""

from .repository import ActionType, BbsRepository, Board, Conference, MenuItem, Post, PostSummary
from .message_transport import CONNECTION_CLOSED_TOPIC, MessageTransport, RequestHandler

__all__ = [
    "ActionType",
    "BbsRepository",
    "Board",
    "Conference",
    "MenuItem",
    "Post",
    "PostSummary",
    "CONNECTION_CLOSED_TOPIC",
    "MessageTransport",
    "RequestHandler",
]
