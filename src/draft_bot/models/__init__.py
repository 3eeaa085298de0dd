from .context import BotContext
from .notifier import Notifier
from .resolver import Resolver
from .server import DraftServer
from .session import Session
from .templates import SessionTemplateCache
from .user import DraftUser

__all__ = [
    "BotContext",
    "Notifier",
    "Resolver",
    "DraftServer",
    "Session",
    "SessionTemplateCache",
    "DraftUser",
]
