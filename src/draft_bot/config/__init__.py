"""Application configuration"""

import logging
from dotenv import load_dotenv

from .loader import load_raw_config
from .core import Core
from .sessions import Sessions
from .storage import Backend, Storage
from .schedule import Schedule

load_dotenv()

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s]: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_RAW_CONFIG = load_raw_config()

core = Core(_RAW_CONFIG)
sessions = Sessions(_RAW_CONFIG)
storage = Storage(_RAW_CONFIG)
schedule = Schedule(_RAW_CONFIG)

logging.basicConfig(
    format=LOG_FORMAT,
    datefmt=DATE_FORMAT,
    level=logging.DEBUG if core.DEBUG else logging.INFO,
)
logging.getLogger("discord").setLevel(logging.WARNING)


class Config:
    """Bundle of config sections handed to :class:`draft_bot.models.context.BotContext`."""

    def __init__(self, raw: dict | None = None) -> None:
        self.core = Core(raw)
        self.sessions = Sessions(raw)
        self.storage = Storage(raw)
        self.schedule = Schedule(raw)

    @classmethod
    def default(cls) -> "Config":
        cfg = cls.__new__(cls)
        cfg.core = core
        cfg.sessions = sessions
        cfg.storage = storage
        cfg.schedule = schedule
        return cfg


__all__ = ["core", "sessions", "storage", "schedule", "Backend", "Config"]
