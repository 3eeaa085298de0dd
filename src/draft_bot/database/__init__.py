"""Persistence layer: records, views, and the pluggable drivers."""

from __future__ import annotations

import logging

from draft_bot.config.storage import Backend, Storage

from .driver import DBDriver
from .inmemory import InMemoryDriver
from .json_store import JsonDocumentDriver
from .records import (
    ServerId,
    SessionId,
    SessionParameters,
    SessionRecord,
    UserId,
    UserRecord,
    default_parameters,
)
from .views import (
    ReadonlySessionView,
    ReadonlyUserView,
    SessionView,
    UserView,
)

logger = logging.getLogger(__name__)


def build_driver(storage_cfg: Storage) -> DBDriver:
    """Select the backend named by ``storage_cfg.BACKEND``."""

    if storage_cfg.BACKEND is Backend.IN_MEMORY:
        logger.info("Using in-memory storage backend")
        return InMemoryDriver()
    logger.info("Using file-backed storage at %s", storage_cfg.DB_PATH)
    return JsonDocumentDriver(storage_cfg.DB_PATH)


__all__ = [
    "build_driver",
    "DBDriver",
    "InMemoryDriver",
    "JsonDocumentDriver",
    "ServerId",
    "SessionId",
    "UserId",
    "SessionParameters",
    "SessionRecord",
    "UserRecord",
    "default_parameters",
    "SessionView",
    "UserView",
    "ReadonlySessionView",
    "ReadonlyUserView",
]
