"""
Named session templates loaded from a TOML file.

Layout::

    [_common.cube]
    name = "Cube Draft"
    capacity = 8

    ["123456789012345678".league]
    name = "League Night"
    fire_when_full = false

Server-specific tables win over ``_common`` entries of the same name.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

from draft_bot.config.loader import load_toml_file
from draft_bot.database import ServerId

logger = logging.getLogger(__name__)

COMMON_TEMPLATE_NAME = "_common"


class SessionTemplateCache:
    def __init__(self, templates: Mapping[str, Mapping[str, Mapping[str, Any]]] | None = None) -> None:
        self._templates: dict[str, dict[str, dict[str, Any]]] = {
            str(scope): {name: dict(values) for name, values in entries.items()}
            for scope, entries in (templates or {}).items()
        }

    @classmethod
    def from_file(cls, path: str | Path) -> "SessionTemplateCache":
        raw = load_toml_file(path)
        if not raw:
            logger.info("No session templates found at %s - running without template support", path)
        return cls(raw)

    def get_template(self, server_id: ServerId, template_name: str) -> dict[str, Any] | None:
        server_templates = self._templates.get(str(server_id), {})
        template = server_templates.get(template_name)
        if template is None:
            template = self._templates.get(COMMON_TEMPLATE_NAME, {}).get(template_name)
        return dict(template) if template is not None else None

    def list_templates(self, server_id: ServerId) -> list[str]:
        names = set(self._templates.get(COMMON_TEMPLATE_NAME, {}))
        names.update(self._templates.get(str(server_id), {}))
        return sorted(names)
