"""
Persisted record shapes for sessions and users.

Records are plain dataclasses. Backends own them; callers only ever see them
through a view (see :mod:`draft_bot.database.views`). ``to_dict``/``from_dict``
define the JSON document layout used by the file-backed backend::

    {"Sessions": [SessionRecord-as-dict, ...], "Users": [UserRecord-as-dict, ...]}
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from typing import Any, Mapping

from draft_bot.errors import InvalidParameterError

ServerId = str
SessionId = str
UserId = str


@dataclass
class SessionParameters:
    """User-editable settings of a session plus its message templates."""

    name: str
    unowned_session_name: str
    capacity: int
    description: str
    fire_when_full: bool
    confirm_message: str
    waitlist_message: str
    cancel_message: str
    template_url: str = ""
    date: datetime | None = None
    generated_url: str | None = None

    @property
    def url(self) -> str:
        return self.generated_url or self.template_url

    def merged(self, overrides: Mapping[str, Any] | None) -> "SessionParameters":
        """Return a copy with ``overrides`` applied; unknown keys are rejected."""

        if not overrides:
            return replace(self)

        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise InvalidParameterError(f"Unknown session parameter(s): {', '.join(unknown)}")

        values = dict(overrides)
        if "date" in values and isinstance(values["date"], str):
            values["date"] = _parse_date(values["date"])
        if "capacity" in values:
            values["capacity"] = _parse_capacity(values["capacity"])
        merged = replace(self, **values)
        if merged.capacity < 1:
            raise InvalidParameterError("Minimum allowed capacity is 1")
        return merged

    def to_dict(self) -> dict:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["date"] = self.date.isoformat() if self.date else None
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SessionParameters":
        values = {f.name: data[f.name] for f in fields(cls) if f.name in data}
        values["date"] = _parse_date(values.get("date"))
        return cls(**values)


def _parse_capacity(raw: Any) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise InvalidParameterError(f"Capacity must be a whole number, not {raw!r}") from exc


def _parse_date(raw: str | datetime | None) -> datetime | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return raw
    try:
        return datetime.fromisoformat(raw)
    except ValueError as exc:
        raise InvalidParameterError(f"Could not understand date {raw!r}") from exc


def default_parameters(sessions_cfg) -> SessionParameters:
    """Build the baseline parameters from a :class:`draft_bot.config.Sessions` section."""

    return SessionParameters(
        name=sessions_cfg.DEFAULT_SESSION_NAME,
        unowned_session_name=sessions_cfg.DEFAULT_UNOWNED_SESSION_NAME,
        capacity=sessions_cfg.DEFAULT_SESSION_CAPACITY,
        description=sessions_cfg.DEFAULT_SESSION_DESCRIPTION,
        fire_when_full=sessions_cfg.DEFAULT_SESSION_FIRE_WHEN_FULL,
        confirm_message=sessions_cfg.DEFAULT_SESSION_CONFIRM_MESSAGE,
        waitlist_message=sessions_cfg.DEFAULT_SESSION_WAITLIST_MESSAGE,
        cancel_message=sessions_cfg.DEFAULT_SESSION_CANCELLED_MESSAGE,
        template_url=sessions_cfg.DEFAULT_TEMPLATE_URL,
    )


@dataclass
class SessionRecord:
    server_id: ServerId
    session_id: SessionId
    parameters: SessionParameters
    owner_id: UserId | None = None
    confirmed: list[UserId] = field(default_factory=list)
    waitlisted: list[UserId] = field(default_factory=list)
    closed: bool = False

    def matches(self, server_id: ServerId, session_id: SessionId) -> bool:
        return self.server_id == server_id and self.session_id == session_id

    def snapshot(self) -> "SessionRecord":
        return copy.deepcopy(self)

    def to_dict(self) -> dict:
        return {
            "server_id": self.server_id,
            "session_id": self.session_id,
            "owner_id": self.owner_id,
            "confirmed": list(self.confirmed),
            "waitlisted": list(self.waitlisted),
            "parameters": self.parameters.to_dict(),
            "closed": self.closed,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SessionRecord":
        return cls(
            server_id=str(data["server_id"]),
            session_id=str(data["session_id"]),
            owner_id=data.get("owner_id"),
            confirmed=list(data.get("confirmed", [])),
            waitlisted=list(data.get("waitlisted", [])),
            parameters=SessionParameters.from_dict(data["parameters"]),
            closed=bool(data.get("closed", False)),
        )


@dataclass
class UserRecord:
    server_id: ServerId
    user_id: UserId
    joined_session_ids: list[SessionId] = field(default_factory=list)
    waitlisted_session_ids: list[SessionId] = field(default_factory=list)
    created_session_id: SessionId | None = None

    def matches(self, server_id: ServerId, user_id: UserId) -> bool:
        return self.server_id == server_id and self.user_id == user_id

    def snapshot(self) -> "UserRecord":
        return copy.deepcopy(self)

    def to_dict(self) -> dict:
        return {
            "server_id": self.server_id,
            "user_id": self.user_id,
            "joined_session_ids": list(self.joined_session_ids),
            "waitlisted_session_ids": list(self.waitlisted_session_ids),
            "created_session_id": self.created_session_id,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserRecord":
        return cls(
            server_id=str(data["server_id"]),
            user_id=str(data["user_id"]),
            joined_session_ids=list(data.get("joined_session_ids", [])),
            waitlisted_session_ids=list(data.get("waitlisted_session_ids", [])),
            created_session_id=data.get("created_session_id"),
        )


__all__ = [
    "ServerId",
    "SessionId",
    "UserId",
    "SessionParameters",
    "SessionRecord",
    "UserRecord",
    "default_parameters",
]
