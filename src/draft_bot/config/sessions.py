import os

from .core import _as_bool


class Sessions:
    """Default parameters applied to every new session before templates and overrides."""

    def __init__(self, config: dict | None = None) -> None:
        cfg = (config or {}).get("draftbot", {}).get("sessions", {})

        self.DEFAULT_SESSION_NAME: str = str(
            cfg.get("name", os.getenv("DEFAULT_SESSION_NAME", "{owner}'s Session"))
        )
        self.DEFAULT_UNOWNED_SESSION_NAME: str = str(
            cfg.get("unowned_name", os.getenv("DEFAULT_UNOWNED_SESSION_NAME", "New Session"))
        )
        self.DEFAULT_SESSION_CAPACITY: int = int(
            cfg.get("capacity", os.getenv("DEFAULT_SESSION_CAPACITY", "8"))
        )
        self.DEFAULT_SESSION_DESCRIPTION: str = str(
            cfg.get("description", os.getenv("DEFAULT_SESSION_DESCRIPTION", "<NO DESCRIPTION PROVIDED>"))
        )
        self.DEFAULT_SESSION_FIRE_WHEN_FULL: bool = _as_bool(
            cfg.get("fire_when_full", os.getenv("DEFAULT_SESSION_FIRE_WHEN_FULL", "false"))
        )
        self.DEFAULT_SESSION_CONFIRM_MESSAGE: str = str(
            cfg.get("confirm_message", os.getenv("DEFAULT_SESSION_CONFIRM_MESSAGE", "{name} has started! Join here: {url}"))
        )
        self.DEFAULT_SESSION_WAITLIST_MESSAGE: str = str(
            cfg.get(
                "waitlist_message",
                os.getenv("DEFAULT_SESSION_WAITLIST_MESSAGE", "{name} has started, but you were on the waitlist"),
            )
        )
        self.DEFAULT_SESSION_CANCELLED_MESSAGE: str = str(
            cfg.get("cancel_message", os.getenv("DEFAULT_SESSION_CANCELLED_MESSAGE", "{name} has been cancelled"))
        )
        self.DEFAULT_TEMPLATE_URL: str = str(cfg.get("template_url", os.getenv("DEFAULT_TEMPLATE_URL", "")))
        self.TEMPLATES_FILE: str = str(
            cfg.get("templates_file", os.getenv("SESSION_TEMPLATES_FILE", "config/session_templates.toml"))
        )

        if self.DEFAULT_SESSION_CAPACITY < 1:
            raise ValueError("Default session capacity must be at least 1")
