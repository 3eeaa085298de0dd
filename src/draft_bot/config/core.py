import os


def _as_bool(raw: object) -> bool:
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in {"1", "true", "yes", "on"}


class Core:
    def __init__(self, config: dict | None = None) -> None:
        cfg = (config or {}).get("draftbot", {})
        discord_cfg = cfg.get("discord", {})

        token_env = str(discord_cfg.get("token_env", "DISCORD_API_TOKEN"))
        self.DISCORD_API_TOKEN: str | None = os.getenv(token_env)

        self.DRAFT_CHANNEL_NAME: str = str(
            discord_cfg.get("draft_channel_name", os.getenv("DRAFT_CHANNEL_NAME", "draft-announcements"))
        )
        self.EMOJI: str = str(discord_cfg.get("emoji", os.getenv("DRAFT_EMOJI", "🌟")))
        self.BOT_ACTIVITY: str = str(
            discord_cfg.get("bot_activity", os.getenv("BOT_ACTIVITY", "Magic; /help for help"))
        )
        self.ERROR_OUTPUT: str = str(
            cfg.get(
                "error_output",
                os.getenv("ERROR_OUTPUT", "{error} (If this doesn't make sense, please inform an admin)"),
            )
        )
        self.DEBUG: bool = _as_bool(cfg.get("debug", os.getenv("DEBUG", "false")))

    def format_error(self, error: object) -> str:
        """Render ``error`` through the configured user-facing template."""
        return self.ERROR_OUTPUT.replace("{error}", str(error))
