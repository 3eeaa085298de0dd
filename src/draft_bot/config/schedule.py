import os


class Schedule:
    def __init__(self, config: dict | None = None) -> None:
        cfg = (config or {}).get("draftbot", {}).get("schedule", {})
        self.SCHEDULE_FILE: str = str(cfg.get("schedule_file", os.getenv("SCHEDULE_FILE", "config/schedule.toml")))
