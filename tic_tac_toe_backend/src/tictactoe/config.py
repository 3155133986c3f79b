import os
from typing import List


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


class Settings:
    """Runtime settings, read from the environment once at import time."""

    def __init__(self):
        self.BOARD_SIZE = _env_int("TTT_BOARD_SIZE", 3)
        self.MAX_GAME_NAME_LENGTH = _env_int("TTT_MAX_GAME_NAME_LENGTH", 50)
        self.MAX_PLAYER_NAME_LENGTH = _env_int("TTT_MAX_PLAYER_NAME_LENGTH", 50)
        self.MAX_EMAIL_LENGTH = _env_int("TTT_MAX_EMAIL_LENGTH", 100)
        self.HOST = os.getenv("TTT_HOST", "0.0.0.0")
        self.PORT = _env_int("TTT_PORT", 8000)
        self.LOG_LEVEL = os.getenv("TTT_LOG_LEVEL", "INFO").upper()
        self.CORS_ORIGINS: List[str] = [
            origin.strip()
            for origin in os.getenv("TTT_CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ]


settings = Settings()
