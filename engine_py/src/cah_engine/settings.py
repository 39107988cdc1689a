"""Server settings read from the environment"""

import os
from typing import List, Optional

from pydantic import BaseModel, Field


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    log_level: str = "info"
    reload: bool = False
    decks_path: Optional[str] = None  # None = bundled starter decks
    cors_origins: List[str] = ["*"]

    @classmethod
    def from_env(cls) -> "ServerSettings":
        origins = os.getenv("CORS_ORIGINS")
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", 8000)),
            log_level=os.getenv("LOG_LEVEL", "info").lower(),
            reload=os.getenv("RELOAD", "false").lower() == "true",
            decks_path=os.getenv("CAH_DECKS_PATH") or None,
            cors_origins=[o.strip() for o in origins.split(",")] if origins else ["*"],
        )
