import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    linera_endpoint: Optional[str] = "http://localhost:8080"
    linera_chain_id: Optional[str] = None
    linera_app_id: Optional[str] = None
    linera_app_endpoint: Optional[str] = None
    linera_ids_path: Optional[str] = None
    linera_enabled: Optional[bool] = None
    linera_timeout: float = 5.0

    relayer_api_key: Optional[str] = "dev"
    relayer_retention: int = 300
    relayer_remote_workers: int = 4

    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    def model_post_init(self, __context) -> None:
        if self.linera_chain_id and self.linera_app_id:
            return
        chain_id, app_id = read_linera_ids(self.linera_ids_path)
        if not self.linera_chain_id:
            self.linera_chain_id = chain_id
        if not self.linera_app_id:
            self.linera_app_id = app_id


def read_linera_ids(ids_path: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Read ``{"chainId": ..., "appId": ...}`` written by the deploy script.

    Relative paths are tried against the working directory and its parent.
    A missing, empty or unreadable file yields ``(None, None)``.
    """
    if not ids_path:
        return None, None

    path = Path(ids_path)
    candidates = [path] if path.is_absolute() else [Path.cwd() / path, Path.cwd().parent / path]
    resolved = next((candidate for candidate in candidates if candidate.exists()), None)
    if resolved is None:
        logger.warning(f"Linera ids file not found: {ids_path}")
        return None, None

    try:
        raw = resolved.read_text(encoding="utf-8").strip()
        if not raw:
            return None, None
        parsed = json.loads(raw)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Could not read Linera ids from {resolved}: {e}")
        return None, None

    if not isinstance(parsed, dict):
        return None, None
    chain_id = parsed.get("chainId") if isinstance(parsed.get("chainId"), str) else None
    app_id = parsed.get("appId") if isinstance(parsed.get("appId"), str) else None
    return chain_id, app_id


@lru_cache
def get_settings() -> Settings:
    return Settings()
