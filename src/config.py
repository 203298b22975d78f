from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    List and mapping fields are JSON-encoded in the environment, e.g.
    ``TEAM_MEMBERS='["安部直樹", "宮内良明"]'``.
    """

    # API Keys
    anthropic_api_key: str = ""
    chatwork_api_token: str = ""  # Optional; notifications are skipped if absent

    # Chatwork
    chatwork_task_room_id: str = ""

    # Roster
    operator_name: str = ""
    team_members: list[str] = []
    member_ids: dict[str, str] = {}
    excluded_rooms: list[str] = []

    # Paths
    log_dir: str = "logs"
    task_output_dir: str = "tasks"

    # App config
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    llm_model: str = "claude-3-haiku-20240307"
    validation_batch_size: int = 10

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except Exception:
        # If .env is missing or unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]


settings = get_settings()
