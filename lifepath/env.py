import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def load_env() -> None:
    """Load .env from the working directory if present. Existing variables win."""
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=False)


@dataclass(frozen=True)
class RuntimeSettings:
    db_path: Path = Path("data/profiles.db")
    task_service_url: Optional[str] = None
    collaborator_timeout: float = 10.0
    max_attempts: int = 3
    top_n: int = 3


def runtime_settings_from_env() -> RuntimeSettings:
    """Read LIFEPATH_* variables; call load_env() first to honour .env."""
    return RuntimeSettings(
        db_path=Path(os.getenv("LIFEPATH_DB_PATH", "data/profiles.db")),
        task_service_url=os.getenv("LIFEPATH_TASK_SERVICE_URL") or None,
        collaborator_timeout=float(os.getenv("LIFEPATH_COLLABORATOR_TIMEOUT", "10")),
        max_attempts=int(os.getenv("LIFEPATH_MAX_ATTEMPTS", "3")),
        top_n=int(os.getenv("LIFEPATH_TOP_N", "3")),
    )
