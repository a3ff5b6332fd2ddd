"""
Runtime configuration for TutorLab.

Values come from the environment (a project `.env` is loaded first);
product constants live here as module-level names.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).parent.parent
load_dotenv(PROJECT_ROOT / ".env")

# Constants
DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_DATA_DIR = Path.home() / ".tutorlab"
DEFAULT_REPORTS_DIR = Path("reports")

INITIAL_HEARTS = 5
NUM_QUESTIONS = 7
HISTORY_LIMIT = 10
PASS_PERCENTAGE = 50
PERFECT_HEALTH_BONUS = 50
CORRECT_ANSWER_POINTS = 10
TEACHING_POINTS = 15
EXAMPLE_AFTER_FAILURES = 2

CURRICULUM_SOURCE_LIMIT = 20000  # chars of a source file sent to the model
ARTICLE_SOURCE_LIMIT = 15000
ARTICLE_JSON_SEPARATOR = "|||JSON_SEPARATOR|||"

MAX_RETRIES = 3
RETRY_BASE_DELAY = 1.0


def _env_path(name: str, default: Path) -> Path:
    value = os.environ.get(name)
    return Path(value).expanduser() if value else default


@dataclass
class Settings:
    """Settings resolved from environment variables."""
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    data_dir: Path = DEFAULT_DATA_DIR
    reports_dir: Path = DEFAULT_REPORTS_DIR
    log_level: str = "INFO"
    max_retries: int = MAX_RETRIES
    retry_base_delay: float = RETRY_BASE_DELAY
    explore_topics: list[str] = field(default_factory=lambda: [
        "Current Events", "Technology", "Science", "Pop Culture",
        "Gaming", "History", "AI", "Philosophy",
    ])

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            api_key=os.environ.get("GEMINI_API_KEY"),
            model=os.environ.get("TUTORLAB_MODEL", DEFAULT_MODEL),
            temperature=float(os.environ.get("TUTORLAB_TEMPERATURE", DEFAULT_TEMPERATURE)),
            data_dir=_env_path("TUTORLAB_DATA_DIR", DEFAULT_DATA_DIR),
            reports_dir=_env_path("TUTORLAB_REPORTS_DIR", DEFAULT_REPORTS_DIR),
            log_level=os.environ.get("TUTORLAB_LOG_LEVEL", "INFO").upper(),
        )

    @property
    def store_path(self) -> Path:
        return self.data_dir / "store.db"
