"""Load run settings from the environment and search terms from YAML."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from dotenv import load_dotenv

from dice_apply.log import ENV_FILE, get_logger

load_dotenv(ENV_FILE)

log = get_logger(__name__)


ROOT_DIR: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = ROOT_DIR / "config"
SEARCH_CONFIG_PATH: Path = CONFIG_DIR / "search.yaml"
LOGS_DIR: Path = ROOT_DIR / "logs"
REPORTS_DIR: Path = ROOT_DIR / "reports"
CV_DIR: Path = ROOT_DIR / "CV"

LOGIN_URL = "https://www.dice.com/dashboard/login"
DEFAULT_MODEL = "llama-3.3-70b-versatile"

DEFAULT_SEARCH_TERMS: list[str] = [
    # Playwright-specific roles
    "Playwright",
    # General QA / testing
    "QA",
    "Quality",
    # Automation-focused
    "Automation",
    # SDET titles
    "SDET",
    "Software Developer Engineer in Test",
    # Performance testing
    "Performance",
    "Load",
    "Stress",
    "JMeter",
]


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def _env_int(key: str, default: int, *, minimum: int = 0) -> int:
    raw = get_env(key)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        log.warning("%s=%r is not an integer — using %d", key, raw, default)
        return default
    if value < minimum:
        log.warning("%s=%d is below %d — using %d", key, value, minimum, default)
        return default
    return value


def _env_bool(key: str, default: bool) -> bool:
    raw = get_env(key)
    if not raw:
        return default
    return raw.lower() in ("1", "true", "yes", "on")


def load_search_terms(path: Path | None = None) -> list[str]:
    """Search terms from ``config/search.yaml``; built-in list when absent or empty."""
    path = path or SEARCH_CONFIG_PATH
    if not path.exists():
        return list(DEFAULT_SEARCH_TERMS)
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    terms = [str(t).strip() for t in data.get("search_terms", []) if str(t).strip()]
    if not terms:
        log.warning("No search_terms in %s — using defaults", path.name)
        return list(DEFAULT_SEARCH_TERMS)
    # Preserve order, drop duplicates
    return list(dict.fromkeys(terms))


def get_cv_path() -> Path | None:
    """CV_PATH if set, else the first PDF, DOCX or TXT in the CV folder."""
    explicit = get_env("CV_PATH")
    if explicit:
        return Path(explicit).expanduser()
    if not CV_DIR.exists():
        return None
    for ext in (".pdf", ".docx", ".txt"):
        for p in sorted(CV_DIR.iterdir()):
            if p.suffix.lower() == ext and p.is_file():
                return p
    return None


@dataclass
class Settings:
    username: str = ""
    password: str = ""
    groq_api_key: str = ""
    groq_model: str = DEFAULT_MODEL
    cv_path: Path | None = None
    search_terms: list[str] = field(default_factory=lambda: list(DEFAULT_SEARCH_TERMS))
    max_pages: int = 5
    max_concurrent_tabs: int = 2
    tab_delay: float = 3.0
    page_delay: float = 4.0
    term_batch_size: int = 5
    headless: bool = True
    skip_seen_jobs: bool = True

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password)


def load_settings() -> Settings:
    return Settings(
        username=get_env("DICE_USERNAME"),
        password=get_env("DICE_PASSWORD"),
        groq_api_key=get_env("GROQ_API_KEY"),
        groq_model=get_env("GROQ_LLM_MODEL", DEFAULT_MODEL) or DEFAULT_MODEL,
        cv_path=get_cv_path(),
        search_terms=load_search_terms(),
        max_pages=_env_int("MAX_PAGES", 5, minimum=1),
        max_concurrent_tabs=_env_int("MAX_CONCURRENT_TABS", 2, minimum=1),
        tab_delay=_env_int("TAB_DELAY_MS", 3000) / 1000,
        page_delay=_env_int("PAGE_DELAY_MS", 4000) / 1000,
        term_batch_size=_env_int("TERM_BATCH_SIZE", 5, minimum=1),
        headless=_env_bool("RUN_HEADLESS", True),
        skip_seen_jobs=_env_bool("SKIP_SEEN_JOBS", True),
    )
