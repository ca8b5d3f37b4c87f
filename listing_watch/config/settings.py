# listing_watch/config/settings.py

"""Central configuration for the listing_watch poller."""

import importlib
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

from listing_watch.models.target import Target

load_dotenv()

BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent

SITE_URL = "https://3ddd.ru"

_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/123.0.0.0 Safari/537.36"
)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_int_env(
    env: Mapping[str, str], name: str, fallback: int,
    positive: bool = False,
) -> int:
    """Read an integer option, falling back on absence or garbage.

    With *positive*, zero and negative values also fall back.
    """
    raw = env.get(name)
    if not raw:
        return fallback
    try:
        value = int(raw.strip())
    except ValueError:
        return fallback
    if positive and value <= 0:
        return fallback
    return value


def _parse_bool_env(
    env: Mapping[str, str], name: str, fallback: bool,
) -> bool:
    """Read a boolean option such as ``true``/``0``/``off``."""
    raw = (env.get(name) or "").strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    return fallback


def _default_headers() -> dict[str, str]:
    return {
        "Accept": (
            "text/html,application/xhtml+xml,"
            "application/xml;q=0.9,*/*;q=0.8"
        ),
        "Accept-Language": "ru-RU,ru;q=0.9,en-US;q=0.8,en;q=0.7",
        "sec-fetch-dest": "document",
        "sec-fetch-mode": "navigate",
        "sec-fetch-site": "none",
        "Upgrade-Insecure-Requests": "1",
    }


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, built once and passed to every component."""

    # --- Polling ---
    POLL_INTERVAL_MS: int = 30000      # Delay after a cycle completes

    # --- Fetching ---
    TIMEOUT_MS: int = 10000            # Per-attempt timeout
    FETCH_RETRIES: int = 3             # Total attempts per fetch
    RETRY_CLIENT_ERRORS: bool = True   # Retry 4xx like any other failure
    BACKOFF_BASE_SECONDS: float = 2.0
    BACKOFF_MAX_SECONDS: float = 15.0
    BACKOFF_JITTER_SECONDS: float = 0.5
    USER_AGENT: str = _DEFAULT_USER_AGENT
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = field(
        default_factory=_default_headers
    )

    # --- History ---
    HISTORY_SIZE: int = 1000           # Max listings kept per target
    RETENTION_DAYS: int = 30           # Declared only, never enforced

    # --- Notifications ---
    TELEGRAM_BOT_TOKEN: str | None = None
    TELEGRAM_CHAT_ID: str | None = None
    NOTIFY_TIMEOUT_MS: int = 10000

    # --- Paths / logging ---
    DATA_DIR: Path = BASE_DIR / "data"
    LOGS_DIR: Path = BASE_DIR / "logs"
    LOG_LEVEL: str = "INFO"

    @classmethod
    def from_env(
        cls, env: Mapping[str, str] | None = None,
    ) -> "Settings":
        """Build settings from the process environment (or *env*)."""
        source: Mapping[str, str] = os.environ if env is None else env
        defaults = cls()
        data_dir = source.get("DATA_PATH")
        logs_dir = source.get("LOGS_DIR")
        return cls(
            POLL_INTERVAL_MS=_parse_int_env(
                source, "POLL_INTERVAL_MS", defaults.POLL_INTERVAL_MS,
                positive=True,
            ),
            TIMEOUT_MS=_parse_int_env(
                source, "TIMEOUT_MS", defaults.TIMEOUT_MS,
                positive=True,
            ),
            FETCH_RETRIES=max(
                1,
                _parse_int_env(
                    source, "FETCH_RETRIES", defaults.FETCH_RETRIES
                ),
            ),
            RETRY_CLIENT_ERRORS=_parse_bool_env(
                source,
                "RETRY_CLIENT_ERRORS",
                defaults.RETRY_CLIENT_ERRORS,
            ),
            USER_AGENT=source.get("USER_AGENT") or defaults.USER_AGENT,
            HISTORY_SIZE=_parse_int_env(
                source, "HISTORY_SIZE", defaults.HISTORY_SIZE
            ),
            RETENTION_DAYS=_parse_int_env(
                source, "RETENTION_DAYS", defaults.RETENTION_DAYS
            ),
            TELEGRAM_BOT_TOKEN=source.get("TELEGRAM_BOT_TOKEN") or None,
            TELEGRAM_CHAT_ID=source.get("TELEGRAM_CHAT_ID") or None,
            NOTIFY_TIMEOUT_MS=_parse_int_env(
                source, "NOTIFY_TIMEOUT_MS", defaults.NOTIFY_TIMEOUT_MS,
                positive=True,
            ),
            DATA_DIR=Path(data_dir) if data_dir else defaults.DATA_DIR,
            LOGS_DIR=Path(logs_dir) if logs_dir else defaults.LOGS_DIR,
            LOG_LEVEL=(
                source.get("LOG_LEVEL") or defaults.LOG_LEVEL
            ).upper(),
        )


# --- Targets (registry of monitored pages) ---
AVAILABLE_TARGETS: list[dict[str, str]] = [
    {
        "id": "vacancies",
        "name": "Вакансии",
        "url": f"{SITE_URL}/work/vacancies",
        "parser": "listing_watch.scrapers.vacancies_parser.VacanciesParser",
        "output": "vacancies.json",
        "new_label": "Новая вакансия!",
        "item_label": "Вакансия",
        "link_label": "вакансии",
        "empty_label": "вакансий",
        "emoji": "💼",
    },
    {
        "id": "tasks",
        "name": "Заказы",
        "url": f"{SITE_URL}/work/tasks",
        "parser": "listing_watch.scrapers.tasks_parser.TasksParser",
        "output": "tasks.json",
        "new_label": "Новый заказ!",
        "item_label": "Заказ",
        "link_label": "заказу",
        "empty_label": "заказов",
        "emoji": "📋",
    },
]


def _load_parser_class(dotted_path: str) -> type[Any]:
    """Dynamically import a parser class from its dotted module path."""
    module_path, class_name = dotted_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls: type[Any] = getattr(module, class_name)
    return cls


def build_targets(
    settings: Settings,
    target_ids: list[str] | None = None,
) -> tuple[Target, ...]:
    """Instantiate the target registry, optionally restricted to *target_ids*.

    Raises ``KeyError`` naming the first unknown id.
    """
    available = {t["id"]: t for t in AVAILABLE_TARGETS}
    if target_ids is None:
        selected = AVAILABLE_TARGETS
    else:
        for target_id in target_ids:
            if target_id not in available:
                raise KeyError(target_id)
        selected = [available[t] for t in target_ids]

    targets: list[Target] = []
    for entry in selected:
        parser_cls = _load_parser_class(entry["parser"])
        targets.append(
            Target(
                id=entry["id"],
                name=entry["name"],
                url=entry["url"],
                parser=parser_cls(base_url=SITE_URL),
                output_path=settings.DATA_DIR / entry["output"],
                new_label=entry["new_label"],
                item_label=entry["item_label"],
                link_label=entry["link_label"],
                empty_label=entry["empty_label"],
                emoji=entry["emoji"],
            )
        )
    return tuple(targets)
