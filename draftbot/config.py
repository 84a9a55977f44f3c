import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from draftbot.errors import ConfigurationError

BASE_DIR = Path(__file__).resolve().parent.parent

VALID_SOURCE_MODES = ("likes", "comments", "comment_free", "followers", "pod_guest", "all")
VALID_ROW_STORES = ("sheets", "sqlite")

DEFAULT_EXCLUDED_PHRASES = ("instagram", "profile", "follow", "message", "send")


def parse_boolean(value: Optional[str], default: bool = False) -> bool:
    """Parse true/false, 1/0, yes/no (any case). Anything else returns the default."""
    if not value or not isinstance(value, str):
        return default
    normalized = value.strip().lower()
    if normalized in ("true", "1", "yes"):
        return True
    if normalized in ("false", "0", "no"):
        return False
    return default


def _parse_positive_int(name: str, raw: Optional[str], errors: list) -> int:
    if raw is None or not raw.strip():
        errors.append(f"{name} is required and must be a positive integer")
        return 0
    raw = raw.strip()
    if "." in raw:
        errors.append(f'{name} must be a positive integer (no decimals). Received: "{raw}"')
        return 0
    try:
        value = int(raw)
    except ValueError:
        errors.append(f'{name} must be a positive integer. Received: "{raw}"')
        return 0
    if value < 1:
        errors.append(f'{name} must be a positive integer. Received: "{raw}"')
        return 0
    return value


def _parse_float(name: str, raw: Optional[str], default: float, errors: list) -> float:
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        errors.append(f'{name} must be a number. Received: "{raw}"')
        return default


@dataclass
class Settings:
    """
    Run configuration. Built once at startup and passed to every component.

    Use Settings.from_env() to read the environment (and .env), then
    validate() before anything touches the browser or the row store.
    """

    # --- Account ---
    instagram_username: str = ""

    # --- Row store ---
    row_store: str = "sheets"
    google_sheet_id: str = ""
    google_sheet_name: str = ""
    google_credentials: str = ""
    google_credentials_path: str = ""
    database_url: str = f"sqlite:///{BASE_DIR / 'draftbot.db'}"

    # --- Message ---
    draft_message: str = ""
    message_separator: str = "!"

    # --- Selection policy ---
    activate_status: str = ""
    source_mode: str = ""
    max_draft: int = 0
    max_process: int = 0
    enable_fallback: bool = False
    fallback_status: Optional[str] = None

    # --- Behaviour toggles ---
    detect_conversation: bool = False
    send_message: bool = False

    # --- Safety delays (seconds, between targets) ---
    min_delay: float = 2.0
    max_delay: float = 4.0

    # --- Browser ---
    headless: bool = False
    browser_data_dir: Path = BASE_DIR / "browser-data"
    keep_browser_open: bool = True

    # --- Logging ---
    logs_dir: Path = BASE_DIR / "logs"
    enable_file_logging: bool = False

    # --- History detection heuristics ---
    history_min_text_length: int = 3
    history_excluded_phrases: tuple = DEFAULT_EXCLUDED_PHRASES

    errors: list = field(default_factory=list, repr=False, compare=False)

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Settings":
        """Read settings from the process environment, loading .env first."""
        load_dotenv(env_file or BASE_DIR / ".env")
        return cls.from_mapping(os.environ)

    @classmethod
    def from_mapping(cls, env) -> "Settings":
        errors: list = []

        enable_fallback = False
        raw_fallback = env.get("ENABLE_FALLBACK")
        if raw_fallback is not None:
            normalized = raw_fallback.strip().lower()
            if normalized in ("true", "false"):
                enable_fallback = normalized == "true"
            else:
                errors.append(
                    f'ENABLE_FALLBACK must be "true" or "false" (case-insensitive). '
                    f'Received: "{raw_fallback}"'
                )

        fallback_status = (env.get("FALLBACK_STATUS") or "").strip()
        phrases = env.get("HISTORY_EXCLUDED_PHRASES")
        if phrases:
            excluded = tuple(p.strip().lower() for p in phrases.split(",") if p.strip())
        else:
            excluded = DEFAULT_EXCLUDED_PHRASES

        min_length = 3
        raw_min_length = env.get("HISTORY_MIN_TEXT_LENGTH")
        if raw_min_length:
            try:
                min_length = int(raw_min_length)
            except ValueError:
                errors.append(
                    f'HISTORY_MIN_TEXT_LENGTH must be an integer. Received: "{raw_min_length}"'
                )

        settings = cls(
            instagram_username=(env.get("INSTAGRAM_USERNAME") or "").strip(),
            row_store=(env.get("ROW_STORE") or "sheets").strip().lower(),
            google_sheet_id=(env.get("GOOGLE_SHEET_ID") or "").strip(),
            google_sheet_name=(env.get("GOOGLE_SHEET_NAME") or "").strip(),
            google_credentials=env.get("GOOGLE_CREDENTIALS") or "",
            google_credentials_path=(env.get("GOOGLE_CREDENTIALS_PATH") or "").strip(),
            database_url=env.get("DATABASE_URL") or cls.database_url,
            draft_message=(env.get("DRAFT_MESSAGE") or "").strip(),
            message_separator=env.get("MESSAGE_SEPARATOR") or "!",
            activate_status=(env.get("ACTIVATE_STATUS") or "").strip(),
            source_mode=(env.get("SOURCE_MODE") or "").strip().lower(),
            max_draft=_parse_positive_int("MAX_DRAFT", env.get("MAX_DRAFT"), errors),
            max_process=_parse_positive_int("MAX_PROCCESS", env.get("MAX_PROCCESS"), errors),
            enable_fallback=enable_fallback,
            fallback_status=fallback_status if enable_fallback and fallback_status else None,
            detect_conversation=parse_boolean(env.get("DETECT_CONVERSATION"), False),
            send_message=parse_boolean(env.get("SEND_MESSAGE"), False),
            min_delay=_parse_float("MIN_DELAY", env.get("MIN_DELAY"), 2.0, errors),
            max_delay=_parse_float("MAX_DELAY", env.get("MAX_DELAY"), 4.0, errors),
            headless=parse_boolean(env.get("HEADLESS"), False),
            browser_data_dir=Path(env.get("BROWSER_DATA_DIR") or cls.browser_data_dir),
            keep_browser_open=parse_boolean(env.get("KEEP_BROWSER_OPEN"), True),
            logs_dir=Path(env.get("LOGS_DIR") or cls.logs_dir),
            enable_file_logging=parse_boolean(env.get("ENABLE_FILE_LOGGING"), False),
            history_min_text_length=min_length,
            history_excluded_phrases=excluded,
        )
        settings.errors = errors
        if enable_fallback and not fallback_status:
            settings.errors.append("FALLBACK_STATUS is required when ENABLE_FALLBACK=true")
        return settings

    def validate(self) -> "Settings":
        """Raise ConfigurationError listing every problem found. Returns self."""
        errors = list(self.errors)

        if not self.instagram_username:
            errors.append("INSTAGRAM_USERNAME is required and must be a non-empty string")

        if self.row_store not in VALID_ROW_STORES:
            errors.append(
                f"ROW_STORE must be one of: {', '.join(VALID_ROW_STORES)}. "
                f'Received: "{self.row_store}"'
            )
        elif self.row_store == "sheets":
            errors.extend(self._sheets_errors())

        if not self.draft_message:
            errors.append("DRAFT_MESSAGE is required and must be a non-empty string")
        if not self.message_separator:
            errors.append("MESSAGE_SEPARATOR must not be empty")
        if not self.activate_status:
            errors.append("ACTIVATE_STATUS is required and must be a non-empty string")

        if not self.source_mode:
            errors.append(
                f"SOURCE_MODE is required and must be one of: {', '.join(VALID_SOURCE_MODES)}"
            )
        elif self.source_mode not in VALID_SOURCE_MODES:
            errors.append(
                f"SOURCE_MODE must be one of: {', '.join(VALID_SOURCE_MODES)}. "
                f'Received: "{self.source_mode}"'
            )

        if self.min_delay < 0 or self.max_delay < self.min_delay:
            errors.append("MIN_DELAY must be >= 0 and MAX_DELAY must be >= MIN_DELAY")

        # de-dupe while keeping order (from_mapping may already have reported some)
        unique = list(dict.fromkeys(errors))
        if unique:
            raise ConfigurationError(unique)
        return self

    def _sheets_errors(self) -> list:
        errors = []
        if not self.google_sheet_id:
            errors.append("GOOGLE_SHEET_ID is required and must be a non-empty string")
        if not self.google_sheet_name:
            errors.append("GOOGLE_SHEET_NAME is required and must be a non-empty string")

        if not self.google_credentials and not self.google_credentials_path:
            errors.append("Either GOOGLE_CREDENTIALS or GOOGLE_CREDENTIALS_PATH must be provided")
            return errors

        if self.google_credentials:
            try:
                json.loads(self.google_credentials)
            except json.JSONDecodeError as e:
                errors.append(f"GOOGLE_CREDENTIALS is not valid JSON: {e}")

        if self.google_credentials_path:
            path = Path(self.google_credentials_path)
            if not path.exists():
                errors.append(f"GOOGLE_CREDENTIALS_PATH file not found: {path}")
            else:
                try:
                    json.loads(path.read_text(encoding="utf-8"))
                except (OSError, json.JSONDecodeError) as e:
                    errors.append(
                        f"GOOGLE_CREDENTIALS_PATH file is not readable or contains invalid JSON: {e}"
                    )
        return errors
