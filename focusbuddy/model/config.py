"""Monitoring configuration loaded from the environment (.env.local aware)."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

REPO_ROOT = Path(__file__).resolve().parent.parent.parent
DEFAULT_ENV_FILE = REPO_ROOT / ".env.local"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigError(ValueError):
    """Raised when an environment value cannot be used."""


@dataclass(frozen=True)
class MonitoringConfig:
    """Knobs for the two monitoring cycles and their collaborators."""

    # Quick stage: OCR + reasoning model
    quick_check_interval: float = 5.0
    quick_backoff: float = 5.0
    # Deep stage: screenshot + vision model
    deep_analysis_interval: float = 15.0
    deep_initial_delay: float = 7.0
    deep_backoff: float = 10.0

    llm_url: str = "http://localhost:11434"
    llm_model: str = "qwen3:0.6b"
    vision_model: str = "qwen3-vl:4b"
    vision_max_width: int = 1920

    enable_terminal_alerts: bool = True
    enable_system_notifications: bool = False
    enable_logging: bool = True
    log_directory: str = "logs"

    status_api_port: int = 0  # 0 disables the status API

    @property
    def log_path(self) -> Path:
        return Path(self.log_directory)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    msg = f"{name} must be a boolean, got {raw!r}"
    raise ConfigError(msg)


def _env_float(name: str, default: float, *, positive: bool = True) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        msg = f"{name} must be a number, got {raw!r}"
        raise ConfigError(msg) from exc
    if positive and value <= 0:
        msg = f"{name} must be positive, got {value}"
        raise ConfigError(msg)
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        msg = f"{name} must be an integer, got {raw!r}"
        raise ConfigError(msg) from exc


def load_config(env_file: Path | None = DEFAULT_ENV_FILE) -> MonitoringConfig:
    """Build a :class:`MonitoringConfig` from environment variables.

    Values in ``env_file`` are loaded first but never override variables
    already present in the process environment.

    Raises:
        ConfigError: a variable is present but unusable.

    """
    if env_file is not None and env_file.exists():
        load_dotenv(dotenv_path=env_file, override=False)

    defaults = MonitoringConfig()
    return MonitoringConfig(
        quick_check_interval=_env_float(
            "QUICK_CHECK_INTERVAL", defaults.quick_check_interval
        ),
        deep_analysis_interval=_env_float(
            "DEEP_ANALYSIS_INTERVAL", defaults.deep_analysis_interval
        ),
        deep_initial_delay=_env_float(
            "DEEP_INITIAL_DELAY", defaults.deep_initial_delay, positive=False
        ),
        llm_url=(os.getenv("LLM_URL") or defaults.llm_url).rstrip("/"),
        llm_model=os.getenv("LLM_MODEL") or defaults.llm_model,
        vision_model=os.getenv("VISION_MODEL") or defaults.vision_model,
        enable_terminal_alerts=_env_bool(
            "ENABLE_TERMINAL_ALERTS", defaults.enable_terminal_alerts
        ),
        enable_system_notifications=_env_bool(
            "ENABLE_SYSTEM_NOTIFICATIONS", defaults.enable_system_notifications
        ),
        enable_logging=_env_bool("ENABLE_LOGGING", defaults.enable_logging),
        log_directory=os.getenv("LOG_DIR") or defaults.log_directory,
        status_api_port=_env_int("STATUS_API_PORT", defaults.status_api_port),
    )
