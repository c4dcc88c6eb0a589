"""
Threadlingo settings.

Settings are resolved once, at import, from three layers; later layers win:

    1. Dataclass defaults below
    2. config/server.ini, or config/server.example.ini when no server.ini exists
    3. THREADLINGO_* environment variables

The result is the module-level ``config`` (a ``ServerConfig``).

Usage:
    from threadlingo.config import config

    # Access settings
    print(config.server.host)
    print(config.model.model)
    print(config.translation.default_language)

Environment Variable Mapping:
    THREADLINGO_HOST                   -> server.host
    THREADLINGO_PORT                   -> server.port
    THREADLINGO_PRODUCTION             -> security.production
    THREADLINGO_CORS_ORIGINS           -> security.cors_origins
    THREADLINGO_MODEL_BASE_URL         -> model.base_url
    THREADLINGO_MODEL                  -> model.model
    THREADLINGO_MODEL_TIMEOUT_SECONDS  -> model.timeout_seconds
    THREADLINGO_DEFAULT_LANGUAGE       -> translation.default_language
    THREADLINGO_EVALS_ENABLED          -> evals.enabled
    THREADLINGO_STATE_BACKEND          -> state.backend
    THREADLINGO_STATE_PATH             -> state.path
    THREADLINGO_LOG_LEVEL              -> logging.level
"""

import configparser
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

# =============================================================================
# PATH CONFIGURATION
# =============================================================================

# Repository root; relative paths in the config are anchored here
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Config file paths
CONFIG_DIR = PROJECT_ROOT / "config"
CONFIG_FILE = CONFIG_DIR / "server.ini"
CONFIG_EXAMPLE = CONFIG_DIR / "server.example.ini"

# Languages accepted by the translate endpoint.  Mirrored by the
# ``Language`` enum in ``threadlingo.translation.models``.
SUPPORTED_LANGUAGES = ("Spanish", "French", "German", "Chinese")


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================


@dataclass
class ServerSettings:
    """Bind address for uvicorn."""

    host: str = "0.0.0.0"  # nosec B104 - intentional for server binding
    port: int = 8000


@dataclass
class SecuritySettings:
    """Production flag, CORS policy and API docs exposure."""

    production: bool = False
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:5173"])
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = field(default_factory=lambda: ["*"])
    cors_allow_headers: list[str] = field(default_factory=lambda: ["*"])
    docs_enabled: Literal["auto", "enabled", "disabled"] = "auto"


@dataclass
class ModelSettings:
    """Language-model provider configuration.

    The provider is any Ollama-compatible ``/api/chat`` endpoint.
    """

    base_url: str = "http://localhost:11434"
    model: str = "gemma2:2b"
    timeout_seconds: float = 30.0
    temperature: float = 0.2
    keep_alive: str = "5m"

    @property
    def api_endpoint(self) -> str:
        """Full ``/api/chat`` URL constructed from ``base_url``."""
        return f"{self.base_url.rstrip('/')}/api/chat"


@dataclass
class TranslationSettings:
    """Translate-flow configuration."""

    default_language: str = "Spanish"
    append_max_attempts: int = 5


@dataclass
class EvalSettings:
    """Evaluation harness configuration."""

    enabled: bool = True
    politeness_threshold: float = 0.7


@dataclass
class StateSettings:
    """Conversation state store configuration."""

    backend: Literal["memory", "sqlite"] = "memory"
    path: str = "data/threadlingo.db"

    @property
    def absolute_path(self) -> Path:
        """Get absolute path to the SQLite state file."""
        p = Path(self.path)
        if p.is_absolute():
            return p
        return PROJECT_ROOT / p


@dataclass
class LoggingSettings:
    """Root logger level and line format."""

    level: str = "INFO"
    format: Literal["simple", "detailed"] = "detailed"


@dataclass
class ServerConfig:
    """All settings sections.  Read it through ``threadlingo.config.config``."""

    server: ServerSettings = field(default_factory=ServerSettings)
    security: SecuritySettings = field(default_factory=SecuritySettings)
    model: ModelSettings = field(default_factory=ModelSettings)
    translation: TranslationSettings = field(default_factory=TranslationSettings)
    evals: EvalSettings = field(default_factory=EvalSettings)
    state: StateSettings = field(default_factory=StateSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @property
    def is_production(self) -> bool:
        """Shorthand for ``security.production``."""
        return self.security.production

    @property
    def docs_should_be_enabled(self) -> bool:
        """Resolve ``docs_enabled``; ``auto`` means on outside production."""
        if self.security.docs_enabled == "enabled":
            return True
        if self.security.docs_enabled == "disabled":
            return False
        return not self.is_production


# =============================================================================
# CONFIGURATION LOADING
# =============================================================================


def _parse_bool(value: str) -> bool:
    """Interpret INI/env truthy spellings."""
    return value.lower() in ("true", "yes", "1", "on", "enabled")


def _parse_list(value: str) -> list[str]:
    """Split a comma-separated value, dropping blanks."""
    if not value or value.strip() == "":
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_language(value: str) -> str | None:
    """Normalise a language label, returning None when it is not supported."""
    candidate = value.strip().capitalize()
    return candidate if candidate in SUPPORTED_LANGUAGES else None


def _load_from_ini(parser: configparser.ConfigParser, cfg: ServerConfig) -> None:
    """Copy every recognised INI option onto ``cfg``."""
    # Server section
    if parser.has_section("server"):
        if parser.has_option("server", "host"):
            cfg.server.host = parser.get("server", "host")
        if parser.has_option("server", "port"):
            cfg.server.port = parser.getint("server", "port")

    # Security section
    if parser.has_section("security"):
        if parser.has_option("security", "production"):
            cfg.security.production = _parse_bool(parser.get("security", "production"))
        if parser.has_option("security", "cors_origins"):
            cfg.security.cors_origins = _parse_list(parser.get("security", "cors_origins"))
        if parser.has_option("security", "cors_allow_credentials"):
            cfg.security.cors_allow_credentials = _parse_bool(
                parser.get("security", "cors_allow_credentials")
            )
        if parser.has_option("security", "docs_enabled"):
            val = parser.get("security", "docs_enabled").lower()
            if val in ("auto", "enabled", "disabled"):
                cfg.security.docs_enabled = val  # type: ignore[assignment]

    # Model section
    if parser.has_section("model"):
        if parser.has_option("model", "base_url"):
            cfg.model.base_url = parser.get("model", "base_url")
        if parser.has_option("model", "model"):
            cfg.model.model = parser.get("model", "model")
        if parser.has_option("model", "timeout_seconds"):
            cfg.model.timeout_seconds = parser.getfloat("model", "timeout_seconds")
        if parser.has_option("model", "temperature"):
            cfg.model.temperature = parser.getfloat("model", "temperature")
        if parser.has_option("model", "keep_alive"):
            cfg.model.keep_alive = parser.get("model", "keep_alive")

    # Translation section
    if parser.has_section("translation"):
        if parser.has_option("translation", "default_language"):
            language = _parse_language(parser.get("translation", "default_language"))
            if language is not None:
                cfg.translation.default_language = language
        if parser.has_option("translation", "append_max_attempts"):
            cfg.translation.append_max_attempts = max(
                1, parser.getint("translation", "append_max_attempts")
            )

    # Evals section
    if parser.has_section("evals"):
        if parser.has_option("evals", "enabled"):
            cfg.evals.enabled = _parse_bool(parser.get("evals", "enabled"))
        if parser.has_option("evals", "politeness_threshold"):
            cfg.evals.politeness_threshold = parser.getfloat("evals", "politeness_threshold")

    # State section
    if parser.has_section("state"):
        if parser.has_option("state", "backend"):
            val = parser.get("state", "backend").lower()
            if val in ("memory", "sqlite"):
                cfg.state.backend = val  # type: ignore[assignment]
        if parser.has_option("state", "path"):
            cfg.state.path = parser.get("state", "path")

    # Logging section
    if parser.has_section("logging"):
        if parser.has_option("logging", "level"):
            cfg.logging.level = parser.get("logging", "level").upper()
        if parser.has_option("logging", "format"):
            val = parser.get("logging", "format").lower()
            if val in ("simple", "detailed"):
                cfg.logging.format = val  # type: ignore[assignment]


def _apply_env_overrides(cfg: ServerConfig) -> None:
    """Overlay ``THREADLINGO_*`` variables onto ``cfg``."""
    # Server settings
    if env_host := os.getenv("THREADLINGO_HOST"):
        cfg.server.host = env_host
    if env_port := os.getenv("THREADLINGO_PORT"):
        cfg.server.port = int(env_port)

    # Security settings
    if env_production := os.getenv("THREADLINGO_PRODUCTION"):
        cfg.security.production = _parse_bool(env_production)
    if env_cors := os.getenv("THREADLINGO_CORS_ORIGINS"):
        cfg.security.cors_origins = _parse_list(env_cors)

    # Model settings
    if env_base_url := os.getenv("THREADLINGO_MODEL_BASE_URL"):
        cfg.model.base_url = env_base_url
    if env_model := os.getenv("THREADLINGO_MODEL"):
        cfg.model.model = env_model
    if env_timeout := os.getenv("THREADLINGO_MODEL_TIMEOUT_SECONDS"):
        cfg.model.timeout_seconds = float(env_timeout)

    # Translation settings
    if env_language := os.getenv("THREADLINGO_DEFAULT_LANGUAGE"):
        language = _parse_language(env_language)
        if language is not None:
            cfg.translation.default_language = language

    # Eval settings
    if env_evals := os.getenv("THREADLINGO_EVALS_ENABLED"):
        cfg.evals.enabled = _parse_bool(env_evals)

    # State settings
    if env_backend := os.getenv("THREADLINGO_STATE_BACKEND"):
        if env_backend.lower() in ("memory", "sqlite"):
            cfg.state.backend = env_backend.lower()  # type: ignore[assignment]
    if env_state_path := os.getenv("THREADLINGO_STATE_PATH"):
        cfg.state.path = env_state_path

    # Logging settings
    if env_log := os.getenv("THREADLINGO_LOG_LEVEL"):
        cfg.logging.level = env_log.upper()


def load_config() -> ServerConfig:
    """Build a fresh ``ServerConfig`` from defaults, the INI file and the environment."""
    cfg = ServerConfig()

    ini_path = next((p for p in (CONFIG_FILE, CONFIG_EXAMPLE) if p.exists()), None)
    if ini_path is not None:
        parser = configparser.ConfigParser()
        parser.read(ini_path)
        _load_from_ini(parser, cfg)

    _apply_env_overrides(cfg)
    return cfg


def reload_config() -> "ServerConfig":
    """Re-read settings into the module-level ``config``.

    Applications already built by ``create_app`` keep the settings they
    were built with.
    """
    global config
    config = load_config()
    return config


# =============================================================================
# MODULE-LEVEL SINGLETON
# =============================================================================

# Resolved once on import
config = load_config()


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def get_config_status() -> dict:
    """Where the settings came from, plus the headline values (for ``threadlingo config``)."""
    return {
        "config_file_exists": CONFIG_FILE.exists(),
        "config_file_path": str(CONFIG_FILE),
        "using_example": not CONFIG_FILE.exists() and CONFIG_EXAMPLE.exists(),
        "production_mode": config.is_production,
        "model": config.model.model,
        "state_backend": config.state.backend,
        "evals_enabled": config.evals.enabled,
        "docs_enabled": config.docs_should_be_enabled,
    }


def print_config_summary() -> None:
    """Print the resolved settings as a table."""
    status = get_config_status()
    print("\n" + "=" * 60)
    print("THREADLINGO CONFIGURATION")
    print("=" * 60)
    print(f"Config file: {status['config_file_path']}")
    print(f"File exists: {status['config_file_exists']}")
    if status["using_example"]:
        print("WARNING: Using example config (copy to server.ini for production)")
    print("-" * 60)
    print(f"Server:       {config.server.host}:{config.server.port}")
    print(f"Production:   {config.is_production}")
    print(f"Model:        {config.model.model} @ {config.model.api_endpoint}")
    print(f"Default lang: {config.translation.default_language}")
    print(f"State:        {config.state.backend}", end="")
    if config.state.backend == "sqlite":
        print(f" ({config.state.absolute_path})")
    else:
        print()
    print(f"Evals:        {'on' if config.evals.enabled else 'off'}")
    print(f"Log level:    {config.logging.level}")
    print("=" * 60 + "\n")


# =============================================================================
# TEST HELPERS
# =============================================================================


class use_test_state_path:
    """
    Temporarily point ``config.state.path`` at another SQLite file.

    Anything that reads the configured path inside the block (``threadlingo
    init-db``, ``create_state_store(config.state)``) uses the given file.

    Usage:
        from threadlingo.config import config, use_test_state_path

        def test_something(tmp_path):
            with use_test_state_path(tmp_path / "state.db"):
                store = create_state_store(config.state)

    Args:
        db_path: Path to the test database file
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self.original_path: str | None = None

    def __enter__(self) -> Path:
        """Set up test state path."""
        self.original_path = config.state.path
        config.state.path = str(self.db_path)
        return self.db_path

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Restore original state path."""
        if self.original_path is not None:
            config.state.path = self.original_path
        return None
