"""
Global configuration for Codexgate.

This module defines directory paths, the settings models, and the
GatewayConfigLoader class for loading configuration from gateway.yaml,
the environment, and CLI flags.

Usage:
    from codexgate.config import GATEWAY_DIR, LOGS_DIR, CONFIG_DIR
    from codexgate.config import GatewayConfigLoader, ConfigNotFoundError

    # Load configuration (gateway.yaml is optional at the default location)
    loader = GatewayConfigLoader()
    settings = loader.get_settings()

    # Or with a custom config path (must exist)
    loader = GatewayConfigLoader(config_path=Path("./custom-gateway.yaml"))
"""
import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


class ConfigNotFoundError(Exception):
    """Raised when a required configuration file is not found."""
    pass


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


# GATEWAY_DIR is the root of the gateway's own state (logs, config).
# Allow override via CODEXGATE_ROOT so deployments can relocate it.
_gateway_root_override = os.environ.get("CODEXGATE_ROOT")
if _gateway_root_override:
    GATEWAY_DIR: Path = Path(_gateway_root_override).expanduser().resolve()
else:
    # config.py is at ROOT/codexgate/config.py, so parent.parent = ROOT/
    GATEWAY_DIR = Path(__file__).parent.parent.resolve()

# Standard directories
LOGS_DIR: Path = GATEWAY_DIR / "logs"
CONFIG_DIR: Path = GATEWAY_DIR / "config"

# Configuration files
GATEWAY_CONFIG_FILE: Path = CONFIG_DIR / "gateway.yaml"

# Environment variables read on top of gateway.yaml
ENV_CODEX_PATH = "CODEX_PATH"
ENV_PROFILES_DB = "CODEXGATE_PROFILES_DB"
ENV_CODEX_HOME = "CODEX_HOME_DIR"
ENV_ISOLATED_HOME = "CODEX_ISOLATED_HOME"


class ProviderSettings(BaseModel):
    """A model provider definition rendered into the codex config."""

    name: str = Field(description="Display name of the provider")
    base_url: str = Field(description="Base URL of the provider API")
    env_key: Optional[str] = Field(
        default=None,
        description="Environment variable holding the provider API key",
    )
    wire_api: str = Field(default="chat", description="Wire protocol: chat or responses")


class ProfilePolicy(BaseModel):
    """
    Per-profile execution policy.

    Approval and sandbox modes for the isolated profile are fixed by the
    config synthesizer; only the provider can be chosen for it.
    """

    approval_policy: str = Field(default="never", description="codex approval_policy")
    sandbox_mode: str = Field(default="workspace-write", description="codex sandbox_mode")
    provider: Optional[str] = Field(
        default=None,
        description="Key into GatewaySettings.providers, or None for the built-in provider",
    )

    @field_validator("approval_policy")
    @classmethod
    def validate_approval(cls, value: str) -> str:
        allowed = {"untrusted", "on-failure", "on-request", "never"}
        if value not in allowed:
            raise ValueError(f"approval_policy must be one of {sorted(allowed)}")
        return value

    @field_validator("sandbox_mode")
    @classmethod
    def validate_sandbox(cls, value: str) -> str:
        allowed = {"read-only", "workspace-write", "danger-full-access"}
        if value not in allowed:
            raise ValueError(f"sandbox_mode must be one of {sorted(allowed)}")
        return value


class GatewaySettings(BaseModel):
    """Complete gateway settings after YAML, environment and CLI merging."""

    workdir: Path = Field(
        default_factory=lambda: Path.home() / "codex-work",
        description="Sandbox root for file tools and working directory for codex",
    )
    codex_path: str = Field(
        default="/opt/homebrew/bin/codex",
        description="Path to the codex executable",
    )
    codex_home: Path = Field(
        default_factory=lambda: Path.home() / ".codex",
        description="CODEX_HOME shared by all non-isolated profiles",
    )
    isolated_codex_home: Path = Field(
        default_factory=lambda: Path.home() / ".codex-isolated",
        description="CODEX_HOME used only by the isolated profile",
    )
    profiles_db: Path = Field(
        default_factory=lambda: Path.home() / ".codexgate" / "profiles.db",
        description="SQLite database listing named profiles",
    )
    profiles_query: str = Field(
        default="SELECT id, name, base_model FROM profiles ORDER BY rowid",
        description="Query projecting (id, name, base_model) rows",
    )
    query_tool: str = Field(default="sqlite3", description="Query tool executable")
    query_timeout_seconds: float = Field(default=3.0, gt=0)
    default_timeout_seconds: int = Field(default=300, gt=0)
    default_model: str = Field(default="gpt-5-codex")
    policies: dict[str, ProfilePolicy] = Field(default_factory=dict)
    providers: dict[str, ProviderSettings] = Field(default_factory=dict)
    log_level: str = Field(default="INFO")

    @field_validator("workdir", "codex_home", "isolated_codex_home", "profiles_db", mode="before")
    @classmethod
    def expand_path(cls, value: Any) -> Any:
        if isinstance(value, (str, Path)):
            return Path(value).expanduser()
        return value

    @field_validator("policies", "providers", mode="before")
    @classmethod
    def convert_none_to_dict(cls, value: Any) -> Any:
        """Convert None (from empty YAML values) to empty dict."""
        if value is None:
            return {}
        return value


class GatewayConfigLoader:
    """
    Loads and merges gateway settings.

    Precedence, lowest to highest:
    - Field defaults on GatewaySettings
    - The `gateway:` section of gateway.yaml
    - Environment variables (CODEX_PATH, CODEXGATE_PROFILES_DB, ...)
    - CLI overrides

    Usage:
        loader = GatewayConfigLoader()
        loader.apply_cli_overrides(workdir="/tmp/work", log_level="DEBUG")
        settings = loader.get_settings()
    """

    ENV_FIELDS = {
        ENV_CODEX_PATH: "codex_path",
        ENV_PROFILES_DB: "profiles_db",
        ENV_CODEX_HOME: "codex_home",
        ENV_ISOLATED_HOME: "isolated_codex_home",
    }

    def __init__(
        self,
        config_path: Optional[Path] = None,
        environ: Optional[dict[str, str]] = None,
    ) -> None:
        """
        Initialize the configuration loader.

        Args:
            config_path: Path to gateway.yaml. When given, the file must exist.
                Defaults to CONFIG_DIR/gateway.yaml, which may be absent.
            environ: Environment mapping. Defaults to os.environ.
        """
        self._explicit_path = config_path is not None
        self._config_path = config_path or GATEWAY_CONFIG_FILE
        self._environ = os.environ if environ is None else environ
        self._cli_overrides: dict[str, Any] = {}
        self._settings: GatewaySettings | None = None

    def _load_yaml(self) -> dict[str, Any]:
        """Load the gateway section from the YAML file, if present."""
        if not self._config_path.exists():
            if self._explicit_path:
                raise ConfigNotFoundError(
                    f"Gateway configuration not found: {self._config_path}"
                )
            logger.debug(f"No gateway config at {self._config_path}, using defaults")
            return {}

        try:
            with self._config_path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigValidationError(
                f"Failed to parse gateway configuration {self._config_path}: {e}"
            ) from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigValidationError(
                f"Gateway configuration must be a mapping: {self._config_path}"
            )
        section = data.get("gateway", {})
        if section is None:
            return {}
        if not isinstance(section, dict):
            raise ConfigValidationError(
                f"'gateway' section must be a mapping in {self._config_path}"
            )
        return section

    def _env_overrides(self) -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        for env_name, field_name in self.ENV_FIELDS.items():
            value = self._environ.get(env_name)
            if value:
                overrides[field_name] = value
                logger.debug(f"Environment override: {field_name} from {env_name}")
        return overrides

    def apply_cli_overrides(self, **kwargs: Any) -> None:
        """
        Apply CLI argument overrides to the configuration.

        Args:
            **kwargs: Settings to override (e.g., workdir="...", log_level="DEBUG").
                None values are ignored.
        """
        for key, value in kwargs.items():
            if value is not None:
                self._cli_overrides[key] = value
                logger.debug(f"CLI override: {key}={value}")
        self._settings = None

    def load(self) -> GatewaySettings:
        """
        Build settings from all sources.

        Raises:
            ConfigNotFoundError: If an explicit config file is missing.
            ConfigValidationError: If the merged values are invalid.
        """
        merged = self._load_yaml()
        merged.update(self._env_overrides())
        merged.update(self._cli_overrides)

        try:
            self._settings = GatewaySettings(**merged)
        except ValidationError as e:
            raise ConfigValidationError(
                f"Invalid gateway configuration ({self._config_path}):\n{e}"
            ) from e

        logger.info(f"Configuration loaded (config file: {self._config_path})")
        return self._settings

    def get_settings(self) -> GatewaySettings:
        """Return merged settings, loading them on first use."""
        if self._settings is None:
            return self.load()
        return self._settings

    @property
    def config_path(self) -> Path:
        """Return the path to the gateway config file."""
        return self._config_path


def ensure_dirs(settings: GatewaySettings) -> None:
    """Ensure the sandbox root and both execution homes exist."""
    for dir_path in [settings.workdir, settings.codex_home, settings.isolated_codex_home]:
        dir_path.mkdir(parents=True, exist_ok=True)
