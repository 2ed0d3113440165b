"""
Centralized constants for Codexgate.

All magic numbers, strings, and fixed protocol values are defined here.

Usage:
    from .constants import (
        LOG_FORMAT_FILE,
        MAX_STDOUT_CHARS,
        TRUNCATION_MARKER,
    )
"""
from enum import StrEnum


# =============================================================================
# Logging Constants
# =============================================================================

# Log format for file-based logging
LOG_FORMAT_FILE: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Log format for colored console (using colorlog)
LOG_FORMAT_COLORED: str = (
    "%(log_color)s%(levelname)-8s%(reset)s %(cyan)s%(name)s%(reset)s: %(message)s"
)

# Rotating file handler settings
LOG_MAX_BYTES: int = 10 * 1024 * 1024  # 10 MB
LOG_BACKUP_COUNT: int = 5

# Log file names
LOG_FILE_GATEWAY: str = "codexgate.log"

COLORLOG_COLORS: dict[str, str] = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


# =============================================================================
# RPC Protocol
# =============================================================================

JSONRPC_VERSION: str = "2.0"
MCP_PROTOCOL_VERSION: str = "2024-11-05"
SERVER_NAME: str = "codexgate"
SERVER_VERSION: str = "1.0.0"

# Lines longer than this are discarded by the dispatcher
MAX_RPC_LINE_BYTES: int = 16 * 1024 * 1024


class RpcErrorCode:
    """JSON-RPC error codes used by the dispatcher."""
    METHOD_NOT_FOUND: int = -32601
    INVALID_PARAMS: int = -32602
    INTERNAL_ERROR: int = -32603


# =============================================================================
# Process Execution
# =============================================================================

DEFAULT_TIMEOUT_SECONDS: int = 300
RESUME_TIMEOUT_SECONDS: int = 300

MAX_STDOUT_CHARS: int = 50_000
MAX_STDERR_CHARS: int = 5_000
TRUNCATION_MARKER: str = "...[truncated]...\n"

# Worst case UTF-8 width, used to bound raw byte accumulation
BYTES_PER_CHAR: int = 4

# Seconds to wait for pipes to drain after a forced kill
KILL_DRAIN_SECONDS: float = 2.0

CODEX_HOME_ENV: str = "CODEX_HOME"
CODEX_QUIET_ENV: str = "CODEX_QUIET"


# =============================================================================
# Filesystem Sandbox
# =============================================================================

MAX_READ_CHARS: int = 256_000
EMPTY_LISTING: str = "(empty)"
NO_OUTPUT: str = "(no output)"


# =============================================================================
# Profiles
# =============================================================================

class ProfileSource(StrEnum):
    """Where the current profile set came from."""
    EXTERNAL = "external"
    FALLBACK = "fallback"


class ApprovalPolicy(StrEnum):
    """codex approval_policy values, most restrictive first."""
    UNTRUSTED = "untrusted"
    ON_FAILURE = "on-failure"
    ON_REQUEST = "on-request"
    NEVER = "never"


class SandboxMode(StrEnum):
    """codex sandbox_mode values."""
    READ_ONLY = "read-only"
    WORKSPACE_WRITE = "workspace-write"
    DANGER_FULL_ACCESS = "danger-full-access"


DEFAULT_PROFILE_ID: str = "default"
DEFAULT_PROFILE_NAME: str = "Default"
ISOLATED_PROFILE_ID: str = "security"

CONFIG_FILE_NAME: str = "config.toml"
