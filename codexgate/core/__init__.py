"""
Core modules for Codexgate.

This package contains all the core functionality:
- gateway.py: CLI entry point
- cli_common.py: CLI argument parsing
- config_synth.py: codex config.toml rendering and idempotent writes
- constants.py: Centralized constants (limits, protocol values, enums)
- exceptions.py: Custom exceptions
- logging_config.py: Unified logging configuration
- output.py: Tool result text formatting
- path_sandbox.py: Workdir-confined file operations
- process_runner.py: Child process launch, timeout and output capture
- profiles.py: Profile registry with external and fallback sources
- schemas.py: Profile and request data models
- sessions.py: Start/resume facade over the process runner
"""
from .config_synth import (
    ConfigSynthesizer,
    SyncResult,
    effective_policy,
    render_config,
    render_isolated_config,
    write_if_changed,
)
from .constants import (
    ApprovalPolicy,
    ProfileSource,
    SandboxMode,
    DEFAULT_PROFILE_ID,
    ISOLATED_PROFILE_ID,
)
from .exceptions import (
    GatewayError,
    UnknownProfileError,
    SandboxError,
    OutOfBoundsPathError,
    PathNotFoundError,
    SandboxIOError,
    ExternalDataUnavailableError,
    InvalidArgumentsError,
)
from .logging_config import setup_gateway_logging
from .output import format_dir_listing, format_outcome, format_profile_listing
from .path_sandbox import DirEntry, PathSandbox
from .process_runner import ProcessOutcome, build_child_env, run_process
from .profiles import (
    PROFILE_ALIASES,
    ProfileRegistry,
    build_snapshot,
    resolve_alias,
)
from .schemas import ExecutionRequest, Profile, ProfileRow, ProfileSnapshot
from .sessions import SessionFacade, build_resume_args, build_start_args

__all__ = [
    # Config synthesis
    "ConfigSynthesizer",
    "SyncResult",
    "effective_policy",
    "render_config",
    "render_isolated_config",
    "write_if_changed",
    # Constants
    "ApprovalPolicy",
    "ProfileSource",
    "SandboxMode",
    "DEFAULT_PROFILE_ID",
    "ISOLATED_PROFILE_ID",
    # Exceptions
    "GatewayError",
    "UnknownProfileError",
    "SandboxError",
    "OutOfBoundsPathError",
    "PathNotFoundError",
    "SandboxIOError",
    "ExternalDataUnavailableError",
    "InvalidArgumentsError",
    # Logging
    "setup_gateway_logging",
    # Output
    "format_dir_listing",
    "format_outcome",
    "format_profile_listing",
    # Sandbox
    "DirEntry",
    "PathSandbox",
    # Processes
    "ProcessOutcome",
    "build_child_env",
    "run_process",
    # Profiles
    "PROFILE_ALIASES",
    "ProfileRegistry",
    "build_snapshot",
    "resolve_alias",
    # Schemas
    "ExecutionRequest",
    "Profile",
    "ProfileRow",
    "ProfileSnapshot",
    # Sessions
    "SessionFacade",
    "build_resume_args",
    "build_start_args",
]
