"""
Session facade over the process orchestrator.

Two behaviors: start a fresh codex task, or continue the most recent one.
Both refresh the profile registry and rewrite the codex configs before
spawning, so codex always reads the profile definitions the request was
resolved against.

Usage:
    facade = SessionFacade(settings, registry, synthesizer)
    outcome = await facade.start("Write a README", profile="fast")
"""
import logging
import os
from pathlib import Path
from typing import Awaitable, Callable, Mapping, Optional, Sequence, Union

from ..config import GatewaySettings
from .config_synth import ISOLATED_APPROVAL_POLICY, ISOLATED_SANDBOX_MODE, ConfigSynthesizer
from .constants import DEFAULT_PROFILE_ID, RESUME_TIMEOUT_SECONDS
from .exceptions import UnknownProfileError
from .process_runner import ProcessOutcome, build_child_env, run_process
from .profiles import ProfileRegistry
from .schemas import ExecutionRequest, Profile

logger = logging.getLogger(__name__)

ProcessRunner = Callable[
    [str, Sequence[str], Union[str, Path], Mapping[str, str], Optional[float]],
    Awaitable[ProcessOutcome],
]

BYPASS_FLAG = "--dangerously-bypass-approvals-and-sandbox"


def profile_flags(profile: Optional[Profile]) -> list[str]:
    """
    Invocation flags selecting a profile.

    The isolated profile runs with the restricted approval and sandbox
    settings. Every other profile bypasses approvals, since nobody can
    answer an interactive prompt through this gateway.
    """
    if profile is None:
        return [BYPASS_FLAG]
    if profile.isolated:
        return [
            "--sandbox", ISOLATED_SANDBOX_MODE.value,
            "-c", f'approval_policy="{ISOLATED_APPROVAL_POLICY.value}"',
            "--profile", profile.id,
        ]
    flags = [BYPASS_FLAG]
    if profile.id != DEFAULT_PROFILE_ID:
        flags.extend(["--profile", profile.id])
    return flags


def build_start_args(prompt: str, profile: Optional[Profile], model: Optional[str] = None) -> list[str]:
    """Arguments for `codex exec` starting a new task."""
    args = ["exec", "--skip-git-repo-check", *profile_flags(profile)]
    if model:
        args.extend(["-m", model])
    args.append(prompt)
    return args


def build_resume_args(prompt: str, profile: Optional[Profile]) -> list[str]:
    """Arguments for `codex exec resume --last`."""
    return ["exec", "--skip-git-repo-check", *profile_flags(profile), "resume", "--last", prompt]


class SessionFacade:
    """Starts and resumes codex tasks with profile-specific invocation."""

    def __init__(
        self,
        settings: GatewaySettings,
        registry: ProfileRegistry,
        synthesizer: ConfigSynthesizer,
        runner: ProcessRunner = run_process,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Args:
            settings: Gateway settings (executable, homes, workdir, timeouts).
            registry: Profile registry, refreshed on every call.
            synthesizer: Writes codex configs after each refresh.
            runner: Process runner; replaced in tests.
            environ: Base environment for children. Defaults to os.environ.
        """
        self._settings = settings
        self._registry = registry
        self._synthesizer = synthesizer
        self._runner = runner
        self._environ = environ

    async def _prepare(self, requested: Optional[str]) -> Optional[Profile]:
        """
        Refresh profiles, sync configs, and resolve the requested profile.

        Raises:
            UnknownProfileError: An explicitly requested profile does not exist.
        """
        snapshot = await self._registry.refresh()
        self._synthesizer.sync(snapshot)

        profile = self._registry.resolve(requested)
        if profile is None and requested:
            raise UnknownProfileError(requested, snapshot.ids())
        if profile is None:
            logger.warning("No default profile available; running codex without a profile")
        return profile

    def _execution_home(self, profile: Optional[Profile]) -> Path:
        if profile is not None and profile.isolated:
            return self._settings.isolated_codex_home
        return self._settings.codex_home

    async def _run(self, args: list[str], profile: Optional[Profile], timeout: float) -> ProcessOutcome:
        home = self._execution_home(profile)
        home.mkdir(parents=True, exist_ok=True)
        env = build_child_env(os.environ if self._environ is None else self._environ, home)
        profile_id = profile.id if profile is not None else None
        logger.info(f"Running codex (profile: {profile_id}, home: {home})")
        return await self._runner(self._settings.codex_path, args, self._settings.workdir, env, timeout)

    async def start(
        self,
        prompt: str,
        profile: Optional[str] = None,
        model: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ) -> ProcessOutcome:
        """
        Start a fresh codex task.

        Args:
            prompt: Task description.
            profile: Profile name or alias; default profile when empty.
            model: Model override, passed explicitly to codex.
            timeout_seconds: Wall-clock limit; settings default when None.

        Raises:
            UnknownProfileError: Before anything is spawned.
        """
        resolved = await self._prepare(profile)
        timeout = timeout_seconds
        if not timeout or timeout <= 0:
            timeout = self._settings.default_timeout_seconds
        return await self._run(build_start_args(prompt, resolved, model), resolved, timeout)

    async def resume(self, prompt: str, profile: Optional[str] = None) -> ProcessOutcome:
        """
        Continue the most recent codex task with a follow-up prompt.

        Raises:
            UnknownProfileError: Before anything is spawned.
        """
        resolved = await self._prepare(profile)
        return await self._run(build_resume_args(prompt, resolved), resolved, RESUME_TIMEOUT_SECONDS)

    async def execute(self, request: ExecutionRequest) -> ProcessOutcome:
        """Dispatch an ExecutionRequest to start or resume."""
        if request.fresh:
            return await self.start(
                request.prompt,
                profile=request.profile,
                model=request.model,
                timeout_seconds=request.timeout_seconds,
            )
        if request.model or request.timeout_seconds:
            logger.debug("Model and timeout overrides are ignored when resuming")
        return await self.resume(request.prompt, profile=request.profile)
