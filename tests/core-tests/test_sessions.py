"""
Tests for the session facade.

A recording runner stands in for the process runner so invocation flags,
execution homes and timeouts can be asserted without spawning anything.
"""
from typing import Any

import pytest

from codexgate.config import GatewaySettings
from codexgate.core.config_synth import ConfigSynthesizer
from codexgate.core.exceptions import UnknownProfileError
from codexgate.core.process_runner import ProcessOutcome
from codexgate.core.profiles import ProfileRegistry
from codexgate.core.schemas import ExecutionRequest, Profile
from codexgate.core.sessions import (
    BYPASS_FLAG,
    SessionFacade,
    build_resume_args,
    build_start_args,
    profile_flags,
)


class RecordingRunner:
    """Records each call and returns a canned outcome."""

    def __init__(self, synthesizer: ConfigSynthesizer) -> None:
        self.calls: list[dict[str, Any]] = []
        self._synthesizer = synthesizer

    async def __call__(self, executable, args, cwd, env, timeout) -> ProcessOutcome:
        self.calls.append({
            "executable": executable,
            "args": list(args),
            "cwd": cwd,
            "env": dict(env),
            "timeout": timeout,
            "config_present": self._synthesizer.main_path.is_file(),
        })
        return ProcessOutcome(exit_code=0, stdout="ok\n", stderr="")


@pytest.fixture
def synthesizer(settings: GatewaySettings) -> ConfigSynthesizer:
    return ConfigSynthesizer.from_settings(settings)


@pytest.fixture
def runner(synthesizer: ConfigSynthesizer) -> RecordingRunner:
    return RecordingRunner(synthesizer)


@pytest.fixture
def facade(settings: GatewaySettings, synthesizer: ConfigSynthesizer, runner: RecordingRunner) -> SessionFacade:
    return SessionFacade(
        settings,
        ProfileRegistry(settings),
        synthesizer,
        runner=runner,
        environ={"PATH": "/usr/bin", "CODEX_HOME": "/ambient"},
    )


def single_call(runner: RecordingRunner) -> dict[str, Any]:
    assert len(runner.calls) == 1
    return runner.calls[0]


class TestArgumentBuilders:
    """Test codex argument construction."""

    @pytest.mark.unit
    def test_default_profile_has_no_profile_flag(self) -> None:
        profile = Profile(id="default", name="Default", model="m")
        assert profile_flags(profile) == [BYPASS_FLAG]

    @pytest.mark.unit
    def test_named_profile(self) -> None:
        profile = Profile(id="o3", name="o3", model="o3")
        assert profile_flags(profile) == [BYPASS_FLAG, "--profile", "o3"]

    @pytest.mark.unit
    def test_isolated_profile_is_restricted(self) -> None:
        profile = Profile(id="security", name="S", model="m", isolated=True)
        flags = profile_flags(profile)

        assert BYPASS_FLAG not in flags
        assert flags == [
            "--sandbox", "workspace-write",
            "-c", 'approval_policy="untrusted"',
            "--profile", "security",
        ]

    @pytest.mark.unit
    def test_start_args(self) -> None:
        args = build_start_args("do it", Profile(id="o3", name="o3", model="o3"), model="gpt-x")
        assert args == [
            "exec", "--skip-git-repo-check", BYPASS_FLAG, "--profile", "o3", "-m", "gpt-x", "do it",
        ]

    @pytest.mark.unit
    def test_resume_args(self) -> None:
        args = build_resume_args("continue", None)
        assert args == ["exec", "--skip-git-repo-check", BYPASS_FLAG, "resume", "--last", "continue"]


class TestSessionFacade:
    """Test start and resume through the facade."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_profile_spawns_nothing(self, facade: SessionFacade, runner: RecordingRunner) -> None:
        with pytest.raises(UnknownProfileError) as exc_info:
            await facade.start("hello", profile="nonexistent")

        assert "Unknown profile: nonexistent" in str(exc_info.value)
        assert "codex-mini" in str(exc_info.value)
        assert runner.calls == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_start_with_default_profile(
        self, facade: SessionFacade, runner: RecordingRunner, settings: GatewaySettings
    ) -> None:
        outcome = await facade.start("hello")
        call = single_call(runner)

        assert outcome.success is True
        assert call["executable"] == settings.codex_path
        assert call["args"] == ["exec", "--skip-git-repo-check", BYPASS_FLAG, "hello"]
        assert call["cwd"] == settings.workdir
        assert call["timeout"] == settings.default_timeout_seconds
        assert call["env"]["CODEX_HOME"] == str(settings.codex_home)
        assert call["env"]["CODEX_QUIET"] == "1"
        assert call["env"]["PATH"] == "/usr/bin"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_alias_resolves_to_canonical_profile(self, facade: SessionFacade, runner: RecordingRunner) -> None:
        await facade.start("hello", profile="fast")
        args = single_call(runner)["args"]
        assert args[args.index("--profile") + 1] == "codex-mini"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_isolated_profile_uses_isolated_home(
        self, facade: SessionFacade, runner: RecordingRunner, settings: GatewaySettings
    ) -> None:
        await facade.start("audit this", profile="security")
        call = single_call(runner)

        assert call["env"]["CODEX_HOME"] == str(settings.isolated_codex_home)
        assert BYPASS_FLAG not in call["args"]
        assert 'approval_policy="untrusted"' in call["args"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_model_override_and_timeout(self, facade: SessionFacade, runner: RecordingRunner) -> None:
        await facade.start("hello", profile="o3", model="gpt-x", timeout_seconds=12)
        call = single_call(runner)

        assert call["args"][-3:] == ["-m", "gpt-x", "hello"]
        assert call["timeout"] == 12

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_configs_written_before_spawn(self, facade: SessionFacade, runner: RecordingRunner) -> None:
        await facade.start("hello")
        assert single_call(runner)["config_present"] is True

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_resume_uses_last_session_and_fixed_timeout(
        self, facade: SessionFacade, runner: RecordingRunner
    ) -> None:
        await facade.resume("and then?", profile="o3")
        call = single_call(runner)

        assert call["args"][-3:] == ["resume", "--last", "and then?"]
        assert call["timeout"] == 300

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_execute_routes_on_fresh_flag(self, facade: SessionFacade, runner: RecordingRunner) -> None:
        await facade.execute(ExecutionRequest(prompt="one"))
        await facade.execute(ExecutionRequest(prompt="two", fresh=False, model="ignored", timeout_seconds=5))

        first, second = runner.calls
        assert "resume" not in first["args"]
        assert second["args"][-3:] == ["resume", "--last", "two"]
        assert "-m" not in second["args"]
        assert second["timeout"] == 300

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_profile_on_resume(self, facade: SessionFacade, runner: RecordingRunner) -> None:
        with pytest.raises(UnknownProfileError):
            await facade.resume("x", profile="nonexistent")
        assert runner.calls == []


@pytest.mark.integration
@pytest.mark.asyncio
async def test_start_with_fake_codex(
    settings: GatewaySettings, codex_environ: dict[str, str], invocations
) -> None:
    """End to end through the real process runner and a fake codex."""
    facade = SessionFacade(
        settings,
        ProfileRegistry(settings),
        ConfigSynthesizer.from_settings(settings),
        environ=codex_environ,
    )
    settings.workdir.mkdir(parents=True, exist_ok=True)

    outcome = await facade.start("write tests", profile="mini")

    assert outcome.success is True
    assert str(settings.codex_home) in outcome.stdout
    recorded = invocations()[0]
    assert recorded[-1] == "write tests"
    assert "codex-mini" in recorded
