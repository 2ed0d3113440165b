"""
Config synthesis for the codex execution homes.

Renders codex `config.toml` files from the current profile snapshot and
per-profile policy, and writes them only when the rendered content differs
from what is on disk. codex may treat a changed mtime as a config change,
so an unchanged render must leave the file untouched.

Two files are produced:
- <codex_home>/config.toml: one block per non-isolated profile plus the
  default-profile directive.
- <isolated_home>/config.toml: exactly one block, the isolated profile,
  with approval and sandbox modes pinned to their restricted values.

Usage:
    synthesizer = ConfigSynthesizer.from_settings(settings)
    result = synthesizer.sync(registry.snapshot)
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Union

import tomlkit
from tomlkit import TOMLDocument, table
from tomlkit.items import Table

from ..config import GatewaySettings, ProfilePolicy, ProviderSettings
from .constants import CONFIG_FILE_NAME, ApprovalPolicy, SandboxMode
from .schemas import Profile, ProfileSnapshot

logger = logging.getLogger(__name__)


GENERATED_HEADER = "Generated by codexgate from the profile registry. Manual edits are overwritten."

REASONING_EFFORT = "high"
MAX_OUTPUT_TOKENS = 32000

# Environment variables matching these are never passed to codex shells
CREDENTIAL_EXCLUDE_PATTERNS: tuple[str, ...] = (
    "*KEY*",
    "*SECRET*",
    "*TOKEN*",
    "*PASSWORD*",
    "*CREDENTIAL*",
)

ISOLATED_APPROVAL_POLICY = ApprovalPolicy.UNTRUSTED
ISOLATED_SANDBOX_MODE = SandboxMode.WORKSPACE_WRITE


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one ConfigSynthesizer.sync call."""
    main_path: Path
    main_written: bool
    isolated_path: Path
    isolated_written: bool


def effective_policy(profile: Profile, override: Optional[ProfilePolicy] = None) -> ProfilePolicy:
    """
    Merge a caller override into the policy actually rendered for a profile.

    The isolated profile keeps its pinned approval and sandbox modes no
    matter what the override says; only its provider is taken.
    """
    policy = override or ProfilePolicy()
    if profile.isolated:
        return ProfilePolicy(
            approval_policy=ISOLATED_APPROVAL_POLICY.value,
            sandbox_mode=ISOLATED_SANDBOX_MODE.value,
            provider=policy.provider,
        )
    return policy


def build_profile_table(
    profile: Profile,
    policy: ProfilePolicy,
    providers: Mapping[str, ProviderSettings],
    trusted_path: Union[str, Path],
) -> Table:
    """Build the `[profiles.<id>]` table for one profile."""
    block = table()
    block.add("model", profile.model)
    if policy.provider:
        if policy.provider in providers:
            block.add("model_provider", policy.provider)
        else:
            logger.warning(
                f"Profile '{profile.id}' references unknown provider '{policy.provider}'; omitting it"
            )
    block.add("approval_policy", policy.approval_policy)
    block.add("sandbox_mode", policy.sandbox_mode)
    block.add("model_reasoning_effort", REASONING_EFFORT)
    block.add("model_max_output_tokens", MAX_OUTPUT_TOKENS)

    tools = table()
    tools.add("web_search", True)
    tools.add("view_image", True)
    block.add("tools", tools)

    shell_env = table()
    shell_env.add("inherit", "all")
    shell_env.add("ignore_default_excludes", False)
    shell_env.add("exclude", list(CREDENTIAL_EXCLUDE_PATTERNS))
    block.add("shell_environment_policy", shell_env)

    history = table()
    history.add("persistence", "save-all")
    block.add("history", history)

    trust = table()
    trust.add("trust_level", "trusted")
    projects = table(is_super_table=True)
    projects.add(str(trusted_path), trust)
    block.add("projects", projects)
    return block


def _provider_table(provider: ProviderSettings) -> Table:
    block = table()
    block.add("name", provider.name)
    block.add("base_url", provider.base_url)
    if provider.env_key:
        block.add("env_key", provider.env_key)
    block.add("wire_api", provider.wire_api)
    return block


def _render_document(
    profiles: list[tuple[Profile, ProfilePolicy]],
    default_id: Optional[str],
    providers: Mapping[str, ProviderSettings],
    trusted_path: Union[str, Path],
) -> str:
    doc: TOMLDocument = tomlkit.document()
    doc.add(tomlkit.comment(GENERATED_HEADER))
    if default_id is not None:
        doc.add("profile", default_id)

    profile_tables = table(is_super_table=True)
    used_providers: list[str] = []
    for profile, policy in profiles:
        profile_tables.add(profile.id, build_profile_table(profile, policy, providers, trusted_path))
        if policy.provider in providers and policy.provider not in used_providers:
            used_providers.append(policy.provider)
    doc.add("profiles", profile_tables)

    if used_providers:
        provider_tables = table(is_super_table=True)
        for provider_id in used_providers:
            provider_tables.add(provider_id, _provider_table(providers[provider_id]))
        doc.add("model_providers", provider_tables)

    return tomlkit.dumps(doc)


def render_config(
    snapshot: ProfileSnapshot,
    policies: Mapping[str, ProfilePolicy],
    providers: Mapping[str, ProviderSettings],
    trusted_path: Union[str, Path],
) -> str:
    """
    Render the shared config.toml.

    Args:
        snapshot: Current profile snapshot.
        policies: Per-profile policy overrides keyed by profile id.
        providers: Provider definitions keyed by provider id.
        trusted_path: Workspace path declared as trusted.

    Returns:
        TOML text; identical inputs give identical text.
    """
    entries = [
        (profile, effective_policy(profile, policies.get(profile.id)))
        for profile in snapshot.general_profiles()
    ]
    default = snapshot.default
    default_id = default.id if default is not None and not default.isolated else None
    return _render_document(entries, default_id, providers, trusted_path)


def render_isolated_config(
    snapshot: ProfileSnapshot,
    policies: Mapping[str, ProfilePolicy],
    providers: Mapping[str, ProviderSettings],
    trusted_path: Union[str, Path],
) -> Optional[str]:
    """Render the isolated config.toml, or None without an isolated profile."""
    isolated = snapshot.isolated
    if isolated is None:
        return None
    policy = effective_policy(isolated, policies.get(isolated.id))
    return _render_document([(isolated, policy)], isolated.id, providers, trusted_path)


def write_if_changed(path: Path, content: str) -> bool:
    """
    Write content unless the file already holds exactly these bytes.

    A missing file or directory counts as different.

    Returns:
        True if the file was written.
    """
    data = content.encode("utf-8")
    try:
        if path.read_bytes() == data:
            return False
    except OSError:
        pass

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    logger.info(f"Wrote codex config {path}")
    return True


class ConfigSynthesizer:
    """Keeps both codex config files in step with the profile registry."""

    def __init__(
        self,
        codex_home: Path,
        isolated_home: Path,
        trusted_path: Path,
        policies: Optional[Mapping[str, ProfilePolicy]] = None,
        providers: Optional[Mapping[str, ProviderSettings]] = None,
    ) -> None:
        """
        Args:
            codex_home: Execution home shared by non-isolated profiles.
            isolated_home: Execution home of the isolated profile.
            trusted_path: Workspace path declared trusted in every block.
            policies: Per-profile policy overrides.
            providers: Provider definitions.
        """
        self._main_path = codex_home / CONFIG_FILE_NAME
        self._isolated_path = isolated_home / CONFIG_FILE_NAME
        self._trusted_path = trusted_path
        self._policies = dict(policies or {})
        self._providers = dict(providers or {})

    @classmethod
    def from_settings(cls, settings: GatewaySettings) -> "ConfigSynthesizer":
        return cls(
            codex_home=settings.codex_home,
            isolated_home=settings.isolated_codex_home,
            trusted_path=settings.workdir,
            policies=settings.policies,
            providers=settings.providers,
        )

    @property
    def main_path(self) -> Path:
        return self._main_path

    @property
    def isolated_path(self) -> Path:
        return self._isolated_path

    def sync(self, snapshot: ProfileSnapshot) -> SyncResult:
        """Render both configs from the snapshot and write what changed."""
        main_written = write_if_changed(
            self._main_path,
            render_config(snapshot, self._policies, self._providers, self._trusted_path),
        )

        isolated_text = render_isolated_config(
            snapshot, self._policies, self._providers, self._trusted_path
        )
        isolated_written = False
        if isolated_text is None:
            logger.debug("No isolated profile; leaving isolated config untouched")
        else:
            isolated_written = write_if_changed(self._isolated_path, isolated_text)

        return SyncResult(
            main_path=self._main_path,
            main_written=main_written,
            isolated_path=self._isolated_path,
            isolated_written=isolated_written,
        )
