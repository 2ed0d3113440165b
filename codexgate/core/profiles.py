"""
Profile Registry for Codexgate.

Resolves requested profile names (or aliases) against the set of known
execution profiles. Profiles come from an external SQLite database queried
through a short-lived `sqlite3` subprocess, with a static fallback list
when the database is unavailable.

Usage:
    from .profiles import ProfileRegistry

    registry = ProfileRegistry(settings)
    snapshot = await registry.refresh()
    profile = registry.resolve("fast")
"""
import asyncio
import json
import logging
from typing import Iterable, Optional

from ..config import GatewaySettings
from .constants import (
    DEFAULT_PROFILE_ID,
    DEFAULT_PROFILE_NAME,
    ISOLATED_PROFILE_ID,
    ProfileSource,
)
from .exceptions import ExternalDataUnavailableError
from .schemas import Profile, ProfileRow, ProfileSnapshot

logger = logging.getLogger(__name__)


# Convenience names -> canonical profile ids
PROFILE_ALIASES: dict[str, str] = {
    "fast": "codex-mini",
    "mini": "codex-mini",
    "codex": "gpt-5-codex",
    "reasoning": "o3",
}

# Original row ids that populate the isolated profile
RESTRICTED_PROFILE_NAMES: frozenset[str] = frozenset({
    "security",
    "security-review",
    "sec-audit",
})

# Base models that imply an isolated profile even without a restricted row
ISOLATED_MODEL_MARKERS: frozenset[str] = frozenset({
    "gpt-5-codex-security",
    "codex-security",
})

FALLBACK_PROFILE_ROWS: tuple[ProfileRow, ...] = (
    ProfileRow("gpt-5-codex", "GPT-5 Codex", "gpt-5-codex"),
    ProfileRow("fast", "Fast", "gpt-5-codex-mini"),
    ProfileRow("o3", "o3 Reasoning", "o3"),
    ProfileRow("security", "Security Review", "gpt-5-codex"),
)


def resolve_alias(name: str) -> str:
    """Map an alias to its canonical id; canonical ids map to themselves."""
    return PROFILE_ALIASES.get(name, name)


def select_default(profiles: dict[str, Profile]) -> Optional[str]:
    """
    Pick the default profile id.

    Prefers "default", then the first non-isolated entry, then any entry.
    """
    if DEFAULT_PROFILE_ID in profiles:
        return DEFAULT_PROFILE_ID
    for profile_id, profile in profiles.items():
        if not profile.isolated:
            return profile_id
    for profile_id in profiles:
        return profile_id
    return None


def build_snapshot(
    rows: Iterable[ProfileRow],
    source: ProfileSource,
    default_model: str,
) -> ProfileSnapshot:
    """
    Build a fresh snapshot from data-source rows.

    Args:
        rows: Rows from the external source or the fallback list.
        source: Provenance of the rows.
        default_model: Model for the synthetic "default" row.

    Returns:
        New ProfileSnapshot; nothing is shared with earlier snapshots.
    """
    rows = list(rows)
    if not any(row.id == DEFAULT_PROFILE_ID for row in rows):
        rows.insert(0, ProfileRow(DEFAULT_PROFILE_ID, DEFAULT_PROFILE_NAME, default_model))

    general: dict[str, Profile] = {}
    isolated: Optional[Profile] = None

    for row in rows:
        if row.id in RESTRICTED_PROFILE_NAMES:
            isolated = Profile(
                id=ISOLATED_PROFILE_ID,
                name=row.name,
                model=row.base_model,
                isolated=True,
            )
            continue
        canonical = resolve_alias(row.id)
        general[canonical] = Profile(id=canonical, name=row.name, model=row.base_model)

    if isolated is None:
        for row in rows:
            if row.base_model in ISOLATED_MODEL_MARKERS:
                isolated = Profile(
                    id=ISOLATED_PROFILE_ID,
                    name="Security (isolated)",
                    model=row.base_model,
                    isolated=True,
                )
                break

    if isolated is not None:
        if ISOLATED_PROFILE_ID in general:
            logger.warning(
                f"Profile '{ISOLATED_PROFILE_ID}' is reserved for the isolated profile; "
                "dropping the general entry"
            )
        general[ISOLATED_PROFILE_ID] = isolated

    return ProfileSnapshot(
        profiles=general,
        default_id=select_default(general),
        source=source,
    )


def parse_query_output(output: str) -> list[ProfileRow]:
    """
    Parse `sqlite3 -json` output into rows.

    Expects objects with id, name and base_model keys; the first three
    columns are used positionally when the keys differ.

    Raises:
        ExternalDataUnavailableError: If the output is not a JSON array.
    """
    text = output.strip()
    if not text:
        return []
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ExternalDataUnavailableError(f"Unparseable query output: {e}") from e
    if not isinstance(data, list):
        raise ExternalDataUnavailableError("Query output is not a JSON array")

    rows: list[ProfileRow] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        if {"id", "name", "base_model"} <= item.keys():
            values = [item["id"], item["name"], item["base_model"]]
        else:
            values = list(item.values())[:3]
        if len(values) < 3 or any(v is None for v in values):
            continue
        profile_id, name, base_model = (str(v).strip() for v in values)
        if profile_id:
            rows.append(ProfileRow(profile_id, name or profile_id, base_model))
    return rows


class ProfileRegistry:
    """
    Holds the current profile snapshot and refreshes it on demand.

    The snapshot is replaced wholesale on each refresh; readers always see
    one consistent mapping.
    """

    def __init__(self, settings: GatewaySettings) -> None:
        self._settings = settings
        self._degrade_logged = False
        self._snapshot = build_snapshot(
            FALLBACK_PROFILE_ROWS, ProfileSource.FALLBACK, settings.default_model
        )

    @property
    def snapshot(self) -> ProfileSnapshot:
        return self._snapshot

    async def fetch_external_rows(self) -> list[ProfileRow]:
        """
        Query the profile database through the query tool.

        Raises:
            ExternalDataUnavailableError: Database or tool missing, timeout,
                non-zero exit, or unparseable output.
        """
        settings = self._settings
        db_path = settings.profiles_db
        if not db_path.is_file():
            raise ExternalDataUnavailableError(f"Profile database not found: {db_path}")

        cmd = [settings.query_tool, "-json", "-readonly", str(db_path), settings.profiles_query]
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ExternalDataUnavailableError(
                f"Cannot run {settings.query_tool}: {e}"
            ) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=settings.query_timeout_seconds
            )
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            raise ExternalDataUnavailableError(
                f"Profile query timed out after {settings.query_timeout_seconds}s"
            ) from e

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise ExternalDataUnavailableError(
                f"Profile query failed (exit {process.returncode}): {message}"
            )

        return parse_query_output(stdout.decode("utf-8", errors="replace"))

    async def refresh(self) -> ProfileSnapshot:
        """
        Rebuild the snapshot from the database, or from the fallback list.

        Data-source failures are never raised; the resulting snapshot's
        `source` tells which path was taken.
        """
        # Warn when degrading, not on every call while already degraded
        log_degrade = logger.debug if self._degrade_logged else logger.warning
        try:
            rows = await self.fetch_external_rows()
            if not rows:
                log_degrade("Profile database returned no rows, using fallback profiles")
        except ExternalDataUnavailableError as e:
            log_degrade(f"Profile database unavailable, using fallback profiles: {e}")
            rows = []

        if rows:
            source = ProfileSource.EXTERNAL
            self._degrade_logged = False
        else:
            source = ProfileSource.FALLBACK
            self._degrade_logged = True
            rows = list(FALLBACK_PROFILE_ROWS)

        self._snapshot = build_snapshot(rows, source, self._settings.default_model)
        logger.debug(
            f"Profiles refreshed from {source}: {self._snapshot.ids()} "
            f"(default: {self._snapshot.default_id})"
        )
        return self._snapshot

    def resolve(
        self,
        requested: Optional[str],
        default: Optional[str] = None,
    ) -> Optional[Profile]:
        """
        Look up a profile by name or alias.

        Args:
            requested: Requested profile name; empty or None means default.
            default: Default name to use when nothing is requested. Falls
                back to the snapshot's default.

        Returns:
            The profile, or None when no such profile exists.
        """
        name = requested or default or self._snapshot.default_id
        if not name:
            return None
        return self._snapshot.profiles.get(resolve_alias(name))
