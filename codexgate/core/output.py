"""
Output formatting utilities for Codexgate.

Renders process outcomes, profile listings and directory listings as the
text returned in tool results. This module is the single place where
tool-facing text is built.

Usage:
    from .output import format_outcome, format_profile_listing

    text, is_error = format_outcome(outcome)
"""
from typing import Iterable

from .constants import EMPTY_LISTING, NO_OUTPUT
from .path_sandbox import DirEntry
from .process_runner import ProcessOutcome
from .schemas import ProfileSnapshot


def format_outcome(outcome: ProcessOutcome) -> tuple[str, bool]:
    """
    Render an outcome as tool result text.

    stdout comes first, then stderr under a `[stderr]` header. Failed or
    killed runs keep their partial output and end with an exit indicator.

    Args:
        outcome: Outcome from the process runner.

    Returns:
        (text, is_error) tuple.
    """
    parts: list[str] = []
    if outcome.stdout:
        parts.append(outcome.stdout.rstrip("\n"))
    if outcome.stderr:
        parts.append("[stderr]\n" + outcome.stderr.rstrip("\n"))
    text = "\n".join(parts) if parts else NO_OUTPUT

    is_error = not outcome.success
    if is_error:
        if outcome.exit_code is None or outcome.timed_out:
            text += "\n[terminated before exit]"
        else:
            text += f"\n[exit code: {outcome.exit_code}]"
    return text, is_error


def format_profile_listing(snapshot: ProfileSnapshot) -> str:
    """
    Render the profile set with its provenance and default.

    Example:
        Profiles (source: fallback):
        - default: Default (model: gpt-5-codex) [default]
        - security: Security Review (model: gpt-5-codex) [isolated]
        Default: default
    """
    lines = [f"Profiles (source: {snapshot.source.value}):"]
    for profile in snapshot.profiles.values():
        tags = []
        if profile.id == snapshot.default_id:
            tags.append("default")
        if profile.isolated:
            tags.append("isolated")
        suffix = f" [{', '.join(tags)}]" if tags else ""
        lines.append(f"- {profile.id}: {profile.name} (model: {profile.model}){suffix}")
    lines.append(f"Default: {snapshot.default_id or 'none'}")
    return "\n".join(lines)


def format_dir_listing(entries: Iterable[DirEntry]) -> str:
    """One `[D] name` / `[F] name` line per entry, or `(empty)`."""
    text = "\n".join(entry.to_line() for entry in entries)
    return text or EMPTY_LISTING
