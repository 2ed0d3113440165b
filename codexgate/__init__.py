"""Codexgate: the codex CLI exposed as JSON-RPC tools over stdio."""

__version__ = "1.0.0"
