"""
Tool catalog returned by `tools/list`.

Names and input schemas of the six tools the gateway exposes.
"""
from typing import Any

CODEX_RUN = "codex_run"
CODEX_RESUME = "codex_resume"
CODEX_PROFILES = "codex_profiles"
FS_READ = "fs_read"
FS_WRITE = "fs_write"
FS_LIST = "fs_list"

_PROFILE_PROPERTY: dict[str, Any] = {
    "type": "string",
    "description": "Profile name or alias (see codex_profiles). Default profile when omitted.",
}

TOOLS: dict[str, dict[str, Any]] = {
    CODEX_RUN: {
        "description": "Run a task with Codex CLI. Returns output when complete.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "prompt": {"type": "string", "description": "Task description for Codex"},
                "profile": _PROFILE_PROPERTY,
                "model": {"type": "string", "description": "Model override (optional)"},
                "timeout": {"type": "number", "description": "Timeout in seconds (default: 300)"},
                "fresh": {
                    "type": "boolean",
                    "description": "Start a new task (default: true). false continues the last task.",
                },
            },
            "required": ["prompt"],
        },
    },
    CODEX_RESUME: {
        "description": "Resume the last Codex session with additional input.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "prompt": {"type": "string", "description": "Follow-up message"},
                "profile": _PROFILE_PROPERTY,
            },
            "required": ["prompt"],
        },
    },
    CODEX_PROFILES: {
        "description": "List available Codex profiles, their source, and the default profile.",
        "inputSchema": {"type": "object", "properties": {}},
    },
    FS_READ: {
        "description": "Read a file from the work directory",
        "inputSchema": {
            "type": "object",
            "properties": {
                "path": {"type": "string", "description": "Relative path within workdir"},
            },
            "required": ["path"],
        },
    },
    FS_WRITE: {
        "description": "Write a file to the work directory",
        "inputSchema": {
            "type": "object",
            "properties": {
                "path": {"type": "string", "description": "Relative path within workdir"},
                "content": {"type": "string", "description": "File content"},
            },
            "required": ["path", "content"],
        },
    },
    FS_LIST: {
        "description": "List files in the work directory",
        "inputSchema": {
            "type": "object",
            "properties": {
                "path": {"type": "string", "description": "Relative path (default: .)"},
            },
        },
    },
}


def list_tools() -> list[dict[str, Any]]:
    """Catalog entries in the `tools/list` result shape."""
    return [
        {"name": name, "description": tool["description"], "inputSchema": tool["inputSchema"]}
        for name, tool in TOOLS.items()
    ]
