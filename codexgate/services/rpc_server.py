"""
JSON-RPC dispatcher for Codexgate.

Reads one JSON object per line from stdin and writes one JSON response per
line to stdout. Messages are handled strictly one at a time in arrival
order: the next line is not read until the previous handler, including any
codex run it started, has finished.

Tool failures (unknown profile, path outside the workdir, missing file,
non-zero codex exit) are normal results with `isError: true`. Only
dispatch failures (unknown method, bad params, a handler raising) become
JSON-RPC error objects.
"""
import asyncio
import json
import logging
import sys
from typing import Any, Awaitable, Callable, Optional

from ..core.constants import (
    JSONRPC_VERSION,
    MAX_RPC_LINE_BYTES,
    MCP_PROTOCOL_VERSION,
    SERVER_NAME,
    SERVER_VERSION,
    RpcErrorCode,
)
from ..core.exceptions import GatewayError, InvalidArgumentsError
from ..core.output import format_dir_listing, format_outcome, format_profile_listing
from ..core.path_sandbox import PathSandbox
from ..core.profiles import ProfileRegistry
from ..core.schemas import ExecutionRequest
from ..core.sessions import SessionFacade
from . import tool_catalog

logger = logging.getLogger(__name__)

ToolHandler = Callable[[dict[str, Any]], Awaitable[tuple[str, bool]]]
ResponseWriter = Callable[[dict[str, Any]], None]


# =============================================================================
# Argument helpers
# =============================================================================

def _require_str(arguments: dict[str, Any], key: str) -> str:
    value = arguments.get(key)
    if not isinstance(value, str):
        raise InvalidArgumentsError(f"Missing required string argument: {key}")
    return value


def _optional_str(arguments: dict[str, Any], key: str) -> Optional[str]:
    value = arguments.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidArgumentsError(f"Argument {key} must be a string")
    return value or None


def _optional_number(arguments: dict[str, Any], key: str) -> Optional[float]:
    value = arguments.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgumentsError(f"Argument {key} must be a number")
    return float(value)


def _optional_bool(arguments: dict[str, Any], key: str, default: bool) -> bool:
    value = arguments.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise InvalidArgumentsError(f"Argument {key} must be a boolean")
    return value


def text_result(text: str, is_error: bool = False) -> dict[str, Any]:
    """Build a `tools/call` result payload."""
    result: dict[str, Any] = {"content": [{"type": "text", "text": text}]}
    if is_error:
        result["isError"] = True
    return result


def _error_response(msg_id: Any, code: int, message: str) -> dict[str, Any]:
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": msg_id,
        "error": {"code": code, "message": message},
    }


def write_stdout(message: dict[str, Any]) -> None:
    """Write one response line to stdout."""
    sys.stdout.write(json.dumps(message) + "\n")
    sys.stdout.flush()


# =============================================================================
# Server
# =============================================================================

class GatewayServer:
    """Routes JSON-RPC messages to the sandbox, registry and session facade."""

    def __init__(
        self,
        sandbox: PathSandbox,
        registry: ProfileRegistry,
        sessions: SessionFacade,
    ) -> None:
        self._sandbox = sandbox
        self._registry = registry
        self._sessions = sessions
        self._handlers: dict[str, ToolHandler] = {
            tool_catalog.CODEX_RUN: self._codex_run,
            tool_catalog.CODEX_RESUME: self._codex_resume,
            tool_catalog.CODEX_PROFILES: self._codex_profiles,
            tool_catalog.FS_READ: self._fs_read,
            tool_catalog.FS_WRITE: self._fs_write,
            tool_catalog.FS_LIST: self._fs_list,
        }

    # -------------------------------------------------------------------------
    # Tool handlers
    # -------------------------------------------------------------------------

    async def _codex_run(self, arguments: dict[str, Any]) -> tuple[str, bool]:
        request = ExecutionRequest(
            prompt=_require_str(arguments, "prompt"),
            profile=_optional_str(arguments, "profile"),
            model=_optional_str(arguments, "model"),
            timeout_seconds=_optional_number(arguments, "timeout"),
            fresh=_optional_bool(arguments, "fresh", True),
        )
        outcome = await self._sessions.execute(request)
        return format_outcome(outcome)

    async def _codex_resume(self, arguments: dict[str, Any]) -> tuple[str, bool]:
        request = ExecutionRequest(
            prompt=_require_str(arguments, "prompt"),
            profile=_optional_str(arguments, "profile"),
            fresh=False,
        )
        outcome = await self._sessions.execute(request)
        return format_outcome(outcome)

    async def _codex_profiles(self, arguments: dict[str, Any]) -> tuple[str, bool]:
        snapshot = await self._registry.refresh()
        return format_profile_listing(snapshot), False

    async def _fs_read(self, arguments: dict[str, Any]) -> tuple[str, bool]:
        return self._sandbox.read(_require_str(arguments, "path")), False

    async def _fs_write(self, arguments: dict[str, Any]) -> tuple[str, bool]:
        path = _require_str(arguments, "path")
        self._sandbox.write(path, _require_str(arguments, "content"))
        return f"Written: {path}", False

    async def _fs_list(self, arguments: dict[str, Any]) -> tuple[str, bool]:
        path = _optional_str(arguments, "path") or "."
        return format_dir_listing(self._sandbox.list(path)), False

    async def call_tool(self, name: Any, arguments: dict[str, Any]) -> dict[str, Any]:
        """
        Run one tool and wrap its text as a `tools/call` result.

        Gateway errors become `isError` results; anything else propagates
        to the dispatcher as an internal error.
        """
        handler = self._handlers.get(name) if isinstance(name, str) else None
        if handler is None:
            return text_result(f"Unknown tool: {name}", is_error=True)

        logger.info(f"Tool call: {name}")
        try:
            text, is_error = await handler(arguments)
        except GatewayError as e:
            logger.info(f"Tool {name} failed: {e}")
            return text_result(f"Error: {e}", is_error=True)
        return text_result(text, is_error=is_error)

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    async def handle_message(self, message: dict[str, Any]) -> Optional[dict[str, Any]]:
        """
        Handle one decoded JSON-RPC message.

        Returns:
            The response object, or None for notifications.
        """
        msg_id = message.get("id")
        is_request = "id" in message
        method = message.get("method")
        params = message.get("params")
        if params is None:
            params = {}

        if method == "notifications/initialized" or not is_request:
            logger.debug(f"Notification: {method}")
            return None

        if method == "initialize":
            result: dict[str, Any] = {
                "protocolVersion": MCP_PROTOCOL_VERSION,
                "capabilities": {"tools": {}},
                "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
            }
        elif method == "tools/list":
            result = {"tools": tool_catalog.list_tools()}
        elif method == "tools/call":
            if not isinstance(params, dict):
                return _error_response(msg_id, RpcErrorCode.INVALID_PARAMS, "params must be an object")
            arguments = params.get("arguments")
            if arguments is None:
                arguments = {}
            if not isinstance(arguments, dict):
                return _error_response(msg_id, RpcErrorCode.INVALID_PARAMS, "arguments must be an object")
            try:
                result = await self.call_tool(params.get("name"), arguments)
            except Exception as e:
                logger.exception(f"Tool call {params.get('name')} raised")
                return _error_response(msg_id, RpcErrorCode.INTERNAL_ERROR, str(e) or type(e).__name__)
        else:
            return _error_response(msg_id, RpcErrorCode.METHOD_NOT_FOUND, "Method not found")

        return {"jsonrpc": JSONRPC_VERSION, "id": msg_id, "result": result}

    @staticmethod
    def parse_line(line: bytes) -> Optional[dict[str, Any]]:
        """Decode one input line; None for blank or malformed lines."""
        text = line.decode("utf-8", errors="replace").strip()
        if not text:
            return None
        try:
            message = json.loads(text)
        except json.JSONDecodeError:
            logger.debug(f"Discarding malformed line: {text[:200]}")
            return None
        if not isinstance(message, dict):
            logger.debug("Discarding non-object JSON message")
            return None
        return message

    async def serve(self, reader: asyncio.StreamReader, write: ResponseWriter) -> None:
        """
        Process lines until EOF, one message at a time.

        Args:
            reader: Source of newline-delimited JSON.
            write: Called with each response object.
        """
        while True:
            try:
                line = await reader.readline()
            except ValueError:
                # Line exceeded the reader limit; the buffered part is dropped
                logger.warning("Discarding oversized RPC line")
                continue
            if not line:
                logger.info("Input closed, shutting down")
                return

            message = self.parse_line(line)
            if message is None:
                continue

            response = await self.handle_message(message)
            if response is not None:
                write(response)

    async def serve_stdio(self) -> None:
        """Serve JSON-RPC over this process's stdin and stdout."""
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader(limit=MAX_RPC_LINE_BYTES)
        protocol = asyncio.StreamReaderProtocol(reader)
        await loop.connect_read_pipe(lambda: protocol, sys.stdin)
        await self.serve(reader, write_stdout)
