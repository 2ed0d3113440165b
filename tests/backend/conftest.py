"""
Pytest configuration and fixtures for gateway server tests.

Provides fixtures for:
- A GatewayServer wired to temporary directories and a fake codex
- Driving serve() from an in-memory StreamReader
"""
import asyncio
import json
from typing import Any

import pytest

from codexgate.config import GatewaySettings
from codexgate.core.config_synth import ConfigSynthesizer
from codexgate.core.path_sandbox import PathSandbox
from codexgate.core.profiles import ProfileRegistry
from codexgate.core.sessions import SessionFacade
from codexgate.services.rpc_server import GatewayServer


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "unit: marks tests as unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (spawn real subprocesses)"
    )


@pytest.fixture
def server(settings: GatewaySettings, codex_environ: dict[str, str]) -> GatewayServer:
    """Gateway server whose codex runs go to the fake codex script."""
    registry = ProfileRegistry(settings)
    sessions = SessionFacade(
        settings,
        registry,
        ConfigSynthesizer.from_settings(settings),
        environ=codex_environ,
    )
    return GatewayServer(
        sandbox=PathSandbox(settings.workdir),
        registry=registry,
        sessions=sessions,
    )


async def serve_lines(server: GatewayServer, lines: list[bytes]) -> list[dict[str, Any]]:
    """Feed raw lines through serve() and collect the responses."""
    reader = asyncio.StreamReader()
    for line in lines:
        reader.feed_data(line)
    reader.feed_eof()

    responses: list[dict[str, Any]] = []
    await server.serve(reader, responses.append)
    return responses


def request(msg_id: Any, method: str, params: Any = None) -> bytes:
    message: dict[str, Any] = {"jsonrpc": "2.0", "id": msg_id, "method": method}
    if params is not None:
        message["params"] = params
    return (json.dumps(message) + "\n").encode()


def tool_call(msg_id: Any, name: str, **arguments: Any) -> bytes:
    return request(msg_id, "tools/call", {"name": name, "arguments": arguments})


@pytest.fixture
def rpc():
    """Helpers for building and serving raw RPC lines."""
    class _Rpc:
        serve = staticmethod(serve_lines)
        request = staticmethod(request)
        tool_call = staticmethod(tool_call)
    return _Rpc
