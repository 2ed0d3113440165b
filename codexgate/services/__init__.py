"""
Services for Codexgate.

- rpc_server.py: JSON-RPC dispatcher over stdio
- tool_catalog.py: Tool names and input schemas
- gateway_app.py: Wiring of settings into a ready server
"""
from .gateway_app import create_gateway
from .rpc_server import GatewayServer

__all__ = ["GatewayServer", "create_gateway"]
