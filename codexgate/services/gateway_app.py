"""
Gateway assembly.

Wires settings into the sandbox, profile registry, config synthesizer and
session facade, and returns the dispatcher that serves them.
"""
import logging

from ..config import GatewaySettings, ensure_dirs
from ..core.config_synth import ConfigSynthesizer
from ..core.path_sandbox import PathSandbox
from ..core.profiles import ProfileRegistry
from ..core.sessions import SessionFacade
from .rpc_server import GatewayServer

logger = logging.getLogger(__name__)


def create_gateway(settings: GatewaySettings) -> GatewayServer:
    """
    Create a configured gateway server.

    Args:
        settings: Merged gateway settings.

    Returns:
        GatewayServer ready for serve_stdio().
    """
    ensure_dirs(settings)
    sandbox = PathSandbox(settings.workdir)
    registry = ProfileRegistry(settings)
    synthesizer = ConfigSynthesizer.from_settings(settings)
    sessions = SessionFacade(settings, registry, synthesizer)
    logger.debug(
        f"Gateway assembled (codex: {settings.codex_path}, "
        f"homes: {settings.codex_home}, {settings.isolated_codex_home})"
    )
    return GatewayServer(sandbox=sandbox, registry=registry, sessions=sessions)
