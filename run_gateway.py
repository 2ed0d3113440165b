#!/usr/bin/env python3
"""
Codexgate Entry Point.

Runs the gateway with proper package imports, for MCP client configs that
point at a script rather than an installed console command.

Usage:
    python run_gateway.py --workdir ~/codex-work
"""
import runpy
import sys
from pathlib import Path

if __name__ == "__main__":
    project_dir = Path(__file__).parent.resolve()

    if str(project_dir) not in sys.path:
        sys.path.insert(0, str(project_dir))

    runpy.run_module("codexgate.core", run_name="__main__", alter_sys=True)
