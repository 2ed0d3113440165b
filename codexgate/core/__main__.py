"""
Allow running the core package as a module.

Usage:
    python -m codexgate.core --workdir ~/codex-work

Or via the wrapper script:
    python run_gateway.py --workdir ~/codex-work
"""
import sys

from .gateway import main

if __name__ == "__main__":
    sys.exit(main())
