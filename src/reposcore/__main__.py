"""Entry point for running Reposcore as a module.

Usage:
    python -m reposcore [command] [options]

Example:
    python -m reposcore analyze path/to/checkout
    python -m reposcore check
"""

from reposcore.cli import app

if __name__ == "__main__":
    app()
