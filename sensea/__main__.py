"""
Entry point for ``python -m sensea``.
"""

from .cli.app import app

if __name__ == "__main__":
    app()
