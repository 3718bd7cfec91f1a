"""
Entry point for ``python -m salonslots``.
"""

from .cli.app import app

if __name__ == "__main__":
    app()
