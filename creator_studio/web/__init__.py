"""Web interface for Creator Studio.

This package provides a FastAPI backend for driving the studio pipeline
from a browser.

Usage:
    python -m creator_studio.web [--port 8000] [--host 127.0.0.1]
"""

__version__ = "0.1.0"
