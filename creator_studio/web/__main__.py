"""Entry point for the web server.

Usage:
    python -m creator_studio.web [--port PORT] [--host HOST] [--projects-dir DIR]

Flags are handed to the app through CREATOR_STUDIO_* environment
variables, which WebConfig reads in whichever process serves requests.
"""

import argparse
import os
import sys
from pathlib import Path

from dotenv import load_dotenv


def main() -> int:
    """Run the web server."""
    parser = argparse.ArgumentParser(description="Creator Studio Web Interface")
    parser.add_argument("--port", type=int, default=None, help="Port to run the server on (default 8000)")
    parser.add_argument("--host", type=str, default=None, help="Host to bind to (default 127.0.0.1)")
    parser.add_argument(
        "--projects-dir",
        type=Path,
        default=None,
        help="Directory containing projects (default ./projects)",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use offline mock providers (no API keys needed)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )

    args = parser.parse_args()
    load_dotenv()

    # Import here to avoid loading FastAPI before parsing args
    import uvicorn
    from creator_studio.logging_config import setup_logging
    from .backend.config import ENV_PREFIX, WebConfig

    setup_logging()

    flags = {
        "HOST": args.host,
        "PORT": args.port,
        "PROJECTS_DIR": args.projects_dir,
        "CONFIG": args.config,
        "MOCK": "1" if args.mock else None,
    }
    for name, value in flags.items():
        if value is not None:
            os.environ[f"{ENV_PREFIX}{name}"] = str(value)

    config = WebConfig()

    print("Starting Creator Studio Web Interface...")
    print(f"  Host: {config.host}")
    print(f"  Port: {config.port}")
    print(f"  Projects: {config.projects_dir.absolute()}")
    print(f"  Providers: {'mock' if config.mock_providers else 'configured'}")
    print(f"  URL: http://{config.host}:{config.port}")
    print()

    uvicorn.run(
        "creator_studio.web.backend.app:create_app",
        host=config.host,
        port=config.port,
        reload=args.reload,
        factory=True,
    )

    return 0


if __name__ == "__main__":
    sys.exit(main())
