"""Allow running CLI as: python -m creator_studio.cli"""

import sys
from pathlib import Path

# Load .env file from workspace root before anything else
from dotenv import load_dotenv

# creator_studio/cli/__main__.py -> project root
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(env_path)

from creator_studio.logging_config import setup_logging

from .main import main

setup_logging()
sys.exit(main())
