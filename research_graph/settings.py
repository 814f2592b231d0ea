"""Environment-driven configuration.

Values come from the process environment, optionally seeded from a `.env`
file in the working directory.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()  # load environment variables from .env file

DEFAULT_DB_PATH = Path(__file__).parent.parent / "data" / "research_graph.db"
DB_PATH = Path(os.getenv("RESEARCH_GRAPH_DB_PATH", str(DEFAULT_DB_PATH)))

# archival ceiling used when a caller doesn't pass one
MAX_NODES = int(os.getenv("RESEARCH_GRAPH_MAX_NODES", "100"))

LAYOUT_CACHE_MAX_ENTRIES = int(os.getenv("LAYOUT_CACHE_MAX_ENTRIES", "50"))
LAYOUT_CACHE_MAX_BYTES = int(os.getenv("LAYOUT_CACHE_MAX_BYTES", str(10 * 1024 * 1024)))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# comma-separated values for multiple origins, or "*" for all (development only)
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")


def configure_logging(level: str | None = None) -> None:
    """Install a basic root handler at LOG_LEVEL (or `level`)."""
    logging.basicConfig(
        level=level or LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
