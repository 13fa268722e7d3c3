"""
Configuration from environment variables.

PARTYBOARD_ENV: "development" or "production" (production hides the API docs)
PARTYBOARD_DECK_DIR: directory with deck_config.json and the deck files
PARTYBOARD_BOARD_SIZE: default board edge length
ALLOWED_ORIGINS: comma-separated CORS origins for the API
"""

from __future__ import annotations
from pathlib import Path
import os

BUNDLED_DECK_DIR = Path(__file__).parent / "data" / "decks"

PARTYBOARD_ENV = os.getenv("PARTYBOARD_ENV", "development")
PARTYBOARD_DECK_DIR = Path(os.getenv("PARTYBOARD_DECK_DIR", str(BUNDLED_DECK_DIR)))
PARTYBOARD_BOARD_SIZE = int(os.getenv("PARTYBOARD_BOARD_SIZE", "7"))
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")
