"""
Deck Loader - Reads the decklist and deck documents from disk.

Layout of a deck directory:
    deck_config.json    [{"name": "Classic", "path": "classic.json"}, ...]
    classic.json        {"settings": {...}, "data": [...]}

Transport errors (missing file, broken JSON, unknown deck name) raise
DeckLoadError. Content problems inside a readable document never raise;
they are reported as normalization warnings.
"""

from __future__ import annotations
from pathlib import Path
from typing import Any
import json
import logging

from pydantic import BaseModel, TypeAdapter, ValidationError

from .normalizer import NormalizationResult, normalize_deck_document

logger = logging.getLogger(__name__)

DECKLIST_FILE = "deck_config.json"


class DeckLoadError(RuntimeError):
    """A deck or the decklist could not be read."""


class DeckListing(BaseModel):
    """One entry of the decklist."""
    name: str
    path: str


_DECKLIST_ADAPTER = TypeAdapter(list[DeckListing])


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise DeckLoadError(f"Missing deck file: {path}") from e
    except OSError as e:
        raise DeckLoadError(f"Cannot read deck file {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise DeckLoadError(f"Deck file {path} is not UTF-8: {e}") from e
    except json.JSONDecodeError as e:
        raise DeckLoadError(f"Invalid JSON in {path}: {e}") from e


def load_deck_file(path: Path) -> NormalizationResult:
    """Read and normalize a single deck document."""
    result = normalize_deck_document(_read_json(path))
    logger.info(
        "Loaded deck %s: %d categories, %d warnings",
        path, len(result.deck.categories), len(result.warnings),
    )
    return result


class DeckLibrary:
    """
    The set of installed decks in one directory.

    Usage:
        library = DeckLibrary(Path("decks"))
        names = [d.name for d in library.list_decks()]
        result = library.load(names[0])
    """

    def __init__(self, deck_dir: Path):
        self.deck_dir = Path(deck_dir)

    def list_decks(self) -> list[DeckListing]:
        raw = _read_json(self.deck_dir / DECKLIST_FILE)
        try:
            return _DECKLIST_ADAPTER.validate_python(raw)
        except ValidationError as e:
            raise DeckLoadError(f"Invalid decklist in {self.deck_dir}: {e}") from e

    def find(self, name: str) -> DeckListing | None:
        for listing in self.list_decks():
            if listing.name == name:
                return listing
        return None

    def load(self, name: str) -> NormalizationResult:
        listing = self.find(name)
        if listing is None:
            raise DeckLoadError(f"Deck not found: {name}")
        return load_deck_file(self.deck_dir / listing.path)
