"""
Deck / Draw Engine - Categorized card content and card drawing.

Draw policies per category:
- random: appearance-filtered candidates, then frequency-weighted pick
- shuffledGlobal: one non-repeating shuffle cycle per category
- shuffledIndividual: one non-repeating shuffle cycle per (category, player)

The shuffle cycles live in `draw_state`, a side table that only decides draw
order. It is excluded from equality and shared by every GameState snapshot
that holds this deck.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Sequence
import logging
import random

from ..card_schema.card_dsl import (
    DEFAULT_WIN_CARD,
    FALLBACK_CARD,
    CardSpec,
    CategorySpec,
    DeckDocument,
    DeckSettings,
    OrderPolicy,
)
from .randomness import shuffle_list

if TYPE_CHECKING:
    from .state import GameState, PlayerState

logger = logging.getLogger(__name__)

# Bounded retries of the frequency filter before picking uniformly
MAX_FREQUENCY_ATTEMPTS = 100


@dataclass
class DrawCycle:
    """A shuffled permutation of card indices and the next slot to draw."""
    permutation: list[int]
    cursor: int = 0


DrawKey = tuple[str, Optional[int]]


@dataclass(frozen=True)
class Deck:
    """
    A loaded deck.

    Usage:
        deck = Deck.from_document(normalize_deck_document(raw).deck)
        card = deck.draw_card("Action", player, state)
    """
    document: DeckDocument
    draw_state: dict[DrawKey, DrawCycle] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_document(cls, document: DeckDocument) -> Deck:
        return cls(document=document)

    @property
    def categories(self) -> tuple[CategorySpec, ...]:
        return self.document.categories

    @property
    def settings(self) -> DeckSettings:
        return self.document.settings

    def category(self, name: str) -> CategorySpec | None:
        return self.document.get_category(name)

    @property
    def finish_category(self) -> CategorySpec | None:
        name = self.settings.finish_type_name
        return self.category(name) if name is not None else None

    @property
    def board_categories(self) -> tuple[CategorySpec, ...]:
        """Categories that may be placed on board squares."""
        finish = self.settings.finish_type_name
        return tuple(c for c in self.categories if c.name != finish)

    def all_cards(self) -> list[CardSpec]:
        return [card for category in self.categories for card in category.cards]

    def random_category(self, rng: random.Random) -> CategorySpec | None:
        """Pick a board category weighted by frequency; uniform if all weights are 0."""
        candidates = self.board_categories
        if not candidates:
            return None
        weights = [c.frequency for c in candidates]
        if sum(weights) <= 0:
            return rng.choice(candidates)
        return rng.choices(candidates, weights=weights)[0]

    # =========================================================================
    # Drawing
    # =========================================================================

    def draw_card(self, category_name: str, source: PlayerState, state: GameState) -> CardSpec:
        """Draw a card of a category for a player, using the category's policy."""
        category = self.category(category_name)
        if category is None:
            logger.warning("Unknown category %r, drawing from the whole deck", category_name)
            return self._weighted_pick(self.all_cards(), state.rng)

        if category.order == OrderPolicy.SHUFFLED_GLOBAL:
            return self._draw_shuffled(category, (category.name, None), source, state)
        if category.order == OrderPolicy.SHUFFLED_INDIVIDUAL:
            return self._draw_shuffled(category, (category.name, source.player_id), source, state)
        return self._draw_random(category, source, state)

    def draw_finish_card(self, rng: random.Random) -> CardSpec:
        """Draw from the finish category, or the built-in win card."""
        finish = self.finish_category
        if finish is None or not finish.cards:
            return DEFAULT_WIN_CARD
        return self._weighted_pick(finish.cards, rng)

    def _draw_random(self, category: CategorySpec, source: PlayerState, state: GameState) -> CardSpec:
        if not category.cards:
            return self._weighted_pick(self.all_cards(), state.rng)

        length = state.board_length
        relative = source.position / length if length else 0.0
        in_range = [c for c in category.cards if c.appearance.contains(relative)]
        return self._weighted_pick(in_range or category.cards, state.rng)

    def _draw_shuffled(
        self,
        category: CategorySpec,
        key: DrawKey,
        source: PlayerState,
        state: GameState,
    ) -> CardSpec:
        count = len(category.cards)
        if count == 0:
            return self._draw_random(category, source, state)

        cycle = self.draw_state.get(key)
        if cycle is None or len(cycle.permutation) != count:
            cycle = DrawCycle(permutation=list(range(count)))
            self.draw_state[key] = cycle

        if cycle.cursor == 0:
            shuffle_list(cycle.permutation, state.rng)

        card = category.cards[cycle.permutation[cycle.cursor]]
        cycle.cursor = (cycle.cursor + 1) % count
        return card

    @staticmethod
    def _weighted_pick(cards: Sequence[CardSpec], rng: random.Random) -> CardSpec:
        """
        Keep cards whose frequency beats a uniform draw, then pick one of them.

        After MAX_FREQUENCY_ATTEMPTS empty rounds the pick is uniform over all
        candidates.
        """
        if not cards:
            logger.warning("Deck has no cards, using fallback card")
            return FALLBACK_CARD
        if len(cards) == 1:
            return cards[0]

        for _ in range(MAX_FREQUENCY_ATTEMPTS):
            r = rng.random()
            kept = [c for c in cards if c.frequency > r]
            if kept:
                return rng.choice(kept)
        return rng.choice(list(cards))
