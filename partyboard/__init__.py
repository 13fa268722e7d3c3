"""
Partyboard - Party Board Game Engine

A deterministic, data-driven engine for a party board game. Players move
around a generated board; landing on a square draws a card from a JSON deck.
The engine provides:
- Deck content normalization
- Selector/variable/action interpretation of cards
- Weighted and shuffled card drawing
- Immutable game state with a command reducer
"""

__version__ = "0.1.0"
