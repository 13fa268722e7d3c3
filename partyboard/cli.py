"""
Partyboard CLI - Command-line interface for the engine.

Usage:
    partyboard decks                       List installed decks
    partyboard validate <deck_file>        Normalize a deck and show warnings
    partyboard play <name> <name> ...      Play a game in the terminal
    partyboard serve                       Run the REST API
"""

import argparse
import logging
import sys
from pathlib import Path

from . import config


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Partyboard - Party Board Game Engine",
        prog="partyboard",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument(
        "--deck-dir", type=Path, default=config.PARTYBOARD_DECK_DIR,
        help="Directory with deck_config.json",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Decks command
    subparsers.add_parser("decks", help="List installed decks")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a deck document")
    validate_parser.add_argument("deck_file", help="Path to deck JSON file")

    # Play command
    play_parser = subparsers.add_parser("play", help="Play a game in the terminal")
    play_parser.add_argument("players", nargs="+", help="Player names (at least 2)")
    play_parser.add_argument("--deck", help="Deck name from the decklist")
    play_parser.add_argument("--size", type=int, default=config.PARTYBOARD_BOARD_SIZE, help="Board edge length")
    play_parser.add_argument("--seed", type=int, help="Random seed")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the REST API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "decks":
        cmd_decks(args)
    elif args.command == "validate":
        cmd_validate(args)
    elif args.command == "play":
        cmd_play(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_decks(args):
    """List installed decks."""
    from .card_schema.loader import DeckLibrary, DeckLoadError

    try:
        listings = DeckLibrary(args.deck_dir).list_decks()
    except DeckLoadError as e:
        print(f"Error: {e}")
        sys.exit(1)

    for listing in listings:
        print(f"{listing.name}\t{listing.path}")


def cmd_validate(args):
    """Normalize a deck document and report repairs."""
    from .card_schema.loader import DeckLoadError, load_deck_file

    try:
        result = load_deck_file(Path(args.deck_file))
    except DeckLoadError as e:
        print(f"Error: {e}")
        sys.exit(1)

    categories = result.deck.categories
    print(f"Categories: {len(categories)}")
    for category in categories:
        print(f"  {category.name}: {len(category.cards)} cards ({category.order.value})")

    if result.warnings:
        print("\nWarnings:")
        for w in result.warnings:
            print(f"  - {w}")
        sys.exit(2)


def cmd_play(args):
    """Play a game in the terminal."""
    from .card_schema.loader import DeckLibrary
    from .engine_core.state import GamePhase
    from .session import GameLoop, SessionManager

    library = DeckLibrary(args.deck_dir)
    session = SessionManager(library).create_session(deck_name=args.deck, seed=args.seed)
    loop = GameLoop(session, library)

    for name in args.players:
        loop.add_player(name)

    result = loop.new_game(args.size, args.deck)
    if not result.success:
        print(f"Error: {'; '.join(result.errors)}")
        sys.exit(1)

    while True:
        state = session.game_state
        card = state.active_card

        if card is not None:
            print(f"\n{card.text}")
            for i, option in enumerate(card.options):
                print(f"  [{i}] {option.text}")
            index = _ask_index(len(card.options))
            if index is None:
                return
            result = loop.choose_option(index)
        elif state.phase == GamePhase.FINISHED:
            print(f"\n{result.winner} won the game!")
            return
        else:
            player = state.current_player
            if input(f"\n{player.name} (square {player.position}): press enter to roll, q to quit ") == "q":
                return
            result = loop.roll_dice()

        for change in result.changes:
            print(f"  {change}")
        for error in result.errors:
            print(f"  Error: {error}")


def _ask_index(count: int):
    while True:
        answer = input("> ").strip()
        if answer == "q":
            return None
        if answer.isdigit() and int(answer) < count:
            return int(answer)
        print(f"Choose 0-{count - 1} or q")


def cmd_serve(args):
    """Run the REST API with uvicorn."""
    import uvicorn
    from .api.app import create_app
    from .api.service import APIService
    from .card_schema.loader import DeckLibrary

    app = create_app(APIService(deck_library=DeckLibrary(args.deck_dir)))
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
