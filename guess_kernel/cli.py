"""Command line entry point: play a game in the terminal or serve the HTTP API."""

import argparse
import logging
import sys
from typing import Callable, List, Optional

import uvicorn

from guess_kernel.catalog.loader import (
    load_bundled,
    load_config,
    load_entities,
    load_trait_catalog,
    load_trait_matrix,
)
from guess_kernel.catalog.traits import TraitCatalog
from guess_kernel.errors import GuessKernelError
from guess_kernel.logging_setup import setup_logging
from guess_kernel.models.catalog import TraitDefinition
from guess_kernel.models.config import GameConfig
from guess_kernel.session.controller import GameSession

logger = logging.getLogger(__name__)

ANSWER_WORDS = {
    "y": 1.0, "yes": 1.0,
    "p": 0.75, "probably": 0.75,
    "?": 0.5, "dunno": 0.5, "maybe": 0.5,
    "pn": 0.25, "probably not": 0.25,
    "n": 0.0, "no": 0.0,
}


def parse_answer(text: str) -> Optional[float]:
    """Map a typed answer to a confidence, or None if it is not understood."""
    text = text.strip().lower()
    if text in ANSWER_WORDS:
        return ANSWER_WORDS[text]
    try:
        value = float(text)
    except ValueError:
        return None
    if 0.0 <= value <= 1.0:
        return value
    return None


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the guess-kernel CLI."""
    parser = argparse.ArgumentParser(
        prog="guess-kernel",
        description="Adaptive twenty-questions engine over a Pokémon trait matrix.",
    )
    parser.add_argument("--entities", metavar="PATH", help="Entity catalog JSON (default: bundled)")
    parser.add_argument("--matrix", metavar="PATH", help="Trait-matrix JSON (default: bundled)")
    parser.add_argument("--catalog", metavar="PATH", help="Trait catalog JSON (default: built-in)")
    parser.add_argument("--config", metavar="PATH", help="GameConfig JSON file")
    parser.add_argument("--log-level", default="WARNING", help="Console log level")
    parser.add_argument("--log-file", metavar="PATH", help="Also write DEBUG logs to this file")

    sub = parser.add_subparsers(dest="cmd", required=True)

    play_p = sub.add_parser("play", help="Play one game in the terminal")
    play_p.add_argument("--seed", type=int, help="Jitter seed for a reproducible game")
    play_p.add_argument("--max-questions", type=int, help="Question budget")

    serve_p = sub.add_parser("serve", help="Serve the HTTP API")
    serve_p.add_argument("--host", default="127.0.0.1")
    serve_p.add_argument("--port", type=int, default=8000)

    return parser


def _load_data(args: argparse.Namespace):
    if args.entities and args.matrix:
        entities, matrix = load_entities(args.entities), load_trait_matrix(args.matrix)
    else:
        entities, matrix = load_bundled()
        if args.entities:
            entities = load_entities(args.entities)
        if args.matrix:
            matrix = load_trait_matrix(args.matrix)
    catalog = load_trait_catalog(args.catalog) if args.catalog else TraitCatalog.default()
    config = load_config(args.config) if args.config else GameConfig()
    return entities, matrix, catalog, config


def _terminal_player(
    input_fn: Callable[[str], str],
    output_fn: Callable[[str], None],
) -> Callable[[TraitDefinition], float]:
    count = 0

    def answer(trait: TraitDefinition) -> float:
        nonlocal count
        count += 1
        while True:
            confidence = parse_answer(input_fn(f"Q{count}. {trait.question_text} "))
            if confidence is not None:
                return confidence
            output_fn("Answer y / p / ? / pn / n, or a number between 0 and 1.")

    return answer


def run_play(
    args: argparse.Namespace,
    input_fn: Callable[[str], str] = input,
    output_fn: Callable[[str], None] = print,
) -> int:
    entities, matrix, catalog, config = _load_data(args)
    updates = {}
    if args.seed is not None:
        updates["jitter_seed"] = args.seed
    if args.max_questions is not None:
        updates["max_questions"] = args.max_questions
    if updates:
        config = GameConfig.model_validate({**config.model_dump(), **updates})

    session = GameSession(entities, matrix, catalog, config)
    output_fn("Think of a Pokémon and answer my questions.")
    result = session.play(_terminal_player(input_fn, output_fn))
    output_fn(
        f"My guess: {result.display_name} "
        f"({result.confidence:.0%} confident, {result.questions_asked} questions)"
    )
    return 0


def run_serve(args: argparse.Namespace) -> int:
    from guess_kernel.api.app import create_app

    entities, matrix, catalog, config = _load_data(args)
    app = create_app(entities=entities, matrix=matrix, catalog=catalog, config=config)
    logger.info("Serving on %s:%d", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the guess-kernel CLI."""
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level, log_file=args.log_file)

    try:
        if args.cmd == "play":
            return run_play(args)
        return run_serve(args)
    except GuessKernelError as e:
        logger.error("%s", e)
        return 2
    except ValueError as e:
        logger.error("Invalid option: %s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
