"""Command-line interface for running playtest sessions against the sandbox skirmish."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

from autoplaytest.personas.catalog import list_persona_types, resolve_persona_type
from autoplaytest.testing.coordinator import (
    PlaytestConfig,
    PlaytestCoordinator,
    PlaytestSession,
    print_session_summary,
)
from autoplaytest.testing.sandbox import SkirmishSimulation

logger = logging.getLogger(__name__)

RESULTS_FILENAME = "playtest_session.json"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run automated playtests with procedural personas"
    )
    parser.add_argument(
        "--personas",
        type=str,
        default=None,
        help=f"Comma-separated list of personas (default: all of {', '.join(list_persona_types())})",
    )
    parser.add_argument(
        "--games",
        type=int,
        default=None,
        help="Number of games per persona (default: 5)",
    )
    parser.add_argument(
        "--max-ticks",
        type=int,
        default=None,
        help="Tick ceiling per game (default: 5000)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducibility",
    )
    parser.add_argument(
        "--parallel",
        action="store_true",
        help="Run all games concurrently",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help=f"Output directory for {RESULTS_FILENAME}",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress output summary",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> PlaytestSession:
    """Command-line interface for running playtest sessions."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else (logging.WARNING if args.quiet else logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config_kwargs: dict = {"parallel": args.parallel, "seed": args.seed}
    if args.personas:
        personas = [p.strip() for p in args.personas.split(",") if p.strip()]
        for persona in personas:
            if resolve_persona_type(persona) is None:
                parser.error(f"Unknown persona: {persona}")
        config_kwargs["personas"] = personas
    if args.games is not None:
        config_kwargs["games_per_persona"] = args.games
    if args.max_ticks is not None:
        config_kwargs["max_ticks"] = args.max_ticks
    config = PlaytestConfig(**config_kwargs)

    coordinator = PlaytestCoordinator()
    factory = SkirmishSimulation.factory(
        ai_player_id=config.ai_player_id,
        opponent_player_id=config.opponent_player_id,
    )
    session = coordinator.run_sync(factory, config)

    if not args.quiet:
        print_session_summary(coordinator.generate_summary(session), session)

    if args.output:
        output_dir = Path(args.output)
        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / RESULTS_FILENAME
        output_path.write_text(session.to_json())
        print(f"\nResults saved to: {output_path}")

    return session


if __name__ == "__main__":
    main()
