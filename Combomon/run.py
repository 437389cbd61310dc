"""
run.py
======
Command-line entry point for playing Combomon in a terminal.

Modes:
  play (default)  interactive loop reading commands from stdin
  --demo          generate a round, assign the generated solution, submit,
                  and print a JSON summary
  --dex           print the Combodex and exit
"""

import argparse
import json
import logging
import re
import sys
from dataclasses import replace
from typing import Callable, List, Optional, TextIO

from .catalog import load_catalog, load_characters
from .combodex import render_board_text, render_combodex
from .config import Settings, load_settings, setup_logging
from .env import ComboEnv
from .type import (
    BoardSlot, Destination, EngineConfig, InvalidMoveError, MalformedCatalogError,
    GenerationExhausted, TrainerSlot, TypesError,
)
from .unlocks import JsonUnlockStore, MemoryUnlockStore, UnlockSet

logger = logging.getLogger(__name__)

HELP_TEXT = """Commands:
  board                   show the board and trainers
  move <#> <dest>         move Combomon number # to a destination
  select <target>         click a Combomon (#N) or a slot (bN / tT-S)
  return                  move all team Combomon back to the board
  submit                  submit the round
  difficulty <1-4>        change difficulty (starts a new round)
  dex                     show the Combodex
  reset-dex               reset Combodex progress
  image <path>            save a board image (needs the render extra)
  help                    show this help
  quit                    leave
Destinations: b1..b12 for board slots, t1-1..t3-3 for trainer/slot."""

_BOARD_RE = re.compile(r"^b(\d+)$", re.I)
_TRAINER_RE = re.compile(r"^t(\d+)-(\d+)$", re.I)
_TOKEN_RE = re.compile(r"^#?(\d+)$")


def parse_destination(text: str) -> Destination:
    """Parse a 1-based slot code (`b5`, `t2-3`) into a 0-based destination."""
    text = text.strip()
    m = _BOARD_RE.match(text)
    if m:
        return BoardSlot(int(m.group(1)) - 1)
    m = _TRAINER_RE.match(text)
    if m:
        return TrainerSlot(int(m.group(1)) - 1, int(m.group(2)) - 1)
    raise ValueError(f"Unrecognized destination: {text!r}")


def parse_target(text: str):
    m = _TOKEN_RE.match(text.strip())
    if m:
        return int(m.group(1))
    return parse_destination(text)


def build_env(settings: Settings, no_save: bool = False) -> ComboEnv:
    catalog = load_catalog(settings.catalog_path)
    characters = load_characters(settings.characters_path)
    store = MemoryUnlockStore() if no_save else JsonUnlockStore(settings.save_file)
    config = EngineConfig(difficulty=settings.difficulty, seed=settings.seed)
    return ComboEnv(catalog, characters, UnlockSet(store), config)


def play_demo(env: ComboEnv) -> dict:
    """Assign the generated solution to the trainers and submit it."""
    round_ = env.round
    requests = [t.request for t in round_.trainers]
    for t, triple in enumerate(round_.solution):
        for s, token_id in enumerate(triple):
            env.move_token(token_id, TrainerSlot(t, s))
    result = env.submit_round()
    return {
        "difficulty": round_.difficulty,
        "requests": requests,
        "solution": [list(triple) for triple in round_.solution],
        "statuses": [s.value for s in result.statuses],
        "perfect": result.perfect,
        "unlocked": list(result.unlocked),
        "unlocked_total": len(env.unlocks),
    }


def run_command(env: ComboEnv, line: str, out: TextIO,
                confirm: Callable[[str], bool] = lambda prompt: False) -> bool:
    """Execute one interactive command. Returns False when the user quits."""
    parts = line.split()
    if not parts:
        return True
    cmd, args = parts[0].lower(), parts[1:]

    try:
        if cmd in ("quit", "exit", "q"):
            return False
        elif cmd in ("help", "?"):
            print(HELP_TEXT, file=out)
        elif cmd in ("board", "b"):
            print(render_board_text(env.round), file=out)
        elif cmd == "move" and len(args) == 2:
            token_id = parse_target(args[0])
            if not isinstance(token_id, int):
                raise ValueError("move expects a Combomon number first")
            msg, round_ = env.move_token(token_id, parse_destination(args[1]))
            print(render_board_text(round_), file=out)
            if msg:
                print(msg, file=out)
        elif cmd == "select" and len(args) == 1:
            msg, round_ = env.select_slot_or_token(parse_target(args[0]))
            if env.selection is None:
                print(render_board_text(round_), file=out)
            else:
                print(f"Selected {args[0]}", file=out)
            if msg:
                print(msg, file=out)
        elif cmd == "return":
            msg, round_ = env.return_team_tokens()
            print(msg, file=out)
        elif cmd == "submit":
            result = env.submit_round()
            if result.perfect:
                print("PERFECT! Every trainer is happy.", file=out)
            print(f"Results: {', '.join(s.value for s in result.statuses)}", file=out)
            if result.unlocked:
                print(f"Unlocked: {', '.join('#%03d' % i for i in result.unlocked)}", file=out)
            print(render_board_text(env.round), file=out)
        elif cmd == "difficulty" and len(args) == 1:
            env.set_difficulty(int(args[0]))
            print(render_board_text(env.round), file=out)
        elif cmd == "dex":
            print(render_combodex(env.catalog, env.unlocks), file=out)
        elif cmd == "reset-dex":
            if confirm("Reset your Combodex progress? This locks every Combomon. [y/N] "):
                env.reset_progress()
                print("Combodex progress has been reset.", file=out)
        elif cmd == "image" and len(args) == 1:
            env.get_board_image().save(args[0])
            print(f"Saved board image to {args[0]}", file=out)
        else:
            print(f"Unknown command: {line.strip()} (type 'help')", file=out)
    except (InvalidMoveError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=out)
    return True


def interactive(env: ComboEnv, stdin: TextIO = sys.stdin, out: TextIO = sys.stdout) -> None:
    def confirm(prompt: str) -> bool:
        print(prompt, end="", file=out, flush=True)
        return stdin.readline().strip().lower() in ("y", "yes")

    print(render_board_text(env.round), file=out)
    print("Type 'help' for commands.", file=out)
    while True:
        print("> ", end="", file=out, flush=True)
        line = stdin.readline()
        if not line:
            break
        if not run_command(env, line, out, confirm):
            break


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line interface for Combomon."""
    parser = argparse.ArgumentParser(
        description="Combomon: match Combomon to trainer requests.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Play interactively
  python -m Combomon.run

  # Harder rounds, reproducible
  python -m Combomon.run --difficulty 3 --seed 42

  # Scripted round with the generated solution
  python -m Combomon.run --demo --no-save --save-prefix round1
        """,
    )
    parser.add_argument("--catalog", type=str, help="Path to MonsterArray.json")
    parser.add_argument("--characters", type=str, help="Path to TrainerCharacters.json")
    parser.add_argument("--save-file", type=str, help="Where unlocked Combomon are saved")
    parser.add_argument("--no-save", action="store_true", help="Do not read or write unlock progress")
    parser.add_argument("--difficulty", type=int, choices=[1, 2, 3, 4], help="Requirements per trainer")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible rounds")
    parser.add_argument("--demo", action="store_true", help="Play one round with the generated solution")
    parser.add_argument("--dex", action="store_true", help="Print the Combodex and exit")
    parser.add_argument("--save-prefix", type=str, help="Save <prefix>_board.png in demo mode")
    parser.add_argument("--log-file", type=str, help="Also write logs to this file")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    overrides = {
        "catalog_path": args.catalog or settings.catalog_path,
        "characters_path": args.characters or settings.characters_path,
        "save_file": args.save_file or settings.save_file,
        "difficulty": args.difficulty or settings.difficulty,
        "seed": args.seed if args.seed is not None else settings.seed,
        "log_level": "DEBUG" if args.verbose else settings.log_level,
        "log_file": args.log_file or settings.log_file,
    }
    settings = replace(settings, **overrides)
    setup_logging(settings)

    try:
        env = build_env(settings, no_save=args.no_save)
    except (MalformedCatalogError, GenerationExhausted) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.dex:
        print(render_combodex(env.catalog, env.unlocks))
        return 0

    if args.demo:
        try:
            if args.save_prefix:
                filename = f"{args.save_prefix}_board.png"
                env.get_board_image().save(filename)
                logger.debug(f"Saved board image to {filename}")
            summary = play_demo(env)
        except (TypesError, RuntimeError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(json.dumps(summary, indent=2))
        return 0

    try:
        interactive(env)
    except GenerationExhausted as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
