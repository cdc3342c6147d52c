from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Optional, TextIO

from delver.config import GameConfig
from delver.errors import SaveFormatError
from delver.game import Game
from delver.logging import close_logging, configure_logging, get_logger
from delver.snapshot import Snapshot
from delver.state.saves import write_save
from delver.state.world import Direction
from delver.systems.commands import Command

logger = get_logger(__name__)

DEFAULT_SAVE = Path("delver.sav")

_DIRECTIONS = {d.name.lower(): d for d in Direction}

HELP = (
    "commands: n s e w ne nw se sw (move), a <dir> (attack), use <id>, equip <id>, "
    "g (pick up), drop <id>, > (descend), . (wait), save, quit"
)


def parse_command(text: str) -> Command:
    """Turn one line of console input into a Command (ValueError if unknown)."""
    words = text.strip().lower().split()
    if not words:
        raise ValueError("empty command")
    head, args = words[0], words[1:]
    if head in _DIRECTIONS and not args:
        return Command.move(_DIRECTIONS[head])
    if head in ("a", "attack") and len(args) == 1 and args[0] in _DIRECTIONS:
        return Command.attack(_DIRECTIONS[args[0]])
    if head in ("use", "equip", "drop") and len(args) == 1:
        try:
            item_id = int(args[0])
        except ValueError:
            raise ValueError(f"not an item id: {args[0]!r}") from None
        return {"use": Command.use, "equip": Command.equip, "drop": Command.drop}[head](item_id)
    simple = {
        "g": Command.pick_up,
        ",": Command.pick_up,
        ">": Command.descend,
        ".": Command.wait,
        "wait": Command.wait,
        "save": Command.save,
        "quit": Command.quit,
        "q": Command.quit,
    }
    if head in simple and not args:
        return simple[head]()
    raise ValueError(f"unknown command: {text.strip()!r}")


def render(snapshot: Snapshot) -> str:
    """ASCII dump: map, status line, inventory and the last messages."""
    glyphs = {a.pos: ("@" if a.id == snapshot.player.id else a.kind[0]) for a in snapshot.actors}
    items = {i.pos: i.glyph for i in snapshot.items}
    lines = []
    for y, row in enumerate(snapshot.tiles):
        out = []
        for x, tile in enumerate(row):
            if tile.visible:
                out.append(glyphs.get((x, y)) or items.get((x, y)) or tile.kind.value)
            elif tile.explored:
                out.append(tile.kind.value)
            else:
                out.append(" ")
        lines.append("".join(out).rstrip())
    p = snapshot.player
    lines.append(
        f"Depth {snapshot.depth}  Round {snapshot.round}  HP {p.hp}/{p.max_hp}  "
        f"ATK {p.attack}  DEF {p.defense}  LV {p.level}  XP {p.xp}/{p.xp_to_next}  Gold {p.gold}"
    )
    gear = ", ".join(f"{slot}: {view.name if view else '-'}" for slot, view in p.equipment.items())
    lines.append(f"Equipped: {gear}")
    if p.inventory:
        lines.append("Inventory: " + ", ".join(f"[{i.id}] {i.name}" for i in p.inventory))
    if p.statuses:
        lines.append("Status: " + ", ".join(f"{k} ({v})" for k, v in sorted(p.statuses.items())))
    lines.extend(snapshot.messages)
    if snapshot.over:
        lines.append("*** You have died. ***")
    return "\n".join(lines)


class ConsoleInput:
    """Line-based command source for Game.run."""

    def __init__(self, stdin: TextIO, stdout: TextIO, save_path: Path = DEFAULT_SAVE) -> None:
        self.stdin = stdin
        self.stdout = stdout
        self.save_path = save_path

    def next_command(self, snapshot: Snapshot) -> Optional[Command]:
        print(render(snapshot), file=self.stdout)
        while True:
            self.stdout.write("> ")
            self.stdout.flush()
            line = self.stdin.readline()
            if not line:
                return None
            if line.strip() in ("?", "help"):
                print(HELP, file=self.stdout)
                continue
            try:
                return parse_command(line)
            except ValueError as exc:
                print(f"{exc}. Type ? for help.", file=self.stdout)

    def save(self, data: bytes) -> None:
        write_save(self.save_path, data)
        print(f"Saved to {self.save_path}.", file=self.stdout)


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="delver", description="A turn-based dungeon crawl.")
    parser.add_argument("--config", type=Path, default=None, help="YAML config file.")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR.")
    sub = parser.add_subparsers(dest="mode", required=True)

    new = sub.add_parser("new", help="Start a new game.")
    new.add_argument("--seed", type=int, default=None)
    new.add_argument("--save", type=Path, default=DEFAULT_SAVE, help="Where 'save' writes.")

    cont = sub.add_parser("continue", help="Resume a saved game.")
    cont.add_argument("path", type=Path)
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> GameConfig:
    cfg = GameConfig.from_yaml(args.config) if args.config else GameConfig.from_env()
    if args.log_level:
        cfg.log_level = args.log_level
    return cfg


def main(argv: Sequence[str] | None = None, stdin: TextIO = sys.stdin,
         stdout: TextIO = sys.stdout) -> int:
    args = parse_arguments(argv)
    cfg = load_config(args)
    configure_logging(cfg.log_level, cfg.log_file, cfg.json_logs)
    try:
        return play(args, cfg, stdin, stdout)
    finally:
        close_logging()


def play(args: argparse.Namespace, cfg: GameConfig, stdin: TextIO, stdout: TextIO) -> int:
    if args.mode == "continue":
        console = ConsoleInput(stdin, stdout, args.path)
        try:
            game = Game.load_from(args.path, cfg)
        except (OSError, SaveFormatError) as exc:
            logger.error("load_failed", path=str(args.path), error=str(exc))
            print(f"Could not load {args.path}: {exc}", file=stdout)
            stdout.write("Start a new game instead? [y/N] ")
            stdout.flush()
            if stdin.readline().strip().lower() not in ("y", "yes"):
                return 1
            game = Game.new(cfg)
    else:
        console = ConsoleInput(stdin, stdout, args.save)
        game = Game.new(cfg, seed=args.seed)

    final = game.run(console)
    if final.over:
        print(render(final), file=stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
