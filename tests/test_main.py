"""Tests for the console front end."""

import io
from pathlib import Path

import pytest

from delver.game import Game
from delver.main import ConsoleInput, parse_arguments, parse_command, render
from delver.state import Direction
from delver.systems.commands import Command


@pytest.mark.parametrize(
    "text, expected",
    [
        ("n", Command.move(Direction.N)),
        ("  SW ", Command.move(Direction.SW)),
        ("a ne", Command.attack(Direction.NE)),
        ("use 12", Command.use(12)),
        ("equip 3", Command.equip(3)),
        ("drop 7", Command.drop(7)),
        ("g", Command.pick_up()),
        (">", Command.descend()),
        (".", Command.wait()),
        ("save", Command.save()),
        ("quit", Command.quit()),
    ],
)
def test_parse_command(text, expected):
    assert parse_command(text) == expected


@pytest.mark.parametrize("text", ["", "fly", "use potion", "a up", "n 3"])
def test_parse_command_rejects_nonsense(text):
    with pytest.raises(ValueError):
        parse_command(text)


def test_parse_arguments():
    args = parse_arguments(["--log-level", "DEBUG", "new", "--seed", "4"])
    assert args.mode == "new" and args.seed == 4 and args.log_level == "DEBUG"
    args = parse_arguments(["continue", "slot.sav"])
    assert args.mode == "continue" and args.path == Path("slot.sav")


def test_render_shows_player_and_status_line():
    game = Game.new(seed=3)
    text = render(game.snapshot())
    lines = text.splitlines()
    px, py = game.player.pos
    assert lines[py][px] == "@"
    assert any(line.startswith("Depth 1") for line in lines)
    assert "weapon: dagger" in text


def test_console_session(tmp_path: Path):
    save_path = tmp_path / "game.sav"
    stdin = io.StringIO("fly\n.\nsave\nquit\n")
    stdout = io.StringIO()
    game = Game.new(seed=3)
    final = game.run(ConsoleInput(stdin, stdout, save_path))
    assert final.round == 1
    assert [p.name for p in tmp_path.iterdir()] == ["game.sav"]
    assert Game.load_from(save_path).round == 1
    assert "unknown command" in stdout.getvalue()
