"""Shared test fixtures for Delver."""

from typing import Optional

import pytest

from delver.config import GameConfig
from delver.content import load_item_templates, load_monster_templates, make_item, spawn_monster
from delver.game import Game
from delver.mapgen import new_player
from delver.rng import new_rng
from delver.state import AIBehavior, Actor, Item, Level, Stats, TileKind, World


def open_level(width: int = 14, height: int = 10, cfg: Optional[GameConfig] = None) -> Level:
    """A single walled room; player at (1, 1), stairs in the far corner."""
    world = World(width, height)
    for y in range(1, height - 1):
        for x in range(1, width - 1):
            world.set_kind((x, y), TileKind.FLOOR)
    stairs = (width - 2, height - 2)
    world.set_kind(stairs, TileKind.STAIRS_DOWN)
    level = Level(world=world, depth=1, entry=(1, 1), stairs_down=stairs)
    level.add_actor(new_player(cfg or GameConfig(), (1, 1)))
    return level


@pytest.fixture
def cfg() -> GameConfig:
    return GameConfig()


@pytest.fixture
def level(cfg: GameConfig) -> Level:
    return open_level(cfg=cfg)


@pytest.fixture
def game(cfg: GameConfig, level: Level) -> Game:
    game = Game(cfg, 7, level, new_rng(7, "test"), next_id=100)
    game.update_fov()
    return game


@pytest.fixture
def player(game: Game) -> Actor:
    return game.level.player


@pytest.fixture
def monster(game: Game):
    """Factory: put a monster on the game's level."""

    def make(actor_id: int, pos, hp: int = 10, attack: int = 3, defense: int = 0, xp: int = 0,
             ai: AIBehavior = AIBehavior.IDLE, name: str = "orc") -> Actor:
        actor = Actor(
            id=actor_id,
            name=name,
            kind="orc",
            pos=pos,
            stats=Stats(hp=hp, max_hp=hp, attack=attack, defense=defense, xp=xp),
            ai=ai,
        )
        return game.level.add_actor(actor)

    return make


@pytest.fixture
def template_monster(game: Game):
    def make(template_id: str, pos) -> Actor:
        tmpl = load_monster_templates()[template_id]
        return game.level.add_actor(spawn_monster(tmpl, game.new_id(), pos))

    return make


@pytest.fixture
def give(game: Game):
    """Factory: put a template item into the player's pack (or on the floor)."""

    def make(template_id: str, pos=None) -> Item:
        item = make_item(load_item_templates()[template_id], game.new_id())
        if pos is not None:
            item.pos = pos
            return game.level.add_item(item)
        return game.level.add_held_item(item, game.level.player)

    return make
