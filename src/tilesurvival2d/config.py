from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from tilesurvival2d.core import REGISTRY, WORLD_H, WORLD_W

DAY_CYCLE_SEC = 300.0
WIN_DAYS = 7
HUNGER_DRAIN_PER_SEC = 1 / 60
STARVE_DAMAGE_PER_SEC = 10.0
MAX_DT = 0.05
MINE_RANGE_TILES = 6.0
PICKAXE_MULTIPLIER = 2.2
SPAWN_TILE = (12, 12)
VILLAGE_COLUMNS = (65, 95, 130, 155)
STARTING_ITEMS: Tuple[Tuple[str, int], ...] = (("apple", 4), ("plank", 12))


def _as_int(value: object, default: int) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return default


def _as_float(value: object, default: float) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return default


def _as_positive_float(value: object, default: float) -> float:
    number = _as_float(value, default)
    return number if number > 0 else default


@dataclass(frozen=True)
class SimConfig:
    seed: Optional[int] = None
    world_w: int = WORLD_W
    world_h: int = WORLD_H
    day_cycle_sec: float = DAY_CYCLE_SEC
    win_days: int = WIN_DAYS
    hunger_drain_per_sec: float = HUNGER_DRAIN_PER_SEC
    starve_damage_per_sec: float = STARVE_DAMAGE_PER_SEC
    max_dt: float = MAX_DT
    mine_range_tiles: float = MINE_RANGE_TILES
    pickaxe_multiplier: float = PICKAXE_MULTIPLIER
    spawn_tile: Tuple[int, int] = SPAWN_TILE
    village_columns: Tuple[int, ...] = VILLAGE_COLUMNS
    starting_items: Tuple[Tuple[str, int], ...] = STARTING_ITEMS

    @staticmethod
    def from_dict(data: Dict[str, object]) -> "SimConfig":
        """Build a config from loosely typed data, keeping defaults for bad values."""
        defaults = SimConfig()
        seed = data.get("seed")

        raw_villages = data.get("village_columns", defaults.village_columns)
        if isinstance(raw_villages, (list, tuple)):
            villages = tuple(v for v in raw_villages if isinstance(v, int))
        else:
            villages = defaults.village_columns

        raw_spawn = data.get("spawn_tile", defaults.spawn_tile)
        if (
            isinstance(raw_spawn, (list, tuple))
            and len(raw_spawn) == 2
            and all(isinstance(v, int) for v in raw_spawn)
        ):
            spawn = (int(raw_spawn[0]), int(raw_spawn[1]))
        else:
            spawn = defaults.spawn_tile

        raw_items = data.get("starting_items", defaults.starting_items)
        if isinstance(raw_items, (list, tuple)):
            items = tuple(
                (entry[0], entry[1])
                for entry in raw_items
                if isinstance(entry, (list, tuple))
                and len(entry) == 2
                and isinstance(entry[0], str)
                and entry[0] in REGISTRY
                and _as_int(entry[1], 0) > 0
            )
        else:
            items = defaults.starting_items

        return SimConfig(
            seed=seed if isinstance(seed, int) else None,
            world_w=max(1, _as_int(data.get("world_w"), defaults.world_w)),
            world_h=max(1, _as_int(data.get("world_h"), defaults.world_h)),
            day_cycle_sec=max(1.0, _as_float(data.get("day_cycle_sec"), defaults.day_cycle_sec)),
            win_days=_as_int(data.get("win_days"), defaults.win_days),
            hunger_drain_per_sec=_as_float(
                data.get("hunger_drain_per_sec"), defaults.hunger_drain_per_sec
            ),
            starve_damage_per_sec=_as_float(
                data.get("starve_damage_per_sec"), defaults.starve_damage_per_sec
            ),
            max_dt=_as_positive_float(data.get("max_dt"), defaults.max_dt),
            mine_range_tiles=_as_positive_float(
                data.get("mine_range_tiles"), defaults.mine_range_tiles
            ),
            pickaxe_multiplier=_as_positive_float(
                data.get("pickaxe_multiplier"), defaults.pickaxe_multiplier
            ),
            spawn_tile=spawn,
            village_columns=villages,
            starting_items=items,
        )
