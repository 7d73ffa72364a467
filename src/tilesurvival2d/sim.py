"""Simulation context and the per-tick update.

A ``Simulation`` owns every piece of mutable game state (world, player,
furnace, mining session, clock). Hosts call :meth:`Simulation.tick` once per
frame with a bounded delta time and an :class:`InputIntent`, then read a
:class:`SimSnapshot` to draw.
"""

from __future__ import annotations

import enum
import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from tilesurvival2d.config import SimConfig
from tilesurvival2d.core import (
    BLOCK_AIR,
    BLOCK_CHEST,
    BLOCK_STONE,
    BLOCKS,
    FOOD_EFFECTS,
    HOUSE_W,
    ITEM_COAL,
    ITEM_IRON_ORE,
    ITEM_PICKAXE,
    ITEM_STONE,
    RECIPES,
    REGISTRY,
    TILE_SIZE,
    BlockDef,
    Player,
    World,
    clamp,
    tile_at,
)
from tilesurvival2d.stations import Furnace, FurnaceStatus, chest_transfer

logger = logging.getLogger(__name__)

TAB_CRAFT = "craft"
TAB_SMELT = "smelt"


class Outcome(enum.Enum):
    NONE = "none"
    WON = "won"
    DIED = "died"


@dataclass
class InputIntent:
    move: int = 0
    jump: bool = False
    run: bool = False
    hit: bool = False
    use: bool = False
    aim_x: float = 0.0
    aim_y: float = 0.0


class DayClock:
    def __init__(self, cycle_sec: float, win_days: int) -> None:
        self.cycle_sec = cycle_sec
        self.win_days = win_days
        self.t_day = 0.0
        self.day = 1

    def advance(self, dt: float) -> None:
        self.t_day += dt
        if self.t_day >= self.cycle_sec:
            self.t_day -= self.cycle_sec
            self.day += 1
            logger.debug("day %d begins", self.day)

    @property
    def phase(self) -> float:
        return self.t_day / self.cycle_sec

    @property
    def is_night(self) -> bool:
        return self.phase >= 0.5

    @property
    def won(self) -> bool:
        return self.day > self.win_days

    def darkness(self) -> float:
        """Overlay intensity in [0, 1]: dusk from 35% to 50%, peak at 75%."""
        p = self.phase
        if p >= 0.5:
            dark = 170 - 70 * abs(p - 0.75) / 0.25
        elif p > 0.35:
            dark = 70 * (p - 0.35) / 0.15
        else:
            dark = 0.0
        return clamp(dark, 0, 190) / 255


class MiningSession:
    def __init__(self) -> None:
        self.active = False
        self.target: Optional[Tuple[int, int]] = None
        self.progress = 0.0

    def reset(self) -> None:
        self.active = False
        self.target = None
        self.progress = 0.0

    def retarget(self, tx: int, ty: int) -> None:
        if self.target != (tx, ty):
            self.target = (tx, ty)
            self.progress = 0.0
        self.active = True


@dataclass
class SimSnapshot:
    tiles: List[Tuple[int, int, int]]
    player_pos: Tuple[float, float]
    player_box: Tuple[int, int]
    hp: float
    hunger: float
    day: int
    win_days: int
    is_night: bool
    darkness: float
    slots: List[Optional[Tuple[int, int]]]
    selected: int
    furnace: FurnaceStatus
    mining_target: Optional[Tuple[int, int]]
    mining_fraction: float
    outcome: Outcome
    panel_open: bool = False
    tab: str = TAB_CRAFT
    craftable: List[bool] = field(default_factory=list)


class Simulation:
    def __init__(self, config: Optional[SimConfig] = None) -> None:
        self.config = config or SimConfig()
        self.rng = random.Random(self.config.seed)
        self.world = World(self.config.world_w, self.config.world_h, self.rng)
        self.world.generate()
        for x0 in self.config.village_columns:
            if 0 <= x0 <= self.world.width - HOUSE_W:
                self.world.place_house(x0)

        sx, sy = self.config.spawn_tile
        self.player = Player(sx * TILE_SIZE, sy * TILE_SIZE)
        for name, count in self.config.starting_items:
            self.player.inventory.add(REGISTRY.id_of(name), count)

        self.furnace = Furnace()
        self.mining = MiningSession()
        self.clock = DayClock(self.config.day_cycle_sec, self.config.win_days)
        self.outcome = Outcome.NONE
        self.panel_open = False
        self.tab = TAB_CRAFT

    # --- Tick ---------------------------------------------------------------
    def tick(self, dt: float, intent: InputIntent) -> Outcome:
        if self.outcome is not Outcome.NONE:
            return self.outcome
        dt = clamp(dt, 0.0, self.config.max_dt)

        self.clock.advance(dt)
        if self.clock.won:
            self._finish(Outcome.WON)
            return self.outcome

        player = self.player
        player.hunger = clamp(player.hunger - self.config.hunger_drain_per_sec * dt, 0, 100)
        if player.hunger <= 0:
            player.hp = clamp(player.hp - self.config.starve_damage_per_sec * dt, 0, 100)
        if player.hp <= 0:
            self._finish(Outcome.DIED)
            return self.outcome

        self.furnace.update(dt)

        if not self.panel_open:
            player.update(self.world, dt, intent.move, intent.jump, intent.run)
            if intent.hit:
                self.mine_tick(dt, intent.aim_x, intent.aim_y)
            else:
                self.mining.reset()
            if intent.use:
                intent.use = False
                self.use(intent.aim_x, intent.aim_y)
        return self.outcome

    def _finish(self, outcome: Outcome) -> None:
        self.outcome = outcome
        self.mining.reset()
        logger.info("game over: %s on day %d", outcome.value, self.clock.day)

    # --- Mining -------------------------------------------------------------
    def mine_multiplier(self) -> float:
        stack = self.player.inventory.get_selected()
        if stack is not None and stack.item_id == ITEM_PICKAXE:
            return self.config.pickaxe_multiplier
        return 1.0

    def mine_tick(self, dt: float, wx: float, wy: float) -> bool:
        """Advance mining at the aimed tile. Returns True when a block breaks."""
        tx, ty = tile_at(wx, wy)
        block_id = self.world.get_tile(tx, ty)
        block = BLOCKS[block_id]
        if block_id == BLOCK_AIR or block.liquid:
            self.mining.reset()
            return False
        if not self.player.tile_in_range(tx, ty, self.config.mine_range_tiles):
            self.mining.reset()
            return False

        self.mining.retarget(tx, ty)
        self.mining.progress += dt * self.mine_multiplier()
        if self.mining.progress < block.mine_time:
            return False

        self.world.set_tile(tx, ty, BLOCK_AIR)
        if block_id == BLOCK_CHEST:
            self.world.chests.pop((tx, ty), None)
        drop = self.roll_drop(block)
        if drop is not None:
            self.player.inventory.add(drop, 1)
        logger.debug("mined %s at (%d, %d)", block.name, tx, ty)
        self.mining.reset()
        return True

    def roll_drop(self, block: BlockDef) -> Optional[int]:
        if block.id == BLOCK_STONE:
            r = self.rng.random()
            if r < 0.10:
                return ITEM_IRON_ORE
            if r < 0.20:
                return ITEM_COAL
            return ITEM_STONE
        return block.drop_id

    # --- Use ----------------------------------------------------------------
    def use(self, wx: float, wy: float) -> bool:
        tx, ty = tile_at(wx, wy)
        chest = self.world.chests.get((tx, ty))
        if self.world.get_tile(tx, ty) == BLOCK_CHEST and chest is not None:
            chest_transfer(chest, self.player.inventory)
            return True
        if self.eat_selected():
            return True
        return self.place_selected(tx, ty)

    def eat_selected(self) -> bool:
        inventory = self.player.inventory
        item = inventory.selected_item()
        if item is None or item.kind != "food":
            return False
        effect = FOOD_EFFECTS.get(item.name)
        if effect is not None:
            self.player.hunger = clamp(self.player.hunger + effect.hunger, 0, 100)
            self.player.hp = clamp(self.player.hp + effect.hp, 0, 100)
        inventory.remove_one_selected()
        return True

    def place_selected(self, tx: int, ty: int) -> bool:
        inventory = self.player.inventory
        item = inventory.selected_item()
        if item is None or item.kind != "block":
            return False
        if self.world.get_tile(tx, ty) != BLOCK_AIR:
            return False
        if self.player.overlaps_tile(tx, ty):
            return False
        self.world.set_tile(tx, ty, item.id)
        inventory.remove_one_selected()
        if item.id == BLOCK_CHEST:
            self.world.ensure_chest(tx, ty)
        return True

    # --- UI actions ---------------------------------------------------------
    def select_slot(self, index: int) -> bool:
        return self.player.inventory.select(index)

    def craft(self, recipe_index: int) -> bool:
        if recipe_index < 0 or recipe_index >= len(RECIPES):
            return False
        recipe = RECIPES[recipe_index]
        return self.player.inventory.craft(recipe.need, recipe.give)

    def furnace_load(self) -> bool:
        return self.furnace.load(self.player.inventory)

    def furnace_fuel(self) -> bool:
        return self.furnace.add_fuel(self.player.inventory)

    def furnace_take(self) -> bool:
        return self.furnace.take(self.player.inventory)

    def set_tab(self, tab: str) -> bool:
        if tab not in (TAB_CRAFT, TAB_SMELT):
            return False
        self.tab = tab
        return True

    def set_panel_open(self, value: bool) -> None:
        self.panel_open = value
        if value:
            self.mining.reset()

    # --- Read model ---------------------------------------------------------
    def snapshot(self, min_tx: int, min_ty: int, max_tx: int, max_ty: int) -> SimSnapshot:
        player = self.player
        inventory = player.inventory
        fraction = 0.0
        if self.mining.active and self.mining.target is not None:
            mine_time = BLOCKS[self.world.get_tile(*self.mining.target)].mine_time
            if mine_time > 0:
                fraction = min(1.0, self.mining.progress / mine_time)
        return SimSnapshot(
            tiles=list(self.world.visible_tiles(min_tx, min_ty, max_tx, max_ty)),
            player_pos=(player.x, player.y),
            player_box=(player.width, player.height),
            hp=player.hp,
            hunger=player.hunger,
            day=self.clock.day,
            win_days=self.clock.win_days,
            is_night=self.clock.is_night,
            darkness=self.clock.darkness(),
            slots=[(s.item_id, s.count) if s else None for s in inventory.slots],
            selected=inventory.selected,
            furnace=self.furnace.status(),
            mining_target=self.mining.target if self.mining.active else None,
            mining_fraction=fraction,
            outcome=self.outcome,
            panel_open=self.panel_open,
            tab=self.tab,
            craftable=[inventory.has_need(r.need) for r in RECIPES],
        )
