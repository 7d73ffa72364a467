from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

import pygame

logger = logging.getLogger(__name__)

# --- Core constants ---------------------------------------------------------
TILE_SIZE = 24
WORLD_W = 220
WORLD_H = 85

GRAVITY = 2400.0
JUMP_V = 880.0
MOVE_SPEED = 220.0
RUN_SPEED = 360.0
MAX_FALL_SPEED = 1200.0

PLAYER_W = 18
PLAYER_H = 42
PLAYER_SLOTS = 25
HOTBAR_SLOTS = 5
CHEST_SLOTS = 12

SURFACE_START = 44
SURFACE_MIN = 34
SURFACE_MAX = 58
DIRT_DEPTH = 4
POND_X = (18, 40)
POND_Y = (43, 49)
TREE_COUNT = 50
HOUSE_W = 10
HOUSE_H = 6

Color = Tuple[int, int, int]


@dataclass(frozen=True)
class BlockDef:
    id: int
    name: str
    color: Optional[Color]
    solid: bool
    mine_time: float
    drop_id: Optional[int] = None
    liquid: bool = False


BLOCK_AIR = 0
BLOCK_GRASS = 1
BLOCK_DIRT = 2
BLOCK_STONE = 3
BLOCK_WOOD = 4
BLOCK_PLANK = 5
BLOCK_WATER = 7
BLOCK_CHEST = 8
BLOCK_FURNACE = 9

# Returned for any read outside the grid so the world edges act as solid.
BLOCK_BOUNDARY = BLOCK_STONE

BLOCKS: Dict[int, BlockDef] = {
    BLOCK_AIR: BlockDef(BLOCK_AIR, "air", None, False, 0.0, None),
    BLOCK_GRASS: BlockDef(BLOCK_GRASS, "grass", (80, 160, 80), True, 0.45, 1),
    BLOCK_DIRT: BlockDef(BLOCK_DIRT, "dirt", (110, 80, 55), True, 0.40, 2),
    BLOCK_STONE: BlockDef(BLOCK_STONE, "stone", (123, 123, 138), True, 0.85, 3),
    BLOCK_WOOD: BlockDef(BLOCK_WOOD, "wood", (145, 112, 74), True, 0.65, 4),
    BLOCK_PLANK: BlockDef(BLOCK_PLANK, "plank", (175, 140, 95), True, 0.55, 5),
    BLOCK_WATER: BlockDef(BLOCK_WATER, "water", (45, 120, 210), False, 0.0, None, liquid=True),
    BLOCK_CHEST: BlockDef(BLOCK_CHEST, "chest", (170, 120, 60), True, 0.35, 8),
    BLOCK_FURNACE: BlockDef(BLOCK_FURNACE, "furnace", (91, 91, 96), True, 0.65, 9),
}


@dataclass(frozen=True)
class ItemDef:
    id: int
    name: str
    color: Color
    kind: str  # block | food | material | tool


ITEMS: Dict[int, ItemDef] = {
    item.id: item
    for item in (
        ItemDef(1, "grass", (80, 160, 80), "block"),
        ItemDef(2, "dirt", (110, 80, 55), "block"),
        ItemDef(3, "stone", (123, 123, 138), "block"),
        ItemDef(4, "wood", (145, 112, 74), "block"),
        ItemDef(5, "plank", (175, 140, 95), "block"),
        ItemDef(8, "chest", (170, 120, 60), "block"),
        ItemDef(9, "furnace", (91, 91, 96), "block"),
        ItemDef(20, "apple", (214, 70, 70), "food"),
        ItemDef(21, "meat_raw", (210, 138, 138), "food"),
        ItemDef(22, "meat_cooked", (210, 170, 90), "food"),
        ItemDef(30, "pickaxe", (230, 230, 90), "tool"),
        ItemDef(40, "coal", (34, 34, 34), "material"),
        ItemDef(41, "iron_ore", (138, 138, 160), "material"),
        ItemDef(42, "iron_ingot", (214, 214, 234), "material"),
    )
}


class ItemRegistry:
    """Bijective name <-> code lookup over an item table."""

    def __init__(self, items: Dict[int, ItemDef]) -> None:
        self._by_name: Dict[str, int] = {}
        for item_id, item in items.items():
            if item.name in self._by_name:
                raise ValueError(f"duplicate item name: {item.name}")
            self._by_name[item.name] = item_id
        self._items = items

    def id_of(self, name: str) -> int:
        return self._by_name[name]

    def name_of(self, item_id: int) -> str:
        return self._items[item_id].name

    def get(self, item_id: int) -> Optional[ItemDef]:
        return self._items.get(item_id)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __len__(self) -> int:
        return len(self._by_name)


REGISTRY = ItemRegistry(ITEMS)

ITEM_APPLE = REGISTRY.id_of("apple")
ITEM_CHEST = REGISTRY.id_of("chest")
ITEM_MEAT_RAW = REGISTRY.id_of("meat_raw")
ITEM_MEAT_COOKED = REGISTRY.id_of("meat_cooked")
ITEM_PICKAXE = REGISTRY.id_of("pickaxe")
ITEM_COAL = REGISTRY.id_of("coal")
ITEM_IRON_ORE = REGISTRY.id_of("iron_ore")
ITEM_IRON_INGOT = REGISTRY.id_of("iron_ingot")
ITEM_PLANK = REGISTRY.id_of("plank")
ITEM_STONE = REGISTRY.id_of("stone")
ITEM_WOOD = REGISTRY.id_of("wood")

NameCounts = Dict[str, int]


@dataclass(frozen=True)
class Recipe:
    need: NameCounts
    give: NameCounts

    @property
    def label(self) -> str:
        name, count = next(iter(self.give.items()))
        return f"{name} x{count}"


@dataclass(frozen=True)
class SmeltRecipe:
    output: str
    seconds: float


@dataclass(frozen=True)
class FoodEffect:
    hunger: float
    hp: float


RECIPES: Tuple[Recipe, ...] = (
    Recipe({"wood": 1}, {"plank": 4}),
    Recipe({"plank": 8}, {"chest": 1}),
    Recipe({"stone": 8}, {"furnace": 1}),
    Recipe({"plank": 3, "stone": 2}, {"pickaxe": 1}),
)

SMELT_RECIPES: Dict[str, SmeltRecipe] = {
    "meat_raw": SmeltRecipe("meat_cooked", 6.0),
    "iron_ore": SmeltRecipe("iron_ingot", 8.0),
}

FUEL_VALUE: Dict[str, float] = {"wood": 10.0, "plank": 8.0, "coal": 20.0}

FOOD_EFFECTS: Dict[str, FoodEffect] = {
    "apple": FoodEffect(hunger=22.0, hp=3.0),
    "meat_raw": FoodEffect(hunger=12.0, hp=-2.0),
    "meat_cooked": FoodEffect(hunger=35.0, hp=6.0),
}

# Every name used by the tables must resolve; fail at import otherwise.
for _recipe in RECIPES:
    for _name in (*_recipe.need, *_recipe.give):
        REGISTRY.id_of(_name)
for _name, _smelt in SMELT_RECIPES.items():
    REGISTRY.id_of(_name)
    REGISTRY.id_of(_smelt.output)
for _name in (*FUEL_VALUE, *FOOD_EFFECTS):
    REGISTRY.id_of(_name)


def clamp(value: float, lo: float, hi: float) -> float:
    return lo if value < lo else hi if value > hi else value


def boxes_overlap(
    ax: float, ay: float, aw: float, ah: float, bx: float, by: float, bw: float, bh: float
) -> bool:
    return ax < bx + bw and ax + aw > bx and ay < by + bh and ay + ah > by


@dataclass
class ItemStack:
    item_id: int
    count: int


class Inventory:
    def __init__(self, size: int = PLAYER_SLOTS) -> None:
        self.slots: List[Optional[ItemStack]] = [None for _ in range(size)]
        self.selected = 0

    def add(self, item_id: int, count: int = 1) -> bool:
        if count <= 0 or REGISTRY.get(item_id) is None:
            return False
        for stack in self.slots:
            if stack and stack.item_id == item_id:
                stack.count += count
                return True
        for i, stack in enumerate(self.slots):
            if stack is None:
                self.slots[i] = ItemStack(item_id, count)
                return True
        return False

    def select(self, index: int) -> bool:
        if index < 0 or index >= len(self.slots):
            return False
        self.selected = index
        return True

    def get_selected(self) -> Optional[ItemStack]:
        return self.slots[self.selected]

    def selected_item(self) -> Optional[ItemDef]:
        stack = self.get_selected()
        if stack is None:
            return None
        return REGISTRY.get(stack.item_id)

    def remove_one_selected(self) -> Optional[int]:
        return self.remove_one(self.selected)

    def remove_one(self, index: int) -> Optional[int]:
        stack = self.slots[index]
        if stack is None:
            return None
        stack.count -= 1
        if stack.count <= 0:
            self.slots[index] = None
        return stack.item_id

    def count(self, item_id: int) -> int:
        return sum(stack.count for stack in self.slots if stack and stack.item_id == item_id)

    def take(self, item_id: int, count: int) -> bool:
        if count <= 0 or self.count(item_id) < count:
            return False
        remaining = count
        for i, stack in enumerate(self.slots):
            if not stack or stack.item_id != item_id:
                continue
            take = min(stack.count, remaining)
            stack.count -= take
            remaining -= take
            if stack.count == 0:
                self.slots[i] = None
            if remaining == 0:
                break
        return True

    def count_name(self, name: str) -> int:
        return self.count(REGISTRY.id_of(name))

    def take_name(self, name: str, count: int) -> bool:
        return self.take(REGISTRY.id_of(name), count)

    def has_need(self, need: NameCounts) -> bool:
        return all(self.count_name(name) >= count for name, count in need.items())

    def craft(self, need: NameCounts, give: NameCounts) -> bool:
        if not self.has_need(need):
            return False
        # Outputs must fit once inputs are consumed, otherwise nothing changes.
        trial = self.copy()
        for name, count in need.items():
            trial.take_name(name, count)
        for name, count in give.items():
            if not trial.add(REGISTRY.id_of(name), count):
                return False
        self.slots = trial.slots
        logger.debug("crafted %s from %s", give, need)
        return True

    def copy(self) -> "Inventory":
        clone = Inventory(len(self.slots))
        clone.slots = [ItemStack(s.item_id, s.count) if s else None for s in self.slots]
        clone.selected = self.selected
        return clone

    def is_empty(self) -> bool:
        return all(stack is None for stack in self.slots)


def roll_chest_loot(rng: random.Random) -> Inventory:
    inv = Inventory(CHEST_SLOTS)
    if rng.random() < 0.9:
        inv.add(ITEM_PLANK, 2 + rng.randrange(7))
    if rng.random() < 0.7:
        inv.add(ITEM_APPLE, 1 + rng.randrange(2))
    if rng.random() < 0.6:
        inv.add(ITEM_COAL, 1 + rng.randrange(3))
    if rng.random() < 0.55:
        inv.add(ITEM_IRON_ORE, 1 + rng.randrange(3))
    if rng.random() < 0.35:
        inv.add(ITEM_PICKAXE, 1)
    return inv


class World:
    def __init__(
        self,
        width: int = WORLD_W,
        height: int = WORLD_H,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.width = width
        self.height = height
        self.rng = rng if rng is not None else random.Random()
        self.grid: List[List[int]] = [[BLOCK_AIR] * width for _ in range(height)]
        self.heights: List[int] = [0] * width
        self.chests: Dict[Tuple[int, int], Inventory] = {}

    def in_bounds(self, tx: int, ty: int) -> bool:
        return 0 <= tx < self.width and 0 <= ty < self.height

    def get_tile(self, tx: int, ty: int) -> int:
        if not self.in_bounds(tx, ty):
            return BLOCK_BOUNDARY
        return self.grid[ty][tx]

    def set_tile(self, tx: int, ty: int, block_id: int) -> None:
        if not self.in_bounds(tx, ty):
            return
        self.grid[ty][tx] = block_id

    def is_solid(self, tx: int, ty: int) -> bool:
        return BLOCKS[self.get_tile(tx, ty)].solid

    def generate(self) -> None:
        rng = self.rng
        h = SURFACE_START
        for x in range(self.width):
            h += rng.choice((-1, 0, 0, 0, 1))
            h = int(clamp(h, SURFACE_MIN, SURFACE_MAX))
            self.heights[x] = h
            for y in range(h, self.height):
                if y == h:
                    self.set_tile(x, y, BLOCK_GRASS)
                elif y <= h + DIRT_DEPTH:
                    self.set_tile(x, y, BLOCK_DIRT)
                else:
                    self.set_tile(x, y, BLOCK_STONE)

        for x in range(*POND_X):
            for y in range(*POND_Y):
                if self.get_tile(x, y) == BLOCK_AIR:
                    self.set_tile(x, y, BLOCK_WATER)

        if self.width > 13:
            for _ in range(TREE_COUNT):
                self._grow_tree(6 + rng.randrange(self.width - 13))
        logger.debug("generated %dx%d world", self.width, self.height)

    def _grow_tree(self, x: int) -> None:
        rng = self.rng
        y = self.heights[x] - 1
        trunk = 3 + rng.randrange(4)
        for k in range(trunk):
            self.set_tile(x, y - k, BLOCK_WOOD)
        for dx in range(-2, 3):
            for dy in range(-2, 1):
                lx, ly = x + dx, y - trunk + dy
                if rng.random() < 0.62 and self.get_tile(lx, ly) == BLOCK_AIR:
                    self.set_tile(lx, ly, BLOCK_PLANK)

    def place_house(self, x0: int) -> Tuple[int, int]:
        """Build a hollow plank house on the ground at column ``x0``.

        Walls only fill empty cells. A chest with fresh loot and a furnace are
        placed inside. Returns the chest tile.
        """
        ground_y = self.heights[x0] - 1
        base_y = ground_y - HOUSE_H
        for x in range(x0, x0 + HOUSE_W):
            for y in range(base_y, ground_y):
                border = x in (x0, x0 + HOUSE_W - 1) or y in (base_y, ground_y - 1)
                if border and self.get_tile(x, y) == BLOCK_AIR:
                    self.set_tile(x, y, BLOCK_PLANK)

        door_x = x0 + HOUSE_W // 2
        self.set_tile(door_x, ground_y - 2, BLOCK_AIR)
        self.set_tile(door_x, ground_y - 3, BLOCK_AIR)

        chest = (x0 + 2, ground_y - 2)
        self.set_tile(*chest, BLOCK_CHEST)
        self.chests[chest] = roll_chest_loot(self.rng)

        self.set_tile(x0 + HOUSE_W - 3, ground_y - 2, BLOCK_FURNACE)
        logger.debug("placed house at column %d", x0)
        return chest

    def ensure_chest(self, tx: int, ty: int) -> Inventory:
        key = (tx, ty)
        if key not in self.chests:
            self.chests[key] = roll_chest_loot(self.rng)
        return self.chests[key]

    def visible_tiles(
        self, min_tx: int, min_ty: int, max_tx: int, max_ty: int
    ) -> Iterator[Tuple[int, int, int]]:
        for ty in range(max(0, min_ty), min(self.height, max_ty + 1)):
            row = self.grid[ty]
            for tx in range(max(0, min_tx), min(self.width, max_tx + 1)):
                if row[tx] != BLOCK_AIR:
                    yield tx, ty, row[tx]


class Player:
    def __init__(self, x: float, y: float) -> None:
        self.x = x
        self.y = y
        self.width = PLAYER_W
        self.height = PLAYER_H
        self.vx = 0.0
        self.vy = 0.0
        self.on_ground = False
        self.hp = 100.0
        self.hunger = 100.0
        self.inventory = Inventory(PLAYER_SLOTS)
        self.attack_cd = 0.0

    @property
    def rect(self) -> pygame.Rect:
        return pygame.Rect(int(self.x), int(self.y), self.width, self.height)

    @property
    def center(self) -> Tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2

    def overlaps_tile(self, tx: int, ty: int) -> bool:
        return boxes_overlap(
            self.x, self.y, self.width, self.height,
            tx * TILE_SIZE, ty * TILE_SIZE, TILE_SIZE, TILE_SIZE,
        )

    def collides_at(self, world: World, x: float, y: float) -> bool:
        left = math.floor(x / TILE_SIZE)
        right = math.floor((x + self.width) / TILE_SIZE)
        top = math.floor(y / TILE_SIZE)
        bottom = math.floor((y + self.height) / TILE_SIZE)
        for ty in range(top - 1, bottom + 2):
            for tx in range(left - 1, right + 2):
                if not world.is_solid(tx, ty):
                    continue
                if boxes_overlap(
                    x, y, self.width, self.height,
                    tx * TILE_SIZE, ty * TILE_SIZE, TILE_SIZE, TILE_SIZE,
                ):
                    return True
        return False

    def _move_axis(self, world: World, dx: float, dy: float) -> None:
        # Exactly one of dx / dy is non-zero per call.
        start_x, start_y = self.x, self.y
        if not self.collides_at(world, start_x + dx, start_y + dy):
            self.x, self.y = start_x + dx, start_y + dy
            return
        step_x = math.copysign(1.0, dx) if dx else 0.0
        step_y = math.copysign(1.0, dy) if dy else 0.0
        for _ in range(int(abs(dx) + abs(dy))):
            if self.collides_at(world, self.x + step_x, self.y + step_y):
                break
            self.x += step_x
            self.y += step_y

    def move_and_collide(self, world: World, dx: float, dy: float) -> None:
        self._move_axis(world, dx, 0.0)
        self._move_axis(world, 0.0, dy)

    def update(self, world: World, dt: float, move: int, jump: bool, run: bool) -> None:
        self.vx = move * (RUN_SPEED if run else MOVE_SPEED)
        if jump and self.on_ground:
            self.vy = -JUMP_V
            self.on_ground = False
        self.vy = min(self.vy + GRAVITY * dt, MAX_FALL_SPEED)

        self.move_and_collide(world, self.vx * dt, self.vy * dt)

        self.on_ground = self.collides_at(world, self.x, self.y + 1)
        if self.on_ground and self.vy > 0:
            self.vy = 0.0

    def tile_in_range(self, tx: int, ty: int, radius_tiles: float) -> bool:
        px, py = self.center
        bx = tx * TILE_SIZE + TILE_SIZE / 2
        by = ty * TILE_SIZE + TILE_SIZE / 2
        max_r = radius_tiles * TILE_SIZE
        return (px - bx) ** 2 + (py - by) ** 2 <= max_r * max_r


def tile_at(wx: float, wy: float) -> Tuple[int, int]:
    return math.floor(wx / TILE_SIZE), math.floor(wy / TILE_SIZE)
