from __future__ import annotations

import copy
import random

import pygame

from tilesurvival2d.core import (
    BLOCK_AIR,
    BLOCK_BOUNDARY,
    BLOCK_CHEST,
    BLOCK_DIRT,
    BLOCK_FURNACE,
    BLOCK_GRASS,
    BLOCK_PLANK,
    BLOCK_STONE,
    BLOCK_WATER,
    BLOCK_WOOD,
    BLOCKS,
    DIRT_DEPTH,
    ITEM_APPLE,
    ITEM_PLANK,
    ITEM_STONE,
    ITEM_WOOD,
    ITEMS,
    MAX_FALL_SPEED,
    PLAYER_H,
    PLAYER_W,
    REGISTRY,
    SURFACE_MAX,
    SURFACE_MIN,
    TILE_SIZE,
    Inventory,
    ItemStack,
    Player,
    World,
    roll_chest_loot,
    tile_at,
)


def flat_world(width: int = 20, height: int = 20, floor_y: int = 10) -> World:
    world = World(width, height, random.Random(0))
    for ty in range(floor_y, height):
        for tx in range(width):
            world.set_tile(tx, ty, BLOCK_STONE)
    world.heights = [floor_y] * width
    return world


def test_registry_is_bijective() -> None:
    assert len(REGISTRY) == len(ITEMS)
    for item_id, item in ITEMS.items():
        assert REGISTRY.id_of(item.name) == item_id
        assert REGISTRY.name_of(item_id) == item.name
    assert "apple" in REGISTRY
    assert "diamond" not in REGISTRY


def test_block_drops_reuse_item_codes() -> None:
    for block in BLOCKS.values():
        if block.drop_id is not None:
            assert block.drop_id == block.id
            assert ITEMS[block.drop_id].kind == "block"


def test_out_of_bounds_reads_are_solid_and_writes_are_ignored() -> None:
    world = World(8, 6, random.Random(1))
    before = copy.deepcopy(world.grid)

    for tx, ty in [(-1, 0), (0, -1), (8, 0), (0, 6), (-5, -5), (100, 100)]:
        assert world.get_tile(tx, ty) == BLOCK_BOUNDARY
        assert world.is_solid(tx, ty)
        world.set_tile(tx, ty, BLOCK_WOOD)

    assert world.grid == before


def test_set_and_get_tile_in_bounds() -> None:
    world = World(8, 6, random.Random(1))
    world.set_tile(3, 2, BLOCK_WOOD)
    assert world.get_tile(3, 2) == BLOCK_WOOD
    world.set_tile(3, 2, BLOCK_AIR)
    assert world.get_tile(3, 2) == BLOCK_AIR


def test_generated_columns_have_grass_dirt_stone_layers() -> None:
    world = World(rng=random.Random(42))
    world.generate()

    for x in range(world.width):
        h = world.heights[x]
        assert SURFACE_MIN <= h <= SURFACE_MAX
        assert world.get_tile(x, h) == BLOCK_GRASS
        for y in range(h + 1, h + 1 + DIRT_DEPTH):
            assert world.get_tile(x, y) == BLOCK_DIRT
        for y in range(h + 1 + DIRT_DEPTH, world.height):
            assert world.get_tile(x, y) == BLOCK_STONE
        for y in range(0, h):
            assert world.get_tile(x, y) in (BLOCK_AIR, BLOCK_WOOD, BLOCK_PLANK, BLOCK_WATER)


def test_generation_heights_walk_in_unit_steps() -> None:
    world = World(rng=random.Random(7))
    world.generate()
    for a, b in zip(world.heights, world.heights[1:]):
        assert abs(a - b) <= 1


def test_generation_is_reproducible_for_a_seed() -> None:
    a = World(rng=random.Random(5))
    b = World(rng=random.Random(5))
    a.generate()
    b.generate()
    assert a.grid == b.grid
    assert a.heights == b.heights


def test_place_house_builds_walls_door_chest_and_furnace() -> None:
    world = flat_world(width=40, height=30, floor_y=20)
    chest = world.place_house(5)

    # ground row is 19, roof row is 13, floor row is 18
    assert world.get_tile(5, 13) == BLOCK_PLANK
    assert world.get_tile(5, 15) == BLOCK_PLANK
    assert world.get_tile(14, 15) == BLOCK_PLANK
    assert world.get_tile(9, 18) == BLOCK_PLANK
    assert world.get_tile(8, 15) == BLOCK_AIR
    assert world.get_tile(10, 17) == BLOCK_AIR
    assert world.get_tile(10, 16) == BLOCK_AIR

    assert chest == (7, 17)
    assert world.get_tile(7, 17) == BLOCK_CHEST
    assert (7, 17) in world.chests
    assert world.get_tile(12, 17) == BLOCK_FURNACE


def test_place_house_keeps_existing_blocks() -> None:
    world = flat_world(width=40, height=30, floor_y=20)
    world.set_tile(5, 14, BLOCK_WOOD)
    world.place_house(5)
    assert world.get_tile(5, 14) == BLOCK_WOOD


def test_visible_tiles_window_skips_air_and_clips() -> None:
    world = World(10, 10, random.Random(0))
    world.set_tile(1, 1, BLOCK_DIRT)
    world.set_tile(8, 8, BLOCK_DIRT)

    tiles = list(world.visible_tiles(-5, -5, 3, 3))
    assert tiles == [(1, 1, BLOCK_DIRT)]


def test_chest_loot_uses_known_items() -> None:
    loot = roll_chest_loot(random.Random(3))
    assert len(loot.slots) == 12
    for stack in loot.slots:
        if stack is not None:
            assert stack.item_id in ITEMS
            assert stack.count >= 1


def test_inventory_add_merges_then_fills_first_empty_slot() -> None:
    inv = Inventory(3)
    assert inv.add(ITEM_APPLE, 2)
    assert inv.add(ITEM_PLANK, 5)
    assert inv.add(ITEM_APPLE, 3)

    assert inv.slots[0] == ItemStack(ITEM_APPLE, 5)
    assert inv.slots[1] == ItemStack(ITEM_PLANK, 5)
    assert inv.slots[2] is None


def test_inventory_add_fails_without_room_and_changes_nothing() -> None:
    inv = Inventory(2)
    inv.add(ITEM_APPLE, 1)
    inv.add(ITEM_PLANK, 1)
    before = copy.deepcopy(inv.slots)

    assert not inv.add(ITEM_STONE, 4)
    assert inv.slots == before


def test_inventory_rejects_unknown_items_and_bad_counts() -> None:
    inv = Inventory(4)
    assert not inv.add(999, 1)
    assert not inv.add(ITEM_APPLE, 0)
    assert inv.is_empty()


def test_inventory_add_then_take_round_trip() -> None:
    inv = Inventory(5)
    inv.add(ITEM_PLANK, 3)
    before = copy.deepcopy(inv.slots)

    assert inv.add(ITEM_APPLE, 7)
    assert inv.take_name("apple", 7)
    assert inv.slots == before


def test_take_name_spans_stacks_and_refuses_shortfall() -> None:
    inv = Inventory(4)
    inv.slots[0] = ItemStack(ITEM_STONE, 2)
    inv.slots[2] = ItemStack(ITEM_STONE, 3)
    before = copy.deepcopy(inv.slots)

    assert not inv.take_name("stone", 6)
    assert inv.slots == before

    assert inv.take_name("stone", 4)
    assert inv.slots[0] is None
    assert inv.slots[2] == ItemStack(ITEM_STONE, 1)
    assert inv.count_name("stone") == 1


def test_remove_one_selected_empties_slot_at_zero() -> None:
    inv = Inventory(3)
    inv.add(ITEM_APPLE, 1)
    assert inv.select(0)
    assert inv.remove_one_selected() == ITEM_APPLE
    assert inv.slots[0] is None
    assert inv.remove_one_selected() is None


def test_select_rejects_out_of_range_index() -> None:
    inv = Inventory(3)
    assert not inv.select(3)
    assert not inv.select(-1)
    assert inv.selected == 0


def test_craft_applies_fully() -> None:
    inv = Inventory(5)
    inv.add(ITEM_PLANK, 5)
    inv.add(ITEM_STONE, 2)

    assert inv.has_need({"plank": 3, "stone": 2})
    assert inv.craft({"plank": 3, "stone": 2}, {"pickaxe": 1})
    assert inv.count_name("plank") == 2
    assert inv.count_name("stone") == 0
    assert inv.count_name("pickaxe") == 1


def test_craft_without_materials_changes_nothing() -> None:
    inv = Inventory(5)
    inv.add(ITEM_PLANK, 5)
    inv.add(ITEM_STONE, 1)
    before = copy.deepcopy(inv.slots)

    assert not inv.craft({"plank": 3, "stone": 2}, {"pickaxe": 1})
    assert inv.slots == before


def test_craft_without_room_for_output_changes_nothing() -> None:
    inv = Inventory(2)
    inv.add(ITEM_WOOD, 1)
    inv.add(ITEM_STONE, 5)
    before = copy.deepcopy(inv.slots)

    assert not inv.craft({"stone": 2}, {"plank": 4})
    assert inv.slots == before


def test_craft_reuses_slot_freed_by_inputs() -> None:
    inv = Inventory(1)
    inv.add(ITEM_WOOD, 1)
    assert inv.craft({"wood": 1}, {"plank": 4})
    assert inv.slots[0] == ItemStack(ITEM_PLANK, 4)


def test_tile_at_floors_negative_coordinates() -> None:
    assert tile_at(0, 0) == (0, 0)
    assert tile_at(TILE_SIZE - 0.1, TILE_SIZE) == (0, 1)
    assert tile_at(-0.5, -TILE_SIZE - 1) == (-1, -2)


def test_player_rect_matches_box() -> None:
    player = Player(10.7, 20.2)
    assert player.rect == pygame.Rect(10, 20, PLAYER_W, PLAYER_H)


def test_player_resting_on_floor_is_grounded() -> None:
    world = flat_world()
    floor_top = 10 * TILE_SIZE
    player = Player(48.0, float(floor_top - PLAYER_H))

    player.update(world, 1 / 60.0, 0, False, False)

    assert player.on_ground
    assert player.vy == 0.0
    assert player.y == floor_top - PLAYER_H


def test_player_falls_and_lands_without_penetrating() -> None:
    world = flat_world()
    floor_top = 10 * TILE_SIZE
    player = Player(48.0, 100.0)

    for _ in range(120):
        player.update(world, 1 / 60.0, 0, False, False)

    assert player.on_ground
    assert player.vy == 0.0
    assert floor_top - 1 < player.y + PLAYER_H <= floor_top
    assert not player.collides_at(world, player.x, player.y)


def test_fast_fall_lands_on_thin_roof() -> None:
    world = flat_world()
    roof_y = 5
    for tx in range(0, 6):
        world.set_tile(tx, roof_y, BLOCK_PLANK)
    player = Player(48.0, 70.0)
    player.vy = 2000.0

    player.update(world, 0.05, 0, False, False)

    assert player.y + PLAYER_H <= roof_y * TILE_SIZE
    assert player.on_ground
    assert player.vy == 0.0


def test_fall_speed_is_capped() -> None:
    world = flat_world(height=200, floor_y=190)
    player = Player(48.0, 0.0)
    for _ in range(20):
        player.update(world, 0.05, 0, False, False)
    assert player.vy == MAX_FALL_SPEED


def test_player_walking_into_wall_stops_at_boundary() -> None:
    world = flat_world()
    wall_x = 8
    for ty in range(0, 10):
        world.set_tile(wall_x, ty, BLOCK_STONE)
    player = Player(100.0, float(10 * TILE_SIZE - PLAYER_H))

    for _ in range(60):
        player.update(world, 1 / 60.0, 1, False, False)
        assert not player.collides_at(world, player.x, player.y)

    wall_left = wall_x * TILE_SIZE
    assert wall_left - 1 < player.x + PLAYER_W <= wall_left


def test_player_running_is_faster_than_walking() -> None:
    world = flat_world()
    walker = Player(48.0, float(10 * TILE_SIZE - PLAYER_H))
    runner = Player(48.0, float(10 * TILE_SIZE - PLAYER_H))

    walker.update(world, 0.05, 1, False, False)
    runner.update(world, 0.05, 1, False, True)

    assert runner.x > walker.x > 48.0


def test_jump_only_when_grounded() -> None:
    world = flat_world()
    player = Player(48.0, float(10 * TILE_SIZE - PLAYER_H))
    player.update(world, 1 / 60.0, 0, False, False)
    assert player.on_ground

    start_y = player.y
    player.update(world, 1 / 60.0, 0, True, False)
    assert player.vy < 0
    assert player.y < start_y
    assert not player.on_ground

    vy = player.vy
    player.update(world, 1 / 60.0, 0, True, False)
    assert player.vy > vy


def test_tile_in_range_uses_circular_radius() -> None:
    player = Player(0.0, 0.0)
    assert player.tile_in_range(0, 0, 1)
    assert player.tile_in_range(3, 0, 6)
    assert not player.tile_in_range(6, 6, 6)
