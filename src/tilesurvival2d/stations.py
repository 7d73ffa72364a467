from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from tilesurvival2d.core import FUEL_VALUE, REGISTRY, SMELT_RECIPES, Inventory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FurnaceStatus:
    input: Optional[str]
    output: Optional[str]
    fuel: float
    prog: float
    required: float


def chest_transfer(chest: Inventory, inventory: Inventory) -> bool:
    """Move one unit of the chest's first occupied slot into ``inventory``.

    Only the first occupied slot is considered. If the receiving inventory
    is full the chest is left untouched.
    """
    for i, stack in enumerate(chest.slots):
        if stack is None:
            continue
        if not inventory.add(stack.item_id, 1):
            return False
        chest.remove_one(i)
        return True
    return False


class Furnace:
    def __init__(self) -> None:
        self.input: Optional[str] = None
        self.output: Optional[str] = None
        self.prog = 0.0
        self.fuel = 0.0

    @property
    def required(self) -> float:
        if self.input is None:
            return 0.0
        return SMELT_RECIPES[self.input].seconds

    def load(self, inventory: Inventory) -> bool:
        item = inventory.selected_item()
        if item is None or item.name not in SMELT_RECIPES:
            return False
        if self.input is not None:
            return False
        self.input = item.name
        inventory.remove_one_selected()
        return True

    def add_fuel(self, inventory: Inventory) -> bool:
        item = inventory.selected_item()
        if item is None or item.name not in FUEL_VALUE:
            return False
        inventory.remove_one_selected()
        self.fuel += FUEL_VALUE[item.name]
        return True

    def take(self, inventory: Inventory) -> bool:
        if self.output is None:
            return False
        if not inventory.add(REGISTRY.id_of(self.output), 1):
            return False
        self.output = None
        return True

    def update(self, dt: float) -> None:
        if self.input is None:
            self.prog = 0.0
            return
        if self.fuel <= 0:
            return
        recipe = SMELT_RECIPES[self.input]
        self.fuel = max(0.0, self.fuel - dt)
        self.prog += dt
        if self.prog >= recipe.seconds:
            if self.output is not None:
                logger.debug("furnace output %s replaced by %s", self.output, recipe.output)
            self.prog = 0.0
            self.input = None
            self.output = recipe.output
            logger.debug("smelted %s", recipe.output)

    def status(self) -> FurnaceStatus:
        return FurnaceStatus(self.input, self.output, self.fuel, self.prog, self.required)
