from __future__ import annotations

import logging
import math
from typing import List, Optional, Tuple

import pygame

from tilesurvival2d.config import SimConfig
from tilesurvival2d.core import (
    BLOCKS,
    HOTBAR_SLOTS,
    ITEMS,
    RECIPES,
    TILE_SIZE,
)
from tilesurvival2d.sim import (
    TAB_CRAFT,
    TAB_SMELT,
    InputIntent,
    Outcome,
    Simulation,
    SimSnapshot,
)

logger = logging.getLogger(__name__)

SCREEN_WIDTH = 1280
SCREEN_HEIGHT = 720
FPS = 60

SKY_DAY = (90, 170, 255)
SKY_NIGHT = (15, 20, 40)
TEXT = (240, 240, 240)
ACCENT = (255, 230, 90)
MUTED = (140, 140, 150)
HP_RED = (220, 60, 60)
HUNGER_ORANGE = (230, 150, 50)


class Game:
    def __init__(self, config: Optional[SimConfig] = None) -> None:
        pygame.init()
        pygame.display.set_caption("Tile Survival 2D")
        self.screen = pygame.display.set_mode((SCREEN_WIDTH, SCREEN_HEIGHT), pygame.RESIZABLE)
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("consolas", 18)
        self.big_font = pygame.font.SysFont("consolas", 30, bold=True)

        self.sim = Simulation(config)
        world = self.sim.world
        logger.info(
            "new world %dx%d, seed=%s", world.width, world.height, self.sim.config.seed
        )
        self.intent = InputIntent()
        self.camera = pygame.Vector2(0.0, 0.0)
        self.running = True

    # --- Utility ------------------------------------------------------------
    def update_camera(self) -> None:
        w, h = self.screen.get_size()
        world = self.sim.world
        max_x = max(0, world.width * TILE_SIZE - w)
        max_y = max(0, world.height * TILE_SIZE - h)
        self.camera.x = min(max(self.sim.player.x - w / 2, 0), max_x)
        self.camera.y = min(max(self.sim.player.y - h / 2, 0), max_y)

    def screen_to_world(self, sx: int, sy: int) -> Tuple[float, float]:
        return sx + self.camera.x, sy + self.camera.y

    def hotbar_rects(self) -> List[pygame.Rect]:
        w, h = self.screen.get_size()
        size, pad = 96, 8
        x0 = (w - HOTBAR_SLOTS * (size + pad)) // 2
        return [pygame.Rect(x0 + i * (size + pad), h - 60, size, 44) for i in range(HOTBAR_SLOTS)]

    def panel_rect(self) -> pygame.Rect:
        w, h = self.screen.get_size()
        return pygame.Rect(w // 2 - 330, h // 2 - 240, 660, 480)

    def grid_rects(self) -> List[pygame.Rect]:
        panel = self.panel_rect()
        size, pad = 120, 6
        return [
            pygame.Rect(
                panel.x + 20 + (i % 5) * (size + pad), panel.y + 60 + (i // 5) * 40, size, 34
            )
            for i in range(len(self.sim.player.inventory.slots))
        ]

    def action_rects(self) -> List[pygame.Rect]:
        panel = self.panel_rect()
        return [pygame.Rect(panel.x + 20 + i * 160, panel.bottom - 120, 150, 36) for i in range(4)]

    def tab_rects(self) -> List[pygame.Rect]:
        panel = self.panel_rect()
        return [pygame.Rect(panel.right - 220 + i * 105, panel.y + 14, 100, 32) for i in range(2)]

    # --- Input --------------------------------------------------------------
    def process_events(self) -> None:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.VIDEORESIZE:
                self.screen = pygame.display.set_mode((event.w, event.h), pygame.RESIZABLE)
            elif event.type == pygame.KEYDOWN:
                if pygame.K_1 <= event.key < pygame.K_1 + HOTBAR_SLOTS:
                    self.sim.select_slot(event.key - pygame.K_1)
                elif event.key == pygame.K_e:
                    self.sim.set_panel_open(not self.sim.panel_open)
                elif event.key == pygame.K_ESCAPE:
                    if self.sim.panel_open:
                        self.sim.set_panel_open(False)
                    else:
                        self.running = False
                elif event.key == pygame.K_f:
                    self.intent.use = True
            elif event.type == pygame.MOUSEBUTTONDOWN:
                if self.sim.panel_open and event.button == 1:
                    self.click_panel(event.pos)
                elif event.button == 3:
                    self.intent.use = True

    def click_panel(self, pos: Tuple[int, int]) -> None:
        for i, rect in enumerate(self.tab_rects()):
            if rect.collidepoint(pos):
                self.sim.set_tab((TAB_CRAFT, TAB_SMELT)[i])
                return
        for i, rect in enumerate(self.grid_rects()):
            if rect.collidepoint(pos):
                self.sim.select_slot(i)
                return
        for i, rect in enumerate(self.action_rects()):
            if not rect.collidepoint(pos):
                continue
            if self.sim.tab == TAB_CRAFT:
                self.sim.craft(i)
            elif i == 0:
                self.sim.furnace_load()
            elif i == 1:
                self.sim.furnace_fuel()
            elif i == 2:
                self.sim.furnace_take()
            return

    def read_intent(self) -> None:
        keys = pygame.key.get_pressed()
        move = 0
        if keys[pygame.K_a] or keys[pygame.K_LEFT]:
            move -= 1
        if keys[pygame.K_d] or keys[pygame.K_RIGHT]:
            move += 1
        self.intent.move = move
        self.intent.jump = bool(keys[pygame.K_SPACE] or keys[pygame.K_w] or keys[pygame.K_UP])
        self.intent.run = bool(keys[pygame.K_LSHIFT] or keys[pygame.K_RSHIFT])
        self.intent.hit = bool(pygame.mouse.get_pressed(3)[0]) and not self.sim.panel_open
        self.intent.aim_x, self.intent.aim_y = self.screen_to_world(*pygame.mouse.get_pos())

    # --- Rendering ----------------------------------------------------------
    def draw_world(self, snap: SimSnapshot) -> None:
        self.screen.fill(SKY_NIGHT if snap.is_night else SKY_DAY)
        for tx, ty, block_id in snap.tiles:
            color = BLOCKS[block_id].color
            if color is None:
                continue
            rect = pygame.Rect(
                int(tx * TILE_SIZE - self.camera.x), int(ty * TILE_SIZE - self.camera.y),
                TILE_SIZE, TILE_SIZE,
            )
            pygame.draw.rect(self.screen, color, rect)
            pygame.draw.rect(self.screen, (0, 0, 0), rect, width=1)

        mx, my = pygame.mouse.get_pos()
        ax, ay = self.screen_to_world(mx, my)
        tx, ty = math.floor(ax / TILE_SIZE), math.floor(ay / TILE_SIZE)
        aim = pygame.Rect(
            int(tx * TILE_SIZE - self.camera.x), int(ty * TILE_SIZE - self.camera.y),
            TILE_SIZE, TILE_SIZE,
        )
        pygame.draw.rect(self.screen, TEXT, aim, width=2)
        if snap.mining_target is not None and snap.mining_fraction > 0:
            bar = pygame.Rect(aim.x, aim.bottom + 2, int(TILE_SIZE * snap.mining_fraction), 4)
            pygame.draw.rect(self.screen, ACCENT, bar)

        body = self.sim.player.rect.move(-int(self.camera.x), -int(self.camera.y))
        pygame.draw.rect(self.screen, (60, 192, 255), body)
        pygame.draw.rect(self.screen, (0, 0, 0), body, width=1)

        if snap.darkness > 0:
            overlay = pygame.Surface(self.screen.get_size(), pygame.SRCALPHA)
            overlay.fill((10, 10, 20, int(255 * snap.darkness)))
            self.screen.blit(overlay, (0, 0))

    def draw_bar(self, x: int, y: int, value: float, color: Tuple[int, int, int]) -> None:
        pygame.draw.rect(self.screen, (30, 30, 30), (x, y, 200, 14))
        pygame.draw.rect(self.screen, color, (x, y, int(2 * value), 14))

    def draw_hud(self, snap: SimSnapshot) -> None:
        self.draw_bar(12, 12, snap.hp, HP_RED)
        self.draw_bar(12, 32, snap.hunger, HUNGER_ORANGE)
        phase = "NIGHT" if snap.is_night else "DAY"
        text = self.font.render(
            f"DAY {snap.day}/{snap.win_days}   {phase}   (E to open)", True, TEXT
        )
        self.screen.blit(text, (224, 12))

        for i, rect in enumerate(self.hotbar_rects()):
            self.draw_slot(rect, snap.slots[i], i == snap.selected)

    def draw_slot(self, rect: pygame.Rect, slot: Optional[Tuple[int, int]], selected: bool) -> None:
        pygame.draw.rect(self.screen, (20, 20, 28), rect, border_radius=4)
        pygame.draw.rect(self.screen, ACCENT if selected else MUTED, rect, width=2, border_radius=4)
        label = f"{ITEMS[slot[0]].name} x{slot[1]}" if slot else "-"
        text = self.font.render(label, True, TEXT)
        self.screen.blit(text, (rect.x + 6, rect.y + (rect.height - text.get_height()) // 2))

    def draw_panel(self, snap: SimSnapshot) -> None:
        panel = self.panel_rect()
        pygame.draw.rect(self.screen, (16, 16, 24), panel, border_radius=8)
        pygame.draw.rect(self.screen, MUTED, panel, width=2, border_radius=8)
        title = self.big_font.render("INVENTORY", True, TEXT)
        self.screen.blit(title, (panel.x + 20, panel.y + 14))

        for i, rect in enumerate(self.tab_rects()):
            tab = (TAB_CRAFT, TAB_SMELT)[i]
            pygame.draw.rect(self.screen, ACCENT if snap.tab == tab else MUTED, rect, width=2)
            self.screen.blit(self.font.render(tab.upper(), True, TEXT), (rect.x + 10, rect.y + 6))

        for i, rect in enumerate(self.grid_rects()):
            self.draw_slot(rect, snap.slots[i], i == snap.selected)

        if snap.tab == TAB_CRAFT:
            labels = [f"CRAFT {r.label}" for r in RECIPES]
            enabled = snap.craftable
        else:
            labels = ["LOAD", "FUEL", "TAKE"]
            enabled = [True, True, snap.furnace.output is not None]
            status = (
                f"input: {snap.furnace.input or '-'}   "
                f"output: {snap.furnace.output or '-'}   "
                f"fuel: {snap.furnace.fuel:.1f}s"
            )
            self.screen.blit(
                self.font.render(status, True, TEXT), (panel.x + 20, panel.bottom - 60)
            )

        for rect, label, ok in zip(self.action_rects(), labels, enabled):
            pygame.draw.rect(self.screen, (30, 30, 40), rect, border_radius=4)
            pygame.draw.rect(self.screen, ACCENT if ok else MUTED, rect, width=2, border_radius=4)
            caption = self.font.render(label, True, TEXT if ok else MUTED)
            self.screen.blit(caption, (rect.x + 8, rect.y + 8))

    def draw_outcome(self, outcome: Outcome) -> None:
        self.screen.fill((16, 16, 21))
        if outcome is Outcome.WON:
            message = f"YOU SURVIVED {self.sim.clock.win_days} DAYS! GG"
            color = TEXT
        else:
            message = "YOU DIED"
            color = (255, 170, 170)
        text = self.big_font.render(message, True, color)
        w, h = self.screen.get_size()
        self.screen.blit(text, ((w - text.get_width()) // 2, h // 2))

    def render(self) -> None:
        w, h = self.screen.get_size()
        min_tx = math.floor(self.camera.x / TILE_SIZE)
        min_ty = math.floor(self.camera.y / TILE_SIZE)
        snap = self.sim.snapshot(
            min_tx, min_ty, min_tx + w // TILE_SIZE + 2, min_ty + h // TILE_SIZE + 2
        )

        if snap.outcome is not Outcome.NONE:
            self.draw_outcome(snap.outcome)
        else:
            self.draw_world(snap)
            self.draw_hud(snap)
            if snap.panel_open:
                self.draw_panel(snap)
        pygame.display.flip()

    # --- Main loop ----------------------------------------------------------
    def run(self) -> None:
        while self.running:
            dt = self.clock.tick(FPS) / 1000.0
            self.process_events()
            self.read_intent()
            self.sim.tick(dt, self.intent)
            self.update_camera()
            self.render()

        pygame.quit()


def main() -> None:
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    Game().run()


if __name__ == "__main__":
    main()
