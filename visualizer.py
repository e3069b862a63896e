#Pygame visualization for layered mazes + the two player path game

from __future__ import annotations

import logging

import pygame

from layered_maze import CELL_SIZE, DIRS, LEFT, PIXEL_SIZE, UP, opposite

logger = logging.getLogger(__name__)


#Five colour palette for highlighted cycles
CYCLE_PALETTE = [
    (162, 74, 124),
    (251, 136, 145),
    (255, 192, 148),
    (146, 221, 200),
    (101, 178, 188),
]

#right, up, left, down, undo
PLAYER_ONE_KEYS = (pygame.K_RIGHT, pygame.K_UP, pygame.K_LEFT, pygame.K_DOWN, pygame.K_BACKSPACE)
PLAYER_TWO_KEYS = (pygame.K_d, pygame.K_w, pygame.K_a, pygame.K_s, pygame.K_q)
UNDO = 4


class PlayerTrail:
    #A player's path through the maze, grown one connection at a time
    #Stepping back onto the previous cell undoes the last step instead of doubling back

    def __init__(self, maze, start, color, keys=PLAYER_ONE_KEYS):
        if start is None:
            raise ValueError("player needs a start cell")
        self.maze = maze
        self.cells = [start]
        self.color = color
        self.keys = keys

    @property
    def head(self):
        return self.cells[-1]

    def action_for(self, key):
        return self.keys.index(key) if key in self.keys else None

    def backtrack(self) -> bool:
        if len(self.cells) < 2:
            return False
        self.cells.pop()
        return True

    def move(self, direction: int) -> bool:
        nxt = self.maze.follow(self.head, direction)
        if nxt is None:
            return False  # wall
        if len(self.cells) > 1 and nxt is self.cells[-2]:
            return self.backtrack()
        self.cells.append(nxt)
        return True

    def handle_key(self, key) -> bool:
        action = self.action_for(key)
        if action is None:
            return False
        if action == UNDO:
            return self.backtrack()
        return self.move(action)

    def reaches(self, other: "PlayerTrail") -> bool:
        return any(cell is other.head for cell in self.cells)


def trails_meet(a: PlayerTrail, b: PlayerTrail) -> bool:
    return a.reaches(b) or b.reaches(a)


class MazeVisualizer:
    #Draws the maze from its connection masks, bridges cover the corridors they cross
    #C toggles cycle highlighting, P toggles the solution, F fullscreen, Esc quits

    def __init__(
        self,
        maze,
        cycles=None,
        pixel_size=PIXEL_SIZE,
        cell_size=CELL_SIZE,
        title_suffix="",
    ):
        self.maze = maze
        self.cycles = cycles or []
        self.pixel_size = pixel_size
        self.cell_size = cell_size
        self.title_suffix = title_suffix
        self.show_cycles = False
        self.show_solution = False
        self.players = [
            PlayerTrail(maze, maze.start, (187, 0, 0), PLAYER_ONE_KEYS),
            PlayerTrail(maze, maze.finish, (0, 0, 187), PLAYER_TWO_KEYS),
        ]
        self.won = False
        #Rotating line offset so overlapping cycles stay distinguishable
        self.path_counter = -1
        self.cycle_offsets = [self._next_thin_offset() for _ in self.cycles]
        self._tiles_scale = None
        self._tiles = []

    def _next_thin_offset(self) -> int:
        path_count = (self.cell_size - 6) // 2
        self.path_counter += 1
        return 3 + (self.path_counter % path_count) * 2

    def _compute_scale(self, container_w, container_h):
        cs = self.cell_size
        return max(1, min(container_w // (self.maze.width * cs), container_h // (self.maze.height * cs)))

    def _build_tiles(self, scale):
        #One surface per connection mask (index 0 is the unopened checkerboard), plus start/end markers
        cs = self.cell_size
        size = cs * scale

        def make_surface():
            surface = pygame.Surface((size, size), pygame.SRCALPHA)
            surface.fill((0, 0, 0, 0))
            return surface

        def fill(surface, color, x, y, w, h):
            pygame.draw.rect(surface, color, pygame.Rect(x * scale, y * scale, w * scale, h * scale))

        tiles = []
        empty = make_surface()
        for y in range(cs):
            for x in range(cs):
                fill(empty, (255, 255, 255) if (x + y) % 2 else (0, 0, 0), x, y, 1, 1)
        tiles.append(empty)

        for mask in range(1, 16):
            surface = make_surface()
            right, up, left, down = (bool(mask & (1 << d)) for d in range(4))
            for margin, color in ((1, (0, 0, 0)), (2, (255, 255, 255))):
                length_margin = 2 * margin - (margin if right else 0) - (margin if left else 0)
                fill(surface, color, 0 if left else margin, margin, cs - length_margin, cs - 2 * margin)
                length_margin = 2 * margin - (margin if up else 0) - (margin if down else 0)
                fill(surface, color, margin, 0 if up else margin, cs - 2 * margin, cs - length_margin)
            tiles.append(surface)

        start = make_surface()
        fill(start, (0, 0, 0), 3, 3, cs - 6, cs - 6)
        finish = make_surface()
        half = cs * scale // 2
        inset = 3 * scale
        pygame.draw.polygon(
            finish,
            (0, 0, 0),
            [(half, inset), (size - inset, half), (half, size - inset), (inset, half)],
        )
        self._tiles = tiles
        self._start_marker = start
        self._finish_marker = finish
        self._tiles_scale = scale

    def _draw_connection(self, screen, cell, direction, color, scale):
        #Skip cells hidden under a bridge
        above = self.maze.cell_at(cell.x, cell.y, cell.z + 1)
        if above is not None and above.open:
            return
        cs = self.cell_size
        horizontal = direction % 2 == 0
        rect = pygame.Rect(
            (cell.x * cs + (0 if direction == LEFT else 3)) * scale,
            (cell.y * cs + (0 if direction == UP else 3)) * scale,
            (cs - (3 if horizontal else 6)) * scale,
            (cs - (3 if not horizontal else 6)) * scale,
        )
        pygame.draw.rect(screen, color, rect)

    def draw_path(self, screen, path, color, scale):
        for prev, cell in zip(path, path[1:]):
            step = (cell.x - prev.x, cell.y - prev.y)
            direction = next((d for d, delta in DIRS.items() if delta == step), None)
            if direction is None:
                raise ValueError(f"path jumps from {prev.position} to {cell.position}")
            self._draw_connection(screen, cell, opposite(direction), color, scale)
            self._draw_connection(screen, prev, direction, color, scale)

    def draw_thin_path(self, screen, path, color, offset, scale):
        cs = self.cell_size
        for prev, cell in zip(path, path[1:]):
            pygame.draw.line(
                screen,
                color,
                ((prev.x * cs + offset) * scale, (prev.y * cs + offset) * scale),
                ((cell.x * cs + offset) * scale, (cell.y * cs + offset) * scale),
                max(1, scale),
            )

    def draw(self, screen, scale):
        if scale != self._tiles_scale:
            self._build_tiles(scale)
        size = self.cell_size * scale
        #Lower layer first, open bridge cells on top with their transparent sides
        for z, layer in enumerate(self.maze.to_tiles()):
            for y, row in enumerate(layer):
                for x, mask in enumerate(row):
                    if z == 0 or mask:
                        screen.blit(self._tiles[mask], (x * size, y * size))

        if self.maze.start is not None:
            screen.blit(self._start_marker, (self.maze.start.x * size, self.maze.start.y * size))
            screen.blit(self._finish_marker, (self.maze.finish.x * size, self.maze.finish.y * size))

        if self.show_solution:
            self.draw_path(screen, self.maze.solution, (60, 160, 60), scale)
        if self.show_cycles:
            for idx, cycle in enumerate(self.cycles):
                self.draw_thin_path(screen, cycle, CYCLE_PALETTE[idx % len(CYCLE_PALETTE)], self.cycle_offsets[idx], scale)
        for player in self.players:
            self.draw_path(screen, player.cells, player.color, scale)

    def handle_key(self, key):
        if key == pygame.K_c:
            self.show_cycles = not self.show_cycles
            return
        if key == pygame.K_p:
            self.show_solution = not self.show_solution
            return
        if self.won:
            return
        for player in self.players:
            #Only a move can bring the paths together
            moved = player.handle_key(key) and player.action_for(key) != UNDO
            if moved and trails_meet(*self.players):
                self.won = True
                logger.info("paths met after %d and %d steps", len(self.players[0].cells) - 1, len(self.players[1].cells) - 1)

    def run(self):
        cs = self.cell_size
        pygame.init()
        window_size = (self.maze.width * cs * self.pixel_size, self.maze.height * cs * self.pixel_size)
        screen = pygame.display.set_mode(window_size, pygame.RESIZABLE)
        pygame.display.set_caption(f"Maze{self.title_suffix}")
        font = pygame.font.SysFont(None, 36)
        clock = pygame.time.Clock()
        fullscreen = False
        last_window_size = screen.get_size()

        running = True
        while running:
            clock.tick(30)
            for event in pygame.event.get():
                if event.type == pygame.QUIT or (
                    event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE
                ):
                    running = False
                elif event.type == pygame.VIDEORESIZE and not fullscreen:
                    last_window_size = (event.w, event.h)
                    screen = pygame.display.set_mode(last_window_size, pygame.RESIZABLE)
                elif event.type == pygame.KEYDOWN and event.key == pygame.K_f:
                    fullscreen = not fullscreen
                    if fullscreen:
                        display_info = pygame.display.Info()
                        screen = pygame.display.set_mode((display_info.current_w, display_info.current_h), pygame.FULLSCREEN)
                    else:
                        screen = pygame.display.set_mode(last_window_size, pygame.RESIZABLE)
                elif event.type == pygame.KEYDOWN:
                    self.handle_key(event.key)

            screen.fill((10, 10, 10))
            self.draw(screen, self._compute_scale(*screen.get_size()))
            if self.won:
                surface = font.render("Paths met!", True, (235, 235, 235), (25, 25, 25))
                screen.blit(surface, (8, 8))
            pygame.display.flip()

        pygame.quit()
