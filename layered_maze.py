#Two layer maze generation and graph analysis
#A maze is grown from a seed cell with randomized strands, it can loop back into itself
#and it can bridge over straight corridors through a second layer
#After generation we pick a start and end near the graph diameter with two BFS passes,
#then a third BFS pass finds back edges so cycles can be flagged for removal

#To run this code, open terminal, follow directories to where the files are then run "python3 layered_maze.py"
#To save metrics for multiple runs to a csv file, run "python3 layered_maze.py --mode cli --runs 10 --csv-output results.csv"

from __future__ import annotations

import argparse
import logging
import random
import sys
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Callable, Dict, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)


RIGHT, UP, LEFT, DOWN = range(4)

DIRS = {
    RIGHT: (1, 0),
    UP: (0, -1),
    LEFT: (-1, 0),
    DOWN: (0, 1),
}

LAYERS = 2
SEED_MARGIN = 5

#Window sizing, a cell is drawn as CELL_SIZE logical pixels, each logical pixel is PIXEL_SIZE screen pixels
PIXEL_SIZE = 2
CELL_SIZE = 16


def opposite(direction: int) -> int:
    return (direction + 2) % 4


def viewport_cells(
    screen_width: int,
    screen_height: int,
    pixel_size: int = PIXEL_SIZE,
    cell_size: int = CELL_SIZE,
) -> Tuple[int, int]:
    #Whole tiles only, leftover pixels on the right/bottom edge stay unused
    return screen_width // pixel_size // cell_size, screen_height // pixel_size // cell_size


class VerticalDirection(IntEnum):
    DOWN = -1
    FLAT = 0
    UP = 1


class TraversalState(Enum):
    UNDISCOVERED = 0
    DISCOVERED = 1
    PROCESSED = 2


class MazeError(Exception):
    pass


class InvalidStart(MazeError):
    pass


class CorruptTopology(MazeError):
    pass


class NoSolution(MazeError):
    pass


@dataclass(eq=False)
class Cell:
    x: int
    y: int
    z: int
    index: int
    open: bool = False
    connections: int = 0
    vertical: List[VerticalDirection] = field(
        default_factory=lambda: [VerticalDirection.FLAT] * 4
    )
    state: TraversalState = TraversalState.UNDISCOVERED

    def connected(self, direction: int) -> bool:
        return bool(self.connections & (1 << direction))

    def connect(self, direction: int, vertical: VerticalDirection = VerticalDirection.FLAT) -> None:
        self.connections |= 1 << direction
        self.vertical[direction] = vertical

    @property
    def degree(self) -> int:
        return bin(self.connections).count("1")

    def directions(self) -> List[int]:
        return [d for d in range(4) if self.connected(d)]

    @property
    def position(self) -> Tuple[int, int, int]:
        return self.x, self.y, self.z


@dataclass
class GrowthStats:
    seed: Optional[Tuple[int, int, int]] = None
    connections: int = 0
    loops: int = 0
    bridges: int = 0
    dead_ends: int = 0
    elapsed: float = 0.0


Hook = Callable[..., None]


class Maze:
#Flat 3D grid of cells, index = x + width*y + width*height*z
#The maze owns every cell, everything else holds indices or short lived references
#Cells are allocated once here and only mutated in place afterwards

    def __init__(self, width: int, height: int, layers: int = LAYERS):
        if width < 1 or height < 1 or layers < 1:
            raise ValueError(f"maze needs positive dimensions, got {width}x{height}x{layers}")
        self.width = width
        self.height = height
        self.layers = layers
        self.cells: List[Cell] = []
        for z in range(layers):
            for y in range(height):
                for x in range(width):
                    self.cells.append(Cell(x, y, z, len(self.cells)))
        self.seed: Optional[Cell] = None
        self.solution: List[Cell] = []

    @classmethod
    def from_viewport(
        cls,
        screen_width: int,
        screen_height: int,
        pixel_size: int = PIXEL_SIZE,
        cell_size: int = CELL_SIZE,
        layers: int = LAYERS,
    ) -> "Maze":
        width, height = viewport_cells(screen_width, screen_height, pixel_size, cell_size)
        return cls(width, height, layers)

    def __len__(self) -> int:
        return len(self.cells)

    def __iter__(self) -> Iterator[Cell]:
        return iter(self.cells)

    def cell_at(self, x: int, y: int, z: int = 0) -> Optional[Cell]:
        if not (0 <= x < self.width and 0 <= y < self.height and 0 <= z < self.layers):
            return None
        return self.cells[x + self.width * y + self.width * self.height * z]

    def neighbor(
        self,
        cell: Cell,
        direction: int,
        vertical: VerticalDirection = VerticalDirection.FLAT,
    ) -> Optional[Cell]:
        if direction not in DIRS:
            raise ValueError(f"unhandled direction {direction}")
        dx, dy = DIRS[direction]
        return self.cell_at(cell.x + dx, cell.y + dy, cell.z + int(vertical))

    def follow(self, cell: Cell, direction: int) -> Optional[Cell]:
        #Neighbor along an existing connection, taking the stored vertical delta
        if not cell.connected(direction):
            return None
        return self.neighbor(cell, direction, cell.vertical[direction])

    def open_cells(self) -> List[Cell]:
        return [cell for cell in self.cells if cell.open]

    def bridges(self) -> List[Cell]:
        return [cell for cell in self.cells if cell.z > 0 and cell.open]

    def edges(self) -> Iterator[Tuple[Cell, Cell]]:
        seen = set()
        for cell in self.cells:
            for direction in cell.directions():
                other = self.follow(cell, direction)
                if other is None:
                    continue
                key = tuple(sorted((cell.index, other.index)))
                if key not in seen:
                    seen.add(key)
                    yield cell, other

    def to_tiles(self) -> List[List[List[int]]]:
        #Connection masks indexed [z][y][x], 0 where the cell is closed
        tiles = [[[0] * self.width for _ in range(self.height)] for _ in range(self.layers)]
        for cell in self.cells:
            if cell.open:
                tiles[cell.z][cell.y][cell.x] = cell.connections
        return tiles

    @property
    def start(self) -> Optional[Cell]:
        return self.solution[0] if self.solution else None

    @property
    def finish(self) -> Optional[Cell]:
        return self.solution[-1] if self.solution else None

    def reset_traversal_state(self) -> None:
        for cell in self.cells:
            cell.state = TraversalState.UNDISCOVERED

    # Generation

    def _pick_seed(self, rng: random.Random) -> Cell:
        margin_x = min(SEED_MARGIN, (self.width - 1) // 2)
        margin_y = min(SEED_MARGIN, (self.height - 1) // 2)
        x = margin_x + rng.randrange(self.width - 2 * margin_x)
        y = margin_y + rng.randrange(self.height - 2 * margin_y)
        return self.cell_at(x, y, 0)

    def generate(
        self,
        branch_chance: float,
        loop_chance: float,
        bridge_chance: float,
        rng_seed: Optional[int] = None,
        seed_cell: Optional[Tuple[int, int]] = None,
        rng: Optional[random.Random] = None,
    ) -> GrowthStats:
        rng = rng or random.Random(rng_seed)
        stats = GrowthStats()
        start_time = time.perf_counter()

        if seed_cell is not None:
            start = self.cell_at(seed_cell[0], seed_cell[1], 0)
            if start is None:
                raise ValueError(f"seed cell {seed_cell} is outside the {self.width}x{self.height} grid")
        else:
            start = self._pick_seed(rng)
        start.open = True
        self.seed = start
        self.solution = []
        stats.seed = start.position

        #Two strands grow out of the seed
        frontier = deque([start, start])
        while frontier:
            cell = frontier.popleft()
            while True:
                if not self._extend(cell, frontier, loop_chance, bridge_chance, rng, stats):
                    stats.dead_ends += 1
                    break
                if rng.random() >= branch_chance:
                    break

        stats.elapsed = time.perf_counter() - start_time
        logger.info(
            "generated %dx%d maze from %s: %d connections, %d loops, %d bridges, %d dead ends",
            self.width, self.height, stats.seed, stats.connections, stats.loops, stats.bridges, stats.dead_ends,
        )
        return stats

    def _extend(
        self,
        cell: Cell,
        frontier: deque,
        loop_chance: float,
        bridge_chance: float,
        rng: random.Random,
        stats: GrowthStats,
    ) -> bool:
        #One connection attempt, directions scanned from a random offset
        #Returns False on a dead end (nothing left to connect to)
        offset = rng.randrange(4)
        for i in range(4):
            direction = (i + offset) % 4
            if cell.connected(direction):
                continue
            neighbor = self.neighbor(cell, direction)
            if neighbor is None or neighbor.connected(opposite(direction)):
                continue  # edge of the grid, or that side already ramps onto a bridge
            looping = neighbor.open
            if looping:
                above = self.cell_at(neighbor.x, neighbor.y, neighbor.z + 1)
                far_side = self.neighbor(neighbor, direction)
                if self._can_bridge(neighbor, direction, above, far_side) and rng.random() < bridge_chance:
                    self._build_bridge(cell, direction, above, far_side)
                    frontier.append(far_side)
                    stats.bridges += 1
                    return True
                if rng.random() >= loop_chance:
                    continue

            cell.connect(direction)
            neighbor.connect(opposite(direction))
            neighbor.open = True
            stats.connections += 1
            if looping:
                stats.loops += 1
            else:
                frontier.append(neighbor)
            return True
        return False

    @staticmethod
    def _can_bridge(
        neighbor: Cell,
        direction: int,
        above: Optional[Cell],
        far_side: Optional[Cell],
    ) -> bool:
        #Only straight corridors running across our direction can be bridged
        return (
            above is not None
            and not above.open
            and far_side is not None
            and not far_side.open
            and neighbor.degree == 2
            and neighbor.connected((direction + 1) % 4)
            and neighbor.connected((direction + 3) % 4)
        )

    def _build_bridge(self, cell: Cell, direction: int, above: Cell, far_side: Cell) -> None:
        back = opposite(direction)
        cell.connect(direction, VerticalDirection.UP)
        above.connect(back, VerticalDirection.DOWN)
        above.connect(direction, VerticalDirection.DOWN)
        far_side.connect(back, VerticalDirection.UP)
        above.open = True
        far_side.open = True
        logger.debug("bridge from %s over %s to %s", cell.position, above.position, far_side.position)

    # Traversal

    def traverse(
        self,
        start: Optional[Cell],
        on_visit: Optional[Hook] = None,
        on_finish: Optional[Hook] = None,
        on_edge: Optional[Hook] = None,
        context=None,
    ):
        #Breadth first walk over the connection graph
        #Hooks get the caller's context first: on_visit(ctx, cell), on_finish(ctx, cell), on_edge(ctx, parent, child)
        #on_edge fires for every connection, whatever state the child is in
        if start is None:
            raise InvalidStart("traversal needs a start cell")
        self.reset_traversal_state()

        q = deque([start])
        start.state = TraversalState.DISCOVERED
        while q:
            cell = q.popleft()
            if on_visit:
                on_visit(context, cell)
            for direction in range(4):
                if not cell.connected(direction):
                    continue
                nxt = self.neighbor(cell, direction, cell.vertical[direction])
                if nxt is None:
                    raise CorruptTopology(
                        f"connection {direction} of cell {cell.position} leads outside the grid"
                    )
                if on_edge:
                    on_edge(context, cell, nxt)
                if nxt.state is TraversalState.UNDISCOVERED:
                    nxt.state = TraversalState.DISCOVERED
                    q.append(nxt)
            cell.state = TraversalState.PROCESSED
            if on_finish:
                on_finish(context, cell)
        return context


#Traversal contexts and hooks


@dataclass
class PathLinks:
    size: int
    parents: List[Optional[int]] = field(init=False)
    depth: List[int] = field(init=False)
    last_finished: Optional[Cell] = None

    def __post_init__(self):
        self.parents = [None] * self.size
        self.depth = [0] * self.size

    def chain_to_root(self, maze: Maze, cell: Optional[Cell]) -> List[Cell]:
        chain = []
        index = cell.index if cell is not None else None
        while index is not None:
            chain.append(maze.cells[index])
            index = self.parents[index]
        return chain


@dataclass
class CycleSearch(PathLinks):
    maze: Optional[Maze] = None
    cycles: List[List[Cell]] = field(default_factory=list)

    def close_cycle(self, parent: Cell, child: Cell) -> List[Cell]:
        #Walk both back pointer chains up to their common ancestor
        p, c = parent.index, child.index
        p_side: List[int] = []
        c_side: List[int] = []
        while self.depth[c] > self.depth[p]:
            c_side.append(c)
            c = self.parents[c]
        while self.depth[p] > self.depth[c]:
            p_side.append(p)
            p = self.parents[p]
        while p != c:
            p_side.append(p)
            c_side.append(c)
            p = self.parents[p]
            c = self.parents[c]
        loop = p_side + [p] + list(reversed(c_side))
        loop.append(loop[0])
        return [self.maze.cells[i] for i in loop]


def record_finished(ctx: PathLinks, cell: Cell) -> None:
    ctx.last_finished = cell


def record_parent(ctx: PathLinks, parent: Cell, child: Cell) -> None:
    if child.state is TraversalState.UNDISCOVERED:
        ctx.parents[child.index] = parent.index
        ctx.depth[child.index] = ctx.depth[parent.index] + 1


def record_back_edge(ctx: CycleSearch, parent: Cell, child: Cell) -> None:
    if ctx.parents[parent.index] == child.index:
        return  # the edge we arrived by
    if child.state is TraversalState.DISCOVERED:
        return  # queued, the cycle gets reported once that side finishes
    if child.state is TraversalState.PROCESSED:
        ctx.cycles.append(ctx.close_cycle(parent, child))
        return
    record_parent(ctx, parent, child)


#Diameter and cycles


def farthest_cell(maze: Maze, start: Optional[Cell]) -> Cell:
    ctx = maze.traverse(start, on_finish=record_finished, context=PathLinks(len(maze)))
    return ctx.last_finished


def shortest_path_tree(maze: Maze, root: Optional[Cell]) -> PathLinks:
    return maze.traverse(
        root,
        on_finish=record_finished,
        on_edge=record_parent,
        context=PathLinks(len(maze)),
    )


def select_solution(maze: Maze) -> List[Cell]:
    #Two BFS passes: the last cell finished from the seed is roughly eccentric,
    #the last cell finished from there is roughly the other end of the diameter
    #Exact for trees, loops and bridges make it an approximation
    if maze.seed is None or not maze.seed.open:
        raise NoSolution("maze has no open cells")
    far = farthest_cell(maze, maze.seed)
    links = shortest_path_tree(maze, far)
    chain = links.chain_to_root(maze, links.last_finished)
    if not chain:
        raise NoSolution("no path between diameter endpoints")
    chain.reverse()
    maze.solution = chain
    logger.info("solution from %s to %s, %d cells", chain[0].position, chain[-1].position, len(chain))
    return chain


def find_cycles(maze: Maze, start: Optional[Cell] = None) -> List[List[Cell]]:
    #One representative cycle per back edge, breaking every reported cycle leaves the maze acyclic
    start = start if start is not None else maze.start
    ctx = CycleSearch(len(maze), maze=maze)
    maze.traverse(start, on_edge=record_back_edge, context=ctx)
    logger.info("found %d cycles", len(ctx.cycles))
    return ctx.cycles


#Config + CLI


@dataclass
class MazeConfig:
    width: int = 62
    height: int = 37
    layers: int = LAYERS
    branch_chance: float = 0.1
    loop_chance: float = 0.0
    bridge_chance: float = 0.8
    seed: Optional[int] = None


def build_maze(config: MazeConfig) -> Tuple[Maze, GrowthStats]:
    maze = Maze(config.width, config.height, config.layers)
    stats = maze.generate(
        config.branch_chance,
        config.loop_chance,
        config.bridge_chance,
        rng_seed=config.seed,
    )
    select_solution(maze)
    return maze, stats


def build_config(args, seed: Optional[int]) -> MazeConfig:
    width, height = args.width, args.height
    if args.screen_width and args.screen_height:
        width, height = viewport_cells(args.screen_width, args.screen_height, args.pixel_size)
    return MazeConfig(
        width=width,
        height=height,
        branch_chance=args.branch_chance,
        loop_chance=args.loop_chance,
        bridge_chance=args.bridge_chance,
        seed=seed,
    )


def run_visual_mode(args):
    from visualizer import MazeVisualizer

    seed = args.seed if args.seed is not None else random.randint(0, 1_000_000_000)
    config = build_config(args, seed)
    print(f"Launching visualizer | maze {config.width}x{config.height} | seed: {seed}")
    maze, _ = build_maze(config)
    viewer = MazeVisualizer(maze, cycles=find_cycles(maze), pixel_size=args.pixel_size, title_suffix=f" - seed {seed}")
    viewer.run()


def run_cli_mode(args) -> List[Dict[str, object]]:
    rows = []
    for run_idx in range(args.runs):
        seed = args.seed + run_idx if args.seed is not None else random.randint(0, 1_000_000_000)
        config = build_config(args, seed)
        maze, stats = build_maze(config)
        cycles = find_cycles(maze)
        row = {
            "run": run_idx + 1,
            "seed": seed,
            "width": maze.width,
            "height": maze.height,
            "open_cells": len(maze.open_cells()),
            "connections": stats.connections,
            "loops": stats.loops,
            "bridges": stats.bridges,
            "dead_ends": stats.dead_ends,
            "path_length": len(maze.solution),
            "cycles": len(cycles),
            "elapsed": f"{stats.elapsed:.6f}",
        }
        print(
            f"Run {run_idx + 1}/{args.runs} | maze {maze.width}x{maze.height} | seed: {seed} | "
            f"open={row['open_cells']} connections={stats.connections} bridges={stats.bridges} "
            f"path_len={row['path_length']} cycles={row['cycles']} elapsed={stats.elapsed:.3f}s"
        )
        rows.append(row)

    if args.csv_output:
        import csv

        with open(args.csv_output, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=list(rows[0].keys()) if rows else ["run"])
            writer.writeheader()
            writer.writerows(rows)
        print(f"\nWrote {len(rows)} rows to {args.csv_output}")
    return rows


def prompt_for_mode():
    response = input("Run visualizer? (y/n): ").strip().lower()
    return "visual" if response.startswith("y") else "cli"


def parse_args(argv=None):
    defaults = MazeConfig()
    parser = argparse.ArgumentParser(description="Two layer maze generator with diameter and cycle analysis.")
    parser.add_argument("--mode", choices=["visual", "cli"], help="Choose 'visual' for the pygame viewer or 'cli' for text metrics.")
    parser.add_argument("--width", type=int, default=defaults.width, help="Maze width in cells.")
    parser.add_argument("--height", type=int, default=defaults.height, help="Maze height in cells.")
    parser.add_argument("--screen-width", type=int, default=None, help="Size the grid to fill a window this many pixels wide.")
    parser.add_argument("--screen-height", type=int, default=None, help="Size the grid to fill a window this many pixels high.")
    parser.add_argument("--pixel-size", type=int, default=PIXEL_SIZE, help="Screen pixels per logical pixel.")
    parser.add_argument("--branch-chance", type=float, default=defaults.branch_chance, help="Chance to keep growing from a cell after a connection.")
    parser.add_argument("--loop-chance", type=float, default=defaults.loop_chance, help="Chance to connect into an already open cell.")
    parser.add_argument("--bridge-chance", type=float, default=defaults.bridge_chance, help="Chance to bridge over a straight corridor when possible.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for maze generation (default: random).")
    parser.add_argument("--runs", type=int, default=1, help="Number of runs to execute in CLI mode.")
    parser.add_argument("--csv-output", type=str, default=None, help="Path to write CSV metrics.")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging verbosity.")
    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format="[%(asctime)s] - [%(name)s] - [%(levelname)s] - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.log_level)
    mode = args.mode or prompt_for_mode()
    try:
        if mode == "visual":
            run_visual_mode(args)
        else:
            run_cli_mode(args)
    except MazeError as exc:
        logger.error("maze failed: %s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
