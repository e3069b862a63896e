import random
from collections import deque

import pytest

from layered_maze import (
    DOWN,
    LEFT,
    RIGHT,
    UP,
    GrowthStats,
    Maze,
    VerticalDirection,
    find_cycles,
    select_solution,
)
from maze_test_utils import assert_paired, link

SEEDS = [1, 2, 3, 4, 5, 42]


@pytest.mark.parametrize("seed", SEEDS)
def test_connections_are_paired(seed):
    maze = Maze(30, 20)
    maze.generate(0.4, 0.3, 0.8, rng_seed=seed)
    assert_paired(maze)


@pytest.mark.parametrize("seed", SEEDS)
def test_open_iff_connected_or_seed(seed):
    maze = Maze(30, 20)
    maze.generate(0.4, 0.3, 0.8, rng_seed=seed)
    for cell in maze:
        assert cell.open == (cell.degree > 0 or cell is maze.seed), cell.position


def test_zero_chances_make_a_spanning_tree(tree_maze):
    maze, stats = tree_maze
    open_cells = maze.open_cells()
    assert len(list(maze.edges())) == len(open_cells) - 1
    assert stats.loops == 0
    assert stats.bridges == 0
    assert find_cycles(maze) == []


def test_stats_count_every_edge(generated_maze):
    maze, stats = generated_maze
    # a bridge adds two connections, everything else one
    assert len(list(maze.edges())) == stats.connections + 2 * stats.bridges
    assert len(maze.bridges()) == stats.bridges
    assert stats.seed == maze.seed.position


def test_seed_keeps_away_from_edges():
    for seed in range(25):
        maze = Maze(30, 20)
        stats = maze.generate(0.0, 0.0, 0.0, rng_seed=seed)
        x, y, z = stats.seed
        assert 5 <= x < 25
        assert 5 <= y < 15
        assert z == 0


def test_seed_margin_shrinks_on_small_grids():
    for seed in range(25):
        maze = Maze(4, 4)
        x, y, _ = maze.generate(0.0, 0.0, 0.0, rng_seed=seed).seed
        assert 1 <= x <= 2
        assert 1 <= y <= 2


def test_explicit_seed_cell_outside_grid():
    with pytest.raises(ValueError):
        Maze(4, 4).generate(0.0, 0.0, 0.0, seed_cell=(10, 1))


def test_same_seed_same_maze():
    a = Maze(25, 18)
    b = Maze(25, 18)
    a.generate(0.3, 0.2, 0.7, rng_seed=99)
    b.generate(0.3, 0.2, 0.7, rng_seed=99)
    assert [c.connections for c in a] == [c.connections for c in b]
    assert [list(c.vertical) for c in a] == [list(c.vertical) for c in b]


def test_bridge_over_straight_corridor():
    # vertical corridor at x=2, the seed at (1,1) can only make progress to the right
    maze = Maze(4, 3)
    top = maze.cell_at(2, 0)
    middle = link(maze, top, DOWN)
    link(maze, middle, DOWN)
    for x, y in [(0, 1), (1, 0), (1, 2)]:
        maze.cell_at(x, y).open = True

    stats = maze.generate(0.0, 0.0, 1.0, seed_cell=(1, 1), rng_seed=7)

    seed = maze.cell_at(1, 1)
    above = maze.cell_at(2, 1, 1)
    far_side = maze.cell_at(3, 1, 0)
    assert stats.bridges == 1
    assert seed.vertical[RIGHT] is VerticalDirection.UP
    assert above.open and far_side.open
    assert above.connected(LEFT) and above.connected(RIGHT)
    assert above.vertical[LEFT] is VerticalDirection.DOWN
    assert above.vertical[RIGHT] is VerticalDirection.DOWN
    assert far_side.vertical[LEFT] is VerticalDirection.UP
    # the corridor underneath is untouched
    assert middle.directions() == [UP, DOWN]
    assert_paired(maze)


def test_loop_never_lands_on_a_ramp():
    # the crossed cell sits between both ramps of a bridge, so every free side is taken
    maze = Maze(4, 3)
    top = maze.cell_at(2, 0)
    middle = link(maze, top, DOWN)
    link(maze, middle, DOWN)
    near_side = maze.cell_at(1, 1)
    near_side.open = True
    far_side = maze.cell_at(3, 1)
    maze._build_bridge(near_side, RIGHT, maze.cell_at(2, 1, 1), far_side)

    frontier = deque()
    stats = GrowthStats()
    for seed in range(8):
        extended = maze._extend(middle, frontier, 1.0, 0.0, random.Random(seed), stats)
        assert not extended
    assert stats.loops == 0 and not frontier
    assert middle.directions() == [UP, DOWN]
    assert near_side.vertical[RIGHT] is VerticalDirection.UP
    assert far_side.vertical[LEFT] is VerticalDirection.UP
    assert_paired(maze)


def test_bridge_chance_one_builds_cross_layer_links():
    built = False
    for seed in range(10):
        maze = Maze(30, 20)
        maze.generate(0.5, 0.0, 1.0, rng_seed=seed)
        assert_paired(maze)
        if any(cell.vertical[d] is not VerticalDirection.FLAT for cell in maze for d in cell.directions()):
            built = True
            break
    assert built


def test_single_layer_never_bridges():
    maze = Maze(20, 15, layers=1)
    stats = maze.generate(0.5, 0.5, 1.0, rng_seed=4)
    assert stats.bridges == 0
    for cell in maze:
        assert all(cell.vertical[d] is VerticalDirection.FLAT for d in cell.directions())
    assert_paired(maze)


def test_small_single_layer_example():
    maze = Maze(4, 4, layers=1)
    maze.generate(0.0, 0.0, 0.0, seed_cell=(1, 1), rng_seed=5)
    seed = maze.cell_at(1, 1)
    # both strands start at the seed, one connection each at most
    assert 1 <= seed.degree <= 2
    path = select_solution(maze)
    assert len(path) >= 2
    for end in (maze.start, maze.finish):
        assert end.open
        assert end.degree >= 1


def test_regenerating_clears_solution(generated_maze):
    maze, _ = generated_maze
    assert maze.solution
    maze.generate(0.1, 0.0, 0.0, rng_seed=1)
    assert maze.solution == []
    assert maze.start is None
