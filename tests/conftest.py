import os
import sys

import pytest

# No window during tests, pygame still gets imported by the viewer tests
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

# Ensure project root (where layered_maze.py lives) is importable
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from layered_maze import Maze, select_solution  # noqa: E402


@pytest.fixture
def generated_maze():
    maze = Maze(30, 20)
    stats = maze.generate(0.3, 0.3, 0.6, rng_seed=11)
    select_solution(maze)
    return maze, stats


@pytest.fixture
def tree_maze():
    maze = Maze(20, 15)
    stats = maze.generate(0.0, 0.0, 0.0, rng_seed=3)
    select_solution(maze)
    return maze, stats
