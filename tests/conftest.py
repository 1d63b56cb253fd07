import pytest

import square_engine as eng
from word_index import WordIndex


# card/area/rear/dart and ball/area/lead/lady are the only two squares here;
# each of their bags has exactly one arrangement.
SQUARE_WORDS = ["card", "area", "rear", "dart", "ball", "lead", "lady"]

CARD_SQUARE = ["card", "area", "rear", "dart"]
BALL_SQUARE = ["ball", "area", "lead", "lady"]


class FakeClock:
    """Deterministic clock: returns `now`, then advances by `step` on every call."""

    def __init__(self, start: float = 0.0, step: float = 0.0):
        self.now = start
        self.step = step
        self.calls = 0

    def __call__(self) -> float:
        self.calls += 1
        t = self.now
        self.now += self.step
        return t


@pytest.fixture
def square_words():
    return list(SQUARE_WORDS)


@pytest.fixture
def square_index():
    return WordIndex(SQUARE_WORDS)


@pytest.fixture
def log_lines():
    """Capture engine log lines instead of printing them."""
    lines = []
    eng.set_logger(lines.append)
    yield lines
    eng.set_logger(None)


@pytest.fixture
def check_puzzle():
    """Assert every invariant a returned puzzle must hold."""

    def _check(puzzle, index):
        n = puzzle.size
        sol = puzzle.solution
        assert len(sol) == n
        assert all(len(row) == n for row in sol)
        # symmetric
        for r in range(n):
            for c in range(n):
                assert sol[r][c] == sol[c][r]
        # distinct rows
        assert len(set(sol)) == n
        # rows and columns are words
        for word in sol + puzzle.columns():
            assert index.contains(word)
        # bag matches the solution
        assert len(puzzle.letters) == n * n
        assert sorted(puzzle.letters) == sorted("".join(sol))

    return _check
