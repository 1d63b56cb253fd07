from __future__ import annotations

import csv
import random
import time
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Union

from seeded_rng import (
    DEFAULT_DAILY_VERSION,
    DEFAULT_LEVEL_VERSION,
    SeededRandom,
    SeedLike,
    daily_key,
    level_seed,
    seed_from_text,
)
from word_index import WordIndex


# -----------------------------------------------------------------------------
# Simple logger hook
# -----------------------------------------------------------------------------
# app.py can call set_logger(my_ui_logger). If you do nothing, we print().
_LOGGER = None  # type: Optional[callable]


def set_logger(fn) -> None:
    """Allow the UI to inject a logger callback: fn(text: str)."""
    global _LOGGER
    _LOGGER = fn


def _log(msg: str) -> None:
    """Log to UI if available; otherwise print. Keep messages simple."""
    if _LOGGER:
        try:
            _LOGGER(msg)
            return
        except Exception:
            pass
    print(msg)


# -----------------------------------------------------------------------------
# Data shapes used across the app
# -----------------------------------------------------------------------------
Clock = Callable[[], float]


@dataclass(frozen=True)
class GeneratedPuzzle:
    """
    The outcome of the generator. This is what the caller / renderer needs.

    letters  : n*n characters in shuffled order (the player's bag)
    solution : n row strings; by symmetry they are also the n columns
    """
    letters: List[str]
    solution: List[str]

    @property
    def size(self) -> int:
        return len(self.solution)

    def columns(self) -> List[str]:
        n = self.size
        return ["".join(row[c] for row in self.solution) for c in range(n)]

    def bag_key(self) -> str:
        """Order-free signature of the bag."""
        return "".join(sorted(self.letters))

    def grid(self) -> List[List[str]]:
        """The bag laid out row-major as an n x n board (how tiles are dealt)."""
        n = self.size
        return [list(self.letters[r * n:(r + 1) * n]) for r in range(n)]


@dataclass
class SquareSpec:
    """
    Everything needed to generate a puzzle besides the words and the seed.
    Defaults are the values the daily game ships with.
    """
    size: int = 4
    max_retries: int = 50
    time_budget_ms: int = 500
    uniqueness_cap: int = 2
    version: str = DEFAULT_DAILY_VERSION           # daily seed tag
    level_version: str = DEFAULT_LEVEL_VERSION     # level seed tag
    # fold the dictionary fingerprint into the daily key
    bind_seed_to_dictionary: bool = True


# -----------------------------------------------------------------------------
# Word lists (UI calls these)
# -----------------------------------------------------------------------------
FALLBACK_WORDS: List[str] = [
    "star", "tare", "area", "read",
    "lend", "else", "need", "deer",
    "chip", "chop", "inch", "pica",
    "dome", "dove", "mode", "mend",
    "tide", "tile", "time", "tame",
    "rope", "rode", "rose", "nose",
    "east", "ease", "earn", "near",
    "peel", "peal", "pale", "sale",
    "mall", "tall", "ball", "fall",
    "card", "rear", "dart", "lead", "lady",
]


def load_word_list(path: str) -> List[str]:
    """
    Read a plain word list: one word per line.
    Blank lines and '#' comments are skipped; filtering happens in WordIndex.
    """
    words: List[str] = []
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            for line in f:
                w = line.strip()
                if not w or w.startswith("#"):
                    continue
                words.append(w)
        _log(f"words: loaded {len(words)} lines from {path}")
    except OSError as e:
        _log(f"words error: cannot read {path}: {e}")
        raise
    return words


def _read_rows(path: str) -> List[List[str]]:
    """Read CSV rows as lists of strings. Strip whitespace in each cell."""
    rows: List[List[str]] = []
    try:
        with open(path, "r", encoding="utf-8-sig", newline="") as f:
            reader = csv.reader(f)
            for r in reader:
                rows.append([c.strip() for c in r])
        _log(f"csv: loaded {len(rows)} rows from {path}")
    except OSError as e:
        _log(f"csv error: cannot read {path}: {e}")
        raise
    return rows


def wordlists_from_rows(rows: Sequence[Sequence[str]], first_row_header: bool = True) -> Dict[str, List[str]]:
    """
    Turn CSV rows into named lists, one per column: {header: [words...]}.
    Blank cells are ignored. Without a header, columns are named Col1, Col2, ...
    """
    rows = [list(r) for r in rows]
    if not rows:
        return {}
    if first_row_header:
        headers = [h.strip() for h in rows[0]]
        data_rows = rows[1:]
    else:
        max_cols = max(len(r) for r in rows)
        headers = [f"Col{i+1}" for i in range(max_cols)]
        data_rows = rows

    cols: Dict[str, List[str]] = {h: [] for h in headers}
    for r in data_rows:
        for i, h in enumerate(headers):
            if i < len(r):
                val = r[i].strip()
                if val:
                    cols[h].append(val)
    return cols


def load_wordlists_csv(path: str, first_row_header: bool = True) -> Dict[str, List[str]]:
    """
    Load a multi-column wordlist CSV, e.g. columns 'base' and 'themed'.
    Each column becomes a named list.
    """
    cols = wordlists_from_rows(_read_rows(path), first_row_header)
    for name, words in cols.items():
        _log(f"csv: list '{name}' has {len(words)} words")
    return cols


def merge_word_lists(*lists: Iterable[str]) -> List[str]:
    """
    Union of several lists (e.g. base + themed), lowercased, de-duplicated and
    sorted, so the generator always sees the same input order.
    """
    merged: Set[str] = set()
    for lst in lists:
        for w in lst or ():
            s = str(w).strip().lower()
            if s:
                merged.add(s)
    return sorted(merged)


# -----------------------------------------------------------------------------
# Generator
# -----------------------------------------------------------------------------
class WordSquareGenerator:
    """
    Builds n x n word squares from a WordIndex.

      build_square       : depth-first fill from a fixed first row
      is_unique_solution : proof that a letter bag has one arrangement only
      generate           : seeded start order + build + shuffle + prove
    """

    def __init__(self, index: WordIndex, size: int = 4, clock: Clock = time.monotonic) -> None:
        if int(size) < 1:
            raise ValueError(f"square size must be >= 1, got {size!r}")
        self.index = index
        self.size = int(size)
        self.clock = clock
        # search order depends only on the word set
        self.words: List[str] = sorted(index.words_of_length(self.size))

        # first-letter buckets (cheap pre-filter when position 0 is fixed)
        self.first_letter_buckets: Dict[str, List[str]] = {}
        for w in self.words:
            self.first_letter_buckets.setdefault(w[0], []).append(w)

    def _expired(self, deadline: float) -> bool:
        return self.clock() >= deadline

    # ------------------------------------------------------------------
    # Square builder
    # ------------------------------------------------------------------
    def build_square(self, start_word: str, deadline: float) -> Optional[List[str]]:
        """
        Try to complete a square whose first row is start_word.
        Returns the rows, or None (no words, dead end or out of time).
        """
        start_word = str(start_word).strip().lower()
        if not self.words or len(start_word) != self.size:
            return None
        square = [start_word]
        used = {start_word}
        return self._extend(square, used, deadline)

    def _extend(self, square: List[str], used: Set[str], deadline: float) -> Optional[List[str]]:
        n = self.size
        k = len(square)

        # Finished: every column must be a word, rows must be distinct
        if k == n:
            for c in range(n):
                col = "".join(square[r][c] for r in range(n))
                if not self.index.contains(col):
                    return None
            if len(set(square)) != n:
                return None
            return list(square)

        if self._expired(deadline):
            return None

        # Column prefixes from the rows placed so far
        prefixes: List[str] = []
        for c in range(n):
            p = "".join(square[r][c] for r in range(k))
            if p and not self.index.has_prefix(p):
                return None
            prefixes.append(p)

        # Row k is also column k: its char at c (< k) is row c's char at k
        fixed = [(c, square[c][k]) for c in range(k)]

        if fixed and fixed[0][0] == 0:
            pool = self.first_letter_buckets.get(fixed[0][1], [])
        else:
            pool = self.words

        candidates: List[str] = []
        for w in pool:
            if w in used:
                continue
            if any(w[pos] != ch for pos, ch in fixed):
                continue
            if not all(self.index.has_prefix(prefixes[c] + w[c]) for c in range(n)):
                continue
            candidates.append(w)

        # more distinct letters first; sort is stable so ties keep pool order
        candidates.sort(key=lambda w: len(set(w)), reverse=True)

        for cand in candidates:
            square.append(cand)
            used.add(cand)
            done = self._extend(square, used, deadline)
            if done is not None:
                return done
            used.discard(cand)
            square.pop()
            if self._expired(deadline):
                return None
        return None

    # ------------------------------------------------------------------
    # Uniqueness validator
    # ------------------------------------------------------------------
    def is_unique_solution(self, bag: Sequence[str], cap: int = 2) -> bool:
        """
        True iff exactly one n x n grid can be built from every letter of the bag,
        with all rows and all columns dictionary words. Stops counting at cap.
        """
        n = self.size
        letters = [str(ch).lower() for ch in bag]
        if len(letters) != n * n:
            return False

        counts = Counter(letters)

        # words that could ever be drawn from this bag
        viable = []
        for w in self.words:
            need = Counter(w)
            if all(counts[ch] >= m for ch, m in need.items()):
                viable.append(w)

        grid: List[str] = [""] * n
        solutions = 0

        def can_use(w: str) -> bool:
            need = Counter(w)
            if any(counts[ch] < m for ch, m in need.items()):
                return False
            counts.subtract(need)
            return True

        def unuse(w: str) -> None:
            counts.update(w)

        def col_prefixes_ok(row: int) -> bool:
            for c in range(n):
                p = "".join(grid[r][c] for r in range(row + 1))
                if not self.index.has_prefix(p):
                    return False
            return True

        def columns_ok() -> bool:
            for c in range(n):
                col = "".join(grid[r][c] for r in range(n))
                if not self.index.contains(col):
                    return False
            return True

        def place(row: int) -> None:
            nonlocal solutions
            if solutions >= cap:
                return
            if row == n:
                if columns_ok():
                    solutions += 1
                return
            for w in viable:
                if can_use(w):
                    grid[row] = w
                    if col_prefixes_ok(row):
                        place(row + 1)
                    unuse(w)
                    if solutions >= cap:
                        return

        place(0)
        return solutions == 1

    # ------------------------------------------------------------------
    # Assembler
    # ------------------------------------------------------------------
    def generate(
        self,
        rng: random.Random,
        max_retries: int = 50,
        time_budget_ms: int = 500,
        cap: int = 2,
    ) -> Optional[GeneratedPuzzle]:
        """
        Try start words in seeded order until one gives a square whose shuffled
        bag has exactly one solution. Returns None when retries or time run out.

        IMPORTANT: rng is consumed, never re-seeded, so the start order and the
        bag shuffle come from one stream.
        """
        deadline = self.clock() + max(0, time_budget_ms) / 1000.0

        starts = list(self.words)
        rng.shuffle(starts)
        _log(f"[square] {len(starts)} start words of length {self.size}; "
             f"retries={max_retries}, budget={time_budget_ms}ms")

        seen_bags: Set[str] = set()
        attempt = 0
        for word in starts:
            attempt += 1
            if attempt > max_retries:
                _log(f"[square] reached max_retries={max_retries} without a result")
                return None
            if self._expired(deadline):
                _log(f"[square] budget {time_budget_ms}ms exhausted after {attempt - 1} start(s); no puzzle")
                return None

            square = self.build_square(word, deadline)
            if square is None:
                continue

            bag = list("".join(square))
            shuffled = list(bag)
            rng.shuffle(shuffled)

            key = "".join(sorted(bag))
            if key in seen_bags:
                _log(f"[unique] bag already rejected, start word '{word}'")
                continue

            if not self.is_unique_solution(shuffled, cap=cap):
                seen_bags.add(key)
                _log(f"[unique] rejected bag (not unique), start word '{word}'")
                continue

            _log(f"[square] solution rows: {' | '.join(square)} (attempt {attempt})")
            return GeneratedPuzzle(letters=shuffled, solution=square)

        _log("[square] start words exhausted; no puzzle")
        return None


# ---------------------------------------------------------------------------
# High-level API
# ---------------------------------------------------------------------------
WordsLike = Union[WordIndex, Iterable[str]]


def _as_index(words: WordsLike) -> WordIndex:
    return words if isinstance(words, WordIndex) else WordIndex(words)


def generate_puzzle(
    words: WordsLike,
    seed: SeedLike,
    spec: Optional[SquareSpec] = None,
    clock: Clock = time.monotonic,
) -> Optional[GeneratedPuzzle]:
    """
    Orchestrator:
      - build the index (unless one is passed in)
      - seed a fresh SeededRandom from `seed`
      - run the assembler with the spec's retry/time budget
    """
    spec = spec or SquareSpec()
    index = _as_index(words)
    gen = WordSquareGenerator(index, size=spec.size, clock=clock)
    rng = SeededRandom(seed)
    return gen.generate(
        rng,
        max_retries=spec.max_retries,
        time_budget_ms=spec.time_budget_ms,
        cap=spec.uniqueness_cap,
    )


def generate_daily_puzzle(
    words: WordsLike,
    day: Optional[Union[date, datetime, str]] = None,
    spec: Optional[SquareSpec] = None,
    clock: Clock = time.monotonic,
) -> Optional[GeneratedPuzzle]:
    """Today's (or `day`'s) puzzle. The caller owns the fallback when None."""
    spec = spec or SquareSpec()
    index = _as_index(words)
    fp = index.fingerprint() if spec.bind_seed_to_dictionary else None
    key = daily_key(day, spec.version, fp)
    _log(f"seed: daily '{key[:48]}'")
    return generate_puzzle(index, seed_from_text(key), spec, clock=clock)


def generate_level_puzzle(
    words: WordsLike,
    world_id: str,
    level_index: int,
    salt: int = 0,
    spec: Optional[SquareSpec] = None,
    clock: Clock = time.monotonic,
) -> Optional[GeneratedPuzzle]:
    """Puzzle for (world, level); `salt` is the caller's extra 64-bit value."""
    spec = spec or SquareSpec()
    seed = level_seed(world_id, level_index, salt, spec.level_version)
    _log(f"seed: level {world_id}/L{level_index} -> {seed}")
    return generate_puzzle(words, seed, spec, clock=clock)


def render_preview_ascii(puzzle: GeneratedPuzzle) -> str:
    """
    Simple ASCII for quick debugging: the solution, then the bag as dealt.
    """
    lines = []
    for row in puzzle.solution:
        lines.append(" ".join(ch.upper() for ch in row))
    lines.append("")
    for row in puzzle.grid():
        lines.append(" ".join(ch.upper() for ch in row))
    return "\n".join(lines)
