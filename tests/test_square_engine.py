import pytest

import square_engine as eng
from conftest import BALL_SQUARE, CARD_SQUARE, FakeClock
from seeded_rng import SeededRandom
from word_index import WordIndex

FAR = 1e12  # a deadline nobody reaches


# -----------------------------------------------------------------------------
# Square builder
# -----------------------------------------------------------------------------
def test_build_square_from_card(square_index):
    gen = eng.WordSquareGenerator(square_index)
    assert gen.build_square("card", FAR) == CARD_SQUARE


def test_build_square_star_tare_area_read():
    idx = WordIndex(["star", "tare", "area", "read"])
    gen = eng.WordSquareGenerator(idx)
    square = gen.build_square("star", FAR)
    assert square == ["star", "tare", "area", "read"]
    for c in range(4):
        assert "".join(row[c] for row in square) == square[c]


@pytest.mark.parametrize("start", ["area", "rear", "dart", "lead", "lady"])
def test_build_square_dead_starts(square_index, start):
    gen = eng.WordSquareGenerator(square_index)
    assert gen.build_square(start, FAR) is None


def test_build_square_needs_distinct_rows():
    gen = eng.WordSquareGenerator(WordIndex(["aaaa"]))
    assert gen.build_square("aaaa", FAR) is None


def test_build_square_rejects_wrong_length_start(square_index):
    gen = eng.WordSquareGenerator(square_index)
    assert gen.build_square("cards", FAR) is None
    assert gen.build_square("", FAR) is None


def test_build_square_empty_dictionary():
    gen = eng.WordSquareGenerator(WordIndex([]))
    assert gen.words == []
    assert gen.build_square("card", FAR) is None


def test_build_square_respects_deadline(square_index):
    clock = FakeClock(start=100.0)
    gen = eng.WordSquareGenerator(square_index, clock=clock)
    assert gen.build_square("card", deadline=100.0) is None
    assert clock.calls >= 1

    # frozen clock well before the deadline: same search succeeds
    gen = eng.WordSquareGenerator(square_index, clock=FakeClock(start=0.0))
    assert gen.build_square("card", deadline=100.0) == CARD_SQUARE


def test_build_square_stops_when_time_runs_out_mid_search(square_index):
    # each clock read costs a second; only the first read is before the deadline
    gen = eng.WordSquareGenerator(square_index, clock=FakeClock(start=0.0, step=1.0))
    assert gen.build_square("card", deadline=0.5) is None


def test_start_word_is_normalized(square_index):
    gen = eng.WordSquareGenerator(square_index)
    assert gen.build_square("CARD", FAR) == CARD_SQUARE
    assert gen.build_square(" Card ", FAR) == CARD_SQUARE


def test_word_order_does_not_depend_on_input_order(square_words):
    a = eng.WordSquareGenerator(WordIndex(square_words))
    b = eng.WordSquareGenerator(WordIndex(list(reversed(square_words))))
    assert a.words == b.words == sorted(square_words)


def test_prefers_candidates_with_more_distinct_letters():
    # abc/bab/cba and abc/bca/cab are both squares; "bab" sorts first
    # but "bca" has more distinct letters, so it is tried first
    idx = WordIndex(["abc", "bab", "bca", "cab", "cba"])
    gen = eng.WordSquareGenerator(idx, size=3)
    assert gen.build_square("abc", FAR) == ["abc", "bca", "cab"]


def test_generic_size_three():
    idx = WordIndex(["bat", "ape", "tea", "dog"])
    gen = eng.WordSquareGenerator(idx, size=3)
    assert gen.build_square("bat", FAR) == ["bat", "ape", "tea"]


def test_size_must_be_positive(square_index):
    with pytest.raises(ValueError):
        eng.WordSquareGenerator(square_index, size=0)


# -----------------------------------------------------------------------------
# Uniqueness validator
# -----------------------------------------------------------------------------
def test_unique_bag_card_square(square_index):
    gen = eng.WordSquareGenerator(square_index)
    bag = list("".join(CARD_SQUARE))
    SeededRandom("bag").shuffle(bag)
    assert gen.is_unique_solution(bag)


def test_unique_bag_ball_square(square_index):
    gen = eng.WordSquareGenerator(square_index)
    assert gen.is_unique_solution(list("".join(BALL_SQUARE)))


def test_uppercase_bag_is_accepted(square_index):
    gen = eng.WordSquareGenerator(square_index)
    assert gen.is_unique_solution(list("".join(CARD_SQUARE).upper()))


def test_bag_with_two_arrangements_is_not_unique():
    # swapping letter positions 1 and 2 in every word (and the row order the
    # same way) gives a second square from the same letters: crad/raer/aera/drat
    idx = WordIndex(CARD_SQUARE + ["crad", "raer", "aera", "drat"])
    gen = eng.WordSquareGenerator(idx)
    assert gen.build_square("crad", FAR) == ["crad", "raer", "aera", "drat"]
    assert not gen.is_unique_solution(list("".join(CARD_SQUARE)))


def test_repeating_rows_count_as_arrangements():
    # abab/baba/abab/baba and baba/abab/baba/abab use the same letters
    gen = eng.WordSquareGenerator(WordIndex(["abab", "baba"]))
    assert not gen.is_unique_solution(list("ab" * 8))


def test_bag_without_any_arrangement(square_index):
    gen = eng.WordSquareGenerator(square_index)
    assert not gen.is_unique_solution(list("qwertyuiopasdfgh"))


def test_bag_of_wrong_size(square_index):
    gen = eng.WordSquareGenerator(square_index)
    assert not gen.is_unique_solution(list("cardarea"))
    assert not gen.is_unique_solution(list("".join(CARD_SQUARE)) + ["x"])


# -----------------------------------------------------------------------------
# Assembler
# -----------------------------------------------------------------------------
def test_generate_returns_valid_puzzle(square_index, check_puzzle):
    gen = eng.WordSquareGenerator(square_index)
    puzzle = gen.generate(SeededRandom("TETRAD_v1|2025-01-01"), max_retries=50, time_budget_ms=10_000)
    assert puzzle is not None
    assert puzzle.solution in (CARD_SQUARE, BALL_SQUARE)
    check_puzzle(puzzle, square_index)


def test_generate_is_deterministic(square_words):
    spec = eng.SquareSpec(time_budget_ms=10_000)
    a = eng.generate_puzzle(square_words, "same-seed", spec)
    b = eng.generate_puzzle(square_words, "same-seed", spec)
    assert a is not None
    assert a.letters == b.letters
    assert a.solution == b.solution


def test_generate_finds_both_squares_across_seeds(square_words):
    spec = eng.SquareSpec(time_budget_ms=10_000)
    found = set()
    for i in range(40):
        p = eng.generate_puzzle(square_words, i, spec)
        assert p is not None
        found.add(tuple(p.solution))
    assert found == {tuple(CARD_SQUARE), tuple(BALL_SQUARE)}


def test_generate_skips_ambiguous_bags(square_index, monkeypatch, check_puzzle):
    gen = eng.WordSquareGenerator(square_index)
    real = gen.is_unique_solution
    seen = []

    def first_one_ambiguous(bag, cap=2):
        seen.append(sorted(bag))
        if len(seen) == 1:
            return False
        return real(bag, cap)

    monkeypatch.setattr(gen, "is_unique_solution", first_one_ambiguous)
    puzzle = gen.generate(SeededRandom(5), max_retries=50, time_budget_ms=10_000)

    assert puzzle is not None
    assert len(seen) == 2
    assert sorted(puzzle.letters) == seen[1]
    assert seen[0] != seen[1]
    check_puzzle(puzzle, square_index)


def test_generate_with_single_word_gives_nothing():
    assert eng.generate_puzzle(["aaaa"], 1, eng.SquareSpec(time_budget_ms=10_000)) is None


def test_generate_with_empty_word_list_gives_nothing():
    assert eng.generate_puzzle([], 1) is None


def test_generate_with_engineered_ambiguity_gives_nothing():
    # every square this dictionary allows shares its bag with a twin
    words = CARD_SQUARE + ["crad", "raer", "aera", "drat"]
    spec = eng.SquareSpec(time_budget_ms=10_000)
    for seed in range(5):
        assert eng.generate_puzzle(words, seed, spec) is None


def test_zero_time_budget_gives_nothing(square_words):
    assert eng.generate_puzzle(square_words, 1, eng.SquareSpec(time_budget_ms=0)) is None


def test_expired_clock_gives_nothing(square_index, log_lines):
    gen = eng.WordSquareGenerator(square_index, clock=FakeClock(start=0.0, step=1.0))
    assert gen.generate(SeededRandom(1), time_budget_ms=500) is None
    assert any("budget" in line for line in log_lines)


def test_retry_limit(square_index, log_lines):
    gen = eng.WordSquareGenerator(square_index)
    assert gen.generate(SeededRandom(1), max_retries=0, time_budget_ms=10_000) is None
    assert any("max_retries" in line for line in log_lines)


def test_generate_logs_solution(square_index, log_lines):
    gen = eng.WordSquareGenerator(square_index)
    puzzle = gen.generate(SeededRandom(2), time_budget_ms=10_000)
    assert puzzle is not None
    assert any(" | ".join(puzzle.solution) in line for line in log_lines)


# -----------------------------------------------------------------------------
# Daily / level helpers
# -----------------------------------------------------------------------------
def test_daily_puzzle_reproduces(square_words, check_puzzle):
    spec = eng.SquareSpec(time_budget_ms=10_000)
    a = eng.generate_daily_puzzle(square_words, "2025-01-01", spec)
    b = eng.generate_daily_puzzle(list(reversed(square_words)), "2025-01-01", spec)
    c = eng.generate_daily_puzzle(square_words, "2025-01-01", spec)
    assert a is not None and b is not None
    assert (a.letters, a.solution) == (c.letters, c.solution)
    # same words in another order: same key, same puzzle
    assert (a.letters, a.solution) == (b.letters, b.solution)
    check_puzzle(a, WordIndex(square_words))
    check_puzzle(b, WordIndex(square_words))


def test_daily_seed_binding_uses_the_fingerprint(square_words, monkeypatch):
    keys = []
    real = eng.seed_from_text

    def spy(text):
        keys.append(text)
        return real(text)

    monkeypatch.setattr(eng, "seed_from_text", spy)
    idx = WordIndex(square_words)
    eng.generate_daily_puzzle(idx, "2025-01-01", eng.SquareSpec(time_budget_ms=10_000))
    eng.generate_daily_puzzle(idx, "2025-01-01", eng.SquareSpec(time_budget_ms=10_000, bind_seed_to_dictionary=False))
    assert keys == [f"TETRAD_v1|2025-01-01|{idx.fingerprint()}", "TETRAD_v1|2025-01-01"]


def test_level_puzzle_reproduces(square_words, check_puzzle):
    spec = eng.SquareSpec(time_budget_ms=10_000)
    a = eng.generate_level_puzzle(square_words, "forest", 2, salt=9, spec=spec)
    b = eng.generate_level_puzzle(square_words, "forest", 2, salt=9, spec=spec)
    assert a is not None
    assert (a.letters, a.solution) == (b.letters, b.solution)
    check_puzzle(a, WordIndex(square_words))


# -----------------------------------------------------------------------------
# Puzzle value + loaders
# -----------------------------------------------------------------------------
def test_generated_puzzle_helpers():
    p = eng.GeneratedPuzzle(letters=list("dartrearareacard"), solution=list(CARD_SQUARE))
    assert p.size == 4
    assert p.columns() == CARD_SQUARE
    assert p.bag_key() == "".join(sorted("".join(CARD_SQUARE)))
    assert p.grid() == [list("dart"), list("rear"), list("area"), list("card")]


def test_render_preview_ascii():
    p = eng.GeneratedPuzzle(letters=list("dartrearareacard"), solution=list(CARD_SQUARE))
    text = eng.render_preview_ascii(p)
    lines = text.splitlines()
    assert lines[0] == "C A R D"
    assert lines[4] == ""
    assert lines[5] == "D A R T"


def test_load_word_list(tmp_path, log_lines):
    path = tmp_path / "words4.txt"
    path.write_text("# four letters\ncard\n\n  Area \nrear\n", encoding="utf-8")
    assert eng.load_word_list(str(path)) == ["card", "Area", "rear"]
    assert any("loaded 3" in line for line in log_lines)


def test_load_word_list_missing_file(tmp_path, log_lines):
    with pytest.raises(OSError):
        eng.load_word_list(str(tmp_path / "nope.txt"))
    assert any("cannot read" in line for line in log_lines)


def test_load_wordlists_csv(tmp_path, log_lines):
    path = tmp_path / "lists.csv"
    path.write_text("base,themed\ncard,pine\narea,\nrear,moss\ndart\n", encoding="utf-8")
    lists = eng.load_wordlists_csv(str(path))
    assert lists == {"base": ["card", "area", "rear", "dart"], "themed": ["pine", "moss"]}


def test_wordlists_without_header():
    lists = eng.wordlists_from_rows([["card", "pine"], ["area"]], first_row_header=False)
    assert lists == {"Col1": ["card", "area"], "Col2": ["pine"]}
    assert eng.wordlists_from_rows([]) == {}


def test_merge_word_lists():
    assert eng.merge_word_lists(["Rear", "card"], ["card", " area ", ""], []) == ["area", "card", "rear"]


def test_fallback_words_make_a_puzzle(check_puzzle):
    idx = WordIndex(eng.FALLBACK_WORDS)
    puzzle = eng.generate_puzzle(idx, "TETRAD_v1|2025-01-01", eng.SquareSpec(time_budget_ms=10_000))
    assert puzzle is not None
    check_puzzle(puzzle, idx)
