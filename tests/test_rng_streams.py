import pytest

from mazed.sim.rng import SeededRandom, derive_stream_seed, hash_string, stream_rng


def test_hash_string_matches_fnv1a_reference_values() -> None:
    assert hash_string("") == "811c9dc5"
    assert hash_string("a") == "e40c292c"
    assert hash_string("foobar") == "bf9cf968"


def test_hash_string_hashes_utf16_code_units() -> None:
    expected = 2166136261
    for code_unit in (0xD83D, 0xDE00):
        expected = ((expected ^ code_unit) * 16777619) & 0xFFFFFFFF

    assert hash_string("\U0001F600") == f"{expected:08x}"


def test_seeded_random_is_reproducible_for_same_seed() -> None:
    first = SeededRandom("demo:1")
    second = SeededRandom("demo:1")

    assert [first.next() for _ in range(20)] == [second.next() for _ in range(20)]


def test_seeded_random_values_stay_in_unit_interval() -> None:
    random = SeededRandom("range-check")
    values = [random.next() for _ in range(500)]

    assert all(0.0 <= value < 1.0 for value in values)
    assert len(set(values)) > 450


def test_next_int_is_inclusive_and_bounded() -> None:
    random = SeededRandom("dice")
    rolls = {random.next_int(1, 3) for _ in range(200)}

    assert rolls == {1, 2, 3}


def test_next_int_rejects_inverted_range() -> None:
    with pytest.raises(ValueError, match="maximum_inclusive"):
        SeededRandom("x").next_int(5, 4)


def test_pick_rejects_empty_sequence() -> None:
    with pytest.raises(ValueError, match="empty"):
        SeededRandom("x").pick([])


def test_shuffle_returns_permutation_without_mutating_input() -> None:
    values = list(range(10))
    shuffled = SeededRandom("shuffle").shuffle(values)

    assert values == list(range(10))
    assert sorted(shuffled) == values
    assert shuffled == SeededRandom("shuffle").shuffle(values)


def test_derived_stream_seed_is_stable_and_name_sensitive() -> None:
    assert derive_stream_seed("abc", "hazards") == derive_stream_seed("abc", "hazards")
    assert derive_stream_seed("abc", "hazards") != derive_stream_seed("abc", "items")
    assert derive_stream_seed("abc", "items") == int(hash_string("abc:items"), 16)


def test_stream_draws_do_not_perturb_sibling_stream() -> None:
    items_a = stream_rng("seed-1", "items")
    items_b = stream_rng("seed-1", "items")
    hazards = stream_rng("seed-1", "hazards")

    before = [items_a.next() for _ in range(3)]
    for _ in range(100):
        hazards.next()
    after = [items_b.next() for _ in range(3)]

    assert before == after
