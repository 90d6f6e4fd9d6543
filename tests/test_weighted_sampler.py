import numpy as np
import pytest

from errors import InvalidArgumentError
from weighted_sampler import WeightedSampler


def test_cumulative_frequencies_end_at_one_and_never_decrease():
    rng = np.random.default_rng(5)
    for _ in range(50):
        n = int(rng.integers(1, 40))
        weights = rng.exponential(size=n)
        weights[rng.random(n) < 0.2] = 0.0
        sampler = WeightedSampler()
        sampler.prepare(list(range(n)), weights)

        cum = sampler.cumulative_frequencies
        assert cum[0] == 0.0
        assert cum[-1] == 1.0 or np.count_nonzero(weights) == 0
        assert np.all(np.diff(cum) >= 0.0)
        assert cum.size == np.count_nonzero(weights) + 1


def test_tiny_trailing_weight_keeps_frequencies_non_decreasing():
    rng = np.random.default_rng(11)
    for exponent in range(10, 30):
        for _ in range(200):
            n = int(rng.integers(2, 12))
            weights = rng.random(n)
            weights[-1] = 10.0 ** -exponent
            sampler = WeightedSampler()
            sampler.prepare(list(range(n)), weights)

            cum = sampler.cumulative_frequencies
            assert np.all(np.diff(cum) >= 0.0)
            assert cum.max() == 1.0


def test_draw_uses_floor_of_cumulative_frequency():
    sampler = WeightedSampler()
    sampler.prepare(["a", "b", "c"], [1.0, 1.0, 2.0])

    assert np.allclose(sampler.cumulative_frequencies, [0.0, 0.25, 0.5, 1.0])
    assert sampler.draw(0.0) == "a"
    assert sampler.draw(0.2499) == "a"
    assert sampler.draw(0.25) == "b"
    assert sampler.draw(0.4999) == "b"
    assert sampler.draw(0.5) == "c"
    assert sampler.draw(0.9999) == "c"


def test_zero_weight_items_are_never_drawn():
    rng = np.random.default_rng(1)
    sampler = WeightedSampler()
    sampler.prepare(["a", "zero", "b"], [1.0, 0.0, 3.0])

    draws = sampler.draw_many(2000, rng)
    assert "zero" not in draws
    assert {"a", "b"} == set(draws)


def test_two_item_distribution_converges_to_weights():
    rng = np.random.default_rng(42)
    sampler = WeightedSampler()
    sampler.prepare(["heavy", "light"], [0.9, 0.1])

    draws = sampler.draw_many(20000, rng)
    assert abs(draws.count("heavy") / len(draws) - 0.9) < 0.01

    single_draws = [sampler.draw(float(rng.random())) for _ in range(5000)]
    assert abs(single_draws.count("light") / len(single_draws) - 0.1) < 0.02


def test_all_zero_weights_fall_back_to_uniform_choice():
    rng = np.random.default_rng(3)
    items = ["a", "b", "c", "d"]
    sampler = WeightedSampler()
    sampler.prepare(items, [0.0, 0.0, 0.0, 0.0])

    assert sampler.draw(0.0) == "a"
    assert sampler.draw(0.99) == "d"

    draws = sampler.draw_many(4000, rng)
    for item in items:
        assert abs(draws.count(item) / len(draws) - 0.25) < 0.04


def test_discard_requires_a_fresh_prepare():
    sampler = WeightedSampler()
    sampler.prepare(["a", "b"], [1.0, 0.0])
    assert sampler.is_ready
    assert sampler.draw(0.7) == "a"

    sampler.discard()
    assert not sampler.is_ready
    with pytest.raises(RuntimeError):
        sampler.draw(0.5)

    sampler.prepare(["a", "b"], [0.0, 1.0])
    assert sampler.draw(0.7) == "b"


def test_sample_prepares_once_and_reuses_the_preparation():
    rng = np.random.default_rng(0)
    sampler = WeightedSampler()
    assert sampler.sample(["only", "never"], [1.0, 0.0], rng) == "only"
    assert sampler.is_ready

    # The stale preparation is used until it is discarded.
    assert sampler.sample(["only", "never"], [0.0, 1.0], rng) == "only"


@pytest.mark.parametrize(
    "items, weights",
    [
        ([], []),
        (["a", "b"], [1.0]),
        (["a", "b"], [1.0, -0.5]),
        (["a", "b"], [1.0, float("inf")]),
        (["a", "b"], [1.0, float("nan")]),
    ],
)
def test_prepare_rejects_invalid_input(items, weights):
    with pytest.raises(InvalidArgumentError):
        WeightedSampler().prepare(items, weights)


def test_draw_rejects_values_outside_unit_interval():
    sampler = WeightedSampler()
    sampler.prepare(["a"], [1.0])
    with pytest.raises(InvalidArgumentError):
        sampler.draw(1.0)
    with pytest.raises(InvalidArgumentError):
        sampler.draw(-0.1)
