import numpy as np
import pytest

from sketchbook.core.noise import PERMUTATION_DRAWS, build_permutation_table, noise2d, noise3d, noise4d
from sketchbook.core.random import Random

SEED = (42,)


def test_permutation_table_consumes_fixed_number_of_draws():
    r = Random(SEED)
    perm = build_permutation_table(r)
    assert r.use_count == PERMUTATION_DRAWS
    assert perm.shape == (512,)
    assert sorted(perm[:256].tolist()) == list(range(256))
    assert np.array_equal(perm[:256], perm[256:])


@pytest.mark.parametrize("factory, dims", [(noise2d, 2), (noise3d, 3), (noise4d, 4)])
def test_same_seed_gives_identical_noise_fields(factory, dims):
    rng = np.random.default_rng(0)
    coords = [rng.uniform(-10.0, 10.0, 64) for _ in range(dims)]
    a = factory(Random(SEED))(*coords)
    b = factory(Random(SEED))(*coords)
    assert np.array_equal(a, b)


@pytest.mark.parametrize("factory, dims", [(noise2d, 2), (noise3d, 3), (noise4d, 4)])
def test_noise_values_are_within_unit_range(factory, dims):
    rng = np.random.default_rng(1)
    coords = [rng.uniform(-50.0, 50.0, 2000) for _ in range(dims)]
    values = factory(Random(SEED))(*coords)
    assert values.shape == (2000,)
    assert np.all(values >= -1.0)
    assert np.all(values <= 1.0)


def test_different_seeds_give_different_fields():
    xs = np.linspace(0.1, 9.7, 50)
    ys = np.linspace(-3.3, 4.1, 50)
    a = noise2d(Random((1,)))(xs, ys)
    b = noise2d(Random((2,)))(xs, ys)
    assert not np.allclose(a, b)


def test_scalar_call_returns_float_matching_array_call():
    f = noise3d(Random(SEED))
    scalar = f(0.3, 1.7, -2.2)
    assert isinstance(scalar, float)
    array = f(np.array([0.3]), np.array([1.7]), np.array([-2.2]))
    assert scalar == pytest.approx(float(array[0]))


def test_array_call_broadcasts_inputs():
    f = noise2d(Random(SEED))
    xs = np.linspace(0.0, 1.0, 5)[None, :]
    ys = np.linspace(0.0, 1.0, 3)[:, None]
    assert f(xs, ys).shape == (3, 5)


def test_wrong_number_of_coordinates_is_rejected():
    with pytest.raises(TypeError):
        noise2d(Random(SEED))(1.0, 2.0, 3.0)
