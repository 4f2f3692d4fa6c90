import numpy as np
import pytest

from multiopt.convex.regions import (
    BoundaryType,
    BoxRegion,
    LinearEqualityRegion,
    LinearInequalityRegion,
    common_dimension,
)


def test_box_boundary_types():
    box = BoxRegion([0.0, 1.0, -np.inf, np.nan], [2.0, np.inf, 3.0, np.inf])
    assert box.boundary_types == (
        BoundaryType.BOUNDED,
        BoundaryType.LOWER,
        BoundaryType.UPPER,
        BoundaryType.UNBOUNDED,
    )
    assert box.dimension == 4


def test_box_distance_is_sum_of_violations():
    box = BoxRegion.uniform(3, -1.0, 1.0)
    assert box.distance(np.array([0.0, 0.5, -1.0])) == 0.0
    assert box.contains(np.array([1.0, -1.0, 0.0]))
    assert box.distance(np.array([2.0, -3.0, 0.0])) == pytest.approx(3.0)
    assert not box.contains(np.array([1.0 + 1e-12, 0.0, 0.0]))


@pytest.mark.parametrize(
    "lower, upper",
    [
        ([np.inf], [1.0]),
        ([0.0], [-np.inf]),
        ([2.0], [1.0]),
        ([0.0, 0.0], [1.0]),
    ],
)
def test_box_rejects_invalid_bounds(lower, upper):
    with pytest.raises(ValueError):
        BoxRegion(lower, upper)


def test_box_bounds_are_read_only():
    box = BoxRegion([0.0], [1.0])
    with pytest.raises(ValueError):
        box.lower[0] = 5.0


def test_box_to_inequalities_skips_infinite_bounds():
    box = BoxRegion([0.0, -np.inf], [np.inf, 2.0])
    g_mat, h_vec = box.to_inequalities()
    assert g_mat.shape == (2, 2)
    x = np.array([1.0, 1.0])
    assert np.all(g_mat @ x <= h_vec)
    assert np.any(g_mat @ np.array([-1.0, 1.0]) > h_vec)


def test_linear_inequality_region():
    region = LinearInequalityRegion([[1.0, 1.0], [-1.0, 0.0]], [1.0, 0.0])
    assert region.dimension == 2
    assert region.contains(np.array([0.5, 0.5]))
    assert region.distance(np.array([1.0, 1.0])) == pytest.approx(1.0)
    assert region.distance(np.array([-1.0, 3.0])) == pytest.approx(2.0)


def test_linear_equality_region_uses_tolerance():
    region = LinearEqualityRegion([1.0, -1.0], [0.0], tolerance=1e-6)
    assert region.contains(np.array([1.0, 1.0 + 1e-7]))
    assert not region.contains(np.array([1.0, 1.1]))
    assert region.distance(np.array([2.0, 0.0])) == pytest.approx(2.0)


def test_linear_regions_validate_shapes():
    with pytest.raises(ValueError):
        LinearInequalityRegion(np.ones((2, 2)), np.ones(3))
    with pytest.raises(ValueError):
        LinearEqualityRegion(np.ones((1, 2)), np.ones(1), tolerance=-1.0)


def test_region_distance_checks_dimension():
    with pytest.raises(ValueError):
        BoxRegion([0.0], [1.0]).distance(np.zeros(2))


def test_common_dimension():
    assert common_dimension([]) is None
    assert common_dimension([BoxRegion.uniform(2, 0.0, 1.0), LinearEqualityRegion([1.0, 1.0], [1.0])]) == 2
    with pytest.raises(ValueError):
        common_dimension([BoxRegion.uniform(2, 0.0, 1.0), BoxRegion.uniform(3, 0.0, 1.0)])
