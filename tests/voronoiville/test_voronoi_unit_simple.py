import numpy as np
import pytest

from voronoiville import (
    BoundingBox,
    ConfigError,
    ConstructionError,
    InputError,
    VoronoiCell,
    compute_voronoi,
    voronoi,
)


def _square_box(size=10.0):
    return BoundingBox(0.0, 0.0, size, size)


def _as_set(poly, decimals=9):
    return {tuple(np.round(p, decimals)) for p in poly}


def test_single_site_fills_the_region():
    cells = voronoi([(5.0, 5.0)], _square_box(10.0))

    assert len(cells) == 1
    c = cells[0]
    assert c.site == 0
    assert c.is_on_hull
    assert _as_set(c.vertices) == _as_set(_square_box(10.0).corners())
    assert c.neighbors == ()
    assert np.isclose(c.area(), 100.0)


def test_voronoi_two_points_split():
    box = _square_box(10.0)
    d = compute_voronoi([(3.0, 5.0), (7.0, 5.0)], box)

    # Should have 2 cells for the 2 seeds
    assert [c.site for c in d] == [0, 1]
    c0, c1 = d.cells

    assert np.isclose(c0.area(), c1.area())
    assert np.isclose(c0.area() + c1.area(), 100.0)
    assert c0.neighbors == (1,)
    assert c1.neighbors == (0,)
    assert c0.is_on_hull and c1.is_on_hull

    # separated by the perpendicular bisector x = 5
    assert np.all(c0.vertices[:, 0] <= 5.0 + 1e-12)
    assert np.all(c1.vertices[:, 0] >= 5.0 - 1e-12)
    assert _as_set(c0.vertices) == {(0.0, 0.0), (5.0, 0.0), (5.0, 10.0), (0.0, 10.0)}


def test_voronoi_center_has_four_neighbors_in_symmetric_setup():
    seeds = np.array([
        [5.0, 5.0],   # center (id 0)
        [2.5, 5.0],   # left
        [7.5, 5.0],   # right
        [5.0, 2.5],   # bottom
        [5.0, 7.5],   # top
    ], dtype=np.float64)

    d = compute_voronoi(seeds, _square_box(10.0))
    center = d[0]

    assert set(center.neighbors) == {1, 2, 3, 4}
    assert not center.is_on_hull
    assert _as_set(center.vertices) == {(3.75, 3.75), (6.25, 3.75), (6.25, 6.25), (3.75, 6.25)}
    assert all(c.is_on_hull for c in d.cells[1:])
    assert d.hull_cells() == [1, 2, 3, 4]


def test_three_collinear_sites_make_strips():
    d = compute_voronoi([(2.0, 5.0), (5.0, 5.0), (8.0, 5.0)], _square_box(10.0))

    assert np.allclose([c.area() for c in d], [35.0, 30.0, 35.0])
    assert d[0].neighbors == (1,)
    assert d[1].neighbors == (0, 2)
    assert d[2].neighbors == (1,)
    assert all(c.is_on_hull for c in d)


@pytest.mark.parametrize("h", [1e-4, 1e-6, 1e-7, 1e-8, 2e-9])
def test_nearly_collinear_triples_make_strips(h):
    # the middle site is just off the line, so the one Delaunay triangle is a sliver
    d = compute_voronoi([(0.0, 5.0), (5.0, 5.0 + h), (10.0, 5.0)], _square_box(10.0))

    assert np.isclose(d.total_area(), 100.0, rtol=1e-9)
    assert np.allclose([c.area() for c in d], [25.0, 50.0, 25.0], atol=1e-6)
    assert d.neighbor_pairs() == {(0, 1), (1, 2)}
    assert all(c.is_on_hull for c in d)
    for c in d:
        assert c.contains(d.sites[c.site])


def test_diagonal_collinear_sites():
    d = compute_voronoi([(1.0, 1.0), (5.0, 5.0), (9.0, 9.0)], _square_box(10.0))
    assert np.isclose(d.total_area(), 100.0)
    assert d.neighbor_pairs() == {(0, 1), (1, 2)}


def test_output_follows_input_order():
    seeds = [(9.0, 1.0), (1.0, 1.0), (5.0, 8.0), (4.0, 4.0)]
    cells = voronoi(seeds, _square_box(10.0))
    assert [c.site for c in cells] == [0, 1, 2, 3]
    for c, s in zip(cells, seeds):
        assert np.array_equal(c.position, s)
        assert c.contains(s)


def test_neighbors_are_optional():
    seeds = [(9.0, 1.0), (1.0, 1.0), (5.0, 8.0), (4.0, 4.0), (6.0, 3.0)]
    with_n = compute_voronoi(seeds, _square_box(10.0), return_neighbors=True)
    without = compute_voronoi(seeds, _square_box(10.0), return_neighbors=False)

    assert with_n.neighbors_computed and not without.neighbors_computed
    assert without.neighbor_pairs() == set()
    for a, b in zip(with_n, without):
        assert a.has_neighbors and not b.has_neighbors
        assert b.neighbors == ()
        assert np.array_equal(a.position, b.position)
        assert np.array_equal(a.vertices, b.vertices)
        assert a.is_on_hull == b.is_on_hull


def test_neighbor_computation_is_skipped(monkeypatch):
    import importlib

    mod = importlib.import_module("voronoiville.voronoi")

    def boom(*args, **kwargs):
        raise AssertionError("neighbors computed")

    monkeypatch.setattr(mod, "find_neighbors", boom)
    d = compute_voronoi([(1.0, 1.0), (8.0, 3.0), (4.0, 9.0)], _square_box(), return_neighbors=False)
    assert len(d) == 3


def test_zero_iterations_keep_positions():
    seeds = np.array([[1.0, 1.0], [2.0, 1.5], [8.0, 8.0]])
    d = compute_voronoi(seeds, _square_box(10.0), lloyd_relaxation_iterations=0)
    assert np.array_equal(d.sites, seeds)
    for c in d:
        assert np.array_equal(c.position, seeds[c.site])


def test_relaxation_moves_unbalanced_sites():
    seeds = np.array([[1.0, 1.0], [2.0, 1.5], [8.0, 8.0]])
    d = compute_voronoi(seeds, _square_box(10.0), lloyd_relaxation_iterations=2)

    assert d.iterations == 2
    moved = [not np.allclose(c.position, seeds[c.site]) for c in d]
    assert any(moved)
    # cells still tile the box after relaxation
    assert np.isclose(d.total_area(), 100.0, rtol=1e-9)


def test_tuple_bounding_box_and_repr():
    cells = voronoi([(0.5, 0.5)], (0.0, 0.0, 1.0, 1.0))
    assert repr(cells[0]) == "VoronoiCell(site=0, pos=(0.500, 0.500), on_hull=True)"
    assert isinstance(cells[0], VoronoiCell)


@pytest.mark.parametrize("box", [(0.0, 0.0, 0.0, 10.0), (0.0, 0.0, 10.0, 0.0)])
def test_zero_sized_region_fails(box):
    with pytest.raises(ConfigError):
        voronoi([(1.0, 1.0), (2.0, 2.0)], box)


def test_duplicate_sites_fail():
    with pytest.raises(InputError):
        voronoi([(1.0, 1.0), (4.0, 4.0), (1.0, 1.0)], _square_box())


def test_empty_and_non_finite_sites_fail():
    with pytest.raises(ConstructionError):
        voronoi([], _square_box())
    with pytest.raises(ConstructionError):
        voronoi([(1.0, float("nan"))], _square_box())


@pytest.mark.parametrize("n", [-1, 1.5, True, "3"])
def test_invalid_iteration_count_fails(n):
    with pytest.raises(ConfigError):
        voronoi([(1.0, 1.0), (2.0, 3.0)], _square_box(), lloyd_relaxation_iterations=n)


def test_sites_outside_region_get_zero_area_cells():
    d = compute_voronoi([(5.0, 5.0), (15.0, 5.0)], _square_box(10.0))

    assert np.isclose(d[0].area(), 100.0)
    assert d[1].area() == 0.0
    assert _as_set(d[1].vertices) == {(10.0, 0.0), (10.0, 10.0)}
    assert d[1].is_on_hull


def test_cell_containing():
    seeds = [(2.0, 2.0), (8.0, 2.0), (5.0, 8.0)]
    d = compute_voronoi(seeds, _square_box(10.0))

    assert d.cell_containing((1.0, 1.0)).site == 0
    assert d.cell_containing((9.0, 1.0)).site == 1
    assert d.cell_containing((5.0, 9.5)).site == 2
    assert d.cell_containing((11.0, 5.0)) is None
