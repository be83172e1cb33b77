import numpy as np

from fluidsim.neighbors.spatial_hash import NO_PARTICLE, SpatialHashGrid


def _build(pos, h, buckets):
    grid = SpatialHashGrid(support_radius=h, bucket_count=buckets)
    links = np.full((pos.shape[0],), NO_PARTICLE, dtype=np.int64)
    grid.build(pos, links)
    return grid, links


def _neighbor_set(grid, links, pos, i):
    return {j for j, _, _ in grid.query_neighbours(pos[i], pos, links)}


def _brute_force(pos, i, h):
    d2 = np.sum((pos - pos[i]) ** 2, axis=1)
    return {int(j) for j in np.nonzero((d2 > 1e-12) & (d2 < h * h))[0]}


def test_neighbor_query_only_returns_particles_within_support_radius():
    h = 1.0
    pos = np.array([
        [0.0, 0.0],
        [0.5, 0.0],
        [2.0, 0.0],
        [1.0, 0.0],  # exactly at h: excluded (strict bound)
    ], dtype=np.float64)

    grid, links = _build(pos, h, buckets=4)

    nbs = _neighbor_set(grid, links, pos, 0)
    assert nbs == {1}


def test_query_yields_offset_and_squared_distance():
    h = 1.0
    pos = np.array([[0.1, 0.1], [0.4, -0.3]], dtype=np.float64)
    grid, links = _build(pos, h, buckets=2)

    (j, offset, r2), = list(grid.query_neighbours(pos[0], pos, links))
    assert j == 1
    assert np.allclose(offset, pos[1] - pos[0])
    assert np.isclose(r2, 0.3 ** 2 + 0.4 ** 2)


def test_single_particle_is_not_its_own_neighbor():
    pos = np.array([[0.013, -0.27]], dtype=np.float64)
    grid, links = _build(pos, 0.04, buckets=1)

    assert list(grid.query_neighbours(pos[0], pos, links)) == []


def test_coincident_particles_exclude_each_other():
    pos = np.array([[0.5, 0.5], [0.5, 0.5], [0.51, 0.5]], dtype=np.float64)
    grid, links = _build(pos, 0.04, buckets=3)

    assert _neighbor_set(grid, links, pos, 0) == {2}
    assert _neighbor_set(grid, links, pos, 1) == {2}
    assert _neighbor_set(grid, links, pos, 2) == {0, 1}


def test_insert_returns_previous_bucket_head():
    grid = SpatialHashGrid(support_radius=0.04, bucket_count=1)

    assert grid.insert(np.array([0.0, 0.0]), 0) == NO_PARTICLE
    assert grid.insert(np.array([3.0, -2.0]), 1) == 0
    assert grid.insert(np.array([0.01, 0.0]), 2) == 1

    grid.clear()
    assert np.all(grid.heads == NO_PARTICLE)


def test_negative_cells_hash_like_unsigned_words():
    grid = SpatialHashGrid(support_radius=1.0, bucket_count=7)

    assert grid.cell_of(np.array([-0.5, 0.5])) == (-1, 0)
    assert grid.bucket_of((-1, 0)) == ((1 << 64) - 1) % 7
    assert grid.bucket_of((0, 1)) == 87119 % 7
    assert 0 <= grid.bucket_of((-3, -5)) < 7


def test_colliding_distant_cells_do_not_leak_neighbors():
    """
    With 5 buckets, cells (0,0) and (5,0) share bucket 0. The far particle
    is walked as a candidate but must be filtered by true distance.
    """
    h = 0.04
    pos = np.array([
        [0.01, 0.01],  # cell (0, 0)
        [0.21, 0.01],  # cell (5, 0)
        [0.03, 0.01],  # cell (0, 0)
    ], dtype=np.float64)

    grid, links = _build(pos, h, buckets=5)
    assert grid.bucket_of((0, 0)) == grid.bucket_of((5, 0))

    assert _neighbor_set(grid, links, pos, 0) == {2}
    assert _neighbor_set(grid, links, pos, 1) == set()


def test_neighbors_are_invariant_to_bucket_count():
    h = 0.04
    rng = np.random.default_rng(0)
    pos = rng.uniform(-0.15, 0.15, size=(80, 2))

    for buckets in [1, 2, 3, 9, 80, 1000]:
        grid, links = _build(pos, h, buckets=buckets)
        for i in range(pos.shape[0]):
            found = [j for j, _, _ in grid.query_neighbours(pos[i], pos, links)]
            assert len(found) == len(set(found))
            assert set(found) == _brute_force(pos, i, h)


def test_neighbor_query_is_deterministic_and_restartable():
    h = 1.0
    pos = np.array([
        [0.0, 0.0],
        [0.8, 0.0],
        [0.0, 0.8],
        [0.8, 0.8],
    ], dtype=np.float64)

    grid, links = _build(pos, h, buckets=4)
    nbs1 = [j for j, _, _ in grid.query_neighbours(pos[0], pos, links)]
    nbs2 = [j for j, _, _ in grid.query_neighbours(pos[0], pos, links)]

    grid.build(pos, links)
    nbs3 = [j for j, _, _ in grid.query_neighbours(pos[0], pos, links)]

    assert nbs1 == nbs2 == nbs3
    assert set(nbs1) == {1, 2}


def test_empty_grid_yields_nothing():
    grid = SpatialHashGrid(support_radius=0.04, bucket_count=0)
    pos = np.zeros((0, 2))
    links = np.zeros((0,), dtype=np.int64)

    assert list(grid.query_neighbours(np.array([0.0, 0.0]), pos, links)) == []
