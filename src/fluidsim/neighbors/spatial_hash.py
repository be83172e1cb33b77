from __future__ import annotations

from typing import Iterator, Tuple

import numpy as np

# Marks "no particle": an empty bucket, or the last link of a chain.
NO_PARTICLE = -1

# Multiplier mixing the y cell coordinate into the bucket index.
CELL_HASH_PRIME = 87119

# Cell coordinates are reinterpreted as unsigned 64-bit words before mixing,
# so negative cells wrap instead of producing negative bucket indices.
_U64_MASK = (1 << 64) - 1

# Squared distance below which a candidate counts as "the query point itself".
SELF_EPS2 = 1e-12


class SpatialHashGrid:
    """
    Fixed-size hashed uniform grid for 2-D neighbor search.

    Cells have edge length h (the kernel support radius), so everything
    within h of a point lies in that point's cell or one of its 8 neighbors.
    Cells are hashed into `bucket_count` buckets. Each bucket stores the
    index of the most recently inserted particle; the rest of the chain is
    reached through a per-particle `links` array owned by the caller
    (links[i] is the next particle in i's bucket, or NO_PARTICLE).

    Distinct cells may share a bucket. Queries re-check the true distance,
    so collisions only add candidate visits.
    """

    def __init__(self, support_radius: float, bucket_count: int):
        self.h = float(support_radius)
        if self.h <= 0.0:
            raise ValueError("support_radius must be > 0")
        bucket_count = int(bucket_count)
        if bucket_count < 0:
            raise ValueError("bucket_count must be >= 0")

        self.cell_size = self.h
        self.heads = np.full((bucket_count,), NO_PARTICLE, dtype=np.int64)

    @property
    def bucket_count(self) -> int:
        return int(self.heads.shape[0])

    def cell_of(self, position: np.ndarray) -> Tuple[int, int]:
        cell = np.floor(np.asarray(position, dtype=np.float64) / self.cell_size).astype(np.int64)
        return int(cell[0]), int(cell[1])

    def bucket_of(self, cell: Tuple[int, int]) -> int:
        cx = cell[0] & _U64_MASK
        cy = cell[1] & _U64_MASK
        return ((cx + cy * CELL_HASH_PRIME) & _U64_MASK) % self.bucket_count

    def clear(self) -> None:
        self.heads.fill(NO_PARTICLE)

    def insert(self, position: np.ndarray, index: int) -> int:
        """
        Push particle `index` onto the head of its bucket chain.

        Returns the previous head, which the caller stores as links[index].
        """
        if self.bucket_count == 0:
            raise ValueError("cannot insert into a grid without buckets")

        b = self.bucket_of(self.cell_of(position))
        previous = int(self.heads[b])
        self.heads[b] = int(index)
        return previous

    def build(self, positions: np.ndarray, links: np.ndarray) -> None:
        """Clear the grid and insert every particle in index order."""
        self.clear()
        for i, pos in enumerate(positions):
            links[i] = self.insert(pos, i)

    def query_neighbours(
        self,
        position: np.ndarray,
        positions: np.ndarray,
        links: np.ndarray,
    ) -> Iterator[Tuple[int, np.ndarray, float]]:
        """
        Lazily yield (j, offset, r2) for every particle j with
        SELF_EPS2 < r2 < h^2, where offset = positions[j] - position and
        r2 = |offset|^2.

        The 3x3 block of cells around `position` is scanned row-major
        (x offset varies fastest); a bucket reached from several of those
        cells is walked only once. The grid is not modified, and each call
        returns a fresh generator.
        """
        if self.bucket_count == 0:
            return

        origin = np.asarray(position, dtype=np.float64)
        cx, cy = self.cell_of(origin)
        h2 = self.h * self.h

        # two of the nine cells may share a bucket; walk each chain once
        visited: list[int] = []

        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                b = self.bucket_of((cx + dx, cy + dy))
                if b in visited:
                    continue
                visited.append(b)

                j = int(self.heads[b])
                while j != NO_PARTICLE:
                    offset = positions[j] - origin
                    r2 = float(offset @ offset)
                    if SELF_EPS2 < r2 < h2:
                        yield j, offset, r2
                    j = int(links[j])
