"""Append-only triangle mesh built during plant generation.

A ``Mesh`` is filled by a single recursive pass over a DNA tree and then
frozen into a ``SharedMesh`` that renderers and exporters can hold on to.
"""

import logging
from dataclasses import dataclass
from functools import cached_property
from typing import List, Sequence, Tuple

import numpy as np
import trimesh

logger = logging.getLogger(__name__)

# position, normal, uv as little-endian float32 ("3f 3f 2f", 32 bytes)
VERTEX_DTYPE = np.dtype([
    ("position", "<f4", (3,)),
    ("normal", "<f4", (3,)),
    ("uv", "<f4", (2,)),
])
INDEX_DTYPE = np.dtype("<u4")

DEFAULT_EXTENT = 0.5  # radius/height reported for an empty mesh


@dataclass(frozen=True)
class Vertex:
    position: Tuple[float, float, float]
    normal: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    uv: Tuple[float, float] = (0.0, 0.0)


def _max_ignoring_nan(values: np.ndarray) -> float:
    # NaN sorts below everything; an all-NaN mesh falls back to the default
    values = values[~np.isnan(values)]
    if values.size == 0:
        return DEFAULT_EXTENT
    return float(values.max())


class _MeshQueries:
    """Read-only queries shared by ``Mesh`` and ``SharedMesh``."""

    vertices: Sequence[Vertex]
    indices: Sequence[int]

    def positions(self) -> np.ndarray:
        if not self.vertices:
            return np.zeros((0, 3), dtype=float)
        return np.array([v.position for v in self.vertices], dtype=float)

    def normals(self) -> np.ndarray:
        if not self.vertices:
            return np.zeros((0, 3), dtype=float)
        return np.array([v.normal for v in self.vertices], dtype=float)

    def triangles(self) -> np.ndarray:
        return np.asarray(self.indices, dtype=np.int64).reshape(-1, 3)

    def _cylinder_radius(self) -> float:
        if not self.vertices:
            return DEFAULT_EXTENT
        p = self.positions()
        return _max_ignoring_nan(np.sqrt(p[:, 0]**2 + p[:, 2]**2))

    def _top(self) -> float:
        if not self.vertices:
            return DEFAULT_EXTENT
        return _max_ignoring_nan(self.positions()[:, 1])

    @property
    def radius(self) -> float:
        """Cylindrical extent around the vertical axis."""
        return self._cylinder_radius()

    @property
    def height(self) -> float:
        return self._top()

    def vertex_array(self) -> np.ndarray:
        arr = np.zeros(len(self.vertices), dtype=VERTEX_DTYPE)
        for i, v in enumerate(self.vertices):
            arr[i] = (v.position, v.normal, v.uv)
        return arr

    def vertex_data(self) -> bytes:
        return self.vertex_array().tobytes()

    def index_data(self) -> bytes:
        return np.asarray(self.indices, dtype=INDEX_DTYPE).tobytes()

    def to_trimesh(self, color=None) -> trimesh.Trimesh:
        """Convert to a trimesh object, keeping vertex order and normals."""
        kwargs = {}
        normals = self.normals()
        if len(normals) and np.any(normals):
            kwargs["vertex_normals"] = normals
        if color is not None:
            kwargs["face_colors"] = np.tile(np.asarray(color, dtype=np.uint8),
                                            (len(self.indices) // 3, 1))
        return trimesh.Trimesh(vertices=self.positions(), faces=self.triangles(),
                               process=False, **kwargs)


class Mesh(_MeshQueries):
    """Vertex list plus a flat triangle index list.

    Every index always refers to a vertex that has already been pushed.
    """

    def __init__(self):
        self.vertices: List[Vertex] = []
        self.indices: List[int] = []

    def __len__(self) -> int:
        return len(self.vertices)

    def push_vertex(self, position, normal=(0.0, 0.0, 0.0), uv=(0.0, 0.0)) -> int:
        """Append a vertex and return its index."""
        self.vertices.append(Vertex(
            position=(float(position[0]), float(position[1]), float(position[2])),
            normal=(float(normal[0]), float(normal[1]), float(normal[2])),
            uv=(float(uv[0]), float(uv[1])),
        ))
        return len(self.vertices) - 1

    def push_triangle(self, a: int, b: int, c: int):
        count = len(self.vertices)
        for i in (a, b, c):
            if not 0 <= i < count:
                raise IndexError(f"triangle index {i} out of range for {count} vertices")
        self.indices.extend((a, b, c))

    def calculate_normals(self):
        """Smooth vertex normals from accumulated (area weighted) face normals.

        Triangles with out-of-range indices are skipped; vertices that end up
        with a zero-length normal keep the zero vector.
        """
        n = len(self.vertices)
        if n == 0:
            return
        p = self.positions()
        tris = self.triangles()
        if len(tris):
            tris = tris[np.all((tris >= 0) & (tris < n), axis=1)]

        acc = np.zeros((n, 3), dtype=float)
        if len(tris):
            p0, p1, p2 = p[tris[:, 0]], p[tris[:, 1]], p[tris[:, 2]]
            face = np.cross(p1 - p0, p2 - p1)
            for k in range(3):
                np.add.at(acc, tris[:, k], face)

        lengths = np.linalg.norm(acc, axis=1)
        ok = lengths > 0.0
        acc[ok] /= lengths[ok, None]
        acc[~ok] = 0.0

        self.vertices = [
            Vertex(position=v.position, normal=(float(nx), float(ny), float(nz)), uv=v.uv)
            for v, (nx, ny, nz) in zip(self.vertices, acc)
        ]

    def share(self) -> "SharedMesh":
        """Freeze the mesh for hand-off to renderers."""
        shared = SharedMesh(vertices=tuple(self.vertices), indices=tuple(self.indices))
        logger.debug(f"Mesh frozen: {len(shared.vertices)} vertices, "
                     f"{len(shared.indices) // 3} triangles, "
                     f"radius={shared.radius:.3f} height={shared.height:.3f}")
        return shared


@dataclass(frozen=True)
class SharedMesh(_MeshQueries):
    """Immutable finished mesh with its bounding estimates."""

    vertices: Tuple[Vertex, ...]
    indices: Tuple[int, ...]

    @cached_property
    def radius(self) -> float:
        return self._cylinder_radius()

    @cached_property
    def height(self) -> float:
        return self._top()

    @classmethod
    def from_buffers(cls, vertex_data: bytes, index_data: bytes) -> "SharedMesh":
        """Rebuild a mesh from packed vertex and index buffers."""
        if len(vertex_data) % VERTEX_DTYPE.itemsize:
            raise ValueError(f"vertex buffer size {len(vertex_data)} is not a multiple "
                             f"of {VERTEX_DTYPE.itemsize}")
        arr = np.frombuffer(vertex_data, dtype=VERTEX_DTYPE)
        idx = np.frombuffer(index_data, dtype=INDEX_DTYPE)
        if len(idx) % 3:
            raise ValueError(f"index buffer holds {len(idx)} indices, not whole triangles")
        if len(idx) and int(idx.max()) >= len(arr):
            raise ValueError(f"index {int(idx.max())} out of range for {len(arr)} vertices")
        vertices = tuple(
            Vertex(position=tuple(float(x) for x in rec["position"]),
                   normal=tuple(float(x) for x in rec["normal"]),
                   uv=tuple(float(x) for x in rec["uv"]))
            for rec in arr
        )
        return cls(vertices=vertices, indices=tuple(int(i) for i in idx))
