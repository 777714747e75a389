from dataclasses import dataclass, field
from enum import IntFlag
from typing import Dict, List, Tuple

SUPPORTED_VERSION = 1


class ShadowFlags(IntFlag):
    NONE = 0
    CASTS = 1
    RECEIVES = 2


DEFAULT_SHADOW_FLAGS = ShadowFlags.CASTS | ShadowFlags.RECEIVES


@dataclass(frozen=True)
class Submesh:
    """
    A contiguous run of triangles drawn with one material.

    `tri_start` and `tri_end` are inclusive and counted in triangles, not
    in index-buffer positions.
    """

    name: str
    material_id: str
    tri_start: int
    tri_end: int
    casts_shadow: bool = True
    receives_shadow: bool = True

    @classmethod
    def from_flags(cls: 'Submesh', name: str, material_id: str,
                   tri_start: int, tri_end: int, flags: int) -> 'Submesh':
        return Submesh(
            name=name,
            material_id=material_id,
            tri_start=tri_start,
            tri_end=tri_end,
            casts_shadow=bool(flags & ShadowFlags.CASTS),
            receives_shadow=bool(flags & ShadowFlags.RECEIVES),
        )

    @property
    def shadow_flags(self) -> ShadowFlags:
        flags = ShadowFlags.NONE

        if self.casts_shadow:
            flags |= ShadowFlags.CASTS
        if self.receives_shadow:
            flags |= ShadowFlags.RECEIVES

        return flags

    @property
    def shadow_key(self) -> Tuple[bool, bool]:
        return (self.casts_shadow, self.receives_shadow)

    @property
    def triangle_count(self) -> int:
        return self.tri_end - self.tri_start + 1


@dataclass
class Mesh:
    """
    One parsed asset. The per-vertex lists are parallel and all share the
    length of `positions`.
    """

    name: str
    version: int

    positions: List[Tuple[float, float, float]]
    normals: List[Tuple[float, float, float]]
    uvs: List[Tuple[float, float]]
    mask: List[int]
    flags: List[int]

    indices: List[int]

    material_library_name: str
    submeshes: List[Submesh] = field(default_factory=list)

    @property
    def vertex_count(self) -> int:
        return len(self.positions)

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3

    def triangle(self, index: int) -> Tuple[int, int, int]:
        start = index * 3

        return (
            self.indices[start],
            self.indices[start + 1],
            self.indices[start + 2],
        )

    def submesh_indices(self, submesh: Submesh) -> List[int]:
        """
        Slice of `indices` covered by a submesh, three entries per triangle.
        """

        return self.indices[submesh.tri_start * 3:submesh.tri_end * 3 + 3]

    def group_submeshes_by_shadow(self) -> Dict[Tuple[bool, bool], List[Submesh]]:
        # dicts keep insertion order, so groups come out in first-seen order
        groups = {}

        for submesh in self.submeshes:
            groups.setdefault(submesh.shadow_key, []).append(submesh)

        return groups

    def reverse_winding(self):
        """
        Swap the second and third corner of every triangle in place.
        """

        for i in range(0, len(self.indices) - 2, 3):
            self.indices[i + 1], self.indices[i + 2] = \
                self.indices[i + 2], self.indices[i + 1]
