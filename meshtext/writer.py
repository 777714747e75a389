import math
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from .mesh import Mesh


def format_float(value: float) -> str:
    if not math.isfinite(value):
        raise ValueError(f"Cannot write non-finite value {value!r}")

    return repr(float(value))


def _join(*parts: Iterable[str]) -> str:
    return " ".join(token for part in parts for token in part)


def _metadata_lines(metadata: Dict[str, str]) -> List[str]:
    lines = [f"metadata {len(metadata)}"]

    for key, value in metadata.items():
        tokens = str(value).split()

        if len(key.split()) != 1 or "#" in key:
            raise ValueError(f"Metadata key {key!r} must be a single token")
        if not tokens or "#" in value:
            raise ValueError(f"Metadata value for {key!r} cannot be written")

        lines.append(_join(["m", key], tokens))

    return lines


def dump_text(mesh: Mesh, metadata: Optional[Dict[str, str]] = None) -> str:
    """
    Serialise a mesh back into the text format.

    Submesh shadow flags have no place in the format, reading the output
    back gives every submesh the default flags.
    """

    lines = [
        f"mesh {mesh.name}",
        f"version {mesh.version}",
    ]

    if metadata:
        lines += _metadata_lines(metadata)

    lines.append(f"vertices {mesh.vertex_count}")

    for position, normal, uv, mask, flags in zip(
        mesh.positions, mesh.normals, mesh.uvs, mesh.mask, mesh.flags
    ):
        lines.append(_join(
            ["v"],
            map(format_float, position),
            map(format_float, normal),
            map(format_float, uv),
            [str(mask), str(flags)],
        ))

    lines.append(f"triangles {mesh.triangle_count}")

    for i in range(mesh.triangle_count):
        lines.append("t {} {} {}".format(*mesh.triangle(i)))

    lines.append(f"material_library {mesh.material_library_name}")

    if mesh.submeshes:
        lines.append(f"material_assignment {len(mesh.submeshes)}")

        for submesh in mesh.submeshes:
            lines.append(
                f"m {submesh.material_id} tris {submesh.tri_start} {submesh.tri_end}"
            )

    return "\n".join(lines) + "\n"


def write_file(mesh: Mesh, path: Union[str, Path],
               metadata: Optional[Dict[str, str]] = None):
    Path(path).write_text(dump_text(mesh, metadata), encoding="utf-8")
