from .errors import ValidationFailed
from .mesh import Mesh


def validate(mesh: Mesh):
    """
    Check the cross references of a parsed mesh, raising ValidationFailed
    on the first broken one.

    Submesh ranges may overlap each other and need not cover every
    triangle.
    """

    vertex_count = mesh.vertex_count

    if len(mesh.normals) != vertex_count:
        raise ValidationFailed("Normals count != vertex count")
    if len(mesh.uvs) != vertex_count:
        raise ValidationFailed("UV count != vertex count")
    if len(mesh.mask) != vertex_count:
        raise ValidationFailed("Mask count != vertex count")
    if len(mesh.flags) != vertex_count:
        raise ValidationFailed("Flags count != vertex count")

    if len(mesh.indices) % 3 != 0:
        raise ValidationFailed("Index count is not divisible by 3")

    for i, index in enumerate(mesh.indices):
        if index >= vertex_count:
            raise ValidationFailed(
                f"Index out of range at indices[{i}] = {index}, "
                f"vertexCount={vertex_count}"
            )

    triangle_count = mesh.triangle_count

    for submesh in mesh.submeshes:
        if submesh.tri_start < 0 or submesh.tri_end < submesh.tri_start:
            raise ValidationFailed(
                f"Submesh {submesh.name} has invalid tri range"
            )

        if submesh.tri_end >= triangle_count:
            raise ValidationFailed(
                f"Submesh {submesh.name} triEnd out of bounds "
                f"(triEnd={submesh.tri_end}, triCount={triangle_count})"
            )
