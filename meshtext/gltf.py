"""
glTF 2.0 export of a parsed mesh.

Vertices go into one interleaved buffer view (position, normal, uv as
float32, 32 byte stride) and indices into a second one as uint32.
Submeshes are grouped by their shadow behaviour with one node per group,
and each submesh becomes a primitive of that node's mesh.
"""
import logging
import struct
from pathlib import Path
from typing import Dict, List, Optional, Union

import pygltflib

from .material_library import MaterialLibrary, MaterialDefinition, MaterialType
from .mesh import Mesh
from .util import MinMaxTracker, BoundingBoxTracker, pad_to_4

logger = logging.getLogger(__name__)

VERTEX_STRIDE = 32


def shadow_group_name(casts_shadow: bool, receives_shadow: bool) -> str:
    return f"mesh_part_cast{str(casts_shadow).lower()}_recv{str(receives_shadow).lower()}"


def _vertex_bytes(mesh: Mesh) -> bytearray:
    vertex_data = bytearray()

    for position, normal, uv in zip(mesh.positions, mesh.normals, mesh.uvs):
        vertex_data += struct.pack("<8f", *position, *normal, *uv)

    return vertex_data


def _texture_index(uri: str, textures: Dict[str, int], images: List[pygltflib.Image]) -> int:
    if uri not in textures:
        textures[uri] = len(images)
        images.append(pygltflib.Image(uri=uri))

    return textures[uri]


def _material(definition: Optional[MaterialDefinition], material_id: str,
              textures: Dict[str, int], images: List[pygltflib.Image]) -> pygltflib.Material:
    if definition is None or definition.type is MaterialType.UNKNOWN:
        return pygltflib.Material(name=material_id)

    base_color_texture = None
    normal_texture = None

    if definition.diffuse_texture:
        base_color_texture = pygltflib.TextureInfo(
            index=_texture_index(definition.diffuse_texture, textures, images)
        )

    if definition.normal_texture:
        normal_texture = pygltflib.NormalMaterialTexture(
            index=_texture_index(definition.normal_texture, textures, images)
        )

    # Glass has no glTF counterpart; it becomes a blended, unculled PBR surface
    is_glass = definition.type is MaterialType.GLASS

    if is_glass or definition.is_transparent:
        alpha_mode = pygltflib.BLEND
    elif definition.opacity_thresh > 0:
        alpha_mode = pygltflib.MASK
    else:
        alpha_mode = pygltflib.OPAQUE

    red, green, blue, alpha = definition.diffuse_color

    material = pygltflib.Material(
        name=material_id,
        pbrMetallicRoughness=pygltflib.PbrMetallicRoughness(
            baseColorFactor=[red, green, blue, alpha * definition.opacity],
            baseColorTexture=base_color_texture,
            metallicFactor=definition.metallic,
            roughnessFactor=definition.roughness,
        ),
        normalTexture=normal_texture,
        alphaMode=alpha_mode,
        doubleSided=is_glass or definition.double_sided,
    )

    if alpha_mode == pygltflib.MASK:
        material.alphaCutoff = definition.opacity_thresh

    return material


def to_gltf(mesh: Mesh, material_library: Optional[MaterialLibrary] = None) -> pygltflib.GLTF2:
    if material_library is not None \
            and material_library.library_name != mesh.material_library_name:
        logger.warning(
            f"Mesh {mesh.name} expects material library "
            f"'{mesh.material_library_name}', got '{material_library.library_name}'"
        )

    index_data = bytearray()
    accessors = []
    materials = []
    material_index_by_id = {}
    images = []
    texture_index_by_uri = {}

    # Vertex accessors come first: position, normal then uv
    position_bounds = BoundingBoxTracker()
    position_bounds.extend(mesh.positions)

    accessors += [
        pygltflib.Accessor(
            bufferView=1,
            componentType=pygltflib.FLOAT,
            count=mesh.vertex_count,
            type=pygltflib.VEC3,
            max=position_bounds.max,
            min=position_bounds.min,
        ),
        pygltflib.Accessor(
            bufferView=1,
            byteOffset=12,
            componentType=pygltflib.FLOAT,
            count=mesh.vertex_count,
            type=pygltflib.VEC3,
        ),
        pygltflib.Accessor(
            bufferView=1,
            byteOffset=24,
            componentType=pygltflib.FLOAT,
            count=mesh.vertex_count,
            type=pygltflib.VEC2,
        ),
    ]

    attributes = pygltflib.Attributes(POSITION=0, NORMAL=1, TEXCOORD_0=2)

    def add_primitive(indices: List[int], material_id: Optional[str]) -> pygltflib.Primitive:
        index_bounds = MinMaxTracker()
        index_bounds.extend(indices)

        accessor_index = len(accessors)
        accessors.append(
            pygltflib.Accessor(
                bufferView=0,
                byteOffset=len(index_data),
                componentType=pygltflib.UNSIGNED_INT,
                count=len(indices),
                type=pygltflib.SCALAR,
                max=[index_bounds.max] if indices else None,
                min=[index_bounds.min] if indices else None,
            )
        )
        index_data.extend(struct.pack(f"<{len(indices)}I", *indices))

        material_index = None

        if material_id is not None:
            if material_id not in material_index_by_id:
                definition = None

                if material_library is not None:
                    definition = material_library.material(material_id)

                material_index_by_id[material_id] = len(materials)
                materials.append(
                    _material(definition, material_id, texture_index_by_uri, images)
                )

            material_index = material_index_by_id[material_id]

        return pygltflib.Primitive(
            attributes=attributes,
            indices=accessor_index,
            material=material_index,
        )

    gltf_meshes = []
    nodes = []

    if not mesh.submeshes:
        gltf_meshes.append(
            pygltflib.Mesh(name=mesh.name, primitives=[add_primitive(mesh.indices, None)])
        )
        nodes.append(pygltflib.Node(mesh=0, name=mesh.name))
    else:
        for (casts, receives), submeshes in mesh.group_submeshes_by_shadow().items():
            name = shadow_group_name(casts, receives)
            primitives = [
                add_primitive(mesh.submesh_indices(submesh), submesh.material_id)
                for submesh in submeshes
            ]

            nodes.append(
                pygltflib.Node(
                    mesh=len(gltf_meshes),
                    name=name,
                    extras={"castsShadow": casts, "receivesShadow": receives},
                )
            )
            gltf_meshes.append(pygltflib.Mesh(name=name, primitives=primitives))

    pad_to_4(index_data)
    vertex_data = _vertex_bytes(mesh)

    gltf = pygltflib.GLTF2(
        scene=0,
        scenes=[pygltflib.Scene(name=mesh.name, nodes=list(range(len(nodes))))],
        nodes=nodes,
        meshes=gltf_meshes,
        accessors=accessors,
        materials=materials,
        images=images,
        textures=[
            pygltflib.Texture(sampler=0, source=i) for i in range(len(images))
        ],
        samplers=[
            pygltflib.Sampler(
                magFilter=pygltflib.LINEAR,
                minFilter=pygltflib.NEAREST_MIPMAP_LINEAR,
                wrapS=pygltflib.REPEAT,
                wrapT=pygltflib.REPEAT,
            )
        ] if images else [],
        bufferViews=[
            pygltflib.BufferView(
                buffer=0,
                byteOffset=0,
                byteLength=len(index_data),
                target=pygltflib.ELEMENT_ARRAY_BUFFER,
            ),
            pygltflib.BufferView(
                buffer=0,
                byteOffset=len(index_data),
                byteLength=len(vertex_data),
                byteStride=VERTEX_STRIDE,
                target=pygltflib.ARRAY_BUFFER,
            ),
        ],
        buffers=[
            pygltflib.Buffer(byteLength=len(index_data) + len(vertex_data))
        ],
    )

    gltf.set_binary_blob(bytes(index_data + vertex_data))

    return gltf


def write_glb(mesh: Mesh, path: Union[str, Path],
              material_library: Optional[MaterialLibrary] = None):
    gltf = to_gltf(mesh, material_library)

    Path(path).write_bytes(b"".join(gltf.save_to_bytes()))
