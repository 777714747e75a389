"""
Decoder for the JSON material library that mesh files point at through
their `material_library` line.

    {
        "file_type": "material_library",
        "version": "1",
        "library_name": "city",
        "default": {...},
        "materials": [{...}, ...]
    }

Every material field is optional; the defaults are listed on
MaterialDefinition.
"""
import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Tuple, Union

FILE_TYPE = "material_library"
SUPPORTED_LIBRARY_VERSION = 1


class MaterialLibraryError(Exception):
    pass


class InvalidFileType(MaterialLibraryError):
    def __init__(self, file_type):
        super().__init__(f"Invalid file_type: {file_type}")
        self.file_type = file_type


class UnsupportedVersion(MaterialLibraryError):
    def __init__(self, version):
        super().__init__(f"Unsupported version: {version}")
        self.version = version


class MissingLibraryName(MaterialLibraryError):
    def __init__(self):
        super().__init__("Missing material library name")


class MaterialType(Enum):
    PHYSICALLY_BASED = "physicallybased"
    GLASS = "glass"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class MaterialDefinition:
    type: MaterialType = MaterialType.UNKNOWN
    name: str = "default"
    metallic: float = 0.0
    roughness: float = 0.2
    diffuse_color: Tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0)
    diffuse_texture: str = ""
    opacity: float = 1.0
    opacity_thresh: float = 0.0
    normal_texture: str = ""
    face_culling: int = 1
    casts_shadow: int = 1

    @property
    def is_transparent(self) -> bool:
        return self.opacity < 0.99

    @property
    def double_sided(self) -> bool:
        return self.face_culling == 0

    @classmethod
    def from_dict(cls: 'MaterialDefinition', data: dict) -> 'MaterialDefinition':
        if not isinstance(data, dict):
            raise MaterialLibraryError(
                f"Material must be an object, got {type(data).__name__}"
            )

        defaults = MaterialDefinition()

        try:
            material_type = MaterialType(
                _get(data, "type", str, defaults.type.value)
            )
        except ValueError:
            raise MaterialLibraryError(f"Unknown material type: {data['type']!r}")

        diffuse_color = _get(data, "diffuse_color", list, list(defaults.diffuse_color))

        if len(diffuse_color) != 4 or not all(_is_number(c) for c in diffuse_color):
            raise MaterialLibraryError(
                f"diffuse_color must be a list of 4 numbers (rgba), got {diffuse_color!r}"
            )

        return MaterialDefinition(
            type=material_type,
            name=_get(data, "name", str, defaults.name),
            metallic=float(_get(data, "metallic", float, defaults.metallic)),
            roughness=float(_get(data, "roughness", float, defaults.roughness)),
            diffuse_color=tuple(float(c) for c in diffuse_color),
            diffuse_texture=_get(data, "diffuse_texture", str, defaults.diffuse_texture),
            opacity=float(_get(data, "opacity", float, defaults.opacity)),
            opacity_thresh=float(_get(data, "opacity_thresh", float, defaults.opacity_thresh)),
            normal_texture=_get(data, "normal_texture", str, defaults.normal_texture),
            face_culling=_get(data, "face_culling", int, defaults.face_culling),
            casts_shadow=_get(data, "casts_shadow", int, defaults.casts_shadow),
        )


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _get(data: dict, key: str, expected_type: type, default=None, required=False):
    if key not in data or data[key] is None:
        if required:
            raise MaterialLibraryError(f"Missing required key: {key}")

        return default

    value = data[key]

    if expected_type is float:
        valid = _is_number(value)
    elif expected_type is int:
        valid = isinstance(value, int) and not isinstance(value, bool)
    else:
        valid = isinstance(value, expected_type)

    if not valid:
        raise MaterialLibraryError(
            f"Key {key!r} must be {expected_type.__name__}, got {value!r}"
        )

    return value


@dataclass(frozen=True)
class MaterialLibrary:
    library_name: str
    version: int
    default: MaterialDefinition
    materials: List[MaterialDefinition]

    @classmethod
    def from_dict(cls: 'MaterialLibrary', data: dict) -> 'MaterialLibrary':
        if not isinstance(data, dict):
            raise MaterialLibraryError("Material library must be a JSON object")

        file_type = _get(data, "file_type", str, required=True)

        if file_type != FILE_TYPE:
            raise InvalidFileType(file_type)

        # The version is stored as a string in the JSON
        version_text = _get(data, "version", str, required=True)

        try:
            version = int(version_text)
        except ValueError:
            raise UnsupportedVersion(version_text)

        if version != SUPPORTED_LIBRARY_VERSION:
            raise UnsupportedVersion(str(version))

        library_name = _get(data, "library_name", str, required=True)

        if not library_name.strip():
            raise MissingLibraryName()

        default = MaterialDefinition.from_dict(
            _get(data, "default", dict, required=True)
        )
        materials = [
            MaterialDefinition.from_dict(material)
            for material in _get(data, "materials", list, required=True)
        ]

        return MaterialLibrary(
            library_name=library_name,
            version=version,
            default=default,
            materials=materials,
        )

    def material(self, material_id: str) -> MaterialDefinition:
        """
        Look up a material by name, falling back to the library default.
        """

        for material in self.materials:
            if material.name == material_id:
                return material

        return self.default


def parse_material_library(data: Union[str, bytes]) -> MaterialLibrary:
    try:
        document = json.loads(data)
    except ValueError as e:
        raise MaterialLibraryError(f"Failed to decode material library JSON: {e}")

    return MaterialLibrary.from_dict(document)


def load_material_library(path: Union[str, Path]) -> MaterialLibrary:
    return parse_material_library(Path(path).read_bytes())
