from .errors import MeshParseError, UnexpectedEndOfInput, InvalidHeader, \
    InvalidToken, InvalidCount, ValidationFailed
from .mesh import Mesh, Submesh, ShadowFlags, SUPPORTED_VERSION, \
    DEFAULT_SHADOW_FLAGS
from .parser import ParserOptions, MeshDocument, parse_bytes, parse_text, \
    parse_file, parse_document, preprocess, tokenize
from .validation import validate
from .writer import dump_text, write_file
from .material_library import MaterialLibrary, MaterialDefinition, \
    MaterialType, MaterialLibraryError, parse_material_library, \
    load_material_library
from .gltf import to_gltf, write_glb
