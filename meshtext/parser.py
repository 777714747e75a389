"""
Reader for the line oriented mesh text format.

A file looks like:

    mesh <name>
    version <int>
    [metadata <count>
      m <key> <value...>                          x count]
    vertices <count>
      v px py pz nx ny nz u v mask flags          x count
    triangles <count>
      t i0 i1 i2                                  x count
    material_library <name>
    [material_assignment <count>
      m <materialId> tris <start> <end>           x count]

`#` starts a comment anywhere on a line. Blocks must appear in this order.
"""
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from .errors import MeshParseError, UnexpectedEndOfInput, InvalidHeader, \
    InvalidToken, InvalidCount
from .mesh import Mesh, Submesh, DEFAULT_SHADOW_FLAGS
from .validation import validate

logger = logging.getLogger(__name__)

INT_RE = re.compile(r"[+-]?[0-9]+")
FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
TOKEN_SEPARATOR_RE = re.compile(r"[ \t]+")

INT32_MIN = -2**31
INT32_MAX = 2**31 - 1
UINT32_MAX = 2**32 - 1

VERTEX_FIELDS = ("px", "py", "pz", "nx", "ny", "nz", "u", "v")


@dataclass(frozen=True)
class ParserOptions:
    # Fail on lines left over after the last recognised block.
    reject_trailing: bool = False
    # Require this exact value on the `version` line.
    expected_version: Optional[int] = None
    validate: bool = True


@dataclass(frozen=True)
class SourceLine:
    number: int
    content: str


@dataclass
class MeshDocument:
    mesh: Mesh
    metadata: Dict[str, str] = field(default_factory=dict)


def preprocess(text: str) -> List[SourceLine]:
    """
    Drop blank lines and comments, keeping the 1-based line number of
    everything that is left.
    """

    lines = []

    for i, raw in enumerate(text.splitlines()):
        content = raw.strip()

        if not content or content.startswith("#"):
            continue

        content = content.split("#", 1)[0].strip()

        if content:
            lines.append(SourceLine(number=i + 1, content=content))

    return lines


def tokenize(content: str) -> List[str]:
    return [token for token in TOKEN_SEPARATOR_RE.split(content) if token]


def parse_int(token: str) -> Optional[int]:
    if INT_RE.fullmatch(token) is None:
        return None

    return int(token)


def parse_int32(token: str) -> Optional[int]:
    value = parse_int(token)

    if value is None or value < INT32_MIN or value > INT32_MAX:
        return None

    return value


def parse_uint32(token: str) -> Optional[int]:
    value = parse_int(token)

    if value is None or value < 0 or value > UINT32_MAX:
        return None

    return value


def parse_float(token: str) -> Optional[float]:
    if FLOAT_RE.fullmatch(token) is None:
        return None

    return float(token)


def parse_count(token: str) -> Optional[int]:
    value = parse_int(token)

    if value is None or value < 0:
        return None

    return value


class MeshReader:
    """
    Walks the preprocessed lines of one file. Build a new reader for every
    file; it holds the read position.
    """

    def __init__(self, lines: List[SourceLine], options: ParserOptions):
        self.lines = lines
        self.options = options
        self.cursor = 0

    def next_line(self) -> SourceLine:
        if self.cursor >= len(self.lines):
            raise UnexpectedEndOfInput()

        line = self.lines[self.cursor]
        self.cursor += 1

        return line

    def next_tokens(self):
        line = self.next_line()

        return line.number, tokenize(line.content)

    def peek_keyword(self) -> Optional[str]:
        if self.cursor >= len(self.lines):
            return None

        tokens = tokenize(self.lines[self.cursor].content)

        return tokens[0] if tokens else None

    def read(self) -> MeshDocument:
        name = self.read_name()
        version = self.read_version()
        metadata = self.read_metadata()
        positions, normals, uvs, mask, flags = self.read_vertices()
        indices = self.read_triangles()
        material_library_name = self.read_material_library()
        submeshes = self.read_material_assignment()

        if self.options.reject_trailing and self.cursor < len(self.lines):
            raise InvalidToken(
                "Unexpected trailing content after the last block",
                line=self.lines[self.cursor].number
            )

        mesh = Mesh(
            name=name,
            version=version,
            positions=positions,
            normals=normals,
            uvs=uvs,
            mask=mask,
            flags=flags,
            indices=indices,
            material_library_name=material_library_name,
            submeshes=submeshes,
        )

        return MeshDocument(mesh=mesh, metadata=metadata)

    def read_name(self) -> str:
        line_number, tokens = self.next_tokens()

        if len(tokens) != 2 or tokens[0] != "mesh":
            raise InvalidHeader(
                f"Expected `mesh <name>` at line {line_number}",
                line=line_number
            )

        return tokens[1]

    def read_version(self) -> int:
        line_number, tokens = self.next_tokens()
        version = parse_int(tokens[1]) if len(tokens) == 2 else None

        if tokens[0] != "version" or version is None:
            raise InvalidHeader(
                f"Expected `version <int>` at line {line_number}",
                line=line_number
            )

        expected = self.options.expected_version

        if expected is not None and version != expected:
            raise InvalidHeader(
                f"Unsupported version {version} at line {line_number}, "
                f"expected {expected}",
                line=line_number
            )

        return version

    def read_metadata(self) -> Dict[str, str]:
        metadata = {}

        if self.peek_keyword() != "metadata":
            return metadata

        line_number, tokens = self.next_tokens()
        count = parse_count(tokens[1]) if len(tokens) == 2 else None

        if count is None:
            raise InvalidCount("Invalid metadata count", line=line_number)

        for _ in range(count):
            entry_line, entry = self.next_tokens()

            if len(entry) < 3 or entry[0] != "m":
                raise InvalidToken(
                    "Expected `m <key> <value>`", line=entry_line
                )

            metadata[entry[1]] = " ".join(entry[2:])

        return metadata

    def read_block_count(self, keyword: str) -> int:
        line_number, tokens = self.next_tokens()
        count = parse_count(tokens[1]) if len(tokens) == 2 else None

        if tokens[0] != keyword or count is None:
            raise InvalidHeader(
                f"Expected `{keyword} <count>` at line {line_number}",
                line=line_number
            )

        return count

    def read_vertices(self):
        count = self.read_block_count("vertices")

        positions = []
        normals = []
        uvs = []
        mask = []
        flags = []

        for _ in range(count):
            line_number, tokens = self.next_tokens()

            if len(tokens) != 11 or tokens[0] != "v":
                raise InvalidToken(
                    "Expected vertex line: `v px py pz nx ny nz u v mask flags` "
                    f"(11 tokens, got {len(tokens)})",
                    line=line_number
                )

            values = []

            for field_name, token in zip(VERTEX_FIELDS, tokens[1:9]):
                value = parse_float(token)

                if value is None:
                    raise InvalidToken(
                        f"Vertex has invalid numeric field {field_name}={token!r}",
                        line=line_number
                    )

                values.append(value)

            vertex_mask = parse_int32(tokens[9])
            vertex_flags = parse_int32(tokens[10])

            if vertex_mask is None or vertex_flags is None:
                raise InvalidToken(
                    "Vertex has invalid int32 mask/flags fields "
                    f"({tokens[9]!r}, {tokens[10]!r})",
                    line=line_number
                )

            positions.append(tuple(values[0:3]))
            normals.append(tuple(values[3:6]))
            uvs.append(tuple(values[6:8]))
            mask.append(vertex_mask)
            flags.append(vertex_flags)

        return positions, normals, uvs, mask, flags

    def read_triangles(self) -> List[int]:
        count = self.read_block_count("triangles")
        indices = []

        for _ in range(count):
            line_number, tokens = self.next_tokens()

            if len(tokens) != 4 or tokens[0] != "t":
                raise InvalidToken(
                    "Expected triangle line: `t i0 i1 i2`", line=line_number
                )

            corners = [parse_uint32(token) for token in tokens[1:]]

            if None in corners:
                raise InvalidToken(
                    "Triangle has invalid integer indices", line=line_number
                )

            # Range checks against the vertex count happen in validate()
            indices.extend(corners)

        return indices

    def read_material_library(self) -> str:
        line_number, tokens = self.next_tokens()

        if tokens[0] != "material_library":
            raise InvalidHeader(
                "Missing `material_library <name>` block", line=line_number
            )

        if len(tokens) != 2:
            raise InvalidToken(
                "Expected material_library <name>", line=line_number
            )

        return tokens[1]

    def read_material_assignment(self) -> List[Submesh]:
        submeshes = []

        if self.peek_keyword() != "material_assignment":
            return submeshes

        line_number, tokens = self.next_tokens()
        count = parse_count(tokens[1]) if len(tokens) == 2 else None

        if count is None:
            raise InvalidCount("Invalid submeshes count", line=line_number)

        for _ in range(count):
            entry_line, entry = self.next_tokens()

            start = end = None

            if len(entry) == 5 and entry[0] == "m" and entry[2] == "tris":
                start = parse_int(entry[3])
                end = parse_int(entry[4])

            if start is None or end is None:
                raise InvalidToken(
                    "Expected submesh line: `m <id> tris <start> <end>`",
                    line=entry_line
                )

            # The line has no shadow field, every submesh casts and receives.
            submeshes.append(
                Submesh.from_flags(
                    name=entry[1],
                    material_id=entry[1],
                    tri_start=start,
                    tri_end=end,
                    flags=DEFAULT_SHADOW_FLAGS,
                )
            )

        return submeshes


def parse_document(text: str, options: Optional[ParserOptions] = None) -> MeshDocument:
    """
    Parse mesh text, returning the mesh together with its metadata block.
    """

    if options is None:
        options = ParserOptions()

    logger.debug("Parsing mesh resource")

    try:
        document = MeshReader(preprocess(text), options).read()

        if options.validate:
            validate(document.mesh)
    except MeshParseError as e:
        logger.error(f"Parsing failed: {e}")
        raise

    mesh = document.mesh

    logger.info(
        f"Mesh parsed successfully: {mesh.name} "
        f"({mesh.vertex_count} vertices, {mesh.triangle_count} triangles, "
        f"{len(mesh.submeshes)} submeshes)"
    )

    return document


def parse_text(text: str, options: Optional[ParserOptions] = None) -> Mesh:
    return parse_document(text, options).mesh


def decode(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise InvalidHeader("File is not valid UTF-8.")


def parse_bytes(data: bytes, options: Optional[ParserOptions] = None) -> Mesh:
    return parse_text(decode(data), options)


def parse_file(path: Union[str, Path], options: Optional[ParserOptions] = None) -> Mesh:
    return parse_bytes(Path(path).read_bytes(), options)
