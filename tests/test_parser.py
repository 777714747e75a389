import pytest
from pathlib import Path

from meshtext import parse_text, parse_bytes, parse_file, parse_document, \
    preprocess, tokenize, ParserOptions, Mesh, Submesh, \
    UnexpectedEndOfInput, InvalidHeader, InvalidToken, InvalidCount, \
    ValidationFailed

BOX = (
    "mesh Box\n"
    "version 1\n"
    "vertices 4\n"
    "v 0 0 0 0 1 0 0 0 0 0\n"
    "v 1 0 0 0 1 0 1 0 0 0\n"
    "v 1 0 1 0 1 0 1 1 0 0\n"
    "v 0 0 1 0 1 0 0 1 0 0\n"
    "triangles 2\n"
    "t 0 1 2\n"
    "t 0 2 3\n"
    "material_library lib"
)


def test_parse_box():
    mesh = parse_text(BOX)

    assert mesh.name == "Box"
    assert mesh.version == 1
    assert mesh.vertex_count == 4
    assert mesh.triangle_count == 2
    assert mesh.submeshes == []
    assert mesh.material_library_name == "lib"

    assert mesh.positions[2] == (1.0, 0.0, 1.0)
    assert mesh.normals[0] == (0.0, 1.0, 0.0)
    assert mesh.uvs[2] == (1.0, 1.0)
    assert mesh.mask == [0, 0, 0, 0]
    assert mesh.flags == [0, 0, 0, 0]
    assert mesh.indices == [0, 1, 2, 0, 2, 3]


def test_parse_box_bytes():
    assert parse_bytes(BOX.encode("utf-8")) == parse_text(BOX)


def test_parse_is_deterministic():
    assert parse_text(BOX) == parse_text(BOX)


def test_parse_model_file():
    mesh_path = Path(Path(__file__).parent.parent, "models/box.mesh")

    document = parse_document(mesh_path.read_text())

    assert document.metadata == {"author": "level tools", "units": "meters"}
    assert document.mesh.submeshes == [
        Submesh(name="floor_tiles", material_id="floor_tiles", tri_start=0, tri_end=0),
        Submesh(name="glass", material_id="glass", tri_start=1, tri_end=1),
    ]
    assert parse_file(mesh_path) == document.mesh


def test_index_out_of_range():
    text = BOX.replace("t 0 2 3", "t 0 1 5")

    with pytest.raises(ValidationFailed) as excinfo:
        parse_text(text)

    message = str(excinfo.value)

    assert "= 5" in message
    assert "vertexCount=4" in message


def test_truncated_vertex_block():
    text = (
        "mesh Box\n"
        "version 1\n"
        "vertices 2\n"
        "v 0 0 0 0 1 0 0 0 0 0\n"
    )

    with pytest.raises(UnexpectedEndOfInput):
        parse_text(text)


def test_material_assignment():
    mesh = parse_text(BOX + "\nmaterial_assignment 1\nm wall tris 0 0\n")

    assert len(mesh.submeshes) == 1

    submesh = mesh.submeshes[0]

    assert submesh.name == "wall"
    assert submesh.material_id == "wall"
    assert submesh.casts_shadow is True
    assert submesh.receives_shadow is True
    assert submesh.tri_start == 0
    assert submesh.tri_end == 0


def test_submeshes_may_overlap():
    mesh = parse_text(
        BOX + "\nmaterial_assignment 2\nm a tris 0 1\nm b tris 1 1\n"
    )

    assert [s.material_id for s in mesh.submeshes] == ["a", "b"]


def test_vertex_line_missing_flags():
    text = BOX.replace("v 1 0 0 0 1 0 1 0 0 0", "v 1 0 0 0 1 0 1 0 0")

    with pytest.raises(InvalidToken) as excinfo:
        parse_text(text)

    assert excinfo.value.line == 5
    assert "11 tokens" in str(excinfo.value)
    assert str(excinfo.value).startswith("Line 5:")


def test_line_numbers_count_comments_and_blank_lines():
    text = (
        "# header comment\n"
        "mesh Box\n"
        "\n"
        "version 1   # trailing comment\n"
        "   # indented comment\n"
        "vertices 1\n"
        "v 0 0 zero 0 1 0 0 0 0 0\n"
    )

    with pytest.raises(InvalidToken) as excinfo:
        parse_text(text)

    assert excinfo.value.line == 7
    assert "pz" in str(excinfo.value)


def test_preprocess():
    lines = preprocess("mesh A\n\n  # comment\nversion 1 # inline\n#\n  v 1#x\n")

    assert [(line.number, line.content) for line in lines] == [
        (1, "mesh A"),
        (4, "version 1"),
        (6, "v 1"),
    ]


def test_tokenize_spaces_and_tabs():
    assert tokenize("v\t1  2 \t3") == ["v", "1", "2", "3"]


def test_numeric_forms():
    text = BOX.replace(
        "v 1 0 1 0 1 0 1 1 0 0",
        "v +1.5 -.5 2. 1e3 -2.5E-2 0.0 1 1 -2147483648 2147483647"
    )

    mesh = parse_text(text)

    assert mesh.positions[2] == (1.5, -0.5, 2.0)
    assert mesh.normals[2] == (1000.0, -0.025, 0.0)
    assert mesh.mask[2] == -2147483648
    assert mesh.flags[2] == 2147483647


@pytest.mark.parametrize("token", ["nan", "inf", "1_0", "0x10", "1.0f", "--1"])
def test_rejects_non_decimal_floats(token):
    text = BOX.replace("v 1 0 1 0 1 0 1 1 0 0", f"v {token} 0 1 0 1 0 1 1 0 0")

    with pytest.raises(InvalidToken) as excinfo:
        parse_text(text)

    assert excinfo.value.line == 6


def test_rejects_int32_overflow():
    text = BOX.replace("v 1 0 1 0 1 0 1 1 0 0", "v 1 0 1 0 1 0 1 1 2147483648 0")

    with pytest.raises(InvalidToken) as excinfo:
        parse_text(text)

    assert excinfo.value.line == 6


def test_rejects_float_mask():
    text = BOX.replace("v 1 0 1 0 1 0 1 1 0 0", "v 1 0 1 0 1 0 1 1 0.5 0")

    with pytest.raises(InvalidToken):
        parse_text(text)


def test_rejects_negative_triangle_index():
    text = BOX.replace("t 0 2 3", "t 0 -2 3")

    with pytest.raises(InvalidToken) as excinfo:
        parse_text(text)

    assert excinfo.value.line == 10


def test_rejects_short_triangle_line():
    text = BOX.replace("t 0 2 3", "t 0 2")

    with pytest.raises(InvalidToken) as excinfo:
        parse_text(text)

    assert excinfo.value.line == 10


def test_missing_mesh_header():
    with pytest.raises(InvalidHeader) as excinfo:
        parse_text(BOX.replace("mesh Box", "mesh Big Box"))

    assert excinfo.value.line == 1


def test_non_integer_version():
    with pytest.raises(InvalidHeader) as excinfo:
        parse_text(BOX.replace("version 1", "version one"))

    assert excinfo.value.line == 2


def test_blocks_out_of_order():
    text = BOX.replace("version 1\n", "").replace("mesh Box\n", "mesh Box\nvertices 0\nversion 1\n")

    with pytest.raises(InvalidHeader) as excinfo:
        parse_text(text)

    assert excinfo.value.line == 2


def test_negative_vertex_count():
    with pytest.raises(InvalidHeader) as excinfo:
        parse_text(BOX.replace("vertices 4", "vertices -4"))

    assert excinfo.value.line == 3


def test_missing_material_library():
    text = BOX.replace("material_library lib", "materials lib")

    with pytest.raises(InvalidHeader) as excinfo:
        parse_text(text)

    assert excinfo.value.line == 11


def test_material_library_at_end_of_file():
    text = BOX.replace("material_library lib", "")

    with pytest.raises(UnexpectedEndOfInput):
        parse_text(text)


def test_material_library_token_count():
    text = BOX.replace("material_library lib", "material_library my lib")

    with pytest.raises(InvalidToken) as excinfo:
        parse_text(text)

    assert excinfo.value.line == 11


def test_metadata_block():
    text = BOX.replace(
        "version 1\n", "version 1\nmetadata 2\nm author  Jo   Smith\nm author Sam\n"
    )

    document = parse_document(text)

    assert document.metadata == {"author": "Sam"}
    assert document.mesh.vertex_count == 4


def test_empty_metadata_block():
    document = parse_document(BOX.replace("version 1\n", "version 1\nmetadata 0\n"))

    assert document.metadata == {}


def test_invalid_metadata_count():
    with pytest.raises(InvalidCount) as excinfo:
        parse_text(BOX.replace("version 1\n", "version 1\nmetadata many\n"))

    assert excinfo.value.line == 3


def test_metadata_entry_needs_value():
    with pytest.raises(InvalidToken) as excinfo:
        parse_text(BOX.replace("version 1\n", "version 1\nmetadata 1\nm author\n"))

    assert excinfo.value.line == 4


def test_invalid_material_assignment_count():
    with pytest.raises(InvalidCount) as excinfo:
        parse_text(BOX + "\nmaterial_assignment -1\n")

    assert excinfo.value.line == 12


def test_invalid_submesh_line():
    with pytest.raises(InvalidToken) as excinfo:
        parse_text(BOX + "\nmaterial_assignment 1\nm wall triangles 0 1\n")

    assert excinfo.value.line == 13


def test_truncated_material_assignment():
    with pytest.raises(UnexpectedEndOfInput):
        parse_text(BOX + "\nmaterial_assignment 2\nm wall tris 0 0\n")


def test_submesh_end_out_of_range():
    with pytest.raises(ValidationFailed) as excinfo:
        parse_text(BOX + "\nmaterial_assignment 1\nm wall tris 0 2\n")

    assert "wall" in str(excinfo.value)
    assert "triEnd=2" in str(excinfo.value)


def test_submesh_reversed_range():
    with pytest.raises(ValidationFailed) as excinfo:
        parse_text(BOX + "\nmaterial_assignment 1\nm wall tris 1 0\n")

    assert "invalid tri range" in str(excinfo.value)


def test_trailing_content_is_ignored():
    mesh = parse_text(BOX + "\nsomething else entirely\n")

    assert mesh.triangle_count == 2


def test_trailing_content_rejected_when_strict():
    options = ParserOptions(reject_trailing=True)

    with pytest.raises(InvalidToken) as excinfo:
        parse_text(BOX + "\n\nsomething else\n", options)

    assert excinfo.value.line == 13


def test_expected_version():
    options = ParserOptions(expected_version=1)

    assert parse_text(BOX, options).version == 1

    with pytest.raises(InvalidHeader) as excinfo:
        parse_text(BOX.replace("version 1", "version 2"), options)

    assert excinfo.value.line == 2


def test_any_version_accepted_by_default():
    assert parse_text(BOX.replace("version 1", "version 7")).version == 7


def test_validation_can_be_skipped():
    text = BOX.replace("t 0 2 3", "t 0 1 5")

    mesh = parse_text(text, ParserOptions(validate=False))

    assert mesh.indices[-1] == 5


def test_invalid_utf8():
    with pytest.raises(InvalidHeader) as excinfo:
        parse_bytes(b"mesh \xff\xfe\n")

    assert "UTF-8" in str(excinfo.value)


def test_utf8_bom_is_skipped():
    mesh = parse_bytes(b"\xef\xbb\xbf" + BOX.encode("utf-8"))

    assert mesh.name == "Box"


def test_empty_input():
    with pytest.raises(UnexpectedEndOfInput):
        parse_text("# nothing here\n\n")


def test_crlf_line_endings():
    mesh = parse_text(BOX.replace("\n", "\r\n"))

    assert isinstance(mesh, Mesh)
    assert mesh.indices == [0, 1, 2, 0, 2, 3]
