#!/usr/bin/env python3

import logging
from pathlib import Path

import click

import meshtext
from meshtext import MeshParseError, MaterialLibraryError, ParserOptions, \
    SUPPORTED_VERSION
from meshtext.logging_config import setup_logging
from meshtext.parser import decode

INPUT_FILE = click.Path(exists=True, dir_okay=False)


def load_document(path: str) -> meshtext.MeshDocument:
    try:
        return meshtext.parse_document(decode(Path(path).read_bytes()))
    except MeshParseError as e:
        raise click.ClickException(f"{path}: {e}")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log parser progress.")
@click.option("--log-file", type=click.Path(dir_okay=False),
              help="Also write the log to this file.")
def cli(verbose: bool, log_file: str):
    setup_logging(logging.DEBUG if verbose else logging.WARNING, log_file)


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=INPUT_FILE)
def info(paths: str):
    """
    Print a summary of each mesh file.
    """

    for path in paths:
        mesh = load_document(path).mesh

        print("--------------------------")
        print(f"  {path}: mesh={mesh.name}, version={mesh.version}")
        print(f"  verts={mesh.vertex_count}, tris={mesh.triangle_count}")
        print(f"  material library={mesh.material_library_name}")

        for submesh in mesh.submeshes:
            print(
                f"  submesh {submesh.name}: material={submesh.material_id},"
                f" tris={submesh.tri_start}..{submesh.tri_end},"
                f" casts_shadow={submesh.casts_shadow},"
                f" receives_shadow={submesh.receives_shadow}"
            )


@cli.command()
@click.option("--strict", is_flag=True,
              help="Reject trailing content and unsupported versions.")
@click.argument("paths", nargs=-1, required=True, type=INPUT_FILE)
@click.pass_context
def check(ctx: click.Context, strict: bool, paths: str):
    """
    Parse and validate mesh files, exiting non-zero if any is broken.
    """

    options = ParserOptions()

    if strict:
        options = ParserOptions(
            reject_trailing=True, expected_version=SUPPORTED_VERSION
        )

    failures = 0

    for path in paths:
        try:
            meshtext.parse_bytes(Path(path).read_bytes(), options)
        except MeshParseError as e:
            print(f"{path}: {e}")
            failures += 1
        else:
            print(f"{path}: OK")

    if failures:
        ctx.exit(1)


@cli.command()
@click.argument("path", type=INPUT_FILE)
@click.argument("output")
def reverse_winding(path: str, output: str):
    """
    Flip the winding order of every triangle and write the result.
    """

    document = load_document(path)
    document.mesh.reverse_winding()

    meshtext.write_file(document.mesh, output, document.metadata)

    print(f"Writing to {output}")


@cli.command()
@click.option("--material-library", "material_library_path",
              type=INPUT_FILE,
              help="JSON material library used to fill in materials.")
@click.option("--reverse-winding", "flip", is_flag=True,
              help="Flip triangle winding before exporting.")
@click.argument("path", type=INPUT_FILE)
@click.argument("output")
def to_gltf(material_library_path: str, flip: bool, path: str, output: str):
    """
    Convert a mesh file into a binary glTF (.glb).
    """

    mesh = load_document(path).mesh

    if flip:
        mesh.reverse_winding()

    material_library = None

    if material_library_path:
        try:
            material_library = meshtext.load_material_library(material_library_path)
        except MaterialLibraryError as e:
            raise click.ClickException(f"{material_library_path}: {e}")

    outpath = Path(output)
    outpath.parent.mkdir(parents=True, exist_ok=True)

    meshtext.write_glb(mesh, outpath, material_library)

    print(f"Writing to {outpath}")


if __name__ == "__main__":
    cli()
