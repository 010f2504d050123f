"""
OBJ Reader/Writer
=================

Reads and writes the triangle subset of the Wavefront OBJ text format:

    v x y z      vertex position
    vn x y z     vertex normal
    f i j k      triangle, 1-based vertex indices (i/t/n tokens allowed)
    # ...        comment to end of line

Blank lines are skipped. Any other record is a parse error.

Written files always carry one normal per vertex.
"""

import logging
import numpy as np
from pathlib import Path
from typing import Iterable, List, TextIO, Union
import trimesh

from .exceptions import MeshParseError
from .mesh import FlatMesh

logger = logging.getLogger(__name__)

FILE_TYPE = "OBJ"


def _parse_floats(words: List[str], line_number: int, line: str) -> List[float]:
    if len(words) < 3:
        raise MeshParseError(FILE_TYPE, line_number, line)
    try:
        return [float(w) for w in words[:3]]
    except ValueError:
        raise MeshParseError(FILE_TYPE, line_number, line) from None


def _parse_face(words: List[str], line_number: int, line: str) -> List[int]:
    if len(words) != 3:
        raise MeshParseError(FILE_TYPE, line_number, line)
    try:
        indices = [int(w.split("/")[0]) for w in words]
    except ValueError:
        raise MeshParseError(FILE_TYPE, line_number, line) from None
    if any(i < 1 for i in indices):
        raise MeshParseError(FILE_TYPE, line_number, line)
    return [i - 1 for i in indices]


def load_obj(lines: Iterable[str], name: str = "") -> FlatMesh:
    """
    Parse OBJ text into a FlatMesh.

    Args:
        lines: Iterable of text lines (an open file works)
        name: Name given to the mesh

    Returns:
        Parsed mesh with 0-based face indices

    Raises:
        MeshParseError: naming the 1-based number of the offending line
    """
    vertices = []
    normals = []
    faces = []

    for line_number, raw in enumerate(lines, start=1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue

        words = line.split()
        kind = words[0]
        if kind == "v":
            vertices.append(_parse_floats(words[1:], line_number, raw))
        elif kind == "vn":
            normals.append(_parse_floats(words[1:], line_number, raw))
        elif kind == "f":
            faces.append(_parse_face(words[1:], line_number, raw))
        else:
            raise MeshParseError(FILE_TYPE, line_number, raw)

    logger.debug("Parsed OBJ '%s': %d vertices, %d normals, %d faces",
                 name, len(vertices), len(normals), len(faces))
    return FlatMesh(name=name, vertices=vertices, faces=faces, normals=normals)


def read_obj_file(path: Union[str, Path]) -> FlatMesh:
    """Load an OBJ file; the mesh is named after the file stem."""
    path = Path(path)
    with open(path, "r") as f:
        return load_obj(f, name=path.stem)


def _format_float(value: float) -> str:
    return np.format_float_positional(float(value), trim='-')


def vertex_normals(mesh) -> np.ndarray:
    """
    One unit normal per vertex.

    Uses the normals stored on the mesh when there is one per vertex,
    otherwise the vertex normals trimesh derives from the faces. Vertices
    that belong to no face get a zero normal.
    """
    vertices = np.asarray(mesh.vertices, dtype=float).reshape(-1, 3)
    normals = getattr(mesh, 'normals', None)
    if normals is not None and len(normals) == len(vertices):
        return np.asarray(normals, dtype=float).reshape(-1, 3)

    faces = np.asarray(mesh.faces, dtype=np.int64).reshape(-1, 3)
    if len(faces) == 0:
        return np.zeros_like(vertices)
    tm = trimesh.Trimesh(vertices=vertices, faces=faces, process=False)
    return np.asarray(tm.vertex_normals, dtype=float)


def write_obj(mesh, stream: TextIO):
    """
    Write a mesh as OBJ text.

    Vertices come first, then one normal per vertex, then faces with
    1-based indices. Normals the mesh does not carry are computed from its
    faces.
    """
    vertices = np.asarray(mesh.vertices, dtype=float).reshape(-1, 3)
    for x, y, z in vertices.tolist():
        stream.write(f"v {_format_float(x)} {_format_float(y)} {_format_float(z)}\n")

    if len(vertices):
        for x, y, z in vertex_normals(mesh).tolist():
            stream.write(f"vn {_format_float(x)} {_format_float(y)} {_format_float(z)}\n")

    for a, b, c in np.asarray(mesh.faces, dtype=np.int64).reshape(-1, 3).tolist():
        stream.write(f"f {a + 1} {b + 1} {c + 1}\n")


def write_obj_file(mesh, path: Union[str, Path]):
    """Write a mesh to an OBJ file, creating or truncating it."""
    with open(path, "w") as f:
        write_obj(mesh, f)
    logger.info("Saved mesh to: %s", path)
