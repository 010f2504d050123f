"""
Utility Functions
=================

Mesh loading/saving, sample mesh creation and mesh summaries.
"""

import logging
from pathlib import Path
from typing import Union
import numpy as np
import trimesh

from .boundary import classify_edges, boundary_loops
from .cuboid import Cuboid
from .exceptions import InvalidTopology, MalformedBoundary, MeshError
from .mesh import FlatMesh
from .obj_io import read_obj_file, write_obj_file

logger = logging.getLogger(__name__)

SAMPLE_MESHES = ("cube", "sphere", "torus", "grid")


def load_mesh(path: Union[str, Path]) -> FlatMesh:
    """
    Load a mesh from file.

    OBJ files go through the strict qemesh reader; every other format
    supported by trimesh (PLY, STL, OFF, ...) is loaded with trimesh.

    Args:
        path: Path to mesh file

    Returns:
        Loaded mesh, named after the file stem

    Raises:
        MeshParseError: on a malformed OBJ file
        MeshError: if the file holds no triangle mesh
    """
    path = Path(path)
    if path.suffix.lower() == ".obj":
        return read_obj_file(path)

    mesh = trimesh.load(str(path), force='mesh', process=False)

    if isinstance(mesh, trimesh.Scene):
        # Convert scene to single mesh
        meshes = [g for g in mesh.geometry.values() if isinstance(g, trimesh.Trimesh)]
        if not meshes:
            raise MeshError(f"No valid meshes found in {path}")
        mesh = trimesh.util.concatenate(meshes)

    return FlatMesh.from_trimesh(mesh, name=path.stem)


def save_mesh(mesh, path: Union[str, Path]):
    """
    Save a mesh to file.

    Args:
        mesh: FlatMesh or trimesh.Trimesh
        path: Output path; the suffix selects the format
    """
    path = Path(path)
    if path.suffix.lower() == ".obj":
        write_obj_file(mesh, path)
        return

    if isinstance(mesh, FlatMesh):
        mesh = mesh.to_trimesh()
    mesh.export(str(path))
    logger.info("Saved mesh to: %s", path)


def create_sample_mesh(mesh_type: str = "cube") -> FlatMesh:
    """
    Create a sample mesh for testing.

    Args:
        mesh_type: Type of mesh to create:
            - "cube": 8-vertex, 12-triangle unit cube
            - "sphere": Icosphere
            - "torus": Torus
            - "grid": Open wavy surface with a single boundary loop

    Returns:
        Generated mesh
    """
    if mesh_type == "cube":
        mesh = FlatMesh.from_cuboid(Cuboid(0, 0, 0, 1, 1, 1), name="cube")
    elif mesh_type == "sphere":
        mesh = FlatMesh.from_trimesh(
            trimesh.creation.icosphere(subdivisions=3, radius=1.0), name="sphere")
    elif mesh_type == "torus":
        mesh = FlatMesh.from_trimesh(
            trimesh.creation.torus(major_radius=1.0, minor_radius=0.3,
                                   major_sections=32, minor_sections=16),
            name="torus")
    elif mesh_type == "grid":
        mesh = create_mesh_with_boundary()
    else:
        raise ValueError(f"Unknown sample mesh '{mesh_type}', expected one of {SAMPLE_MESHES}")

    logger.info("Created %s mesh: %d vertices, %d faces",
                mesh_type, mesh.vertex_count, mesh.face_count)
    return mesh


def create_mesh_with_boundary(rows: int = 20, cols: int = 20,
                              noise: float = 0.0, seed: int = 0) -> FlatMesh:
    """
    Create a mesh with boundaries (open surface) for testing boundary preservation.

    Creates a wavy surface grid.

    Args:
        rows: Number of rows in the grid
        cols: Number of columns in the grid
        noise: Standard deviation of random vertex jitter
        seed: Seed for the jitter

    Returns:
        Open surface mesh
    """
    x = np.linspace(-1, 1, cols)
    y = np.linspace(-1, 1, rows)
    X, Y = np.meshgrid(x, y)

    # Create wavy surface
    Z = 0.2 * np.sin(3 * X) * np.cos(3 * Y)

    vertices = np.column_stack([X.flatten(), Y.flatten(), Z.flatten()])

    # Two triangles per grid cell
    faces = []
    for i in range(rows - 1):
        for j in range(cols - 1):
            idx = i * cols + j
            faces.append([idx, idx + 1, idx + cols])
            faces.append([idx + 1, idx + cols + 1, idx + cols])

    if noise > 0:
        rng = np.random.default_rng(seed)
        vertices = vertices + rng.normal(0.0, noise, size=vertices.shape)

    return FlatMesh(name="grid", vertices=vertices, faces=faces)


def get_mesh_info(mesh: FlatMesh) -> dict:
    """
    Get comprehensive information about a mesh.

    Args:
        mesh: Input mesh

    Returns:
        Dictionary of mesh properties

    Raises:
        InvalidTopology: if a face references a missing vertex
    """
    if mesh.face_count and (mesh.faces.min() < 0 or mesh.faces.max() >= mesh.vertex_count):
        bad = int(np.argmax((mesh.faces < 0).any(axis=1) | (mesh.faces >= mesh.vertex_count).any(axis=1)))
        raise InvalidTopology(
            f"Face {bad} references a vertex outside 0..{mesh.vertex_count - 1}",
            face_index=bad)

    faces = mesh.faces.tolist()
    boundary, manifold, non_manifold = classify_edges(faces)

    info = {
        'name': mesh.name,
        'vertices': mesh.vertex_count,
        'faces': mesh.face_count,
        'edges': len(boundary) + len(manifold) + len(non_manifold),
        'boundary_edges': len(boundary),
        'non_manifold_edges': len(non_manifold),
        'euler_number': mesh.vertex_count - (len(boundary) + len(manifold) + len(non_manifold)) + mesh.face_count,
    }

    try:
        info['boundary_loops'] = len(boundary_loops(boundary, name=mesh.name))
    except MalformedBoundary as e:
        logger.warning("%s", e)
        info['boundary_loops'] = 'N/A (malformed boundary)'

    if mesh.vertex_count:
        box = mesh.bounding_box()
        info['bounds'] = [list(box.origin), list(box.terminus)]
    else:
        info['bounds'] = 'N/A'

    tm = mesh.to_trimesh()
    info['area'] = float(tm.area) if mesh.face_count else 0.0
    info['is_watertight'] = bool(tm.is_watertight) if mesh.face_count else False

    return info


def print_mesh_info(mesh: FlatMesh, name: str = "Mesh"):
    """
    Print mesh information to console.

    Args:
        mesh: Input mesh
        name: Name to display
    """
    info = get_mesh_info(mesh)

    print(f"\n{name} Information:")
    print("-" * 40)
    print(f"  Vertices:            {info['vertices']}")
    print(f"  Faces:               {info['faces']}")
    print(f"  Edges:               {info['edges']}")
    print(f"  Boundary Edges:      {info['boundary_edges']}")
    print(f"  Boundary Loops:      {info['boundary_loops']}")
    print(f"  Non-manifold Edges:  {info['non_manifold_edges']}")
    print(f"  Watertight:          {info['is_watertight']}")
    print(f"  Euler Number:        {info['euler_number']}")
    print(f"  Surface Area:        {info['area']:.6f}")
