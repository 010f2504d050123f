"""
qemesh - Triangle Mesh Toolkit with Quadric Edge Collapse Decimation
====================================================================

Indexed triangle meshes, OBJ reading/writing, bounding boxes, transforms,
boundary-loop extraction, and mesh decimation based on
"Surface Simplification Using Quadric Error Metrics"
by Michael Garland and Paul S. Heckbert (SIGGRAPH 1997).
"""

from .boundary import boundary_edges, boundary_loops, classify_edges, identify_boundaries
from .cuboid import Cuboid
from .evaluation import MeshEvaluator
from .exceptions import InvalidTopology, MalformedBoundary, MeshError, MeshParseError
from .mesh import FlatMesh
from .mesh_decimator import DecimationConfig, DecimationResult, MeshDecimator, decimate_buffers
from .obj_io import load_obj, read_obj_file, write_obj, write_obj_file
from .qem import Quadric, compute_collapse_target, plane_quadric
from .transformation import Transformation
from .visualization import MeshVisualizer

__version__ = "1.0.0"
__all__ = [
    "Quadric", "plane_quadric", "compute_collapse_target",
    "MeshDecimator", "MeshEvaluator", "MeshVisualizer", "DecimationConfig", "DecimationResult", "decimate_buffers",
    "FlatMesh", "Cuboid", "Transformation",
    "boundary_edges", "boundary_loops", "classify_edges", "identify_boundaries",
    "load_obj", "read_obj_file", "write_obj", "write_obj_file",
    "MeshError", "InvalidTopology", "MalformedBoundary", "MeshParseError",
]
