"""
Exceptions
==========

Structured errors raised by mesh construction, boundary extraction and
OBJ parsing. Every error derives from ``ValueError`` so callers that only
care about bad input can catch that.
"""

from typing import Optional


class MeshError(ValueError):
    """Base class for all qemesh errors."""


class InvalidTopology(MeshError):
    """A face references a vertex that does not exist or repeats a vertex."""

    def __init__(self, message: str, face_index: Optional[int] = None,
                 vertex_index: Optional[int] = None):
        super().__init__(message)
        self.face_index = face_index
        self.vertex_index = vertex_index


class MalformedBoundary(MeshError):
    """The boundary edges of a mesh cannot be partitioned into closed loops."""

    def __init__(self, mesh_name: Optional[str], remaining_edges: int):
        name = mesh_name or "<unnamed>"
        super().__init__(
            f"Boundary of mesh '{name}' does not close into loops "
            f"({remaining_edges} boundary edges left unmatched)"
        )
        self.mesh_name = mesh_name
        self.remaining_edges = remaining_edges


class MeshParseError(MeshError):
    """A line of a mesh file could not be parsed."""

    def __init__(self, file_type: str, line_number: int, line: str = ""):
        super().__init__(f"Error parsing {file_type} file on line: {line_number}")
        self.file_type = file_type
        self.line_number = line_number
        self.line = line
