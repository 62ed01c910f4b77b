"""Binary mesh records used to substitute unreadable host meshes.

Layout (little-endian): five int32 counts (vertex floats, triangle
indices, uv floats, normal floats, color floats) followed by the float32 /
int32 payloads in that order.  Three floats per vertex and normal, two
per uv, four per color.
"""

import logging
import pathlib
import struct
from typing import Optional, Union

import numpy as np

from .constants import MESH_DIR
from .models import Mesh

logger = logging.getLogger(__name__)

_HEADER = struct.Struct("<5i")
_WIDTHS = (3, 1, 2, 3, 4)
_DTYPES = ("<f4", "<i4", "<f4", "<f4", "<f4")


class MeshFormatError(ValueError):
    """A mesh record is truncated or internally inconsistent."""


def decode_mesh_record(data: bytes, name: str = "mesh") -> Mesh:
    if len(data) < _HEADER.size:
        raise MeshFormatError(f"{name}: record shorter than header ({len(data)} bytes)")

    counts = _HEADER.unpack_from(data, 0)
    offset = _HEADER.size
    arrays = []
    for count, width, dtype in zip(counts, _WIDTHS, _DTYPES):
        if count < 0 or count % width:
            raise MeshFormatError(f"{name}: invalid element count {count} (width {width})")
        size = count * 4
        if offset + size > len(data):
            raise MeshFormatError(f"{name}: record truncated at byte {offset}")
        arrays.append(np.frombuffer(data, dtype=dtype, count=count, offset=offset))
        offset += size

    if offset != len(data):
        logger.debug(f"{name}: {len(data) - offset} trailing bytes ignored")

    vertices, triangles, uvs, normals, colors = arrays
    if len(triangles) and (triangles.min() < 0 or triangles.max() >= len(vertices) // 3):
        raise MeshFormatError(f"{name}: triangle index out of range")

    return Mesh(name, vertices=vertices, triangles=triangles, uvs=uvs,
                normals=normals, colors=colors)


def encode_mesh_record(mesh: Mesh) -> bytes:
    arrays = [
        np.asarray(mesh.vertices, dtype="<f4").reshape(-1),
        np.asarray(mesh.triangles, dtype="<i4").reshape(-1),
        np.asarray(mesh.uvs, dtype="<f4").reshape(-1),
        np.asarray(mesh.normals, dtype="<f4").reshape(-1),
        np.asarray(mesh.colors, dtype="<f4").reshape(-1),
    ]
    header = _HEADER.pack(*(len(a) for a in arrays))
    return header + b"".join(a.tobytes() for a in arrays)


def read_mesh_record(path: Union[str, pathlib.Path], name: Optional[str] = None) -> Mesh:
    path = pathlib.Path(path)
    return decode_mesh_record(path.read_bytes(), name or path.stem)


def write_mesh_record(mesh: Mesh, path: Union[str, pathlib.Path]) -> pathlib.Path:
    path = pathlib.Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(encode_mesh_record(mesh))
    return path


class ReplacementMeshLoader:
    """Looks up ``<mesh name>.dat`` in a directory of pre-serialized meshes."""

    def __init__(self, directory: Union[str, pathlib.Path, None] = None):
        self.directory = pathlib.Path(directory) if directory is not None else MESH_DIR

    def load(self, mesh_name: str) -> Optional[Mesh]:
        """Return a fully populated mesh, or None if none is available."""
        file_name = f"{mesh_name}.dat"
        path = self.directory / file_name
        if not path.is_file():
            logger.debug(f"no replacement mesh file {file_name}")
            return None

        try:
            return read_mesh_record(path, mesh_name)
        except (OSError, MeshFormatError) as e:
            logger.error(f"Error reading mesh file {file_name}: {e}")
            return None
