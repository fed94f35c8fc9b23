"""Decoder for Source Engine studio models (.mdl / .dx90.vtx / .vvd)."""

__version__ = "0.1.0"

from .data_classes import *
from .errors import *
from .file_parsers import (
    MODEL_PATH,
    parse_mdl,
    parse_vtx,
    parse_vvd,
    read_mdl_file_by_name,
    read_mdl_file_from_disk,
    read_vtx_file_by_name,
    read_vtx_file_from_disk,
    read_vvd_file_by_name,
    read_vvd_file_from_disk,
)
from .model_utils import (
    load_model,
    lod_triangles,
    project_vertices,
    strip_group_triangles,
    validate_counts,
    vertices_for_lod,
)
