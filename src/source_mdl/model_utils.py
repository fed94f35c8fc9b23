import numpy as np

from .binary_utils import log
from .data_classes import *
from .errors import *
from .file_parsers import (
    MODEL_PATH,
    read_mdl_file_by_name,
    read_vtx_file_by_name,
    read_vvd_file_by_name,
)

def check_declared(declared: int, produced: tuple, what: str):
    if declared != len(produced):
        raise CountMismatch(f"{what} declares {declared} entries but {len(produced)} were decoded")

def validate_counts(topology: MeshTopology):
    check_declared(topology.header.num_body_parts, topology.body_parts, "vtx header")
    for i, body_part in enumerate(topology.body_parts):
        check_declared(body_part.header.num_models, body_part.models, f"body part {i}")
        for j, model in enumerate(body_part.models):
            check_declared(model.header.num_lods, model.lods, f"body part {i} model {j}")
            for k, lod in enumerate(model.lods):
                check_declared(lod.header.num_meshes, lod.meshes, f"body part {i} model {j} lod {k}")
                for m, mesh in enumerate(lod.meshes):
                    where = f"body part {i} model {j} lod {k} mesh {m}"
                    check_declared(mesh.header.num_strip_groups, mesh.strip_groups, where)
                    for n, strip_group in enumerate(mesh.strip_groups):
                        check_declared(strip_group.header.num_verts, strip_group.vertices, f"{where} strip group {n} vertices")
                        check_declared(strip_group.header.num_indices, strip_group.indices, f"{where} strip group {n} indices")
                        check_declared(strip_group.header.num_strips, strip_group.strips, f"{where} strip group {n} strips")

def project_vertices(vertices: tuple[Vertex, ...]) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Split the flat vvd vertex array into position, normal and texcoord arrays."""
    positions = np.array([v.position for v in vertices], dtype=np.float32).reshape(-1, 3)
    normals = np.array([v.normal for v in vertices], dtype=np.float32).reshape(-1, 3)
    texcoords = np.array([v.texcoord for v in vertices], dtype=np.float32).reshape(-1, 2)
    return positions, normals, texcoords

def load_model(name: str, base_dir: str = MODEL_PATH) -> SourceModel:
    """Load `<base_dir>/<name>.mdl`, `.dx90.vtx` and `.vvd` as one model.

    Raises the first ModelLoadError encountered. Decoder errors come first,
    then declared count, body part count and checksum disagreements.
    """
    studio = read_mdl_file_by_name(name, base_dir)
    topology = read_vtx_file_by_name(name, base_dir)
    vertex_data = read_vvd_file_by_name(name, base_dir)

    validate_counts(topology)

    if studio.header.bodypart_count != len(topology.body_parts):
        raise BodyPartCountMismatch(
            f"{name}: mdl declares {studio.header.bodypart_count} body parts, vtx has {len(topology.body_parts)}"
        )

    checksums = (studio.header.checksum, topology.header.checksum, vertex_data.header.checksum)
    if len(set(checksums)) != 1:
        raise ChecksumMismatch(f"{name}: checksums differ (mdl {checksums[0]}, vtx {checksums[1]}, vvd {checksums[2]})")

    positions, normals, texcoords = project_vertices(vertex_data.vertices)
    log(f"Loaded {name}: {len(positions)} vertices")

    return SourceModel(
        studio=studio,
        topology=topology,
        vertex_data=vertex_data,
        positions=positions,
        normals=normals,
        texcoords=texcoords,
    )

def vertices_for_lod(vertex_data: VertexData, lod: int) -> list[Vertex]:
    header = vertex_data.header
    if lod < 0 or lod >= header.num_lods:
        raise ValueError(f"lod {lod} is outside 0..{header.num_lods - 1}")

    available = len(vertex_data.vertices)
    if not vertex_data.fixups:
        count = header.num_lod_vertexes[lod]
        if count < 0 or count > available:
            raise CountMismatch(f"lod {lod} declares {count} vertices but the vertex block holds {available}")
        return list(vertex_data.vertices[:count])

    # lower lods reuse ranges of the full resolution vertex block
    vertices = []
    for n, fixup in enumerate(vertex_data.fixups):
        if fixup.lod < lod:
            continue
        start = fixup.source_vertex_id
        end = start + fixup.num_vertexes
        if start < 0 or fixup.num_vertexes < 0 or end > available:
            raise CountMismatch(f"fixup {n} covers vertices {start}..{end} but the vertex block holds {available}")
        vertices.extend(vertex_data.vertices[start:end])
    return vertices

def strip_group_triangles(strip_group: StripGroup) -> list[tuple[int, int, int]]:
    """Triangles of a strip group as mdl mesh vertex ids."""
    positions = [index.position for index in strip_group.indices]
    mesh_ids = [vertex.orig_mesh_vert_id for vertex in strip_group.vertices]

    triangles = []
    for strip in strip_group.strips:
        start = strip.header.index_offset
        end = start + strip.header.num_indices
        if start < 0 or end < start or end > len(positions):
            raise CountMismatch(f"strip indices {start}..{end} fall outside the {len(positions)} strip group indices")
        strip_indices = positions[start:end]
        for position in strip_indices:
            if position >= len(mesh_ids):
                raise CountMismatch(f"strip index {position} points past the {len(mesh_ids)} strip group vertices")
        if len(strip_indices) < 3:
            continue

        if strip.is_tristrip:
            for i in range(2, len(strip_indices)):
                v0 = strip_indices[i - 2]
                v1 = strip_indices[i - 1]
                v2 = strip_indices[i]

                if v0 == v1 or v1 == v2 or v0 == v2:
                    continue

                if i % 2 == 0:
                    triangles.append((mesh_ids[v0], mesh_ids[v1], mesh_ids[v2]))
                else:
                    triangles.append((mesh_ids[v0], mesh_ids[v2], mesh_ids[v1]))
        else:
            for i in range(0, len(strip_indices) - 2, 3):
                v0, v1, v2 = strip_indices[i:i + 3]
                triangles.append((mesh_ids[v0], mesh_ids[v1], mesh_ids[v2]))

    return triangles

def lod_triangles(lod: LevelOfDetail) -> list[list[tuple[int, int, int]]]:
    mesh_triangles = []
    for mesh in lod.meshes:
        triangles = []
        for strip_group in mesh.strip_groups:
            triangles.extend(strip_group_triangles(strip_group))
        mesh_triangles.append(triangles)
    return mesh_triangles
