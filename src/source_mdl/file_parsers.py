import os

from .binary_utils import *
from .data_classes import *
from .errors import *

MODEL_PATH = "source_assets/models/"

MDL_SUFFIX = ".mdl"
VTX_SUFFIX = ".dx90.vtx"
VVD_SUFFIX = ".vvd"

# >>> struct.unpack("<i", b"IDST")
MDL_ID = 1414743113
# >>> struct.unpack("<i", b"IDSV")
VVD_ID = 1448297545

OPTIMIZED_MODEL_FILE_VERSION = 7

# studiohdr2_t sits here when it directly follows the main header
SECONDARY_HEADER_OFFSET = 408

def read_file(path):
    try:
        with open(path, 'rb') as file:
            return file.read()
    except OSError as e:
        raise ModelIOError(f"Unable to read {path}: {e}") from e

def parse_file(path, parser):
    buf = read_file(path)
    try:
        return parser(buf)
    except ModelLoadError as e:
        raise type(e)(f"{path}: {e}") from e

def model_file_path(name, suffix, base_dir=MODEL_PATH):
    return os.path.join(base_dir, name + suffix)

def check_count(count, what):
    if count < 0:
        raise CountMismatch(f"{what} declares a negative count ({count})")

# mdl

def parse_studio_header(buf, off=0):
    values = read_struct(StudioHeader.FORMAT, buf, off, "studio header")
    vectors = [tuple(values[i:i + 3]) for i in range(5, 23, 3)]
    return StudioHeader(*values[:5], *vectors, *values[23:])

def decode_name(raw: bytes) -> str:
    try:
        return strip_nul_padding(raw).decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidText(f"Model name {raw!r} is not valid UTF-8") from e

def parse_mdl(buf):
    if read_int32_le(buf, 0) != MDL_ID:
        raise BadMagic(f"mdl header not correct; expected {b'IDST'!r}, got {bytes(buf[:4])!r}")

    header = parse_studio_header(buf)
    name = decode_name(header.name)

    if header.data_length != len(buf):
        print(f"Warning: mdl header declares {header.data_length} bytes but the file holds {len(buf)}")

    if header.studiohdr2index == 0:
        log("no additional header")
    elif header.studiohdr2index == SECONDARY_HEADER_OFFSET:
        log("studiohdr2index exists directly following main header")
    else:
        log(f"additional header at {header.studiohdr2index}")

    log(f"mdl '{name}': version {header.version}, checksum {header.checksum}, {header.bodypart_count} body parts")
    return StudioModel(header=header, name=name)

def read_mdl_file_from_disk(path):
    return parse_file(path, parse_mdl)

def read_mdl_file_by_name(name, base_dir=MODEL_PATH):
    return read_mdl_file_from_disk(model_file_path(name, MDL_SUFFIX, base_dir))

# vvd

def parse_vertex_data_header(buf, off=0):
    values = read_struct(VertexDataHeader.FORMAT, buf, off, "vvd header")
    return VertexDataHeader(
        id=values[0],
        version=values[1],
        checksum=values[2],
        num_lods=values[3],
        num_lod_vertexes=tuple(values[4:4 + MAX_NUM_LODS]),
        num_fixups=values[12],
        fixup_table_start=values[13],
        vertex_data_start=values[14],
        tangent_data_start=values[15],
    )

def parse_fixup_table(buf, header: VertexDataHeader):
    check_count(header.num_fixups, "vvd fixup table")
    rows = read_struct_array(FixupEntry.FORMAT, buf, header.fixup_table_start, header.num_fixups, "fixup")
    return tuple(FixupEntry(*row) for row in rows)

def vertex_count(header: VertexDataHeader):
    if header.tangent_data_start == 0:
        return header.num_lod_vertexes[0]

    span = header.tangent_data_start - header.vertex_data_start
    if span < 0 or span % Vertex.SIZE != 0:
        raise CountMismatch(
            f"vertex block from {header.vertex_data_start} to {header.tangent_data_start} "
            f"is not a whole number of {Vertex.SIZE} byte vertices"
        )
    return span // Vertex.SIZE

def parse_vertices(buf, header: VertexDataHeader):
    count = vertex_count(header)
    check_count(count, "vvd vertex block")
    rows = read_struct_array(Vertex.FORMAT, buf, header.vertex_data_start, count, "vertex")
    return tuple(
        Vertex(
            bone_weights=row[0:3],
            bone_ids=row[3:6],
            num_bones=row[6],
            position=row[7:10],
            normal=row[10:13],
            texcoord=row[13:15],
        )
        for row in rows
    )

def parse_vvd(buf):
    if read_int32_le(buf, 0) != VVD_ID:
        raise BadMagic(f"vvd header not correct; expected {b'IDSV'!r}, got {bytes(buf[:4])!r}")

    header = parse_vertex_data_header(buf)

    fixups = ()
    if header.num_fixups > 0:
        fixups = parse_fixup_table(buf, header)

    vertices = parse_vertices(buf, header)
    log(f"vvd: version {header.version}, checksum {header.checksum}, {len(fixups)} fixups, {len(vertices)} vertices")
    return VertexData(header=header, fixups=fixups, vertices=vertices)

def read_vvd_file_from_disk(path):
    return parse_file(path, parse_vvd)

def read_vvd_file_by_name(name, base_dir=MODEL_PATH):
    return read_vvd_file_from_disk(model_file_path(name, VVD_SUFFIX, base_dir))

# vtx
# Every offset is relative to the start of the record that declares it, so
# each level passes its own absolute start down to the next.

def parse_vtx_header(buf, off=0):
    return MeshTopologyHeader(*read_struct(MeshTopologyHeader.FORMAT, buf, off, "vtx header"))

def parse_strip_group_vertices(buf, header: StripGroupHeader, strip_group_start):
    rows = read_struct_array(
        MeshVertex.FORMAT, buf, strip_group_start + header.vert_offset, header.num_verts, "strip group vertex"
    )
    return tuple(
        MeshVertex(
            bone_weight_index=row[0:3],
            num_bones=row[3],
            orig_mesh_vert_id=row[4],
            bone_id=row[5:8],
        )
        for row in rows
    )

def parse_strip_group_indices(buf, header: StripGroupHeader, strip_group_start):
    rows = read_struct_array(
        MeshIndex.FORMAT, buf, strip_group_start + header.index_offset, header.num_indices, "strip group index"
    )
    return tuple(MeshIndex(*row) for row in rows)

def parse_strips(buf, header: StripGroupHeader, strip_group_start):
    rows = read_struct_array(
        StripHeader.FORMAT, buf, strip_group_start + header.strip_offset, header.num_strips, "strip header"
    )
    # bone state changes are not decoded
    return tuple(Strip(header=StripHeader(*row)) for row in rows)

def parse_strip_groups(buf, mesh_header: MeshHeader, mesh_start):
    check_count(mesh_header.num_strip_groups, "mesh")
    strip_groups = []
    for strip_group_num in range(mesh_header.num_strip_groups):
        strip_group_start = (
            mesh_start + mesh_header.strip_group_header_offset + strip_group_num * StripGroupHeader.SIZE
        )
        header = StripGroupHeader(*read_struct(StripGroupHeader.FORMAT, buf, strip_group_start, "strip group header"))
        check_count(header.num_verts, "strip group vertices")
        check_count(header.num_indices, "strip group indices")
        check_count(header.num_strips, "strip group strips")

        vertices = ()
        if header.num_verts > 0:
            vertices = parse_strip_group_vertices(buf, header, strip_group_start)

        indices = ()
        if header.num_indices > 0:
            indices = parse_strip_group_indices(buf, header, strip_group_start)

        strips = ()
        if header.num_strips > 0:
            strips = parse_strips(buf, header, strip_group_start)

        strip_groups.append(StripGroup(header=header, vertices=vertices, indices=indices, strips=strips))
    return tuple(strip_groups)

def parse_meshes(buf, lod_header: LODHeader, lod_start, body_part_num, model_num, lod_num):
    check_count(lod_header.num_meshes, "lod")
    meshes = []
    for mesh_num in range(lod_header.num_meshes):
        log(f"Loading body part {body_part_num}, model {model_num}, lod {lod_num}, mesh {mesh_num}")
        mesh_start = lod_start + lod_header.mesh_offset + mesh_num * MeshHeader.SIZE
        header = MeshHeader(*read_struct(MeshHeader.FORMAT, buf, mesh_start, "mesh header"))

        strip_groups = ()
        if header.num_strip_groups != 0:
            strip_groups = parse_strip_groups(buf, header, mesh_start)

        meshes.append(Mesh(header=header, strip_groups=strip_groups))
    return tuple(meshes)

def parse_lods(buf, model_header: ModelHeader, model_start, body_part_num, model_num):
    check_count(model_header.num_lods, "model")
    lods = []
    for lod_num in range(model_header.num_lods):
        log(f"Loading body part {body_part_num}, model {model_num}, lod {lod_num}")
        lod_start = model_start + model_header.lod_offset + lod_num * LODHeader.SIZE
        header = LODHeader(*read_struct(LODHeader.FORMAT, buf, lod_start, "lod header"))
        meshes = parse_meshes(buf, header, lod_start, body_part_num, model_num, lod_num)
        lods.append(LevelOfDetail(header=header, meshes=meshes))
    return tuple(lods)

def parse_models(buf, body_part_header: BodyPartHeader, body_part_start, body_part_num):
    check_count(body_part_header.num_models, "body part")
    models = []
    for model_num in range(body_part_header.num_models):
        log(f"Loading body part {body_part_num}, model {model_num}")
        model_start = body_part_start + body_part_header.model_offset + model_num * ModelHeader.SIZE
        header = ModelHeader(*read_struct(ModelHeader.FORMAT, buf, model_start, "model header"))
        lods = parse_lods(buf, header, model_start, body_part_num, model_num)
        models.append(Model(header=header, lods=lods))
    return tuple(models)

def parse_body_parts(buf, file_header: MeshTopologyHeader):
    check_count(file_header.num_body_parts, "vtx header")
    body_parts = []
    for body_part_num in range(file_header.num_body_parts):
        log(f"Loading body part {body_part_num}")
        body_part_start = file_header.body_part_offset + body_part_num * BodyPartHeader.SIZE
        header = BodyPartHeader(*read_struct(BodyPartHeader.FORMAT, buf, body_part_start, "body part header"))
        models = parse_models(buf, header, body_part_start, body_part_num)
        body_parts.append(BodyPart(header=header, models=models))
    return tuple(body_parts)

def parse_vtx(buf):
    # no magic tag, the first 4 bytes are the version
    version = read_int32_le(buf, 0)
    if version != OPTIMIZED_MODEL_FILE_VERSION:
        raise UnsupportedVersion(f"VTX version not correct; expected {OPTIMIZED_MODEL_FILE_VERSION}, got {version}")

    header = parse_vtx_header(buf)
    body_parts = parse_body_parts(buf, header)
    log(f"vtx: checksum {header.checksum}, {len(body_parts)} body parts")
    return MeshTopology(header=header, body_parts=body_parts)

def read_vtx_file_from_disk(path):
    return parse_file(path, parse_vtx)

def read_vtx_file_by_name(name, base_dir=MODEL_PATH):
    return read_vtx_file_from_disk(model_file_path(name, VTX_SUFFIX, base_dir))
