import struct
from dataclasses import dataclass, field
from typing import ClassVar

import numpy as np

# https://developer.valvesoftware.com/wiki/MDL
# https://developer.valvesoftware.com/wiki/VTX
# https://developer.valvesoftware.com/wiki/VVD
# All records are little-endian and packed.

MAX_NUM_LODS = 8

STRIPGROUP_IS_FLEXED = 0x01
STRIPGROUP_IS_HWSKINNED = 0x02
STRIPGROUP_IS_DELTA_FLEXED = 0x04
STRIPGROUP_SUPPRESS_HW_MORPH = 0x08

STRIP_IS_TRILIST = 0x01
STRIP_IS_TRISTRIP = 0x02

MESH_IS_TEETH = 0x01
MESH_IS_EYES = 0x02

Vector3 = tuple[float, float, float]

@dataclass(frozen=True)
class StudioHeader:
    FORMAT: ClassVar[str] = "<3i64si18fi43ifi10i4B5i"
    SIZE: ClassVar[int] = struct.calcsize(FORMAT) # 400, the wiki says 408

    id: int
    version: int
    checksum: int # must match the vtx and vvd checksums
    name: bytes # 64 bytes, NUL padded
    data_length: int

    eye_position: Vector3
    illum_position: Vector3
    hull_min: Vector3
    hull_max: Vector3
    view_bbmin: Vector3
    view_bbmax: Vector3

    flags: int

    # offsets from here on are from the start of the file
    bone_count: int
    bone_offset: int
    bonecontroller_count: int
    bonecontroller_offset: int
    hitbox_count: int
    hitbox_offset: int
    localanim_count: int
    localanim_offset: int
    localseq_count: int
    localseq_offset: int
    activitylistversion: int
    eventsindexed: int
    texture_count: int
    texture_offset: int
    texturedir_count: int
    texturedir_offset: int
    skinreference_count: int
    skinrfamily_count: int
    skinreference_index: int
    bodypart_count: int
    bodypart_offset: int
    attachment_count: int
    attachment_offset: int
    localnode_count: int
    localnode_index: int
    localnode_name_index: int
    flexdesc_count: int
    flexdesc_index: int
    flexcontroller_count: int
    flexcontroller_index: int
    flexrules_count: int
    flexrules_index: int
    ikchain_count: int
    ikchain_index: int
    mouths_count: int
    mouths_index: int
    localposeparam_count: int
    localposeparam_index: int
    surfaceprop_index: int
    keyvalue_index: int # index comes before count here
    keyvalue_count: int
    iklock_count: int
    iklock_index: int

    mass: float
    contents: int

    includemodel_count: int
    includemodel_index: int
    virtual_model: int # runtime pointer placeholder
    animblocks_name_index: int
    animblocks_count: int
    animblocks_index: int
    animblock_model: int # runtime pointer placeholder
    bonetablename_index: int
    vertex_base: int # runtime pointer placeholder
    offset_base: int # runtime pointer placeholder

    directionaldotproduct: int
    root_lod: int
    num_allowed_root_lods: int
    unused1: int
    unused2: int

    flexcontrollerui_count: int
    flexcontrollerui_index: int
    studiohdr2index: int # 0 = none, 408 = directly after this header
    unused3: int

@dataclass(frozen=True)
class StudioModel:
    header: StudioHeader
    name: str

@dataclass(frozen=True)
class MeshTopologyHeader:
    FORMAT: ClassVar[str] = "<2i2H6i"
    SIZE: ClassVar[int] = struct.calcsize(FORMAT)

    version: int
    vert_cache_size: int
    max_bones_per_strip: int
    max_bones_per_tri: int
    max_bones_per_vert: int
    checksum: int
    num_lods: int
    material_replacement_list_offset: int
    num_body_parts: int
    body_part_offset: int # from the start of the file

@dataclass(frozen=True)
class BodyPartHeader:
    FORMAT: ClassVar[str] = "<2i"
    SIZE: ClassVar[int] = struct.calcsize(FORMAT)

    num_models: int
    model_offset: int

@dataclass(frozen=True)
class ModelHeader:
    FORMAT: ClassVar[str] = "<2i"
    SIZE: ClassVar[int] = struct.calcsize(FORMAT)

    num_lods: int
    lod_offset: int

@dataclass(frozen=True)
class LODHeader:
    FORMAT: ClassVar[str] = "<2if"
    SIZE: ClassVar[int] = struct.calcsize(FORMAT)

    num_meshes: int
    mesh_offset: int
    switch_point: float

@dataclass(frozen=True)
class MeshHeader:
    FORMAT: ClassVar[str] = "<2iB"
    SIZE: ClassVar[int] = struct.calcsize(FORMAT)

    num_strip_groups: int
    strip_group_header_offset: int
    flags: int

@dataclass(frozen=True)
class StripGroupHeader:
    FORMAT: ClassVar[str] = "<6iB"
    SIZE: ClassVar[int] = struct.calcsize(FORMAT)

    num_verts: int
    vert_offset: int
    num_indices: int
    index_offset: int
    num_strips: int
    strip_offset: int
    flags: int

@dataclass(frozen=True)
class MeshVertex:
    FORMAT: ClassVar[str] = "<3BBH3B"
    SIZE: ClassVar[int] = struct.calcsize(FORMAT)

    bone_weight_index: tuple[int, int, int] # into the vvd vertex's bone weights
    num_bones: int
    orig_mesh_vert_id: int # relative to the owning mdl mesh
    bone_id: tuple[int, int, int]

@dataclass(frozen=True)
class MeshIndex:
    FORMAT: ClassVar[str] = "<H"
    SIZE: ClassVar[int] = struct.calcsize(FORMAT)

    position: int # into the strip group's vertices

@dataclass(frozen=True)
class StripHeader:
    FORMAT: ClassVar[str] = "<4ihB2i"
    SIZE: ClassVar[int] = struct.calcsize(FORMAT)

    # index_offset and vert_offset count elements of the strip group arrays
    num_indices: int
    index_offset: int
    num_verts: int
    vert_offset: int
    num_bones: int
    flags: int
    num_bone_state_changes: int
    bone_state_change_offset: int

@dataclass(frozen=True)
class Strip:
    header: StripHeader

    @property
    def is_trilist(self) -> bool:
        return bool(self.header.flags & STRIP_IS_TRILIST)

    @property
    def is_tristrip(self) -> bool:
        return bool(self.header.flags & STRIP_IS_TRISTRIP)

@dataclass(frozen=True)
class StripGroup:
    header: StripGroupHeader
    vertices: tuple[MeshVertex, ...]
    indices: tuple[MeshIndex, ...]
    strips: tuple[Strip, ...]

    @property
    def is_flexed(self) -> bool:
        return bool(self.header.flags & STRIPGROUP_IS_FLEXED)

    @property
    def is_hw_skinned(self) -> bool:
        return bool(self.header.flags & STRIPGROUP_IS_HWSKINNED)

    @property
    def is_delta_flexed(self) -> bool:
        return bool(self.header.flags & STRIPGROUP_IS_DELTA_FLEXED)

@dataclass(frozen=True)
class Mesh:
    header: MeshHeader
    strip_groups: tuple[StripGroup, ...]

    @property
    def is_teeth(self) -> bool:
        return bool(self.header.flags & MESH_IS_TEETH)

    @property
    def is_eyes(self) -> bool:
        return bool(self.header.flags & MESH_IS_EYES)

@dataclass(frozen=True)
class LevelOfDetail:
    header: LODHeader
    meshes: tuple[Mesh, ...]

@dataclass(frozen=True)
class Model:
    header: ModelHeader
    lods: tuple[LevelOfDetail, ...]

@dataclass(frozen=True)
class BodyPart:
    header: BodyPartHeader
    models: tuple[Model, ...]

@dataclass(frozen=True)
class MeshTopology:
    header: MeshTopologyHeader
    body_parts: tuple[BodyPart, ...]

@dataclass(frozen=True)
class VertexDataHeader:
    FORMAT: ClassVar[str] = "<4i8i4i"
    SIZE: ClassVar[int] = struct.calcsize(FORMAT)

    id: int
    version: int
    checksum: int
    num_lods: int
    num_lod_vertexes: tuple[int, ...] # MAX_NUM_LODS entries
    num_fixups: int
    fixup_table_start: int # offsets from the start of the file
    vertex_data_start: int
    tangent_data_start: int

@dataclass(frozen=True)
class FixupEntry:
    FORMAT: ClassVar[str] = "<3i"
    SIZE: ClassVar[int] = struct.calcsize(FORMAT)

    lod: int
    source_vertex_id: int
    num_vertexes: int

@dataclass(frozen=True)
class Vertex:
    FORMAT: ClassVar[str] = "<3f3BB3f3f2f"
    SIZE: ClassVar[int] = struct.calcsize(FORMAT)

    bone_weights: Vector3
    bone_ids: tuple[int, int, int]
    num_bones: int
    position: Vector3
    normal: Vector3
    texcoord: tuple[float, float]

@dataclass(frozen=True)
class VertexData:
    header: VertexDataHeader
    fixups: tuple[FixupEntry, ...]
    vertices: tuple[Vertex, ...]

@dataclass(frozen=True)
class SourceModel:
    studio: StudioModel
    topology: MeshTopology
    vertex_data: VertexData
    positions: np.ndarray = field(compare=False, repr=False)
    normals: np.ndarray = field(compare=False, repr=False)
    texcoords: np.ndarray = field(compare=False, repr=False)

    @property
    def name(self) -> str:
        return self.studio.name

    @property
    def checksums(self) -> tuple[int, int, int]:
        return (
            self.studio.header.checksum,
            self.topology.header.checksum,
            self.vertex_data.header.checksum,
        )
