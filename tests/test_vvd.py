import pytest

from source_mdl.data_classes import FixupEntry, Vertex, VertexDataHeader
from source_mdl.errors import BadMagic, CountMismatch, ModelIOError, TruncatedBuffer
from source_mdl.file_parsers import VVD_ID, parse_vvd, read_vvd_file_by_name, read_vvd_file_from_disk

from .builders import CHECKSUM, REFERENCE_NAME, build_vvd, reference_vertices

def test_record_sizes():
    assert VertexDataHeader.SIZE == 64
    assert FixupEntry.SIZE == 12
    assert Vertex.SIZE == 48

def test_load_vvd(model_dir):
    vvd = read_vvd_file_by_name(REFERENCE_NAME, model_dir)

    assert vvd.header.id == VVD_ID
    assert vvd.header.version == 4
    assert vvd.header.checksum == CHECKSUM
    assert vvd.header.num_lods == 1
    assert len(vvd.header.num_lod_vertexes) == 8
    assert vvd.header.num_fixups == 0
    assert vvd.fixups == ()
    assert vvd.header.fixup_table_start == VertexDataHeader.SIZE
    assert vvd.header.vertex_data_start == 64
    assert len(vvd.vertices) == 3

def test_vertex_count_follows_vertex_block():
    vvd = parse_vvd(build_vvd(vertices=11205))

    span = vvd.header.tangent_data_start - vvd.header.vertex_data_start
    assert span // Vertex.SIZE == 11205
    assert len(vvd.vertices) == 11205

def test_vertex_fields():
    vvd = parse_vvd(build_vvd(vertices=[((1.0, 2.0, 3.0), (0.0, 1.0, 0.0), (0.25, 0.75))]))
    vertex = vvd.vertices[0]

    assert vertex.position == (1.0, 2.0, 3.0)
    assert vertex.normal == (0.0, 1.0, 0.0)
    assert vertex.texcoord == (0.25, 0.75)
    assert vertex.bone_weights == (1.0, 0.0, 0.0)
    assert vertex.num_bones == 1

def test_fixup_table():
    vvd = parse_vvd(build_vvd(vertices=reference_vertices(6), fixups=[(0, 0, 4), (1, 4, 2)], num_lods=2))

    assert vvd.header.num_fixups == 2
    assert vvd.fixups == (FixupEntry(0, 0, 4), FixupEntry(1, 4, 2))
    assert vvd.header.vertex_data_start == 64 + 2 * FixupEntry.SIZE
    assert len(vvd.vertices) == 6

def test_no_tangent_block_uses_lod_vertex_count():
    vvd = parse_vvd(build_vvd(vertices=reference_vertices(5), with_tangents=False))
    assert vvd.header.tangent_data_start == 0
    assert len(vvd.vertices) == 5

def test_ragged_vertex_block():
    buf = bytearray(build_vvd(vertices=reference_vertices(2)))
    # tangent_data_start
    buf[60:64] = (64 + Vertex.SIZE + 1).to_bytes(4, "little")
    with pytest.raises(CountMismatch):
        parse_vvd(bytes(buf))

def test_bad_magic():
    buf = bytearray(build_vvd(vertices=reference_vertices()))
    buf[0:4] = b"IDST"
    with pytest.raises(BadMagic):
        parse_vvd(bytes(buf))

def test_truncated_vertex_block():
    buf = build_vvd(vertices=reference_vertices(), with_tangents=True)
    with pytest.raises(TruncatedBuffer):
        parse_vvd(buf[:VertexDataHeader.SIZE + Vertex.SIZE])

def test_load_invalid_vvd(tmp_path):
    with pytest.raises(ModelIOError):
        read_vvd_file_from_disk(str(tmp_path / "invalid.vvd"))
