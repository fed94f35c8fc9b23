import pytest

from source_mdl.data_classes import (
    STRIP_IS_TRILIST,
    STRIP_IS_TRISTRIP,
    BodyPart,
    BodyPartHeader,
    LevelOfDetail,
    MeshTopology,
)
from source_mdl.errors import CountMismatch
from source_mdl.file_parsers import parse_vtx, parse_vvd
from source_mdl.model_utils import lod_triangles, strip_group_triangles, validate_counts, vertices_for_lod

from .builders import build_vtx, build_vvd, reference_vertices, triangle_strip_group

def single_strip_group(strip_group):
    body_parts = [[[{"switch_point": 0.0, "meshes": [{"flags": 0, "strip_groups": [strip_group]}]}]]]
    vtx = parse_vtx(build_vtx(body_parts=body_parts))
    return vtx.body_parts[0].models[0].lods[0].meshes[0].strip_groups[0]

def test_trilist_triangles():
    strip_group = single_strip_group(triangle_strip_group(orig_ids=(10, 11, 12, 13), indices=[0, 1, 2, 2, 1, 3]))
    assert strip_group_triangles(strip_group) == [(10, 11, 12), (12, 11, 13)]

def test_tristrip_alternates_winding():
    strip_group = single_strip_group(
        triangle_strip_group(orig_ids=(0, 1, 2, 3), indices=[0, 1, 2, 3], strip_flags=STRIP_IS_TRISTRIP)
    )
    assert strip_group_triangles(strip_group) == [(0, 1, 2), (1, 3, 2)]

def test_tristrip_skips_degenerates():
    strip_group = single_strip_group(
        triangle_strip_group(orig_ids=(0, 1, 2, 3), indices=[0, 1, 2, 2, 3, 3], strip_flags=STRIP_IS_TRISTRIP)
    )
    assert strip_group_triangles(strip_group) == [(0, 1, 2)]

def test_strips_use_their_index_range():
    strip_group = single_strip_group(
        triangle_strip_group(
            orig_ids=(5, 6, 7, 8),
            indices=[0, 1, 2, 1, 2, 3],
            strips=[(3, 3, STRIP_IS_TRILIST)],
        )
    )
    assert strip_group_triangles(strip_group) == [(6, 7, 8)]

@pytest.mark.parametrize("strips", [
    [(1, 3, STRIP_IS_TRILIST)],
    [(-1, 3, STRIP_IS_TRILIST)],
    [(0, 4, STRIP_IS_TRISTRIP)],
])
def test_strip_index_range_outside_strip_group(strips):
    strip_group = single_strip_group(triangle_strip_group(orig_ids=(0, 1, 2), strips=strips))
    with pytest.raises(CountMismatch):
        strip_group_triangles(strip_group)

def test_strip_index_past_strip_group_vertices():
    strip_group = single_strip_group(triangle_strip_group(orig_ids=(0, 1, 2), indices=[0, 1, 7]))
    with pytest.raises(CountMismatch):
        strip_group_triangles(strip_group)

def test_lod_triangles():
    vtx = parse_vtx(build_vtx())
    per_mesh = lod_triangles(vtx.body_parts[0].models[0].lods[0])
    assert per_mesh == [[(0, 1, 2)]] * 4

def test_validate_counts_accepts_decoded_tree():
    validate_counts(parse_vtx(build_vtx()))

def test_validate_counts_rejects_mismatch():
    vtx = parse_vtx(build_vtx())
    body_part = vtx.body_parts[0]
    tampered = MeshTopology(
        header=vtx.header,
        body_parts=(BodyPart(header=BodyPartHeader(num_models=2, model_offset=8), models=body_part.models),),
    )
    with pytest.raises(CountMismatch):
        validate_counts(tampered)

def test_vertices_for_lod_without_fixups():
    vvd = parse_vvd(build_vvd(vertices=reference_vertices(5), num_lods=2, num_lod_vertexes=[5, 3]))

    assert vertices_for_lod(vvd, 0) == list(vvd.vertices)
    assert vertices_for_lod(vvd, 1) == list(vvd.vertices[:3])

def test_vertices_for_lod_with_fixups():
    # lod 0 uses vertices 0-3 and 4-5, lod 1 only 4-5
    vvd = parse_vvd(build_vvd(
        vertices=reference_vertices(6),
        fixups=[(0, 0, 4), (1, 4, 2)],
        num_lods=2,
        num_lod_vertexes=[6, 2],
    ))

    assert vertices_for_lod(vvd, 0) == list(vvd.vertices)
    assert vertices_for_lod(vvd, 1) == list(vvd.vertices[4:6])

def test_vertices_for_lod_out_of_range():
    vvd = parse_vvd(build_vvd(vertices=reference_vertices()))
    with pytest.raises(ValueError):
        vertices_for_lod(vvd, 1)

def test_vertices_for_lod_count_past_vertex_block():
    vvd = parse_vvd(build_vvd(vertices=reference_vertices(3), num_lods=2, num_lod_vertexes=[3, 5]))
    assert vertices_for_lod(vvd, 0) == list(vvd.vertices)
    with pytest.raises(CountMismatch):
        vertices_for_lod(vvd, 1)

@pytest.mark.parametrize("fixups", [
    [(0, 0, 2), (0, 2, 4)],
    [(0, -1, 2)],
    [(0, 1, -1)],
])
def test_vertices_for_lod_fixup_outside_vertex_block(fixups):
    vvd = parse_vvd(build_vvd(vertices=reference_vertices(3), fixups=fixups))
    with pytest.raises(CountMismatch):
        vertices_for_lod(vvd, 0)

def test_fixups_below_the_root_lod_are_not_checked():
    vvd = parse_vvd(build_vvd(
        vertices=reference_vertices(3),
        fixups=[(0, 2, 9), (1, 0, 2)],
        num_lods=2,
        num_lod_vertexes=[3, 2],
    ))
    assert vertices_for_lod(vvd, 1) == list(vvd.vertices[:2])
