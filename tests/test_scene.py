import numpy as np
import pytest

from bvhkit.scene import (
    Material,
    Mesh,
    Sampler,
    Sphere,
    Texture,
    TextureType,
    WrapMode,
)


def _quad():
    vertices = [(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)]
    faces = [(0, 1, 2), (0, 2, 3)]
    return Mesh(vertices, faces)


def test_face_count_matches_input():
    assert _quad().face_count() == 2


def test_three_column_faces_are_padded():
    mesh = _quad()
    assert mesh.faces.shape == (2, 4)
    assert mesh.faces[:, 3].tolist() == [0, 0]
    assert mesh.faces[1, :3].tolist() == [0, 2, 3]


def test_empty_mesh():
    mesh = Mesh([], [])
    assert mesh.face_count() == 0


def test_face_out_of_range_raises():
    with pytest.raises(ValueError):
        Mesh([(0, 0, 0), (1, 0, 0), (0, 1, 0)], [(0, 1, 3)])


def test_bad_face_width_raises():
    with pytest.raises(ValueError):
        Mesh([(0, 0, 0), (1, 0, 0)], [(0, 1)])


@pytest.mark.parametrize(
    "kind, channels",
    [
        (TextureType.RGBA8U, 4),
        (TextureType.RGB8U, 3),
        (TextureType.RGBA32F, 4),
        (TextureType.RGB32F, 3),
    ],
)
def test_texture_channel_count(kind, channels):
    assert Texture(b"", (1, 1, 1), kind).channel_count() == channels


def test_texture_without_type_raises():
    with pytest.raises(ValueError):
        Texture(b"", (1, 1, 1)).channel_count()


def test_sphere_negative_radius_raises():
    with pytest.raises(ValueError):
        Sphere((0, 0, 0), -1.0)


def test_material_keeps_sampler_and_colour():
    sampler = Sampler(WrapMode.REPEAT, WrapMode.MIRRORED_REPEAT)
    material = Material(base_color=(0.5, 0.25, 1.0), base_color_sampler=sampler)
    assert np.allclose(material.base_color, [0.5, 0.25, 1.0])
    assert material.base_color_sampler.wrap_t is WrapMode.MIRRORED_REPEAT