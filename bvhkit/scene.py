"""Scene description types: render targets, cameras, lights, objects and materials."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional

import numpy as np


class TargetType(IntEnum):
    NONE = 0
    CPU_BUFFER = 1
    CPU_BUFFER_F32 = 2
    GL_TEXTURE_2D = 3
    MAX = 4


class CameraType(IntEnum):
    NONE = 0
    PINHOLE = 1
    ORTHO = 2
    MAX = 3


class LightType(IntEnum):
    NONE = 0
    MESH = 1
    SPHERE = 2
    POINT = 3
    MAX = 4


class ObjectType(IntEnum):
    NONE = 0
    MESH = 1
    SPHERE = 2
    AABB = 3
    MAX = 4


class WrapMode(IntEnum):
    NONE = 0
    REPEAT = 1
    MIRRORED_REPEAT = 2
    MAX = 3


class TextureType(IntEnum):
    NONE = 0
    RGBA8U = 1
    RGB8U = 2
    RGBA32F = 3
    RGB32F = 4
    MAX = 5


_CHANNELS = {
    TextureType.RGBA8U: 4,
    TextureType.RGB8U: 3,
    TextureType.RGBA32F: 4,
    TextureType.RGB32F: 3,
}


@dataclass
class Mesh:
    """Triangle mesh; faces hold three vertex indices plus one spare slot."""

    vertices: np.ndarray
    faces: np.ndarray
    normals: Optional[np.ndarray] = None
    uvs: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        self.vertices = np.asarray(self.vertices, dtype=np.float64).reshape(-1, 3)
        faces = np.asarray(self.faces, dtype=np.int64)
        if faces.size == 0:
            faces = faces.reshape(0, 4)
        if faces.ndim != 2 or faces.shape[1] not in (3, 4):
            raise ValueError("faces must have three or four columns")
        if faces.shape[1] == 3:
            faces = np.hstack([faces, np.zeros((len(faces), 1), dtype=np.int64)])
        if faces.size and (
            faces[:, :3].min() < 0 or faces[:, :3].max() >= len(self.vertices)
        ):
            raise ValueError("face refers to a vertex that does not exist")
        self.faces = faces
        if self.normals is not None:
            self.normals = np.asarray(self.normals, dtype=np.float64).reshape(-1, 3)
        if self.uvs is not None:
            self.uvs = np.asarray(self.uvs, dtype=np.float64).reshape(-1, 2)

    def face_count(self) -> int:
        return len(self.faces)


@dataclass
class Sphere:
    center: np.ndarray
    radius: float

    def __post_init__(self) -> None:
        self.center = np.asarray(self.center, dtype=np.float64).reshape(3)
        if self.radius < 0:
            raise ValueError("sphere radius must not be negative")


@dataclass
class Sampler:
    wrap_s: WrapMode = WrapMode.NONE
    wrap_t: WrapMode = WrapMode.NONE


@dataclass
class Texture:
    data: bytes
    dims: tuple[int, int, int]
    type: TextureType = TextureType.NONE

    def channel_count(self) -> int:
        """Number of colour channels per texel."""
        try:
            return _CHANNELS[self.type]
        except KeyError:
            raise ValueError(f"texture type {self.type!r} has no channels") from None


@dataclass
class Material:
    base_color: np.ndarray = field(default_factory=lambda: np.ones(3))
    roughness: float = 0.0
    metalicity: float = 0.0
    base_color_texture: Optional[Texture] = None
    base_color_sampler: Optional[Sampler] = None

    def __post_init__(self) -> None:
        self.base_color = np.asarray(self.base_color, dtype=np.float64).reshape(3)