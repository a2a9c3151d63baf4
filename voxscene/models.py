"""Value types describing the contents of a .vox file."""

from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple


class Voxel(NamedTuple):
    """A single voxel of a model, in model-local coordinates."""

    x: int
    y: int
    z: int
    color_index: int


@dataclass(eq=False)
class Model:
    """One model: its size and the voxels it holds."""

    size_x: int
    size_y: int
    size_z: int
    voxels: list[Voxel] = field(default_factory=list)

    @property
    def size(self) -> tuple[int, int, int]:
        return (self.size_x, self.size_y, self.size_z)

    def __str__(self):
        return f"Model{self.size} with {len(self.voxels)} voxels"


@dataclass(frozen=True)
class Color:
    """Color class."""

    r: int
    g: int
    b: int
    a: int = 255

    def __str__(self):
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}{self.a:02x}"


class MaterialType(Enum):
    DIFFUSE = "_diffuse"
    METAL = "_metal"
    GLASS = "_glass"
    EMISSIVE = "_emit"


@dataclass
class Material:
    """A material, as described by a MATL chunk.

    The float properties are stored as found in the file scaled to
    percentages, except ior which is stored as the refractive index itself.
    """

    type: MaterialType = MaterialType.DIFFUSE
    color: Color = Color(0, 0, 0, 0)
    # How much of a blend between this material type and a pure diffuse one.
    weight: float = 100.0
    roughness: float = 0.0
    specular: float = 0.0
    ior: float = 1.0
    attenuation: float = 0.0
    flux: float = 0.0
    plastic: bool = False
    ldr: float = 0.0

    def __str__(self):
        s = f"{self.type.name.lower()} {self.color}"
        for name in ("weight", "roughness", "specular", "attenuation", "flux", "ldr"):
            value = getattr(self, name)
            if value:
                s += f" {name}={value:g}"
        if self.ior != 1.0:
            s += f" ior={self.ior:g}"
        if self.plastic:
            s += " plastic"
        return s


@dataclass
class Layer:
    """A layer, as described by a LAYR chunk."""

    index: int
    name: str = ""
    hidden: bool = False
