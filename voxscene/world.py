"""Dense worlds.

The goal of this module is to place a model into world space: rotated and
translated as a transform node places it, and stored in a dense,
axis-aligned grid of material indices.
"""

import logging

from voxscene import rotation
from voxscene.errors import WorldError
from voxscene.models import Model

logger = logging.getLogger(__name__)

Vec3 = tuple[int, int, int]


class DenseWorld:
    """A dense grid of material indices covering the cuboid [min, max].

    Voxels are stored with x varying fastest and z slowest. 0 is empty.
    """

    def __init__(self, min: Vec3, max: Vec3):
        if any(max[i] < min[i] for i in range(3)):
            raise WorldError(
                f"the upper bounds of the cuboid {max} must be at least "
                f"as large as the lower bounds {min}"
            )
        self.min = tuple(min)
        self.max = tuple(max)
        self.size = tuple(self.max[i] - self.min[i] + 1 for i in range(3))
        self.voxels = bytearray(self.size[0] * self.size[1] * self.size[2])

    def cuboid(self) -> tuple[Vec3, Vec3]:
        return self.min, self.max

    def _offset(self, index: Vec3) -> int:
        x = index[0] - self.min[0]
        y = index[1] - self.min[1]
        z = index[2] - self.min[2]
        sx, sy, sz = self.size
        if not (0 <= x < sx and 0 <= y < sy and 0 <= z < sz):
            return -1
        return z * (sx * sy) + y * sx + x

    def get(self, index: Vec3) -> tuple[int, bool]:
        """Return the material index at index, and whether index is in the world."""
        offset = self._offset(index)
        if offset < 0:
            return 0, False
        return self.voxels[offset], True

    def set(self, index: Vec3, material_index: int) -> bool:
        """Set the material index at index, reporting whether index is in the world."""
        offset = self._offset(index)
        if offset < 0:
            return False
        self.voxels[offset] = material_index
        return True

    def count(self) -> int:
        """Number of non-empty voxels."""
        return len(self.voxels) - self.voxels.count(0)

    def resize(self, min: Vec3, max: Vec3):
        """Change the cuboid, keeping the voxels where the old and new ones overlap."""
        if tuple(min) == self.min and tuple(max) == self.max:
            return
        world = DenseWorld(min, max)
        sx, sy, _ = self.size
        for i, material_index in enumerate(self.voxels):
            if not material_index:
                continue
            x = i % sx
            y = (i // sx) % sy
            z = i // (sx * sy)
            index = (x + self.min[0], y + self.min[1], z + self.min[2])
            world.set(index, material_index)
        self.min, self.max = world.min, world.max
        self.size, self.voxels = world.size, world.voxels


def dense_world_from_model(
    rotation_code: int, translation: Vec3, model: Model
) -> DenseWorld:
    """Build a DenseWorld holding model, rotated and then translated.

    The rotated model is centered on translation; on axes where its size is
    even, the extra voxel goes on the positive side.
    """
    if not rotation.valid(rotation_code):
        raise WorldError(f"invalid rotation code {rotation_code:#04x}")

    size = model.size
    extent = tuple(abs(c) - 1 for c in rotation.apply(rotation_code, size))
    low = tuple(-(e // 2) for e in extent)
    high = tuple(extent[i] + low[i] for i in range(3))
    world_min = tuple(low[i] + translation[i] for i in range(3))
    world_max = tuple(high[i] + translation[i] for i in range(3))

    # The corner of the model that the rotation takes to the lowest corner.
    min_corner = None
    for i in (0, 1):
        for j in (0, 1):
            for k in (0, 1):
                far = (i * (size[0] - 1), j * (size[1] - 1), k * (size[2] - 1))
                corner = rotation.apply(rotation_code, far)
                if min_corner is None or all(
                    corner[n] <= min_corner[n] for n in range(3)
                ):
                    min_corner = corner
    shift = tuple(world_min[i] - min_corner[i] for i in range(3))

    world = DenseWorld(world_min, world_max)
    for voxel in model.voxels:
        r = rotation.apply(rotation_code, (voxel.x, voxel.y, voxel.z))
        position = (r[0] + shift[0], r[1] + shift[1], r[2] + shift[2])
        if not world.set(position, voxel.color_index):
            raise WorldError(
                f"voxel {voxel} maps to {position}, "
                f"outside the world {world_min}..{world_max}"
            )

    logger.debug(
        "placed %d voxels of %s in %s..%s",
        len(model.voxels),
        model,
        world_min,
        world_max,
    )
    return world
