import pytest

import voxscene
from voxbuild import minimal_file, sample_voxels
from voxscene import rotation
from voxscene.errors import WorldError
from voxscene.models import Model, Voxel
from voxscene.world import DenseWorld, dense_world_from_model

VALID_CODES = [m for m in range(128) if rotation.valid(m)]
TRANSLATIONS = [(0, 0, 0), (-100, 0, 5), (213, 42, 64), (-500, 600, -700)]


def sample_model() -> Model:
    return Model(30, 20, 10, [Voxel(*v) for v in sample_voxels()])


def test_create_world():
    world = DenseWorld((-1, 0, 2), (1, 3, 2))
    assert world.cuboid() == ((-1, 0, 2), (1, 3, 2))
    assert world.size == (3, 4, 1)
    assert len(world.voxels) == 12
    assert world.count() == 0


def test_create_degenerate_world():
    with pytest.raises(WorldError):
        DenseWorld((0, 0, 0), (3, -1, 3))


def test_get_set():
    world = DenseWorld((-2, -2, -2), (2, 2, 2))
    assert world.set((1, -2, 2), 9)
    assert world.get((1, -2, 2)) == (9, True)
    assert world.get((0, 0, 0)) == (0, True)
    assert world.get((3, 0, 0)) == (0, False)
    assert not world.set((0, -3, 0), 1)
    # x varies fastest, z slowest
    assert world.voxels[4 * 25 + 0 * 5 + 3] == 9


def test_resize():
    world = DenseWorld((0, 0, 0), (3, 3, 3))
    world.set((0, 0, 0), 1)
    world.set((3, 3, 3), 2)
    world.set((2, 1, 3), 3)
    world.resize((1, 1, 1), (5, 5, 5))
    assert world.cuboid() == ((1, 1, 1), (5, 5, 5))
    assert world.get((0, 0, 0)) == (0, False)
    assert world.get((3, 3, 3)) == (2, True)
    assert world.get((2, 1, 3)) == (3, True)
    assert world.get((5, 5, 5)) == (0, True)
    assert world.count() == 2


def test_identity_placement():
    model = Model(3, 2, 1, [Voxel(0, 0, 0, 1), Voxel(2, 1, 0, 2)])
    world = dense_world_from_model(rotation.IDENTITY, (10, 20, 30), model)
    # centered on the translation, with the extra voxel on the positive side
    assert world.cuboid() == ((9, 20, 30), (11, 21, 30))
    assert world.get((9, 20, 30)) == (1, True)
    assert world.get((11, 21, 30)) == (2, True)
    assert world.count() == 2


def test_rotated_placement():
    # rows: (0, -1, 0), (1, 0, 0), (0, 0, 1); a quarter turn about z
    code = rotation.encode(((0, -1, 0), (1, 0, 0), (0, 0, 1)))
    model = Model(3, 2, 1, [Voxel(0, 0, 0, 1), Voxel(2, 1, 0, 2)])
    world = dense_world_from_model(code, (0, 0, 0), model)
    assert world.cuboid() == ((0, -1, 0), (1, 1, 0))
    # (0, 0, 0) rotates to (0, 0, 0); the lowest rotated corner is (-1, 0, 0)
    assert world.get((1, -1, 0)) == (1, True)
    # (2, 1, 0) rotates to (-1, 2, 0)
    assert world.get((0, 1, 0)) == (2, True)


@pytest.mark.parametrize("translation", TRANSLATIONS)
@pytest.mark.parametrize("code", VALID_CODES)
def test_all_rotations(code, translation):
    model = sample_model()
    world = dense_world_from_model(code, translation, model)

    count = world.count()
    assert count == len(model.voxels)
    assert 10 < count < 30 * 20 * 10

    extents = [world.max[i] - world.min[i] + 1 for i in range(3)]
    assert sorted(extents) == [10, 20, 30]


def test_rotation_preserves_colors():
    model = sample_model()
    colors = sorted(v.color_index for v in model.voxels)
    for code in VALID_CODES:
        world = dense_world_from_model(code, (0, 0, 0), model)
        assert sorted(c for c in world.voxels if c) == colors


def test_voxel_outside_model():
    model = Model(2, 2, 2, [Voxel(5, 0, 0, 1)])
    with pytest.raises(WorldError, match="outside"):
        dense_world_from_model(rotation.IDENTITY, (0, 0, 0), model)


def test_invalid_rotation():
    with pytest.raises(WorldError):
        dense_world_from_model(0x03, (0, 0, 0), Model(1, 1, 1))


def test_world_from_parsed_scene():
    vox = voxscene.parse(minimal_file())
    root = vox.scene.root
    world = voxscene.dense_world_from_model(
        root.rotation, root.translation, root.child.models[0]
    )
    assert world.count() == len(sample_voxels())
