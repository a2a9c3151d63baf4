"""Read MagicaVoxel .vox scenes and place their models in world space."""

from voxscene import rotation
from voxscene.errors import (
    ChunkLengthError,
    DictError,
    EndOfInputError,
    FormatError,
    MaterialError,
    RotationError,
    SceneGraphError,
    SchemaError,
    VoxError,
    WorldError,
)
from voxscene.models import Color, Layer, Material, MaterialType, Model, Voxel
from voxscene.scene import GroupNode, Scene, ShapeNode, TransformNode
from voxscene.voxfile import VoxFile, parse, parse_file
from voxscene.world import DenseWorld, dense_world_from_model
