"""VoxFile structure and related functions.

The goal of this module is to read MagicaVoxel .vox files into a typed
document: the models, the palette and materials, and the scene graph that
places the models. Chunks are decoded in full, and anything unexpected in a
recognized chunk is an error; there is no best-effort decoding.

A .vox file is the header "VOX ", an int32 version, and one MAIN chunk:

-------------------------------------------------------------------------------
# Bytes  | Type       | Value
-------------------------------------------------------------------------------
1x4      | char       | chunk id
4        | int        | num bytes of chunk content (N)
4        | int        | num bytes of children chunks (M)

N        |            | chunk content

M        |            | children chunks
-------------------------------------------------------------------------------
"""

import enum
import logging
from typing import BinaryIO, Optional, Union

from voxscene import rotation
from voxscene.errors import (
    DictError,
    FormatError,
    MaterialError,
    SceneGraphError,
    SchemaError,
)
from voxscene.models import Color, Layer, Material, MaterialType, Model, Voxel
from voxscene.reader import VoxDict, VoxReader
from voxscene.scene import (
    GroupNode,
    Scene,
    SceneNode,
    ShapeNode,
    TransformNode,
    build_scene,
)

logger = logging.getLogger(__name__)

VOX_HEADER = b"VOX "
VOX_VERSION = 150
PALETTE_SIZE = 256

# Chunks MagicaVoxel writes that carry nothing this package reads.
UNSUPPORTED_CHUNK_IDS = {b"rOBJ", b"rCAM", b"NOTE", b"IMAP"}


def read_chunk(reader: VoxReader) -> tuple[bytes, bytes, bytes]:
    """Read one chunk, returning its id, content and children bytes."""
    id = reader.read_bytes(4)
    content_size = reader.read_int32()
    children_size = reader.read_int32()
    if reader.error is not None:
        raise FormatError(f"malformed chunk header: {reader.error}")
    if content_size < 0 or children_size < 0:
        raise FormatError(
            f"chunk {id!r} has negative size: "
            f"content {content_size}, children {children_size}"
        )
    if content_size + children_size > len(reader):
        raise FormatError(
            f"chunk {id!r} declares {content_size + children_size} bytes, "
            f"but only {len(reader)} remain"
        )
    content = reader.read_bytes(content_size)
    children = reader.read_bytes(children_size)
    return id, content, children


def _check_dict(dict_: VoxDict, where: str):
    try:
        dict_.check()
        dict_.assert_no_unread_fields()
    except DictError as e:
        raise DictError(f"error reading {where}: {e}") from e


def _read_node_attributes(attributes: VoxDict, where: str) -> tuple[str, bool]:
    name = attributes.read_string("_name", "")
    hidden = attributes.read_bool("_hidden", False)
    _check_dict(attributes, where)
    return name, hidden


class VoxFile:
    """VoxFile class: the document read from a .vox file."""

    def __init__(
        self,
        version: int,
        models: list[Model],
        palette: list[Color],
        materials: list[Material],
        scene: Scene,
    ):
        """VoxFile constructor."""
        self.version = version
        self.models = models
        self.palette = palette
        self.materials = materials
        self.scene = scene

    @staticmethod
    def read(path: str) -> "VoxFile":
        """Read a .vox file from the given path."""
        with open(path, "rb") as f:
            return VoxFile.parse(f)

    @staticmethod
    def parse(source: Union[bytes, bytearray, memoryview, BinaryIO]) -> "VoxFile":
        """Parse a .vox file from bytes or from a binary file object."""
        data = source.read() if hasattr(source, "read") else source
        reader = VoxReader(data)

        header = reader.read_bytes(4)
        version = reader.read_int32()
        if reader.error is not None:
            raise FormatError(f"failed reading header: {reader.error}")
        if header != VOX_HEADER:
            raise FormatError(f"Invalid .vox file header: {header!r}")
        if version != VOX_VERSION:
            raise FormatError(f".vox file must be version {VOX_VERSION}, got {version}")

        id, content, children = read_chunk(reader)
        if id != MainChunk.id:
            raise FormatError(f"Invalid chunk ID: {id!r}; expected {MainChunk.id!r}")
        if content:
            raise FormatError(f"unexpected MAIN contents: {len(content)} bytes")
        reader.require_eof("MAIN")
        reader.check()

        main = MainChunk.read(children)
        return VoxFile(version, main.models, main.palette, main.materials, main.scene)


class Chunk:
    """Chunk class.

    Subclasses decode the content of one kind of chunk with read(), which
    raises if the content is not exactly as long as the fields it holds.
    """

    id = b""

    @classmethod
    def name(cls) -> str:
        return cls.id.decode("ascii")

    @classmethod
    def finish(cls, reader: VoxReader):
        """Check that the content was read without error, and fully."""
        reader.require_eof(cls.name())
        reader.check()


class PackChunk(Chunk):
    """Pack chunk class.

    -------------------------------------------------------------------------------
    # Bytes  | Type       | Value
    -------------------------------------------------------------------------------
    4        | int        | numModels : num of SIZE and XYZI chunks
    -------------------------------------------------------------------------------
    """

    id = b"PACK"

    def __init__(self, num_models: int):
        """PackChunk constructor."""
        self.num_models = num_models

    @classmethod
    def read(cls, content: bytes) -> "PackChunk":
        """Read a pack chunk from the given content."""
        reader = VoxReader(content)
        num_models = reader.read_int32()
        cls.finish(reader)

        return PackChunk(num_models)


class SizeChunk(Chunk):
    """Size chunk class.

    -------------------------------------------------------------------------------
    # Bytes  | Type       | Value
    -------------------------------------------------------------------------------
    4        | int        | size x
    4        | int        | size y
    4        | int        | size z : gravity direction
    -------------------------------------------------------------------------------
    """

    id = b"SIZE"

    def __init__(self, size: tuple[int, int, int]):
        """SizeChunk constructor."""
        self.size = size

    @classmethod
    def read(cls, content: bytes) -> "SizeChunk":
        reader = VoxReader(content)
        x = reader.read_int32()
        y = reader.read_int32()
        z = reader.read_int32()
        cls.finish(reader)

        if x <= 0 or y <= 0 or z <= 0:
            raise SchemaError(f"model size must be positive, got {(x, y, z)}")

        return SizeChunk((x, y, z))


class XYZIChunk(Chunk):
    """XYZI chunk class.

    -------------------------------------------------------------------------------
    # Bytes  | Type       | Value
    -------------------------------------------------------------------------------
    4        | int        | numVoxels (N)
    4 x N    | int        | (x, y, z, colorIndex) : 1 byte for each component
    -------------------------------------------------------------------------------
    """

    id = b"XYZI"

    def __init__(self, voxels: list[Voxel]):
        """XYZIChunk constructor."""
        self.voxels = voxels

    @classmethod
    def read(cls, content: bytes) -> "XYZIChunk":
        reader = VoxReader(content)
        num_voxels = reader.read_int32()
        if num_voxels < 0:
            raise SchemaError(f"XYZI chunk has negative voxel count {num_voxels}")
        data = reader.read_bytes(4 * num_voxels)
        cls.finish(reader)

        voxels = [Voxel(*data[i : i + 4]) for i in range(0, len(data), 4)]

        return XYZIChunk(voxels)


class PaletteChunk(Chunk):
    """Palette chunk class.

    -------------------------------------------------------------------------------
    # Bytes  | Type     | Value
    -------------------------------------------------------------------------------
    4 x 256  | int      | (R, G, B, A) : 1 byte for each component
                        | * <NOTICE>
                        | * color [0-254] are mapped to palette index [1-255]
    -------------------------------------------------------------------------------

    The palette is kept as stored; material i takes its color from
    palette[i - 1].
    """

    id = b"RGBA"

    def __init__(self, palette: list[Color]):
        """PaletteChunk constructor."""
        self.palette = palette

    @classmethod
    def read(cls, content: bytes) -> "PaletteChunk":
        reader = VoxReader(content)
        data = reader.read_bytes(4 * PALETTE_SIZE)
        cls.finish(reader)

        palette = [Color(*data[i : i + 4]) for i in range(0, len(data), 4)]

        return PaletteChunk(palette)


class TransformChunk(Chunk):
    """Transform chunk class.

    int32	: node id
    DICT	: node attributes
        (_name : string)
        (_hidden : 0/1)
    int32 	: child node id
    int32 	: reserved id (must be -1)
    int32	: layer id
    int32	: num of frames (must be 1)

    // for each frame
    {
    DICT	: frame attributes
        (_r : int8)    ROTATION
        (_t : int32x3) translation
    }xN
    """

    id = b"nTRN"

    def __init__(self, node_id: int, child_node_id: int, node: TransformNode):
        """TransformChunk constructor."""
        self.node_id = node_id
        self.child_node_id = child_node_id
        self.node = node

    @classmethod
    def read(cls, content: bytes) -> "TransformChunk":
        reader = VoxReader(content)
        node_id = reader.read_int32()
        attributes = reader.read_dict()
        child_node_id = reader.read_int32()
        reserved_id = reader.read_int32()
        layer_id = reader.read_int32()
        num_frames = reader.read_int32()
        if reader.error is not None:
            cls.finish(reader)

        if reserved_id != -1:
            raise SchemaError(f"reserved field in nTRN must be -1, got {reserved_id}")
        if num_frames != 1:
            raise SchemaError(f"must have one frame in nTRN chunk, got {num_frames}")

        frame = reader.read_dict()
        cls.finish(reader)

        name, hidden = _read_node_attributes(attributes, "nTRN attributes")

        r = frame.read_rotation("_r", rotation.IDENTITY)
        t = frame.read_int3("_t", (0, 0, 0))
        _check_dict(frame, "nTRN frame")

        node = TransformNode(
            name=name, hidden=hidden, rotation=r, translation=t, layer_id=layer_id
        )
        return TransformChunk(node_id, child_node_id, node)


class GroupChunk(Chunk):
    """Group chunk class.

    int32	: node id
    DICT	: node attributes
    int32 	: num of children nodes

    // for each child
    {
    int32	: child node id
    }xN
    """

    id = b"nGRP"

    def __init__(self, node_id: int, child_node_ids: list[int], node: GroupNode):
        """GroupChunk constructor."""
        self.node_id = node_id
        self.child_node_ids = child_node_ids
        self.node = node

    @classmethod
    def read(cls, content: bytes) -> "GroupChunk":
        reader = VoxReader(content)
        node_id = reader.read_int32()
        attributes = reader.read_dict()
        num_children = reader.read_int32()
        if num_children < 0:
            raise SchemaError(f"nGRP chunk has negative child count {num_children}")

        child_node_ids = []
        for _ in range(num_children):
            if reader.error is not None:
                break
            child_node_ids += [reader.read_int32()]
        cls.finish(reader)

        name, hidden = _read_node_attributes(attributes, "nGRP attributes")

        return GroupChunk(node_id, child_node_ids, GroupNode(name=name, hidden=hidden))


class ShapeChunk(Chunk):
    """Shape chunk class.

    int32	: node id
    DICT	: node attributes
    int32 	: num of models

    // for each model
    {
    int32	: model id
    DICT	: model attributes : reserved, ignored
    }xN
    """

    id = b"nSHP"

    def __init__(self, node_id: int, model_ids: list[int], node: ShapeNode):
        """ShapeChunk constructor."""
        self.node_id = node_id
        self.model_ids = model_ids
        self.node = node

    @classmethod
    def read(cls, content: bytes) -> "ShapeChunk":
        reader = VoxReader(content)
        node_id = reader.read_int32()
        attributes = reader.read_dict()
        num_models = reader.read_int32()
        if num_models < 0:
            raise SchemaError(f"nSHP chunk has negative model count {num_models}")

        model_ids = []
        for _ in range(num_models):
            if reader.error is not None:
                break
            model_ids += [reader.read_int32()]
            reader.read_dict()
        cls.finish(reader)

        name, hidden = _read_node_attributes(attributes, "nSHP attributes")

        return ShapeChunk(node_id, model_ids, ShapeNode(name=name, hidden=hidden))


class MaterialChunk(Chunk):
    """Material chunk class.

    int32	: material id
    DICT	: material properties
          (_type : str) _diffuse, _metal, _glass, _emit
          (_weight : float) range 0 ~ 1
          (_rough : float)
          (_spec : float)
          (_ior : float)
          (_att : float)
          (_flux : float)
          (_plastic)
          (_ldr : float) undocumented, but present in files
    """

    id = b"MATL"

    def __init__(self, material_id: int, material: Material):
        self.material_id = material_id
        self.material = material

    @classmethod
    def read(cls, content: bytes) -> "MaterialChunk":
        reader = VoxReader(content)
        material_id = reader.read_int32()
        if material_id < 0 or material_id > 255:
            raise MaterialError(f"material index {material_id} out of range")
        properties = reader.read_dict()
        cls.finish(reader)

        type_name = properties.read_string("_type", "<missing>")
        weight = properties.read_float("_weight", 1.0) * 100
        rough = properties.read_float("_rough", 0.0) * 100
        spec = properties.read_float("_spec", 0.0) * 100
        ior = properties.read_float("_ior", 0.0) + 1.0
        att = properties.read_float("_att", 0.0) * 100
        flux = properties.read_float("_flux", 0.0) * 100
        plastic = properties.read_bool("_plastic", False)
        ldr = properties.read_float("_ldr", 0.0) * 100

        try:
            properties.check()
        except DictError as e:
            raise DictError(f"dict error reading MATL chunk: {e}") from e
        try:
            properties.assert_no_unread_fields()
        except DictError as e:
            raise DictError(f"MATL dict error -- unknown field: {e}") from e

        try:
            material_type = MaterialType(type_name)
        except ValueError:
            raise MaterialError(f"unknown material {type_name!r}") from None

        return MaterialChunk(
            material_id,
            Material(
                type=material_type,
                weight=weight,
                roughness=rough,
                specular=spec,
                ior=ior,
                attenuation=att,
                flux=flux,
                plastic=plastic,
                ldr=ldr,
            ),
        )


class LayerChunk(Chunk):
    """Layer chunk class.

    int32	: layer id
    DICT	: layer attribute
        (_name : string)
        (_hidden : 0/1)
    int32	: reserved id, must be -1
    """

    id = b"LAYR"

    def __init__(self, layer: Layer):
        self.layer = layer

    @classmethod
    def read(cls, content: bytes) -> "LayerChunk":
        reader = VoxReader(content)
        layer_id = reader.read_int32()
        attribute = reader.read_dict()
        reserved_id = reader.read_int32()
        cls.finish(reader)

        if reserved_id != -1:
            raise SchemaError(
                f"reserved field in LAYR chunk must be -1, got {reserved_id}"
            )

        name, hidden = _read_node_attributes(attribute, "LAYR attributes")

        return LayerChunk(Layer(layer_id, name, hidden))


class State(enum.IntEnum):
    """Position in the required order of the children of MAIN."""

    PACK = enum.auto()
    SIZE = enum.auto()
    XYZI = enum.auto()
    SCENE_GRAPH = enum.auto()
    LAYR = enum.auto()
    RGBA = enum.auto()
    MATL = enum.auto()


class MainChunk(Chunk):
    """Main chunk class.

    Chunk 'MAIN'
    {
        // pack of models
        Chunk 'PACK'    : optional

        // models
        Chunk 'SIZE'
        Chunk 'XYZI'

        ...

        // scene graph, in any order
        Chunk 'nTRN' / 'nGRP' / 'nSHP'
        ...

        // layers
        Chunk 'LAYR'    : optional
        ...

        // palette
        Chunk 'RGBA'

        // materials
        Chunk 'MATL'    : optional
        ...
    }

    Chunks with other ids may appear anywhere and are skipped.
    """

    id = b"MAIN"

    def __init__(self):
        """MainChunk constructor."""
        self.state = State.PACK
        self.pack: Optional[int] = None
        self.size: Optional[tuple[int, int, int]] = None
        self.models: list[Model] = []
        self.palette: list[Color] = []
        self.materials = [Material() for _ in range(PALETTE_SIZE)]
        self.scene: Optional[Scene] = None

        self.nodes: dict[int, SceneNode] = {}
        self.node_children: dict[int, list[int]] = {}
        self.node_layers: dict[int, int] = {}
        self.layers: dict[int, Layer] = {}

        self.skipped: set[bytes] = set()

    @classmethod
    def read(cls, children: bytes) -> "MainChunk":
        """Read the children of the main chunk and assemble the scene."""
        main = MainChunk()
        reader = VoxReader(children)
        while len(reader):
            id, content, child_content = read_chunk(reader)
            if child_content:
                raise FormatError(f"unexpected child chunks of chunk {id!r}")
            main.read_child(id, content)
        main.finish_main()
        return main

    def add_node(self, node_id: int, node: SceneNode):
        if node_id in self.nodes:
            raise SceneGraphError(f"node {node_id} appears twice")
        self.nodes[node_id] = node

    def begin_scene_graph(self, id: bytes):
        if self.state in (State.PACK, State.SIZE):
            if self.pack is not None and len(self.models) != self.pack:
                raise SchemaError(
                    f"missing models: expected {self.pack} but found {len(self.models)}"
                )
            self.state = State.SCENE_GRAPH
        if self.state != State.SCENE_GRAPH:
            raise SchemaError(f"misplaced {id.decode('latin-1')} chunk")

    def read_child(self, id: bytes, content: bytes):
        """Decode one child chunk of MAIN, advancing the ordering state."""
        if id == PackChunk.id:
            if self.state != State.PACK:
                raise SchemaError("PACK chunk must appear first in MAIN")
            self.pack = PackChunk.read(content).num_models
            self.state = State.SIZE
        elif id == SizeChunk.id:
            if self.state == State.PACK:
                self.state = State.SIZE
            if self.state != State.SIZE:
                raise SchemaError("misplaced SIZE chunk")
            self.size = SizeChunk.read(content).size
            self.state = State.XYZI
        elif id == XYZIChunk.id:
            if self.state != State.XYZI:
                raise SchemaError("misplaced XYZI chunk")
            voxels = XYZIChunk.read(content).voxels
            self.models += [Model(*self.size, voxels)]
            if self.pack is not None and len(self.models) == self.pack:
                self.state = State.SCENE_GRAPH
            else:
                self.state = State.SIZE
        elif id == TransformChunk.id:
            self.begin_scene_graph(id)
            transform = TransformChunk.read(content)
            self.add_node(transform.node_id, transform.node)
            self.node_children[transform.node_id] = [transform.child_node_id]
            self.node_layers[transform.node_id] = transform.node.layer_id
        elif id == GroupChunk.id:
            self.begin_scene_graph(id)
            group = GroupChunk.read(content)
            self.add_node(group.node_id, group.node)
            self.node_children[group.node_id] = group.child_node_ids
        elif id == ShapeChunk.id:
            self.begin_scene_graph(id)
            shape = ShapeChunk.read(content)
            for model_id in shape.model_ids:
                if model_id < 0 or model_id >= len(self.models):
                    raise SceneGraphError(
                        f"nSHP node refers to missing model ID {model_id}"
                    )
                shape.node.models += [self.models[model_id]]
            self.add_node(shape.node_id, shape.node)
        elif id == LayerChunk.id:
            if self.state == State.SCENE_GRAPH and self.nodes:
                self.state = State.LAYR
            if self.state != State.LAYR:
                raise SchemaError("misplaced LAYR chunk")
            layer = LayerChunk.read(content).layer
            if layer.index in self.layers:
                raise SceneGraphError(f"two LAYR chunks have id {layer.index}")
            self.layers[layer.index] = layer
        elif id == PaletteChunk.id:
            if self.state not in (State.SCENE_GRAPH, State.LAYR) or not self.nodes:
                raise SchemaError("misplaced RGBA chunk")
            self.palette = PaletteChunk.read(content).palette
            self.state = State.MATL
        elif id == MaterialChunk.id:
            if self.state != State.MATL:
                raise SchemaError("misplaced MATL chunk")
            material = MaterialChunk.read(content)
            self.materials[material.material_id] = material.material
        elif id not in self.skipped:
            self.skipped.add(id)
            if id in UNSUPPORTED_CHUNK_IDS:
                logger.debug("skipping unsupported chunk %r", id)
            else:
                logger.warning("unexpected chunk %r", id)

    def finish_main(self):
        """Check the chunk counts, and build the scene and material table."""
        if self.state == State.XYZI:
            raise SchemaError("SIZE chunk is not followed by an XYZI chunk")
        if self.pack is not None and len(self.models) != self.pack:
            raise SchemaError(
                f"expected {self.pack} models, but got {len(self.models)}"
            )

        try:
            self.scene = build_scene(
                self.nodes, self.node_children, self.node_layers, self.layers
            )
        except SceneGraphError as e:
            raise SceneGraphError(f"error building scene graph: {e}") from e

        if len(self.palette) != PALETTE_SIZE:
            raise MaterialError(
                f"expected {PALETTE_SIZE} palette entries, "
                f"but found {len(self.palette)}"
            )
        for i in range(1, PALETTE_SIZE):
            self.materials[i].color = self.palette[i - 1]

        logger.debug(
            "read %d models, %d scene nodes and %d layers",
            len(self.models),
            len(self.nodes),
            len(self.layers),
        )


def parse(source: Union[bytes, bytearray, memoryview, BinaryIO]) -> VoxFile:
    """Parse a .vox file from bytes or from a binary file object."""
    return VoxFile.parse(source)


def parse_file(path: str) -> VoxFile:
    """Read a .vox file from the given path."""
    return VoxFile.read(path)
