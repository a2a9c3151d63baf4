"""Build .vox file bytes in memory for the tests."""

from typing import Optional


def int32(value: int) -> bytes:
    return value.to_bytes(4, "little", signed=True)


def string(value: str) -> bytes:
    encoded = value.encode("utf-8")
    return int32(len(encoded)) + encoded


def dict_(values: Optional[dict] = None) -> bytes:
    values = values or {}
    bytes_ = int32(len(values))
    for key, value in values.items():
        bytes_ += string(key) + string(value)
    return bytes_


def chunk(id: bytes, content: bytes = b"", children: bytes = b"") -> bytes:
    return id + int32(len(content)) + int32(len(children)) + content + children


def vox_file(*children: bytes, header: bytes = b"VOX ", version: int = 150) -> bytes:
    return header + int32(version) + chunk(b"MAIN", b"", b"".join(children))


def pack(num_models: int) -> bytes:
    return chunk(b"PACK", int32(num_models))


def size(x: int, y: int, z: int) -> bytes:
    return chunk(b"SIZE", int32(x) + int32(y) + int32(z))


def xyzi(voxels) -> bytes:
    content = int32(len(voxels))
    for voxel in voxels:
        content += bytes(voxel)
    return chunk(b"XYZI", content)


def rgba(colors=None) -> bytes:
    colors = colors or {}
    content = b""
    for i in range(256):
        content += bytes(colors.get(i, (i, i, i, 255)))
    return chunk(b"RGBA", content)


def ntrn(
    node_id: int,
    child_id: int,
    layer_id: int = -1,
    attributes: Optional[dict] = None,
    frame: Optional[dict] = None,
    reserved: int = -1,
    frames: Optional[list] = None,
) -> bytes:
    if frames is None:
        frames = [frame or {}]
    content = int32(node_id) + dict_(attributes) + int32(child_id)
    content += int32(reserved) + int32(layer_id) + int32(len(frames))
    for f in frames:
        content += dict_(f)
    return chunk(b"nTRN", content)


def ngrp(node_id: int, child_ids, attributes: Optional[dict] = None) -> bytes:
    content = int32(node_id) + dict_(attributes) + int32(len(child_ids))
    for child_id in child_ids:
        content += int32(child_id)
    return chunk(b"nGRP", content)


def nshp(
    node_id: int,
    model_ids,
    attributes: Optional[dict] = None,
    instance_attributes: Optional[dict] = None,
) -> bytes:
    content = int32(node_id) + dict_(attributes) + int32(len(model_ids))
    for model_id in model_ids:
        content += int32(model_id) + dict_(instance_attributes)
    return chunk(b"nSHP", content)


def layr(layer_id: int, attributes: Optional[dict] = None, reserved: int = -1) -> bytes:
    return chunk(b"LAYR", int32(layer_id) + dict_(attributes) + int32(reserved))


def matl(material_id: int, properties: dict) -> bytes:
    return chunk(b"MATL", int32(material_id) + dict_(properties))


def sample_voxels(sx: int = 30, sy: int = 20, sz: int = 10):
    """A sparse, asymmetric set of voxels filling part of an sx*sy*sz model."""
    return [
        (x, y, z, (x + y + z) % 255 + 1)
        for x in range(sx)
        for y in range(sy)
        for z in range(sz)
        if (7 * x + 3 * y + z) % 11 == 0
    ]


def simple_scene() -> bytes:
    """A transform at the root holding a shape of model 0."""
    return ntrn(0, 1) + nshp(1, [0])


def minimal_file(*extra: bytes) -> bytes:
    """A complete file with one 30x20x10 model and a simple scene."""
    return vox_file(
        pack(1),
        size(30, 20, 10),
        xyzi(sample_voxels()),
        simple_scene(),
        rgba(),
        *extra,
    )
