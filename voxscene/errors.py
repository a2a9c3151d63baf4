"""Exceptions raised while reading .vox files.

Every error is fatal to the parse or materialization that raised it. All of
them derive from ValueError so that callers catching ValueError around a read
keep working.
"""


class VoxError(ValueError):
    """Base class for all .vox errors."""


class FormatError(VoxError):
    """The bytes do not follow the .vox container format."""


class EndOfInputError(FormatError):
    """A read ran past the end of the input."""

    def __init__(self, message: str = "unexpected end of input", partial: bool = False):
        super().__init__(message)
        # True when some, but not all, of the requested bytes were available.
        self.partial = partial


class ChunkLengthError(FormatError):
    """A chunk did not consume exactly its declared content length."""

    def __init__(self, chunk: str, message: str):
        super().__init__(f"{chunk} chunk: {message}")
        self.chunk = chunk


class SchemaError(VoxError):
    """A chunk is misplaced, or a fixed field holds an unsupported value."""


class DictError(VoxError):
    """A DICT payload holds an unparsable value or an unknown key."""


class SceneGraphError(VoxError):
    """The scene graph nodes do not form a single tree."""


class MaterialError(VoxError):
    """A material or the palette is outside the recognized set."""


class RotationError(VoxError):
    """An encoded rotation is not one of the 48 valid rotations."""


class WorldError(VoxError):
    """A dense world could not be built."""
