"""Encoded rotations.

MagicaVoxel stores the rotation of a transform node as a single byte that
encodes a 3x3 matrix whose rows and columns each hold exactly one non-zero
entry of +1 or -1. There are 48 such matrices, the symmetries of the cube.

-------------------------------------------------------------------------------
bit | value
-------------------------------------------------------------------------------
0-1 | index of the non-zero entry in the first row
2-3 | index of the non-zero entry in the second row
4   | the sign in the first row (0 : positive; 1 : negative)
5   | the sign in the second row (0 : positive; 1 : negative)
6   | the sign in the third row (0 : positive; 1 : negative)
-------------------------------------------------------------------------------

The column of the third row's entry is the one the first two rows don't use.
"""

import functools
from typing import Sequence

from voxscene.errors import RotationError

IDENTITY = 0x04

Vec3 = tuple[int, int, int]
Rows = tuple[Vec3, Vec3, Vec3]


def valid(code: int) -> bool:
    """Report whether code encodes a valid rotation."""
    col0 = code & 3
    col1 = (code >> 2) & 3
    return 0 <= code < 128 and col0 != col1 and col0 != 3 and col1 != 3


def _sign(bit: int) -> int:
    return -1 if bit else 1


def get(code: int, i: int, j: int) -> int:
    """Return the entry in row i, column j of the decoded matrix: -1, 0 or 1."""
    if i == 0:
        col = code & 3
        sign = _sign((code >> 4) & 1)
    elif i == 1:
        col = (code >> 2) & 3
        sign = _sign((code >> 5) & 1)
    else:
        col = 3 - (code & 3) - ((code >> 2) & 3)
        sign = _sign((code >> 6) & 1)
    return sign if j == col else 0


def decode(code: int) -> Rows:
    """Decode code into the rows of its 3x3 matrix."""
    return tuple(  # type: ignore[return-value]
        tuple(get(code, i, j) for j in range(3)) for i in range(3)
    )


def encode(rows: Sequence[Sequence[int]]) -> int:
    """Encode a signed permutation matrix, given by its rows."""
    code = 0
    for i in range(3):
        for j in range(3):
            x = rows[i][j]
            if x == 0:
                continue
            if x < 0:
                code |= 1 << (i + 4)
            if i < 2:
                code |= j << (2 * i)
    if not valid(code):
        raise RotationError(f"not a signed permutation matrix: {rows!r}")
    return code


def multiply(a: int, b: int) -> int:
    """Multiply the matrices encoded by a and b, returning the encoded product."""
    code = 0
    for i in range(3):
        for j in range(3):
            for k in range(3):
                x = get(a, i, j) * get(b, j, k)
                if x == 0:
                    continue
                if x < 0:
                    code |= 1 << (i + 4)
                if i < 2:
                    code |= k << (2 * i)
    return code


def apply(code: int, vec: Sequence[int]) -> Vec3:
    """Multiply the matrix encoded by code with the column vector vec."""
    return (
        get(code, 0, 0) * vec[0] + get(code, 0, 1) * vec[1] + get(code, 0, 2) * vec[2],
        get(code, 1, 0) * vec[0] + get(code, 1, 1) * vec[1] + get(code, 1, 2) * vec[2],
        get(code, 2, 0) * vec[0] + get(code, 2, 1) * vec[1] + get(code, 2, 2) * vec[2],
    )


@functools.lru_cache(maxsize=None)
def _inverse_table() -> tuple[int, ...]:
    table = [0] * 128
    codes = [m for m in range(128) if valid(m)]
    for m in codes:
        for r in codes:
            if multiply(m, r) == IDENTITY:
                table[m] = r
    return tuple(table)


def inverse(code: int) -> int:
    """Return the encoded inverse of the rotation encoded by code."""
    if not valid(code):
        raise RotationError(f"invalid rotation code {code:#04x}")
    return _inverse_table()[code]
