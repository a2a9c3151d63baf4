import itertools

import pytest

from voxscene import rotation
from voxscene.errors import RotationError

VALID_CODES = [m for m in range(128) if rotation.valid(m)]


def matmul(a, b):
    return tuple(
        tuple(sum(a[i][j] * b[j][k] for j in range(3)) for k in range(3))
        for i in range(3)
    )


def is_signed_permutation(m) -> bool:
    rows = 0
    cols = 0
    for i in range(3):
        for j in range(3):
            if m[i][j] == 0:
                continue
            if m[i][j] not in (-1, 1):
                return False
            if rows & (1 << i) or cols & (1 << j):
                return False
            rows |= 1 << i
            cols |= 1 << j
    return rows == 7 and cols == 7


def test_valid_count():
    assert len(VALID_CODES) == 48


@pytest.mark.parametrize("code", range(128))
def test_valid_matches_decoded_matrix(code):
    assert rotation.valid(code) == is_signed_permutation(rotation.decode(code))


def test_top_bit_invalid():
    assert not rotation.valid(0x84)
    assert not rotation.valid(0xFF)


def test_identity():
    assert rotation.decode(rotation.IDENTITY) == ((1, 0, 0), (0, 1, 0), (0, 0, 1))
    assert rotation.multiply(rotation.IDENTITY, rotation.IDENTITY) == rotation.IDENTITY
    assert rotation.inverse(rotation.IDENTITY) == rotation.IDENTITY


def test_get():
    # rows: (0, -1, 0), (0, 0, 1), (-1, 0, 0)
    code = 1 | (2 << 2) | (1 << 4) | (1 << 6)
    assert rotation.valid(code)
    assert rotation.get(code, 0, 1) == -1
    assert rotation.get(code, 1, 2) == 1
    assert rotation.get(code, 2, 0) == -1
    assert rotation.get(code, 0, 0) == 0
    assert rotation.apply(code, (1, 2, 3)) == (-2, 3, -1)


@pytest.mark.parametrize("code", VALID_CODES)
def test_inverse(code):
    inv = rotation.inverse(code)
    assert rotation.valid(inv)
    assert rotation.multiply(code, inv) == rotation.IDENTITY
    assert rotation.multiply(inv, code) == rotation.IDENTITY


@pytest.mark.parametrize("a", VALID_CODES)
def test_multiply(a):
    products = set()
    for b in VALID_CODES:
        ab = rotation.multiply(a, b)
        assert rotation.valid(ab), f"{a:#x} * {b:#x} = {ab:#x} isn't valid"
        assert rotation.decode(ab) == matmul(rotation.decode(a), rotation.decode(b))
        products.add(ab)
    assert len(products) == 48


@pytest.mark.parametrize("code", VALID_CODES)
def test_encode_decode(code):
    assert rotation.encode(rotation.decode(code)) == code


def test_encode_rejects_non_rotation():
    with pytest.raises(RotationError):
        rotation.encode(((1, 0, 0), (1, 0, 0), (0, 0, 1)))


def test_inverse_rejects_invalid_code():
    with pytest.raises(RotationError):
        rotation.inverse(0x03)


@pytest.mark.parametrize("code", VALID_CODES)
def test_apply_permutes_components(code):
    for v in itertools.product((-3, 0, 2, 7), repeat=3):
        r = rotation.apply(code, v)
        assert sorted(abs(c) for c in r) == sorted(abs(c) for c in v)
        assert rotation.apply(rotation.inverse(code), r) == v
