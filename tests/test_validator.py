import logging

import pytest

from srecord.base import AddressWidth
from srecord.base import ErrorKind
from srecord.base import SrecError
from srecord.blocks import Block
from srecord.blocks import BlockSet
from srecord.validator import ADDRESS_ENDEX_MAX
from srecord.validator import Validator


def validate_raises(blocks, address_width, kind, strict=True):
    with pytest.raises(SrecError) as info:
        Validator(strict=strict).validate(BlockSet(blocks), address_width)
    assert info.value.kind == kind
    return info.value


# ============================================================================

class TestValidator:

    def test___init__(self):
        assert Validator().strict is True
        assert Validator(strict=False).strict is False

    def test_validate_doctest(self):
        blocks = BlockSet([Block(0x10000, b'abc')])
        assert Validator().validate(blocks, AddressWidth.UNDEFINED) == AddressWidth.WIDTH_24

    def test_validate_fit(self):
        vector = [
            (AddressWidth.WIDTH_16, [Block(0x0000, b'a')]),
            (AddressWidth.WIDTH_16, [Block(0xFFFF, b'a')]),
            (AddressWidth.WIDTH_24, [Block(0xFFFF, b'ab')]),
            (AddressWidth.WIDTH_24, [Block(0x00FFFFFF, b'a')]),
            (AddressWidth.WIDTH_32, [Block(0x01000000, b'a')]),
            (AddressWidth.WIDTH_32, [Block(0xFFFFFFFF, b'a')]),
        ]
        for expected, blocks in vector:
            actual = Validator().validate(BlockSet(blocks), AddressWidth.UNDEFINED)
            assert actual == expected

    def test_validate_keeps_wider(self):
        blocks = BlockSet([Block(0x10, b'abc')])
        actual = Validator().validate(blocks, AddressWidth.WIDTH_32)
        assert actual == AddressWidth.WIDTH_32

    def test_validate_coerces(self):
        blocks = BlockSet([Block(0x10, b'abc')])
        assert Validator().validate(blocks, 2) == AddressWidth.WIDTH_24
        assert Validator().validate(blocks, 7) == AddressWidth.WIDTH_16

    def test_validate_too_small(self, caplog):
        blocks = [Block(0x10000, b'abc')]
        validate_raises(blocks, AddressWidth.WIDTH_16, ErrorKind.RECORD_TYPE_TOO_SMALL)

        with caplog.at_level(logging.WARNING):
            actual = Validator(strict=False).validate(BlockSet(blocks),
                                                      AddressWidth.WIDTH_16)
        assert actual == AddressWidth.WIDTH_24
        assert 'upgraded from 16 to 24 bits' in caplog.text

    def test_validate_range_exceeded(self):
        blocks = [Block(0x10, b'a'), Block(ADDRESS_ENDEX_MAX - 1, b'ab')]
        error = validate_raises(blocks, AddressWidth.UNDEFINED, ErrorKind.RANGE_EXCEEDED)
        assert error.address == ADDRESS_ENDEX_MAX - 1

        validate_raises(blocks, AddressWidth.UNDEFINED, ErrorKind.RANGE_EXCEEDED,
                        strict=False)

    def test_validate_no_data(self):
        validate_raises([], AddressWidth.UNDEFINED, ErrorKind.NO_BINARY_DATA)
        validate_raises([], AddressWidth.WIDTH_32, ErrorKind.NO_BINARY_DATA, strict=False)

    def test_validate_unordered(self):
        blocks = [Block(0x20, b'abc'), Block(0x10, b'xyz')]
        error = validate_raises(blocks, AddressWidth.UNDEFINED, ErrorKind.BLOCKS_UNORDERED)
        assert error.address == 0x10

    def test_validate_overlapping(self):
        blocks = [Block(0x00, bytes(0x46)), Block(0x3A, bytes(14))]
        error = validate_raises(blocks, AddressWidth.UNDEFINED, ErrorKind.OVERLAPPING_BLOCKS)
        assert error.address == 0x3A

    def test_validate_contiguous(self):
        blocks = BlockSet([Block(0x00, b'abc'), Block(0x03, b'xyz')])
        assert Validator().validate(blocks, AddressWidth.UNDEFINED) == AddressWidth.WIDTH_16

    def test_validate_endex_not_last(self):
        blocks = [Block(0x00, bytes(0x20000)), Block(0x100, b'a')]
        validate_raises(blocks, AddressWidth.WIDTH_16, ErrorKind.RECORD_TYPE_TOO_SMALL)
