import io
import logging

import pytest

from srecord.base import AddressWidth
from srecord.base import ErrorKind
from srecord.base import SrecError
from srecord.blocks import Block
from srecord.blocks import BlockSet
from srecord.composer import *
from srecord.lines import SrecLine
from srecord.lines import SrecTag
from srecord.lines import parse_line


def compose_text(blocks, address_width, header=None, start_address=0, line_length=0):
    lines = Composer(line_length).compose(BlockSet(blocks), address_width,
                                          header, start_address)
    stream = io.StringIO()
    Composer.write(lines, stream)
    return stream.getvalue()


# ============================================================================

def test_normalize_header():
    assert normalize_header(None) == bytes(10)
    assert normalize_header(b'') == bytes(10)
    assert normalize_header(b'abc') == b'abc' + bytes(7)
    assert normalize_header(bytearray(b'0123456789AB')) == b'0123456789AB'
    assert normalize_header(bytes(300)) == bytes(HEADER_SIZE_MAX)
    assert len(normalize_header(b'x' * 0xFC)) == 0xFC


# ============================================================================

class TestComposer:

    def test_data_size(self):
        vector = [
            (32, 0, AddressWidth.WIDTH_16),
            (32, 0, AddressWidth.WIDTH_24),
            (32, 0, AddressWidth.WIDTH_32),
            (28, 66, AddressWidth.WIDTH_16),
            (28, 67, AddressWidth.WIDTH_16),
            (4, 1, AddressWidth.WIDTH_16),
            (4, 18, AddressWidth.WIDTH_16),
            (4, 20, AddressWidth.WIDTH_32),
            (41, 92, AddressWidth.WIDTH_16),
            (41, 200, AddressWidth.WIDTH_16),
            (39, 200, AddressWidth.WIDTH_32),
        ]
        for expected, line_length, address_width in vector:
            composer = Composer(line_length)
            assert composer.data_size(address_width) == expected, (line_length, address_width)

    def test_data_size_line_lengths(self):
        for address_width in (AddressWidth.WIDTH_16, AddressWidth.WIDTH_24, AddressWidth.WIDTH_32):
            for line_length in range(0, 120):
                size = Composer(line_length).data_size(address_width)
                line = SrecLine(SrecTag.from_width(address_width), 0, bytes(size))
                length = len(line.to_bytestr(end=b''))
                assert length <= LINE_LENGTH_MAX
                assert size >= LINE_DATA_MIN // 2

    def test_compose_doctest(self):
        text = compose_text([Block(0x1234, b'abc')], AddressWidth.WIDTH_16, b'')
        ans_ref = ('S00D000000000000000000000000F2\n'
                   'S10612346162638D\n'
                   'S5030001FB\n'
                   'S9030000FC\n')
        assert text == ans_ref

    def test_compose_wikipedia(self):
        data = bytes.fromhex('7C0802A6900100049421FFF07C6C1B787C8C23783C60000038630000'
                             '4BFFFFE5398000007D83637880010014382100107C0803A64E800020'
                             '48656C6C6F20776F726C642E0A00')
        text = compose_text([Block(0, data)], AddressWidth.WIDTH_16,
                            b'hello!    \0\0', 0, 66)
        ans_ref = ('S00F000068656C6C6F212020202000003B\n'
                   'S11F00007C0802A6900100049421FFF07C6C1B787C8C23783C6000003863000026\n'
                   'S11F001C4BFFFFE5398000007D83637880010014382100107C0803A64E800020E9\n'
                   'S111003848656C6C6F20776F726C642E0A0042\n'
                   'S5030003F9\n'
                   'S9030000FC\n')
        assert text == ans_ref

    def test_compose_lines(self):
        blocks = BlockSet([Block(0x00, bytes(40)), Block(0x1000, b'xyz')])
        lines = Composer().compose(blocks, AddressWidth.WIDTH_24, b'hdr', 0x1000)
        ans_ref = [
            SrecLine(SrecTag.HEADER, 0, b'hdr' + bytes(7)),
            SrecLine(SrecTag.DATA_24, 0x00, bytes(32)),
            SrecLine(SrecTag.DATA_24, 0x20, bytes(8)),
            SrecLine(SrecTag.DATA_24, 0x1000, b'xyz'),
            SrecLine(SrecTag.COUNT_16, 3),
            SrecLine(SrecTag.START_24, 0x1000),
        ]
        assert lines == ans_ref

    def test_compose_reparse(self):
        blocks = BlockSet([Block(0x12345678, bytes(range(100)))])
        lines = Composer(44).compose(blocks, AddressWidth.WIDTH_32)
        for line in lines:
            text = line.to_bytestr().decode()
            assert len(text) <= 44 + 1
            assert parse_line(text) == line

    def test_compose_start_truncated(self, caplog):
        blocks = BlockSet([Block(0x10, b'abc')])
        with caplog.at_level(logging.WARNING):
            lines = Composer().compose(blocks, AddressWidth.WIDTH_16, None, 0x123456)
        assert lines[-1] == SrecLine(SrecTag.START_16, 0x3456)
        assert 'truncated to 16 bits' in caplog.text

    def test_compose_count_24(self):
        blocks = BlockSet([Block(i * 2, b'a') for i in range(0x10000)])
        lines = Composer().compose(blocks, AddressWidth.WIDTH_24)
        assert lines[-2] == SrecLine(SrecTag.COUNT_24, 0x10000)

    def test_compose_raises_too_many(self, monkeypatch):
        def fit_count_tag(count):
            raise ValueError('count overflow')

        monkeypatch.setattr(SrecTag, 'fit_count_tag', staticmethod(fit_count_tag))
        blocks = BlockSet([Block(0x10, b'abc')])

        with pytest.raises(SrecError) as info:
            Composer().compose(blocks, AddressWidth.WIDTH_16)
        assert info.value.kind == ErrorKind.TOO_MANY_DATA_LINES

    def test_write_bytes(self):
        lines = [SrecLine(SrecTag.START_16, 0)]
        stream = io.BytesIO()
        Composer.write(lines, stream, end=b'\r\n')
        assert stream.getvalue() == b'S9030000FC\r\n'

    def test_write_text(self):
        lines = [SrecLine(SrecTag.COUNT_16, 3), SrecLine(SrecTag.START_16, 0)]
        stream = io.StringIO()
        Composer.write(lines, stream)
        assert stream.getvalue() == 'S5030003F9\nS9030000FC\n'
