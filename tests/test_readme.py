import os
from pathlib import Path

import pytest
from click.testing import CliRunner

FIRMWARE = (
    'S00F000068656C6C6F212020202000003B\n'
    'S11F00007C0802A6900100049421FFF07C6C1B787C8C23783C6000003863000026\n'
    'S11F001C4BFFFFE5398000007D83637880010014382100107C0803A64E800020E9\n'
    'S111003848656C6C6F20776F726C642E0A0042\n'
    'S5030003F9\n'
    'S9030000FC\n'
)


@pytest.fixture
def tmppath(tmpdir):
    return Path(str(tmpdir))


@pytest.fixture
def workdir(tmppath):
    cwd = os.getcwd()
    os.chdir(str(tmppath))
    try:
        (tmppath / 'firmware.s19').write_text(FIRMWARE)
        yield tmppath
    finally:
        os.chdir(cwd)


def test_parsing_and_composing():
    from srecord import Record
    from srecord import Block

    record = Record('S0030000FC\nS10612346162638D\nS5030001FB\nS9030000FC\n')
    assert record.good() is True
    assert record.blocks == [Block(0x1234, b'abc')]
    assert record.set_range(0x1237, b'xyz').blocks == [Block(0x1234, b'abcxyz')]

    ans_out = record.compose_str()
    ans_ref = ('S00D000000000000000000000000F2\n'
               'S109123461626378797A1F\n'
               'S5030001FB\n'
               'S9030000FC\n')
    assert ans_out == ans_ref


def test_strict_parsing():
    from srecord import Record

    record = Record(strict=True)
    assert record.parse('S10612346162638D\n') is False
    assert str(record.error) == '[parse] Missing record header (S0) (line 1)'


def test_files(workdir):
    from srecord import load

    record = load('firmware.s19')
    record.header_str = 'firmware'
    assert record.save('firmware_new.s19') is True

    record = load('firmware_new.s19')
    assert record.good()
    assert record.header_str == 'firmware'
    assert record.get_range(0x38, 0x44).data == b'Hello world.'


def test_command_line(workdir):
    from srecord import load
    from srecord.cli import main

    runner = CliRunner()

    result = runner.invoke(main, ['--help'])
    assert result.exit_code == 0

    result = runner.invoke(main, ['dump', 'firmware.s19'])
    assert result.exit_code == 0
    assert result.output

    result = runner.invoke(main, ['convert', '-a', '32', '-w', '44',
                                  'firmware.s19', 'firmware.s37'])
    assert result.exit_code == 0
    assert (workdir / 'firmware.s37').read_text().splitlines()[-1] == 'S70500000000FA'

    (workdir / 'bootloader.s19').write_text(FIRMWARE)
    application = load('firmware.s19')
    application.clear()
    application.set_range(0x100, b'application')
    application.save('application.s19')

    result = runner.invoke(main, ['merge', 'bootloader.s19', 'application.s19', 'image.s19'])
    assert result.exit_code == 0
    image = load('image.s19')
    assert [(b.start, b.endex) for b in image.blocks] == [(0x00, 0x46), (0x100, 0x10B)]
