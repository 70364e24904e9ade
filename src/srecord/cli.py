# Copyright (c) 2013-2025, Andrea Zoppi
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice,
#    this list of conditions and the following disclaimer.
#
# 2. Redistributions in binary form must reproduce the above copyright
#    notice, this list of conditions and the following disclaimer in the
#    documentation and/or other materials provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

"""
Module that contains the command line app.

Why does this file exist, and why not put this in __main__?

  You might be tempted to import things from __main__ later, but that will cause
  problems: the code will get executed twice:

  - When you run `python -m srecord` python will execute
    ``__main__.py`` as a script. That means there won't be any
    ``srecord.__main__`` in ``sys.modules``.
  - When you import __main__ it will get executed again (as a module) because
    there's no ``srecord.__main__`` in ``sys.modules``.

  Also see (1) from https://click.palletsprojects.com/en/stable/setuptools/#setuptools-integration
"""

import logging
import sys
from typing import Callable
from typing import List
from typing import Mapping
from typing import Optional
from typing import Sequence

import click

from .__init__ import __version__
from .base import AddressWidth
from .lines import LineReader
from .lines import colorize_tokens
from .lines import normalize_line
from .lines import parse_line
from .record import Record
from .record import load_records
from .utils import hexlify
from .utils import parse_int
from .utils import unhexlify


class BasedIntParamType(click.ParamType):
    name = 'integer'

    def convert(self, value, param, ctx):
        try:
            return parse_int(value)
        except ValueError:
            self.fail(f'invalid integer: {value!r}', param, ctx)


class ByteIntParamType(click.ParamType):
    name = 'byte'

    def convert(self, value, param, ctx):
        try:
            b = parse_int(value)
            if not 0 <= b <= 255:
                raise ValueError()
            return b
        except ValueError:
            self.fail(f'invalid byte: {value!r}', param, ctx)


BASED_INT = BasedIntParamType()
BYTE_INT = ByteIntParamType()

FILE_PATH_IN = click.Path(dir_okay=False, allow_dash=True, readable=True, exists=True)
FILE_PATH_OUT = click.Path(dir_okay=False, allow_dash=True, writable=True)

ADDRESS_WIDTHS: Mapping[str, AddressWidth] = {
    '16': AddressWidth.WIDTH_16,
    '24': AddressWidth.WIDTH_24,
    '32': AddressWidth.WIDTH_32,
}

ADDRESS_WIDTH_CHOICE = click.Choice(list(ADDRESS_WIDTHS.keys()))

LOG_LEVEL_CHOICE = click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                                case_sensitive=False)

DATA_FMT_FORMATTERS: Mapping[str, Callable[[bytes], bytes]] = {
    'ascii': lambda b: b,
    'hex': lambda b: hexlify(b, upper=False),
    'HEX': lambda b: hexlify(b, upper=True),
    'hex.': lambda b: hexlify(b, sep=b'.', upper=False),
    'HEX.': lambda b: hexlify(b, sep=b'.', upper=True),
    'hex-': lambda b: hexlify(b, sep=b'-', upper=False),
    'HEX-': lambda b: hexlify(b, sep=b'-', upper=True),
    'hex:': lambda b: hexlify(b, sep=b':', upper=False),
    'HEX:': lambda b: hexlify(b, sep=b':', upper=True),
    'hex_': lambda b: hexlify(b, sep=b'_', upper=False),
    'HEX_': lambda b: hexlify(b, sep=b'_', upper=True),
    'hex ': lambda b: hexlify(b, sep=b' ', upper=False),
    'HEX ': lambda b: hexlify(b, sep=b' ', upper=True),
}

DATA_FMT_PARSERS: Mapping[str, Callable[[bytes], bytes]] = {
    'ascii': lambda b: b,
    'hex': lambda b: unhexlify(b),
    'HEX': lambda b: unhexlify(b),
    'hex.': lambda b: unhexlify(b, delete=b'.'),
    'HEX.': lambda b: unhexlify(b, delete=b'.'),
    'hex-': lambda b: unhexlify(b, delete=b'-'),
    'HEX-': lambda b: unhexlify(b, delete=b'-'),
    'hex:': lambda b: unhexlify(b, delete=b':'),
    'HEX:': lambda b: unhexlify(b, delete=b':'),
    'hex_': lambda b: unhexlify(b, delete=b'_'),
    'HEX_': lambda b: unhexlify(b, delete=b'_'),
    'hex ': lambda b: unhexlify(b, delete=b' \t'),
    'HEX ': lambda b: unhexlify(b, delete=b' \t'),
}

DATA_FMT_CHOICE = click.Choice(list(DATA_FMT_FORMATTERS.keys()))


# ----------------------------------------------------------------------------

def load_record(
    input_path: Optional[str],
    strict: bool = False,
) -> Record:

    if input_path == '-':
        input_path = None

    record = Record(strict=strict)
    if not record.load_file(input_path):
        record.error.raise_for_error()
        raise ValueError('unexpected content after the record')
    return record


def save_record(
    record: Record,
    output_path: Optional[str],
    line_length: Optional[int] = None,
) -> None:

    if output_path == '-':
        output_path = None

    if not record.save(output_path, line_length=line_length or 0):
        record.error.raise_for_error()


def read_records(
    input_path: Optional[str],
    strict: bool = False,
) -> List[Record]:

    if input_path == '-':
        input_path = None

    return load_records(input_path, strict=strict)


def print_version(ctx, _, value):

    if not value or ctx.resilient_parsing:
        return

    click.echo(str(__version__))
    ctx.exit()


# ----------------------------------------------------------------------------

class SingleFileInOutCtxMgr:

    def __init__(
        self,
        input_path: Optional[str],
        output_path: Optional[str],
        line_length: Optional[int] = None,
        strict: bool = False,
    ):

        if input_path == '-':
            input_path = None

        if not output_path:
            output_path = input_path
        if output_path == '-':
            output_path = None

        self.input_path: Optional[str] = input_path
        self.output_path: Optional[str] = output_path
        self.line_length: Optional[int] = line_length
        self.strict: bool = strict
        self.record: Optional[Record] = None

    def __enter__(self) -> 'SingleFileInOutCtxMgr':

        self.record = load_record(self.input_path, strict=self.strict)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:

        if exc_type is None:
            save_record(self.record, self.output_path, self.line_length)


# ============================================================================

@click.group()
@click.option('--log-level', type=LOG_LEVEL_CHOICE, default='WARNING',
              show_default=True, help="""
    Logging level of the diagnostic messages, printed onto standard error.
""")
@click.option('-V', '--version', is_flag=True, is_eager=True,
              expose_value=False, callback=print_version, help="""
    Prints the package version number.
""")
def main(log_level: str) -> None:
    """
    A set of command line utilities for common operations with Motorola
    S-record files.

    Being built with `Click <https://click.palletsprojects.com/en/stable/>`_, all the
    commands follow POSIX-like syntax rules, as well as reserving the virtual
    file path ``-`` for command chaining via standard output/input buffering.
    """

    logging.basicConfig(level=getattr(logging, log_level.upper()), force=True)


# ----------------------------------------------------------------------------

@main.command()
@click.option('-s', '--start', type=BASED_INT, help="""
    Inclusive start address.
    By default it applies from the start of the data contents.
""")
@click.option('-e', '--endex', type=BASED_INT, help="""
    Exclusive end address.
    By default it applies till the end of the data contents.
""")
@click.option('-w', '--line-length', type=BASED_INT, help="""
    Approximate length of the output data lines, in characters.
""")
@click.option('--strict', is_flag=True, help="""
    Strict parsing.
""")
@click.argument('infile', type=FILE_PATH_IN, required=False)
@click.argument('outfile', type=FILE_PATH_OUT, required=False)
def clear(
    start: Optional[int],
    endex: Optional[int],
    line_length: Optional[int],
    strict: bool,
    infile: str,
    outfile: str,
) -> None:
    r"""Clears an address range.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.

    ``OUTFILE`` is the path of the output file.
    Set to ``-`` to write to standard output.
    Leave empty to overwrite ``INFILE``.
    """

    with SingleFileInOutCtxMgr(infile, outfile, line_length, strict) as ctx:
        record = ctx.record
        if start is None:
            start = record.start
        if endex is None:
            endex = record.endex
        record.remove_range(start, endex)


# ----------------------------------------------------------------------------

@main.command()
@click.option('-w', '--line-length', type=BASED_INT, help="""
    Approximate length of the output data lines, in characters.
""")
@click.option('-a', '--address-width', type=ADDRESS_WIDTH_CHOICE, help="""
    Address width of the output data lines, in bits.
    By default it is that of the input file.
""")
@click.option('--strict', is_flag=True, help="""
    Strict parsing; an address width too small for the data is an error.
""")
@click.argument('infile', type=FILE_PATH_IN, required=False)
@click.argument('outfile', type=FILE_PATH_OUT, required=False)
def convert(
    line_length: Optional[int],
    address_width: Optional[str],
    strict: bool,
    infile: str,
    outfile: str,
) -> None:
    r"""Reformats a file.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.

    ``OUTFILE`` is the path of the output file.
    Set to ``-`` to write to standard output.
    Leave empty to overwrite ``INFILE``.
    """

    with SingleFileInOutCtxMgr(infile, outfile, line_length, strict) as ctx:
        if address_width is not None:
            ctx.record.address_width = ADDRESS_WIDTHS[address_width]


# ----------------------------------------------------------------------------

@main.command()
@click.argument('infile', type=FILE_PATH_IN, required=False)
def dump(
    infile: str,
) -> None:
    r"""Dumps the records of a file.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.
    """

    for record in read_records(infile):
        click.echo(record.dump(), nl=False)


# ----------------------------------------------------------------------------

# noinspection PyShadowingBuiltins
@main.command()
@click.option('-s', '--start', type=BASED_INT, default=0, help="""
    Inclusive start address of the search.
""")
@click.option('-f', '--format', 'format', type=DATA_FMT_CHOICE,
              default='hex', show_default=True, help="""
    Pattern data format.
""")
@click.argument('pattern', type=str)
@click.argument('infile', type=FILE_PATH_IN, required=False)
@click.pass_context
def find(
    ctx: click.Context,
    start: int,
    format: str,
    pattern: str,
    infile: str,
) -> None:
    r"""Finds the address of a byte pattern.

    Matches never span across separate data blocks.
    The exit status is 1 if the pattern is not found.

    ``PATTERN`` is the byte pattern to look for.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.
    """

    parser = DATA_FMT_PARSERS[format]
    sequence = parser(pattern.encode())
    record = load_record(infile)
    address = record.find(sequence, start)

    if not sequence or address >= record.endex:
        ctx.exit(1)

    click.echo(f'0x{address:08X}')


# ----------------------------------------------------------------------------

@main.command()
@click.option('-v', '--value', type=BYTE_INT, help="""
    Byte value used to fill the memory holes.
    By default, no fill is performed.
""")
@click.option('-w', '--line-length', type=BASED_INT, help="""
    Approximate length of the output data lines, in characters.
""")
@click.argument('infiles', type=FILE_PATH_IN, nargs=-1)
@click.argument('outfile', type=FILE_PATH_OUT)
def merge(
    value: Optional[int],
    line_length: Optional[int],
    infiles: Sequence[str],
    outfile: str,
) -> None:
    r"""Merges multiple files.

    ``INFILES`` is the list of paths of the input files.
    Set any to ``-`` or none to read from standard input.

    ``OUTFILE`` is the path of the output file.
    Set to ``-`` to write to standard output.

    Every record of ``INFILES`` will overwrite data of previous records
    where addresses overlap.
    The header and start address are those of the first record.
    """

    if not infiles:
        infiles = [None]

    output = Record()
    first = True

    for infile in infiles:
        for record in read_records(infile):
            if first:
                output.header = record.header
                output.start_address = record.start_address
                first = False

            for block in record.blocks:
                output.set_range(block)

    if value is not None:
        output.merge(value)

    save_record(output, outfile, line_length)


# ----------------------------------------------------------------------------

# noinspection PyShadowingBuiltins
@main.command(name='print')
@click.option('--color', is_flag=True, help="""
    Colorizes the line fields.
""")
@click.argument('infile', type=FILE_PATH_IN, required=False)
def print_(
    color: bool,
    infile: str,
) -> None:
    r"""Prints the lines of a file.

    Lines are checked and printed in canonical form.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.
    """

    if infile is None or infile == '-':
        print_lines(sys.stdin.buffer, color)
    else:
        with open(infile, 'rb') as stream:
            print_lines(stream, color)


def print_lines(stream, color: bool) -> None:

    reader = LineReader(stream)
    output = sys.stdout.buffer

    while True:
        raw = reader.readline()
        if raw is None:
            break

        text = normalize_line(raw)
        if text:
            line = parse_line(text, reader.lineno)
            tokens = line.to_tokens(end=b'\n')
            if color:
                tokens = colorize_tokens(tokens)
            output.writelines(tokens.values())

    output.flush()


# ----------------------------------------------------------------------------

# noinspection PyShadowingBuiltins
@main.command()
@click.option('-s', '--start', type=BASED_INT, help="""
    Inclusive start address.
    By default it applies from the start of the data contents.
""")
@click.option('-e', '--endex', type=BASED_INT, help="""
    Exclusive end address.
    By default it applies till the end of the data contents.
""")
@click.option('-v', '--value', type=BYTE_INT, default=0, show_default=True, help="""
    Byte value of the memory holes.
""")
@click.option('-f', '--format', 'format', type=DATA_FMT_CHOICE,
              default='HEX', show_default=True, help="""
    Output data format.
""")
@click.argument('infile', type=FILE_PATH_IN, required=False)
def read(
    start: Optional[int],
    endex: Optional[int],
    value: int,
    format: str,
    infile: str,
) -> None:
    r"""Reads data from an address range.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.
    """

    record = load_record(infile)
    if start is None:
        start = record.start
    if endex is None:
        endex = record.endex

    block = record.get_range(start, endex, value)
    formatter = DATA_FMT_FORMATTERS[format]
    click.echo(formatter(bytes(block.data)).decode('latin-1'))


# ----------------------------------------------------------------------------

@main.command()
@click.option('--strict', is_flag=True, help="""
    Strict parsing.
""")
@click.argument('infile', type=FILE_PATH_IN, required=False)
def validate(
    strict: bool,
    infile: str,
) -> None:
    r"""Validates the records of a file.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.
    """

    read_records(infile, strict=strict)


# ----------------------------------------------------------------------------

# noinspection PyShadowingBuiltins
@main.command()
@click.option('-f', '--format', 'format', type=DATA_FMT_CHOICE,
              default='ascii', show_default=True, help="""
    Header data format.
""")
@click.argument('infile', type=FILE_PATH_IN, required=False)
def get_header(
    format: str,
    infile: str,
) -> None:
    r"""Gets the header data.

    Trailing null bytes are not printed.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.
    """

    record = load_record(infile)
    formatter = DATA_FMT_FORMATTERS[format]
    text = formatter(record.header.rstrip(b'\0')).decode('latin-1')
    click.echo(text)


# ----------------------------------------------------------------------------

# noinspection PyShadowingBuiltins
@main.command()
@click.option('-f', '--format', 'format', type=DATA_FMT_CHOICE,
              default='ascii', show_default=True, help="""
    Header data format.
""")
@click.option('-w', '--line-length', type=BASED_INT, help="""
    Approximate length of the output data lines, in characters.
""")
@click.argument('header', type=str)
@click.argument('infile', type=FILE_PATH_IN, required=False)
@click.argument('outfile', type=FILE_PATH_OUT, required=False)
def set_header(
    format: str,
    line_length: Optional[int],
    header: str,
    infile: str,
    outfile: str,
) -> None:
    r"""Sets the header data.

    The header is padded with null bytes up to 10 bytes.

    ``HEADER`` is the header data.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.

    ``OUTFILE`` is the path of the output file.
    Set to ``-`` to write to standard output.
    Leave empty to overwrite ``INFILE``.
    """

    parser = DATA_FMT_PARSERS[format]
    header_data = parser(header.encode())

    with SingleFileInOutCtxMgr(infile, outfile, line_length) as ctx:
        ctx.record.header = header_data
