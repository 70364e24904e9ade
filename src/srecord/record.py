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

r"""Motorola S-record model.

The :class:`Record` class holds the data blocks and the metadata of a
record, parsing it from text and composing it back.

Expected failures never raise: the first error is kept as the
:attr:`Record.error` state, and the failing methods return ``False``.

Examples:
    >>> from srecord import Record
    >>> record = Record('S10612346162638D\nS9030000FC\n')
    >>> record.good()
    True
    >>> record.blocks
    [Block(0x1234, b'abc')]
    >>> print(record.compose_str(), end='')
    S00D000000000000000000000000F2
    S10612346162638D
    S5030001FB
    S9030000FC
"""

import io
import logging
import sys
from typing import IO
from typing import List
from typing import Optional
from typing import Sequence
from typing import Union

from bytesparse import Memory
from bytesparse.base import ImmutableMemory

from .assembler import RecordAssembler
from .base import AnyBytes
from .base import AnyPath
from .base import AddressWidth
from .base import ErrorKind
from .base import ErrorState
from .base import SrecError
from .blocks import Block
from .blocks import BlockList
from .blocks import BlockSet
from .composer import Composer
from .composer import normalize_header
from .lines import LineReader
from .lines import SrecLine
from .validator import Validator

logger = logging.getLogger(__name__)

HEADER_STR_MAX: int = 25
r"""Greatest length of a header assigned as a string."""

RecordSource = Union[str, AnyBytes, IO, LineReader]


class Record:
    r"""Motorola S-record.

    Args:
        source (str or bytes or stream):
            Optional text to parse; see :meth:`parse`.

        strict (bool):
            Strict parsing: missing or inconsistent record markers are
            errors, instead of tolerated.

        default_value (int):
            Byte value of the addresses without data.

    Attributes:
        error (:class:`ErrorState`):
            First error since the last :meth:`clear`.

    Examples:
        >>> record = Record(strict=True)
        >>> record.parse('S10612346162638D\n')
        False
        >>> record.error_message
        '[parse] Missing record header (S0)'
    """

    def __init__(
        self,
        source: Optional[RecordSource] = None,
        strict: bool = False,
        default_value: int = 0,
    ):

        self._strict: bool = bool(strict)
        self._default_value: int = 0
        self.default_value = default_value

        self._blockset: BlockSet = BlockSet()
        self._address_width: AddressWidth = AddressWidth.UNDEFINED
        self._start_address: int = 0
        self._header: bytes = normalize_header(None)
        self._parser_line: int = 0
        self.error: ErrorState = ErrorState()

        if source is not None:
            self.parse(source)

    def __eq__(self, other) -> bool:

        if isinstance(other, Record):
            return (self._blockset == other._blockset and
                    self._address_width == other._address_width and
                    self._start_address == other._start_address and
                    self._header == other._header)
        return NotImplemented

    def __repr__(self) -> str:

        return (f'<{type(self).__name__} '
                f'address_width={self._address_width.name} '
                f'blocks={len(self._blockset)} '
                f'error={self.error.kind.name}>')

    def _fail(self, exception: SrecError) -> bool:

        if not self.error:
            self.error = ErrorState.from_exception(exception)
        logger.debug('%s', self.error)
        return False

    # ------------------------------------------------------------------------

    @property
    def address_width(self) -> AddressWidth:
        r""":class:`AddressWidth`: Address width of the data lines.

        Values other than the 16, 24 and 32 bit widths set
        :attr:`AddressWidth.UNDEFINED`.
        """

        return self._address_width

    @address_width.setter
    def address_width(self, address_width: Union[AddressWidth, int]) -> None:

        self._address_width = AddressWidth.coerce(address_width)

    @property
    def blocks(self) -> BlockList:
        r"""list of :class:`Block`: Data blocks, directly mutable.

        Direct manipulation bypasses the block invariants; :meth:`validate`
        reports the violations.
        """

        return self._blockset.blocks

    @property
    def blockset(self) -> BlockSet:
        r""":class:`BlockSet`: Data block collection."""

        return self._blockset

    @property
    def default_value(self) -> int:
        r"""int: Byte value of the addresses without data.

        Zero initialized RAM reads ``0x00``, erased flash memory reads
        ``0xFF``.
        """

        return self._default_value

    @default_value.setter
    def default_value(self, default_value: int) -> None:

        default_value = int(default_value)
        if not 0 <= default_value <= 0xFF:
            raise ValueError('invalid byte value')
        self._default_value = default_value

    @property
    def endex(self) -> int:
        r"""int: Exclusive end address of the last block; zero if empty."""

        return self._blockset.endex

    @property
    def error_address(self) -> int:
        r"""int: Address of the current error; zero if not applicable."""

        return self.error.address

    @property
    def error_message(self) -> str:
        r"""str: Message of the current error."""

        return self.error.message

    @property
    def header(self) -> bytes:
        r"""bytes: Header line payload.

        Conventionally made of a 10 bytes module name, version and revision
        bytes, and a description.
        Assigned values are padded with zeros up to 10 bytes, and truncated
        to the greatest payload of a line.
        """

        return self._header

    @header.setter
    def header(self, header: Optional[AnyBytes]) -> None:

        self._header = normalize_header(header)

    @property
    def header_str(self) -> str:
        r"""str: Header as text.

        The text stops at the first null byte, without trailing whitespace.
        Assigned text is truncated to :data:`HEADER_STR_MAX` characters.

        Examples:
            >>> record = Record()
            >>> record.header_str = 'firmware v1.0'
            >>> record.header
            b'firmware v1.0'
            >>> record.header_str = 'fw'
            >>> record.header
            b'fw\x00\x00\x00\x00\x00\x00\x00\x00'
            >>> record.header_str
            'fw'
        """

        text = self._header.split(b'\0', 1)[0].decode('latin-1')
        return text.rstrip()

    @header_str.setter
    def header_str(self, text: str) -> None:

        self._header = normalize_header(text[:HEADER_STR_MAX].encode('latin-1'))

    @property
    def parser_line(self) -> int:
        r"""int: Lines consumed by the last :meth:`parse`.

        In case of a parsing error, it is the number of the offending line.
        """

        return self._parser_line

    @property
    def start(self) -> int:
        r"""int: Start address of the first block; zero if empty."""

        return self._blockset.start

    @property
    def start_address(self) -> int:
        r"""int: Start address declared by the termination line."""

        return self._start_address

    @start_address.setter
    def start_address(self, start_address: int) -> None:

        start_address = int(start_address)
        if start_address < 0:
            raise ValueError('negative address')
        self._start_address = start_address

    @property
    def strict(self) -> bool:
        r"""bool: Strict parsing."""

        return self._strict

    @strict.setter
    def strict(self, strict: bool) -> None:

        self._strict = bool(strict)

    # ------------------------------------------------------------------------

    def clear(self) -> 'Record':
        r"""Clears data, metadata and error state.

        Options (:attr:`strict`, :attr:`default_value`) are kept.

        Returns:
            :class:`Record`: *self*.
        """

        self._blockset.clear()
        self._address_width = AddressWidth.UNDEFINED
        self._start_address = 0
        self._header = normalize_header(None)
        self._parser_line = 0
        self.error = ErrorState()
        return self

    def good(self) -> bool:
        r"""Tells whether there is no error."""

        return not self.error

    def parse(
        self,
        source: RecordSource,
        single_file_stream: bool = False,
    ) -> bool:
        r"""Parses a record.

        Any previous content is cleared first.

        Text sources (:obj:`str` or :obj:`bytes`) hold a single record.

        Stream sources are read until the end of the stream, or up to the
        first line belonging to the next record, which is left to be read by
        the next call: a header line after other lines, or a line not
        starting with ``S`` if not `single_file_stream`.
        On non-seekable streams that line is kept by the reader that
        :meth:`LineReader.wrap` shares among the calls on the same stream.

        Args:
            source (str or bytes or stream):
                Record text, or input stream.

            single_file_stream (bool):
                The stream holds a single record; lines not starting with
                ``S`` are errors.

        Returns:
            bool: Success.

        Examples:
            >>> import io
            >>> stream = io.StringIO('S10612346162638D\nS9030000FC\nend\n')
            >>> record = Record()
            >>> record.parse(stream), record.parser_line
            (True, 2)
        """

        self.clear()

        if isinstance(source, (bytes, bytearray, memoryview)):
            source = bytes(source).decode('latin-1')
        if isinstance(source, str):
            source = io.StringIO(source)
            single_file_stream = True

        reader = LineReader.wrap(source)
        assembler = RecordAssembler(strict=self._strict)
        try:
            assembler.read(reader, single_file_stream=single_file_stream)
            assembler.assemble()
        except SrecError as exc:
            self._parser_line = assembler.lineno
            return self._fail(exc)

        self._parser_line = assembler.lineno
        self._blockset = assembler.blocks
        self._address_width = assembler.address_width
        self._start_address = assembler.start_address
        self._header = normalize_header(assembler.header)

        return self.validate(strict=self._strict)

    def validate(self, strict: bool = True) -> bool:
        r"""Validates the record.

        The address width is set to the narrowest suitable one if
        undefined, or upgraded if too small and not `strict`.

        Args:
            strict (bool):
                An address width too small for the data is an error.

        Returns:
            bool: Success; ``False`` also for any previous error.
        """

        if self.error:
            return False
        try:
            validator = Validator(strict=strict)
            self._address_width = validator.validate(self._blockset,
                                                     self._address_width)
        except SrecError as exc:
            return self._fail(exc)
        return True

    def _compose_lines(self, line_length: int) -> Optional[List[SrecLine]]:

        if not self.validate(strict=self._strict):
            return None
        try:
            composer = Composer(line_length)
            return composer.compose(self._blockset, self._address_width,
                                    self._header, self._start_address)
        except SrecError as exc:
            self._fail(exc)
            return None

    def compose(
        self,
        stream: IO,
        line_length: int = 0,
    ) -> bool:
        r"""Composes the record onto a stream.

        Args:
            stream (stream):
                Output stream; text streams receive :obj:`str`, other streams
                receive :obj:`bytes`.

            line_length (int):
                Approximate length of the data lines; see
                :class:`srecord.composer.Composer`.

        Returns:
            bool: Success. Nothing is written on failure.
        """

        lines = self._compose_lines(line_length)
        if lines is None:
            return False
        Composer.write(lines, stream)
        return True

    def compose_str(self, line_length: int = 0) -> str:
        r"""Composes the record as text.

        Args:
            line_length (int):
                Approximate length of the data lines.

        Returns:
            str: Record text; empty on failure.
        """

        stream = io.StringIO()
        if self.compose(stream, line_length):
            return stream.getvalue()
        return ''

    def save(
        self,
        out_path_or_stream: Optional[Union[AnyPath, IO]],
        line_length: int = 0,
    ) -> bool:
        r"""Saves the record into the filesystem.

        Args:
            out_path_or_stream (str or stream):
                Path of the file within the filesystem, or output stream.
                If ``None``, ``sys.stdout.buffer`` is used.

            line_length (int):
                Approximate length of the data lines.

        Returns:
            bool: Success. The file is not touched on failure.
        """

        lines = self._compose_lines(line_length)
        if lines is None:
            return False

        if out_path_or_stream is None:
            out_path_or_stream = sys.stdout.buffer

        if isinstance(out_path_or_stream, io.IOBase):
            Composer.write(lines, out_path_or_stream)
        else:
            with open(out_path_or_stream, 'wb') as stream:
                Composer.write(lines, stream)
        return True

    @classmethod
    def load(
        cls,
        in_path_or_stream: Optional[Union[AnyPath, IO]],
        strict: bool = False,
    ) -> 'Record':
        r"""Loads a record from the filesystem.

        The file holds a single record.

        Args:
            in_path_or_stream (str or stream):
                Path of the file within the filesystem, or input stream.
                If ``None``, ``sys.stdin.buffer`` is used.

            strict (bool):
                Strict parsing.

        Returns:
            :class:`Record`: Loaded record; on failure its :attr:`error` is
            set, :attr:`ErrorKind.LOAD_OPEN_FAILED` if the file could not be
            opened.
        """

        record = cls(strict=strict)
        record.load_file(in_path_or_stream)
        return record

    def load_file(
        self,
        in_path_or_stream: Optional[Union[AnyPath, IO]],
    ) -> bool:
        r"""Loads the record from the filesystem.

        Args:
            in_path_or_stream (str or stream):
                Path of the file within the filesystem, or input stream.
                If ``None``, ``sys.stdin.buffer`` is used.

        Returns:
            bool: Success: the file was opened and parsed, and it holds
            nothing after the record.
            Content after the record is reported as failure without
            setting an :attr:`error`.
        """

        self.clear()

        if in_path_or_stream is None:
            in_path_or_stream = sys.stdin.buffer

        if isinstance(in_path_or_stream, (io.IOBase, LineReader)):
            return self._load_stream(in_path_or_stream)

        if not in_path_or_stream:
            return self._fail(SrecError(ErrorKind.LOAD_OPEN_FAILED))
        try:
            stream = open(in_path_or_stream, 'rb')
        except OSError as exc:
            logger.warning('cannot open %r: %s', in_path_or_stream, exc)
            return self._fail(SrecError(ErrorKind.LOAD_OPEN_FAILED))

        with stream:
            return self._load_stream(stream)

    def _load_stream(self, stream: Union[IO, LineReader]) -> bool:

        reader = LineReader.wrap(stream)
        if not self.parse(reader, single_file_stream=True):
            return False
        if not reader.at_eof():
            logger.warning('content after the record, line %d',
                           reader.lineno + 1)
            return False
        return True

    # ------------------------------------------------------------------------

    def get_ranges(
        self,
        start: int,
        endex: int,
    ) -> BlockList:
        r"""Gets copies of the data within a range.

        See Also:
            :meth:`srecord.blocks.BlockSet.get_ranges`
        """

        return self._blockset.get_ranges(start, endex)

    def get_range(
        self,
        start: int,
        endex: int,
        fill: Optional[int] = None,
    ) -> Block:
        r"""Gets a contiguous range.

        Args:
            start (int):
                Inclusive start address.

            endex (int):
                Exclusive end address.

            fill (int):
                Byte value of the addresses without data;
                :attr:`default_value` if ``None``.

        Returns:
            :class:`Block`: Block spanning exactly ``[start, endex)``.
        """

        if fill is None:
            fill = self._default_value
        return self._blockset.get_range(start, endex, fill)

    def set_range(
        self,
        block_or_address: Union[Block, int],
        data: Optional[Union[AnyBytes, Sequence[int]]] = None,
    ) -> 'Record':
        r"""Writes data, overwriting existing data.

        Args:
            block_or_address (:class:`Block` or int):
                Block to write, or start address of `data`.

            data (bytes):
                Byte values to write at `block_or_address`.

        Returns:
            :class:`Record`: *self*.

        Examples:
            >>> record = Record()
            >>> record.set_range(0x20, b'abc').set_range(Block(0x21, b'X'))
            <Record address_width=UNDEFINED blocks=1 error=OK>
            >>> record.blocks
            [Block(0x20, b'aXc')]
        """

        if isinstance(block_or_address, Block):
            block = block_or_address
        else:
            block = Block(block_or_address, bytes(data or b''))
        self._blockset.set_range(block)
        return self

    def remove_range(
        self,
        start: int,
        endex: int,
    ) -> 'Record':
        r"""Removes the data within a range.

        Returns:
            :class:`Record`: *self*.
        """

        self._blockset.remove_range(start, endex)
        return self

    def merge(self, fill: Optional[int] = None) -> Block:
        r"""Merges all the blocks into one.

        Args:
            fill (int):
                Byte value of the gaps; :attr:`default_value` if ``None``.

        Returns:
            :class:`Block`: Merged block.
        """

        if fill is None:
            fill = self._default_value
        return self._blockset.merge(fill)

    def find(
        self,
        sequence: Union[AnyBytes, Sequence[int]],
        start: int = 0,
    ) -> int:
        r"""Finds the address of a byte sequence.

        Returns:
            int: Address of the first match at or after `start`;
            :attr:`endex` if not found.
        """

        return self._blockset.find(sequence, start)

    # ------------------------------------------------------------------------

    def dump(self, stream: Optional[IO] = None) -> str:
        r"""Human readable dump.

        Args:
            stream (stream):
                Optional text stream where the dump is also written.

        Returns:
            str: Dump text.

        Examples:
            >>> record = Record().set_range(0x12, b'\x01\x02\x03\x04')
            >>> print(record.dump(), end='')
            srec {
             data type: (auto/not set)
             blocks: [
                <00000010>      0102 0304
            <BLANKLINE>
             ]
            }
        """

        width = self._address_width
        if width:
            data_type = f'S{int(width)}'
        else:
            data_type = '(auto/not set)'

        rows = ['srec {', f' data type: {data_type}', ' blocks: [']
        for block in self._blockset:
            for row in block.dump().splitlines():
                if row:
                    rows.append(f'    {row}')
            rows.append('')
        rows.append(' ]')
        rows.append('}')
        text = '\n'.join(rows) + '\n'

        if stream is not None:
            stream.write(text)
        return text

    def to_memory(self) -> Memory:
        r"""Copies the data blocks into a :class:`bytesparse.Memory`.

        Examples:
            >>> record = Record().set_range(0x20, b'abc')
            >>> record.to_memory().to_blocks()
            [[32, b'abc']]
        """

        return Memory.from_blocks([[block.start, bytes(block.data)]
                                   for block in self._blockset])

    @classmethod
    def from_memory(
        cls,
        memory: ImmutableMemory,
        strict: bool = False,
        default_value: int = 0,
    ) -> 'Record':
        r"""Creates a record from the blocks of a :class:`bytesparse.Memory`.

        Examples:
            >>> from bytesparse import Memory
            >>> memory = Memory.from_blocks([[0x20, b'abc'], [0x30, b'xyz']])
            >>> Record.from_memory(memory).blocks
            [Block(0x20, b'abc'), Block(0x30, b'xyz')]
        """

        record = cls(strict=strict, default_value=default_value)
        record._blockset = BlockSet(Block(start, data)
                                    for start, data in memory.to_blocks())
        return record


def load(
    in_path_or_stream: Optional[Union[AnyPath, IO]],
    strict: bool = False,
) -> Record:
    r"""Loads a record from the filesystem.

    See Also:
        :meth:`Record.load`
    """

    return Record.load(in_path_or_stream, strict=strict)


def parse_records(
    source: Union[IO, LineReader],
    strict: bool = False,
) -> List[Record]:
    r"""Parses all the records of a stream.

    Blank lines between records are ignored.

    Args:
        source (stream):
            Input stream.

        strict (bool):
            Strict parsing.

    Returns:
        list of :class:`Record`: Parsed records, in stream order.

    Raises:
        SrecError: error of the first invalid record.

    Examples:
        >>> import io
        >>> text = ('S0030000FC\nS10612346162638D\nS9030000FC\n\n'
        ...         'S0030000FC\nS10612346162638D\nS9030000FC\n')
        >>> records = parse_records(io.StringIO(text))
        >>> len(records), records[0] == records[1]
        (2, True)
        >>> text = 'S0030000FC\nS9030000FC\nS0030000FC\nS9030000FC\n'
        >>> parse_records(io.StringIO(text))
        Traceback (most recent call last):
            ...
        srecord.base.SrecError: [parse] Missing data lines (S1/S2/S3) (line 2)
    """

    reader = LineReader.wrap(source)
    records = []

    while not reader.at_eof():
        record = Record(strict=strict)
        record.parse(reader)
        record.error.raise_for_error()
        records.append(record)

    logger.debug('parsed %d records', len(records))
    return records


def load_records(
    in_path_or_stream: Optional[Union[AnyPath, IO]],
    strict: bool = False,
) -> List[Record]:
    r"""Loads all the records of a file.

    Args:
        in_path_or_stream (str or stream):
            Path of the file within the filesystem, or input stream.
            If ``None``, ``sys.stdin.buffer`` is used.

        strict (bool):
            Strict parsing.

    Returns:
        list of :class:`Record`: Loaded records, in file order.

    Raises:
        SrecError: error of the first invalid record.
        OSError: the file cannot be opened.
    """

    if in_path_or_stream is None:
        in_path_or_stream = sys.stdin.buffer

    if isinstance(in_path_or_stream, io.IOBase):
        return parse_records(in_path_or_stream, strict=strict)

    with open(in_path_or_stream, 'rb') as stream:
        return parse_records(stream, strict=strict)
