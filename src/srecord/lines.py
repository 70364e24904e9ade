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

r"""Motorola S-record lines.

A line has the form ``S<tag><count><address><data><checksum>``, where all
the fields after the tag are hexadecimal bytes:

* *count* is the number of bytes after itself (address, data, checksum);
* *address* is 2, 3 or 4 bytes wide depending on the *tag*;
* *checksum* is the one's complement of the least significant byte of the
  sum of the *count*, *address* and *data* bytes.

See Also:
    `<https://en.wikipedia.org/wiki/SREC_(file_format)>`_
"""

import enum
import io
import logging
import weakref
from typing import IO
from typing import List
from typing import Mapping
from typing import Optional
from typing import Union

import colorama

from .base import AnyBytes
from .base import AddressWidth
from .base import ErrorKind
from .base import SrecError
from .utils import checksum
from .utils import hexlify

logger = logging.getLogger(__name__)

_SHARED_READERS: 'weakref.WeakKeyDictionary[IO, LineReader]' = weakref.WeakKeyDictionary()

LINE_CHARS_MIN: int = 10
r"""Minimum number of characters of a line: ``S<tag><count><2 bytes><checksum>``."""

LINE_CHARS_MAX: int = 514
r"""Maximum number of characters of a line: 255 bytes after the count."""

ACCEPTED_CHARS = frozenset('0123456789ABCDEFS')
r"""Characters accepted within an upper-cased, whitespace-stripped line."""


class SrecTag(enum.IntEnum):
    r"""Motorola S-record tag."""

    HEADER = 0
    r"""Header string. Optional."""

    DATA_16 = 1
    r"""16-bit address data record."""

    DATA_24 = 2
    r"""24-bit address data record."""

    DATA_32 = 3
    r"""32-bit address data record."""

    RESERVED = 4
    r"""Reserved tag."""

    COUNT_16 = 5
    r"""16-bit record count. Optional."""

    COUNT_24 = 6
    r"""24-bit record count. Optional."""

    START_32 = 7
    r"""32-bit start address. Terminates :attr:`DATA_32`."""

    START_24 = 8
    r"""24-bit start address. Terminates :attr:`DATA_24`."""

    START_16 = 9
    r"""16-bit start address. Terminates :attr:`DATA_16`."""

    @classmethod
    def fit_count_tag(cls, count: int) -> 'SrecTag':
        r"""Fits count record tag.

        Given the record sequence count, it fits the most compact *count* tag.

        Args:
            count (int):
                Record sequence *count*.

        Returns:
            :class:`SrecTag`: *Count* record tag.

        Raises:
            ValueError: invalid `count`.

        Examples:
            >>> SrecTag.fit_count_tag(0xFFFF)
            <SrecTag.COUNT_16: 5>
            >>> SrecTag.fit_count_tag(0xFFFFFF)
            <SrecTag.COUNT_24: 6>
            >>> SrecTag.fit_count_tag(0x1000000)
            Traceback (most recent call last):
                ...
            ValueError: count overflow
        """

        if count < 0:
            raise ValueError('count overflow')
        if count <= 0xFFFF:
            return cls.COUNT_16
        if count <= 0xFFFFFF:
            return cls.COUNT_24
        raise ValueError('count overflow')

    @classmethod
    def from_width(cls, width: AddressWidth) -> 'SrecTag':
        r"""Data tag of an address width.

        Examples:
            >>> SrecTag.from_width(AddressWidth.WIDTH_24)
            <SrecTag.DATA_24: 2>
        """

        if not AddressWidth.WIDTH_16 <= width <= AddressWidth.WIDTH_32:
            raise ValueError('undefined address width')
        return cls(int(width))

    def get_address_size(self) -> int:
        r"""Bytes of the address field."""

        return SIZES[self]

    def get_data_max(self) -> int:
        r"""Maximum data bytes, as per the *count* field."""

        return 0xFF - 1 - self.get_address_size()

    def get_tag_match(self) -> Optional['SrecTag']:
        r"""Matching termination tag of a data tag, and vice versa.

        Examples:
            >>> SrecTag.DATA_16.get_tag_match()
            <SrecTag.START_16: 9>
            >>> SrecTag.START_32.get_tag_match()
            <SrecTag.DATA_32: 3>
            >>> SrecTag.HEADER.get_tag_match() is None
            True
        """

        match = MATCHES[self]
        return None if match is None else SrecTag(match)

    def is_count(self) -> bool:

        return self == self.COUNT_16 or self == self.COUNT_24

    def is_data(self) -> bool:

        return self.DATA_16 <= self <= self.DATA_32

    def is_header(self) -> bool:

        return self == self.HEADER

    def is_start(self) -> bool:

        return self.START_32 <= self <= self.START_16


SIZES = (2, 2, 3, 4, 0, 2, 3, 4, 3, 2)
r"""Address field size of each tag."""

MATCHES = (None, 9, 8, 7, None, None, None, 3, 2, 1)
r"""Matching data/termination tag of each tag."""

TOKEN_COLOR_CODES: Mapping[str, bytes] = {
    '':         colorama.Style.RESET_ALL.encode(),
    '<':        colorama.Style.RESET_ALL.encode(),
    '>':        colorama.Style.RESET_ALL.encode(),
    'address':  colorama.Fore.RED.encode(),
    'begin':    colorama.Fore.YELLOW.encode(),
    'checksum': colorama.Fore.MAGENTA.encode(),
    'count':    colorama.Fore.BLUE.encode(),
    'data':     colorama.Fore.CYAN.encode(),
    'dataalt':  colorama.Fore.LIGHTCYAN_EX.encode(),
    'end':      colorama.Style.RESET_ALL.encode(),
    'tag':      colorama.Fore.GREEN.encode(),
}
r"""ANSI color codes for each possible token type."""


def colorize_tokens(
    tokens: Mapping[str, bytes],
    altdata: bool = True,
) -> Mapping[str, bytes]:
    r"""Prepends ANSI color codes to line field tokens.

    For each token within `tokens`, its key is used to look up the ANSI color
    code from :data:`TOKEN_COLOR_CODES`.
    The retrieved code (byte string) is prepended to the token.
    All the modified tokens are then collected and returned.

    Args:
        tokens (dict):
            A mapping of each token key name to token byte string.

        altdata (bool):
            If true, it alternates each byte (two hex digits) between the ANSI
            color codes mapped with keys ``data`` (even byte index) and
            ``dataalt`` (odd byte index).
            If false, only the ``data`` code is prepended.

    Returns:
        dict: `tokens` with prepended ANSI color codes.

    Examples:
        >>> line = SrecLine(SrecTag.START_16, 0)
        >>> colorized = colorize_tokens(line.to_tokens())
        >>> b''.join(colorized.values())
        b'\x1b[0m\x1b[33mS\x1b[32m9\x1b[34m03\x1b[31m0000\x1b[35mFC\x1b[0m\n\x1b[0m'
    """

    codes = TOKEN_COLOR_CODES
    colorized = {}
    colorized.setdefault('<', codes['<'])

    for key, value in tokens.items():
        if key not in codes:
            key = ''
        if value:
            code = codes[key]

            if key == 'data' and altdata:
                altcode = codes['dataalt']
                buffer = bytearray()
                length = len(value)

                for i in range(0, length, 2):
                    buffer.extend(altcode if i & 2 else code)
                    buffer.extend(value[i:(i + 2)])

                colorized[key] = bytes(buffer)
            else:
                colorized[key] = code + value

    colorized.setdefault('>', codes['>'])
    return colorized


class SrecLine:
    r"""Decoded S-record line.

    Args:
        tag (:class:`SrecTag`):
            Line type.

        address (int):
            Address field value; for *count* lines it is the count value.

        data (bytes):
            Payload after the address field.

    Examples:
        >>> line = SrecLine(SrecTag.DATA_16, 0x1234, b'abc')
        >>> line.to_bytestr()
        b'S10612346162638D\n'
    """

    def __init__(
        self,
        tag: SrecTag,
        address: int = 0,
        data: AnyBytes = b'',
    ):

        self.tag: SrecTag = SrecTag(tag)
        self.address: int = address
        self.data: bytes = bytes(data)

    def __eq__(self, other) -> bool:

        if isinstance(other, SrecLine):
            return (self.tag == other.tag and
                    self.address == other.address and
                    self.data == other.data)
        return NotImplemented

    def __repr__(self) -> str:

        return (f'{type(self).__name__}({self.tag.name}, '
                f'0x{self.address:X}, {self.data!r})')

    @property
    def count(self) -> int:
        r"""int: Value of the *count* field."""

        return self.tag.get_address_size() + len(self.data) + 1

    def _pack(self) -> bytearray:

        size = self.tag.get_address_size()
        if len(self.data) > self.tag.get_data_max():
            raise ValueError('count overflow')
        if not 0 <= self.address < (1 << (size * 8)):
            raise ValueError('address overflow')

        buffer = bytearray()
        buffer.append(self.count)
        buffer.extend(self.address.to_bytes(size, 'big'))
        buffer.extend(self.data)
        return buffer

    def compute_checksum(self) -> int:
        r"""Computes the checksum of the line.

        Returns:
            int: Checksum byte value.
        """

        return checksum(self._pack())

    def to_binary(self) -> bytes:
        r"""Line bytes, from *count* to *checksum* included."""

        buffer = self._pack()
        buffer.append(self.compute_checksum())
        return bytes(buffer)

    def to_bytestr(self, end: AnyBytes = b'\n') -> bytes:
        r"""Serializes the line.

        Args:
            end (bytes):
                Line terminator.

        Returns:
            bytes: Serialized line, with upper case hexadecimal digits.
        """

        return b''.join(self.to_tokens(end=end).values())

    def to_tokens(self, end: AnyBytes = b'\n') -> Mapping[str, bytes]:
        r"""Splits the serialized line into its fields.

        Args:
            end (bytes):
                Line terminator.

        Returns:
            dict: Field name to serialized field bytes.

        Examples:
            >>> from pprint import pprint
            >>> pprint(SrecLine(SrecTag.DATA_16, 0x1234, b'abc').to_tokens())
            {'address': b'1234',
             'begin': b'S',
             'checksum': b'8D',
             'count': b'06',
             'data': b'616263',
             'end': b'\n',
             'tag': b'1'}
        """

        binary = self.to_binary()
        size = self.tag.get_address_size()

        return {
            'begin': b'S',
            'tag': b'%d' % self.tag,
            'count': hexlify(binary[:1]),
            'address': hexlify(binary[1:(1 + size)]),
            'data': hexlify(self.data),
            'checksum': hexlify(binary[-1:]),
            'end': bytes(end),
        }


def normalize_line(line: str) -> str:
    r"""Removes any whitespace and converts to upper case.

    Examples:
        >>> normalize_line(' s1 06 1234\t616263 8d\r\n')
        'S10612346162638D'
    """

    return ''.join(line.split()).upper()


def parse_line(
    line: str,
    lineno: int = 0,
) -> SrecLine:
    r"""Parses a line.

    Args:
        line (str):
            Line text; whitespace anywhere is ignored, as well as character
            case.

        lineno (int):
            Line number, stored into the raised errors.

    Returns:
        :class:`SrecLine`: Decoded line.

    Raises:
        SrecError: invalid line.

    Examples:
        >>> parse_line('S10612346162638D')
        SrecLine(DATA_16, 0x1234, b'abc')
        >>> parse_line('S10612346162638E')
        Traceback (most recent call last):
            ...
        srecord.base.SrecError: [parse] Line checksum mismatch
    """

    text = normalize_line(line)

    if not ACCEPTED_CHARS.issuperset(text):
        raise SrecError(ErrorKind.UNACCEPTABLE_CHARACTER, lineno)

    if not text.startswith('S'):
        raise SrecError(ErrorKind.NOT_STARTING_WITH_S, lineno)

    if len(text) < 2 or not text[1].isdigit():
        raise SrecError(ErrorKind.INVALID_RECORD_TYPE, lineno)

    if 'S' in text[2:]:
        raise SrecError(ErrorKind.UNACCEPTABLE_CHARACTER, lineno)

    if len(text) & 1 or not LINE_CHARS_MIN <= len(text) <= LINE_CHARS_MAX:
        raise SrecError(ErrorKind.INVALID_LINE_LENGTH, lineno)

    tag = SrecTag(int(text[1]))
    if tag == SrecTag.RESERVED:
        raise SrecError(ErrorKind.INVALID_RECORD_TYPE, lineno)

    binary = bytes.fromhex(text[2:])

    if checksum(binary[:-1]) != binary[-1]:
        raise SrecError(ErrorKind.CHECKSUM_INCORRECT, lineno)

    count = binary[0]
    size = tag.get_address_size()
    if count < 3 or count != len(binary) - 1 or count < size + 1:
        raise SrecError(ErrorKind.LENGTH_MISMATCH, lineno)

    address = int.from_bytes(binary[1:(1 + size)], 'big')
    data = binary[(1 + size):-1]

    if tag == SrecTag.HEADER and address:
        raise SrecError(ErrorKind.HEADER_ADDRESS_NONZERO, lineno, address)

    return SrecLine(tag, address, data)


class LineReader:
    r"""Line reader with push-back.

    It reads lines from a text or binary stream, counting them.
    Binary lines are decoded as Latin-1, so that any byte value reaches the
    character checks of :func:`parse_line`.

    A line pushed back via :meth:`unread` is returned again by the next
    :meth:`readline`.
    On seekable streams the stream itself is moved back, so that any other
    reader of the same stream restarts from that line.

    Args:
        stream (stream):
            Text or binary input stream.

    Examples:
        >>> import io
        >>> reader = LineReader(io.StringIO('S9030000FC\nS9030000FC\n'))
        >>> line = reader.readline()
        >>> reader.unread(line)
        >>> reader.readline() == line
        True
    """

    def __init__(self, stream: IO):

        self.stream: IO = stream
        self.lineno: int = 0
        self._pending: List[str] = []
        self._seekable: bool = _is_seekable(stream)
        self._offsets: List[int] = []

    @classmethod
    def wrap(cls, source: Union['LineReader', IO]) -> 'LineReader':
        r"""Wraps a stream, unless already a :class:`LineReader`.

        A non-seekable stream gets the same reader on every call, so that a
        line pushed back at the end of a record is read by the next call.

        Examples:
            >>> import io
            >>> class Pipe(io.StringIO):
            ...     def seekable(self):
            ...         return False
            >>> pipe = Pipe('S9030000FC\n')
            >>> LineReader.wrap(pipe) is LineReader.wrap(pipe)
            True
        """

        if isinstance(source, cls):
            return source
        if _is_seekable(source):
            return cls(source)

        try:
            reader = _SHARED_READERS.get(source)
            if reader is None:
                reader = cls(source)
                _SHARED_READERS[source] = reader
        except TypeError:  # not weakly referenceable
            logger.debug('cannot share the reader of %r', source)
            reader = cls(source)
        return reader

    def readline(self) -> Optional[str]:
        r"""Reads the next line.

        Returns:
            str: Line text, including its terminator; ``None`` at the end of
            the stream.
        """

        if self._pending:
            line = self._pending.pop()
        else:
            if self._seekable:
                self._offsets.append(self.stream.tell())
                del self._offsets[:-1]

            line = self.stream.readline()
            if not line:
                return None
            if isinstance(line, (bytes, bytearray)):
                line = line.decode('latin-1')

        self.lineno += 1
        return line

    def unread(self, line: str) -> None:
        r"""Pushes back the last line read."""

        self.lineno -= 1
        if self._seekable and self._offsets:
            self.stream.seek(self._offsets.pop())
        else:
            self._pending.append(line)

    def at_eof(self) -> bool:
        r"""Skips blank lines and tells if the stream is exhausted."""

        while True:
            line = self.readline()
            if line is None:
                return True
            if line.strip():
                self.unread(line)
                return False


def _is_seekable(stream: IO) -> bool:

    try:
        return bool(stream.seekable())
    except (AttributeError, ValueError, io.UnsupportedOperation):
        return False
