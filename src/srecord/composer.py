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

r"""Composition of record lines."""

import io
import logging
from typing import IO
from typing import Iterable
from typing import List
from typing import Optional

from .base import AnyBytes
from .base import AddressWidth
from .base import ErrorKind
from .base import SrecError
from .blocks import BlockSet
from .lines import SrecLine
from .lines import SrecTag
from .utils import chop

logger = logging.getLogger(__name__)

LINE_LENGTH_MAX: int = 92
r"""Greatest composed line length, in characters."""

LINE_DATA_DEFAULT: int = 64
r"""Default hexadecimal characters of data per composed line."""

LINE_DATA_MIN: int = 8
r"""Least hexadecimal characters of data per composed line."""

HEADER_SIZE_MIN: int = 10
r"""Least size of the header payload, in bytes."""

HEADER_SIZE_MAX: int = 0xFC
r"""Greatest size of the header payload, as per the *count* field."""


def normalize_header(header: Optional[AnyBytes]) -> bytes:
    r"""Pads a header with zeros and truncates it to the payload bounds.

    Examples:
        >>> normalize_header(b'abc')
        b'abc\x00\x00\x00\x00\x00\x00\x00'
        >>> len(normalize_header(bytes(300)))
        252
    """

    header = bytes(header or b'')[:HEADER_SIZE_MAX]
    return header.ljust(HEADER_SIZE_MIN, b'\0')


class Composer:
    r"""Composes the lines of a record.

    The header line comes first, followed by the data lines, the line count
    line and the termination line.

    Args:
        line_length (int):
            Approximate length of the data lines, in characters.
            Zero selects :data:`LINE_DATA_DEFAULT` characters of data;
            other values are bound by the line frame plus
            :data:`LINE_DATA_MIN` characters, and :data:`LINE_LENGTH_MAX`.

    Examples:
        >>> from srecord.blocks import Block
        >>> blocks = BlockSet([Block(0x1234, b'abc')])
        >>> lines = Composer().compose(blocks, AddressWidth.WIDTH_16, b'')
        >>> for line in lines:
        ...     print(line.to_bytestr().decode(), end='')
        S00D000000000000000000000000F2
        S10612346162638D
        S5030001FB
        S9030000FC
    """

    def __init__(self, line_length: int = 0):

        self.line_length: int = line_length

    def data_size(self, address_width: AddressWidth) -> int:
        r"""Data bytes per line for an address width.

        Examples:
            >>> Composer().data_size(AddressWidth.WIDTH_16)
            32
            >>> Composer(20).data_size(AddressWidth.WIDTH_32)
            4
            >>> Composer(200).data_size(AddressWidth.WIDTH_16)
            41
        """

        frame = 2 + 2 + 2 * address_width.address_size + 2
        line_length = self.line_length

        if not line_length:
            line_length = frame + LINE_DATA_DEFAULT
        elif line_length > LINE_LENGTH_MAX:
            line_length = LINE_LENGTH_MAX
        elif line_length < frame + LINE_DATA_MIN:
            line_length = frame + LINE_DATA_MIN

        return (line_length - frame) // 2

    def compose(
        self,
        blocks: BlockSet,
        address_width: AddressWidth,
        header: Optional[AnyBytes] = None,
        start_address: int = 0,
    ) -> List[SrecLine]:
        r"""Builds the lines of a record.

        Args:
            blocks (:class:`BlockSet`):
                Validated data blocks.

            address_width (:class:`AddressWidth`):
                Defined address width.

            header (bytes):
                Header payload.

            start_address (int):
                Termination address; truncated to the address width.

        Returns:
            list of :class:`SrecLine`: Record lines.

        Raises:
            SrecError: too many data lines for the count line.
        """

        data_tag = SrecTag.from_width(address_width)
        data_size = self.data_size(address_width)
        lines = [SrecLine(SrecTag.HEADER, 0, normalize_header(header))]

        for block in blocks:
            address = block.start
            for chunk in chop(block.data, data_size):
                lines.append(SrecLine(data_tag, address, chunk))
                address += len(chunk)

        data_count = len(lines) - 1
        try:
            count_tag = SrecTag.fit_count_tag(data_count)
        except ValueError:
            raise SrecError(ErrorKind.TOO_MANY_DATA_LINES) from None
        lines.append(SrecLine(count_tag, data_count))

        start_tag = data_tag.get_tag_match()
        address_mask = (1 << address_width.bits) - 1
        if start_address & address_mask != start_address:
            logger.warning('start address 0x%X truncated to %d bits',
                           start_address, address_width.bits)
            start_address &= address_mask
        lines.append(SrecLine(start_tag, start_address))

        logger.debug('composed %d data lines of up to %d bytes',
                     data_count, data_size)
        return lines

    @staticmethod
    def write(
        lines: Iterable[SrecLine],
        stream: IO,
        end: AnyBytes = b'\n',
    ) -> None:
        r"""Writes lines onto a stream.

        Args:
            lines (list of :class:`SrecLine`):
                Lines to write.

            stream (stream):
                Output stream; text streams receive :obj:`str`, any other
                stream receives :obj:`bytes`.

            end (bytes):
                Line terminator.
        """

        text = isinstance(stream, io.TextIOBase)

        for line in lines:
            bytestr = line.to_bytestr(end=end)
            if text:
                stream.write(bytestr.decode('ascii'))
            else:
                stream.write(bytestr)
