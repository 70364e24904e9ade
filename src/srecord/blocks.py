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

r"""Sparse blocks of data.

A *block* is a contiguous run of bytes at a known start address.
Blocks describe sparse memory images, where a very broad addressing space
(*e.g.* 4 GiB) is used only in some sparse parts (*e.g.* the flash and
RAM sections of a microcontroller firmware).

Ranges always follow the *half-open* convention ``[start, endex)``, where
`endex` is the *exclusive* end, one past the last addressed byte.

*Contiguous* blocks are blocks in which a block ``b`` starts immediately
after block ``a``:

+---+---+---+---+---+---+---+---+---+
| 0 | 1 | 2 | 3 | 4 | 5 | 6 | 7 | 8 |
+===+===+===+===+===+===+===+===+===+
|   |[A | B | C]|   |   |   |   |   |
+---+---+---+---+---+---+---+---+---+
|   |   |   |   |[x | y | z]|   |   |
+---+---+---+---+---+---+---+---+---+

>>> a = Block(1, b'ABC')
>>> b = Block(4, b'xyz')
>>> a.endex == b.start
True

Instead, *overlapping* blocks have at least an addressed cell occupied by
more items:

+---+---+---+---+---+---+---+---+---+
| 0 | 1 | 2 | 3 | 4 | 5 | 6 | 7 | 8 |
+===+===+===+===+===+===+===+===+===+
|   |[A | B | C]|   |   |   |   |   |
+---+---+---+---+---+---+---+---+---+
|   |   |   |[x | y | z]|   |   |   |
+---+---+---+---+---+---+---+---+---+

>>> a = Block(1, b'ABC')
>>> b = Block(3, b'xyz')
>>> a.in_range(b.start, b.endex)
True

A :class:`BlockSet` keeps its blocks sorted by start address, without
overlaps, without empty blocks, and with contiguous blocks coalesced into
a single one.
"""

import bisect
import logging
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Optional
from typing import Sequence
from typing import Union

from .base import AnyBytes

logger = logging.getLogger(__name__)

DUMP_ALIGN: int = 16
r"""Default number of bytes per dump row."""


class Block:
    r"""Contiguous address-tagged byte range.

    Args:
        start (int):
            Start address.

        data (bytes):
            Byte values, copied into a private :obj:`bytearray`.

    Examples:
        >>> block = Block(0x20, b'abc')
        >>> block.endex
        35
        >>> len(block)
        3
    """

    __slots__ = ('start', 'data')

    def __init__(
        self,
        start: int = 0,
        data: AnyBytes = b'',
    ):

        start = int(start)
        if start < 0:
            raise ValueError('negative address')

        self.start: int = start
        self.data: bytearray = bytearray(data)

    def __eq__(self, other) -> bool:

        if isinstance(other, Block):
            return self.start == other.start and self.data == other.data
        return NotImplemented

    def __len__(self) -> int:

        return len(self.data)

    def __repr__(self) -> str:

        return (f'{type(self).__name__}(0x{self.start:X}, '
                f'{bytes(self.data)!r})')

    @property
    def endex(self) -> int:
        r"""int: Exclusive end address."""

        return self.start + len(self.data)

    def copy(self) -> 'Block':
        r"""Returns an independent copy."""

        return type(self)(self.start, self.data)

    def dump(self, align: int = DUMP_ALIGN) -> str:
        r"""Human readable dump.

        Bytes are printed in pairs, `align` bytes per row, each row prefixed
        by its aligned address.

        Args:
            align (int):
                Bytes per row; forced even, at least 4.

        Returns:
            str: Dump text, rows separated by newlines.

        Examples:
            >>> print(Block(0x12, b'\x01\x02\x03\x04').dump())
            <00000010>      0102 0304

            >>> Block(0x12).dump()
            '(empty block)'
        """

        if not self.data:
            return '(empty block)'

        align &= ~1
        if align < 4:
            align = 4

        data = self.data
        start = self.start
        endex = self.endex
        rows = []
        address = start - (start % align)

        while address < endex:
            cells = []
            for offset in range(0, align, 2):
                pair = ''
                for cell in (address + offset, address + offset + 1):
                    if start <= cell < endex:
                        pair += '%02X' % data[cell - start]
                    else:
                        pair += '  '
                cells.append(pair)
            rows.append(f'<{address:08X}> {" ".join(cells)}'.rstrip())
            address += align

        return '\n'.join(rows)

    def get_range(
        self,
        start: int,
        endex: int,
    ) -> 'Block':
        r"""Gets a range as a new block.

        The requested range is trimmed to the bounds of this block.

        Args:
            start (int):
                Inclusive start address.

            endex (int):
                Exclusive end address.

        Returns:
            :class:`Block`: Independent copy of the intersection; empty if
            the ranges do not intersect.

        Examples:
            +---+---+---+---+---+---+---+---+
            | 0 | 1 | 2 | 3 | 4 | 5 | 6 | 7 |
            +===+===+===+===+===+===+===+===+
            |   |[A | B | C | D]|   |   |   |
            +---+---+---+---+---+---+---+---+
            |   |   |   |[C | D]|   |   |   |
            +---+---+---+---+---+---+---+---+

            >>> Block(1, b'ABCD').get_range(3, 7)
            Block(0x3, b'CD')
            >>> len(Block(1, b'ABCD').get_range(5, 7))
            0
        """

        if start >= endex:
            return type(self)(max(start, 0))

        if start < self.start:
            start = self.start
        if endex > self.endex:
            endex = self.endex
        if start >= endex:
            return type(self)(start)

        offset = self.start
        return type(self)(start, self.data[(start - offset):(endex - offset)])

    def in_range(
        self,
        start: int,
        endex: int,
    ) -> bool:
        r"""Tells whether any byte falls within a range.

        Args:
            start (int):
                Inclusive start address.

            endex (int):
                Exclusive end address.

        Returns:
            bool: At least a byte of this block lies in ``[start, endex)``.

        Examples:
            >>> block = Block(0x20, bytes(16))
            >>> block.in_range(0x00, 0x20)
            False
            >>> block.in_range(0x00, 0x21)
            True
            >>> block.in_range(0x2F, 0x30)
            True
            >>> block.in_range(0x30, 0x40)
            False
        """

        return max(start, self.start) < min(endex, self.endex)


BlockList = List[Block]


def check_sequence(
    blocks: Iterable[Block],
) -> bool:
    r"""Checks if a sequence of blocks is valid.

    Checks that the sequence is ordered and non-overlapping.

    Arguments:
        blocks (list of blocks):
            A sequence of blocks.

    Returns:
        bool: Valid sequence.

    Examples:
        +---+---+---+---+---+---+---+---+---+---+
        | 0 | 1 | 2 | 3 | 4 | 5 | 6 | 7 | 8 | 9 |
        +===+===+===+===+===+===+===+===+===+===+
        |   |[A | B | C]|   |   |   |   |   |   |
        +---+---+---+---+---+---+---+---+---+---+
        |   |   |[x | y | z]|   |   |   |   |   |
        +---+---+---+---+---+---+---+---+---+---+

        >>> check_sequence([Block(1, b'ABC'), Block(6, b'xyz')])
        True
        >>> check_sequence([Block(1, b'ABC'), Block(2, b'xyz')])
        False
        >>> check_sequence([Block(6, b'ABC'), Block(1, b'xyz')])
        False
    """
    last_endex = None
    for block in blocks:
        if last_endex is not None and block.start < last_endex:
            return False
        last_endex = block.endex
    else:
        return True


def sorting(
    block: Block,
) -> int:
    r"""Block sorting key.

    Python provides stable sorting functions, so it is sufficient to pass only
    the start address to them: blocks with the same start address keep their
    relative order.
    """
    return block.start


def locate_start(
    blocks: Sequence[Block],
    address: int,
) -> int:
    r"""Locates the first block inside of an address range.

    Returns the index of the first block whose end address is greater than
    `address`.

    Arguments:
        blocks (list of blocks):
            Sequence of non-overlapping blocks, sorted by address.

        address (int):
            Inclusive start address of the scanned range.

    Returns:
        int: First block index since `address`.

    Example:
        +---+---+---+---+---+---+---+---+---+---+---+---+
        | 0 | 1 | 2 | 3 | 4 | 5 | 6 | 7 | 8 | 9 | 10| 11|
        +===+===+===+===+===+===+===+===+===+===+===+===+
        |   |[A | B | C | D]|   |[$]|   |[x | y | z]|   |
        +---+---+---+---+---+---+---+---+---+---+---+---+
        | 0 | 0 | 0 | 0 | 0 | 1 | 1 | 2 | 2 | 2 | 2 | 3 |
        +---+---+---+---+---+---+---+---+---+---+---+---+

        >>> blocks = [Block(1, b'ABCD'), Block(6, b'$'), Block(8, b'xyz')]
        >>> [locate_start(blocks, i) for i in range(12)]
        [0, 0, 0, 0, 0, 1, 1, 2, 2, 2, 2, 3]
    """
    length = len(blocks)
    if length:
        if address < blocks[0].start:
            return 0

        if blocks[length - 1].endex <= address:
            return length
    else:
        return 0

    left = 0
    right = length - 1

    while left <= right:
        center = (left + right) >> 1
        block = blocks[center]

        if block.endex <= address:
            left = center + 1
        elif address < block.start:
            right = center - 1
        else:
            return center
    else:
        return left


def locate_endex(
    blocks: Sequence[Block],
    address: int,
) -> int:
    r"""Locates the first block after an address range.

    Returns the index of the first block whose start address is greater than
    or equal to `address`.

    Arguments:
        blocks (list of blocks):
            Sequence of non-overlapping blocks, sorted by address.

        address (int):
            Exclusive end address of the scanned range.

    Returns:
        int: First block index after `address`.

    Example:
        +---+---+---+---+---+---+---+---+---+---+---+---+
        | 0 | 1 | 2 | 3 | 4 | 5 | 6 | 7 | 8 | 9 | 10| 11|
        +===+===+===+===+===+===+===+===+===+===+===+===+
        |   |[A | B | C | D]|   |[$]|   |[x | y | z]|   |
        +---+---+---+---+---+---+---+---+---+---+---+---+
        | 0 | 0 | 1 | 1 | 1 | 1 | 1 | 2 | 2 | 3 | 3 | 3 |
        +---+---+---+---+---+---+---+---+---+---+---+---+

        >>> blocks = [Block(1, b'ABCD'), Block(6, b'$'), Block(8, b'xyz')]
        >>> [locate_endex(blocks, i) for i in range(12)]
        [0, 0, 1, 1, 1, 1, 1, 2, 2, 3, 3, 3]
    """
    length = len(blocks)
    if length:
        if address <= blocks[0].start:
            return 0

        if blocks[length - 1].endex <= address:
            return length
    else:
        return 0

    left = 0
    right = length - 1

    while left <= right:
        center = (left + right) >> 1
        block = blocks[center]

        if block.endex < address:
            left = center + 1
        elif address <= block.start:
            right = center - 1
        else:
            return center + 1
    else:
        return left


def connect(
    blocks: Iterable[Block],
    start: int,
    endex: int,
    fill: int,
) -> Block:
    r"""Connects blocks into a single block.

    The returned block spans exactly ``[start, endex)``.
    Blocks are written in ascending address order, so that where two blocks
    overlap the bytes of the one starting later are kept.
    Addresses covered by no block are filled with `fill`.

    Arguments:
        blocks (list of blocks):
            Blocks within ``[start, endex)``, in any order.

        start (int):
            Inclusive start address.

        endex (int):
            Exclusive end address.

        fill (int):
            Filler byte value.

    Returns:
        :class:`Block`: Connected block.

    Example:
        +---+---+---+---+---+---+---+---+---+---+
        | 0 | 1 | 2 | 3 | 4 | 5 | 6 | 7 | 8 | 9 |
        +===+===+===+===+===+===+===+===+===+===+
        |   |   |   |   |   |[x | y | z]|   |   |
        +---+---+---+---+---+---+---+---+---+---+
        |   |[A | B | C]|   |   |   |   |   |   |
        +---+---+---+---+---+---+---+---+---+---+
        |[# | A | B | C | # | x | y | z | #]|   |
        +---+---+---+---+---+---+---+---+---+---+

        >>> blocks = [Block(5, b'xyz'), Block(1, b'ABC')]
        >>> connect(blocks, 0, 9, ord('#'))
        Block(0x0, b'#ABC#xyz#')
    """
    if start >= endex:
        return Block(start)

    buffer = bytearray((fill & 0xFF,)) * (endex - start)

    for block in sorted(blocks, key=sorting):
        offset = block.start - start
        buffer[offset:(offset + len(block.data))] = block.data

    return Block(start, buffer)


class BlockSet:
    r"""Ordered collection of non-overlapping blocks.

    Every mutating method keeps the blocks sorted by start address, without
    overlaps and without empty blocks, coalescing contiguous blocks.

    The underlying list is available as :attr:`blocks` for direct
    manipulation; such manipulations bypass the invariants, which can be
    checked via :meth:`check`.

    Args:
        blocks (list of blocks):
            Initial blocks, taken as they are.

    Examples:
        >>> blockset = BlockSet()
        >>> blockset.set_range(Block(0x20, b'abc'))
        BlockSet([Block(0x20, b'abc')])
        >>> blockset.set_range(Block(0x23, b'def'))
        BlockSet([Block(0x20, b'abcdef')])
        >>> blockset.remove_range(0x21, 0x23)
        BlockSet([Block(0x20, b'a'), Block(0x23, b'def')])
    """

    def __init__(
        self,
        blocks: Optional[Iterable[Block]] = None,
    ):

        self.blocks: BlockList = list(blocks) if blocks is not None else []

    def __eq__(self, other) -> bool:

        if isinstance(other, BlockSet):
            return self.blocks == other.blocks
        return NotImplemented

    def __getitem__(self, index: int) -> Block:

        return self.blocks[index]

    def __iter__(self) -> Iterator[Block]:

        return iter(self.blocks)

    def __len__(self) -> int:

        return len(self.blocks)

    def __repr__(self) -> str:

        return f'{type(self).__name__}({self.blocks!r})'

    @property
    def start(self) -> int:
        r"""int: Start address of the first block; zero if empty."""

        return self.blocks[0].start if self.blocks else 0

    @property
    def endex(self) -> int:
        r"""int: Exclusive end address of the last block; zero if empty."""

        return self.blocks[-1].endex if self.blocks else 0

    def check(self) -> bool:
        r"""Checks that the blocks are sorted and non-overlapping."""

        return check_sequence(self.blocks)

    def clear(self) -> 'BlockSet':
        r"""Removes all the blocks."""

        self.blocks.clear()
        return self

    def copy(self) -> 'BlockSet':
        r"""Returns a deep copy."""

        return type(self)(block.copy() for block in self.blocks)

    def append_data(
        self,
        address: int,
        data: AnyBytes,
    ) -> 'BlockSet':
        r"""Appends data, without any overlap resolution.

        If `address` is the end address of the last block, `data` is
        appended to that block.
        Otherwise a new block is inserted, after any block starting at the
        same or a lower address.

        Arguments:
            address (int):
                Start address of `data`.

            data (bytes):
                Byte values.

        Returns:
            :class:`BlockSet`: *self*.
        """

        blocks = self.blocks
        if blocks and blocks[-1].endex == address:
            blocks[-1].data.extend(data)
        else:
            self.insert(Block(address, data))
        return self

    def insert(
        self,
        block: Block,
    ) -> 'BlockSet':
        r"""Inserts a block at its sorted position, as it is."""

        blocks = self.blocks
        if not blocks or blocks[-1].start <= block.start:
            blocks.append(block)
        else:
            starts = [b.start for b in blocks]
            index = bisect.bisect_right(starts, block.start)
            blocks.insert(index, block)
        return self

    def overlaps(
        self,
        start: int,
        endex: int,
    ) -> bool:
        r"""Tells whether any block has data within a range.

        Blocks are expected sorted and non-overlapping.
        """

        if start >= endex:
            return False
        blocks = self.blocks
        return locate_start(blocks, start) < locate_endex(blocks, endex)

    def reorder(self) -> 'BlockSet':
        r"""Sorts the blocks by start address (stable)."""

        self.blocks.sort(key=sorting)
        return self

    def remove_empty(self) -> 'BlockSet':
        r"""Drops blocks without data."""

        self.blocks[:] = [block for block in self.blocks if block.data]
        return self

    def coalesce(self) -> 'BlockSet':
        r"""Merges contiguous blocks.

        Blocks are expected sorted by address.
        Empty blocks are dropped.

        Returns:
            :class:`BlockSet`: *self*.

        Example:
            +---+---+---+---+---+---+---+---+---+---+---+---+---+
            | 0 | 1 | 2 | 3 | 4 | 5 | 6 | 7 | 8 | 9 | 10| 11| 12|
            +===+===+===+===+===+===+===+===+===+===+===+===+===+
            |[H | e | l | l | o | ,]|   |   |   |   |   |   |   |
            +---+---+---+---+---+---+---+---+---+---+---+---+---+
            |   |   |   |   |   |   |[ ]|   |   |   |   |   |   |
            +---+---+---+---+---+---+---+---+---+---+---+---+---+
            |   |   |   |   |   |   |   |[W | o | r | l | d]|   |
            +---+---+---+---+---+---+---+---+---+---+---+---+---+
            |   |   |   |   |   |   |   |   |   |   |   |   |[!]|
            +---+---+---+---+---+---+---+---+---+---+---+---+---+
            |[H | e | l | l | o | , |   | W | o | r | l | d | !]|
            +---+---+---+---+---+---+---+---+---+---+---+---+---+

            >>> blockset = BlockSet([Block(0, b'Hello,'), Block(6, b' '),
            ...                      Block(7, b'World'), Block(12, b'!')])
            >>> blockset.coalesce()
            BlockSet([Block(0x0, b'Hello, World!')])
        """

        result = []
        last = None

        for block in self.blocks:
            if block.data:
                if last is not None and last.endex == block.start:
                    last.data.extend(block.data)
                else:
                    last = block
                    result.append(block)

        self.blocks[:] = result
        return self

    def get_ranges(
        self,
        start: int,
        endex: int,
    ) -> BlockList:
        r"""Gets the data within a range.

        Arguments:
            start (int):
                Inclusive start address.

            endex (int):
                Exclusive end address.

        Returns:
            list of blocks: Independent copies of the non-empty intersections
            of each block with ``[start, endex)``, sorted by address.

        Example:
            +---+---+---+---+---+---+---+---+---+---+---+
            | 0 | 1 | 2 | 3 | 4 | 5 | 6 | 7 | 8 | 9 | 10|
            +===+===+===+===+===+===+===+===+===+===+===+
            |   |[A | B | C | D]|   |[$]|   |[x | y | z]|
            +---+---+---+---+---+---+---+---+---+---+---+
            |   |   |   |[C | D]|   |[$]|   |[x]|   |   |
            +---+---+---+---+---+---+---+---+---+---+---+

            >>> blockset = BlockSet([Block(1, b'ABCD'), Block(6, b'$'),
            ...                      Block(8, b'xyz')])
            >>> blockset.get_ranges(3, 9)
            [Block(0x3, b'CD'), Block(0x6, b'$'), Block(0x8, b'x')]
        """

        if start >= endex:
            return []

        ranges = []
        for block in self.blocks:
            piece = block.get_range(start, endex)
            if piece.data:
                ranges.append(piece)

        ranges.sort(key=sorting)
        return ranges

    def get_range(
        self,
        start: int,
        endex: int,
        fill: int = 0,
    ) -> Block:
        r"""Gets a contiguous range.

        Arguments:
            start (int):
                Inclusive start address.

            endex (int):
                Exclusive end address.

            fill (int):
                Byte value of the addresses without data.

        Returns:
            :class:`Block`: Block spanning exactly ``[start, endex)``.

        Example:
            >>> blockset = BlockSet([Block(1, b'ABCD'), Block(6, b'$')])
            >>> blockset.get_range(0, 8, ord('.'))
            Block(0x0, b'.ABCD.$.')
        """

        return connect(self.get_ranges(start, endex), start, endex, fill)

    def set_range(
        self,
        block: Block,
    ) -> 'BlockSet':
        r"""Writes a block, overwriting existing data.

        Arguments:
            block (:class:`Block`):
                Block to write; its data is copied.

        Returns:
            :class:`BlockSet`: *self*.

        Example:
            +---+---+---+---+---+---+---+---+---+---+---+
            | 0 | 1 | 2 | 3 | 4 | 5 | 6 | 7 | 8 | 9 | 10|
            +===+===+===+===+===+===+===+===+===+===+===+
            |   |[A | B | C | D]|   |[$]|   |[x | y | z]|
            +---+---+---+---+---+---+---+---+---+---+---+
            |   |   |   |[1 | 2 | 3 | 4 | 5 | 6]|   |   |
            +---+---+---+---+---+---+---+---+---+---+---+
            |   |[A | B | 1 | 2 | 3 | 4 | 5 | 6 | y | z]|
            +---+---+---+---+---+---+---+---+---+---+---+

            >>> blockset = BlockSet([Block(1, b'ABCD'), Block(6, b'$'),
            ...                      Block(8, b'xyz')])
            >>> blockset.set_range(Block(3, b'123456'))
            BlockSet([Block(0x1, b'AB123456yz')])
        """

        if not block.data:
            return self

        block = block.copy()
        start = block.start
        endex = block.endex
        blocks = self.blocks
        self.reorder()

        index_start = locate_start(blocks, start)
        index_endex = locate_endex(blocks, endex)

        if index_start >= index_endex:
            blocks.insert(index_start, block)
        else:
            first = blocks[index_start]
            last = blocks[index_endex - 1]
            before = first.get_range(first.start, start)
            after = last.get_range(endex, last.endex)
            pieces = [piece for piece in (before, block, after) if piece.data]
            blocks[index_start:index_endex] = pieces

        self.coalesce()
        return self

    def remove_range(
        self,
        start: int,
        endex: int,
    ) -> 'BlockSet':
        r"""Removes the data within a range.

        Arguments:
            start (int):
                Inclusive start address.

            endex (int):
                Exclusive end address.

        Returns:
            :class:`BlockSet`: *self*.

        Example:
            +---+---+---+---+---+---+---+---+---+---+---+
            | 0 | 1 | 2 | 3 | 4 | 5 | 6 | 7 | 8 | 9 | 10|
            +===+===+===+===+===+===+===+===+===+===+===+
            |   |[A | B | C | D]|   |[$]|   |[x | y | z]|
            +---+---+---+---+---+---+---+---+---+---+---+
            |   |[A | B | C]|   |   |   |   |   |[y | z]|
            +---+---+---+---+---+---+---+---+---+---+---+
            |   |[A]|   |[C]|   |   |   |   |   |[y | z]|
            +---+---+---+---+---+---+---+---+---+---+---+

            >>> blockset = BlockSet([Block(1, b'ABCD'), Block(6, b'$'),
            ...                      Block(8, b'xyz')])
            >>> blockset.remove_range(4, 9)
            BlockSet([Block(0x1, b'ABC'), Block(0x9, b'yz')])
            >>> blockset.remove_range(2, 3)
            BlockSet([Block(0x1, b'A'), Block(0x3, b'C'), Block(0x9, b'yz')])
        """

        if start >= endex or not self.blocks:
            return self

        blocks = self.blocks
        self.reorder()

        index_start = locate_start(blocks, start)
        index_endex = locate_endex(blocks, endex)
        if index_start >= index_endex:
            return self

        inside = []
        append = inside.append

        for index in range(index_start, index_endex):
            block = blocks[index]
            block_start = block.start
            block_endex = block.endex

            if start <= block_start and block_endex <= endex:
                pass  # fully removed

            elif block_start < start and endex < block_endex:
                append(block.get_range(block_start, start))
                append(block.get_range(endex, block_endex))

            elif block_start < start:
                append(block.get_range(block_start, start))

            else:
                append(block.get_range(endex, block_endex))

        blocks[index_start:index_endex] = inside
        self.remove_empty()
        return self

    def merge(
        self,
        fill: int = 0,
    ) -> Block:
        r"""Merges all the blocks into one.

        Gaps are filled with `fill`.
        Blocks are processed in ascending address order, regardless of their
        order within :attr:`blocks`; where blocks overlap, the one starting
        later wins.

        Arguments:
            fill (int):
                Filler byte value.

        Returns:
            :class:`Block`: The merged block, which becomes the only one.
            An empty block if there is no data at all.

        Example:
            >>> blockset = BlockSet([Block(5, b'xyz'), Block(1, b'ABC')])
            >>> blockset.merge(ord('.'))
            Block(0x1, b'ABC.xyz')
            >>> blockset
            BlockSet([Block(0x1, b'ABC.xyz')])
        """

        blocks = [block for block in self.blocks if block.data]
        if not blocks:
            self.blocks.clear()
            return Block()

        start = min(block.start for block in blocks)
        endex = max(block.endex for block in blocks)
        merged = connect(blocks, start, endex, fill)
        self.blocks[:] = [merged]
        return merged

    def find(
        self,
        sequence: Union[AnyBytes, Sequence[int]],
        start: int = 0,
    ) -> int:
        r"""Finds the address of a byte sequence.

        Matches never span across different blocks.

        Arguments:
            sequence (bytes):
                Byte values to look for.

            start (int):
                Inclusive start address of the search.

        Returns:
            int: Address of the first match at or after `start`;
            :attr:`endex` if not found or `sequence` is empty.

        Example:
            +---+---+---+---+---+---+---+---+---+---+
            | 0 | 1 | 2 | 3 | 4 | 5 | 6 | 7 | 8 | 9 |
            +===+===+===+===+===+===+===+===+===+===+
            |   |[A | B | C | D]|   |   |[x | y | z]|
            +---+---+---+---+---+---+---+---+---+---+

            >>> blockset = BlockSet([Block(1, b'ABCD'), Block(7, b'xyz')])
            >>> blockset.find(b'yz')
            8
            >>> blockset.find(b'Dx')
            10
        """

        sequence = bytes(sequence)
        if sequence:
            for block in self.blocks:
                if block.endex <= start:
                    continue
                offset = block.data.find(sequence, max(start - block.start, 0))
                if offset >= 0:
                    return block.start + offset

        return self.endex
