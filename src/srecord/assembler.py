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

r"""Assembly of the lines of a record.

The lines belonging to one record are collected from a
:class:`srecord.lines.LineReader`, then folded into blocks and metadata.

A record ends at the end of the stream, or right before a line which
belongs to the next record:

* a header line following any other line;
* a line not starting with ``S``, unless the stream is a single file.
"""

import logging
from typing import List
from typing import Optional
from typing import Tuple

from .base import AddressWidth
from .base import ErrorKind
from .base import SrecError
from .blocks import Block
from .blocks import BlockSet
from .lines import LineReader
from .lines import SrecLine
from .lines import SrecTag
from .lines import normalize_line
from .lines import parse_line

logger = logging.getLogger(__name__)

NumberedLine = Tuple[int, SrecLine]


class RecordAssembler:
    r"""Record assembler.

    Args:
        strict (bool):
            Consistency rules are enforced as errors; otherwise violations
            are logged as warnings and tolerated.

    Attributes:
        lines (list):
            Collected ``(line number, line)`` pairs.

        lineno (int):
            Number of lines consumed.

        header (bytes):
            Header line payload; ``None`` if missing.

        blocks (:class:`BlockSet`):
            Assembled data.

        address_width (:class:`AddressWidth`):
            Width of the data lines.

        start_address (int):
            Termination line address.

        data_count (int):
            Number of data lines.

        declared_count (int):
            Line count declared by the count line; ``None`` if missing.
    """

    def __init__(self, strict: bool = False):

        self.strict: bool = strict
        self.lines: List[NumberedLine] = []
        self.lineno: int = 0

        self.header: Optional[bytes] = None
        self.blocks: BlockSet = BlockSet()
        self.address_width: AddressWidth = AddressWidth.UNDEFINED
        self.start_address: int = 0
        self.data_count: int = 0
        self.declared_count: Optional[int] = None

    def _tolerate(
        self,
        kind: ErrorKind,
        lineno: int = 0,
        address: int = 0,
    ) -> None:

        if self.strict:
            raise SrecError(kind, lineno, address)
        logger.warning('line %d: %s; tolerated', lineno, kind.message)

    def read(
        self,
        reader: LineReader,
        single_file_stream: bool = False,
    ) -> 'RecordAssembler':
        r"""Collects the lines of a record.

        Args:
            reader (:class:`LineReader`):
                Line source.

            single_file_stream (bool):
                The stream holds a single record: lines not starting with
                ``S`` are errors instead of record boundaries.

        Returns:
            :class:`RecordAssembler`: *self*.

        Raises:
            SrecError: invalid line.
        """

        lines = self.lines
        lineno_base = reader.lineno

        while True:
            raw = reader.readline()
            if raw is None:
                break

            self.lineno = reader.lineno - lineno_base
            text = normalize_line(raw)
            if not text:
                continue

            if not single_file_stream and text[0] != 'S':
                reader.unread(raw)
                logger.debug('line %d: not a record line, stop', self.lineno)
                self.lineno -= 1
                break

            line = parse_line(text, self.lineno)

            if line.tag == SrecTag.HEADER and lines:
                reader.unread(raw)
                logger.debug('line %d: next record header, stop', self.lineno)
                self.lineno -= 1
                break

            lines.append((self.lineno, line))

        logger.debug('collected %d lines', len(lines))
        return self

    def assemble(self) -> 'RecordAssembler':
        r"""Folds the collected lines into blocks and metadata.

        Returns:
            :class:`RecordAssembler`: *self*.

        Raises:
            SrecError: inconsistent record.
        """

        lines = list(self.lines)

        if not lines:
            raise SrecError(ErrorKind.MISSING_DATA_LINES, self.lineno)

        lineno, first = lines[0]
        if first.tag == SrecTag.HEADER:
            self.header = first.data
            del lines[0]
        else:
            self._tolerate(ErrorKind.MISSING_HEADER, lineno)

        data_tag = None
        for _, line in lines:
            if line.tag.is_data():
                data_tag = line.tag
                break
        else:
            raise SrecError(ErrorKind.MISSING_DATA_LINES, self.lineno)

        self.address_width = AddressWidth(int(data_tag))
        start_tag = data_tag.get_tag_match()
        have_start = False

        for lineno, line in lines:
            tag = line.tag

            if tag.is_data():
                if tag != data_tag:
                    self._tolerate(ErrorKind.MIXED_DATA_LINE_TYPES,
                                   lineno, line.address)
                self._fold_data(lineno, line)
                self.data_count += 1

            elif tag.is_count():
                if self.declared_count is not None:
                    self._tolerate(ErrorKind.DUPLICATE_LINE_COUNT, lineno)
                self.declared_count = line.address

            else:  # start address
                if have_start:
                    self._tolerate(ErrorKind.DUPLICATE_START_ADDRESS,
                                   lineno, line.address)
                if tag != start_tag:
                    self._tolerate(ErrorKind.START_ADDRESS_TYPE_MISMATCH,
                                   lineno, line.address)
                have_start = True
                self.start_address = line.address

        declared_count = self.declared_count
        if declared_count is not None and declared_count != self.data_count:
            self._tolerate(ErrorKind.LINE_COUNT_MISMATCH, self.lineno)

        if not have_start:
            self._tolerate(ErrorKind.MISSING_START_ADDRESS, self.lineno)

        self.blocks.coalesce()
        logger.debug('assembled %d data lines into %d blocks',
                     self.data_count, len(self.blocks))
        return self

    def _fold_data(self, lineno: int, line: SrecLine) -> None:

        blocks = self.blocks
        address = line.address
        data = line.data

        if not data:
            return

        if blocks.blocks and blocks.blocks[-1].endex == address:
            blocks.append_data(address, data)

        elif not self.strict and blocks.overlaps(address, address + len(data)):
            logger.warning('line %d: data at 0x%08X overlaps previous data; '
                           'overwritten', lineno, address)
            blocks.set_range(Block(address, data))

        else:
            blocks.insert(Block(address, data))
