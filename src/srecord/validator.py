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

r"""Consistency checks of assembled data."""

import logging

from .base import AddressWidth
from .base import ErrorKind
from .base import SrecError
from .blocks import BlockSet

logger = logging.getLogger(__name__)

ADDRESS_ENDEX_MAX: int = 0x100000000
r"""Greatest exclusive end address of an S-record."""


class Validator:
    r"""Checks blocks before composition.

    Args:
        strict (bool):
            An address width too small for the data is an error; otherwise
            it is upgraded to the narrowest suitable one.

    Examples:
        >>> from srecord.blocks import Block
        >>> blocks = BlockSet([Block(0x10000, b'abc')])
        >>> Validator().validate(blocks, AddressWidth.UNDEFINED)
        <AddressWidth.WIDTH_24: 2>
    """

    def __init__(self, strict: bool = True):

        self.strict: bool = strict

    def validate(
        self,
        blocks: BlockSet,
        address_width: AddressWidth,
    ) -> AddressWidth:
        r"""Validates blocks against an address width.

        Args:
            blocks (:class:`BlockSet`):
                Blocks to check.

            address_width (:class:`AddressWidth`):
                Declared address width; :attr:`AddressWidth.UNDEFINED` to
                adopt the narrowest suitable one.

        Returns:
            :class:`AddressWidth`: Address width to use for the blocks.

        Raises:
            SrecError: invalid blocks or address width.
        """

        address_width = AddressWidth.coerce(address_width)
        endex = 0

        for block in blocks:
            if block.endex > ADDRESS_ENDEX_MAX:
                raise SrecError(ErrorKind.RANGE_EXCEEDED, address=block.start)
            if endex < block.endex:
                endex = block.endex

        required = AddressWidth.fit(endex)

        if address_width == AddressWidth.UNDEFINED:
            address_width = required

        elif address_width < required:
            if self.strict:
                raise SrecError(ErrorKind.RECORD_TYPE_TOO_SMALL)

            logger.warning('address width upgraded from %d to %d bits',
                           address_width.bits, required.bits)
            address_width = required

        if not len(blocks):
            raise SrecError(ErrorKind.NO_BINARY_DATA)

        previous = None
        for block in blocks:
            if previous is not None:
                if block.start < previous.start:
                    raise SrecError(ErrorKind.BLOCKS_UNORDERED,
                                    address=block.start)
                if previous.endex > block.start:
                    raise SrecError(ErrorKind.OVERLAPPING_BLOCKS,
                                    address=block.start)
            previous = block

        return address_width
