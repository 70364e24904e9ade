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

r"""Base types: error taxonomy, error state and address widths."""

import enum
import os
from typing import Any
from typing import Mapping
from typing import Optional
from typing import Union

try:
    from typing import TypeAlias
except ImportError:  # pragma: no cover
    TypeAlias = Any  # Python < 3.10

AnyBytes: TypeAlias = Union[bytes, bytearray, memoryview]
AnyPath: TypeAlias = Union[str, bytes, os.PathLike]


class AddressWidth(enum.IntEnum):
    r"""Address width of the data lines of a record.

    The numeric value matches the tag of the data lines it selects, so that
    ``S<value>`` is the data line type and ``S<10 - value>`` is the matching
    termination line type.
    """

    UNDEFINED = 0
    r"""Not set; adopted from the data on validation."""

    WIDTH_16 = 1
    r"""16-bit addresses: ``S1`` data, ``S9`` termination."""

    WIDTH_24 = 2
    r"""24-bit addresses: ``S2`` data, ``S8`` termination."""

    WIDTH_32 = 3
    r"""32-bit addresses: ``S3`` data, ``S7`` termination."""

    @classmethod
    def fit(cls, endex: int) -> 'AddressWidth':
        r"""Fits the narrowest address width.

        Args:
            endex (int):
                Exclusive end address of the data to address.

        Returns:
            :class:`AddressWidth`: Narrowest suitable width.

        Raises:
            ValueError: `endex` beyond the 32-bit address space.

        Examples:
            >>> AddressWidth.fit(0x10000)
            <AddressWidth.WIDTH_16: 1>
            >>> AddressWidth.fit(0x10001)
            <AddressWidth.WIDTH_24: 2>
            >>> AddressWidth.fit(0x100000000)
            <AddressWidth.WIDTH_32: 3>
        """

        if endex > 0x100000000:
            raise ValueError('address overflow')
        if endex > 0x1000000:
            return cls.WIDTH_32
        if endex > 0x10000:
            return cls.WIDTH_24
        return cls.WIDTH_16

    @classmethod
    def coerce(cls, value: Any) -> 'AddressWidth':
        r"""Converts a value, mapping invalid ones to :attr:`UNDEFINED`."""

        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.UNDEFINED

    @property
    def address_size(self) -> int:
        r"""int: Size of the address field of the data lines, in bytes."""

        return int(self) + 1 if self else 0

    @property
    def bits(self) -> int:
        r"""int: Number of address bits; zero if undefined."""

        return self.address_size * 8


class ErrorKind(enum.IntEnum):
    r"""Error taxonomy.

    Groups are ordered as *parse*, *compose*, *validate* and *load*.
    :attr:`OK` means no error.
    """

    OK = 0
    UNACCEPTABLE_CHARACTER = 1
    NOT_STARTING_WITH_S = 2
    INVALID_LINE_LENGTH = 3
    INVALID_RECORD_TYPE = 4
    CHECKSUM_INCORRECT = 5
    LENGTH_MISMATCH = 6
    MISSING_HEADER = 7
    HEADER_ADDRESS_NONZERO = 8
    DUPLICATE_LINE_COUNT = 9
    LINE_COUNT_MISMATCH = 10
    DUPLICATE_START_ADDRESS = 11
    START_ADDRESS_TYPE_MISMATCH = 12
    MISSING_DATA_LINES = 13
    MIXED_DATA_LINE_TYPES = 14
    TOO_MANY_DATA_LINES = 15
    RECORD_TYPE_TOO_SMALL = 16
    RANGE_EXCEEDED = 17
    NO_BINARY_DATA = 18
    BLOCKS_UNORDERED = 19
    OVERLAPPING_BLOCKS = 20
    LOAD_OPEN_FAILED = 21
    MISSING_START_ADDRESS = 22

    @property
    def message(self) -> str:
        r"""str: Human readable message."""

        return ERROR_MESSAGES[self]


ERROR_MESSAGES: Mapping[ErrorKind, str] = {
    ErrorKind.OK:
        'Ok',
    ErrorKind.UNACCEPTABLE_CHARACTER:
        '[parse] Unacceptable character',
    ErrorKind.NOT_STARTING_WITH_S:
        '[parse] Line not starting with S',
    ErrorKind.INVALID_LINE_LENGTH:
        '[parse] Invalid line length',
    ErrorKind.INVALID_RECORD_TYPE:
        '[parse] Invalid record type',
    ErrorKind.CHECKSUM_INCORRECT:
        '[parse] Line checksum mismatch',
    ErrorKind.LENGTH_MISMATCH:
        '[parse] Line data length mismatch',
    ErrorKind.MISSING_HEADER:
        '[parse] Missing record header (S0)',
    ErrorKind.HEADER_ADDRESS_NONZERO:
        '[parse] S0 address field is nonzero',
    ErrorKind.DUPLICATE_LINE_COUNT:
        '[parse] Duplicate S5/S6 line found',
    ErrorKind.LINE_COUNT_MISMATCH:
        '[parse] Number of data lines does not match the declaration (S5/S6)',
    ErrorKind.DUPLICATE_START_ADDRESS:
        '[parse] Duplicate start address specification (S7/S8/S9)',
    ErrorKind.START_ADDRESS_TYPE_MISMATCH:
        '[parse] Start address line does not match the data line type (S7/S8/S9)',
    ErrorKind.MISSING_DATA_LINES:
        '[parse] Missing data lines (S1/S2/S3)',
    ErrorKind.MIXED_DATA_LINE_TYPES:
        '[parse] Mixed data types in one record (S1/S2/S3)',
    ErrorKind.TOO_MANY_DATA_LINES:
        '[compose] The output has too many data lines for the S5/S6 line data',
    ErrorKind.RECORD_TYPE_TOO_SMALL:
        '[validate] The record type (S1/S2/S3) is too small for the data address range',
    ErrorKind.RANGE_EXCEEDED:
        '[validate] The data range exceeds the greatest address of an S-record',
    ErrorKind.NO_BINARY_DATA:
        '[validate] No binary data blocks found in the record',
    ErrorKind.BLOCKS_UNORDERED:
        '[validate] Unordered data blocks detected',
    ErrorKind.OVERLAPPING_BLOCKS:
        '[validate] Overlapping data blocks detected (address range collision)',
    ErrorKind.LOAD_OPEN_FAILED:
        '[load] Opening file failed',
    ErrorKind.MISSING_START_ADDRESS:
        '[parse] Missing start address line (S7/S8/S9)',
}
r"""Message of each error kind."""


class SrecError(ValueError):
    r"""S-record processing error.

    Raised by the parsing, validation and composition components.
    The :class:`srecord.record.Record` facade catches it and stores it as its
    :class:`ErrorState`.

    Args:
        kind (:class:`ErrorKind`):
            Error kind.

        line (int):
            Line number the error refers to; zero if not applicable.

        address (int):
            Address the error refers to; zero if not applicable.

        message (str):
            Optional message; :attr:`ErrorKind.message` by default.
    """

    def __init__(
        self,
        kind: ErrorKind,
        line: int = 0,
        address: int = 0,
        message: Optional[str] = None,
    ):

        kind = ErrorKind(kind)
        super().__init__(message or kind.message)
        self.kind: ErrorKind = kind
        self.line: int = line
        self.address: int = address


class ErrorState:
    r"""First error of a record.

    It is *truthy* when an error is present, so that ``if record.error:``
    reads naturally.

    Examples:
        >>> state = ErrorState()
        >>> bool(state)
        False
        >>> state = ErrorState(ErrorKind.CHECKSUM_INCORRECT, line=3)
        >>> bool(state)
        True
        >>> str(state)
        '[parse] Line checksum mismatch (line 3)'
    """

    def __init__(
        self,
        kind: ErrorKind = ErrorKind.OK,
        line: int = 0,
        address: int = 0,
    ):

        self.kind: ErrorKind = ErrorKind(kind)
        self.line: int = line
        self.address: int = address

    def __bool__(self) -> bool:

        return self.kind != ErrorKind.OK

    def __eq__(self, other: Any) -> bool:

        if isinstance(other, ErrorState):
            return (self.kind == other.kind and
                    self.line == other.line and
                    self.address == other.address)
        return NotImplemented

    def __repr__(self) -> str:

        return (f'{type(self).__name__}(kind={self.kind.name}, '
                f'line={self.line}, address=0x{self.address:X})')

    def __str__(self) -> str:

        text = self.message
        if self.kind:
            details = []
            if self.line:
                details.append(f'line {self.line}')
            if self.address:
                details.append(f'address 0x{self.address:08X}')
            if details:
                text = f'{text} ({", ".join(details)})'
        return text

    @classmethod
    def from_exception(cls, exception: SrecError) -> 'ErrorState':
        r"""Builds the state of an :class:`SrecError`."""

        return cls(exception.kind, exception.line, exception.address)

    @property
    def message(self) -> str:
        r"""str: Message of the error kind."""

        return self.kind.message

    def raise_for_error(self) -> None:
        r"""Raises the error as :class:`SrecError`, if any.

        Raises:
            SrecError: an error is present.
        """

        if self:
            raise SrecError(self.kind, self.line, self.address, str(self))
