import random

import pytest

from srecord.blocks import *


def mkblock_seq(start, value, size):
    return Block(start, bytes((value + i) & 0xFF for i in range(size)))


@pytest.fixture
def sparse_blockset():
    return BlockSet([
        mkblock_seq(0x0020, 0, 16),
        mkblock_seq(0x0040, 0, 16),
        mkblock_seq(0x0060, 0, 16),
        mkblock_seq(0x0080, 0, 16),
    ])


# ============================================================================

class TestBlock:

    def test___init__(self):
        block = Block()
        assert block.start == 0
        assert block.data == bytearray()

        data = bytearray(b'abc')
        block = Block(0x10, data)
        data[0] = 0
        assert block.data == b'abc'

    def test___init___raises(self):
        with pytest.raises(ValueError, match='negative address'):
            Block(-1, b'abc')

    def test___eq__(self):
        assert Block(1, b'abc') == Block(1, b'abc')
        assert Block(1, b'abc') != Block(2, b'abc')
        assert Block(1, b'abc') != Block(1, b'abd')
        assert Block(1, b'abc') != (1, b'abc')

    def test___repr__(self):
        assert repr(Block(0x20, b'ab')) == "Block(0x20, b'ab')"

    def test_endex(self):
        assert Block(0x20, b'abc').endex == 0x23
        assert Block(0x20).endex == 0x20

    def test_copy(self):
        block = Block(0x20, b'abc')
        other = block.copy()
        assert other == block
        other.data[0] = 0
        assert block.data == b'abc'

    def test_dump(self):
        assert Block(0x12, b'\x01\x02\x03\x04').dump() == '<00000010>      0102 0304'
        assert Block(0x12).dump() == '(empty block)'

        ans_out = mkblock_seq(0x1E, 0x1E, 4).dump(align=4)
        ans_ref = ('<0000001C>      1E1F\n'
                   '<00000020> 2021')
        assert ans_out == ans_ref

    def test_get_range_doctest(self):
        assert Block(1, b'ABCD').get_range(3, 7) == Block(3, b'CD')
        assert len(Block(1, b'ABCD').get_range(5, 7)) == 0

    def test_get_range(self):
        block = Block(1, b'ABCD')
        assert block.get_range(0, 9) == block
        assert block.get_range(0, 9) is not block
        assert block.get_range(2, 2) == Block(2)
        assert block.get_range(4, 2) == Block(4)

    def test_in_range_doctest(self):
        block = Block(0x20, bytes(16))
        assert not block.in_range(0x00, 0x20)
        assert block.in_range(0x00, 0x21)
        assert block.in_range(0x2F, 0x30)
        assert not block.in_range(0x30, 0x40)


# ============================================================================

def test_check_sequence_doctest():
    assert check_sequence([Block(1, b'ABC'), Block(6, b'xyz')])
    assert not check_sequence([Block(1, b'ABC'), Block(2, b'xyz')])
    assert not check_sequence([Block(6, b'ABC'), Block(1, b'xyz')])


def test_check_sequence():
    assert check_sequence([])
    assert check_sequence([Block(1, b'ABC'), Block(4, b'xyz')])


# ============================================================================

def test_sorting():
    blocks = [Block(2, b'ABC'), Block(7, b'>'), Block(2, b'$'), Block(0, b'<')]
    ans_ref = [Block(0, b'<'), Block(2, b'ABC'), Block(2, b'$'), Block(7, b'>')]
    ans_out = list(blocks)
    ans_out.sort(key=sorting)
    assert ans_out == ans_ref


# ============================================================================

def test_locate_start_doctest():
    blocks = [Block(1, b'ABCD'), Block(6, b'$'), Block(8, b'xyz')]
    ans_ref = [0, 0, 0, 0, 0, 1, 1, 2, 2, 2, 2, 3]
    ans_out = [locate_start(blocks, i) for i in range(12)]
    assert ans_out == ans_ref


def test_locate_start():
    assert locate_start([], 1) == 0


# ============================================================================

def test_locate_endex_doctest():
    blocks = [Block(1, b'ABCD'), Block(6, b'$'), Block(8, b'xyz')]
    ans_ref = [0, 0, 1, 1, 1, 1, 1, 2, 2, 3, 3, 3]
    ans_out = [locate_endex(blocks, i) for i in range(12)]
    assert ans_out == ans_ref


def test_locate_endex():
    assert locate_endex([], 1) == 0


# ============================================================================

def test_connect_doctest():
    blocks = [Block(5, b'xyz'), Block(1, b'ABC')]
    assert connect(blocks, 0, 9, ord('#')) == Block(0, b'#ABC#xyz#')


def test_connect():
    assert connect([], 4, 4, 0) == Block(4)
    assert connect([], 4, 7, 0x1FF) == Block(4, b'\xFF\xFF\xFF')


# ============================================================================

class TestBlockSet:

    def test___init__(self):
        assert BlockSet().blocks == []
        blocks = [Block(1, b'A')]
        assert BlockSet(blocks).blocks == blocks
        assert BlockSet(blocks).blocks is not blocks

    def test___getitem__(self, sparse_blockset):
        assert sparse_blockset[0].start == 0x20
        assert sparse_blockset[-1].start == 0x80

    def test___repr__(self):
        assert repr(BlockSet([Block(1, b'A')])) == "BlockSet([Block(0x1, b'A')])"

    def test_start_endex(self, sparse_blockset):
        assert sparse_blockset.start == 0x20
        assert sparse_blockset.endex == 0x90
        assert BlockSet().start == 0
        assert BlockSet().endex == 0

    def test_check(self, sparse_blockset):
        assert sparse_blockset.check()
        sparse_blockset.blocks.append(Block(0x85, b'x'))
        assert not sparse_blockset.check()

    def test_copy(self, sparse_blockset):
        other = sparse_blockset.copy()
        assert other == sparse_blockset
        other[0].data[0] = 0xFF
        assert sparse_blockset[0].data[0] == 0

    def test_append_data(self):
        blockset = BlockSet()
        blockset.append_data(0x10, b'abc')
        blockset.append_data(0x13, b'def')
        assert blockset.blocks == [Block(0x10, b'abcdef')]

        blockset.append_data(0x08, b'01')
        assert blockset.blocks == [Block(0x08, b'01'), Block(0x10, b'abcdef')]

    def test_insert(self):
        blockset = BlockSet()
        blockset.insert(Block(0x20, b'c'))
        blockset.insert(Block(0x10, b'a'))
        blockset.insert(Block(0x10, b'b'))
        blockset.insert(Block(0x30, b'd'))
        ans_ref = [Block(0x10, b'a'), Block(0x10, b'b'),
                   Block(0x20, b'c'), Block(0x30, b'd')]
        assert blockset.blocks == ans_ref

    def test_overlaps(self, sparse_blockset):
        assert not sparse_blockset.overlaps(0x00, 0x20)
        assert sparse_blockset.overlaps(0x2F, 0x40)
        assert not sparse_blockset.overlaps(0x30, 0x40)

    def test_reorder(self):
        blockset = BlockSet([Block(5, b'x'), Block(1, b'a')])
        assert blockset.reorder().blocks == [Block(1, b'a'), Block(5, b'x')]

    def test_coalesce_doctest(self):
        blockset = BlockSet([Block(0, b'Hello,'), Block(6, b' '),
                             Block(7, b'World'), Block(12, b'!')])
        assert blockset.coalesce().blocks == [Block(0, b'Hello, World!')]

    def test_coalesce(self):
        blockset = BlockSet([Block(0, b'ab'), Block(2), Block(5, b'x')])
        assert blockset.coalesce().blocks == [Block(0, b'ab'), Block(5, b'x')]

    def test_get_ranges_doctest(self):
        blockset = BlockSet([Block(1, b'ABCD'), Block(6, b'$'),
                             Block(8, b'xyz')])
        ans_ref = [Block(3, b'CD'), Block(6, b'$'), Block(8, b'x')]
        assert blockset.get_ranges(3, 9) == ans_ref

    def test_get_ranges_counts(self, sparse_blockset):
        counts = [
            (0x00, 0x00, 0),
            (0x00, 0x20, 0),
            (0x00, 0x21, 1),
            (0x00, 0x30, 1),
            (0x00, 0x3F, 1),
            (0x00, 0x40, 1),
            (0x00, 0x41, 2),
            (0x20, 0x21, 1),
            (0x20, 0x30, 1),
            (0x20, 0x3F, 1),
            (0x20, 0x40, 1),
            (0x20, 0x41, 2),
            (0x20, 0x60, 2),
            (0x20, 0x61, 3),
            (0x20, 0x80, 3),
            (0x20, 0x81, 4),
            (0x2F, 0x81, 4),
            (0x30, 0x81, 3),
            (0x20, 0x100, 4),
            (0x80, 0x20, 0),
            (0x21, 0x20, 0),
        ]
        for start, endex, count in counts:
            assert len(sparse_blockset.get_ranges(start, endex)) == count, (start, endex)

    def test_get_ranges_bounds(self, sparse_blockset):
        ranges = sparse_blockset.get_ranges(0x20, 0x100)
        assert ranges[0].start == 0x20
        assert ranges[-1].start == 0x80
        assert ranges[-1].endex == 0x90

        ranges = sparse_blockset.get_ranges(0x00, 0x200)
        assert ranges[0].start == 0x20
        assert ranges[-1].endex == 0x90

    def test_get_ranges_copies(self, sparse_blockset):
        ranges = sparse_blockset.get_ranges(0x00, 0x100)
        ranges[0].data[0] = 0xFF
        assert sparse_blockset[0].data[0] == 0

    def test_get_range_doctest(self):
        blockset = BlockSet([Block(1, b'ABCD'), Block(6, b'$')])
        assert blockset.get_range(0, 8, ord('.')) == Block(0, b'.ABCD.$.')

    def test_get_range(self):
        blockset = BlockSet([
            mkblock_seq(0x001E, 0x1E, 18),
            mkblock_seq(0x0040, 0x40, 32),
            mkblock_seq(0x0060, 0x60, 16),
            mkblock_seq(0x0075, 0x75, 30),
        ])
        covered = set()
        for block in blockset:
            covered.update(range(block.start, block.endex))

        for start, endex in [(0x000, 0x100), (0x020, 0x100), (0x000, 0x030),
                             (0x050, 0x060), (0x100, 0x110)]:
            block = blockset.get_range(start, endex)
            assert block.start == start
            assert block.endex == endex
            for address in range(start, endex):
                expected = address & 0xFF if address in covered else 0
                assert block.data[address - start] == expected, hex(address)

    def test_set_range_doctest(self):
        blockset = BlockSet([Block(1, b'ABCD'), Block(6, b'$'),
                             Block(8, b'xyz')])
        blockset.set_range(Block(3, b'123456'))
        assert blockset.blocks == [Block(1, b'AB123456yz')]

    def test_set_range(self, sparse_blockset):
        blockset = sparse_blockset

        blockset.set_range(Block(0x08, mkblock_seq(0, 0xAA, 29).data))
        assert len(blockset) == 4
        assert blockset.start == 0x08
        assert blockset.endex == 0x90
        assert blockset[0].start == 0x08
        assert blockset[0].endex == 0x30
        for i in range(29):
            assert blockset[0].data[i] == 0xAA + i

        blockset.set_range(mkblock_seq(0x18, 0x44, 0x60))
        assert len(blockset) == 2
        assert blockset.start == 0x08
        assert blockset.endex == 0x90
        assert blockset[0].start == 0x08
        assert blockset[0].endex == 0x78
        for i in range(0x10):
            assert blockset.get_range(0x08 + i, 0x09 + i).data[0] == 0xAA + i
        for i in range(0x60):
            assert blockset.get_range(0x18 + i, 0x19 + i).data[0] == 0x44 + i

        blockset.set_range(mkblock_seq(0x00, 0x00, 0x80))
        assert len(blockset) == 1
        assert blockset[0].start == 0x00
        assert blockset[0].endex == 0x90
        for i in range(0x80):
            assert blockset[0].data[i] == i
        for i in range(0x10):
            assert blockset[0].data[0x80 + i] == i

    def test_set_range_empty(self, sparse_blockset):
        reference = sparse_blockset.copy()
        sparse_blockset.set_range(Block(0x25))
        assert sparse_blockset == reference

    def test_set_range_copies(self):
        block = Block(0x10, b'abc')
        blockset = BlockSet().set_range(block)
        block.data[0] = 0
        assert blockset.blocks == [Block(0x10, b'abc')]

    def test_set_range_unordered(self):
        blockset = BlockSet([Block(0x10, b'xyz'), Block(0x00, b'abc')])
        blockset.set_range(Block(0x03, b'0123456789ABC'))
        assert blockset.blocks == [Block(0x00, b'abc0123456789ABCxyz')]

    def test_remove_range_doctest(self):
        blockset = BlockSet([Block(1, b'ABCD'), Block(6, b'$'),
                             Block(8, b'xyz')])
        blockset.remove_range(4, 9)
        assert blockset.blocks == [Block(1, b'ABC'), Block(9, b'yz')]
        blockset.remove_range(2, 3)
        assert blockset.blocks == [Block(1, b'A'), Block(3, b'C'), Block(9, b'yz')]

    def test_remove_range(self):
        blockset = BlockSet([
            mkblock_seq(0x0020, 0, 16),
            mkblock_seq(0x0040, 0, 16),
            mkblock_seq(0x0060, 0xCC, 16),
            mkblock_seq(0x0080, 0, 16),
        ])
        reference = blockset.copy()

        for start, endex in [(0x00, 0x20), (0x90, 0x95), (0x20, 0x20), (0x30, 0x10)]:
            blockset.remove_range(start, endex)
            assert blockset == reference

        blockset.remove_range(0x24, 0x28)
        assert len(blockset) == 5
        assert blockset.start == 0x20
        assert blockset.endex == 0x90
        assert (blockset[0].start, blockset[0].endex) == (0x20, 0x24)
        assert (blockset[1].start, blockset[1].endex) == (0x28, 0x30)
        assert (blockset[2].start, blockset[2].endex) == (0x40, 0x50)

        blockset.remove_range(0x80, 0xF0)
        assert len(blockset) == 4
        assert blockset.start == 0x20
        assert blockset.endex == 0x70

        blockset.remove_range(0x20, 0x40)
        assert len(blockset) == 2
        assert blockset.start == 0x40
        assert blockset.endex == 0x70

    def test_remove_range_empty(self):
        blockset = BlockSet()
        assert blockset.remove_range(0, 10).blocks == []

    def test_merge_doctest(self):
        blockset = BlockSet([Block(5, b'xyz'), Block(1, b'ABC')])
        assert blockset.merge(ord('.')) == Block(1, b'ABC.xyz')
        assert blockset.blocks == [Block(1, b'ABC.xyz')]

    def test_merge_fill(self):
        blockset = BlockSet([
            mkblock_seq(0x0020, 0, 16),
            mkblock_seq(0x0030, 0, 16),
            mkblock_seq(0x0050, 0, 16),
        ])
        blockset.merge(0xFE)
        assert len(blockset) == 1
        assert blockset.start == 0x20
        assert blockset.endex == 0x60
        assert blockset.get_range(0x40, 0x50).data == b'\xFE' * 16

    def test_merge_overwrite_order(self):
        blockset = BlockSet([
            mkblock_seq(0x0030, 0x70, 32),
            mkblock_seq(0x0020, 0x00, 32),
            mkblock_seq(0x0040, 0xA0, 16),
        ])
        blockset.merge(0xA5)
        assert blockset.start == 0x20
        assert blockset.endex == 0x50
        assert len(blockset) == 1
        data = blockset[0].data
        assert len(data) == 48
        assert data[0x00] == 0x00
        assert data[0x10] == 0x70
        assert data[0x20] == 0xA0

    def test_merge_empty(self):
        blockset = BlockSet([Block(0x10)])
        assert blockset.merge() == Block()
        assert blockset.blocks == []

    def test_find_doctest(self):
        blockset = BlockSet([Block(1, b'ABCD'), Block(7, b'xyz')])
        assert blockset.find(b'yz') == 8
        assert blockset.find(b'Dx') == 10

    def test_find(self):
        blockset = BlockSet([
            mkblock_seq(0x0020, 0x00, 8),
            mkblock_seq(0x0080, 0xA0, 10),
        ])
        endex = blockset.endex
        assert endex == 0x8A

        assert blockset.find([0]) == blockset.start
        assert blockset.find([0x01, 0x02]) == 0x21
        assert blockset.find(bytes(range(8))) == 0x20
        assert blockset.find(bytes(range(9))) == endex
        assert blockset.find([0x01, 0x03]) == endex
        assert blockset.find([]) == endex
        assert blockset.find([0x01, 0x02], 0x20) == 0x21
        assert blockset.find([0x01, 0x02], 0x21) == 0x21
        assert blockset.find([0x01, 0x02], 0x22) == endex

    def test_find_next_block(self):
        blockset = BlockSet([
            mkblock_seq(0x0020, 0x00, 8),
            mkblock_seq(0x0080, 0x00, 8),
        ])
        assert blockset.find([0x03], 0x24) == 0x83
        assert blockset.find([0x03], 0x84) == blockset.endex


# ============================================================================

class TestBlockSetRandomized:

    SIZE = 0x100

    def flatten(self, blockset):
        data = bytearray(self.SIZE)
        mask = bytearray(self.SIZE)
        for block in blockset:
            data[block.start:block.endex] = block.data
            mask[block.start:block.endex] = b'\x01' * len(block)
        return data, mask

    def check_invariants(self, blockset):
        assert blockset.check()
        blocks = blockset.blocks
        assert all(block.data for block in blocks)
        assert all(blocks[i].endex < blocks[i + 1].start
                   for i in range(len(blocks) - 1))

    @pytest.mark.parametrize('seed', range(8))
    def test_mutate(self, seed):
        rng = random.Random(seed)
        size = self.SIZE
        ref_data = bytearray(size)
        ref_mask = bytearray(size)
        blockset = BlockSet()

        for _ in range(300):
            action = rng.randrange(20)
            start = rng.randrange(size)
            endex = rng.randrange(start, min(start + 24, size) + 1)

            if action < 12:
                data = bytes(rng.randrange(256) for _ in range(endex - start))
                blockset.set_range(Block(start, data))
                ref_data[start:endex] = data
                ref_mask[start:endex] = b'\x01' * len(data)

            elif action < 19:
                blockset.remove_range(start, endex)
                ref_data[start:endex] = bytes(endex - start)
                ref_mask[start:endex] = bytes(endex - start)

            else:
                fill = rng.randrange(256)
                merged = blockset.merge(fill)
                if 1 in ref_mask:
                    first = ref_mask.index(1)
                    last = ref_mask.rindex(1) + 1
                    for address in range(first, last):
                        if not ref_mask[address]:
                            ref_data[address] = fill
                            ref_mask[address] = 1
                    assert merged.start == first
                    assert merged.endex == last
                else:
                    assert not merged.data

            self.check_invariants(blockset)
            assert self.flatten(blockset) == (ref_data, ref_mask)

            query_start = rng.randrange(size)
            query_endex = rng.randrange(size + 1)
            expected = any(ref_mask[query_start:query_endex])
            assert blockset.overlaps(query_start, query_endex) == expected

            chunk = blockset.get_range(start, endex, 0xEE)
            assert chunk.start == start
            assert chunk.endex == endex
            for offset, value in enumerate(chunk.data):
                address = start + offset
                assert value == (ref_data[address] if ref_mask[address] else 0xEE)
