import os
import tempfile
import unittest

from dumpgen import DumpBuilder

from dumpscope import load_minidump, load_minidump_bytes, open_minidump
from dumpscope.core.errors import (
    AddressNotMapped,
    CrossesSegmentBoundary,
    MemoryAccessError,
)
from dumpscope.formats import layouts
from dumpscope.formats.layouts import StreamType

SEGMENT_BASE = 0x10000


def first_segment() -> bytes:
    data = bytearray(0x1000)
    data[0x0:0x7] = b"abc\x00def"
    data[0x10:0x18] = (0x1122334455667788).to_bytes(8, "little")
    wide = "hi".encode("utf-16-le") + b"\x00\x00" + "zz".encode("utf-16-le")
    data[0x40 : 0x40 + len(wide)] = wide
    data[0x80:0x84] = "ok".encode("utf-16-le")
    data[0xFFC:0x1000] = b"MNOP"
    return bytes(data)


def build_dump(arch=9) -> bytes:
    return (
        DumpBuilder()
        .add_system_info(arch=arch)
        .add_memory64(
            [
                (SEGMENT_BASE, first_segment()),
                (SEGMENT_BASE + 0x1000, b"Q" * 0x1000),
            ]
        )
        .build()
    )


class TestMemoryReader(unittest.TestCase):
    def setUp(self):
        self.snapshot = load_minidump_bytes(build_dump())
        self.reader = self.snapshot.reader()

    def tearDown(self):
        self.reader.close()

    def test_read_bytes(self):
        self.assertEqual(self.reader.read_bytes(SEGMENT_BASE, 7), b"abc\x00def")
        self.assertEqual(self.reader.read_bytes(SEGMENT_BASE + 0x1000, 4), b"QQQQ")

    def test_read_across_adjacent_segments_fails(self):
        with self.assertRaises(CrossesSegmentBoundary) as ctx:
            self.reader.read_bytes(SEGMENT_BASE + 0xFFC, 8)
        self.assertEqual(ctx.exception.address, SEGMENT_BASE + 0xFFC)
        self.assertEqual(ctx.exception.size, 8)

    def test_read_unmapped(self):
        with self.assertRaises(AddressNotMapped) as ctx:
            self.reader.read_bytes(0xDEAD0000, 4)
        self.assertEqual(ctx.exception.address, 0xDEAD0000)

    def test_zero_size_read_fails(self):
        with self.assertRaises(MemoryAccessError):
            self.reader.read_bytes(SEGMENT_BASE, 0)

    def test_try_read(self):
        result = self.reader.try_read(SEGMENT_BASE, 3)
        self.assertTrue(result.ok)
        self.assertEqual(result.value, b"abc")

        missing = self.reader.try_read(0x5000, 4)
        self.assertFalse(missing.ok)
        self.assertIsInstance(missing.error, AddressNotMapped)
        self.assertEqual(missing.value_or(b""), b"")

    def test_read_pointer(self):
        self.assertEqual(self.reader.pointer_size, 8)
        self.assertEqual(self.reader.read_pointer(SEGMENT_BASE + 0x10), 0x1122334455667788)
        self.assertEqual(self.reader.read_pointer(SEGMENT_BASE + 0x20), 0)
        self.assertIsNone(self.reader.read_pointer(0xDEAD0000))
        self.assertIsNone(self.reader.read_pointer(SEGMENT_BASE + 0xFFC))

    def test_read_string(self):
        self.assertEqual(self.reader.read_string(SEGMENT_BASE), "abc")
        self.assertEqual(self.reader.read_string(SEGMENT_BASE, 2), "ab")
        self.assertEqual(self.reader.read_string(0xDEAD0000), "")

    def test_read_string_clamps_to_segment_end(self):
        self.assertEqual(self.reader.read_string(SEGMENT_BASE + 0xFFC, 64), "MNOP")

    def test_read_wstring(self):
        self.assertEqual(self.reader.read_wstring(SEGMENT_BASE + 0x40), "hi")
        self.assertEqual(self.reader.read_wstring(SEGMENT_BASE + 0x80, 3), "o")
        self.assertEqual(self.reader.read_wstring(0xDEAD0000), "")

    def test_get_segment(self):
        segment = self.reader.get_segment(SEGMENT_BASE + 0x1800)
        self.assertEqual(segment.start, SEGMENT_BASE + 0x1000)
        self.assertIsNone(self.reader.get_segment(SEGMENT_BASE + 0x2000))

    def test_closed_reader_fails_reads(self):
        self.reader.close()
        self.assertFalse(self.reader.try_read(SEGMENT_BASE, 4).ok)
        self.assertIsNone(self.reader.read_pointer(SEGMENT_BASE))

    def test_readers_do_not_share_position(self):
        with self.snapshot.reader() as other:
            self.assertEqual(other.read_bytes(SEGMENT_BASE + 0x1000, 1), b"Q")
            self.assertEqual(self.reader.read_bytes(SEGMENT_BASE, 3), b"abc")
            self.assertEqual(other.read_bytes(SEGMENT_BASE + 4, 3), b"def")


class TestPointerWidth(unittest.TestCase):
    def test_32bit_pointer(self):
        data = (
            DumpBuilder()
            .add_system_info(arch=0)
            .add_memory64([(0x4000, bytes.fromhex("78563412aabbccdd"))])
            .build()
        )
        snapshot = load_minidump_bytes(data)
        with snapshot.reader() as reader:
            self.assertEqual(reader.pointer_size, 4)
            self.assertEqual(reader.read_pointer(0x4000), 0x12345678)

    def test_width_by_architecture(self):
        for arch, expected in [(9, 8), (6, 8), (12, 8), (15, 8), (0, 4), (5, 4), (0x1234, 4)]:
            with self.subTest(arch=arch):
                snapshot = load_minidump_bytes(DumpBuilder().add_system_info(arch=arch).build())
                self.assertEqual(snapshot.pointer_size, expected)

    def test_missing_system_info_means_32bit(self):
        snapshot = load_minidump_bytes(DumpBuilder().add_misc_info(1).build())
        self.assertIsNone(snapshot.system_info)
        self.assertEqual(snapshot.pointer_size, 4)
        self.assertFalse(snapshot.is_64bit)


class TestUnreadableSegments(unittest.TestCase):
    def load_with_base_rva(self, base_rva):
        payload = layouts.MEMORY64_LIST.pack(1, base_rva) + layouts.MEMORY64_DESCRIPTOR.pack(
            2**64 - 16, 16
        )
        data = (
            DumpBuilder()
            .add_system_info(arch=9)
            .add_raw_stream(StreamType.MEMORY64_LIST, payload)
            .build()
        )
        return load_minidump_bytes(data)

    def assert_reads_fail_softly(self, snapshot):
        address = 2**64 - 16
        self.assertEqual(snapshot.segment_by_address(address).size, 16)
        with snapshot.reader() as reader:
            self.assertFalse(reader.try_read(address, 8).ok)
            self.assertIsNone(reader.read_pointer(address))
            self.assertEqual(reader.read_string(address), "")
            self.assertEqual(reader.read_wstring(address), "")
            with self.assertRaises(MemoryAccessError):
                reader.read_bytes(address, 4)

    def test_offset_beyond_seekable_range(self):
        self.assert_reads_fail_softly(self.load_with_base_rva(2**63))

    def test_offset_past_end_of_file(self):
        self.assert_reads_fail_softly(self.load_with_base_rva(0x7FFFFFFF))


class TestFileBackedReads(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp.name, "crash.dmp")
        with open(self.path, "wb") as fp:
            fp.write(build_dump())

    def tearDown(self):
        self.tmp.cleanup()

    def test_load_from_path(self):
        snapshot = load_minidump(self.path)
        self.assertEqual(snapshot.path, self.path)
        with snapshot.reader() as reader:
            self.assertEqual(reader.read_bytes(SEGMENT_BASE + 0xFFC, 4), b"MNOP")

    def test_open_session(self):
        with open_minidump(self.path) as session:
            self.assertEqual(session.read_string(SEGMENT_BASE), "abc")
            self.assertEqual(session.read_pointer(SEGMENT_BASE + 0x10), 0x1122334455667788)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_minidump(os.path.join(self.tmp.name, "nope.dmp"))


if __name__ == "__main__":
    unittest.main()
