import unittest

from dumpgen import DumpBuilder

from dumpscope import load_minidump_bytes
from dumpscope.core.arch import Architecture
from dumpscope.core.memory import AddressSpace, MemoryRegion, MemorySegment
from dumpscope.core.permissions import MemoryPermissions


def module(base, size, name):
    return {"base": base, "size": size, "name": name}


class TestSnapshotLookups(unittest.TestCase):
    def setUp(self):
        data = (
            DumpBuilder()
            .add_system_info(arch=9)
            .add_threads([{"thread_id": 0x10}, {"thread_id": 0x20, "priority": 3}])
            .add_modules(
                [
                    module(0x400000, 0x2000, "C:\\app\\main.exe"),
                    module(0x401000, 0x4000, "C:\\app\\overlap.dll"),
                    module(0x7FF800000000, 0x1000, "C:\\Windows\\System32\\kernel32.dll"),
                ]
            )
            .add_memory64([(0x10000, b"A" * 0x100), (0x10080, b"B" * 0x100)])
            .add_memory_info(
                [
                    (0x10000, 0x10000, 0x04, 0x1000, 0x1000, 0x04, 0x20000),
                    (0x11000, 0x10000, 0x04, 0x1000, 0x2000, 0x01, 0x20000),
                ]
            )
            .build()
        )
        self.snapshot = load_minidump_bytes(data)

    def test_module_by_address_is_end_exclusive(self):
        main = self.snapshot.module_by_address(0x400000)
        self.assertEqual(main.name, "C:\\app\\main.exe")
        self.assertEqual(self.snapshot.module_by_address(0x401FFF).name, main.name)
        self.assertEqual(
            self.snapshot.module_by_address(0x402000).name, "C:\\app\\overlap.dll"
        )
        self.assertIsNone(self.snapshot.module_by_address(0x405000))

    def test_module_overlap_keeps_first(self):
        self.assertEqual(
            self.snapshot.module_by_address(0x401800).name, "C:\\app\\main.exe"
        )

    def test_module_by_name_substring(self):
        self.assertEqual(
            self.snapshot.module_by_name("kernel32").base_address, 0x7FF800000000
        )
        self.assertEqual(self.snapshot.module_by_name("app").name, "C:\\app\\main.exe")
        self.assertIsNone(self.snapshot.module_by_name("ntdll"))

    def test_segment_overlap_keeps_first(self):
        segment = self.snapshot.segment_by_address(0x100A0)
        self.assertEqual(segment.start, 0x10000)
        self.assertEqual(self.snapshot.segment_by_address(0x10150).start, 0x10080)
        self.assertIsNone(self.snapshot.segment_by_address(0x10180))

    def test_region_by_address(self):
        region = self.snapshot.region_by_address(0x11800)
        self.assertEqual(region.base_address, 0x11000)
        self.assertEqual(region.state_name, "MEM_RESERVE")
        self.assertEqual(region.permissions, MemoryPermissions.NONE)
        self.assertIsNone(self.snapshot.region_by_address(0x12000))

    def test_thread_by_id(self):
        self.assertEqual(self.snapshot.thread_by_id(0x20).priority, 3)
        self.assertIsNone(self.snapshot.thread_by_id(0x30))

    def test_architecture(self):
        self.assertEqual(self.snapshot.arch, Architecture.AMD64)
        self.assertTrue(self.snapshot.is_64bit)
        self.assertIn("AMD64", repr(self.snapshot))


class TestAddressSpace(unittest.TestCase):
    def setUp(self):
        self.space = AddressSpace(
            [MemorySegment(0x1000, 0x100, 0x400), MemorySegment(0x2000, 0x10, 0x900)],
            [MemoryRegion(0x1000, 0x1000, 0x20, 0x1000, 0x1000, 0x20, 0x1000000)],
        )

    def test_translate(self):
        self.assertEqual(self.space.translate(0x1010, 4), 0x410)
        self.assertEqual(self.space.translate(0x2000, 0x10), 0x900)

    def test_is_mapped(self):
        self.assertTrue(self.space.is_mapped(0x10FF))
        self.assertFalse(self.space.is_mapped(0x1100))
        self.assertFalse(self.space.is_mapped(0x10FF, 2))
        self.assertEqual(len(self.space), 2)

    def test_region_permissions(self):
        region = self.space.find_region(0x1800)
        self.assertEqual(
            region.permissions, MemoryPermissions.READ | MemoryPermissions.EXECUTE
        )
        self.assertEqual(region.protect_name, "PAGE_EXECUTE_READ")


if __name__ == "__main__":
    unittest.main()
