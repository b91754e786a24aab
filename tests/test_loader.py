import tempfile
import unittest
from pathlib import Path

from sleep_policy_sim.errors import MalformedTraceError
from sleep_policy_sim.trace.loader import (
    load_policy_trace,
    load_trace,
    parse_device_header,
    read_policy_trace,
    read_trace_file,
    write_policy_trace,
)
from sleep_policy_sim.trace.schemas import ActivityTrace, DeviceProfile, State


class TestLoadTrace(unittest.TestCase):
    def test_maps_every_sensor_symbol(self):
        trace = load_trace("AUSIO")
        self.assertEqual(
            list(trace),
            [State.ACTIVE, State.UNKNOWN, State.SLEEP, State.IDLE, State.OFF],
        )

    def test_stops_at_first_newline(self):
        self.assertEqual(len(load_trace("AIIS\nAAAAAA")), 4)
        self.assertEqual(len(load_trace("AI\r\n")), 2)

    def test_empty_input_gives_empty_trace(self):
        self.assertEqual(len(load_trace("")), 0)
        self.assertEqual(len(load_trace("\nAAA")), 0)

    def test_illegal_symbol_reports_symbol_and_position(self):
        with self.assertRaises(MalformedTraceError) as ctx:
            load_trace("AAXA")
        self.assertEqual(ctx.exception.symbol, "X")
        self.assertEqual(ctx.exception.position, 2)
        self.assertIn("'X'", str(ctx.exception))

    def test_forced_sleep_symbol_is_rejected_in_sensor_input(self):
        with self.assertRaises(MalformedTraceError):
            load_trace("IIZ")
        self.assertEqual(load_policy_trace("IIZ").to_symbols(), "IIZ")


class TestDeviceHeader(unittest.TestCase):
    def test_full_header(self):
        p = parse_device_header("7, lab-pc, 120, 3.5")
        self.assertEqual(p, DeviceProfile(device_id="7", name="lab-pc", active_watts=120.0, sleep_watts=3.5))

    def test_missing_wattages_keep_defaults(self):
        with self.assertLogs("sleep_policy_sim.trace.loader", level="WARNING"):
            p = parse_device_header("7, lab-pc")
        self.assertEqual(p.active_watts, 100.0)
        self.assertEqual(p.sleep_watts, 0.0)

    def test_header_without_name_is_malformed(self):
        with self.assertRaises(MalformedTraceError):
            parse_device_header("7")

    def test_non_numeric_wattage_is_malformed(self):
        with self.assertRaises(MalformedTraceError):
            parse_device_header("7, lab-pc, lots, 0")


class TestTraceFiles(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_read_with_header(self):
        fp = self.tmp / "pc01.vec"
        fp.write_text("1, pc01, 90, 2\nAAIIS\n", encoding="ascii")
        profile, trace = read_trace_file(fp)
        self.assertEqual(profile.name, "pc01")
        self.assertEqual(profile.active_watts, 90.0)
        self.assertEqual(trace.to_symbols(), "AAIIS")

    def test_read_without_header_uses_file_stem(self):
        fp = self.tmp / "desk.vec"
        fp.write_text("AIO", encoding="ascii")
        profile, trace = read_trace_file(fp, has_header=False)
        self.assertEqual(profile.name, "desk")
        self.assertEqual(len(trace), 3)

    def test_non_ascii_byte_is_reported_as_read(self):
        fp = self.tmp / "pc03.vec"
        fp.write_bytes(b"1, pc03, 100, 0\nAAI\xe9I\n")
        with self.assertRaises(MalformedTraceError) as ctx:
            read_trace_file(fp)
        self.assertEqual(ctx.exception.symbol, "\xe9")
        self.assertEqual(ctx.exception.position, 3)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            read_trace_file(self.tmp / "nope.vec")

    def test_policy_trace_written_and_read_back(self):
        profile = DeviceProfile(device_id="1", name="pc01", active_watts=100.0, sleep_watts=1.0)
        trace = ActivityTrace.from_symbols("AIZZSO")
        out = write_policy_trace(self.tmp / "out" / "pc01.prc", profile, trace)

        lines = out.read_text(encoding="ascii").split("\n")
        self.assertEqual(lines[0], "pc01,100.000000,1.000000")
        self.assertEqual(lines[1], "AIZZSO")

        profile2, trace2 = read_policy_trace(out)
        self.assertEqual(profile2.name, "pc01")
        self.assertEqual(profile2.sleep_watts, 1.0)
        self.assertEqual(trace2, trace)


if __name__ == "__main__":
    unittest.main()
