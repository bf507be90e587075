import os.path
import tempfile
import unittest
from datetime import datetime, timedelta, timezone

from main import cli, parse_args
from exif_gps_tagger.gps_reader import read_gps
from exif_gps_tagger.test.utils import make_jpeg, sample_exif, write_file


class TestArgs(unittest.TestCase):
    def test_reading_options(self):
        args = parse_args(
            [
                "a.jpg",
                "b.tif",
                "--lat=-12.5",
                "--lon=130",
                "--time=2023-05-01T12:30:00+02:00",
                "--bearing=-10",
                "--lossy",
            ]
        )
        self.assertEqual(args.files, ["a.jpg", "b.tif"])
        self.assertEqual(args.lat, -12.5)
        self.assertEqual(args.lon, 130)
        self.assertEqual(
            args.time, datetime(2023, 5, 1, 12, 30, tzinfo=timezone(timedelta(hours=2)))
        )
        self.assertEqual(args.bearing, -10)
        self.assertIsNone(args.speed)
        self.assertTrue(args.lossy)

    def test_position_required(self):
        with self.assertRaises(SystemExit):
            parse_args(["a.jpg", "--lat=1"])
        self.assertTrue(parse_args(["a.jpg", "--show"]).show)


class TestCli(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def test_tag_into_output_dir(self):
        source = write_file(self.tmp.name, "a.jpg", make_jpeg(sample_exif()))
        output_dir = os.path.join(self.tmp.name, "tagged")
        code = cli(
            [
                source,
                "--lat=48.1",
                "--lon=11.5",
                "--time=2023-05-01T12:30:00+02:00",
                f"--output-dir={output_dir}",
            ]
        )
        self.assertEqual(code, 0)
        reading = read_gps(os.path.join(output_dir, "a.jpg"))
        self.assertAlmostEqual(reading.latitude, 48.1, places=6)
        self.assertEqual(reading.timestamp.hour, 10)
        # The source is left alone
        self.assertIsNone(read_gps(source))

    def test_failure_exit_code(self):
        source = write_file(self.tmp.name, "a.txt", b"text")
        self.assertEqual(cli([source, "--lat=1", "--lon=2"]), 1)
        self.assertEqual(cli([source, "--show"]), 1)


if __name__ == "__main__":
    unittest.main()
