import argparse
import logging
import os
import sys
from datetime import datetime

from rich.logging import RichHandler
from rich.progress import (
    BarColumn,
    Progress,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)

from exif_gps_tagger.errors import TaggingError
from exif_gps_tagger.gps_reader import read_gps
from exif_gps_tagger.gps_reading import GpsReading
from exif_gps_tagger.process_files import process_files
from exif_gps_tagger.report import Report


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Write GPS position, time, speed, elevation and bearing into the Exif of JPEG and TIFF files"
    )
    parser.add_argument("files", help="JPEG or TIFF files", nargs="+")
    parser.add_argument("--lat", help="Latitude in degrees, negative is south", type=float)
    parser.add_argument("--lon", help="Longitude in degrees, negative is west", type=float)
    parser.add_argument(
        "--time",
        help="Time of the fix as ISO 8601, UTC unless it has an offset",
        type=datetime.fromisoformat,
    )
    parser.add_argument("--speed", help="Speed in km/h", type=float)
    parser.add_argument(
        "--elevation", help="Elevation in meters, negative is below sea level", type=float
    )
    parser.add_argument("--bearing", help="Image direction in degrees", type=float)
    parser.add_argument(
        "--lossy",
        help="Skip over JPEG data which cannot be parsed instead of failing",
        action="store_true",
    )
    parser.add_argument(
        "--output-dir", help="Write tagged copies here instead of overwriting the files"
    )
    parser.add_argument("--report", help="Write a CSV report of the results")
    parser.add_argument(
        "--show", help="Print the GPS data of the files and exit", action="store_true"
    )
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args(argv)
    if not args.show and (args.lat is None or args.lon is None):
        parser.error("--lat and --lon are required unless using --show")
    return args


def show_gps(files: list[str], progress: Progress) -> int:
    failed = 0
    for filename in files:
        try:
            reading = read_gps(filename)
        except TaggingError as e:
            progress.log(f"[red]✘ {filename} - {e}")
            failed += 1
            continue
        if reading is None:
            progress.log(f"[bright_black]{filename} - no GPS data")
        else:
            progress.log(f"{filename} - {reading}")
    return failed


def cli(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
    )

    progress = Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TimeElapsedColumn(),
        TimeRemainingColumn(),
        expand=True,
    )

    with progress:
        if args.show:
            return 1 if show_gps(args.files, progress) else 0

        if args.output_dir:
            os.makedirs(args.output_dir, exist_ok=True)
        reading = GpsReading(
            latitude=args.lat,
            longitude=args.lon,
            timestamp=args.time,
            speed=args.speed,
            elevation=args.elevation,
            bearing=args.bearing,
        )
        report = Report(args.report, disable=not args.report)
        try:
            results = list(
                process_files(
                    args.files,
                    reading=reading,
                    output_dir=args.output_dir,
                    lossy=args.lossy,
                    progress=progress,
                    report=report,
                )
            )
        finally:
            report.close()

        failed = [result for result in results if not result.ok]
        if failed:
            progress.log(f"[yellow]⚠ Failed to tag {len(failed)} of {len(results)} files")
            return 1
        progress.log(f"[green]Tagged {len(results)} files")
        return 0


if __name__ == "__main__":
    sys.exit(cli())
