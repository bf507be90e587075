import os.path
from collections.abc import Iterable, Iterator
from typing import NamedTuple

from rich.progress import Progress
from rich.filesize import decimal

from .errors import TaggingError
from .gps_reading import GpsReading
from .report import Report
from .tagger import set_gps_reading


class TagResult(NamedTuple):
    source: str
    output: str
    error: TaggingError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def output_path(source: str, output_dir: str | None) -> str:
    if output_dir is None:
        # In place
        return source
    return os.path.join(output_dir, os.path.basename(source))


def process_files(
    paths: Iterable[str],
    reading: GpsReading,
    output_dir: str | None,
    lossy: bool,
    progress: Progress,
    report: Report,
) -> Iterator[TagResult]:
    for path in progress.track(paths, description="Tagging files"):
        output = output_path(path, output_dir)
        try:
            set_gps_reading(path, output, reading, lossy=lossy)
        except TaggingError as e:
            progress.log(f"[red]✘ {os.path.basename(path)} - {e}")
            report.report_failed(path, output, e)
            yield TagResult(path, output, e)
            continue

        progress.log(
            f"[green]✔ Tagged[/green] {os.path.basename(output)} - {decimal(os.path.getsize(output))}"
        )
        report.report_tagged(path, output, reading)
        yield TagResult(path, output)
