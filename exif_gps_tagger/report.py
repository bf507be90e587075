from csv import DictWriter

from .gps_reading import GpsReading


class Report:
    def __init__(self, filename, disable=False):
        if not disable:
            self.fle = open(filename, "w", newline="")
            self.writer = DictWriter(
                self.fle,
                fieldnames=(
                    "file",
                    "output",
                    "state",
                    "latitude",
                    "longitude",
                    "message",
                ),
            )
            self.writer.writeheader()
        else:
            self.fle = None
            self.writer = None

    def report_tagged(self, filename: str, output: str, reading: GpsReading):
        if not self.writer:
            return
        self.writer.writerow(
            {
                "file": filename,
                "output": output,
                "state": "tagged",
                "latitude": reading.latitude,
                "longitude": reading.longitude,
            }
        )

    def report_failed(self, filename: str, output: str, error: Exception):
        if not self.writer:
            return
        self.writer.writerow(
            {
                "file": filename,
                "output": output,
                "state": f"Failed, {type(error).__name__}",
                "message": str(error),
            }
        )

    def close(self):
        if self.fle:
            self.fle.close()
