"""
Capture export.

A Capture is exported as two independent files sharing the capture timestamp:
- object-detection-<unix-millis>.png   the composited image
- object-detection-<unix-millis>.json  {"timestamp": ISO-8601, "detections": [...]}
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from models.detection import detections_to_dicts
from models.session import Capture

FILE_PREFIX = "object-detection"


@dataclass(frozen=True)
class ExportFile:
    filename: str
    media_type: str
    content: bytes


@dataclass
class SaveResult:
    """Per-file outcome of Exporter.save(); a failure in one file does not stop the other."""
    saved: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def base_name(capture: Capture) -> str:
    return f"{FILE_PREFIX}-{capture.unix_millis}"


def build_record(capture: Capture) -> dict:
    return {
        "timestamp": capture.iso_timestamp,
        "detections": detections_to_dicts(capture.detections),
    }


def image_file(capture: Capture) -> ExportFile:
    return ExportFile(
        filename=f"{base_name(capture)}.png",
        media_type="image/png",
        content=capture.image,
    )


def record_file(capture: Capture) -> ExportFile:
    text = json.dumps(build_record(capture), indent=2, ensure_ascii=False)
    return ExportFile(
        filename=f"{base_name(capture)}.json",
        media_type="application/json",
        content=text.encode("utf-8"),
    )


Writer = Callable[[str, bytes], None]


def _write_file(path: str, content: bytes) -> None:
    with open(path, "wb") as f:
        f.write(content)


class Exporter:
    """
    Writes exported captures into output_dir.

    Args:
        output_dir: Target directory, created on first save.
        writer: (path, content) sink; defaults to a plain file write.
    """

    def __init__(self, output_dir: str, writer: Optional[Writer] = None):
        self.output_dir = output_dir
        self._writer = writer or _write_file

    def save(self, capture: Capture) -> SaveResult:
        result = SaveResult()
        try:
            os.makedirs(self.output_dir, exist_ok=True)
        except OSError as e:
            logging.error(f"Export directory unavailable: {self.output_dir}: {e}")

        for build in (image_file, record_file):
            export = None
            try:
                export = build(capture)
                path = os.path.join(self.output_dir, export.filename)
                self._writer(path, export.content)
            except Exception as e:
                name = export.filename if export else build.__name__
                logging.error(f"Export of {name} failed: {e}")
                result.errors[name] = str(e)
                continue
            result.saved.append(path)
            logging.info(f"Exported {path}")

        return result
