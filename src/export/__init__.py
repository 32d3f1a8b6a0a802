"""
Export of frozen captures as an image file plus a detection record.
"""

from .exporter import (
    ExportFile,
    Exporter,
    SaveResult,
    build_record,
    image_file,
    record_file,
)

__all__ = [
    "ExportFile",
    "Exporter",
    "SaveResult",
    "build_record",
    "image_file",
    "record_file",
]
