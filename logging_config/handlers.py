"""
File handler with gzip-compressed rotation.
"""

import gzip
import logging.handlers
import os
import shutil
import sys
from pathlib import Path
from typing import Optional


class RotatingFileHandler(logging.handlers.RotatingFileHandler):
    """
    Size-rotated log file whose backups are gzipped.

    Backups are named ``<file>.1.gz`` (newest) to ``<file>.<backup_count>.gz``.
    With ``compress_rotated=False`` it behaves like the standard handler.
    The parent directory is created when missing.
    """

    def __init__(self, filename: str, max_bytes: int = 10 * 1024 * 1024, backup_count: int = 5,
                 encoding: Optional[str] = None, compress_rotated: bool = True):
        Path(filename).parent.mkdir(parents=True, exist_ok=True)
        super().__init__(filename, maxBytes=max_bytes, backupCount=backup_count, encoding=encoding or 'utf-8')

        self.compress_rotated = compress_rotated
        if compress_rotated:
            self.namer = self._gzip_namer
            self.rotator = self._gzip_rotator

    @staticmethod
    def _gzip_namer(default_name: str) -> str:
        return f"{default_name}.gz"

    @staticmethod
    def _gzip_rotator(source: str, dest: str) -> None:
        try:
            with open(source, 'rb') as f_in, gzip.open(dest, 'wb') as f_out:
                shutil.copyfileobj(f_in, f_out)
            os.remove(source)
        except OSError as e:
            print(f"Error compressing rotated log file {source}: {e}", file=sys.stderr)
