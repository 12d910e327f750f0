import io, os
from typing import BinaryIO, List

from textfile_exporter.config import TEXTFILE_EXTENSION


class CarriageReturnFilteringReader(io.RawIOBase):
    """Reads from the wrapped byte stream with every ``\\r`` removed."""

    def __init__(self, raw: BinaryIO):
        self._raw = raw

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        # an empty result means EOF to callers, so a chunk made only of
        # carriage returns has to be followed by another read
        while True:
            chunk = self._raw.read(len(b))
            if not chunk:
                return 0
            chunk = chunk.replace(b"\r", b"")
            if chunk:
                n = len(chunk)
                b[:n] = chunk
                return n


def list_textfiles(directory: str, extension: str = TEXTFILE_EXTENSION) -> List[os.DirEntry]:
    """Regular files in ``directory`` ending with ``extension``, sorted by name.

    Raises OSError when the directory cannot be read.
    """
    with os.scandir(directory) as it:
        entries = [e for e in it if e.name.endswith(extension) and e.is_file()]
    entries.sort(key=lambda e: e.name)
    return entries


def text_stream(raw: BinaryIO) -> io.TextIOWrapper:
    """UTF-8 text view over ``raw`` with carriage returns filtered out."""
    return io.TextIOWrapper(io.BufferedReader(CarriageReturnFilteringReader(raw)), encoding="utf-8")
