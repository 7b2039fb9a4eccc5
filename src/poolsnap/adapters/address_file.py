from __future__ import annotations
import os

from ..domain.errors import SourceUnavailable
from ..domain.value_types import Address
from ..ports.storage import AddressSource


class TextFileAddressSource(AddressSource):
    """
    One pool address per line. Whitespace is stripped; blank lines and lines
    that are not valid UTF-8 are skipped. No address validation is done here.
    """
    def __init__(self, path: str) -> None:
        self.path = path

    def addresses(self) -> list[Address]:
        if not os.path.isfile(self.path):
            raise SourceUnavailable(f"Address file not found: {self.path}", path=self.path)
        out: list[Address] = []
        try:
            with open(self.path, "rb") as f:
                for raw in f:
                    try:
                        line = raw.decode("utf-8").strip()
                    except UnicodeDecodeError:
                        continue
                    if line:
                        out.append(Address(line))
        except OSError as e:
            raise SourceUnavailable(f"Failed to read address file: {self.path}",
                                    path=self.path, original_error=e) from e
        return out
