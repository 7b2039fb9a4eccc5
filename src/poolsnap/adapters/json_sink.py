from __future__ import annotations
import json, os

from ..domain.errors import SinkFailure
from ..domain.models import PoolSnapshot
from ..domain.value_types import Address
from ..ports.storage import SnapshotSink


class JsonFileSnapshotSink(SnapshotSink):
    """Writes `<root_dir>/<prefix>.<address>.json`, compact, via tmp file + rename."""

    def __init__(self, root_dir: str) -> None:
        self.root = root_dir

    def path_for(self, prefix: str, address: Address) -> str:
        return os.path.join(self.root, f"{prefix}.{address}.json")

    async def write(self, snapshot: PoolSnapshot, address: Address) -> str:
        path = self.path_for(snapshot.prefix, address)
        tmp = path + ".tmp"
        try:
            body = json.dumps(snapshot.to_document(), separators=(",", ":"))
            os.makedirs(self.root, exist_ok=True)
            with open(tmp, "w") as f:
                f.write(body)
            os.replace(tmp, path)
        except (OSError, TypeError, ValueError) as e:
            raise SinkFailure(f"Failed to write {path}", address=address, original_error=e) from e
        return path
