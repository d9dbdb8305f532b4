"""Append-only JSONL storage.

Every store in this package journals full-record snapshots here; the latest
snapshot per key wins. Writes take an exclusive file lock, and exclusive()
holds a separate lock across a read-check-append sequence so uniqueness checks
and status transitions stay atomic across processes on one host.

Stores keep the byte offset they have consumed and call read_since() to pick
up only what other instances appended after it.
"""
import fcntl
import json
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


class LedgerStore:
    """Append-only record storage backed by JSONL file.

    Attributes:
        path: Path to the JSONL file
    """

    def __init__(self, path: str = "morp.jsonl"):
        """Initialize LedgerStore.

        Args:
            path: Path to JSONL file for record storage
        """
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self.path.touch()
        self.lock_path = self.path.with_name(self.path.name + ".lock")

    def append(self, record: dict) -> None:
        """Append record to ledger under an exclusive lock."""
        line = json.dumps(record, sort_keys=True) + "\n"

        with open(self.path, "a") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                f.write(line)
                f.flush()
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)

    def read_since(self, offset: int = 0) -> tuple[list[dict], int]:
        """Records after byte offset, and the offset to resume from.

        A trailing line without its newline is still being written; it is
        left for the next call.
        """
        records = []
        if not self.path.exists():
            return records, offset

        with open(self.path, "rb") as f:
            f.seek(offset)
            for raw in f:
                if not raw.endswith(b"\n"):
                    break
                offset += len(raw)
                line = raw.strip()
                if line:
                    records.append(json.loads(line))

        return records, offset

    def read_all(self) -> list[dict]:
        """Read all records from ledger."""
        records, _ = self.read_since(0)
        return records

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        """Hold the ledger's cross-process lock for a read-check-append."""
        with open(self.lock_path, "a") as lock:
            fcntl.flock(lock.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock.fileno(), fcntl.LOCK_UN)


def replay_latest(ledger: LedgerStore, key: str) -> dict[str, dict]:
    """Latest snapshot per record key, in ledger order."""
    latest = {}
    for record in ledger.read_all():
        if key in record:
            latest[record[key]] = record
    return latest
