from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..utils import now_ts_ns, read_jsonl, stable_hash, to_jsonable, write_jsonl_line

REPRO_RETAINED = "REPRO_RETAINED"
REPRO_DISCARDED = "REPRO_DISCARDED"
WORKER_EXITED = "WORKER_EXITED"

_CHAINED_FIELDS = ("ts", "type", "payload", "prev_hash")


def _digest(entry: Dict[str, Any]) -> str:
    return stable_hash({name: entry.get(name) for name in _CHAINED_FIELDS})


class Ledger:
    def __init__(self, path: Path) -> None:
        self.path = path
        entries = read_jsonl(path)
        self._head = entries[-1].get("hash", "") if entries else ""

    @property
    def head(self) -> str:
        return self._head

    def append(self, event_type: str, payload: Dict[str, Any]) -> str:
        entry: Dict[str, Any] = {
            "ts": now_ts_ns(),
            "type": event_type,
            "payload": to_jsonable(payload),
            "prev_hash": self._head,
        }
        entry["hash"] = _digest(entry)
        write_jsonl_line(self.path, entry)
        self._head = entry["hash"]
        return self._head

    def events(self, event_type: Optional[str] = None) -> List[Dict[str, Any]]:
        return [
            entry
            for entry in read_jsonl(self.path)
            if event_type is None or entry.get("type") == event_type
        ]

    @staticmethod
    def verify_chain(path: Path) -> Tuple[bool, str]:
        prev_hash = ""
        for idx, entry in enumerate(read_jsonl(path)):
            if entry.get("prev_hash") != prev_hash:
                return False, f"prev_hash mismatch at {idx}"
            if _digest(entry) != entry.get("hash", ""):
                return False, f"hash mismatch at {idx}"
            prev_hash = entry["hash"]
        return True, "ok"
