from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional

from ..ledger.ledger import REPRO_DISCARDED, REPRO_RETAINED, Ledger
from ..schemas import ReproRecord
from ..utils import ensure_dir, hash_text, read_text_or_none, write_text

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIX = ".md"
LEDGER_NAME = "ledger.jsonl"


class ReproductionArchive:
    def __init__(self, root: Path, ledger: Optional[Ledger] = None) -> None:
        self.root = root
        ensure_dir(root)
        self.ledger = ledger if ledger is not None else Ledger(root / LEDGER_NAME)
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def path_for(self, category: str) -> Path:
        return self.root / f"{category}{DOCUMENT_SUFFIX}"

    def read(self, category: str) -> Optional[str]:
        return read_text_or_none(self.path_for(category))

    async def retain_if_smaller(
        self, category: str, document: str, trial_id: str = ""
    ) -> ReproRecord:
        path = self.path_for(category)
        async with self._locks[category]:
            existing = await asyncio.to_thread(read_text_or_none, path)
            retained = existing is None or len(existing) >= len(document)
            if retained:
                await asyncio.to_thread(write_text, path, document)
        record = ReproRecord(
            category=category,
            path=str(path),
            content_hash=hash_text(document),
            bytes=len(document.encode("utf-8")),
            chars=len(document),
            trial_id=trial_id,
            retained=retained,
            previous_chars=len(existing) if existing is not None else None,
        )
        self.ledger.append(
            REPRO_RETAINED if retained else REPRO_DISCARDED, record.model_dump()
        )
        if retained:
            logger.info(
                "retained %s reproduction from %s (%d chars)", category, trial_id, len(document)
            )
        return record

    def entries(self) -> List[ReproRecord]:
        records: List[ReproRecord] = []
        for path in sorted(self.root.glob(f"*{DOCUMENT_SUFFIX}")):
            text = read_text_or_none(path)
            if text is None:
                continue
            records.append(
                ReproRecord(
                    category=path.stem,
                    path=str(path),
                    content_hash=hash_text(text),
                    bytes=len(text.encode("utf-8")),
                    chars=len(text),
                    trial_id="",
                    retained=True,
                )
            )
        return records
