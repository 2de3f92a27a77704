"""Bulk contact import: parse an upload, preview it, and submit it in batches."""
from __future__ import annotations

import logging
import math
import time
from typing import Iterable, List, Mapping, Optional, Sequence

from ..models import ContactRecord, ImportPreview, ImportSummary, utc_now
from ..pacing import DelayPolicy, Sleeper
from ..storage.base import ContactStore, StorageError
from .csv_parser import parse_rows
from .normalize import ColumnLayout, normalise_row

LOGGER = logging.getLogger(__name__)

PREVIEW_SIZE = 3
DEFAULT_BATCH_SIZE = 50
DEFAULT_BATCH_PAUSE = 0.1


class ContactImporter:
    """Converts uploaded contact files into records and stores them for one owner."""

    def __init__(
        self,
        store: ContactStore,
        *,
        layout: Optional[ColumnLayout] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        delay_policy: Optional[DelayPolicy] = None,
        sleep: Sleeper = time.sleep,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._store = store
        self._layout = layout or ColumnLayout()
        self._batch_size = batch_size
        self._delay_policy = delay_policy or DelayPolicy(DEFAULT_BATCH_PAUSE)
        self._sleep = sleep

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def parse(self, text: str, owner_id: str) -> ImportPreview:
        """Parse CSV ``text`` into records owned by ``owner_id``."""

        return self.parse_rows(parse_rows(text), owner_id)

    def parse_rows(self, rows: Iterable[Mapping[str, object]], owner_id: str) -> ImportPreview:
        """Normalise already-split rows, dropping those without a usable name."""

        created_at = utc_now()
        records: List[ContactRecord] = []
        for row in rows:
            record = normalise_row(row, owner_id=owner_id, layout=self._layout, created_at=created_at)
            if record is not None:
                records.append(record)
        LOGGER.info("Parsed %s contacts for owner %s", len(records), owner_id)
        return ImportPreview(records=records, preview=records[:PREVIEW_SIZE])

    def submit(self, records: Sequence[ContactRecord]) -> ImportSummary:
        """Insert ``records`` in sequential batches with a pause between them.

        A failing batch stops the import; batches already inserted stay in
        storage.
        """

        total = len(records)
        total_batches = math.ceil(total / self._batch_size) if total else 0
        inserted = 0

        for batch_number, start in enumerate(range(0, total, self._batch_size), start=1):
            batch = list(records[start:start + self._batch_size])
            LOGGER.debug("Inserting batch %s/%s (%s contacts)", batch_number, total_batches, len(batch))
            try:
                self._store.insert(batch)
            except StorageError as exc:
                LOGGER.error("Batch %s/%s failed after %s inserted: %s", batch_number, total_batches, inserted, exc)
                raise StorageError(f"Database error: {exc}") from exc
            inserted += len(batch)
            if start + self._batch_size < total:
                self._delay_policy.pause(self._sleep)

        LOGGER.info("Imported %s contacts in %s batches", inserted, total_batches)
        return ImportSummary(total=total, inserted=inserted, batches=total_batches)

    def import_text(self, text: str, owner_id: str) -> ImportSummary:
        """Parse and submit ``text`` in one step."""

        return self.submit(self.parse(text, owner_id).records)


__all__ = ["ContactImporter", "DEFAULT_BATCH_PAUSE", "DEFAULT_BATCH_SIZE", "PREVIEW_SIZE"]
