"""Reconciliation of calendar entries against the event store."""
import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from processor.event_processor import EventProcessor
from processor.field_extractor import to_iso_utc
from processor.models import EntryResult, IngestResult

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Reconciler:
    """Upserts each calendar entry, isolating per-entry failures."""
    
    def __init__(
        self,
        processor: EventProcessor,
        store,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the reconciler.
        
        Args:
            processor: EventProcessor building records from entries
            store: Event store exposing upsert_event()
            clock: Source of the ingestion timestamp (default: UTC now)
        """
        self.processor = processor
        self.store = store
        self.clock = clock or utc_now
    
    def reconcile(self, entries: Iterable) -> IngestResult:
        """
        Upsert all entries in feed order.
        
        Args:
            entries: Calendar entries from the feed
        
        Returns:
            IngestResult with succeeded/failed counts and error messages
        """
        result = IngestResult()
        
        for index, entry in enumerate(entries, start=1):
            entry_result = self.reconcile_entry(entry, index)
            if entry_result.ok:
                result.succeeded += 1
            else:
                result.failed += 1
                result.errors.append(f"entry {index}: {entry_result.error}")
        
        logger.info(f"Done. Upserted={result.succeeded}, Failed={result.failed}")
        return result
    
    def reconcile_entry(self, entry, index: int) -> EntryResult:
        """
        Process and store a single entry.
        
        Any exception raised while building or writing the record is caught
        here and reported as a failed result.
        
        Args:
            entry: Calendar entry
            index: 1-based position of the entry in the feed
        
        Returns:
            EntryResult describing the outcome
        """
        try:
            verified_at = to_iso_utc(self.clock())
            event = self.processor.process_entry(entry, verified_at)
            self.store.upsert_event(event)
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.error(f"Failed event {index}: {message}")
            return EntryResult.failure(index, message)
        
        return EntryResult.success(index, event.source_event_id)
