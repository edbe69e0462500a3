"""Event processor for normalizing calendar entries into event records."""
import logging
from typing import Optional

from processor.derivation import derive
from processor.field_extractor import FieldExtractor
from processor.models import (
    CanonicalEvent,
    DerivedFields,
    ExtractedFields,
    IngestConfig,
)

logger = logging.getLogger(__name__)


class EventProcessor:
    """Turns calendar entries into canonical event records."""
    
    def __init__(
        self,
        config: IngestConfig,
        extractor: Optional[FieldExtractor] = None
    ):
        """
        Initialize the processor.
        
        Args:
            config: Fixed values applied to every record
            extractor: Field extractor (default: one using config.timezone)
        """
        self.config = config
        self.extractor = extractor or FieldExtractor(config.timezone)
    
    def process_entry(self, entry, verified_at: str) -> CanonicalEvent:
        """
        Extract, derive and assemble one calendar entry.
        
        Args:
            entry: CalendarEntry from the feed
            verified_at: ISO 8601 ingestion timestamp
        
        Returns:
            CanonicalEvent ready to be stored
        """
        fields = self.extractor.extract(entry)
        derived = derive(fields, self.config.default_duration)
        logger.debug(f"Derived dedupe key {derived.dedupe_key}")
        return self.assemble(fields, derived, verified_at)
    
    def assemble(
        self,
        fields: ExtractedFields,
        derived: DerivedFields,
        verified_at: str
    ) -> CanonicalEvent:
        """
        Map extracted and derived fields into the canonical record.
        
        Args:
            fields: Extracted entry fields
            derived: Identity and derived values
            verified_at: ISO 8601 ingestion timestamp
        
        Returns:
            CanonicalEvent object
        """
        config = self.config
        
        return CanonicalEvent(
            provider=config.provider,
            source_event_id=derived.source_event_id,
            source_feed_url=config.feed_url,
            source=config.provider,
            title=fields.title,
            description=fields.description,
            long_description=fields.description,
            summary=derived.summary,
            start_at=fields.start_at,
            end_at=derived.end_at,
            timezone=config.timezone,
            venue_name=derived.venue_name,
            address=derived.address,
            city=config.city,
            price=config.price,
            organizer_name=config.organizer_name,
            status=config.status,
            featured=False,
            event_url=fields.event_url,
            thumbnail=derived.thumbnail,
            agenda=list(config.agenda),
            speakers=list(config.speakers),
            capacity=0,
            attendees=0,
            last_verified_at=verified_at,
            updated_at=verified_at
        )
