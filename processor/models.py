"""Data models for event ingestion."""
from dataclasses import dataclass, field
from datetime import timedelta
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class IngestConfig:
    """Fixed values applied to every record of one feed."""
    feed_url: str
    provider: str = 'luma'
    city: str = 'San Francisco'
    timezone: str = 'America/Los_Angeles'
    organizer_name: str = 'Luma Discover'
    price: str = 'unknown'
    status: str = 'inbox'
    agenda: Tuple[str, ...] = ('Imported via Luma ICS',)
    speakers: Tuple[str, ...] = ('TBA',)
    default_duration: timedelta = timedelta(hours=2)


@dataclass
class ExtractedFields:
    """Fields pulled out of one calendar entry."""
    uid: Optional[str]
    title: str
    description: str
    location: Optional[str]
    start_at: Optional[str]
    end_at: Optional[str]
    event_url: Optional[str]


@dataclass
class DerivedFields:
    """Identity and derived values computed from extracted fields."""
    dedupe_key: str
    source_event_id: str
    venue_name: Optional[str]
    address: Optional[str]
    summary: str
    end_at: Optional[str]
    thumbnail: str


@dataclass
class CanonicalEvent:
    """Normalized event record as persisted in the store."""
    provider: str
    source_event_id: str
    source_feed_url: str
    source: str
    title: str
    description: str
    long_description: str
    summary: str
    start_at: Optional[str]
    end_at: Optional[str]
    timezone: str
    venue_name: Optional[str]
    address: Optional[str]
    city: str
    price: str
    organizer_name: str
    status: str
    featured: bool
    event_url: Optional[str]
    thumbnail: str
    agenda: List[str]
    speakers: List[str]
    capacity: int
    attendees: int
    last_verified_at: str
    updated_at: str


@dataclass
class EntryResult:
    """Outcome of reconciling a single calendar entry."""
    index: int
    ok: bool
    source_event_id: Optional[str] = None
    error: Optional[str] = None
    
    @classmethod
    def success(cls, index: int, source_event_id: str) -> 'EntryResult':
        return cls(index=index, ok=True, source_event_id=source_event_id)
    
    @classmethod
    def failure(cls, index: int, error: str) -> 'EntryResult':
        return cls(index=index, ok=False, error=error)


@dataclass
class IngestResult:
    """Result of one ingestion run."""
    succeeded: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)
