"""Identity and derived field computation for calendar entries."""
import hashlib
from datetime import timedelta
from typing import Optional, Tuple
from urllib.parse import quote

from processor.field_extractor import ISO_FORMAT, parse_iso_utc
from processor.models import DerivedFields, ExtractedFields

UID_PREFIX = 'luma_ics:'
URL_PREFIX = 'luma_ics_url:'

MAX_VENUE_LENGTH = 120
MAX_ADDRESS_LENGTH = 200
MAX_SUMMARY_LENGTH = 140
ELLIPSIS = '...'

THUMBNAIL_TEMPLATE = 'https://picsum.photos/seed/{seed}/1024/1024'

DEFAULT_DURATION = timedelta(hours=2)


def stable_source_id(
    uid: Optional[str],
    url: Optional[str],
    title: Optional[str] = None,
    start_at: Optional[str] = None
) -> str:
    """
    Create a stable dedupe key for an entry.
    
    The UID is preferred, then the event URL. Entries with neither are keyed
    on a hash of title + start time so re-ingesting them stays idempotent.
    
    Args:
        uid: Calendar UID
        url: Event URL
        title: Event title
        start_at: ISO 8601 start time
    
    Returns:
        Dedupe key string
    """
    if uid:
        return f"{UID_PREFIX}{uid}"
    if url:
        return f"{URL_PREFIX}{url}"
    
    composite = f"{title or ''}|{start_at or ''}"
    digest = hashlib.sha256(composite.encode('utf-8')).hexdigest()
    return f"{UID_PREFIX}{digest}"


def _split_location(parts: list, separator: str) -> Tuple[Optional[str], Optional[str]]:
    venue = parts[0].strip()[:MAX_VENUE_LENGTH]
    address = separator.join(parts[1:]).strip()[:MAX_ADDRESS_LENGTH]
    return venue or None, address or None


def parse_location(location: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Split a free-text location into venue name and address.
    
    Handles "Venue - Address" and "Venue, Address"; anything else is
    treated as a venue name only.
    
    Args:
        location: Location string from the calendar entry
    
    Returns:
        Tuple of (venue_name, address)
    """
    if not location:
        return None, None
    
    for separator in (' - ', ','):
        parts = location.split(separator)
        if len(parts) >= 2:
            return _split_location(parts, separator)
    
    return location.strip()[:MAX_VENUE_LENGTH] or None, None


def summarize(description: str) -> str:
    """Truncate a description to a short summary with an ellipsis marker."""
    if len(description) > MAX_SUMMARY_LENGTH:
        keep = MAX_SUMMARY_LENGTH - len(ELLIPSIS)
        return f"{description[:keep]}{ELLIPSIS}"
    return description


def default_end_time(
    start_at: Optional[str],
    end_at: Optional[str],
    duration: timedelta = DEFAULT_DURATION
) -> Optional[str]:
    """
    Default a missing end time to start + duration.
    
    Args:
        start_at: ISO 8601 start time or None
        end_at: ISO 8601 end time or None
        duration: Assumed event length
    
    Returns:
        End time, or None when neither start nor end is known
    """
    if end_at or not start_at:
        return end_at
    return (parse_iso_utc(start_at) + duration).strftime(ISO_FORMAT)


def thumbnail_url(dedupe_key: str) -> str:
    # Matches encodeURIComponent: only unreserved marks stay literal
    return THUMBNAIL_TEMPLATE.format(seed=quote(dedupe_key, safe="!*'()"))


def derive(
    fields: ExtractedFields,
    duration: timedelta = DEFAULT_DURATION
) -> DerivedFields:
    """
    Compute identity and derived values for one entry.
    
    Args:
        fields: Extracted entry fields
        duration: Assumed event length when no end time is known
    
    Returns:
        DerivedFields object
    """
    dedupe_key = stable_source_id(
        fields.uid, fields.event_url, fields.title, fields.start_at
    )
    venue_name, address = parse_location(fields.location)
    
    return DerivedFields(
        dedupe_key=dedupe_key,
        source_event_id=fields.uid or dedupe_key,
        venue_name=venue_name,
        address=address,
        summary=summarize(fields.description),
        end_at=default_end_time(fields.start_at, fields.end_at, duration),
        thumbnail=thumbnail_url(dedupe_key),
    )
