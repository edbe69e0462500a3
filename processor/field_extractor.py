"""Field extraction from raw calendar entries."""
import logging
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, Callable, List, Optional
from zoneinfo import ZoneInfo

from bs4 import BeautifulSoup

from processor.models import ExtractedFields

logger = logging.getLogger(__name__)

ISO_FORMAT = '%Y-%m-%dT%H:%M:%SZ'

DEFAULT_TITLE = 'Untitled event'
DEFAULT_DESCRIPTION = 'Imported from Luma discover feed.'

Strategy = Callable[[Any], Any]


def to_iso_utc(value: Any, default_tz: tzinfo = timezone.utc) -> Optional[str]:
    """
    Convert a date or datetime to an ISO 8601 UTC string.
    
    Naive datetimes and plain dates are interpreted in default_tz.
    
    Args:
        value: Decoded iCalendar value
        default_tz: Timezone for floating times and all-day dates
    
    Returns:
        ISO 8601 string (YYYY-MM-DDTHH:MM:SSZ) or None if value is not
        a recognized date/time
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=default_tz)
    elif isinstance(value, date):
        value = datetime(value.year, value.month, value.day, tzinfo=default_tz)
    else:
        return None
    return value.astimezone(timezone.utc).strftime(ISO_FORMAT)


def parse_iso_utc(value: str) -> datetime:
    return datetime.strptime(value, ISO_FORMAT).replace(tzinfo=timezone.utc)


def first_present(entry: Any, strategies: List[Strategy]) -> Any:
    """Evaluate strategies in order and return the first non-empty result."""
    for strategy in strategies:
        value = strategy(entry)
        if isinstance(value, str):
            if value.strip():
                return value
        elif value is not None:
            return value
    return None


def text_property(name: str) -> Strategy:
    return lambda entry: entry.text(name)


def html_property(name: str) -> Strategy:
    """Read a property holding HTML and flatten it to plain text."""
    def strategy(entry):
        html = entry.text(name)
        if not html:
            return None
        return BeautifulSoup(html, 'html.parser').get_text(' ', strip=True)
    return strategy


def value_property(name: str) -> Strategy:
    return lambda entry: entry.value(name)


def end_from_duration(entry) -> Any:
    """Compute DTSTART + DURATION when DTEND is missing."""
    start = entry.value('DTSTART')
    duration = entry.value('DURATION')
    if isinstance(start, date) and isinstance(duration, timedelta):
        return start + duration
    return None


def constant(value: Any) -> Strategy:
    return lambda entry: value


def http_url(entry) -> Optional[str]:
    # vUri is a str subclass; anything else is not a usable link
    url = entry.value('URL')
    if isinstance(url, str) and url.startswith(('http://', 'https://')):
        return str(url)
    return None


class FieldExtractor:
    """Pulls event fields out of a calendar entry using fallback chains."""
    
    UID_CHAIN = [text_property('UID')]
    TITLE_CHAIN = [text_property('SUMMARY'), constant(DEFAULT_TITLE)]
    DESCRIPTION_CHAIN = [
        text_property('DESCRIPTION'),
        html_property('X-ALT-DESC'),
        constant(DEFAULT_DESCRIPTION),
    ]
    LOCATION_CHAIN = [text_property('LOCATION')]
    START_CHAIN = [value_property('DTSTART')]
    END_CHAIN = [value_property('DTEND'), end_from_duration]
    URL_CHAIN = [http_url]
    
    def __init__(self, default_timezone: str = 'UTC'):
        """
        Initialize the extractor.
        
        Args:
            default_timezone: IANA zone for floating times and all-day dates
        """
        self.default_tz = ZoneInfo(default_timezone)
    
    def extract(self, entry) -> ExtractedFields:
        """
        Extract all fields from one calendar entry.
        
        Args:
            entry: CalendarEntry (or any object exposing text()/value())
        
        Returns:
            ExtractedFields with placeholders applied to title/description
        """
        start_at = to_iso_utc(
            first_present(entry, self.START_CHAIN), self.default_tz
        )
        end_at = to_iso_utc(
            first_present(entry, self.END_CHAIN), self.default_tz
        )
        if start_at is None:
            logger.debug("Calendar entry has no parseable start time")
        
        return ExtractedFields(
            uid=first_present(entry, self.UID_CHAIN),
            title=first_present(entry, self.TITLE_CHAIN),
            description=first_present(entry, self.DESCRIPTION_CHAIN),
            location=first_present(entry, self.LOCATION_CHAIN),
            start_at=start_at,
            end_at=end_at,
            event_url=first_present(entry, self.URL_CHAIN),
        )
