"""Client for the Luma discover calendar feed."""
import logging
from typing import Any, List, Optional

import requests
from icalendar import Calendar, vBroken

logger = logging.getLogger(__name__)


class FeedParseError(Exception):
    """Raised when the feed body is not well-formed calendar data."""


class CalendarEntry:
    """Read-only view over a single VEVENT component."""
    
    def __init__(self, component):
        self.component = component
    
    def text(self, name: str) -> Optional[str]:
        """
        Return a property as plain text.
        
        Args:
            name: iCalendar property name (e.g. 'SUMMARY')
            
        Returns:
            Property text or None if the property is absent
        """
        prop = self._first(name)
        if prop is None:
            return None
        return str(prop)
    
    def value(self, name: str) -> Any:
        """
        Return the decoded value of a property.
        
        Date, date-time and duration properties are returned as
        date/datetime/timedelta objects; anything else as the raw property.
        Values that failed to parse read as absent.
        
        Args:
            name: iCalendar property name (e.g. 'DTSTART')
            
        Returns:
            Decoded value or None if the property is absent
        """
        prop = self._first(name)
        if prop is None or isinstance(prop, vBroken):
            return None
        return getattr(prop, 'dt', prop)
    
    def _first(self, name: str):
        prop = self.component.get(name)
        if isinstance(prop, list):
            return prop[0] if prop else None
        return prop


class LumaFeedClient:
    """Fetches and parses an ICS feed into calendar entries."""
    
    def __init__(self, feed_url: str, timeout: Optional[int] = None):
        """
        Initialize the feed client.
        
        Args:
            feed_url: URL of the ICS feed
            timeout: HTTP request timeout in seconds (default: no timeout)
        """
        self.feed_url = feed_url
        self.timeout = timeout
    
    def fetch_entries(self) -> List[CalendarEntry]:
        """
        Fetch the feed and return its VEVENT entries in feed order.
        
        Raises:
            requests.RequestException: If the feed cannot be fetched
            FeedParseError: If the feed body is not calendar data
        """
        ics = self.fetch_ics()
        entries = self.parse_entries(ics)
        logger.info(f"Parsed {len(entries)} vevent items")
        return entries
    
    def fetch_ics(self) -> bytes:
        """
        Fetch the raw feed body.
        
        Returns:
            ICS document as bytes
            
        Raises:
            requests.HTTPError: On a non-2xx response
        """
        logger.info(f"Fetching ICS: {self.feed_url}")
        response = requests.get(self.feed_url, timeout=self.timeout)
        response.raise_for_status()
        logger.info(f"Fetched {len(response.content)} bytes of ICS data")
        return response.content
    
    @staticmethod
    def parse_entries(ics) -> List[CalendarEntry]:
        """
        Parse an ICS document and keep only its event components.
        
        Args:
            ics: ICS document as bytes or str
            
        Returns:
            List of CalendarEntry objects
            
        Raises:
            FeedParseError: If the document cannot be parsed
        """
        try:
            calendar = Calendar.from_ical(ics)
        except Exception as e:
            raise FeedParseError(f"Malformed calendar data: {e}") from e
        
        if calendar.name != 'VCALENDAR':
            raise FeedParseError(
                f"Expected a VCALENDAR document, got {calendar.name}"
            )
        
        # Unparseable lines are skipped by icalendar; reject the whole feed
        for component in calendar.walk():
            for prop_name, message in component.errors:
                if prop_name is None:
                    raise FeedParseError(
                        f"Malformed line in {component.name}: {message}"
                    )
        
        return [CalendarEntry(component) for component in calendar.walk('VEVENT')]
