"""Unit tests for EventProcessor."""
from datetime import datetime, timezone

from conftest import FEED_URL, StubEntry
from feed.luma_feed import LumaFeedClient
from processor.event_processor import EventProcessor
from processor.models import IngestConfig

VERIFIED_AT = '2024-06-01T08:00:00Z'


class TestEventProcessor:
    """Test cases for EventProcessor class."""
    
    def test_process_entry_builds_canonical_record(self, ingest_config, sample_ics):
        """Test a full entry maps onto every canonical field."""
        processor = EventProcessor(ingest_config)
        entry = LumaFeedClient.parse_entries(sample_ics)[0]
        
        event = processor.process_entry(entry, VERIFIED_AT)
        
        assert event.provider == 'luma'
        assert event.source == 'luma'
        assert event.source_event_id == 'abc123'
        assert event.source_feed_url == FEED_URL
        assert event.title == 'AI Builders Meetup'
        assert event.description == 'Demos and drinks with local builders'
        assert event.long_description == event.description
        assert event.summary == event.description
        assert event.start_at == '2024-01-01T10:00:00Z'
        assert event.end_at == '2024-01-01T12:00:00Z'
        assert event.timezone == 'America/Los_Angeles'
        assert event.venue_name == 'The Venue'
        assert event.address == '123 Main St, City'
        assert event.city == 'San Francisco'
        assert event.price == 'unknown'
        assert event.organizer_name == 'Luma Discover'
        assert event.status == 'inbox'
        assert event.featured is False
        assert event.event_url == 'https://lu.ma/e/abc123'
        assert event.thumbnail == 'https://picsum.photos/seed/luma_ics%3Aabc123/1024/1024'
        assert event.agenda == ['Imported via Luma ICS']
        assert event.speakers == ['TBA']
        assert event.capacity == 0
        assert event.attendees == 0
        assert event.last_verified_at == VERIFIED_AT
        assert event.updated_at == VERIFIED_AT
    
    def test_process_entry_defaults_end_time(self, ingest_config):
        """Test a missing end time resolves to start + 2 hours."""
        processor = EventProcessor(ingest_config)
        entry = StubEntry(
            uid='e1', dtstart=datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
        )
        
        event = processor.process_entry(entry, VERIFIED_AT)
        
        assert event.start_at == '2024-01-01T10:00:00Z'
        assert event.end_at == '2024-01-01T12:00:00Z'
    
    def test_process_entry_without_uid_uses_url_key(self, ingest_config, sample_ics):
        """Test the URL-derived key is persisted when there is no UID."""
        processor = EventProcessor(ingest_config)
        entry = LumaFeedClient.parse_entries(sample_ics)[2]
        
        event = processor.process_entry(entry, VERIFIED_AT)
        
        assert event.source_event_id == 'luma_ics_url:https://example.com/e/42'
        assert event.description == 'Imported from Luma discover feed.'
        assert event.venue_name is None
        assert event.address is None
    
    def test_config_values_applied(self):
        """Test configured city and timezone override the defaults."""
        config = IngestConfig(
            feed_url='https://example.com/feed.ics',
            city='Oakland',
            timezone='America/New_York'
        )
        processor = EventProcessor(config)
        
        event = processor.process_entry(StubEntry(uid='x1', summary='Talk'), VERIFIED_AT)
        
        assert event.city == 'Oakland'
        assert event.timezone == 'America/New_York'
        assert event.source_feed_url == 'https://example.com/feed.ics'
        assert event.start_at is None
        assert event.end_at is None
    
    def test_agenda_is_a_fresh_list(self, ingest_config):
        """Test records do not share mutable placeholder lists."""
        processor = EventProcessor(ingest_config)
        
        first = processor.process_entry(StubEntry(uid='a'), VERIFIED_AT)
        second = processor.process_entry(StubEntry(uid='b'), VERIFIED_AT)
        first.agenda.append('extra')
        
        assert second.agenda == ['Imported via Luma ICS']
