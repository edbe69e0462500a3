"""Shared fixtures for ingestion tests."""
import boto3
import pytest
from moto import mock_aws

from processor.models import IngestConfig
from storage.dynamodb_manager import DynamoDBManager

FEED_URL = 'https://api.lu.ma/ics/get?entity=discover&id=test'
TABLE_NAME = 'test-luma-events'

SAMPLE_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Luma//Discover//EN
BEGIN:VTIMEZONE
TZID:America/Los_Angeles
BEGIN:STANDARD
DTSTART:19701101T020000
TZOFFSETFROM:-0700
TZOFFSETTO:-0800
TZNAME:PST
END:STANDARD
END:VTIMEZONE
BEGIN:VEVENT
UID:abc123
SUMMARY:AI Builders Meetup
DESCRIPTION:Demos and drinks with local builders
LOCATION:The Venue - 123 Main St\\, City
DTSTART:20240101T100000Z
DTEND:20240101T120000Z
URL:https://lu.ma/e/abc123
END:VEVENT
BEGIN:VEVENT
UID:def456
SUMMARY:Founder Breakfast
LOCATION:JustAPlace
DTSTART:20240102T170000Z
END:VEVENT
BEGIN:VEVENT
SUMMARY:Open Studio
DTSTART:20240103T180000Z
URL:https://example.com/e/42
END:VEVENT
END:VCALENDAR
"""


class StubEntry:
    """Calendar entry backed by a plain dict of property values."""

    def __init__(self, **properties):
        self.properties = {
            name.upper().replace('_', '-'): value
            for name, value in properties.items()
        }

    def text(self, name):
        value = self.properties.get(name)
        return None if value is None else str(value)

    def value(self, name):
        return self.properties.get(name)


class BrokenEntry(StubEntry):
    """Entry whose properties cannot be read."""

    def text(self, name):
        raise ValueError(f"Unreadable property {name}")


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake AWS credentials so boto3 never reaches a real account."""
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')


@pytest.fixture
def dynamodb_table(aws_credentials):
    """Create a mock events table keyed on provider + source_event_id."""
    with mock_aws():
        dynamodb = boto3.resource('dynamodb', region_name='us-east-1')

        table = dynamodb.create_table(
            TableName=TABLE_NAME,
            KeySchema=[
                {'AttributeName': 'provider', 'KeyType': 'HASH'},
                {'AttributeName': 'source_event_id', 'KeyType': 'RANGE'}
            ],
            AttributeDefinitions=[
                {'AttributeName': 'provider', 'AttributeType': 'S'},
                {'AttributeName': 'source_event_id', 'AttributeType': 'S'}
            ],
            BillingMode='PAY_PER_REQUEST'
        )

        yield table


@pytest.fixture
def dynamodb_manager(dynamodb_table):
    """Create DynamoDBManager instance with mock table."""
    return DynamoDBManager(TABLE_NAME, region_name='us-east-1')


@pytest.fixture
def ingest_config():
    return IngestConfig(feed_url=FEED_URL)


@pytest.fixture
def sample_ics():
    return SAMPLE_ICS.encode('utf-8')
