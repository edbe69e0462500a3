"""AWS Lambda handler for Luma ICS event ingestion."""
import json
import logging
import os
import sys
import time
from typing import Any, Dict, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import requests

from feed.luma_feed import FeedParseError, LumaFeedClient
from processor.event_processor import EventProcessor
from processor.models import IngestConfig
from processor.reconciler import Reconciler
from storage.dynamodb_manager import DynamoDBManager


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""
    
    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }
        
        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)
        
        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.
    
    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()
    
    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)
    
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def load_config(environ: Mapping[str, str]) -> Tuple[IngestConfig, Dict[str, Any]]:
    """
    Read ingestion configuration from environment variables.
    
    Args:
        environ: Environment mapping (usually os.environ)
    
    Returns:
        Tuple of (IngestConfig, runtime settings dict)
    
    Raises:
        ConfigurationError: If LUMA_ICS_URL is missing or a value is invalid
    """
    feed_url = environ.get('LUMA_ICS_URL')
    if not feed_url:
        raise ConfigurationError("Missing env vars. Need LUMA_ICS_URL.")
    
    timezone_name = environ.get('DEFAULT_TZ', 'America/Los_Angeles')
    try:
        ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(f"Unknown DEFAULT_TZ: {timezone_name}") from e
    
    timeout: Optional[int] = None
    if environ.get('TIMEOUT_SECONDS'):
        try:
            timeout = int(environ['TIMEOUT_SECONDS'])
        except ValueError as e:
            raise ConfigurationError(
                f"TIMEOUT_SECONDS must be an integer: {environ['TIMEOUT_SECONDS']}"
            ) from e
    
    config = IngestConfig(
        feed_url=feed_url,
        city=environ.get('DEFAULT_CITY', 'San Francisco'),
        timezone=timezone_name
    )
    settings = {
        'table_name': environ.get('TABLE_NAME', 'luma-events'),
        'region_name': environ.get('AWS_REGION'),
        'timeout_seconds': timeout
    }
    return config, settings


def _error_response(message: str, error: Exception, start_time: float) -> Dict[str, Any]:
    duration = time.time() - start_time
    return {
        'statusCode': 500,
        'body': json.dumps({
            'message': message,
            'error': str(error),
            'error_type': type(error).__name__,
            'duration_seconds': round(duration, 2)
        })
    }


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler function for Luma ICS ingestion.
    
    Args:
        event: EventBridge event payload
        context: Lambda context object
    
    Returns:
        Response dict with statusCode and summary statistics
    """
    setup_logging(os.environ.get('LOG_LEVEL', 'INFO'))
    logger = logging.getLogger(__name__)
    start_time = time.time()
    
    try:
        config, settings = load_config(os.environ)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}", exc_info=True)
        return _error_response('Invalid configuration', e, start_time)
    
    logger.info(
        f"Lambda execution started",
        extra={
            'table_name': settings['table_name'],
            'feed_url': config.feed_url,
            'timeout_seconds': settings['timeout_seconds']
        }
    )
    
    try:
        feed_client = LumaFeedClient(
            config.feed_url, timeout=settings['timeout_seconds']
        )
        processor = EventProcessor(config)
        dynamodb_manager = DynamoDBManager(
            table_name=settings['table_name'],
            region_name=settings['region_name']
        )
        reconciler = Reconciler(processor, dynamodb_manager)
        
        # Fetch and parse are fatal for the whole run
        try:
            logger.info("Fetching events from calendar feed")
            entries = feed_client.fetch_entries()
        except requests.RequestException as e:
            logger.error(
                f"Failed to fetch calendar feed: {str(e)}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )
            return _error_response('Failed to fetch calendar feed', e, start_time)
        except FeedParseError as e:
            logger.error(
                f"Failed to parse calendar feed: {str(e)}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )
            return _error_response('Failed to parse calendar feed', e, start_time)
        
        logger.info("Upserting events into DynamoDB")
        result = reconciler.reconcile(entries)
        
        duration = time.time() - start_time
        
        logger.info(
            f"Lambda execution completed",
            extra={
                'duration_seconds': round(duration, 2),
                'events_upserted': result.succeeded,
                'events_failed': result.failed
            }
        )
        
        # Per-entry failures do not fail the run
        return {
            'statusCode': 200,
            'body': json.dumps({
                'message': 'Ingestion completed',
                'statistics': {
                    'entries_parsed': len(entries),
                    'events_upserted': result.succeeded,
                    'events_failed': result.failed,
                    'duration_seconds': round(duration, 2)
                },
                'errors': result.errors
            })
        }
    
    except Exception as e:
        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        return _error_response('Ingestion failed', e, start_time)


def main() -> int:
    """Run one ingestion outside Lambda and return a process exit status."""
    response = lambda_handler({}, None)
    return 0 if response['statusCode'] == 200 else 1


if __name__ == '__main__':
    sys.exit(main())
