"""DynamoDB manager for event storage operations."""
import logging
from typing import Dict, Optional, Tuple

import boto3
from botocore.exceptions import ClientError

from processor.models import CanonicalEvent

logger = logging.getLogger(__name__)

OPTIONAL_FIELDS = ('start_at', 'end_at', 'venue_name', 'address', 'event_url')
INTEGER_FIELDS = ('capacity', 'attendees')


class DynamoDBManager:
    """Manager for DynamoDB operations."""
    
    def __init__(self, table_name: str, region_name: Optional[str] = None):
        """
        Initialize DynamoDB client and table reference.
        
        The table is keyed on provider (HASH) and source_event_id (RANGE).
        
        Args:
            table_name: Name of the DynamoDB table
            region_name: AWS region (default: boto3 configuration)
        """
        self.table_name = table_name
        self.dynamodb = boto3.resource('dynamodb', region_name=region_name)
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized DynamoDBManager for table: {table_name}")
    
    def upsert_event(self, event: CanonicalEvent) -> None:
        """
        Insert or fully overwrite the record for (provider, source_event_id).
        
        Args:
            event: CanonicalEvent to write
        
        Raises:
            ClientError: If the write is rejected
        """
        try:
            self.table.put_item(Item=self._event_to_item(event))
        except ClientError as e:
            logger.error(
                f"Error upserting event {event.provider}/{event.source_event_id}: {e}"
            )
            raise
    
    def get_event(
        self,
        provider: str,
        source_event_id: str
    ) -> Optional[CanonicalEvent]:
        """
        Fetch a single stored event by its composite key.
        
        Returns:
            CanonicalEvent or None if no such record exists
        """
        response = self.table.get_item(
            Key={'provider': provider, 'source_event_id': source_event_id}
        )
        item = response.get('Item')
        if item is None:
            return None
        return self._item_to_event(item)
    
    def get_all_events(self) -> Dict[Tuple[str, str], CanonicalEvent]:
        """
        Retrieve all events from DynamoDB using Scan operation.
        
        Returns:
            Dictionary mapping (provider, source_event_id) to CanonicalEvent
        """
        logger.info("Scanning DynamoDB table for all events")
        events = {}
        
        try:
            response = self.table.scan()
            items = response.get('Items', [])
            
            # Handle pagination
            while 'LastEvaluatedKey' in response:
                response = self.table.scan(
                    ExclusiveStartKey=response['LastEvaluatedKey']
                )
                items.extend(response.get('Items', []))
            
            for item in items:
                event = self._item_to_event(item)
                if event:
                    events[(event.provider, event.source_event_id)] = event
            
            logger.info(f"Retrieved {len(events)} events from DynamoDB")
            return events
        
        except ClientError as e:
            logger.error(f"Error scanning DynamoDB table: {e}")
            raise
    
    def _item_to_event(self, item: dict) -> Optional[CanonicalEvent]:
        """
        Convert DynamoDB item to CanonicalEvent object.
        
        Args:
            item: DynamoDB item dictionary
        
        Returns:
            CanonicalEvent object or None if conversion fails
        """
        try:
            values = {name: item.get(name) for name in OPTIONAL_FIELDS}
            for name in INTEGER_FIELDS:
                values[name] = int(item[name])
            
            return CanonicalEvent(
                provider=item['provider'],
                source_event_id=item['source_event_id'],
                source_feed_url=item['source_feed_url'],
                source=item['source'],
                title=item['title'],
                description=item['description'],
                long_description=item['long_description'],
                summary=item['summary'],
                timezone=item['timezone'],
                city=item['city'],
                price=item['price'],
                organizer_name=item['organizer_name'],
                status=item['status'],
                featured=bool(item['featured']),
                thumbnail=item['thumbnail'],
                agenda=list(item['agenda']),
                speakers=list(item['speakers']),
                last_verified_at=item['last_verified_at'],
                updated_at=item['updated_at'],
                **values
            )
        except (KeyError, ValueError) as e:
            logger.warning(f"Failed to convert item to CanonicalEvent: {e}")
            return None
    
    def _event_to_item(self, event: CanonicalEvent) -> dict:
        """
        Convert CanonicalEvent object to DynamoDB item.
        
        Args:
            event: CanonicalEvent object
        
        Returns:
            DynamoDB item dictionary
        """
        item = {
            'provider': event.provider,
            'source_event_id': event.source_event_id,
            'source_feed_url': event.source_feed_url,
            'source': event.source,
            'title': event.title,
            'description': event.description,
            'long_description': event.long_description,
            'summary': event.summary,
            'timezone': event.timezone,
            'city': event.city,
            'price': event.price,
            'organizer_name': event.organizer_name,
            'status': event.status,
            'featured': event.featured,
            'thumbnail': event.thumbnail,
            'agenda': list(event.agenda),
            'speakers': list(event.speakers),
            'capacity': event.capacity,
            'attendees': event.attendees,
            'last_verified_at': event.last_verified_at,
            'updated_at': event.updated_at
        }
        
        # Absent optional fields are left out of the item; put_item replaces
        # the whole record so stale values do not survive
        for name in OPTIONAL_FIELDS:
            value = getattr(event, name)
            if value:
                item[name] = value
        
        return item
