#!/usr/bin/env python3
"""
Supabase (PostgREST) storage for news tables and push subscriptions.

NewsStore is an explicit resource handle: open it at the start of a request
or command, pass it to the operations that need it, and close it at the end.
"""

import logging
from datetime import datetime
from typing import List, Dict, Any, Optional

from supabase import acreate_client, AsyncClient

from core.config import DatabaseConfig
from core.exceptions import ConfigurationError, StorageOperationError
from core.models.news import Category, NewsRecord, PushSubscription

logger = logging.getLogger(__name__)

SUBSCRIPTIONS_TABLE = 'push_subscriptions'


class NewsStore:
    """Async storage operations over the per-category news tables."""

    def __init__(self, client: AsyncClient):
        self.client = client
        self._closed = False

    @classmethod
    async def open(cls, database_config: DatabaseConfig) -> 'NewsStore':
        """
        Create a store connected to Supabase.

        Raises:
            ConfigurationError: If the URL or service key is missing
        """
        if not database_config.supabase_url or not database_config.supabase_service_key:
            raise ConfigurationError("Supabase credentials")

        client = await acreate_client(database_config.supabase_url, database_config.supabase_service_key)
        logger.debug("Supabase store opened")
        return cls(client)

    async def close(self) -> None:
        """Release the underlying HTTP connections."""
        if self._closed:
            return
        self._closed = True
        postgrest = getattr(self.client, 'postgrest', None)
        aclose = getattr(postgrest, 'aclose', None)
        if aclose is not None:
            await aclose()
        logger.debug("Supabase store closed")

    async def __aenter__(self) -> 'NewsStore':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # News Operations

    async def latest(self, category: Category, limit: int = 15) -> List[NewsRecord]:
        """Most recent records of a category, newest first."""
        table = category.table_name
        try:
            result = await (self.client.table(table)
                            .select('*')
                            .order('created_at', desc=True)
                            .limit(limit)
                            .execute())
        except Exception as e:
            logger.error(f"Failed to read latest news from {table}: {e}")
            raise StorageOperationError('select', table, e)

        return [NewsRecord.from_row(category, row) for row in (result.data or [])]

    async def get_by_id(self, category: Category, record_id: str) -> Optional[NewsRecord]:
        table = category.table_name
        try:
            result = await (self.client.table(table)
                            .select('*')
                            .eq('id', record_id)
                            .limit(1)
                            .execute())
        except Exception as e:
            raise StorageOperationError('select', table, e)

        rows = result.data or []
        return NewsRecord.from_row(category, rows[0]) if rows else None

    async def find_by_content(self, category: Category, subject_name: str,
                              headline: str) -> Optional[NewsRecord]:
        """Find the newest record matching subject and headline exactly."""
        table = category.table_name
        try:
            result = await (self.client.table(table)
                            .select('*')
                            .eq('person_name', subject_name)
                            .eq('news_text', headline)
                            .order('created_at', desc=True)
                            .limit(1)
                            .execute())
        except Exception as e:
            raise StorageOperationError('select', table, e)

        rows = result.data or []
        return NewsRecord.from_row(category, rows[0]) if rows else None

    async def insert_rows(self, category: Category, rows: List[Dict[str, Any]]) -> int:
        """
        Insert prepared rows in one request.

        Returns:
            Number of rows inserted

        Raises:
            StorageOperationError: With the backend code and message attached
        """
        if not rows:
            return 0

        table = category.table_name
        try:
            result = await self.client.table(table).insert(rows).execute()
        except Exception as e:
            raise StorageOperationError('insert', table, e)

        inserted = len(result.data) if result.data else len(rows)
        logger.debug(f"Inserted {inserted} rows into {table}")
        return inserted

    async def delete_older_than(self, category: Category, cutoff: datetime) -> int:
        """Delete records created before the cutoff."""
        table = category.table_name
        try:
            result = await (self.client.table(table)
                            .delete()
                            .lt('created_at', cutoff.isoformat())
                            .execute())
        except Exception as e:
            raise StorageOperationError('delete', table, e)

        return len(result.data or [])

    async def delete_by_id(self, category: Category, record_id: str) -> int:
        table = category.table_name
        try:
            result = await self.client.table(table).delete().eq('id', record_id).execute()
        except Exception as e:
            raise StorageOperationError('delete', table, e)

        return len(result.data or [])

    async def update_body(self, category: Category, record_id: str, body: str) -> int:
        """
        Set the long-form body of one record.

        Returns:
            Number of rows updated (0 when the id does not exist)
        """
        table = category.table_name
        try:
            result = await (self.client.table(table)
                            .update({'news_body': body})
                            .eq('id', record_id)
                            .execute())
        except Exception as e:
            raise StorageOperationError('update', table, e)

        return len(result.data or [])

    # Push Subscription Operations

    async def upsert_subscription(self, subscription: PushSubscription) -> None:
        try:
            await (self.client.table(SUBSCRIPTIONS_TABLE)
                   .upsert(subscription.to_row(), on_conflict='endpoint')
                   .execute())
        except Exception as e:
            raise StorageOperationError('upsert', SUBSCRIPTIONS_TABLE, e)

    async def list_subscriptions(self) -> List[PushSubscription]:
        try:
            result = await self.client.table(SUBSCRIPTIONS_TABLE).select('*').execute()
        except Exception as e:
            raise StorageOperationError('select', SUBSCRIPTIONS_TABLE, e)

        return [PushSubscription.from_row(row) for row in (result.data or [])]

    async def delete_subscription(self, endpoint: str) -> None:
        try:
            await self.client.table(SUBSCRIPTIONS_TABLE).delete().eq('endpoint', endpoint).execute()
        except Exception as e:
            raise StorageOperationError('delete', SUBSCRIPTIONS_TABLE, e)
