"""
DynamoDB-backed HistoryStore for the conversation bot.

Each write carries a forward-looking expiry timestamp so the table's
TTL policy removes stale transcripts.
"""

import asyncio
import json
import logging
import time
from typing import Any, Dict, List, Optional

import boto3

from .messages import Message, Transcript

logger = logging.getLogger(__name__)


class DynamoDBHistoryStore:
    """
    Transcript store backed by a DynamoDB table.

    Item layout:
        id        (S)  conversation identity
        messages  (L)  list of {id: N index, message: S JSON-encoded entry}
        timestamp (N)  epoch seconds after which the item may be expired
    """

    def __init__(
        self,
        table_name: str,
        ttl_minutes: int = 5,
        region: Optional[str] = None,
        client: Optional[Any] = None,
    ):
        """
        Initialize DynamoDB store.

        Args:
            table_name: DynamoDB table name
            ttl_minutes: Minutes until a written transcript expires
            region: AWS region
            client: Preconfigured boto3 DynamoDB client
        """
        self.table_name = table_name
        self.ttl_minutes = ttl_minutes
        self._client = client or boto3.client("dynamodb", region_name=region)
        logger.info(f"DynamoDB history store initialized: {table_name} (ttl {ttl_minutes}m)")

    async def get(self, conversation_id: str) -> Transcript:
        response = await asyncio.to_thread(
            self._client.get_item,
            TableName=self.table_name,
            Key={"id": {"S": conversation_id}},
            ConsistentRead=True,
        )
        item = response.get("Item")
        if not item:
            return []
        return self._decode_messages(item.get("messages", {}).get("L", []))

    async def set(self, conversation_id: str, transcript: Transcript) -> None:
        expires_at = int(time.time()) + self.ttl_minutes * 60
        await asyncio.to_thread(
            self._client.put_item,
            TableName=self.table_name,
            Item={
                "id": {"S": conversation_id},
                "messages": {"L": self._encode_messages(transcript)},
                "timestamp": {"N": str(expires_at)},
            },
        )

    async def delete(self, conversation_id: str) -> None:
        await asyncio.to_thread(
            self._client.delete_item,
            TableName=self.table_name,
            Key={"id": {"S": conversation_id}},
        )

    @staticmethod
    def _encode_messages(transcript: Transcript) -> List[Dict[str, Any]]:
        return [
            {
                "M": {
                    "id": {"N": str(index)},
                    "message": {"S": json.dumps(message.to_dict(), ensure_ascii=False)},
                }
            }
            for index, message in enumerate(transcript)
        ]

    @staticmethod
    def _decode_messages(items: List[Dict[str, Any]]) -> Transcript:
        transcript = []
        for entry in items:
            raw = entry.get("M", {}).get("message", {}).get("S")
            if not raw:
                # Entries without a payload are skipped
                continue
            transcript.append(Message.from_dict(json.loads(raw)))
        return transcript
