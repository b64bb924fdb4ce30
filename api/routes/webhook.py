"""
Webhook Routes for the conversation bot.

Receives Telegram updates, acknowledges them immediately and runs the
conversation turn in the background.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException
from pydantic import BaseModel, ConfigDict

from ..services import get_services

logger = logging.getLogger(__name__)

router = APIRouter()


class WebhookUpdate(BaseModel):
    model_config = ConfigDict(extra="allow")

    update_id: Optional[int] = None
    message: Optional[Dict[str, Any]] = None


@router.post("/webhook")
async def telegram_webhook(update: WebhookUpdate, background_tasks: BackgroundTasks):
    """Acknowledge a Telegram update and process its message asynchronously."""
    services = get_services()
    if not services.is_ready:
        raise HTTPException(status_code=503, detail="Bot not initialized")

    if not update.message:
        logger.info(f"Update {update.update_id} carries no message, ignoring")
        return {"status": "ignored"}

    background_tasks.add_task(
        services.bot.process_message,
        update.message,
        services.result_callback,
    )
    return {"status": "Acknowledged"}
