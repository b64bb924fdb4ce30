"""
AWS Lambda entry points for the conversation bot.

The proxy handler acknowledges the webhook right away and fires an
asynchronous invocation of the main handler, which does the actual work.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import boto3

from config.settings import configure_logging, get_settings

logger = logging.getLogger(__name__)

LambdaEvent = Dict[str, Any]
LambdaResponse = Dict[str, Any]
MessageProcessor = Callable[[Dict[str, Any], LambdaEvent], Awaitable[Any]]


def _response(status_code: int, body: str) -> LambdaResponse:
    return {"statusCode": status_code, "body": body}


_loop: Optional[asyncio.AbstractEventLoop] = None


def _event_loop() -> asyncio.AbstractEventLoop:
    """Event loop shared by warm invocations of the same container."""
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
    return _loop


def create_main_handler(process: MessageProcessor) -> Callable[[LambdaEvent, Any], LambdaResponse]:
    """
    Create the main handler.

    Args:
        process: Coroutine function called with (message, event)

    Returns:
        Lambda handler that always answers 200 so Telegram does not retry
    """
    def handler(event: LambdaEvent, context: Any = None) -> LambdaResponse:
        logger.info("Start")
        try:
            update = json.loads((event or {}).get("body") or "{}")
        except json.JSONDecodeError as e:
            logger.error(f"Malformed body: {e}")
            return _response(200, "No message")

        message = update.get("message") if isinstance(update, dict) else None
        if not message:
            logger.error("No message")
            return _response(200, "No message")

        try:
            _event_loop().run_until_complete(process(message, event))
        except Exception as e:
            logger.error(f"Processing failed: {e}")
            return _response(200, "Error")

        logger.info("Completed")
        return _response(200, "Completed")

    return handler


def create_proxy_handler(
    main_lambda_name: Optional[str],
    lambda_client: Optional[Any] = None,
) -> Callable[[LambdaEvent, Any], LambdaResponse]:
    """
    Create the proxy handler.

    Args:
        main_lambda_name: Function name of the main handler
        lambda_client: Preconfigured boto3 Lambda client
    """
    def handler(event: LambdaEvent, context: Any = None) -> LambdaResponse:
        logger.info(f"Invoking proxy: {event}")
        if not main_lambda_name:
            logger.error("Lambda name not found")
            return _response(500, "Lambda name not found")

        client = lambda_client or boto3.client("lambda")
        try:
            client.invoke(
                FunctionName=main_lambda_name,
                InvocationType="Event",
                Payload=json.dumps(event),
            )
        except Exception as e:
            logger.error(f"Async invoke of {main_lambda_name} failed: {e}")
            return _response(500, json.dumps({"error": str(e)}))

        return _response(200, "")

    return handler


async def _process_with_services(message: Dict[str, Any], event: LambdaEvent) -> Any:
    from .services import get_services, initialize_services

    initialize_services()
    services = get_services()
    return await services.bot.process_message(message, services.result_callback)


def main_handler(event: LambdaEvent, context: Any = None) -> LambdaResponse:
    """Deployed main function."""
    configure_logging()
    return create_main_handler(_process_with_services)(event, context)


def proxy_handler(event: LambdaEvent, context: Any = None) -> LambdaResponse:
    """Deployed proxy function."""
    configure_logging()
    return create_proxy_handler(get_settings().main_lambda_name)(event, context)
