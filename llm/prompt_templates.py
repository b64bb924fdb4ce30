"""
Prompt Templates for the conversation bot.

Default system prompt generator and end-of-conversation detector. Both are
plain callables so deployments can substitute their own.
"""

import json
import logging
import re
from datetime import date
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

JSON_RESULT_PATTERN = re.compile(r"^\{.*\}$", re.DOTALL)


class PromptTemplates:
    """Manages the booking assistant prompt."""

    BOOKING_SYSTEM_PROMPT = """Act as a restaurant booking assistant.
You answer only to booking requests, in a short manner.
You succeed if you book or cancel a booking.
Requests are made for name "{username}". If the name is "anonymous" or empty, you must ask for whom to book or cancel.
You always address me by name.
Today is {weekday}, {today}.
Bookings can be made only for open days between open hours. E.g. I can not book for 9pm since we close at 9pm.
Open days are Thursday, Friday, Saturday and Sunday.
Open hours: Thursday and Friday from 3pm to 9pm, Saturday and Sunday from 11am to 9pm.
For checking available tables, I must provide a date in format "dd.mm".
For cancellation, I must provide a date in format "dd.mm".
For booking I must provide a date in format "dd.mm", number of people (up to 6), and a time within working hours for the given date.
If I miss something, you should ask for it.
You must always ask for my confirmation before booking or cancelling.
After confirmation, respond with just a JSON object on a single line, no additional text. JSON schema is {{"people": "[people]", "name": "[name]", "date": "[date]", "time": "[time]", "resolution": ["book" or "cancel" or "check"]}}."""

    @classmethod
    def booking_system_prompt(cls, username: str, today: Optional[date] = None) -> str:
        """
        Build the booking assistant system prompt.

        Args:
            username: Sanitized display name of the user
            today: Date to embed (defaults to the current date)

        Returns:
            Formatted system prompt
        """
        today = today or date.today()
        return cls.BOOKING_SYSTEM_PROMPT.format(
            username=username,
            weekday=today.strftime("%A"),
            today=today.strftime("%d.%m.%Y"),
        )


def detect_json_result(text: str) -> Optional[Dict[str, Any]]:
    """
    End-of-conversation detector: a reply consisting of one JSON object closes the conversation.

    Returns the parsed object, or None to continue the conversation.
    """
    candidate = (text or "").strip()
    if not JSON_RESULT_PATTERN.match(candidate):
        return None
    try:
        result = json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.warning(f"Reply looked like a result but is not valid JSON: {e}")
        return None
    return result if isinstance(result, dict) else None
