"""
API Module for the conversation bot.

Transport and deployment collaborators:
- Telegram channel
- FastAPI webhook server and long-polling runner
- AWS Lambda main and proxy handlers
"""
