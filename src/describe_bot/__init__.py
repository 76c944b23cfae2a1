"""describe-bot - A Slack bot that reads the links it is mentioned with and explains them.

Mention the bot with one or more URLs and it fetches each page and posts an
LLM summary. Mention it inside a thread and it answers the question using the
whole thread, including every page linked in it.

Components:
- main_server: FastAPI webhook (signature check, handshake, acknowledgment)
- pipeline: mention dispatcher, thread context aggregation, background runner
- slack: Slack API integration and the editable progress message
- retrieval: URL extraction and page fetching
- llm: OpenAI summarizer and prompts
"""
