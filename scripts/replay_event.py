"""Send a signed app_mention event to a locally running describe-bot.

Usage:
    python scripts/replay_event.py --channel C12345 --text "<@UBOT> https://example.com"
    python scripts/replay_event.py --channel C12345 --thread-ts 1700000000.000100 --text "what changed?"

Requires SLACK_SIGNING_SECRET (same as the server) in the environment or .env.
"""

import argparse
import asyncio
import json
import time
import uuid

import httpx
from dotenv import load_dotenv

from describe_bot.config import get_settings
from describe_bot.slack.verify import compute_signature

load_dotenv()

def build_payload(channel: str, text: str, thread_ts: str = None) -> dict:
    ts = f"{time.time():.6f}"
    event = {
        "type": "app_mention",
        "channel": channel,
        "user": "U12345",
        "text": text,
        "ts": ts,
        "event_ts": ts,
    }
    if thread_ts:
        event["thread_ts"] = thread_ts
    return {
        "type": "event_callback",
        "event_id": f"Ev{uuid.uuid4().hex[:10].upper()}",
        "event": event,
    }

async def send_event(url: str, payload: dict):
    settings = get_settings()
    timestamp = str(int(time.time()))
    body = json.dumps(payload).encode("utf-8")
    headers = {
        "Content-Type": "application/json",
        "X-Slack-Request-Timestamp": timestamp,
        "X-Slack-Signature": compute_signature(settings.SLACK_SIGNING_SECRET, timestamp, body),
    }

    async with httpx.AsyncClient() as client:
        print(f"Sending event to {url}...")
        resp = await client.post(url, content=body, headers=headers)
        print(f"Status: {resp.status_code}")
        print(f"Response: {resp.text}")

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Replay a signed app_mention event")
    parser.add_argument("--url", default="http://localhost:8080/slack/events")
    parser.add_argument("--channel", required=True)
    parser.add_argument("--text", default="<@UBOT> https://example.com")
    parser.add_argument("--thread-ts", default=None)
    args = parser.parse_args()

    asyncio.run(send_event(args.url, build_payload(args.channel, args.text, args.thread_ts)))
