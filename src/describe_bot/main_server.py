"""HTTP entry point: Slack Events API webhook and health check.

Usage:
    describe-bot
    uvicorn describe_bot.main_server:app --port 8080
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import uvicorn
from fastapi import BackgroundTasks, FastAPI, HTTPException, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from .config import Settings, get_settings
from .errors import MalformedEvent
from .llm.client import OpenAISummarizer
from .log import get_logger, setup_logging
from .pipeline.dedup import EventDeduplicator
from .pipeline.dispatcher import MentionDispatcher
from .pipeline.runner import MentionTaskRunner
from .retrieval.factory import create_fetcher
from .schemas.events import HandshakeChallenge, Mention
from .slack.client import SlackClientWrapper
from .slack.parse import parse_event
from .slack.progress import SlackProgressReporter
from .slack.verify import verify_slack_signature

logger = get_logger("ingest")


@asynccontextmanager
async def build_runner(settings: Settings) -> AsyncIterator[MentionTaskRunner]:
    """Creates the shared clients once and tears them down when the app stops."""
    slack = SlackClientWrapper(settings.SLACK_BOT_TOKEN)
    summarizer = OpenAISummarizer(api_key=settings.OPENAI_API_KEY, model=settings.OPENAI_MODEL)
    async with create_fetcher(settings) as fetcher:
        dispatcher = MentionDispatcher(
            fetcher=fetcher,
            summarizer=summarizer,
            reporter=SlackProgressReporter(slack),
            history=slack,
        )
        runner = MentionTaskRunner(dispatcher, timeout=settings.MENTION_TIMEOUT_SECONDS)
        try:
            yield runner
        finally:
            await runner.shutdown()
            await summarizer.aclose()
            await slack.aclose()


async def schedule_mention(runner: MentionTaskRunner, mention: Mention) -> None:
    # Runs after the response has been sent; submit() only creates the task
    runner.submit(mention)


def create_app(
    runner: Optional[MentionTaskRunner] = None,
    signing_secret: Optional[str] = None,
    signature_max_age: int = 300,
    deduplicator: Optional[EventDeduplicator] = None,
) -> FastAPI:
    """
    Builds the FastAPI app. Without an injected runner, the lifespan wires the
    real Slack, fetcher and OpenAI clients from settings.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.runner is not None:
            yield
            await app.state.runner.shutdown()
            return

        settings = get_settings()
        app.state.signing_secret = settings.SLACK_SIGNING_SECRET
        app.state.signature_max_age = settings.SIGNATURE_MAX_AGE_SECONDS
        app.state.deduplicator = EventDeduplicator(settings.EVENT_DEDUP_CAPACITY)
        async with build_runner(settings) as built:
            app.state.runner = built
            logger.info("Listening for Slack events on /slack/events")
            yield
        app.state.runner = None

    app = FastAPI(lifespan=lifespan)
    app.state.runner = runner
    app.state.signing_secret = signing_secret
    app.state.signature_max_age = signature_max_age
    app.state.deduplicator = deduplicator or EventDeduplicator()

    @app.post("/slack/events")
    async def slack_events(request: Request, background_tasks: BackgroundTasks):
        # 1. Verify Signature
        body = await verify_slack_signature(
            request, app.state.signing_secret, max_age_seconds=app.state.signature_max_age
        )

        # 2. Parse Body
        try:
            event = parse_event(body)
        except MalformedEvent as e:
            logger.error(f"Error parsing event: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        # 3. Handle URL Verification (Handshake)
        if isinstance(event, HandshakeChallenge):
            logger.info("Handled URL verification challenge")
            return PlainTextResponse(event.challenge)

        # 4. Handle app_mention: acknowledge now, process after the response is sent
        if isinstance(event, Mention):
            if app.state.deduplicator.is_duplicate(event.event_id):
                logger.info(f"Duplicate delivery of event {event.event_id}, skipped")
                return {"status": "duplicate"}
            logger.info(
                f"Received app_mention: user {event.user} in channel {event.channel} said {event.text!r}"
            )
            background_tasks.add_task(schedule_mention, app.state.runner, event)
            return {"status": "ok"}

        logger.debug(f"Received unhandled event type: {event.event_type}")
        return {"status": "ignored"}

    @app.get("/healthz", response_class=PlainTextResponse)
    async def healthz():
        return "OK"

    return app


app = create_app()


def main():
    try:
        settings = get_settings()
    except ValidationError as e:
        setup_logging("INFO")
        logger.critical(f"Missing or invalid configuration: {e}")
        raise SystemExit(1)

    setup_logging(settings.LOG_LEVEL)
    logger.info(f"Starting describe-bot Slack server on port {settings.PORT}")
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT, log_config=None)


if __name__ == "__main__":
    main()
