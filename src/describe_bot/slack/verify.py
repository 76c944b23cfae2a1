import hmac
import hashlib
import time
from typing import Optional
from fastapi import Request, HTTPException
from ..errors import AuthenticationFailure
from ..log import get_logger

logger = get_logger("verify")

def compute_signature(signing_secret: str, timestamp: str, body: bytes) -> str:
    sig_basestring = b"v0:" + timestamp.encode("utf-8") + b":" + body
    return "v0=" + hmac.new(
        signing_secret.encode("utf-8"),
        sig_basestring,
        hashlib.sha256
    ).hexdigest()

def verify_signature(
    signing_secret: str,
    timestamp: Optional[str],
    signature: Optional[str],
    body: bytes,
    max_age_seconds: int = 300,
    now: Optional[float] = None,
) -> None:
    """
    Checks a Slack v0 request signature over the raw body.
    Raises AuthenticationFailure if anything is missing, stale or wrong.
    """
    # 1. Grab headers
    if not timestamp or not signature:
        raise AuthenticationFailure("missing Slack signature headers")

    # 2. Check timestamp freshness (replay attack prevention)
    try:
        ts = int(timestamp)
    except ValueError:
        raise AuthenticationFailure(f"invalid request timestamp {timestamp!r}") from None
    current = time.time() if now is None else now
    if abs(current - ts) > max_age_seconds:
        raise AuthenticationFailure("request timestamp too old")

    # 3. Compare against our own signature
    expected = compute_signature(signing_secret, timestamp, body)
    # Header values may carry arbitrary bytes; compare_digest only accepts ASCII str
    if not hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8", "surrogateescape")):
        raise AuthenticationFailure("invalid Slack signature")

async def verify_slack_signature(request: Request, signing_secret: str, max_age_seconds: int = 300) -> bytes:
    """
    Verifies the X-Slack-Signature header against the raw request body.
    Returns the body so the caller does not have to read it twice.
    Raises HTTPException(401) if invalid.
    """
    body = await request.body()
    try:
        verify_signature(
            signing_secret,
            request.headers.get("X-Slack-Request-Timestamp"),
            request.headers.get("X-Slack-Signature"),
            body,
            max_age_seconds=max_age_seconds,
        )
    except AuthenticationFailure as e:
        logger.warning(f"Rejected request: {e}")
        raise HTTPException(status_code=401, detail=str(e))
    return body
