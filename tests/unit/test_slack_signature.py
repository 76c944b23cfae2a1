import hmac
import hashlib
import time

import pytest
from fastapi import HTTPException, Request

from describe_bot.errors import AuthenticationFailure
from describe_bot.slack.verify import compute_signature, verify_signature, verify_slack_signature

SECRET = "test-signing-secret"
BODY = b'{"foo":"bar"}'

def make_request(body: bytes, headers: dict) -> Request:
    scope = {
        "type": "http",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
    }

    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)

def test_compute_signature_matches_slack_scheme():
    """
    WHY: Slack signs "v0:{timestamp}:{body}" with HMAC-SHA256; we must produce the same string.
    HOW: Compute the signature by hand and with compute_signature.
    EXPECTED: Identical "v0=<hex>" strings.
    """
    timestamp = "1700000000"
    expected = "v0=" + hmac.new(
        SECRET.encode("utf-8"),
        f"v0:{timestamp}:{BODY.decode('utf-8')}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    assert compute_signature(SECRET, timestamp, BODY) == expected

def test_verify_signature_accepts_valid():
    """
    WHY: Ensure we accept requests signed correctly with our secret.
    HOW: Sign with a fixed timestamp and pass a matching `now`.
    EXPECTED: No exception.
    """
    timestamp = "1700000000"
    signature = compute_signature(SECRET, timestamp, BODY)
    verify_signature(SECRET, timestamp, signature, BODY, now=1700000100)

@pytest.mark.parametrize(
    "timestamp, signature, message",
    [
        (None, "v0=abc", "missing"),
        ("1700000000", None, "missing"),
        ("yesterday", "v0=abc", "invalid request timestamp"),
        ("1700000000", "v0=invalid_signature", "invalid Slack signature"),
        ("1700000000", "v0=\xe9", "invalid Slack signature"),
    ],
)
def test_verify_signature_rejects(timestamp, signature, message):
    """
    WHY: Reject requests with missing headers, unparseable timestamps or bad (including non-ASCII) signatures.
    HOW: Call verify_signature with each broken input.
    EXPECTED: AuthenticationFailure with a message naming the problem.
    """
    with pytest.raises(AuthenticationFailure) as exc:
        verify_signature(SECRET, timestamp, signature, BODY, now=1700000000)
    assert message in str(exc.value)

def test_verify_signature_rejects_stale_and_future_timestamps():
    """
    WHY: Prevent replay attacks where a captured request is resent later.
    HOW: Correctly signed requests whose timestamp is 10 minutes off in both directions.
    EXPECTED: AuthenticationFailure("request timestamp too old") for both.
    """
    now = 1700000000
    for ts in (now - 600, now + 600):
        signature = compute_signature(SECRET, str(ts), BODY)
        with pytest.raises(AuthenticationFailure, match="too old"):
            verify_signature(SECRET, str(ts), signature, BODY, now=now)

def test_verify_signature_rejects_tampered_body():
    """
    WHY: The signature covers the exact bytes; any change must be detected.
    HOW: Sign one body and verify another.
    EXPECTED: AuthenticationFailure.
    """
    timestamp = "1700000000"
    signature = compute_signature(SECRET, timestamp, BODY)
    with pytest.raises(AuthenticationFailure):
        verify_signature(SECRET, timestamp, signature, b'{"foo":"baz"}', now=1700000000)

@pytest.mark.asyncio
async def test_verify_slack_signature_returns_body():
    """
    WHY: The handler parses the same bytes that were verified.
    HOW: Build a Starlette Request with valid headers.
    EXPECTED: The raw body is returned.
    """
    timestamp = str(int(time.time()))
    request = make_request(BODY, {
        "X-Slack-Request-Timestamp": timestamp,
        "X-Slack-Signature": compute_signature(SECRET, timestamp, BODY),
    })
    assert await verify_slack_signature(request, SECRET) == BODY

@pytest.mark.asyncio
async def test_verify_slack_signature_invalid_is_401():
    """
    WHY: Slack treats any non-2xx as failure; bad signatures must be a clean 401.
    HOW: Send a junk signature, then a stale one.
    EXPECTED: HTTPException with status 401 in both cases.
    """
    timestamp = str(int(time.time()))
    request = make_request(BODY, {
        "X-Slack-Request-Timestamp": timestamp,
        "X-Slack-Signature": "v0=invalid_signature",
    })
    with pytest.raises(HTTPException) as exc:
        await verify_slack_signature(request, SECRET)
    assert exc.value.status_code == 401

    stale = str(int(time.time()) - 600)
    request = make_request(BODY, {
        "X-Slack-Request-Timestamp": stale,
        "X-Slack-Signature": compute_signature(SECRET, stale, BODY),
    })
    with pytest.raises(HTTPException) as exc:
        await verify_slack_signature(request, SECRET)
    assert exc.value.status_code == 401
