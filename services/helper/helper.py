import hashlib
import hmac
import logging
import traceback
from datetime import datetime
from functools import cache

import sentry_sdk
from dateutil.parser import isoparse

from constants import HMAC_PREFIX, ErrorDetails

logger = logging.getLogger(__name__)


def get_hmac_message(
    twitch_message_id: str, twitch_message_timestamp: str, body: bytes
) -> bytes:
    return (
        twitch_message_id.encode("utf-8")
        + twitch_message_timestamp.encode("utf-8")
        + body
    )


@sentry_sdk.trace()
def get_hmac(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_message(hmac_str: str, verify_signature: str) -> bool:
    try:
        return hmac.compare_digest(
            hmac_str.encode("ascii"), verify_signature.encode("ascii")
        )
    except UnicodeEncodeError:
        return False


@sentry_sdk.trace()
def verify_signature(
    message_id: str,
    timestamp: str,
    raw_body: bytes,
    provided_signature: str,
    secret: str,
) -> bool:
    """
    Check an EventSub signature header against the HMAC-SHA256 of
    message id + timestamp + raw body. Any missing piece is a mismatch.
    """
    if not (message_id and timestamp and provided_signature and secret):
        return False
    message = get_hmac_message(message_id, timestamp, raw_body)
    expected = HMAC_PREFIX + get_hmac(secret, message)
    return verify_message(expected, provided_signature)


@cache
def parse_rfc3339(date_str: str) -> datetime:
    """
    Parse an RFC3339 / ISO-8601 timestamp (e.g. '2025-05-31T12:34:56Z')
    and return a timezone-aware datetime.
    """
    return isoparse(date_str)


def get_error_details(e: BaseException) -> ErrorDetails:
    return {
        "type": type(e).__name__,
        "message": str(e),
        "args": e.args,
        "traceback": "".join(
            traceback.format_exception(type(e), e, e.__traceback__)
        ),
    }


def handle_error(e: BaseException, context: str) -> None:
    error_details = get_error_details(e)
    error_msg = f"{context} - Type: {error_details['type']}, Message: {error_details['message']}, Args: {error_details['args']}"
    logger.error(f"{error_msg}\nTraceback:\n{error_details['traceback']}")
    sentry_sdk.capture_exception(e)
