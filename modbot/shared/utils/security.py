"""
Request authentication helpers.

Inbound: Discord signs every interaction with Ed25519 over
``timestamp + raw_body``. The body must be verified exactly as received,
before any JSON parsing.

Outbound: calls to the preset API carry an HMAC-SHA256 signature over
``"{timestamp}:{user_id}:{user_name}"`` (empty strings for missing parts).
The receiving API is expected to reject timestamps older than 5 minutes,
allow up to 60 seconds of future skew and compare signatures in constant
time.
"""
import hashlib
import hmac
from dataclasses import dataclass
from typing import Optional

from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey
from starlette.requests import Request

SIGNATURE_HEADER = "X-Signature-Ed25519"
TIMESTAMP_HEADER = "X-Signature-Timestamp"

MAX_BODY_SIZE = 100_000


@dataclass
class VerificationResult:
    is_valid: bool
    body: str = ""
    error: Optional[str] = None


def verify_signature(body: bytes, signature: str, timestamp: str, public_key: str) -> bool:
    """Raises ValueError on malformed hex input."""
    verify_key = VerifyKey(bytes.fromhex(public_key))
    try:
        verify_key.verify(timestamp.encode() + body, bytes.fromhex(signature))
    except BadSignatureError:
        return False
    return True


def _declared_too_large(content_length: Optional[str], max_body_size: int) -> bool:
    if not content_length:
        return False
    try:
        return int(content_length) > max_body_size
    except ValueError:
        return False


def verify_payload(
    body: bytes,
    signature: Optional[str],
    timestamp: Optional[str],
    public_key: str,
    content_length: Optional[str] = None,
    max_body_size: int = MAX_BODY_SIZE,
) -> VerificationResult:
    # Declared length is cheap to check but can be spoofed; the real body
    # length below is the authoritative check.
    if _declared_too_large(content_length, max_body_size):
        return VerificationResult(False, error="Request body too large")

    if not signature or not timestamp:
        return VerificationResult(False, error="Missing signature headers")

    if len(body) > max_body_size:
        return VerificationResult(False, error="Request body too large")

    try:
        text = body.decode("utf-8")
        if not verify_signature(body, signature, timestamp, public_key):
            return VerificationResult(False, body=text, error="Invalid signature")
    except Exception as e:
        return VerificationResult(False, error=str(e) or "Verification failed")

    return VerificationResult(True, body=text)


async def verify_discord_request(
    request: Request, public_key: str, max_body_size: int = MAX_BODY_SIZE
) -> VerificationResult:
    if _declared_too_large(request.headers.get("Content-Length"), max_body_size):
        return VerificationResult(False, error="Request body too large")

    signature = request.headers.get(SIGNATURE_HEADER)
    timestamp = request.headers.get(TIMESTAMP_HEADER)
    if not signature or not timestamp:
        return VerificationResult(False, error="Missing signature headers")

    body = await request.body()
    return verify_payload(body, signature, timestamp, public_key, None, max_body_size)


def generate_request_signature(
    timestamp: int,
    user_id: Optional[str],
    user_name: Optional[str],
    signing_secret: str,
) -> str:
    """Lowercase hex HMAC-SHA256 over the fixed-shape message."""
    message = f"{timestamp}:{user_id or ''}:{user_name or ''}"
    return hmac.new(
        signing_secret.encode(), message.encode(), hashlib.sha256
    ).hexdigest()
