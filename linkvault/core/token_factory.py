"""Pure functions for minting and verifying HS256 session tokens.

LinkVault does not issue tokens to end users itself; the dashboard's identity
service does. ``create_token`` exists for dev tooling and the test-suite.
"""

import base64
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

ISSUER = "linkvault"


@dataclass(frozen=True)
class TokenPayload:
    """Decoded token claims."""
    sub: str
    exp: datetime


def create_token(
    subject: str,
    secret: str,
    algorithm: str = "HS256",
    expires_hours: int = 24,
) -> str:
    """Create a signed token whose ``sub`` claim is the caller's user id.

    Raises:
        ValueError: For any algorithm other than HS256.
    """
    if algorithm != "HS256":
        raise ValueError(f"Unsupported algorithm: {algorithm}")

    now = time.time()
    payload = {
        "sub": subject,
        "iat": int(now),
        "exp": int(now + expires_hours * 3600),
        "iss": ISSUER,
    }

    header = {"alg": "HS256", "typ": "JWT"}
    segments = [
        _b64encode(json.dumps(header).encode()),
        _b64encode(json.dumps(payload).encode()),
    ]
    signature = hmac.new(secret.encode(), b".".join(segments), hashlib.sha256).digest()
    segments.append(_b64encode(signature))
    return b".".join(segments).decode()


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> Optional[TokenPayload]:
    """Verify a token and return its claims.

    Returns ``None`` for a bad signature, an expired or subject-less token,
    an unsupported algorithm, or malformed input. Never raises.
    """
    if algorithm != "HS256":
        return None

    try:
        parts = token.encode().split(b".")
        if len(parts) != 3:
            return None

        header = json.loads(_b64decode(parts[0]))
        if header.get("alg") != "HS256":
            return None

        signing_input = parts[0] + b"." + parts[1]
        expected_sig = hmac.new(secret.encode(), signing_input, hashlib.sha256).digest()
        if not hmac.compare_digest(expected_sig, _b64decode(parts[2])):
            return None

        payload = json.loads(_b64decode(parts[1]))
        exp = payload.get("exp", 0)
        if time.time() > exp:
            return None

        subject = payload.get("sub")
        if not subject:
            return None

        return TokenPayload(
            sub=subject,
            exp=datetime.fromtimestamp(exp, tz=timezone.utc),
        )
    except (json.JSONDecodeError, ValueError, AttributeError, TypeError):
        return None


def _b64encode(data: bytes) -> bytes:
    return base64.urlsafe_b64encode(data).rstrip(b"=")


def _b64decode(data: bytes) -> bytes:
    padding = 4 - len(data) % 4
    if padding != 4:
        data += b"=" * padding
    return base64.urlsafe_b64decode(data)
