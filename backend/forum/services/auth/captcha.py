# backend/forum/services/auth/captcha.py
"""Arithmetic captcha carried in a client-held cookie.

The challenge is never stored server-side. The cookie holds the question, a
keyed hash of the answer and the expiry, so only the server can check an
answer but any holder of a valid cookie can replay it until it expires.
"""
import base64
import binascii
import logging
import secrets
from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ValidationError, field_validator

from forum.core.config import settings
from forum.core.security import keyed_digest, verify_keyed_digest

logger = logging.getLogger(__name__)

OPERATORS = ("+", "-", "*", "/")

# One process-wide CSPRNG, never reseeded
_rng = secrets.SystemRandom()


class CaptchaError(Exception):
    """Base captcha error."""
    pass


class CaptchaDecodeError(CaptchaError):
    """Cookie value is not a well-formed challenge."""
    pass


class CaptchaChallenge(BaseModel):
    question: str
    answer_hash: str
    expires_at: datetime

    @field_validator("expires_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


def _pick_operands(rng: secrets.SystemRandom) -> tuple[int, str, int, int]:
    while True:
        a = rng.randint(0, 9)
        b = rng.randint(0, 9)
        op = rng.choice(OPERATORS)

        if op == "+":
            result = a + b
        elif op == "-":
            result = a - b
        elif op == "*":
            result = a * b
        else:
            if b == 0 or a % b != 0:
                continue
            result = a // b

        if 0 <= result <= 9:
            return a, op, b, result


def hash_answer(answer: str) -> str:
    return keyed_digest(answer.strip())


def generate_challenge(
    now: datetime | None = None,
    ttl_seconds: int | None = None,
    rng: secrets.SystemRandom | None = None,
) -> CaptchaChallenge:
    """Build a fresh challenge whose answer is a single digit 0-9."""
    now = now or datetime.now(timezone.utc)
    ttl = ttl_seconds if ttl_seconds is not None else settings.captcha_ttl_seconds
    a, op, b, result = _pick_operands(rng or _rng)

    return CaptchaChallenge(
        question=f"{a} {op} {b} = ?",
        answer_hash=hash_answer(str(result)),
        expires_at=now + timedelta(seconds=ttl),
    )


def verify_challenge(
    submitted: str,
    challenge: CaptchaChallenge,
    now: datetime | None = None,
) -> bool:
    """Check an answer against a challenge.

    Not single-use: the same correct answer verifies on every call until
    ``expires_at`` passes.
    """
    now = now or datetime.now(timezone.utc)
    if now > challenge.expires_at:
        logger.info("Captcha expired")
        return False
    return verify_keyed_digest(submitted.strip(), challenge.answer_hash)


def encode_challenge(challenge: CaptchaChallenge) -> str:
    return base64.b64encode(challenge.model_dump_json().encode()).decode("ascii")


def decode_challenge(value: str) -> CaptchaChallenge:
    try:
        raw = base64.b64decode(value, validate=True)
        return CaptchaChallenge.model_validate_json(raw)
    except (binascii.Error, ValidationError, ValueError) as e:
        raise CaptchaDecodeError(f"Invalid captcha cookie: {e}") from e
