# wecollab/utils/codes.py
# Invite credentials for joining a dashboard

import secrets
import string

from wecollab.constants import INVITE_CODE_LENGTH, OTP_LENGTH


def generate_invite_code(length: int = INVITE_CODE_LENGTH) -> str:
    """Generate an upper-case alphanumeric invite code."""
    alphabet = string.ascii_uppercase + string.digits
    return ''.join(secrets.choice(alphabet) for _ in range(length))


def generate_otp(length: int = OTP_LENGTH) -> str:
    """Generate a numeric one-time password (leading zeros allowed)."""
    return ''.join(secrets.choice(string.digits) for _ in range(length))


def normalize_invite_code(code: str) -> str:
    return (code or "").strip().upper()


def otp_matches(expected: str, given: str) -> bool:
    return secrets.compare_digest((expected or "").encode(), (given or "").strip().encode())
