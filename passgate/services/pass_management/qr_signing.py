"""
HMAC-signed pass tokens for QR codes.

Token format:
    "{pass_id}:{expiry_epoch_ms}.{hmac_sha256_hex[:16]}"

The MAC covers everything before the last ".". Tokens are not tracked
server-side: re-signing a pass (lost-QR resend) produces a new token and
earlier tokens stay valid until their own expiry.

The QR itself carries a small JSON document {passId, userId, passType, token}
so scanner apps can show who they are looking at before the server answers.
"""

import base64
import hashlib
import hmac
import json
import logging
import time
from dataclasses import dataclass
from io import BytesIO
from typing import Callable, Optional

import qrcode

from passgate.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

SIGNATURE_LENGTH = 16
MS_PER_DAY = 24 * 60 * 60 * 1000


def _epoch_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class TokenVerification:
    """Outcome of verifying a token.

    `reason` is for server-side logs only and must never reach a client.
    """

    valid: bool
    pass_id: Optional[str] = None
    reason: Optional[str] = None


class QRTokenSigner:
    """Signs and verifies pass tokens with a server-held secret.

    Args:
        secret: HMAC key. Empty means unconfigured: sign() raises and
            verify() rejects everything.
        expiry_days: Default validity window for new tokens.
        now: Clock returning epoch milliseconds (injectable for tests).
    """

    def __init__(
        self,
        secret: str,
        expiry_days: int = 30,
        now: Optional[Callable[[], int]] = None,
    ):
        self._secret = secret or ""
        self.expiry_days = expiry_days
        self._now = now or _epoch_ms

    @property
    def configured(self) -> bool:
        return bool(self._secret)

    def _mac(self, payload: str) -> str:
        digest = hmac.new(
            self._secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256
        ).hexdigest()
        return digest[:SIGNATURE_LENGTH]

    def sign(self, pass_id: str, expiry_days: Optional[int] = None) -> str:
        """Return a token for pass_id valid for expiry_days (default window if None)."""
        if not self.configured:
            raise ConfigurationError("QR_SECRET_KEY is not configured")
        days = self.expiry_days if expiry_days is None else expiry_days
        expiry_ms = self._now() + days * MS_PER_DAY
        payload = f"{pass_id}:{expiry_ms}"
        return f"{payload}.{self._mac(payload)}"

    def verify(self, token: Optional[str]) -> TokenVerification:
        if not self.configured:
            return TokenVerification(valid=False, reason="secret not configured")
        if not token or not isinstance(token, str):
            return TokenVerification(valid=False, reason="empty token")

        payload, sep, signature = token.rpartition(".")
        if not sep or not payload:
            return TokenVerification(valid=False, reason="missing signature delimiter")

        if not signature.isascii():
            return TokenVerification(valid=False, reason="malformed signature")

        if not hmac.compare_digest(signature.encode("ascii"), self._mac(payload).encode("ascii")):
            return TokenVerification(valid=False, reason="bad signature")

        pass_id, sep, expiry_raw = payload.partition(":")
        if not sep or not pass_id:
            return TokenVerification(valid=False, reason="malformed payload")
        try:
            expiry_ms = int(expiry_raw)
        except ValueError:
            return TokenVerification(valid=False, reason="unparsable expiry")

        if self._now() > expiry_ms:
            return TokenVerification(valid=False, reason="expired")

        return TokenVerification(valid=True, pass_id=pass_id)


def create_qr_payload(pass_id: str, user_id: Optional[str], pass_type: Optional[str], token: str) -> str:
    """JSON string embedded in the QR code."""
    return json.dumps({
        "passId": pass_id,
        "userId": user_id,
        "passType": pass_type,
        "token": token,
    })


def render_qr_data_url(data: str) -> str:
    """Render data as a PNG QR code and return it as a data: URL."""
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=8,
        border=2,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffered = BytesIO()
    img.save(buffered, "PNG")
    encoded = base64.b64encode(buffered.getvalue()).decode("utf-8")
    return f"data:image/png;base64,{encoded}"


def issue_pass_qr(
    signer: QRTokenSigner,
    pass_id: str,
    user_id: Optional[str],
    pass_type: Optional[str],
) -> str:
    """Sign a fresh token for the pass and return the QR code data URL."""
    token = signer.sign(pass_id)
    logger.info(f"Issued QR token for pass {pass_id}")
    return render_qr_data_url(create_qr_payload(pass_id, user_id, pass_type, token))


def extract_token(raw) -> Optional[str]:
    """Pull the token out of a scan submission.

    Accepts the bare token string, a JSON string containing a "token" key,
    or an already-parsed dict with a "token" key. Returns None if nothing
    usable is present.
    """
    if isinstance(raw, dict):
        token = raw.get("token")
        return token.strip() if isinstance(token, str) and token.strip() else None
    if not isinstance(raw, str):
        return None
    value = raw.strip()
    if not value:
        return None
    if value.startswith("{"):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            return None
        return extract_token(parsed) if isinstance(parsed, dict) else None
    return value
