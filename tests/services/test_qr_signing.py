"""
Tests for pass token signing and QR payload handling.
"""

import base64
import json

import pytest

from passgate.core.exceptions import ConfigurationError
from passgate.services.pass_management.qr_signing import (
    MS_PER_DAY,
    QRTokenSigner,
    create_qr_payload,
    extract_token,
    issue_pass_qr,
)

NOW_MS = 1_770_000_000_000


class TestQRTokenSigner:
    def setup_method(self):
        self.signer = QRTokenSigner("secret-key", expiry_days=30, now=lambda: NOW_MS)

    def test_sign_then_verify_round_trip(self):
        token = self.signer.sign("P1")
        result = self.signer.verify(token)

        assert result.valid is True
        assert result.pass_id == "P1"

    def test_token_format(self):
        token = self.signer.sign("P1")
        payload, _, signature = token.rpartition(".")

        assert payload == f"P1:{NOW_MS + 30 * MS_PER_DAY}"
        assert len(signature) == 16
        int(signature, 16)

    def test_tampered_pass_id_rejected(self):
        token = self.signer.sign("P1")
        forged = "P2" + token[2:]

        result = self.signer.verify(forged)
        assert result.valid is False
        assert result.pass_id is None

    @pytest.mark.parametrize("position", range(16))
    @pytest.mark.parametrize("replacement", ["0", "f", "z", "é", "ü", "☃"])
    def test_any_changed_signature_character_rejected(self, position, replacement):
        token = self.signer.sign("P1")
        start = len(token) - 16
        index = start + position
        if token[index] == replacement:
            replacement = "1"
        forged = token[:index] + replacement + token[index + 1:]

        result = self.signer.verify(forged)
        assert result.valid is False
        assert result.pass_id is None

    def test_non_ascii_signature_rejected(self):
        result = self.signer.verify("P1:999.ü")

        assert result.valid is False
        assert result.reason == "malformed signature"

    def test_lone_surrogate_in_signature_rejected(self):
        token = self.signer.sign("P1")
        assert self.signer.verify(token[:-1] + "\ud800").valid is False

    def test_token_signed_with_other_secret_rejected(self):
        other = QRTokenSigner("another-key", now=lambda: NOW_MS)
        assert self.signer.verify(other.sign("P1")).valid is False

    def test_negative_expiry_is_already_expired(self):
        token = self.signer.sign("P1", expiry_days=-1)
        result = self.signer.verify(token)

        assert result.valid is False
        assert result.reason == "expired"

    def test_token_valid_until_exact_expiry(self):
        token = self.signer.sign("P1", expiry_days=1)
        at_expiry = QRTokenSigner("secret-key", now=lambda: NOW_MS + MS_PER_DAY)
        after_expiry = QRTokenSigner("secret-key", now=lambda: NOW_MS + MS_PER_DAY + 1)

        assert at_expiry.verify(token).valid is True
        assert after_expiry.verify(token).valid is False

    @pytest.mark.parametrize("token", [None, "", "no-delimiter", ".abc", 42])
    def test_malformed_tokens_rejected(self, token):
        assert self.signer.verify(token).valid is False

    def test_pass_id_containing_dots(self):
        token = self.signer.sign("pass.with.dots")
        result = self.signer.verify(token)

        assert result.valid is True
        assert result.pass_id == "pass.with.dots"

    def test_missing_secret_rejects_everything(self):
        unconfigured = QRTokenSigner("", now=lambda: NOW_MS)
        token = self.signer.sign("P1")

        assert unconfigured.configured is False
        assert unconfigured.verify(token).valid is False

    def test_missing_secret_cannot_sign(self):
        with pytest.raises(ConfigurationError):
            QRTokenSigner("").sign("P1")

    def test_resigning_keeps_old_tokens_valid(self):
        first = self.signer.sign("P1")
        later = QRTokenSigner("secret-key", now=lambda: NOW_MS + 1000)
        second = later.sign("P1")

        assert first != second
        assert later.verify(first).valid is True
        assert later.verify(second).valid is True


class TestExtractToken:
    def test_bare_string(self):
        assert extract_token("  P1:1.abc  ") == "P1:1.abc"

    def test_json_string_payload(self):
        raw = create_qr_payload("P1", "U1", "day_pass", "P1:1.abc")
        assert extract_token(raw) == "P1:1.abc"

    def test_dict_payload(self):
        assert extract_token({"token": "P1:1.abc"}) == "P1:1.abc"

    @pytest.mark.parametrize("raw", [None, "", "   ", {}, {"token": ""}, {"token": 5}, "{not json", 123, ["P1"]])
    def test_unusable_submissions(self, raw):
        assert extract_token(raw) is None


class TestIssuePassQr:
    def test_returns_png_data_url(self):
        signer = QRTokenSigner("secret-key", now=lambda: NOW_MS)
        url = issue_pass_qr(signer, "P1", "U1", "day_pass")

        assert url.startswith("data:image/png;base64,")
        png = base64.b64decode(url.split(",", 1)[1])
        assert png[:8] == b"\x89PNG\r\n\x1a\n"

    def test_payload_shape(self):
        payload = json.loads(create_qr_payload("P1", "U1", "day_pass", "tok"))
        assert payload == {"passId": "P1", "userId": "U1", "passType": "day_pass", "token": "tok"}
