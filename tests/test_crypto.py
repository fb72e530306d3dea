"""Tests for payload encryption and decryption."""

import pytest

from webpushkit.crypto import (
    decrypt_payload,
    decrypt_record,
    encrypt_payload,
    pad_plaintext,
    unpad_record,
)
from webpushkit.envelope import EncryptionResult
from webpushkit.keys import urlsafe_b64decode, urlsafe_b64encode
from webpushkit.types import DecryptionError, EncryptionError, InvalidKeyError

from .test_vectors import AUTH_SECRET, AUTH_SECRET_B64, TEST_PAYLOADS


def _flip_bit(data: bytes, index: int, bit: int) -> bytes:
    flipped = bytearray(data)
    flipped[index] ^= 1 << bit
    return bytes(flipped)


class TestEncryption:
    """Test payload encryption."""

    def test_result_layout(self, subscriber_public_key) -> None:
        """The result carries a salt, an ephemeral key and a tagged record."""
        result = encrypt_payload(b"Hello", subscriber_public_key, AUTH_SECRET)

        assert len(result.salt) == 16
        assert len(result.local_public_key) == 65
        assert result.local_public_key[0] == 0x04
        # 2-byte padding length + plaintext + 16-byte tag
        assert len(result.ciphertext) == 2 + 5 + 16

    def test_accepts_base64url_keys(self, subscriber_public_key, subscriber_private_key) -> None:
        """Keys may be passed as base64url strings."""
        result = encrypt_payload(
            "Hello",
            urlsafe_b64encode(subscriber_public_key),
            AUTH_SECRET_B64,
        )
        assert decrypt_payload(result, subscriber_private_key, AUTH_SECRET_B64) == b"Hello"

    def test_fresh_salt_and_key(self, subscriber_public_key) -> None:
        """Two encryptions never share a salt or ephemeral key."""
        first = encrypt_payload(b"Hello", subscriber_public_key, AUTH_SECRET)
        second = encrypt_payload(b"Hello", subscriber_public_key, AUTH_SECRET)

        assert first.salt != second.salt
        assert first.local_public_key != second.local_public_key
        assert first.ciphertext != second.ciphertext

    def test_empty_payload_rejected(self, subscriber_public_key) -> None:
        """An empty payload is refused."""
        with pytest.raises(EncryptionError, match="empty"):
            encrypt_payload(b"", subscriber_public_key, AUTH_SECRET)

    def test_short_auth_secret_rejected(self, subscriber_public_key) -> None:
        """A 15-byte auth secret is rejected."""
        with pytest.raises(InvalidKeyError, match="Auth secret"):
            encrypt_payload(b"Hello", subscriber_public_key, bytes(15))

    def test_subscriber_key_without_prefix_rejected(self, subscriber_public_key) -> None:
        """A subscriber key missing its 0x04 prefix is rejected."""
        with pytest.raises(InvalidKeyError, match="65 bytes"):
            encrypt_payload(b"Hello", subscriber_public_key[1:], AUTH_SECRET)

    def test_compressed_subscriber_key_rejected(self) -> None:
        """A compressed subscriber key is rejected."""
        with pytest.raises(InvalidKeyError, match="65 bytes"):
            encrypt_payload(b"Hello", b"\x03" + bytes(32), AUTH_SECRET)

    def test_subscriber_key_off_curve_rejected(self) -> None:
        """A subscriber key off the curve is rejected."""
        with pytest.raises(InvalidKeyError):
            encrypt_payload(b"Hello", b"\x04" + bytes(64), AUTH_SECRET)

    def test_header_encodings(self, subscriber_public_key) -> None:
        """Encryption and Crypto-Key values encode the salt and ephemeral key."""
        result = encrypt_payload(b"Hello", subscriber_public_key, AUTH_SECRET)

        assert result.encryption_header() == "salt=" + urlsafe_b64encode(result.salt)
        assert result.crypto_key_header().startswith("dh=")
        assert urlsafe_b64decode(result.crypto_key_header()[3:]) == result.local_public_key
        assert "=" not in result.encode_salt()


class TestRoundTrip:
    """Test that the subscriber can decrypt what was encrypted."""

    @pytest.mark.parametrize("name", sorted(TEST_PAYLOADS))
    def test_roundtrip(self, name, subscriber_public_key, subscriber_private_key) -> None:
        """The subscriber recovers the original payload."""
        plaintext = TEST_PAYLOADS[name]
        result = encrypt_payload(plaintext, subscriber_public_key, AUTH_SECRET)

        assert decrypt_payload(result, subscriber_private_key, AUTH_SECRET) == plaintext

    def test_hello_twice(self, subscriber_public_key, subscriber_private_key) -> None:
        """Encrypting Hello twice differs but both decrypt to the padded record."""
        first = encrypt_payload("Hello", subscriber_public_key, AUTH_SECRET)
        second = encrypt_payload("Hello", subscriber_public_key, AUTH_SECRET)

        assert first.ciphertext != second.ciphertext
        assert first.salt != second.salt

        for result in (first, second):
            record = decrypt_record(
                result.ciphertext,
                result.salt,
                result.local_public_key,
                subscriber_private_key,
                AUTH_SECRET,
            )
            assert record == b"\x00\x00Hello"

    def test_wrong_auth_secret_fails(self, subscriber_public_key, subscriber_private_key) -> None:
        """Decryption with another auth secret fails."""
        result = encrypt_payload(b"Hello", subscriber_public_key, AUTH_SECRET)

        with pytest.raises(DecryptionError):
            decrypt_payload(result, subscriber_private_key, bytes(16))


class TestTamperDetection:
    """Any single bit flip must fail authentication."""

    def test_ciphertext_bit_flips(self, subscriber_public_key, subscriber_private_key) -> None:
        """Flipping a ciphertext bit fails authentication."""
        result = encrypt_payload(b"Hello", subscriber_public_key, AUTH_SECRET)

        for index in range(len(result.ciphertext)):
            for bit in (0, 7):
                tampered = EncryptionResult(
                    ciphertext=_flip_bit(result.ciphertext, index, bit),
                    salt=result.salt,
                    local_public_key=result.local_public_key,
                )
                with pytest.raises(DecryptionError):
                    decrypt_payload(tampered, subscriber_private_key, AUTH_SECRET)

    def test_salt_bit_flips(self, subscriber_public_key, subscriber_private_key) -> None:
        """Flipping a salt bit fails authentication."""
        result = encrypt_payload(b"Hello", subscriber_public_key, AUTH_SECRET)

        for index in range(len(result.salt)):
            tampered = EncryptionResult(
                ciphertext=result.ciphertext,
                salt=_flip_bit(result.salt, index, 3),
                local_public_key=result.local_public_key,
            )
            with pytest.raises(DecryptionError):
                decrypt_payload(tampered, subscriber_private_key, AUTH_SECRET)

    def test_truncated_ciphertext(self, subscriber_public_key, subscriber_private_key) -> None:
        """A truncated record fails authentication."""
        result = encrypt_payload(b"Hello", subscriber_public_key, AUTH_SECRET)
        tampered = EncryptionResult(
            ciphertext=result.ciphertext[:-1],
            salt=result.salt,
            local_public_key=result.local_public_key,
        )

        with pytest.raises(DecryptionError):
            decrypt_payload(tampered, subscriber_private_key, AUTH_SECRET)


class TestPadding:
    """Test the padding length prefix."""

    def test_pad_prefix(self) -> None:
        """Plaintext gets a zero 2-byte padding length."""
        assert pad_plaintext(b"Hello") == b"\x00\x00Hello"

    def test_unpad_zero_padding(self) -> None:
        """A zero padding length strips only the prefix."""
        assert unpad_record(b"\x00\x00Hello") == b"Hello"

    def test_unpad_with_padding(self) -> None:
        """Padding bytes are stripped."""
        assert unpad_record(b"\x00\x03\x00\x00\x00Hello") == b"Hello"

    def test_unpad_nonzero_padding(self) -> None:
        """Non-zero padding bytes are rejected."""
        with pytest.raises(DecryptionError, match="zero"):
            unpad_record(b"\x00\x01\x01Hello")

    def test_unpad_overlong_padding(self) -> None:
        """A padding length beyond the record is rejected."""
        with pytest.raises(DecryptionError, match="exceeds"):
            unpad_record(b"\x00\x09abc")

    def test_unpad_short_record(self) -> None:
        """A record shorter than the length field is rejected."""
        with pytest.raises(DecryptionError, match="too short"):
            unpad_record(b"\x00")
