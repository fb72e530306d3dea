"""Encrypted payload envelope for Web Push requests."""

from dataclasses import dataclass

from .keys import urlsafe_b64encode


@dataclass(frozen=True)
class EncryptionResult:
    """Output of a single payload encryption."""
    ciphertext: bytes  # padded record + 16-byte tag
    salt: bytes  # 16 bytes
    local_public_key: bytes  # 65 bytes, ephemeral

    def encode_salt(self) -> str:
        """Salt as unpadded base64url."""
        return urlsafe_b64encode(self.salt)

    def encode_public_key(self) -> str:
        """Ephemeral public key as unpadded base64url."""
        return urlsafe_b64encode(self.local_public_key)

    def encryption_header(self) -> str:
        """Value of the Encryption header."""
        return f"salt={self.encode_salt()}"

    def crypto_key_header(self) -> str:
        """The dh= entry of the Crypto-Key header."""
        return f"dh={self.encode_public_key()}"
