import logging
import os

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from ..errors import EncryptionError

logger = logging.getLogger(__name__)

MASK = "•" * 12


class CredentialVault:
    """AES-256-CBC encryption for provider API keys at rest.

    Ciphertexts are stored as ``iv_hex:ciphertext_hex``. The key is derived
    once from the configured secret with scrypt (N=2**14, r=8, p=1) over a
    fixed salt, so blobs written by earlier deployments with the same secret
    still decrypt.
    """

    def __init__(self, secret: str, salt: bytes = b"salt"):
        if not secret:
            raise EncryptionError("Encryption secret not configured")
        kdf = Scrypt(salt=salt, length=32, n=2**14, r=8, p=1)
        self._key = kdf.derive(secret.encode("utf-8"))

    def encrypt(self, plaintext: str) -> str:
        try:
            iv = os.urandom(16)
            padder = padding.PKCS7(algorithms.AES.block_size).padder()
            padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
            encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
            ciphertext = encryptor.update(padded) + encryptor.finalize()
        except (ValueError, TypeError, AttributeError) as e:
            logger.error(f"[VAULT] Encryption failed: {e.__class__.__name__}")
            raise EncryptionError("Failed to encrypt API key") from e
        return f"{iv.hex()}:{ciphertext.hex()}"

    def decrypt(self, blob: str) -> str:
        """Return the plaintext, or an empty string if ``blob`` is unusable."""
        if not blob:
            return ""
        try:
            iv_hex, sep, ciphertext_hex = blob.partition(":")
            if not sep:
                raise ValueError("missing IV separator")
            iv = bytes.fromhex(iv_hex)
            ciphertext = bytes.fromhex(ciphertext_hex)
            decryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            data = unpadder.update(padded) + unpadder.finalize()
            return data.decode("utf-8")
        except (ValueError, TypeError) as e:
            # Log the failure class only; the blob itself stays out of the logs
            logger.warning(f"[VAULT] Could not decrypt stored value: {e.__class__.__name__}")
            return ""


def mask_for_display(plaintext: str) -> str:
    """Twelve bullets followed by the last four characters of the key."""
    if not plaintext:
        return ""
    return MASK + plaintext[-4:]
