"""Integrity metadata for persisted artifacts."""

from __future__ import annotations

import base64
import hashlib
import logging
from dataclasses import dataclass

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntegrityRecord:
  """SHA-256 digest of an artifact and its optional RSA signature."""

  sha256: str
  signature: str | None = None


class IntegritySigner:
  """Hash artifact bytes and sign the digest when a private key is configured."""

  def __init__(self, private_key_pem: str | None = None) -> None:
    self._private_key: rsa.RSAPrivateKey | None = None
    if private_key_pem:
      self._private_key = _load_private_key(private_key_pem)

  @property
  def signing_enabled(self) -> bool:
    return self._private_key is not None

  def digest(self, data: bytes) -> str:
    """Return the hex SHA-256 digest of ``data``."""
    return hashlib.sha256(data).hexdigest()

  def sign(self, digest_hex: str) -> str | None:
    """Sign the hex digest bytes with RSA/SHA-256 and return base64, or ``None`` when signing is disabled."""
    if self._private_key is None:
      return None
    signature = self._private_key.sign(digest_hex.encode("utf-8"), padding.PKCS1v15(), hashes.SHA256())
    return base64.b64encode(signature).decode("ascii")

  def record(self, data: bytes) -> IntegrityRecord:
    digest = self.digest(data)
    return IntegrityRecord(sha256=digest, signature=self.sign(digest))


def _load_private_key(pem: str) -> rsa.RSAPrivateKey:
  try:
    key = serialization.load_pem_private_key(pem.encode("utf-8"), password=None)
  except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
    raise ValueError(f"CONTENT_STUDIO_PRIVATE_KEY is not a valid PEM private key: {exc}") from exc
  if not isinstance(key, rsa.RSAPrivateKey):
    raise ValueError("CONTENT_STUDIO_PRIVATE_KEY must be an RSA private key")
  return key


def verify_signature(public_key_pem: str, digest_hex: str, signature_b64: str) -> bool:
  """Return True when ``signature_b64`` is a valid signature of ``digest_hex``."""
  public_key = serialization.load_pem_public_key(public_key_pem.encode("utf-8"))
  if not isinstance(public_key, rsa.RSAPublicKey):
    raise ValueError("Signature verification requires an RSA public key")
  try:
    public_key.verify(base64.b64decode(signature_b64), digest_hex.encode("utf-8"), padding.PKCS1v15(), hashes.SHA256())
  except InvalidSignature:
    logger.warning("Artifact signature did not verify digest=%s", digest_hex)
    return False
  return True
