"""HMAC signatures in the GitHub webhook format (`<algorithm>=<hexdigest>`)."""

import hashlib
import hmac

from cloudnet_repository.errors import InvalidSignatureError

SUPPORTED_ALGORITHMS = ("sha256", "sha1")


def compute_signature(secret: str, body: bytes, algorithm: str = "sha256") -> str:
    digest = hmac.new(secret.encode("utf-8"), body, algorithm).hexdigest()
    return f"{algorithm}={digest}"


def verify_signature(secret: str | None, body: bytes, header: str | None) -> None:
    """Check a signature header against the raw body.

    The comparison is constant-time.

    Raises:
        InvalidSignatureError: If no secret is configured, the header is
            missing or malformed, or the digest does not match
    """
    if not secret:
        raise InvalidSignatureError("No webhook secret configured")
    if not header or "=" not in header:
        raise InvalidSignatureError("Missing signature header")
    algorithm, _, _ = header.partition("=")
    if algorithm not in SUPPORTED_ALGORITHMS:
        raise InvalidSignatureError(f"Unsupported signature algorithm {algorithm!r}")
    expected = compute_signature(secret, body, algorithm)
    if not hmac.compare_digest(expected.encode("utf-8"), header.strip().encode("utf-8")):
        raise InvalidSignatureError("Signature mismatch")
