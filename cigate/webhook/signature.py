"""GitHub webhook signature verification (HMAC over the raw body)."""

import hashlib
import hmac

_ALGORITHMS = {"sha256": hashlib.sha256, "sha1": hashlib.sha1}


def sign(secret: str, body: bytes, algorithm: str = "sha256") -> str:
    """Return the header value GitHub would send for ``body``."""
    digest = hmac.new(secret.encode("utf-8"), body, _ALGORITHMS[algorithm]).hexdigest()
    return f"{algorithm}={digest}"


def verify_signature(
    secret: str,
    body: bytes,
    signature_256: str | None,
    signature_1: str | None = None,
) -> bool:
    """Check X-Hub-Signature-256 (or the legacy sha1 X-Hub-Signature).

    Missing or malformed headers fail verification.
    """
    header = signature_256 or signature_1
    if not secret or not header or "=" not in header:
        return False
    algorithm = header.split("=", 1)[0]
    if algorithm not in _ALGORITHMS:
        return False
    if signature_256 and algorithm != "sha256":
        return False
    return hmac.compare_digest(sign(secret, body, algorithm), header)
