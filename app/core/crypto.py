"""Sehat Sathi – Pseudonymous Identity.

One-way digest of a raw channel identity (phone number), used everywhere a
user has to be referenced without exposing who they are.
"""

import hashlib
import hmac

PSEUDONYM_PREFIX = "u_"
PSEUDONYM_HEX_LENGTH = 16


def pseudonymize(identity: str, secret: str = "") -> str:
    """Derive a stable pseudonymous id such as ``u_3f1c9a0b7d2e4f56``.

    With ``secret`` set the digest is an HMAC-SHA256, which stops anyone
    without the secret from confirming a guessed phone number.
    """
    raw = str(identity).encode("utf-8")
    if secret:
        digest = hmac.new(secret.encode("utf-8"), raw, hashlib.sha256).hexdigest()
    else:
        digest = hashlib.sha256(raw).hexdigest()
    return f"{PSEUDONYM_PREFIX}{digest[:PSEUDONYM_HEX_LENGTH]}"
