"""
Interaction request signature verification.

WHAT: Check the Ed25519 signature Discord puts on every interaction request
WHY: Discord refuses to deliver interactions to endpoints that skip this
HOW: PyNaCl VerifyKey over timestamp + raw body
"""

from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from ..utils.logger import get_logger

logger = get_logger(__name__)

SIGNATURE_HEADER = "X-Signature-Ed25519"
TIMESTAMP_HEADER = "X-Signature-Timestamp"


def verify_signature(public_key: str, signature: str | None, timestamp: str | None, body: bytes) -> bool:
    """
    Verify an interaction request.

    Args:
        public_key: Application public key (hex)
        signature: X-Signature-Ed25519 header (hex)
        timestamp: X-Signature-Timestamp header
        body: Raw request body

    Returns:
        True when the signature matches
    """
    if not signature or not timestamp or not public_key:
        return False
    try:
        VerifyKey(bytes.fromhex(public_key)).verify(timestamp.encode() + body, bytes.fromhex(signature))
        return True
    except BadSignatureError:
        logger.warning("Interaction signature mismatch")
        return False
    except (ValueError, TypeError) as e:
        logger.warning(f"Malformed interaction signature or key: {e}")
        return False
