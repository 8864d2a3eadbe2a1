"""Verification Proof — HMAC check of the identity-provider callback payload.

Invariants:
    - PURE: no IO, no clock reads; `now` is supplied by the caller
    - Signature covers "<address>:<subject>:<issued_at>" so a proof minted for
      one address never validates for another
    - Comparison is constant-time over bytes (hmac.compare_digest), so any
      submitted string compares without raising
    - Proofs older than max_age or issued further than clock_skew in the future fail

Design Decisions:
    - The OAuth exchange happens outside this service; the component finishing it
      mints this proof with the shared secret, and the gate only checks it
    - check_proof returns a failure label (or None) instead of raising, the gate
      logs the label and reports a flat `invalid` to the caller
"""

import hashlib
import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass(frozen=True)
class VerificationProof:
    subject: str
    issued_at: int
    signature: str


def _message(address: str, subject: str, issued_at: int) -> bytes:
    return f"{address}:{subject}:{issued_at}".encode()


def sign_proof(secret: str, address: str, subject: str, issued_at: int) -> str:
    """Hex HMAC-SHA256 signature for a (canonical address, subject, issued_at) triple."""
    return hmac.new(
        secret.encode(), _message(address, subject, issued_at), hashlib.sha256,
    ).hexdigest()


def check_proof(
    proof: VerificationProof,
    address: str,
    secret: str,
    now: datetime,
    max_age: timedelta,
    clock_skew: timedelta,
) -> str | None:
    """Return None when the proof is valid for `address`, else a failure label."""
    if not proof.subject or not proof.signature:
        return "missing_fields"
    expected = sign_proof(secret, address, proof.subject, proof.issued_at)
    if not hmac.compare_digest(
        expected.encode(), proof.signature.lower().encode(),
    ):
        return "bad_signature"
    # Epoch seconds, no datetime conversion: any signed integer is comparable
    age = now.timestamp() - proof.issued_at
    if -age > clock_skew.total_seconds():
        return "issued_in_future"
    if age > max_age.total_seconds():
        return "expired"
    return None
