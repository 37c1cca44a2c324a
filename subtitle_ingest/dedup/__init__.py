"""Content fingerprinting and the fingerprint deduplication index."""

from .fingerprint import ContentFingerprinter, Fingerprint, fingerprint, is_fingerprint
from .index import DeduplicationIndex

__all__ = [
    "ContentFingerprinter",
    "DeduplicationIndex",
    "Fingerprint",
    "fingerprint",
    "is_fingerprint",
]
