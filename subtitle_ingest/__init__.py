"""Deduplicating video ingest with resilient subtitle generation.

Uploaded bytes are fingerprinted, checked against a fingerprint index kept in a
process-wide TTL cache, persisted only when new, and transcribed through a
bounded-retry client. See ``services.orchestrator.UploadOrchestrator``.
"""

__version__ = "0.1.0"
