"""
Rent Recovery Errors
====================
Typed failures raised by the scanner and verifier.

Terminal chain answers (NOT_FOUND, CONFIRMED_NO_MATCH) are outcomes,
not exceptions, and partial scans are flagged on the ScanResult.
"""


class RecoveryError(Exception):
    """Base class for rent recovery failures."""


class InvalidInput(RecoveryError, ValueError):
    """Malformed caller input. Never retried."""

    def __init__(self, value: str, kind: str):
        self.value = value
        self.kind = kind
        super().__init__(f"Invalid {kind}: {value!r}")


class InvalidAddress(InvalidInput):
    def __init__(self, value: str):
        super().__init__(value, "address")


class InvalidSignature(InvalidInput):
    def __init__(self, value: str):
        super().__init__(value, "signature")


class ChainUnavailable(RecoveryError):
    """
    The chain-data provider could not answer (transport error, timeout,
    malformed response). Callers retry with backoff; the core does not.
    """

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Chain unavailable during {operation}: {reason}")
