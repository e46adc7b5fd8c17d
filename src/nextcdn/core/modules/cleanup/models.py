from dataclasses import dataclass


@dataclass
class CleanupReport:
    """Outcome of one reconciliation cycle."""

    found: int = 0  # Expiry-eligible records seen
    deleted: int = 0  # Records whose object and metadata were both removed
    failed: int = 0  # Records left in place, retried next cycle
    aborted: bool = False  # Enumeration failed before the scan finished
