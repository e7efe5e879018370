"""Provenance tags (`generated_by`) on workspace documents."""

from houston.lib.constants import DEFAULT_SIGNATURE_PREFIX


def has_valid_signature(data, prefix: str = DEFAULT_SIGNATURE_PREFIX) -> bool:
    """True when data is a mapping whose generated_by starts with prefix."""
    if not isinstance(data, dict):
        return False
    signature = data.get("generated_by")
    return isinstance(signature, str) and signature.startswith(prefix)
