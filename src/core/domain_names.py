"""Domain name normalization and validation."""

from __future__ import annotations

import re

from core.constants import MAX_DOMAIN_LABEL_LENGTH, MAX_DOMAIN_LENGTH
from core.errors import CohostValidationError

_LABEL_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9-]*[a-z0-9])?$")


def normalize_domain(raw_domain: str) -> str:
    """Return the canonical registry key for a domain.

    Domains are case-insensitive, so keys are lower-cased and a single
    trailing root dot is dropped.

    Args:
        raw_domain: Domain as supplied by the user.

    Returns:
        Normalized domain name.

    Raises:
        CohostValidationError: If the value is not a valid host name.
    """
    if not isinstance(raw_domain, str):
        raise CohostValidationError(f"Invalid domain {raw_domain!r}: expected a string.")
    domain = raw_domain.strip().lower()
    if domain.endswith("."):
        domain = domain[:-1]
    if not domain:
        raise CohostValidationError("Invalid domain: empty name. Pass a host name like docs.ipfs.io.")
    if len(domain) > MAX_DOMAIN_LENGTH:
        raise CohostValidationError(
            f"Invalid domain '{raw_domain}': longer than {MAX_DOMAIN_LENGTH} characters."
        )
    for label in domain.split("."):
        if len(label) > MAX_DOMAIN_LABEL_LENGTH or not _LABEL_PATTERN.match(label):
            raise CohostValidationError(
                f"Invalid domain '{raw_domain}': label '{label}' is not a valid host name label."
            )
    return domain
