"""
Hostname normalization and base-domain extraction.

Hostnames from the hosting inventory are normalized to a canonical form
(lowercase, no trailing dot, IDNA-encoded) before classification, and reduced
to their registrable base domain using the public suffix list.
"""

import re
from typing import Optional

import idna
import tldextract

from domain_reconciler.enums import HostnameValidationErrorCode
from domain_reconciler.exceptions import ValidationError


# Forbidden characters in hostnames (control chars, spaces, special symbols).
# '*' is allowed so wildcard record names survive normalization.
FORBIDDEN_CHARS_PATTERN = re.compile(
    r'[\x00-\x1f\x7f'
    r'\s'
    r'!@#$%^&()+=\[\]{}|\\:;"\'<>,?/`~]'
)

# Bundled public suffix snapshot only; never fetched over the network
_EXTRACTOR = tldextract.TLDExtract(suffix_list_urls=(), cache_dir=None)


def normalize_hostname(raw: str) -> str:
    """
    Convert a hostname to canonical form.

    Args:
        raw: Hostname as listed by the hosting inventory or a DNS record

    Returns:
        Lowercase hostname without a trailing dot, IDNA-encoded if needed

    Raises:
        ValidationError: If the input is empty, contains forbidden characters,
            or cannot be IDNA-encoded
    """
    if not raw or not raw.strip():
        raise ValidationError(
            code=HostnameValidationErrorCode.EMPTY_INPUT.value,
            message="Hostname input is empty",
            details={"raw_input": raw},
        )

    hostname = raw.strip().rstrip(".")

    if FORBIDDEN_CHARS_PATTERN.search(hostname):
        raise ValidationError(
            code=HostnameValidationErrorCode.FORBIDDEN_CHARS.value,
            message="Hostname contains forbidden characters",
            details={
                "raw_input": raw,
                "forbidden_chars": FORBIDDEN_CHARS_PATTERN.findall(hostname),
            },
        )

    hostname = hostname.lower()

    if any(ord(c) > 127 for c in hostname):
        try:
            hostname = idna.encode(hostname, uts46=True).decode("ascii")
        except idna.IDNAError as e:
            raise ValidationError(
                code=HostnameValidationErrorCode.IDNA_ERROR.value,
                message=f"IDNA encoding failed: {e}",
                details={"raw_input": raw, "idna_error": str(e)},
            )

    return hostname


def base_domain(hostname: str) -> str:
    """
    Reduce a hostname to its registrable domain (one label plus the public suffix).

    'www.example.co.uk' becomes 'example.co.uk'. Names with no registrable
    part (bare suffixes, single labels) are returned unchanged.
    """
    name = hostname.rstrip(".").lower()
    extracted = _EXTRACTOR(name)
    if extracted.domain and extracted.suffix:
        return f"{extracted.domain}.{extracted.suffix}"
    return name


def try_normalize(raw: str) -> Optional[str]:
    """Normalize a hostname, returning None instead of raising."""
    try:
        return normalize_hostname(raw)
    except ValidationError:
        return None
