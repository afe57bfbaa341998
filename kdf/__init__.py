"""
HKDF Key Derivation

This package provides the HMAC-based Extract-and-Expand Key Derivation
Function (RFC 5869):
- Incremental extraction sessions (HkdfExtract)
- Reusable derivation contexts with multi-segment info (Hkdf)
- cryptography-backed and standard-library-backed HMAC engines
- One-shot helpers and TLS 1.3 HKDF-Expand-Label
"""

from .errors import InvalidLength, InvalidPrkLength
from .mac import HmacImpl, Hmac, SimpleHmac
from .hkdf import (
    Hkdf,
    HkdfExtract,
    SimpleHkdf,
    SimpleHkdfExtract,
    adjust_prk,
    hkdf_extract,
    hkdf_expand,
    hkdf_derive,
    hkdf_expand_label,
    build_hkdf_label,
)

__version__ = "0.1.0"
