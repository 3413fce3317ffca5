"""
HMR Referral Ingestion

Extracts patient and medication data from GP referral letters for Home
Medicines Reviews, and fills user-supplied report templates.
"""

__version__ = "0.1.0"

from .extractors import ReferralExtractor, extract_referral
from .templates import TemplateFiller, discover_fields

__all__ = [
    "ReferralExtractor",
    "extract_referral",
    "TemplateFiller",
    "discover_fields",
    "__version__",
]
