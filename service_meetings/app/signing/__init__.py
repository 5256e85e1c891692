"""
Meeting signature generation for the Meetings Service.
"""

from .signer import Signer, SIGNATURE_TTL_SECONDS

__all__ = ["Signer", "SIGNATURE_TTL_SECONDS"]
