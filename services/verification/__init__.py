"""
Phone Verification

One-time SMS codes through Twilio Verify, with a fixed local code for
development and for numbers Twilio refuses.
"""

from .phone_verification_service import FALLBACK_ERROR_CODES, PhoneVerificationService
from .twilio_verify_client import TwilioVerifyClient, create_twilio_verify_client

__all__ = [
    "FALLBACK_ERROR_CODES",
    "PhoneVerificationService",
    "TwilioVerifyClient",
    "create_twilio_verify_client",
]
