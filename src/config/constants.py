"""
Constants, enums, and static values.
"""

from enum import Enum

RECAPTCHA_VERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"
RECAPTCHA_SCRIPT_URL = "https://www.google.com/recaptcha/api.js"
RECAPTCHA_RESPONSE_FIELD = "g-recaptcha-response"
FORWARDED_FOR_HEADER = "X-Forwarded-For"

DEFAULT_TIMEOUT_SECONDS = 20.0


class AddressPolicy(str, Enum):
    """How the client address forwarded to the provider is chosen."""

    NEVER = "never"  # Do not send remoteip
    USE_CONNECTION_ADDRESS = "use_connection_address"  # Peer of the TCP connection
    TRUST_FORWARDED_FOR_LAST_HOP = "trust_forwarded_for_last_hop"  # Last X-Forwarded-For entry


class FailureKind(str, Enum):
    """Why a verification did not succeed."""

    TRANSPORT = "transport"
    DECODE = "decode"
    PROVIDER_REJECTED = "provider_rejected"
