"""Request rate limiting keyed on client address."""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, default_limits=[])

LOGIN_LIMIT = "10/minute"
CHAT_LIMIT = "30/minute"
VOICE_WEBHOOK_LIMIT = "120/minute"
