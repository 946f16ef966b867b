"""JWT helpers package."""

from .jwt_utils import decode_jwt_payload
