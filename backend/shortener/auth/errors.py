"""Auth-specific failure kinds."""

import enum


class AuthFailure(str, enum.Enum):
    """Why the admin gate refused a request.

    The boundary maps these to status codes: EMERGENCY_STOP → 503,
    UNAUTHORIZED → 401.
    """

    EMERGENCY_STOP = "EMERGENCY_STOP"
    UNAUTHORIZED = "UNAUTHORIZED"
