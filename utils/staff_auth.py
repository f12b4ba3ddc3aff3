"""Client for the hosted staff-auth edge function.

The function verifies a PIN server-side and answers with
``{"success", "isValid", "staff", "error"}``. Any transport or decoding
problem raises :class:`StaffAuthUnavailable` so callers can fall back to
local verification.
"""

from __future__ import annotations

import json
from http import client as httpclient
from typing import Any, Optional
from urllib import request
from urllib import error as urlerror


class StaffAuthUnavailable(Exception):
    """The remote verifier could not produce a usable answer."""


def verify_pin_remote(
    url: str,
    service_key: str,
    *,
    staff_id: str,
    pin: str,
    timeout: float = 5.0,
) -> dict[str, Any]:
    body = json.dumps({'staffId': staff_id, 'pin': pin, 'action': 'verify'}).encode('utf-8')
    req = request.Request(
        url,
        data=body,
        method='POST',
        headers={
            'Content-Type': 'application/json',
            'Authorization': f'Bearer {service_key}',
        },
    )

    try:
        with request.urlopen(req, timeout=timeout) as resp:
            raw = resp.read()
    except (urlerror.URLError, httpclient.HTTPException, TimeoutError, OSError) as e:
        raise StaffAuthUnavailable(str(e)) from e

    try:
        payload = json.loads(raw.decode('utf-8') or '{}')
    except ValueError as e:
        raise StaffAuthUnavailable(f'Invalid JSON from staff-auth: {e}') from e

    if not isinstance(payload, dict) or payload.get('success') is False:
        message = payload.get('error') if isinstance(payload, dict) else None
        raise StaffAuthUnavailable(message or 'staff-auth reported failure')

    return {
        'isValid': bool(payload.get('isValid')),
        'staff': payload.get('staff'),
        'error': payload.get('error'),
    }


def remote_verifier_config(config) -> Optional[tuple[str, str, float]]:
    """Return (url, key, timeout) when the edge function is configured."""
    url = (config.get('STAFF_AUTH_FUNCTION_URL') or '').strip()
    key = (config.get('STAFF_AUTH_SERVICE_KEY') or '').strip()
    if not url or not key:
        return None
    return url, key, float(config.get('STAFF_AUTH_TIMEOUT', 5.0))
