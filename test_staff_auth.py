"""
Staff-auth edge function client tests

Run with: pytest test_staff_auth.py -v
"""
import http.client
import io
import json
from urllib import error as urlerror

import pytest

from utils import staff_auth
from utils.staff_auth import StaffAuthUnavailable, remote_verifier_config, verify_pin_remote


class FakeResponse(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


def call():
    return verify_pin_remote('https://edge.test/staff-auth', 'service-key', staff_id='S1', pin='7392', timeout=2)


def test_request_shape_and_result(monkeypatch):
    seen = {}

    def fake_urlopen(req, timeout):
        seen['body'] = json.loads(req.data)
        seen['auth'] = req.get_header('Authorization')
        seen['timeout'] = timeout
        payload = {'success': True, 'isValid': True, 'staff': {'id': 'S1'}, 'error': None}
        return FakeResponse(json.dumps(payload).encode('utf-8'))

    monkeypatch.setattr(staff_auth.request, 'urlopen', fake_urlopen)

    result = call()
    assert result == {'isValid': True, 'staff': {'id': 'S1'}, 'error': None}
    assert seen['body'] == {'staffId': 'S1', 'pin': '7392', 'action': 'verify'}
    assert seen['auth'] == 'Bearer service-key'
    assert seen['timeout'] == 2


def test_transport_error_is_unavailable(monkeypatch):
    def refuse(req, timeout):
        raise urlerror.URLError('connection refused')

    monkeypatch.setattr(staff_auth.request, 'urlopen', refuse)
    with pytest.raises(StaffAuthUnavailable):
        call()


@pytest.mark.parametrize('raw', [
    b'<html>',
    b'{"success": false, "error": "Invalid action"}',
    b'[]',
    b'\xff\xfe{}',
])
def test_unusable_answer_is_unavailable(monkeypatch, raw):
    monkeypatch.setattr(staff_auth.request, 'urlopen', lambda req, timeout: FakeResponse(raw))
    with pytest.raises(StaffAuthUnavailable):
        call()


def test_truncated_body_is_unavailable(monkeypatch):
    class TruncatedResponse(FakeResponse):
        def read(self, *args):
            raise http.client.IncompleteRead(b'{"succ')

    monkeypatch.setattr(staff_auth.request, 'urlopen', lambda req, timeout: TruncatedResponse())
    with pytest.raises(StaffAuthUnavailable):
        call()


def test_remote_verifier_config():
    assert remote_verifier_config({}) is None
    assert remote_verifier_config({'STAFF_AUTH_FUNCTION_URL': 'https://x'}) is None
    assert remote_verifier_config({
        'STAFF_AUTH_FUNCTION_URL': 'https://x',
        'STAFF_AUTH_SERVICE_KEY': 'k',
        'STAFF_AUTH_TIMEOUT': 3,
    }) == ('https://x', 'k', 3.0)
