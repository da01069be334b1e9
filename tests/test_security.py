import hashlib
import hmac

from modbot.shared.utils.security import (generate_request_signature,
                                          verify_payload)

from .conftest import PUBLIC_KEY, sign

BODY = b'{"type":1}'


def _headers(body=BODY):
    return sign(body.decode())


def _verify(body, headers, **kwargs):
    return verify_payload(
        body,
        headers.get("X-Signature-Ed25519"),
        headers.get("X-Signature-Timestamp"),
        PUBLIC_KEY,
        **kwargs,
    )


def test_valid_signature_returns_body():
    result = _verify(BODY, _headers())
    assert result.is_valid
    assert result.body == BODY.decode()


def test_single_byte_mutation_is_rejected():
    headers = _headers()
    for i in range(len(BODY)):
        mutated = bytearray(BODY)
        mutated[i] ^= 0x01
        assert not _verify(bytes(mutated), headers).is_valid


def test_missing_headers_skip_crypto():
    result = verify_payload(BODY, None, "1700000000", PUBLIC_KEY)
    assert not result.is_valid
    assert result.error == "Missing signature headers"


def test_declared_length_over_limit():
    result = _verify(BODY, _headers(), content_length="200000")
    assert result.error == "Request body too large"


def test_actual_length_over_limit():
    body = b"x" * 101
    result = _verify(body, _headers(body), max_body_size=100)
    assert not result.is_valid
    assert result.error == "Request body too large"


def test_malformed_signature_is_invalid_with_reason():
    result = verify_payload(BODY, "zz", "1700000000", PUBLIC_KEY)
    assert not result.is_valid
    assert result.error


def test_request_signature_is_hmac_of_fixed_shape_message():
    expected = hmac.new(b"secret", b"1700000000:42:", hashlib.sha256).hexdigest()
    assert generate_request_signature(1700000000, "42", None, "secret") == expected
    assert generate_request_signature(1700000000, None, None, "secret") == hmac.new(
        b"secret", b"1700000000::", hashlib.sha256
    ).hexdigest()
