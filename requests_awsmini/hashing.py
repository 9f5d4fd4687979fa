"""
SHA-256 and HMAC-SHA256 primitives used throughout the signing code.

"""

# Licensed under the MIT License:
# http://opensource.org/licenses/MIT


import hmac
import hashlib


EMPTY_SHA256 = ('e3b0c44298fc1c149afbf4c8996fb924'
                '27ae41e4649b934ca495991b7852b855')

UNSIGNED_PAYLOAD = 'UNSIGNED-PAYLOAD'


def to_bytes(data):
    """
    Return data as bytes, encoding str to UTF-8.

    """
    if isinstance(data, str):
        return data.encode('utf-8')
    return bytes(data)


def sha256_hex(data):
    """
    Return the lowercase hex SHA-256 digest of data.

    data -- bytes-like object or str. str is encoded to UTF-8.

    """
    return hashlib.sha256(to_bytes(data)).hexdigest()


def hmac_sha256(key, msg):
    """
    Generate an SHA256 HMAC, encoding msg to UTF-8 if not
    already encoded.

    key -- signing key. bytes.
    msg -- message to sign. str or bytes.

    """
    return hmac.new(key, to_bytes(msg), hashlib.sha256).digest()
