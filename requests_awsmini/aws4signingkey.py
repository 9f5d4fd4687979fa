"""
Provides AWS4SigningKey for generating Amazon Web Services version 4 signing
keys, and SigningKeyCache for reusing them across requests sharing a scope.

"""

# Licensed under the MIT License:
# http://opensource.org/licenses/MIT


import logging
import threading
from collections import OrderedDict

from .hashing import hmac_sha256


logger = logging.getLogger(__name__)


class AWS4SigningKey:
    """
    AWS version 4 signing key derivation.

    A signing key is scoped to a secret key, date, region and service. It is
    derived from the secret key by a chain of four HMAC-SHA256 rounds and
    used to sign the string to sign. SigningKeyCache holds derived keys so
    that requests sharing a scope derive the key only once.

    """

    @staticmethod
    def generate_key(secret_key, region, service, amz_date,
                     intermediate=False):
        """
        Generate the signing key as bytes.

        If intermediate is set to True, returns a 4-tuple containing the key
        and the intermediate keys:

        ( signing_key, date_key, region_key, service_key )

        The intermediate keys can be used for testing against examples from
        Amazon.

        secret_key -- This is your AWS secret access key
        region     -- The region you're connecting to, e.g. us-east-1
        service    -- The name of the service you're connecting to, e.g. s3
        amz_date   -- 8-digit date of the form YYYYMMDD

        """
        init_key = ('AWS4' + secret_key).encode('utf-8')
        date_key = hmac_sha256(init_key, amz_date)
        region_key = hmac_sha256(date_key, region)
        service_key = hmac_sha256(region_key, service)
        key = hmac_sha256(service_key, 'aws4_request')
        if intermediate:
            return (key, date_key, region_key, service_key)
        else:
            return key


class SigningKeyCache:
    """
    Bounded, thread-safe store of derived signing keys.

    Keys are addressed by (secret_key, date, region, service); changing any of
    the four derives a new key. The least recently used entry is evicted once
    more than maxsize keys are held. Each AWS4Signer owns its own cache, so
    independently configured clients never share derived keys.

    """

    def __init__(self, maxsize=64):
        if maxsize < 1:
            raise ValueError('maxsize must be at least 1')
        self.maxsize = maxsize
        self._keys = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._keys)

    def __contains__(self, scope):
        with self._lock:
            return tuple(scope) in self._keys

    def get(self, secret_key, date, region, service):
        """
        Return the signing key for the given scope, deriving it on a miss.

        date -- 8-digit date of the form YYYYMMDD

        """
        cache_key = (secret_key, date, region, service)
        with self._lock:
            key = self._keys.get(cache_key)
            if key is not None:
                self._keys.move_to_end(cache_key)
                logger.debug('Signing key cache hit for %s/%s/%s',
                             date, region, service)
                return key
        logger.debug('Signing key cache miss for %s/%s/%s',
                     date, region, service)
        key = AWS4SigningKey.generate_key(secret_key, region, service, date)
        with self._lock:
            # another thread may have derived the same key meanwhile
            key = self._keys.setdefault(cache_key, key)
            self._keys.move_to_end(cache_key)
            while len(self._keys) > self.maxsize:
                self._keys.popitem(last=False)
        return key

    def clear(self):
        with self._lock:
            self._keys.clear()
