"""
Provides AWS4Signer, which applies Amazon Web Services version 4
authentication to an OutgoingRequest, and AWS4Auth, which does the same for
requests made with the Requests module.

"""

# Licensed under the MIT License:
# http://opensource.org/licenses/MIT


import logging
from datetime import datetime, timezone
from urllib.parse import urlsplit, parse_qsl

from requests.auth import AuthBase

from .aws4signingkey import SigningKeyCache
from .canonical import (get_canonical_request, hash_canonical_request,
                        resolve_payload_hash)
from .exceptions import ConfigurationError, ValidationError
from .hashing import hmac_sha256
from .request import OutgoingRequest


logger = logging.getLogger(__name__)

ALGORITHM = 'AWS4-HMAC-SHA256'


def amz_timestamp(now=None):
    """
    Return now (default: the current time) in the compact ISO 8601 form
    used by the x-amz-date header, e.g. 20130524T000000Z.

    """
    now = now or datetime.now(timezone.utc)
    return now.strftime('%Y%m%dT%H%M%SZ')


def get_sig_string(amz_date, scope, cano_req):
    """
    Generate the AWS4 auth string to sign for the request.

    amz_date -- value of the x-amz-date header
    scope    -- credential scope, date/region/service/aws4_request
    cano_req -- The Canonical Request, as returned by
                get_canonical_request()

    """
    sig_items = [ALGORITHM, amz_date, scope,
                 hash_canonical_request(cano_req)]
    return '\n'.join(sig_items)


def check_credentials(credentials):
    missing = []
    if not credentials.region:
        missing.append('region is not set')
    if not credentials.access_key_id:
        missing.append('accessKeyId is not set')
    if not credentials.secret_access_key:
        missing.append('secretAccessKey is not set')
    if missing:
        raise ConfigurationError(', '.join(missing))


class AWS4Signer:
    """
    Signs OutgoingRequest instances with AWS version 4 authentication.

    An AWS4Signer owns the cache of signing keys it derives, so instances
    should be kept for as long as their credentials are used. Signing is
    safe to call from several threads at once.

    >>> signer = AWS4Signer()
    >>> signer.sign(request, credentials)
    >>> request.headers['authorization']
    'AWS4-HMAC-SHA256 Credential=...'

    """

    def __init__(self, cache=None):
        self.cache = cache if cache is not None else SigningKeyCache()

    def sign(self, request, credentials, set_content_length=True):
        """
        Add the AWS version 4 authentication headers to request.

        Modifies request in place. The host header is always set to
        request.host, x-amz-date is kept if the caller supplied one, and a
        caller supplied x-amz-content-sha256 (e.g. UNSIGNED-PAYLOAD) is kept
        as is. The session token, if any, is sent in the
        x-amz-security-token header.

        Raises ConfigurationError before anything is modified if the
        credentials lack a region, access key ID or secret access key.

        request            -- OutgoingRequest with host and service resolved
        credentials        -- SigningCredentials
        set_content_length -- add and sign a content-length header for a
                              body that has none

        """
        check_credentials(credentials)
        if not request.host:
            raise ValidationError('request host is not set')
        if isinstance(request.body, str):
            request.body = request.body.encode('utf-8')

        headers = request.headers
        headers.pop('authorization', None)
        headers['host'] = request.host
        headers['x-amz-content-sha256'] = resolve_payload_hash(headers,
                                                               request.body)
        if (set_content_length and request.body and
                'content-length' not in headers):
            headers['content-length'] = str(len(request.body))
        if credentials.session_token:
            headers['x-amz-security-token'] = credentials.session_token
        amz_date = headers.get('x-amz-date') or amz_timestamp()
        headers['x-amz-date'] = amz_date
        date = amz_date[:8]
        region = request.region or credentials.region

        cano_req, signed_headers = get_canonical_request(
            request.method, request.path, request.query, headers,
            headers['x-amz-content-sha256'])
        scope = '{}/{}/{}/aws4_request'.format(date, region, request.service)
        sig_string = get_sig_string(amz_date, scope, cano_req)
        logger.debug('Canonical request:\n%s', cano_req)
        logger.debug('String to sign:\n%s', sig_string)

        key = self.cache.get(credentials.secret_access_key, date, region,
                             request.service)
        sig = hmac_sha256(key, sig_string).hex()
        auth_str = '{} '.format(ALGORITHM)
        auth_str += 'Credential={}/{}, '.format(credentials.access_key_id,
                                                scope)
        auth_str += 'SignedHeaders={}, '.format(signed_headers)
        auth_str += 'Signature={}'.format(sig)
        headers['authorization'] = auth_str


class AWS4Auth(AuthBase):
    """
    Requests authentication class for providing AWS version 4 authentication
    for HTTP requests.

    Basic usage
    -----------

    >>> import requests
    >>> from requests_awsmini import AWS4Auth, SigningCredentials
    >>> creds = SigningCredentials('eu-west-1', '<ACCESS ID>', '<SECRET>')
    >>> auth = AWS4Auth(creds, 's3')
    >>> response = requests.get('https://s3.eu-west-1.amazonaws.com',
    ...                         auth=auth)

    You can reuse AWS4Auth instances to sign as many requests as you need;
    signing keys are cached by the underlying AWS4Signer.

    Attributes:
    credentials  -- SigningCredentials used for every request
    service      -- the endpoint code for the service, e.g. s3
    signer       -- AWS4Signer doing the work
    include_hdrs -- set of header names to sign. 'x-amz-*' matches any
                    x-amz- header except x-amz-client-context, '*' matches
                    everything.

    """

    default_include_headers = {'host', 'content-type', 'date', 'x-amz-*'}

    def __init__(self, credentials, service, signer=None, include_hdrs=None):
        check_credentials(credentials)
        self.credentials = credentials
        self.service = service
        self.signer = signer or AWS4Signer()
        if include_hdrs is None:
            include_hdrs = self.default_include_headers
        self.include_hdrs = {hdr.lower() for hdr in include_hdrs}

    def __call__(self, req):
        """
        Interface used by Requests module to apply authentication to HTTP
        requests.

        req -- Requests PreparedRequest object

        """
        self.encode_body(req)
        url = urlsplit(req.url)
        query = parse_qsl(url.query, keep_blank_values=True)
        headers = {hdr: val for hdr, val in req.headers.items()
                   if self.is_included(hdr)}
        out = OutgoingRequest(req.method, url.path or '/', self.service,
                              query=query, headers=headers,
                              body=req.body or None, host=url.netloc,
                              region=self.credentials.region)
        self.signer.sign(out, self.credentials,
                         set_content_length=self.is_included('content-length'))
        req.headers.update(out.headers)
        return req

    def is_included(self, hdr):
        hdr = hdr.strip().lower()
        include = self.include_hdrs
        return (hdr in include or '*' in include or
                ('x-amz-*' in include and hdr.startswith('x-amz-') and not
                 hdr == 'x-amz-client-context'))

    @staticmethod
    def encode_body(req):
        """
        Encode body of request to bytes and update content-type if required.

        If the body of req is str then encode to the charset found in
        content-type header if present, otherwise UTF-8, or ASCII if
        content-type is application/x-www-form-urlencoded. If encoding to UTF-8
        then add charset to content-type. Modifies req directly, does not
        return a modified copy.

        req -- Requests PreparedRequest object

        """
        if isinstance(req.body, str):
            split = req.headers.get('content-type', 'text/plain').split(';')
            if len(split) == 2:
                ct, cs = split
                cs = cs.split('=')[1]
                req.body = req.body.encode(cs)
            else:
                ct = split[0]
                if (ct == 'application/x-www-form-urlencoded' or
                        'x-amz-' in ct):
                    req.body = req.body.encode()
                else:
                    req.body = req.body.encode('utf-8')
                    req.headers['content-type'] = ct + '; charset=utf-8'
