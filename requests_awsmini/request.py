"""
Request and credential containers passed between the client, the signer and
the service operations.

"""

# Licensed under the MIT License:
# http://opensource.org/licenses/MIT


from requests.structures import CaseInsensitiveDict


class OutgoingRequest:
    """
    A logical request to an AWS service, before and after signing.

    Signing mutates the instance: headers gains host, x-amz-date,
    x-amz-content-sha256, authorization and, where applicable,
    x-amz-security-token and content-length.

    Attributes:
    method         -- HTTP method, e.g. 'PUT'
    path           -- URL path. Percent-encoded per segment by the time it is
                      signed.
    query          -- dict of query parameters, str to str, or a list of
                      (name, value) pairs when a name repeats. Order does
                      not matter.
    headers        -- CaseInsensitiveDict of headers, case kept as supplied
    body           -- bytes or None
    service        -- service code used in the credential scope, e.g. 's3'
    subhost        -- optional host prefix, e.g. an S3 bucket name
    host           -- target host, resolved by the client before signing
    region         -- target region, resolved by the client before signing
    check_response -- raise AWSResponseError on a non-2xx response
    timeout        -- requests timeout, seconds or (connect, read) tuple
    cancel_event   -- optional threading.Event; once set the request is not
                      sent

    """

    def __init__(self, method, path, service, query=None, headers=None,
                 body=None, subhost=None, host=None, region=None,
                 check_response=True, timeout=None, cancel_event=None):
        self.method = method.upper()
        self.path = path
        self.service = service
        if isinstance(query, (list, tuple)):
            self.query = list(query)
        else:
            self.query = dict(query or {})
        self.headers = CaseInsensitiveDict(headers or {})
        self.body = body
        self.subhost = subhost
        self.host = host
        self.region = region
        self.check_response = check_response
        self.timeout = timeout
        self.cancel_event = cancel_event

    def __repr__(self):
        return '<OutgoingRequest [{} {} {}]>'.format(self.method,
                                                     self.service, self.path)


class SigningCredentials:
    """
    Immutable set of AWS credentials used to sign requests.

    The secret access key and session token are left out of repr().

    """

    __slots__ = ('region', 'access_key_id', 'secret_access_key',
                 'session_token')

    def __init__(self, region, access_key_id, secret_access_key,
                 session_token=None):
        object.__setattr__(self, 'region', region)
        object.__setattr__(self, 'access_key_id', access_key_id)
        object.__setattr__(self, 'secret_access_key', secret_access_key)
        object.__setattr__(self, 'session_token', session_token)

    def __setattr__(self, name, value):
        raise AttributeError('SigningCredentials are immutable')

    def __delattr__(self, name):
        raise AttributeError('SigningCredentials are immutable')

    def __repr__(self):
        return '<SigningCredentials [{} {}]>'.format(self.access_key_id,
                                                     self.region)
