"""
Client configuration, optionally completed from environment variables.

"""

# Licensed under the MIT License:
# http://opensource.org/licenses/MIT


import os
from urllib.parse import urlsplit

from .exceptions import ConfigurationError
from .request import SigningCredentials


# environment variables consulted for each setting, in order
ENV_VARS = {
    'region': ('AWS_REGION', 'AWS_DEFAULT_REGION', 'AMAZON_REGION'),
    'access_key_id': ('AWS_ACCESS_KEY_ID', 'AWS_ACCESS_KEY'),
    'secret_access_key': ('AWS_SECRET_ACCESS_KEY', 'AWS_SECRET_KEY'),
    'session_token': ('AWS_SESSION_TOKEN',),
    'endpoint': ('AWS_ENDPOINT_URL',),
}


def _first_env(names, environ):
    for name in names:
        val = environ.get(name)
        if val:
            return val
    return None


class ClientConfig:
    """
    Settings for an AWSClient.

    Attributes:
    region            -- AWS region, e.g. us-east-1
    access_key_id     -- AWS access key ID
    secret_access_key -- AWS secret access key
    session_token     -- optional session token for temporary credentials
    endpoint          -- optional URL of an AWS-compatible service, e.g.
                         http://localhost:9000. When unset requests go to
                         <service>.<region>.amazonaws.com over https.
    timeout           -- default requests timeout for every call
    s3_path_style     -- address S3 buckets in the path instead of the host

    """

    def __init__(self, region=None, access_key_id=None,
                 secret_access_key=None, session_token=None, endpoint=None,
                 timeout=None, s3_path_style=False):
        self.region = region
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.session_token = session_token
        self.endpoint = endpoint
        self.timeout = timeout
        self.s3_path_style = s3_path_style

    def __repr__(self):
        return '<ClientConfig [{} {}]>'.format(self.region,
                                               self.endpoint or 'aws')

    @classmethod
    def from_env(cls, environ=None, **kwargs):
        """
        Create a ClientConfig from keyword arguments, filling anything not
        supplied from the environment.

        >>> ClientConfig.from_env(region='eu-west-1')

        """
        return client_config_env(cls(**kwargs), environ)

    def validate(self):
        """
        Check the configuration, raising a single ConfigurationError that
        lists every problem found.

        """
        errors = []
        if not self.region:
            errors.append('region is not set')
        if not self.access_key_id:
            errors.append('accessKeyId is not set')
        if not self.secret_access_key:
            errors.append('secretAccessKey is not set')
        if self.endpoint:
            url = urlsplit(self.endpoint)
            if url.scheme not in ('http', 'https') or not url.netloc:
                errors.append('endpoint is not a valid URL')
        if errors:
            raise ConfigurationError(', '.join(errors))

    @property
    def protocol(self):
        if self.endpoint:
            return urlsplit(self.endpoint).scheme
        return 'https'

    @property
    def host(self):
        if self.endpoint:
            return urlsplit(self.endpoint).netloc
        return None

    def credentials(self):
        return SigningCredentials(self.region, self.access_key_id,
                                  self.secret_access_key, self.session_token)


def client_config_env(config, environ=None):
    """
    Return a new ClientConfig with every unset field of config taken from
    the environment.

    region            -- AWS_REGION, AWS_DEFAULT_REGION, AMAZON_REGION
    access_key_id     -- AWS_ACCESS_KEY_ID, AWS_ACCESS_KEY
    secret_access_key -- AWS_SECRET_ACCESS_KEY, AWS_SECRET_KEY
    session_token     -- AWS_SESSION_TOKEN
    endpoint          -- AWS_ENDPOINT_URL

    Values set on config always take precedence.

    """
    environ = os.environ if environ is None else environ
    values = {}
    for field, names in ENV_VARS.items():
        values[field] = getattr(config, field) or _first_env(names, environ)
    return ClientConfig(timeout=config.timeout,
                        s3_path_style=config.s3_path_style, **values)
