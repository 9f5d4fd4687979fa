"""
Amazon Web Services version 4 request signing and S3 multipart uploads for
the Python Requests_ library.

.. _Requests: https://github.com/psf/requests

Features
--------
* AWS Signature Version 4 signing of requests to any AWS or AWS-compatible
  service
* Per-client, bounded cache of derived signing keys
* S3 object operations and multipart uploads that always leave the upload
  session completed or aborted

Installation
------------
Install via pip:

.. code-block:: bash

    $ pip install requests-awsmini

Basic usage
-----------
.. code-block:: python

    >>> from requests_awsmini import AWSClient, ClientConfig, s3
    >>> client = AWSClient(ClientConfig.from_env())
    >>> s3.put_object(client, 'bucket', 'hello.txt', b'hello')
    >>> s3.get_object(client, 'bucket', 'hello.txt')
    b'hello'

``ClientConfig.from_env()`` fills anything not passed explicitly from
``AWS_REGION``, ``AWS_ACCESS_KEY_ID``, ``AWS_SECRET_ACCESS_KEY``,
``AWS_SESSION_TOKEN`` and ``AWS_ENDPOINT_URL``.

Multipart uploads
-----------------
.. code-block:: python

    >>> from requests_awsmini import multipart_upload_stream
    >>> with open('backup.tar', 'rb') as f:
    ...     multipart_upload_stream(client, 'bucket', 'backup.tar', f)

The stream is read in 10 MiB parts, each uploaded under its own signed
request. ``multipart_upload()`` accepts any iterable of
``(bytes, is_final)`` pairs instead. If a part is too small, the service
misbehaves or the transfer fails, the upload is aborted and a
``MultipartUploadError`` is raised, with the underlying error as
``__cause__``.

Signing other requests
----------------------
``AWS4Signer.sign()`` signs an ``OutgoingRequest`` in place.
``AWS4Auth`` signs plain Requests calls:

.. code-block:: python

    >>> import requests
    >>> from requests_awsmini import AWS4Auth, SigningCredentials
    >>> creds = SigningCredentials('eu-west-1', '<ACCESS ID>', '<SECRET>')
    >>> requests.get('https://sqs.eu-west-1.amazonaws.com/?Action=ListQueues',
    ...              auth=AWS4Auth(creds, 'sqs'))

Errors
------
All exceptions derive from ``AWSMiniError``, see
``requests_awsmini.exceptions``. No retries are made anywhere.

Multi-threading
---------------
``AWS4Signer`` and its signing key cache are safe to share between
threads. A multipart upload runs in the thread that calls ``upload()``.

"""

# Licensed under the MIT License:
# http://opensource.org/licenses/MIT


from .aws4auth import AWS4Auth, AWS4Signer
from .aws4signingkey import AWS4SigningKey, SigningKeyCache
from .client import AWSClient
from .config import ClientConfig, client_config_env
from .exceptions import (AWSMiniError, AWSResponseError, ConfigurationError,
                         MultipartUploadError, PartCountViolationError,
                         RemoteProtocolError, RequestCancelledError,
                         RequestTimeoutError, SizeViolationError,
                         TransportError, ValidationError)
from .hashing import EMPTY_SHA256, UNSIGNED_PAYLOAD
from .multipart import (MultipartUpload, MultipartUploadSession,
                        iter_stream_parts, multipart_upload,
                        multipart_upload_stream)
from .request import OutgoingRequest, SigningCredentials
from . import s3

__version__ = '0.1'
