"""
Exceptions raised by requests-awsmini.

Every exception derives from AWSMiniError so callers can catch everything
from the package in one place, or branch on the more specific kinds below.

"""

# Licensed under the MIT License:
# http://opensource.org/licenses/MIT


class AWSMiniError(Exception):
    """Base class for all requests-awsmini errors."""


class ConfigurationError(AWSMiniError):
    """Region, access key ID or secret access key missing or invalid."""


class ValidationError(AWSMiniError, ValueError):
    """Caller supplied invalid or conflicting request parameters."""


class TransportError(AWSMiniError):
    """
    The request could not be delivered, or no response was received.

    The underlying requests exception, if any, is available as __cause__.

    """


class RequestTimeoutError(TransportError):
    """The request timed out before a response arrived."""


class RequestCancelledError(RequestTimeoutError):
    """The request was cancelled through its cancellation event."""


class AWSResponseError(AWSMiniError):
    """
    The service answered with a non-2xx status.

    Attributes:
    status_code -- HTTP status of the response
    code        -- AWS error code from the response body, or None
    message     -- AWS error message from the response body, or the raw
                   body text when it could not be parsed

    """

    def __init__(self, status_code, code=None, message=None, reason=None):
        self.status_code = status_code
        self.code = code
        self.message = message
        text = 'HTTP {} {}: [{}] {}'.format(status_code, reason or '',
                                           code or 'unknown error',
                                           message or '')
        super().__init__(text)


class RemoteProtocolError(AWSMiniError):
    """A successful-looking response lacked a mandatory field."""


class MultipartUploadError(AWSMiniError):
    """
    A multipart upload failed after the session was created.

    Raised directly to wrap any other error, including requests-awsmini
    errors such as TransportError, with the original kept as __cause__.
    Also the base of the multipart-specific kinds.

    Attributes:
    upload_id   -- ID of the aborted upload
    abort_error -- exception raised by the abort call, or None

    """


class SizeViolationError(MultipartUploadError):
    """A part other than the last one is smaller than the 5 MiB minimum."""


class PartCountViolationError(MultipartUploadError):
    """The upload needs more than the maximum of 10000 parts."""
