"""
S3 multipart uploads.

MultipartUpload drives one upload session: it creates the session, uploads
the parts handed to it by a part producer one after another, and completes
the session. If anything fails after the session was created, the session is
aborted before the error propagates, so no orphaned parts are left behind.

A part producer is any iterable of (bytes, is_final) pairs. It is consumed
once, in order; the pair with is_final set ends the upload.
iter_stream_parts() turns a binary file-like object into such a producer.

"""

# Licensed under the MIT License:
# http://opensource.org/licenses/MIT


import logging

from . import s3
from .exceptions import (MultipartUploadError, PartCountViolationError,
                         RemoteProtocolError, SizeViolationError)


logger = logging.getLogger(__name__)

MIB = 1024 * 1024

# S3 rejects non-final parts below 5 MiB (EntityTooSmall)
MIN_PART_SIZE = 5 * MIB
MAX_PARTS = 10000
STREAM_PART_SIZE = 10 * MIB


class MultipartUploadSession:
    """
    State of one multipart upload on the server side.

    Attributes:
    bucket    -- bucket name
    key       -- object key
    upload_id -- upload ID issued by CreateMultipartUpload
    parts     -- list of (part_number, etag) tuples, part numbers 1..N in
                 order

    """

    def __init__(self, bucket, key, upload_id):
        self.bucket = bucket
        self.key = key
        self.upload_id = upload_id
        self.parts = []

    def __repr__(self):
        return '<MultipartUploadSession [{}/{} {} parts]>'.format(
            self.bucket, self.key, len(self.parts))

    def add_part(self, part_number, etag):
        expected = len(self.parts) + 1
        if part_number != expected:
            raise MultipartUploadError(
                'part {} added out of order, expected part {}'.format(
                    part_number, expected))
        self.parts.append((part_number, etag))

    def complete_body(self):
        return s3.build_complete_multipart_body(self.parts)


class MultipartUpload:
    """
    Upload one object to S3 in parts.

    >>> upload = MultipartUpload(client, 'bucket', 'big.bin')
    >>> upload.upload(iter_stream_parts(open('big.bin', 'rb')))

    Parts are uploaded strictly sequentially, each under its own signed
    request.

    Errors raised by upload():
    - anything raised by CreateMultipartUpload, as is; no session exists yet
      so nothing is aborted.
    - after the session was created, a MultipartUploadError.
      SizeViolationError and PartCountViolationError are raised as
      themselves. Any other error (RemoteProtocolError, AWSResponseError,
      TransportError, an exception from the part producer) is wrapped in
      MultipartUploadError with the original as __cause__. The error has an
      upload_id attribute and the session has been aborted. If the abort
      call itself failed its exception is attached as abort_error.
    - KeyboardInterrupt and other BaseExceptions propagate unwrapped, after
      the session was aborted.

    """

    min_part_size = MIN_PART_SIZE
    max_parts = MAX_PARTS

    def __init__(self, client, bucket, key, timeout=None, cancel_event=None):
        """
        client       -- object with an execute(OutgoingRequest) method,
                        normally an AWSClient
        bucket       -- bucket name
        key          -- object key
        timeout      -- requests timeout for each call
        cancel_event -- threading.Event; setting it fails the next call and
                        aborts the session

        """
        self.client = client
        self.bucket = bucket
        self.key = key
        self.timeout = timeout
        self.cancel_event = cancel_event
        self.session = None

    def upload(self, parts):
        """
        Create the session, upload every part from parts and complete it.

        Return the completed MultipartUploadSession.

        parts -- iterable of (bytes, is_final) pairs

        """
        upload_id = s3.create_multipart_upload(
            self.client, self.bucket, self.key, timeout=self.timeout,
            cancel_event=self.cancel_event)
        self.session = MultipartUploadSession(self.bucket, self.key,
                                              upload_id)
        logger.info('Created multipart upload %s for %s/%s', upload_id,
                    self.bucket, self.key)
        try:
            self._upload_parts(iter(parts))
            s3.complete_multipart_upload(
                self.client, self.bucket, self.key, upload_id,
                self.session.complete_body(), timeout=self.timeout,
                cancel_event=self.cancel_event)
        except MultipartUploadError as e:
            e.upload_id = upload_id
            self.abort(e)
            raise
        except Exception as e:
            error = MultipartUploadError(
                'multipart upload {} failed: {}'.format(upload_id, e))
            error.upload_id = upload_id
            self.abort(error)
            raise error from e
        except BaseException as e:
            # e.g. KeyboardInterrupt, propagated unwrapped
            e.upload_id = upload_id
            self.abort(e)
            raise
        logger.info('Completed multipart upload %s for %s/%s with %d parts',
                    upload_id, self.bucket, self.key,
                    len(self.session.parts))
        return self.session

    def _upload_parts(self, parts):
        part_number = 1
        while True:
            try:
                body, is_final = next(parts)
            except StopIteration:
                raise MultipartUploadError(
                    'part producer ended without a final part') from None
            if not is_final and len(body) < self.min_part_size:
                raise SizeViolationError(
                    'part {} is {} bytes, parts other than the last must be '
                    'at least {} bytes'.format(part_number, len(body),
                                               self.min_part_size))
            response = s3.upload_part(
                self.client, self.bucket, self.key, self.session.upload_id,
                part_number, body, timeout=self.timeout,
                cancel_event=self.cancel_event)
            etag = response.headers.get('etag')
            if not etag:
                raise RemoteProtocolError(
                    'no ETag returned for part {}'.format(part_number))
            self.session.add_part(part_number, etag)
            logger.debug('Uploaded part %d (%d bytes) of %s', part_number,
                         len(body), self.session.upload_id)
            if is_final:
                break
            if part_number >= self.max_parts:
                raise PartCountViolationError(
                    'more than {} parts'.format(self.max_parts))
            part_number += 1

    def abort(self, error):
        """
        Abort the session after error. A failure to abort is logged and
        attached to error as abort_error; it never replaces error.

        """
        upload_id = self.session.upload_id
        error.abort_error = None
        logger.warning('Aborting multipart upload %s for %s/%s: %s',
                       upload_id, self.bucket, self.key, error)
        try:
            # not cancellable: the session must still be cleaned up
            s3.abort_multipart_upload(self.client, self.bucket, self.key,
                                      upload_id, timeout=self.timeout)
        except Exception as abort_error:
            logger.warning('Failed to abort multipart upload %s: %s',
                           upload_id, abort_error)
            error.abort_error = abort_error


def iter_stream_parts(stream, part_size=STREAM_PART_SIZE):
    """
    Yield (bytes, is_final) parts of part_size bytes read from stream.

    Short reads are buffered until a whole part is available. The part
    during which the stream ends is the final one and holds whatever is
    left, so it may be smaller than part_size; an empty stream yields a
    single empty final part.

    stream -- binary file-like object with a read(size) method

    """
    buffer = bytearray()
    done = False
    while True:
        # read one byte past the part to learn whether it is the last
        while len(buffer) <= part_size and not done:
            chunk = stream.read(part_size + 1 - len(buffer))
            if not chunk:
                done = True
            else:
                buffer += chunk
        if done:
            yield bytes(buffer), True
            return
        yield bytes(buffer[:part_size]), False
        del buffer[:part_size]


def multipart_upload(client, bucket, key, parts, **kwargs):
    """
    Upload parts to bucket/key. See MultipartUpload.upload().

    """
    return MultipartUpload(client, bucket, key, **kwargs).upload(parts)


def multipart_upload_stream(client, bucket, key, stream,
                            part_size=STREAM_PART_SIZE, **kwargs):
    """
    Upload everything read from stream to bucket/key in parts of part_size
    bytes.

    """
    return multipart_upload(client, bucket, key,
                            iter_stream_parts(stream, part_size), **kwargs)
