#!/usr/bin/env python
# coding: utf-8

"""
Tests for the S3 multipart upload orchestration.

FakeS3Client stands in for AWSClient: it records every request handed to
execute() and answers like S3 would.

"""

import io
import itertools
import threading
import unittest
from types import SimpleNamespace

from requests.structures import CaseInsensitiveDict

from requests_awsmini import (MultipartUpload, MultipartUploadError,
                              MultipartUploadSession, PartCountViolationError,
                              RemoteProtocolError, RequestCancelledError,
                              SizeViolationError, TransportError,
                              iter_stream_parts, multipart_upload,
                              multipart_upload_stream)
from requests_awsmini.multipart import MIB


CREATE_RESULT = ('<?xml version="1.0" encoding="UTF-8"?>'
                 '<InitiateMultipartUploadResult>'
                 '<Bucket>bucket</Bucket><Key>key</Key>'
                 '<UploadId>upload-1</UploadId>'
                 '</InitiateMultipartUploadResult>')


def fake_response(text='', headers=None, status_code=200):
    return SimpleNamespace(status_code=status_code, ok=status_code < 400,
                           text=text, content=text.encode(),
                           headers=CaseInsensitiveDict(headers or {}))


class FakeS3Client:

    def __init__(self, missing_etag_for=(), fail_part=None, fail_create=False,
                 fail_abort=False, create_text=CREATE_RESULT):
        self.calls = []
        self.complete_body = None
        self.missing_etag_for = set(missing_etag_for)
        self.fail_part = fail_part
        self.fail_create = fail_create
        self.fail_abort = fail_abort
        self.create_text = create_text

    def execute(self, req):
        if req.cancel_event is not None and req.cancel_event.is_set():
            raise RequestCancelledError('cancelled')
        if req.method == 'POST' and 'uploads' in req.query:
            self.calls.append(('create', None))
            if self.fail_create:
                raise TransportError('connection refused')
            return fake_response(self.create_text)
        if req.method == 'PUT' and 'partNumber' in req.query:
            part_number = int(req.query['partNumber'])
            assert req.query['uploadId'] == 'upload-1'
            self.calls.append(('upload', part_number))
            if part_number == self.fail_part:
                raise TransportError('connection reset')
            if part_number in self.missing_etag_for:
                return fake_response()
            return fake_response(
                headers={'ETag': '"etag-{}"'.format(part_number)})
        if req.method == 'POST' and 'uploadId' in req.query:
            self.calls.append(('complete', None))
            self.complete_body = req.body
            return fake_response('<CompleteMultipartUploadResult/>')
        if req.method == 'DELETE' and 'uploadId' in req.query:
            self.calls.append(('abort', None))
            if self.fail_abort:
                raise TransportError('abort failed')
            return fake_response(status_code=204)
        raise AssertionError('unexpected request {!r}'.format(req))

    def count(self, kind):
        return len([call for call in self.calls if call[0] == kind])

    def part_numbers(self):
        return [num for kind, num in self.calls if kind == 'upload']


class MultipartUpload_Test(unittest.TestCase):

    def setUp(self):
        self.client = FakeS3Client()

    def test_happy_path(self):
        parts = [(b'a' * (5 * MIB), False),
                 (b'b' * (5 * MIB), False),
                 (b'c' * MIB, True)]
        session = MultipartUpload(self.client, 'bucket', 'key').upload(parts)
        self.assertEqual(self.client.count('create'), 1)
        self.assertEqual(self.client.part_numbers(), [1, 2, 3])
        self.assertEqual(self.client.count('complete'), 1)
        self.assertEqual(self.client.count('abort'), 0)
        self.assertEqual(self.client.calls[-1], ('complete', None))
        expected = (
            '<?xml version="1.0" encoding="UTF-8"?>'
            '<CompleteMultipartUpload '
            'xmlns="http://s3.amazonaws.com/doc/2006-03-01/">'
            '<Part><ETag>&quot;etag-1&quot;</ETag>'
            '<PartNumber>1</PartNumber></Part>'
            '<Part><ETag>&quot;etag-2&quot;</ETag>'
            '<PartNumber>2</PartNumber></Part>'
            '<Part><ETag>&quot;etag-3&quot;</ETag>'
            '<PartNumber>3</PartNumber></Part>'
            '</CompleteMultipartUpload>').encode()
        self.assertEqual(self.client.complete_body, expected)
        self.assertEqual(session.upload_id, 'upload-1')
        self.assertEqual(session.parts, [(1, '"etag-1"'), (2, '"etag-2"'),
                                         (3, '"etag-3"')])

    def test_single_small_final_part(self):
        multipart_upload(self.client, 'bucket', 'key', [(b'tiny', True)])
        self.assertEqual(self.client.part_numbers(), [1])
        self.assertEqual(self.client.count('complete'), 1)

    def test_small_part_aborts(self):
        parts = [(b'a' * MIB, False), (b'b' * MIB, True)]
        with self.assertRaises(SizeViolationError) as cm:
            multipart_upload(self.client, 'bucket', 'key', parts)
        self.assertEqual(cm.exception.upload_id, 'upload-1')
        self.assertIsNone(cm.exception.abort_error)
        self.assertEqual(self.client.count('abort'), 1)
        self.assertEqual(self.client.count('complete'), 0)
        self.assertEqual(self.client.count('upload'), 0)

    def test_part_count_violation(self):
        body = b'a' * (5 * MIB)
        parts = itertools.repeat((body, False))
        with self.assertRaises(PartCountViolationError):
            multipart_upload(self.client, 'bucket', 'key', parts)
        self.assertEqual(self.client.count('upload'), 10000)
        self.assertEqual(self.client.part_numbers()[-1], 10000)
        self.assertEqual(self.client.count('abort'), 1)
        self.assertEqual(self.client.count('complete'), 0)

    def test_final_part_10000_allowed(self):
        body = b'a' * (5 * MIB)
        parts = itertools.chain(itertools.repeat((body, False), 9999),
                                [(b'end', True)])
        session = multipart_upload(self.client, 'bucket', 'key', parts)
        self.assertEqual(len(session.parts), 10000)
        self.assertEqual(self.client.count('abort'), 0)

    def test_missing_etag(self):
        self.client.missing_etag_for = {2}
        parts = [(b'a' * (5 * MIB), False), (b'b', True)]
        with self.assertRaises(MultipartUploadError) as cm:
            multipart_upload(self.client, 'bucket', 'key', parts)
        self.assertIsInstance(cm.exception.__cause__, RemoteProtocolError)
        self.assertEqual(self.client.count('abort'), 1)
        self.assertEqual(self.client.count('complete'), 0)

    def test_transport_error_wrapped_after_abort(self):
        self.client.fail_part = 1
        with self.assertRaises(MultipartUploadError) as cm:
            multipart_upload(self.client, 'bucket', 'key', [(b'a', True)])
        self.assertIsInstance(cm.exception.__cause__, TransportError)
        self.assertEqual(str(cm.exception.__cause__), 'connection reset')
        self.assertEqual(cm.exception.upload_id, 'upload-1')
        self.assertIsNone(cm.exception.abort_error)
        self.assertEqual(self.client.calls[-1], ('abort', None))

    def test_abort_failure_keeps_original_error(self):
        self.client.fail_abort = True
        parts = [(b'a', False), (b'b', True)]
        with self.assertRaises(SizeViolationError) as cm:
            multipart_upload(self.client, 'bucket', 'key', parts)
        self.assertIsInstance(cm.exception.abort_error, TransportError)
        self.assertEqual(str(cm.exception.abort_error), 'abort failed')

    def test_abort_failure_on_wrapped_error(self):
        self.client.fail_part = 2
        self.client.fail_abort = True
        parts = [(b'a' * (5 * MIB), False), (b'b', True)]
        with self.assertRaises(MultipartUploadError) as cm:
            multipart_upload(self.client, 'bucket', 'key', parts)
        self.assertEqual(str(cm.exception.__cause__), 'connection reset')
        self.assertEqual(str(cm.exception.abort_error), 'abort failed')

    def test_create_failure_not_aborted(self):
        self.client.fail_create = True
        with self.assertRaises(TransportError):
            multipart_upload(self.client, 'bucket', 'key', [(b'a', True)])
        self.assertEqual(self.client.count('abort'), 0)
        self.assertEqual(self.client.count('upload'), 0)

    def test_create_without_upload_id(self):
        self.client.create_text = '<InitiateMultipartUploadResult/>'
        with self.assertRaises(RemoteProtocolError):
            multipart_upload(self.client, 'bucket', 'key', [(b'a', True)])
        self.assertEqual(self.client.count('abort'), 0)

    def test_foreign_error_wrapped(self):
        def parts():
            yield b'a' * (5 * MIB), False
            raise OSError('disk gone')

        with self.assertRaises(MultipartUploadError) as cm:
            multipart_upload(self.client, 'bucket', 'key', parts())
        self.assertIsInstance(cm.exception.__cause__, OSError)
        self.assertEqual(cm.exception.upload_id, 'upload-1')
        self.assertEqual(self.client.count('abort'), 1)

    def test_interrupted_upload_still_aborted(self):
        def parts():
            yield b'a' * (5 * MIB), False
            raise KeyboardInterrupt

        with self.assertRaises(KeyboardInterrupt) as cm:
            multipart_upload(self.client, 'bucket', 'key', parts())
        self.assertEqual(cm.exception.upload_id, 'upload-1')
        self.assertEqual(self.client.calls, [('create', None), ('upload', 1),
                                             ('abort', None)])

    def test_producer_without_final_part(self):
        parts = [(b'a' * (5 * MIB), False)]
        with self.assertRaises(MultipartUploadError):
            multipart_upload(self.client, 'bucket', 'key', parts)
        self.assertEqual(self.client.count('abort'), 1)
        self.assertEqual(self.client.count('complete'), 0)

    def test_cancelled_upload_still_aborted(self):
        event = threading.Event()

        def parts():
            yield b'a' * (5 * MIB), False
            event.set()
            yield b'b', True

        with self.assertRaises(MultipartUploadError) as cm:
            multipart_upload(self.client, 'bucket', 'key', parts(),
                             cancel_event=event)
        self.assertIsInstance(cm.exception.__cause__, RequestCancelledError)
        self.assertEqual(self.client.part_numbers(), [1])
        self.assertEqual(self.client.count('abort'), 1)

    def test_stream_upload(self):
        stream = io.BytesIO(b'x' * (11 * MIB))
        session = multipart_upload_stream(self.client, 'bucket', 'key',
                                          stream)
        self.assertEqual(self.client.part_numbers(), [1, 2])
        self.assertEqual(len(session.parts), 2)


class MultipartUploadSession_Test(unittest.TestCase):

    def test_parts_in_order(self):
        session = MultipartUploadSession('bucket', 'key', 'id')
        session.add_part(1, 'a')
        session.add_part(2, 'b')
        self.assertEqual(session.parts, [(1, 'a'), (2, 'b')])

    def test_out_of_order_rejected(self):
        session = MultipartUploadSession('bucket', 'key', 'id')
        self.assertRaises(MultipartUploadError, session.add_part, 2, 'b')
        session.add_part(1, 'a')
        self.assertRaises(MultipartUploadError, session.add_part, 1, 'a')


class ShortReadStream:
    """Binary stream returning at most 3 bytes per read."""

    def __init__(self, data):
        self.stream = io.BytesIO(data)

    def read(self, size=-1):
        return self.stream.read(min(size, 3))


class IterStreamParts_Test(unittest.TestCase):

    def test_remainder_is_final(self):
        parts = list(iter_stream_parts(io.BytesIO(b'a' * 25), part_size=10))
        self.assertEqual(parts, [(b'a' * 10, False), (b'a' * 10, False),
                                 (b'a' * 5, True)])

    def test_exact_multiple_has_no_empty_part(self):
        parts = list(iter_stream_parts(io.BytesIO(b'a' * 20), part_size=10))
        self.assertEqual(parts, [(b'a' * 10, False), (b'a' * 10, True)])

    def test_empty_stream(self):
        parts = list(iter_stream_parts(io.BytesIO(b''), part_size=10))
        self.assertEqual(parts, [(b'', True)])

    def test_short_reads_buffered(self):
        data = bytes(range(23))
        parts = list(iter_stream_parts(ShortReadStream(data), part_size=10))
        self.assertEqual(parts, [(data[:10], False), (data[10:20], False),
                                 (data[20:], True)])

    def test_default_part_size(self):
        stream = io.BytesIO(b'a' * (10 * MIB + 1))
        sizes = [(len(body), final) for body, final
                 in iter_stream_parts(stream)]
        self.assertEqual(sizes, [(10 * MIB, False), (1, True)])


if __name__ == '__main__':
    unittest.main()
