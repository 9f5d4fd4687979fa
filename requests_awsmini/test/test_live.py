#!/usr/bin/env python
# coding: utf-8

"""
Live service tests
------------------
This module contains tests against a live S3 (or S3-compatible) service. To
run them, supply credentials the usual way (AWS_REGION, AWS_ACCESS_KEY_ID,
AWS_SECRET_ACCESS_KEY, optionally AWS_SESSION_TOKEN and AWS_ENDPOINT_URL) and
the name of a scratch bucket in AWSMINI_TEST_BUCKET:

$ AWSMINI_TEST_BUCKET=my-bucket python -m pytest requests_awsmini/test

If these variables are not provided the tests are skipped.

The tests write, read and delete objects under the awsmini-test/ prefix of
the bucket, and upload about 11 MiB in a multipart upload.
"""

import io
import os
import unittest
import uuid

from requests_awsmini import (AWSClient, AWSResponseError, ClientConfig,
                              SizeViolationError, multipart_upload,
                              multipart_upload_stream, s3)
from requests_awsmini.multipart import MIB

live_bucket = os.getenv('AWSMINI_TEST_BUCKET')
live_config = ClientConfig.from_env(
    s3_path_style=bool(os.getenv('AWS_ENDPOINT_URL')))


@unittest.skipIf(live_bucket is None or live_config.secret_access_key is None,
                 'AWSMINI_TEST_BUCKET or AWS credentials not set, skipping '
                 'live service tests')
class S3_LiveService_Test(unittest.TestCase):

    def setUp(self):
        self.client = AWSClient(live_config)
        self.key = 'awsmini-test/{}'.format(uuid.uuid4())

    def tearDown(self):
        s3.delete_object(self.client, live_bucket, self.key)
        self.client.close()

    def test_put_get(self):
        s3.put_object(self.client, live_bucket, self.key, b'hello',
                      sign_payload=True)
        self.assertEqual(s3.get_object(self.client, live_bucket, self.key),
                         b'hello')

    def test_multipart_stream(self):
        data = os.urandom(11 * MIB)
        multipart_upload_stream(self.client, live_bucket, self.key,
                                io.BytesIO(data))
        self.assertEqual(s3.get_object(self.client, live_bucket, self.key),
                         data)

    def test_multipart_small_part_aborted(self):
        parts = [(b'a', False), (b'b', True)]
        with self.assertRaises(SizeViolationError) as cm:
            multipart_upload(self.client, live_bucket, self.key, parts)
        self.assertIsNone(cm.exception.abort_error)
        with self.assertRaises(AWSResponseError):
            s3.head_object(self.client, live_bucket, self.key)


if __name__ == '__main__':
    unittest.main()
