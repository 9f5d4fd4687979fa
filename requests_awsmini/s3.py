"""
Amazon S3 object operations built on AWSClient.execute().

Each function shapes an OutgoingRequest for one S3 API call and hands it to
the client. Responses are returned as requests.Response objects unless the
call has a single meaningful result.

"""

# Licensed under the MIT License:
# http://opensource.org/licenses/MIT


import re

from .client import response_error
from .exceptions import RemoteProtocolError, ValidationError
from .hashing import UNSIGNED_PAYLOAD
from .request import OutgoingRequest


S3_XMLNS = 'http://s3.amazonaws.com/doc/2006-03-01/'

_UPLOAD_ID_RE = re.compile(r'<UploadId>(.*?)</UploadId>', re.S)

_XML_ESCAPES = {
    '<': '&lt;',
    '>': '&gt;',
    '&': '&amp;',
    "'": '&apos;',
    '"': '&quot;',
}


def xml_escape(text):
    return re.sub(r'[<>&\'"]', lambda m: _XML_ESCAPES[m.group(0)], text)


def key_request(method, bucket, key, timeout=None, cancel_event=None,
                check_response=True):
    """
    Return an OutgoingRequest addressing object key in bucket.

    Raises ValidationError if key is empty.

    """
    if not key:
        raise ValidationError(
            'key is required and should be at least one character long')
    return OutgoingRequest(method, '/' + key, 's3', subhost=bucket,
                           timeout=timeout, cancel_event=cancel_event,
                           check_response=check_response)


def add_if_options(req, if_match=None, if_none_match=None,
                   if_modified_since=None, if_unmodified_since=None):
    """
    Add precondition headers (RFC 7232 section 3) to req.

    If-Match and If-None-Match may not be combined, nor may
    If-Modified-Since and If-Unmodified-Since.

    """
    if if_match and if_none_match:
        raise ValidationError(
            'if_match and if_none_match cannot be used together')
    if if_modified_since and if_unmodified_since:
        raise ValidationError('if_modified_since and if_unmodified_since '
                              'cannot be used together')
    if if_match:
        req.headers['If-Match'] = if_match
    if if_none_match:
        req.headers['If-None-Match'] = if_none_match
    if if_modified_since:
        req.headers['If-Modified-Since'] = if_modified_since
    if if_unmodified_since:
        req.headers['If-Unmodified-Since'] = if_unmodified_since


def put_object(client, bucket, key, body, sign_payload=False,
               content_sha256=None, content_type=None, **kwargs):
    """
    Store body under key.

    By default the payload is sent as UNSIGNED-PAYLOAD. Set sign_payload to
    include the SHA-256 of body in the signature, or pass the hex digest as
    content_sha256 if it is already known.

    https://docs.aws.amazon.com/AmazonS3/latest/API/API_PutObject.html

    """
    req = key_request('PUT', bucket, key, **kwargs)
    req.body = body
    if content_sha256:
        req.headers['x-amz-content-sha256'] = content_sha256
    elif not sign_payload:
        req.headers['x-amz-content-sha256'] = UNSIGNED_PAYLOAD
    if content_type:
        req.headers['Content-Type'] = content_type
    return client.execute(req)


def get_object(client, bucket, key, if_match=None, if_none_match=None,
               if_modified_since=None, if_unmodified_since=None, **kwargs):
    """
    Return the content of key as bytes.

    https://docs.aws.amazon.com/AmazonS3/latest/API/API_GetObject.html

    """
    req = key_request('GET', bucket, key, **kwargs)
    add_if_options(req, if_match, if_none_match, if_modified_since,
                   if_unmodified_since)
    return client.execute(req).content


def head_object(client, bucket, key, if_match=None, if_none_match=None,
                if_modified_since=None, if_unmodified_since=None, **kwargs):
    """
    https://docs.aws.amazon.com/AmazonS3/latest/API/API_HeadObject.html

    """
    req = key_request('HEAD', bucket, key, **kwargs)
    add_if_options(req, if_match, if_none_match, if_modified_since,
                   if_unmodified_since)
    return client.execute(req)


def delete_object(client, bucket, key, **kwargs):
    """
    https://docs.aws.amazon.com/AmazonS3/latest/API/API_DeleteObject.html

    """
    return client.execute(key_request('DELETE', bucket, key, **kwargs))


def copy_object(client, bucket, key, source_bucket, source_key, **kwargs):
    """
    https://docs.aws.amazon.com/AmazonS3/latest/API/API_CopyObject.html

    """
    if not source_key:
        raise ValidationError('source_key is required')
    req = key_request('PUT', bucket, key, **kwargs)
    req.headers['x-amz-copy-source'] = '{}/{}'.format(source_bucket,
                                                      source_key)
    return client.execute(req)


def create_multipart_upload(client, bucket, key, **kwargs):
    """
    Start a multipart upload and return its upload ID.

    Raises RemoteProtocolError if the response carries no UploadId.

    https://docs.aws.amazon.com/AmazonS3/latest/API/API_CreateMultipartUpload.html

    """
    req = key_request('POST', bucket, key, **kwargs)
    req.query['uploads'] = ''
    response = client.execute(req)
    match = _UPLOAD_ID_RE.search(response.text or '')
    if not match or not match.group(1):
        raise RemoteProtocolError('UploadId not found in '
                                  'CreateMultipartUpload response')
    return match.group(1)


def upload_part(client, bucket, key, upload_id, part_number, body, **kwargs):
    """
    Upload one part. The ETag is in the returned response's headers.

    https://docs.aws.amazon.com/AmazonS3/latest/API/API_UploadPart.html

    """
    req = key_request('PUT', bucket, key, **kwargs)
    req.query['partNumber'] = str(part_number)
    req.query['uploadId'] = upload_id
    req.body = body
    return client.execute(req)


def build_complete_multipart_body(parts):
    """
    Return the CompleteMultipartUpload XML document for parts as bytes.

    parts -- iterable of (part_number, etag) tuples. Listed in ascending
             part number order regardless of input order.

    """
    xml = ['<?xml version="1.0" encoding="UTF-8"?>',
           '<CompleteMultipartUpload xmlns="{}">'.format(S3_XMLNS)]
    for part_number, etag in sorted(parts, key=lambda part: part[0]):
        xml.append('<Part><ETag>{}</ETag><PartNumber>{}</PartNumber></Part>'
                   .format(xml_escape(etag), part_number))
    xml.append('</CompleteMultipartUpload>')
    return ''.join(xml).encode('utf-8')


def complete_multipart_upload(client, bucket, key, upload_id, body,
                              **kwargs):
    """
    body -- XML document from build_complete_multipart_body()

    https://docs.aws.amazon.com/AmazonS3/latest/API/API_CompleteMultipartUpload.html

    """
    req = key_request('POST', bucket, key, **kwargs)
    req.query['uploadId'] = upload_id
    req.body = body
    response = client.execute(req)
    # S3 may report a failed completion in the body of a 200 response
    if '<Error>' in (response.text or ''):
        raise response_error(response)
    return response


def abort_multipart_upload(client, bucket, key, upload_id, **kwargs):
    """
    https://docs.aws.amazon.com/AmazonS3/latest/API/API_AbortMultipartUpload.html

    """
    req = key_request('DELETE', bucket, key, **kwargs)
    req.query['uploadId'] = upload_id
    return client.execute(req)
