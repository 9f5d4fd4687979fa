"""
Construction of the AWS version 4 Canonical Request.

The canonical request is the normalised form of an HTTP request that is
hashed into the string to sign:

    METHOD
    PATH
    QUERY
    HEADERS

    SIGNED_HEADERS
    PAYLOAD_HASH

"""

# Licensed under the MIT License:
# http://opensource.org/licenses/MIT


from urllib.parse import quote

from .hashing import EMPTY_SHA256, sha256_hex


UNRESERVED = '-_.~'


def encode_rfc3986(text):
    """
    Percent-encode text as per RFC 3986.

    Alphanumerics and -_.~ are left alone, everything else is encoded from
    its UTF-8 bytes with uppercase hex digits, including space and the
    characters !'()* .

    """
    return quote(str(text), safe=UNRESERVED)


def encode_path(path):
    """
    Percent-encode every /-separated segment of path, keeping the slashes.

    """
    return '/'.join(encode_rfc3986(seg) for seg in path.split('/'))


def _ordinal(text):
    return text.encode('utf-8')


def query_items(query):
    """
    Return query as a list of (name, value) pairs.

    query -- dict of parameters, or a sequence of (name, value) pairs when a
             name repeats

    """
    if hasattr(query, 'items'):
        return list(query.items())
    return list(query)


def get_canonical_querystring(params):
    """
    Generate the canonical query string from the query parameters.

    Parameters are sorted by name using byte-wise comparison, and by value
    where a name repeats. Then name and value are percent-encoded and joined
    as name=value pairs with &. Every pair is kept.

    params -- dict of str to str, or a sequence of (name, value) pairs.
              Values that aren't str are converted.

    """
    items = sorted(query_items(params),
                   key=lambda item: (_ordinal(item[0]),
                                     _ordinal(str(item[1]))))
    return '&'.join('{}={}'.format(encode_rfc3986(name), encode_rfc3986(val))
                    for name, val in items)


def get_canonical_headers(headers):
    """
    Generate the Canonical Headers section of the Canonical Request.

    Return the Canonical Headers and the Signed Headers strs as a tuple
    (canonical_headers, signed_headers). canonical_headers has no trailing
    newline.

    Header names are lowercased and values trimmed of surrounding
    whitespace. Values of names that collide once lowercased are
    concatenated with commas, as AWS requires.

    headers -- mapping of header name to value

    """
    cano_headers_dict = {}
    for hdr, val in headers.items():
        hdr = hdr.strip().lower()
        vals = cano_headers_dict.setdefault(hdr, [])
        vals.append(str(val).strip())
    lines = []
    signed_headers_list = []
    for hdr in sorted(cano_headers_dict, key=_ordinal):
        val = ','.join(sorted(cano_headers_dict[hdr]))
        lines.append('{}:{}'.format(hdr, val))
        signed_headers_list.append(hdr)
    return '\n'.join(lines), ';'.join(signed_headers_list)


def resolve_payload_hash(headers, body):
    """
    Return the value for the x-amz-content-sha256 header.

    A value already present in headers is kept as is, which is how callers
    select UNSIGNED-PAYLOAD. Otherwise the SHA-256 of a non-empty body is
    used, or the well-known hash of the empty string.

    """
    payload_hash = headers.get('x-amz-content-sha256')
    if payload_hash:
        return payload_hash
    if body:
        return sha256_hex(body)
    return EMPTY_SHA256


def get_canonical_request(method, path, query, headers, payload_hash):
    """
    Create the AWS authentication Canonical Request string.

    Return a tuple (canonical_request, signed_headers).

    method       -- HTTP method
    path         -- URL path, already percent-encoded
    query        -- dict or sequence of (name, value) query parameters
    headers      -- mapping of headers to sign
    payload_hash -- value of the x-amz-content-sha256 header

    """
    cano_headers, signed_headers = get_canonical_headers(headers)
    req_parts = [method.upper(), path or '/',
                 get_canonical_querystring(query),
                 cano_headers, '', signed_headers, payload_hash]
    return '\n'.join(req_parts), signed_headers


def hash_canonical_request(canonical_request):
    return sha256_hex(canonical_request)
