""" Contains functions for encoding and decoding pointers to message payloads stored on S3.

A pointer travels in two places. On the message itself, the reserved attribute `S3MessageBodyKey` holds
`(bucket)key`. After receipt, the bucket and key are embedded in the receipt handle so that they survive until the
message is deleted:

    -..s3BucketName..-<bucket>-..s3BucketName..--..s3Key..-<key>-..s3Key..-<original receipt handle>

Both formats are part of the wire contract and are shared with other extended SQS client implementations. Note that
the receipt handle format cannot represent a bucket name or receipt handle that itself contains a marker.

Author:
    Saul Johnson (saul.johnson@breachlock.com)
Since:
    19/10/2026
"""

import re
from typing import Any, Dict, NamedTuple, Optional
from uuid import uuid4

from .errors import MalformedReferenceError


RESERVED_ATTRIBUTE_NAME = 'S3MessageBodyKey'
""" The name of the message attribute that marks a message as having its payload stored on S3.
"""

S3_BUCKET_NAME_MARKER = '-..s3BucketName..-'
""" The marker surrounding the bucket name embedded in a receipt handle.
"""

S3_KEY_MARKER = '-..s3Key..-'
""" The marker surrounding the S3 key embedded in a receipt handle.
"""

_REFERENCE_PATTERN = re.compile(r'^\((.*)\)(.*)', re.DOTALL)


class S3Reference(NamedTuple):
    """ Represents the location of a message payload on S3 (both fields None if the message was not offloaded).
    """

    bucket_name: Optional[str]
    s3_key: Optional[str]

    @property
    def is_offloaded(self) -> bool:
        """ Gets whether or not this reference points at a payload on S3.
        """
        return bool(self.s3_key)


class ReceiptHandleParts(NamedTuple):
    """ Represents a receipt handle with any embedded S3 pointer separated out.
    """

    bucket_name: Optional[str]
    s3_key: Optional[str]
    receipt_handle: str


NOT_OFFLOADED = S3Reference(None, None)
""" The reference returned for messages that do not carry the reserved attribute.
"""


def generate_key() -> str:
    """ Generates a new, unique S3 key for a message payload.

    Returns:
        str: The new key.
    """
    return str(uuid4())


def encode_reference(bucket_name: str, s3_key: str) -> str:
    """ Encodes an S3 pointer as a reserved attribute value.

    Args:
        bucket_name (str): The name of the bucket holding the payload.
        s3_key (str): The key of the payload.
    Returns:
        str: The encoded pointer, as `(bucket)key`.
    """
    return f'({bucket_name}){s3_key}'


def decode_reference(token: Optional[str]) -> S3Reference:
    """ Decodes a reserved attribute value into an S3 pointer.

    Args:
        token (Optional[str]): The reserved attribute value, if any.
    Returns:
        S3Reference: The decoded pointer, or `NOT_OFFLOADED` if no value was given.
    Raises:
        MalformedReferenceError: If a value was given, but it does not match the `(bucket)key` pattern.
    """
    if not token:
        return NOT_OFFLOADED

    match = _REFERENCE_PATTERN.match(token)
    if match is None:
        raise MalformedReferenceError(token)
    return S3Reference(match.group(1), match.group(2))


def get_reference_from_attributes(
    attributes: Optional[Dict[str, Any]],
    value_key: str = 'StringValue') -> S3Reference:
    """ Decodes the S3 pointer held in a set of message attributes, if there is one.

    Args:
        attributes (Optional[Dict[str, Any]]): The message attributes.
        value_key (str): The key holding the string value ('StringValue' for SQS, 'stringValue' for Lambda events).
    Returns:
        S3Reference: The decoded pointer, or `NOT_OFFLOADED` if the reserved attribute is absent.
    Raises:
        MalformedReferenceError: If the reserved attribute does not match the `(bucket)key` pattern.
    """
    attribute = (attributes or {}).get(RESERVED_ATTRIBUTE_NAME) or {}
    return decode_reference(attribute.get(value_key))


def wrap_receipt_handle(bucket_name: str, s3_key: str, receipt_handle: str) -> str:
    """ Embeds an S3 pointer in a receipt handle.

    Args:
        bucket_name (str): The name of the bucket holding the payload.
        s3_key (str): The key of the payload.
        receipt_handle (str): The receipt handle issued by SQS.
    Returns:
        str: The receipt handle with the bucket name and key embedded.
    """
    return (
        f'{S3_BUCKET_NAME_MARKER}{bucket_name}{S3_BUCKET_NAME_MARKER}'
        f'{S3_KEY_MARKER}{s3_key}{S3_KEY_MARKER}{receipt_handle}'
    )


def _between_markers(token: str, marker: str) -> Optional[str]:
    start = token.find(marker)
    end = token.rfind(marker)
    if start < 0 or start == end:
        return None
    return token[start + len(marker):end]


def unwrap_receipt_handle(token: str) -> ReceiptHandleParts:
    """ Separates any embedded S3 pointer from a receipt handle.

    Receipt handles without a key marker are returned unchanged, whether or not bucket markers are present. Otherwise
    everything up to and including the last key marker is stripped, even if the key itself cannot be recovered.

    Args:
        token (str): The (possibly wrapped) receipt handle.
    Returns:
        ReceiptHandleParts: The bucket name, key and the original receipt handle issued by SQS.
    """
    last_key_marker = token.rfind(S3_KEY_MARKER)
    if last_key_marker < 0:
        return ReceiptHandleParts(None, None, token)

    receipt_handle = token[last_key_marker + len(S3_KEY_MARKER):]
    return ReceiptHandleParts(
        _between_markers(token, S3_BUCKET_NAME_MARKER),
        _between_markers(token, S3_KEY_MARKER),
        receipt_handle,
    )
