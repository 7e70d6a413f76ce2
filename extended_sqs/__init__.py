""" ExtendedSQS is an asynchronous SQS client capable of storing oversize message payloads on S3.

Author:
    Saul Johnson (saul.johnson@breachlock.com)
Since:
    19/10/2026
"""

from .config import MAX_SQS_MESSAGE_SIZE, ExtendedSqsConfig
from .errors import (
    ConfigurationError,
    ExtendedSqsError,
    MalformedReferenceError,
    MessageBatchError,
    ObjectDeletionError,
)
from .extended_sqs_client import ExtendedSqsClient
from .s3_pointer import (
    RESERVED_ATTRIBUTE_NAME,
    S3_BUCKET_NAME_MARKER,
    S3_KEY_MARKER,
    ReceiptHandleParts,
    S3Reference,
    decode_reference,
    encode_reference,
    generate_key,
    unwrap_receipt_handle,
    wrap_receipt_handle,
)
from .transforms import SendSplit
