""" Contains the hooks that decide how a message is split between SQS and S3, and how it is put back together.

A send transform takes the outgoing message body and attributes and returns a `SendSplit`. Content placed in
`s3_content` is stored on S3; `message_body` (if any) travels through SQS. A receive transform takes the received
message and the content fetched from S3 (None if the message was not offloaded) and returns the body to present to
the caller, or None to leave the body as it is.

Author:
    Saul Johnson (saul.johnson@breachlock.com)
Since:
    19/10/2026
"""

from typing import Any, Callable, Dict, NamedTuple, Optional

from .message_size import is_large


class SendSplit(NamedTuple):
    """ Represents the result of a send transform.
    """

    message_body: Optional[str]
    s3_content: Optional[str]


SendTransform = Callable[[str, Dict[str, Any]], SendSplit]
ReceiveTransform = Callable[[Dict[str, Any], Optional[str]], Optional[str]]


def default_send_transform(always_use_s3: bool, size_threshold: int) -> SendTransform:
    """ Creates the default send transform, which stores the whole body on S3 if the message is too large.

    Args:
        always_use_s3 (bool): Whether or not to store the body on S3 regardless of message size.
        size_threshold (int): The size limit (in bytes) above which S3 should be used to store the body.
    Returns:
        SendTransform: The send transform.
    """
    def transform(message_body: str, attributes: Dict[str, Any]) -> SendSplit:
        if always_use_s3 or is_large(message_body, attributes, size_threshold):
            return SendSplit(message_body=None, s3_content=message_body)
        return SendSplit(message_body=message_body, s3_content=None)
    return transform


def default_receive_transform(message: Dict[str, Any], s3_content: Optional[str]) -> Optional[str]:
    """ The default receive transform, which replaces the message body with the content from S3 verbatim.

    Args:
        message (Dict[str, Any]): The message as received from SQS.
        s3_content (Optional[str]): The content fetched from S3, if the message was offloaded.
    Returns:
        Optional[str]: The body to present to the caller.
    """
    return s3_content if s3_content is not None else message.get('Body')
