""" Contains functions for estimating the size of an SQS message on the wire.

Author:
    Saul Johnson (saul.johnson@breachlock.com)
Since:
    19/10/2026
"""

from typing import Any, Dict, Optional, Union


def utf8len(message: Union[str, bytes, None]) -> int:
    """ Gets the length of a string in bytes, when encoded as UTF-8.

    Args:
        message (Union[str, bytes, None]): The string to check the length of (bytes are measured as-is).
    Returns:
        int: The length of the string in bytes when encoded as UTF-8.
    """
    if message is None:
        return 0
    if isinstance(message, (bytes, bytearray)):
        return len(message)
    return len(message.encode('utf-8'))


def get_message_attributes_size(attributes: Optional[Dict[str, Dict[str, Any]]]) -> int:
    """ Gets the size of a set of SQS message attributes in bytes.

    Args:
        attributes (Optional[Dict[str, Dict[str, Any]]]): The message attributes, in boto3 shape.
    Returns:
        int: The combined size of attribute names, data types and values.
    """
    if not attributes:
        return 0
    size = 0
    for name, attribute in attributes.items():
        size += utf8len(name)
        size += utf8len(attribute.get('DataType'))
        size += utf8len(attribute.get('StringValue'))
        size += utf8len(attribute.get('BinaryValue'))
    return size


def get_message_size(message: Optional[str], attributes: Optional[Dict[str, Dict[str, Any]]] = None) -> int:
    """ Gets the total size of an SQS message (body and attributes) in bytes.

    Args:
        message (Optional[str]): The message body.
        attributes (Optional[Dict[str, Dict[str, Any]]]): The message attributes, in boto3 shape.
    Returns:
        int: The total size of the message in bytes.
    """
    return get_message_attributes_size(attributes) + utf8len(message)


def is_large(message: Optional[str], attributes: Optional[Dict[str, Dict[str, Any]]], size_threshold: int) -> bool:
    """ Gets whether or not a message exceeds the given size threshold.

    Args:
        message (Optional[str]): The message body.
        attributes (Optional[Dict[str, Dict[str, Any]]]): The message attributes, in boto3 shape.
        size_threshold (int): The size limit (in bytes) above which a message is considered large.
    Returns:
        bool: True if the message is larger than the threshold, otherwise False.
    """
    return get_message_size(message, attributes) > size_threshold
