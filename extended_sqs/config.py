""" Contains the configuration for the extended SQS client.

Author:
    Saul Johnson (saul.johnson@breachlock.com)
Since:
    19/10/2026
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from .errors import ConfigurationError
from .transforms import ReceiveTransform, SendTransform, default_receive_transform, default_send_transform


MAX_SQS_MESSAGE_SIZE = 262144
""" The maximum message size supported by SQS in bytes.
"""


@dataclass(frozen=True)
class ExtendedSqsConfig():
    """ Represents the (immutable) configuration of an extended SQS client.

    Attributes:
        bucket_name (Optional[str]): The S3 bucket used to store oversize message payloads (required for sending).
        always_use_s3 (bool): Whether or not to store every message payload on S3, regardless of size.
        message_size_threshold (int): The size limit (in bytes) above which S3 should be used to store payloads.
        send_transform (Optional[SendTransform]): Replaces the size-based decision of what to store on S3.
        receive_transform (Optional[ReceiveTransform]): Replaces the default reassembly of received messages.
        logger (Optional[Union[logging.Logger, logging.LoggerAdapter]]): Receives offload, fetch and delete events.
    """

    bucket_name: Optional[str] = None
    always_use_s3: bool = False
    message_size_threshold: int = MAX_SQS_MESSAGE_SIZE
    send_transform: Optional[SendTransform] = None
    receive_transform: Optional[ReceiveTransform] = None
    logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None


    def __post_init__(self):
        if self.message_size_threshold < 0:
            raise ConfigurationError(f'message_size_threshold must not be negative, got {self.message_size_threshold}')


    def get_send_transform(self) -> SendTransform:
        """ Gets the send transform in effect (the caller's, or the default size-based transform).

        Returns:
            SendTransform: The send transform.
        """
        if self.send_transform is not None:
            return self.send_transform
        return default_send_transform(self.always_use_s3, self.message_size_threshold)


    def get_receive_transform(self) -> ReceiveTransform:
        """ Gets the receive transform in effect (the caller's, or the default verbatim replacement).

        Returns:
            ReceiveTransform: The receive transform.
        """
        return self.receive_transform if self.receive_transform is not None else default_receive_transform
