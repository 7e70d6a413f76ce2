""" Contains the exceptions raised by the extended SQS client.

Author:
    Saul Johnson (saul.johnson@breachlock.com)
Since:
    19/10/2026
"""

from typing import Any, List, Optional, Tuple


class ExtendedSqsError(Exception):
    """ The base class for all errors raised by the extended SQS client itself.
    """


class ConfigurationError(ExtendedSqsError):
    """ Raised when the client is missing configuration required for an operation (e.g. a bucket name on send).
    """


class MalformedReferenceError(ExtendedSqsError):
    """ Raised when the reserved message attribute is present but does not match the `(bucket)key` pattern.
    """


    def __init__(self, token: Optional[str]):
        """ Initializes a new malformed reference error.

        Args:
            token (Optional[str]): The raw reserved attribute value that failed to parse (None if it has no value).
        """
        super().__init__(f'Reserved attribute value {token!r} does not match the expected (bucket)key pattern')
        self.token = token


class ObjectDeletionError(ExtendedSqsError):
    """ Raised when a message was deleted from SQS, but its payload could not be deleted from S3.
    """


    def __init__(self, bucket_name: str, s3_key: str, sqs_response: Any):
        """ Initializes a new object deletion error.

        Args:
            bucket_name (str): The bucket holding the payload that could not be deleted.
            s3_key (str): The key of the payload that could not be deleted.
            sqs_response (Any): The response from SQS for the (successful) message deletion.
        """
        super().__init__(f'Message deleted from SQS but payload s3://{bucket_name}/{s3_key} could not be deleted')
        self.bucket_name = bucket_name
        self.s3_key = s3_key
        self.sqs_response = sqs_response


class MessageBatchError(ExtendedSqsError):
    """ Raised when one or more messages (or event records) in a batch could not be processed.

    Messages that were processed successfully are still rewritten in place in `result`.
    """


    def __init__(self, result: Any, failures: List[Tuple[Any, BaseException]]):
        """ Initializes a new message batch error.

        Args:
            result (Any): The SQS response (or Lambda event) with successful messages rewritten in place.
            failures (List[Tuple[Any, BaseException]]): The failed messages, each paired with its error.
        """
        super().__init__(f'{len(failures)} message(s) in batch could not be processed')
        self.result = result
        self.failures = failures
