""" Contains an SQS client capable of storing oversize message payloads on S3.

Author:
    Saul Johnson (saul.johnson@breachlock.com)
Since:
    19/10/2026
"""

import asyncio
import hashlib
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

import boto3

from .config import MAX_SQS_MESSAGE_SIZE, ExtendedSqsConfig
from .errors import ConfigurationError, MalformedReferenceError, MessageBatchError, ObjectDeletionError
from .s3_pointer import (
    RESERVED_ATTRIBUTE_NAME,
    S3Reference,
    encode_reference,
    generate_key,
    get_reference_from_attributes,
    unwrap_receipt_handle,
    wrap_receipt_handle,
)


logger = logging.getLogger(__name__)


class ExtendedSqsClient():
    """ Represents an SQS client capable of storing oversize message payloads on S3.

    All operations are coroutines. The underlying boto3 clients are blocking, so each call to SQS or S3 is run in a
    worker thread.
    """


    RESERVED_ATTRIBUTE_NAME = RESERVED_ATTRIBUTE_NAME
    """ The name of the message attribute used to carry pointers to payloads on S3.
    """


    MAX_SQS_MESSAGE_SIZE = MAX_SQS_MESSAGE_SIZE
    """ The maximum message size supported by SQS in bytes.
    """


    def __init__(
        self,
        sqs: Any,
        s3: Any,
        queue_url: str,
        bucket_name: Optional[str] = None,
        config: Optional[ExtendedSqsConfig] = None,
        **options: Any):
        """ Initializes a new SQS client capable of storing oversize message payloads on S3.

        Args:
            sqs (botocore.client.SQS): The SQS client to use.
            s3 (botocore.client.S3): The S3 client to use.
            queue_url (str): The URL of the queue to connect to.
            bucket_name (Optional[str]): The name of the S3 bucket to use to store oversize message payloads.
            config (Optional[ExtendedSqsConfig]): The full client configuration (instead of bucket_name and options).
            **options (Any): Any other `ExtendedSqsConfig` fields (e.g. always_use_s3, message_size_threshold).
        """
        if config is not None and (bucket_name is not None or options):
            raise ConfigurationError('Pass either a config object or individual options, not both')
        self._sqs = sqs
        self._s3 = s3
        self._queue_url = queue_url
        self._config = config if config is not None else ExtendedSqsConfig(bucket_name=bucket_name, **options)
        self._logger = self._config.logger or logger
        self._send_transform = self._config.get_send_transform()
        self._receive_transform = self._config.get_receive_transform()


    @property
    def config(self) -> ExtendedSqsConfig:
        """ Gets the configuration of this client.
        """
        return self._config


    async def _store_s3_content(self, s3_key: str, s3_content: str) -> None:
        self._logger.info(
            'Storing extended message payload on S3',
            extra={'bucket_name': self._config.bucket_name, 's3_key': s3_key},
        )
        await asyncio.to_thread(
            self._s3.put_object,
            Body=s3_content,
            Bucket=self._config.bucket_name,
            Key=s3_key,
            ContentType='text/plain',
        )


    async def _get_s3_content(self, reference: S3Reference) -> str:
        self._logger.info(
            'Retrieving extended message payload from S3',
            extra={'bucket_name': reference.bucket_name, 's3_key': reference.s3_key},
        )

        # Fetch and read the body in the same worker thread, reading the stream blocks too.
        def read() -> bytes:
            s3_response = self._s3.get_object(Bucket=reference.bucket_name, Key=reference.s3_key)
            return s3_response['Body'].read()
        body_bytes = await asyncio.to_thread(read)
        return body_bytes.decode('utf-8')


    async def _delete_s3_content(self, reference: S3Reference) -> None:
        self._logger.info(
            'Deleting extended message payload from S3',
            extra={'bucket_name': reference.bucket_name, 's3_key': reference.s3_key},
        )
        await asyncio.to_thread(self._s3.delete_object, Bucket=reference.bucket_name, Key=reference.s3_key)


    def _prepare_send(
        self,
        message: str,
        attributes: Dict[str, Any]) -> Tuple[str, Dict[str, Any], Optional[str], Optional[str]]:
        """ Works out what to send to SQS and what (if anything) to store on S3.

        Args:
            message (str): The message to send.
            attributes (Dict[str, Any]): The attributes to attach to the message.
        Returns:
            Tuple[str, Dict[str, Any], Optional[str], Optional[str]]: The SQS body, SQS attributes, S3 key and S3
            content. The key and content are None if nothing needs storing.
        """
        split = self._send_transform(message, attributes)
        existing_reference = attributes.get(RESERVED_ATTRIBUTE_NAME)

        # The caller is re-sending a message whose payload is already on S3. Keep the existing pointer.
        if existing_reference:
            body = split.message_body if split.message_body is not None else existing_reference.get('StringValue')
            if body is None:
                raise MalformedReferenceError(existing_reference.get('StringValue'))
            return body, attributes, None, None

        # Nothing to store on S3.
        if split.s3_content is None:
            body = split.message_body if split.message_body is not None else message
            return body, attributes, None, None

        # Mint a new key and attach a pointer to it. The key stands in for the body if the transform left none.
        s3_key = generate_key()
        sqs_attributes = dict(attributes)
        sqs_attributes[RESERVED_ATTRIBUTE_NAME] = {
            'DataType': 'String',
            'StringValue': encode_reference(self._config.bucket_name, s3_key),
        }
        body = split.message_body if split.message_body is not None else s3_key
        return body, sqs_attributes, s3_key, split.s3_content


    async def send_message(
        self,
        message: str,
        attributes: Optional[Dict[str, Any]] = None,
        **kwargs: Any) -> Dict[str, Any]:
        """ Sends an SQS message, storing its payload on S3 and sending a pointer instead if necessary.

        Args:
            message (str): The message to send.
            attributes (Optional[Dict[str, Any]]): Any attributes to attach to the message.
            **kwargs (Any): Any other parameters to pass to SQS (e.g. DelaySeconds, MessageGroupId).
        Returns:
            Dict[str, Any]: The response from SQS.
        Raises:
            ConfigurationError: If no bucket name is configured.
            MalformedReferenceError: If the message already carries a reserved attribute with no value to send.
        """
        if not self._config.bucket_name:
            raise ConfigurationError('bucket_name option is required for sending messages')

        body, sqs_attributes, s3_key, s3_content = self._prepare_send(message, attributes or {})

        # Payload must be on S3 before any receiver can see the pointer to it.
        if s3_key is not None:
            await self._store_s3_content(s3_key, s3_content)

        # Finally send message to SQS.
        return await asyncio.to_thread(
            self._sqs.send_message,
            QueueUrl=self._queue_url,
            MessageAttributes=sqs_attributes,
            MessageBody=body,
            **kwargs,
        )


    async def send_messages(self, messages: Sequence[Tuple[Any, ...]]) -> List[Dict[str, Any]]:
        """ Sends multiple SQS messages, storing payloads on S3 and sending pointers instead if necessary.

        Each message is sized and sent independently.

        Args:
            messages (Sequence[Tuple[Any, ...]]): The messages to send as (payload, attrs) or (payload, attrs, kwargs)
                tuples.
        Returns:
            List[Dict[str, Any]]: The responses from SQS, in order.
        """
        async def send(message: Tuple[Any, ...]) -> Dict[str, Any]:
            payload, attributes, *rest = message
            return await self.send_message(payload, attributes, **(rest[0] if rest else {}))
        return list(await asyncio.gather(*(send(message) for message in messages)))


    async def _process_received_message(self, message: Dict[str, Any]) -> None:
        reference = get_reference_from_attributes(message.get('MessageAttributes'))
        s3_content = await self._get_s3_content(reference) if reference.is_offloaded else None

        body = self._receive_transform(message, s3_content)
        if body is not None and body != message.get('Body'):
            message['Body'] = body
            message['MD5OfBody'] = hashlib.md5(body.encode('utf-8')).hexdigest()

        # Record pointer in receipt handle, for when we delete.
        if reference.is_offloaded:
            message['ReceiptHandle'] = wrap_receipt_handle(
                reference.bucket_name,
                reference.s3_key,
                message['ReceiptHandle'],
            )


    @staticmethod
    async def _process_batch(
        result: Any,
        items: List[Dict[str, Any]],
        process: Callable[[Dict[str, Any]], Awaitable[Any]]) -> None:
        """ Processes every item in a batch concurrently, then raises if any of them failed.

        Args:
            result (Any): The response (or event) the items belong to, attached to any error raised.
            items (List[Dict[str, Any]]): The messages (or event records) to process.
            process (Callable[[Dict[str, Any]], Awaitable[Any]]): The coroutine function to apply to each item.
        Raises:
            MessageBatchError: If processing failed for one or more items.
        """
        outcomes = await asyncio.gather(*(process(item) for item in items), return_exceptions=True)
        failures = [(item, outcome) for item, outcome in zip(items, outcomes) if isinstance(outcome, BaseException)]
        if failures:
            raise MessageBatchError(result, failures)


    async def receive_message(
        self,
        max_number_of_messages: int = 1,
        attributes: Optional[List[str]] = None,
        wait_time_seconds: int = 20,
        **kwargs: Any) -> Dict[str, Any]:
        """ Receives one or more messages from SQS, resolving any pointers to oversize payloads on S3.

        Receipt handles of resolved messages carry the pointer, so pass them back to `delete_message` unchanged.

        Args:
            max_number_of_messages (int): The maximum number of messages to receive (defaults to 1).
            attributes (Optional[List[str]]): The attributes to return with the message (defaults to all).
            wait_time_seconds (int): How long to wait for messages to arrive (defaults to 20).
            **kwargs (Any): Any other parameters to pass to SQS (e.g. VisibilityTimeout).
        Returns:
            Dict[str, Any]: The response from SQS, with oversize payloads resolved via S3.
        Raises:
            MessageBatchError: If any message could not be resolved. Other messages are still resolved in place.
        """
        attribute_names = list(attributes) if attributes is not None else ['All']
        if RESERVED_ATTRIBUTE_NAME not in attribute_names:
            attribute_names.append(RESERVED_ATTRIBUTE_NAME)

        # Query SQS.
        sqs_response = await asyncio.to_thread(
            self._sqs.receive_message,
            QueueUrl=self._queue_url,
            MaxNumberOfMessages=max_number_of_messages,
            MessageAttributeNames=attribute_names,
            WaitTimeSeconds=wait_time_seconds,
            **kwargs,
        )

        # Go through each message in the response and resolve any S3 pointers.
        await self._process_batch(sqs_response, sqs_response.get('Messages', []), self._process_received_message)
        return sqs_response


    async def delete_message(self, receipt_handle: str, **kwargs: Any) -> Dict[str, Any]:
        """ Deletes an SQS message from the queue, cleaning up its associated S3 object if necessary.

        Args:
            receipt_handle (str): The receipt handle of the message to delete, as returned by `receive_message`.
            **kwargs (Any): Any other parameters to pass to SQS.
        Returns:
            Dict[str, Any]: The response from SQS.
        Raises:
            ObjectDeletionError: If the message was deleted from SQS, but its payload could not be deleted from S3.
        """
        bucket_name, s3_key, original_receipt_handle = unwrap_receipt_handle(receipt_handle)

        # Delete the message on SQS. SQS must only ever see the receipt handle it issued.
        sqs_response = await asyncio.to_thread(
            self._sqs.delete_message,
            QueueUrl=self._queue_url,
            ReceiptHandle=original_receipt_handle,
            **kwargs,
        )

        # Delete the payload from S3 if the receipt handle carried a pointer to one.
        if s3_key and bucket_name:
            try:
                await self._delete_s3_content(S3Reference(bucket_name, s3_key))
            except Exception as e:
                raise ObjectDeletionError(bucket_name, s3_key, sqs_response) from e
        return sqs_response


    async def resolve_record(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """ Resolves the pointer to an oversize payload on S3 in a Lambda SQS event record, if there is one.

        The record body is rebuilt with the configured receive transform, exactly as `receive_message` does.

        Args:
            record (Dict[str, Any]): The event record, which is updated in place.
        Returns:
            Dict[str, Any]: The event record.
        """
        reference = get_reference_from_attributes(record.get('messageAttributes'), value_key='stringValue')
        s3_content = await self._get_s3_content(reference) if reference.is_offloaded else None

        # Receive transforms expect the SQS message shape, not the Lambda record shape.
        message = {
            'MessageId': record.get('messageId'),
            'ReceiptHandle': record.get('receiptHandle'),
            'Body': record.get('body'),
            'MessageAttributes': {
                name: {
                    'DataType': attribute.get('dataType'),
                    'StringValue': attribute.get('stringValue'),
                    'BinaryValue': attribute.get('binaryValue'),
                }
                for name, attribute in (record.get('messageAttributes') or {}).items()
            },
        }
        body = self._receive_transform(message, s3_content)
        if body is not None:
            record['body'] = body
        return record


    async def finalize_record(self, record: Dict[str, Any]) -> None:
        """ Deletes the oversize payload on S3 for a Lambda SQS event record that has been processed, if there is one.

        Args:
            record (Dict[str, Any]): The event record.
        """
        reference = get_reference_from_attributes(record.get('messageAttributes'), value_key='stringValue')
        if reference.is_offloaded and reference.bucket_name:
            await self._delete_s3_content(reference)


    async def resolve_event(self, event: Dict[str, Any]) -> Dict[str, Any]:
        """ Resolves pointers to oversize payloads on S3 for every record in a Lambda SQS event.

        Args:
            event (Dict[str, Any]): The Lambda event, which is updated in place.
        Returns:
            Dict[str, Any]: The Lambda event.
        Raises:
            MessageBatchError: If any record could not be resolved. Other records are still resolved in place.
        """
        await self._process_batch(event, event.get('Records', []), self.resolve_record)
        return event


    async def finalize_event(self, event: Dict[str, Any]) -> None:
        """ Deletes oversize payloads on S3 for every record in a Lambda SQS event, once the batch has succeeded.

        Args:
            event (Dict[str, Any]): The Lambda event.
        Raises:
            MessageBatchError: If the payload for any record could not be deleted.
        """
        await self._process_batch(event, event.get('Records', []), self.finalize_record)


    @staticmethod
    def from_aws_creds(
        region_name: str,
        aws_access_key_id: str,
        aws_secret_access_key: str,
        queue_url: str,
        bucket_name: Optional[str] = None,
        **options: Any) -> 'ExtendedSqsClient':
        """ Initializes a new SQS client capable of handling large messages, using the given AWS credentials.

        Args:
            region_name (str): The AWS region name.
            aws_access_key_id (str): The AWS access key ID to use.
            aws_secret_access_key (str): The AWS secret access key to use.
            queue_url (str): The URL of the queue to connect to.
            bucket_name (Optional[str]): The name of the S3 bucket to use to store oversize message payloads.
            **options (Any): Any other `ExtendedSqsConfig` fields (e.g. always_use_s3, message_size_threshold).
        Returns:
            ExtendedSqsClient: The newly-initialized client.
        """
        return ExtendedSqsClient(
            boto3.client(
                'sqs',
                region_name=region_name,
                aws_access_key_id=aws_access_key_id,
                aws_secret_access_key=aws_secret_access_key
            ),
            boto3.client(
                's3',
                region_name=region_name,
                aws_access_key_id=aws_access_key_id,
                aws_secret_access_key=aws_secret_access_key
            ),
            queue_url,
            bucket_name,
            **options,
        )


    @staticmethod
    def from_default_aws_creds(
        queue_url: str,
        bucket_name: Optional[str] = None,
        **options: Any) -> 'ExtendedSqsClient':
        """ Initializes a new SQS client capable of handling large messages, from the default AWS credentials present
        in the environment.

        Args:
            queue_url (str): The URL of the queue to connect to.
            bucket_name (Optional[str]): The name of the S3 bucket to use to store oversize message payloads.
            **options (Any): Any other `ExtendedSqsConfig` fields (e.g. always_use_s3, message_size_threshold).
        Returns:
            ExtendedSqsClient: The newly-initialized client.
        """
        return ExtendedSqsClient(boto3.client('sqs'), boto3.client('s3'), queue_url, bucket_name, **options)
