"""Global pytest configuration and shared fixtures."""

import io
import os
from unittest.mock import MagicMock

import pytest


def pytest_configure(config):
    """Set environment variables before any test collection or execution."""
    os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")


MOCK_S3_KEY = "1234-5678"
BUCKET_NAME = "test-bucket"


@pytest.fixture
def test_message_attribute():
    return {"DataType": "String", "StringValue": "attr value"}


@pytest.fixture
def s3_message_body_key_attribute():
    return {"DataType": "String", "StringValue": f"({BUCKET_NAME}){MOCK_S3_KEY}"}


@pytest.fixture
def sqs():
    """Create a mock SQS client."""
    client = MagicMock()
    client.send_message.return_value = {"MessageId": "test message id"}
    client.receive_message.return_value = {"Messages": []}
    client.delete_message.return_value = {}
    return client


@pytest.fixture
def s3():
    """Create a mock S3 client."""
    client = MagicMock()
    client.put_object.return_value = {}
    client.get_object.side_effect = lambda **kwargs: {"Body": io.BytesIO(b"message body")}
    client.delete_object.return_value = {}
    return client
