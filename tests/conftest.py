"""
Shared fixtures for unit and integration tests.
"""
import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import config  # noqa: E402


class MockContext:
    """Mock Lambda context."""

    def __init__(self):
        self.function_name = 'test-function'
        self.memory_limit_in_mb = 512
        self.invoked_function_arn = 'arn:aws:lambda:eu-west-1:123456789012:function:test-function'
        self.aws_request_id = 'test-request-id'


@pytest.fixture
def mock_context():
    return MockContext()


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Fake AWS credentials and a fresh config for every test."""
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'eu-west-1')
    monkeypatch.setenv('AWS_REGION', 'eu-west-1')
    monkeypatch.delenv('STAGE', raising=False)
    monkeypatch.delenv('ENVIRONMENT', raising=False)
    config._config = None
    yield
    config._config = None


@pytest.fixture
def api_event():
    """Minimal API Gateway REST proxy event."""
    return {
        'httpMethod': 'POST',
        'path': '/orders',
        'headers': {'Content-Type': 'application/json'},
        'pathParameters': None,
        'queryStringParameters': None,
        'body': '{"name": "Widget"}',
        'requestContext': {'identity': {'sourceIp': '203.0.113.10'}},
    }
