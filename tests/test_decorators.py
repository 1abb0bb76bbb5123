"""
Unit tests for the api_handler decorator.
"""
import json

from utils.decorators import api_handler
from utils.errors import ErrorMapper
from utils.exceptions import NotFoundError
from utils.middleware import AuthenticationMiddleware, JsonBodyParser
from utils.validation import ValidationResult


def test_returns_lambda_proxy_dict(api_event, mock_context):
    @api_handler(JsonBodyParser())
    def create(event, context):
        """Create an item."""
        return {'received': event.parsed_body}

    result = create(api_event, mock_context)

    assert create.__name__ == 'create'
    assert create.__doc__ == 'Create an item.'
    assert result['statusCode'] == 200
    assert json.loads(result['body']) == {'received': {'name': 'Widget'}}
    assert result['headers']['Content-Type'] == 'application/json'


def test_errors_become_responses(mock_context):
    @api_handler(mapper=ErrorMapper(production=True))
    def lookup(event, context):
        raise NotFoundError(resource='Order', id='o-1')

    result = lookup({'headers': {'X-Correlation-ID': 'req_42'}}, mock_context)
    body = json.loads(result['body'])

    assert result['statusCode'] == 404
    assert body['error']['message'] == "Order with ID 'o-1' not found"
    assert body['correlationId'] == 'req_42'


def test_errors_raised_by_middleware_are_handled(mock_context):
    def broken_validator(token):
        raise RuntimeError('token service down')

    @api_handler(AuthenticationMiddleware(broken_validator), mapper=ErrorMapper(production=True))
    def secured(event, context):
        return {'ok': True}

    result = secured({'headers': {'Authorization': 'Bearer abc'}}, mock_context)
    assert result['statusCode'] == 500
    assert json.loads(result['body'])['error']['code'] == 'INTERNAL_SERVER_ERROR'


def test_short_circuit_response(mock_context):
    @api_handler(AuthenticationMiddleware(lambda token: ValidationResult.ok(token)))
    def secured(event, context):
        return {'ok': True}

    result = secured({}, mock_context)
    assert result['statusCode'] == 401


def test_no_content_has_no_body(mock_context):
    from utils.response import ResponseBuilder

    @api_handler()
    def remove(event, context):
        return ResponseBuilder.no_content(event.correlation_id)

    result = remove({}, mock_context)
    assert result['statusCode'] == 204
    assert 'body' not in result
