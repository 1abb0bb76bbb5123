"""
Unit tests for service layer.

This module provides tests for the AWS wrappers and HTTP API services.
"""
import base64
import json

import pytest
import requests
from unittest.mock import Mock, MagicMock, patch
from botocore.exceptions import ClientError

from services.base import AWSService
from services.channel_service import ChannelService
from services.crypto_service import CryptoService
from services.database_service import DatabaseService
from services.email_service import EmailService
from services.identity_service import IdentityService
from services.message_service import MessageService
from services.notification_service import NotificationService
from services.secret_service import SecretService
from services.storage_service import StorageService
from services.tickettailor_service import TicketTailorService
from services.whatsapp_service import WhatsAppService


def client_error(code='AccessDenied', operation='Operation'):
    return ClientError({'Error': {'Code': code, 'Message': 'nope'}}, operation)


class TestAWSService:
    """Tests for the shared service base."""

    @patch('services.base.boto3')
    def test_client_lazy_init(self, mock_boto3):
        """Test lazy initialization of the client with the configured region."""
        mock_client = Mock()
        mock_boto3.client.return_value = mock_client

        service = MessageService()
        assert service._client is None

        assert service.client is mock_client
        assert service.client is mock_client
        mock_boto3.client.assert_called_once_with('sqs', region_name='eu-west-1')

    def test_handle_error_returns_fallback(self):
        service = AWSService(client=Mock())
        assert service._handle_error(client_error(), 'get', fallback=[]) == []

    def test_handle_error_reraises(self):
        service = AWSService(client=Mock())
        error = client_error()
        with pytest.raises(ClientError) as exc_info:
            service._handle_error(error, 'get')
        assert exc_info.value is error


class TestDatabaseService:
    """Tests for DatabaseService."""

    def make_service(self):
        resource = MagicMock()
        table = resource.Table.return_value
        return DatabaseService(resource=resource), resource, table

    @patch('services.database_service.boto3')
    def test_resource_lazy_init(self, mock_boto3):
        service = DatabaseService(region_name='eu-west-2')
        assert service.resource is mock_boto3.resource.return_value
        mock_boto3.resource.assert_called_once_with('dynamodb', region_name='eu-west-2')

    def test_get_returns_item(self):
        service, resource, table = self.make_service()
        table.get_item.return_value = {'Item': {'id': '1'}}

        assert service.get('users', {'id': '1'}) == {'id': '1'}
        resource.Table.assert_called_with('users')
        table.get_item.assert_called_once_with(Key={'id': '1'})

    def test_get_missing_returns_none(self):
        service, _, table = self.make_service()
        table.get_item.return_value = {}
        assert service.get('users', {'id': '1'}) is None

    def test_put_passes_condition(self):
        service, _, table = self.make_service()
        service.put('users', {'id': '1'}, ConditionExpression='attribute_not_exists(id)')
        table.put_item.assert_called_once_with(
            Item={'id': '1'}, ConditionExpression='attribute_not_exists(id)'
        )

    def test_put_reraises_client_error(self):
        service, _, table = self.make_service()
        table.put_item.side_effect = client_error('ConditionalCheckFailedException', 'PutItem')
        with pytest.raises(ClientError):
            service.put('users', {'id': '1'})

    def test_update_returns_attributes(self):
        service, _, table = self.make_service()
        table.update_item.return_value = {'Attributes': {'count': 2}}
        assert service.update('users', {'id': '1'}, UpdateExpression='ADD #c :one') == {'count': 2}

    def test_batch_get_returns_table_items(self):
        service, resource, _ = self.make_service()
        resource.batch_get_item.return_value = {'Responses': {'users': [{'id': '1'}]}}
        items = service.batch_get({'users': {'Keys': [{'id': '1'}]}}, 'users')
        assert items == [{'id': '1'}]

    def test_scan_follows_last_evaluated_key(self):
        service, _, table = self.make_service()
        table.scan.side_effect = [
            {'Items': [{'id': '1'}], 'LastEvaluatedKey': {'id': '1'}},
            {'Items': [{'id': '2'}]},
        ]

        assert service.scan('users', FilterExpression='x') == [{'id': '1'}, {'id': '2'}]
        assert table.scan.call_count == 2
        _, second_kwargs = table.scan.call_args_list[1]
        assert second_kwargs['ExclusiveStartKey'] == {'id': '1'}

    def test_limit_reads_a_single_page(self):
        service, _, table = self.make_service()
        table.query.return_value = {'Items': [{'id': '1'}], 'LastEvaluatedKey': {'id': '1'}}

        assert service.query('users', KeyConditionExpression='x', Limit=1) == [{'id': '1'}]
        table.query.assert_called_once_with(KeyConditionExpression='x', Limit=1)

    def test_query_page_returns_cursor(self):
        service, _, table = self.make_service()
        table.query.return_value = {'Items': [{'id': '2'}], 'LastEvaluatedKey': {'id': '2'}}

        items, cursor = service.query_page(
            'users', limit=1, start_key={'id': '1'}, KeyConditionExpression='x'
        )
        assert items == [{'id': '2'}]
        assert cursor == {'id': '2'}
        table.query.assert_called_once_with(
            KeyConditionExpression='x', Limit=1, ExclusiveStartKey={'id': '1'}
        )

    def test_scan_page_last_page_has_no_cursor(self):
        service, _, table = self.make_service()
        table.scan.return_value = {'Items': []}
        assert service.scan_page('users') == ([], None)
        table.scan.assert_called_once_with()

    def test_query_reraises_client_error(self):
        service, _, table = self.make_service()
        table.query.side_effect = client_error('ValidationException', 'Query')
        with pytest.raises(ClientError):
            service.query('users', KeyConditionExpression='x')


class TestStorageService:
    """Tests for StorageService."""

    def make_service(self):
        client = Mock()
        return StorageService('test-bucket', client=client), client

    def test_bucket_from_config(self, monkeypatch):
        monkeypatch.setenv('S3_BUCKET', 'configured-bucket')
        assert StorageService(client=Mock()).bucket_name == 'configured-bucket'

    def test_missing_bucket(self, monkeypatch):
        monkeypatch.delenv('S3_BUCKET', raising=False)
        with pytest.raises(ValueError, match='S3_BUCKET'):
            StorageService(client=Mock()).bucket_name

    def test_object_exists_true(self):
        """Test object_exists returns True when object exists."""
        service, client = self.make_service()
        client.head_object.return_value = {}

        assert service.object_exists('test-key') is True
        client.head_object.assert_called_once_with(Bucket='test-bucket', Key='test-key')

    def test_object_exists_false_404(self):
        """Test object_exists returns False for 404 errors."""
        service, client = self.make_service()
        client.head_object.side_effect = client_error('404', 'HeadObject')
        assert service.object_exists('test-key') is False

    def test_object_exists_reraises_other_errors(self):
        service, client = self.make_service()
        client.head_object.side_effect = client_error('403', 'HeadObject')
        with pytest.raises(ClientError):
            service.object_exists('test-key')

    def test_list_bucket_folders(self):
        service, client = self.make_service()
        client.list_objects_v2.return_value = {
            'CommonPrefixes': [{'Prefix': 'photos/2023/'}, {'Prefix': 'photos/2024/'}]
        }
        assert service.list_bucket('photos/') == ['2023', '2024']
        client.list_objects_v2.assert_called_once_with(
            Bucket='test-bucket', Prefix='photos/', Delimiter='/'
        )

    def test_list_folder_falls_back_to_empty(self):
        service, client = self.make_service()
        client.list_objects_v2.side_effect = client_error('NoSuchBucket', 'ListObjectsV2')
        assert service.list_folder('photos/') == []

    def test_get_object_falls_back_to_none(self):
        service, client = self.make_service()
        client.get_object.side_effect = client_error('NoSuchKey', 'GetObject')
        assert service.get_object('missing') is None

    def test_put_object_encodes_strings(self):
        service, client = self.make_service()
        service.put_object('a.txt', 'héllo', content_type='text/plain')
        client.put_object.assert_called_once_with(
            Bucket='test-bucket', Key='a.txt', Body='héllo'.encode('UTF-8'), ContentType='text/plain'
        )

    def test_put_object_reraises(self):
        service, client = self.make_service()
        client.put_object.side_effect = client_error('AccessDenied', 'PutObject')
        with pytest.raises(ClientError):
            service.put_object('a.txt', b'x')

    def test_signed_urls(self):
        service, client = self.make_service()
        client.generate_presigned_url.return_value = 'https://signed'
        assert service.put_object_signed_url('upload.png') == 'https://signed'
        client.generate_presigned_url.assert_called_once_with(
            'put_object', Params={'Bucket': 'test-bucket', 'Key': 'upload.png'}, ExpiresIn=3600
        )

    def test_select_object_content_decodes_records(self):
        service, client = self.make_service()
        client.select_object_content.return_value = {'Payload': [
            {'Records': {'Payload': b'{"id": 1}\n{"id"'}},
            {'Records': {'Payload': b': 2}\n'}},
            {'Stats': {}},
            {'End': {}},
        ]}
        assert service.select_object_content('doc.json', 'SELECT * FROM S3Object') == [
            {'id': 1}, {'id': 2}
        ]

    def test_select_object_content_falls_back_to_none(self):
        service, client = self.make_service()
        client.select_object_content.side_effect = client_error('InvalidQuery', 'SelectObjectContent')
        assert service.select_object_content('doc.json', 'SELECT') is None

    def test_operation_uses_stage_and_service_key(self, monkeypatch):
        monkeypatch.setenv('STAGE', 'test')
        monkeypatch.setenv('SERVICE_NAME', 'orders')
        service, client = self.make_service()

        service.operation('delete_object', 'status')
        client.delete_object.assert_called_once_with(Bucket='test-bucket', Key='test/orders/status.json')

    def test_operation_rejects_unknown_action(self):
        service, _ = self.make_service()
        with pytest.raises(ValueError, match='Unknown storage operation'):
            service.operation('copy_object', 'status')


class TestSecretService:

    def test_secret_string(self):
        client = Mock()
        client.get_secret_value.return_value = {'SecretString': '{"apiKey": "k"}'}
        service = SecretService(client=client)
        assert service.get_secret_json('app/keys') == {'apiKey': 'k'}

    def test_secret_binary(self):
        client = Mock()
        client.get_secret_value.return_value = {'SecretBinary': b'binary-secret'}
        assert SecretService(client=client).get_secret_value('bin') == 'binary-secret'

    def test_secret_binary_utf8(self):
        client = MagicMock()
        client.get_secret_value.return_value = {'SecretBinary': 'pässwörd'.encode('utf-8')}
        assert SecretService(client=client).get_secret_value('bin') == 'pässwörd'

    def test_secret_binary_not_text(self):
        client = MagicMock()
        client.get_secret_value.return_value = {'SecretBinary': b'\xff\xfe\x00'}
        with pytest.raises(ValueError):
            SecretService(client=client).get_secret_value('bin')

    def test_missing_secret_returns_none(self):
        client = Mock()
        client.get_secret_value.side_effect = client_error('ResourceNotFoundException')
        service = SecretService(client=client)
        assert service.get_secret_value('missing') is None
        assert service.get_secret_json('missing') is None

    def test_invalid_json(self):
        client = Mock()
        client.get_secret_value.return_value = {'SecretString': 'not json'}
        with pytest.raises(ValueError, match='not valid JSON'):
            SecretService(client=client).get_secret_json('plain')


class TestMessageService:

    def test_send_serializes_body(self):
        client = Mock()
        MessageService(client=client).send('https://queue', {'a': 1}, DelaySeconds=5)
        client.send_message.assert_called_once_with(
            QueueUrl='https://queue', MessageBody='{"a": 1}', DelaySeconds=5
        )

    def test_receive_and_delete_deletes_every_message(self):
        client = Mock()
        client.receive_message.return_value = {'Messages': [
            {'ReceiptHandle': 'r1', 'Body': 'a'},
            {'ReceiptHandle': 'r2', 'Body': 'b'},
        ]}
        messages = MessageService(client=client).receive_and_delete('https://queue', 2)

        assert [m['Body'] for m in messages] == ['a', 'b']
        assert client.delete_message.call_count == 2
        client.delete_message.assert_called_with(QueueUrl='https://queue', ReceiptHandle='r2')

    def test_receive_and_delete_empty_queue(self):
        client = Mock()
        client.receive_message.return_value = {}
        assert MessageService(client=client).receive_and_delete('https://queue') == []
        client.delete_message.assert_not_called()


class TestNotificationAndEmail:

    def test_publish(self):
        client = Mock()
        NotificationService(client=client).publish('hi', topic_arn='arn:topic', subject='Hello')
        client.publish.assert_called_once_with(Message='hi', TopicArn='arn:topic', Subject='Hello')

    def test_subscribe_reraises(self):
        client = Mock()
        client.subscribe.side_effect = client_error('InvalidParameter')
        with pytest.raises(ClientError):
            NotificationService(client=client).subscribe('arn:topic', 'email', 'a@b.co')

    def test_email_send(self):
        client = Mock()
        EmailService(client=client).send('no-reply@b.co', ['a@b.co'], 'Welcome', {'name': 'Ann'})
        client.send_templated_email.assert_called_once_with(
            Source='no-reply@b.co',
            Destination={'ToAddresses': ['a@b.co']},
            Template='Welcome',
            TemplateData='{"name": "Ann"}',
        )


class TestCryptoService:

    def test_decrypt_env_variable(self, monkeypatch):
        monkeypatch.setenv('DB_PASSWORD', base64.b64encode(b'cipher').decode())
        monkeypatch.setenv('AWS_LAMBDA_FUNCTION_NAME', 'orders-fn')
        client = Mock()
        client.decrypt.return_value = {'Plaintext': b'hunter2'}

        assert CryptoService(client=client).decrypt('DB_PASSWORD') == 'hunter2'
        client.decrypt.assert_called_once_with(
            CiphertextBlob=b'cipher',
            EncryptionContext={'LambdaFunctionName': 'orders-fn'},
        )

    def test_decrypt_missing_env_variable(self, monkeypatch):
        monkeypatch.delenv('MISSING_SECRET', raising=False)
        with pytest.raises(ValueError, match='MISSING_SECRET'):
            CryptoService(client=Mock()).decrypt('MISSING_SECRET')

    def test_encrypt(self):
        client = Mock()
        client.encrypt.return_value = {'CiphertextBlob': b'cipher'}
        assert CryptoService(client=client).encrypt('text', 'alias/app') == base64.b64encode(b'cipher').decode()


class TestIdentityAndChannel:

    def test_identity_fallback(self):
        client = Mock()
        client.get_caller_identity.side_effect = client_error('ExpiredToken')
        assert IdentityService(client=client).get() is None

    def test_send_sms(self):
        client = Mock()
        client.send_messages.return_value = {
            'MessageResponse': {'Result': {'+447700900000': {'StatusMessage': 'ok'}}}
        }
        service = ChannelService(client=client, application_id='app-1', sender_id='Shop')
        service.send_sms('+447700900000', 'Your code is 1234', message_type='PROMOTIONAL')

        _, kwargs = client.send_messages.call_args
        assert kwargs['ApplicationId'] == 'app-1'
        sms = kwargs['MessageRequest']['MessageConfiguration']['SMSMessage']
        assert sms == {'Body': 'Your code is 1234', 'MessageType': 'PROMOTIONAL', 'SenderId': 'Shop'}

    def test_send_sms_requires_application(self):
        with pytest.raises(ValueError, match='application_id'):
            ChannelService(client=Mock()).send_sms('+447700900000', 'hi')

    def test_unknown_sms_setting(self):
        with pytest.raises(ValueError, match='colour'):
            ChannelService(client=Mock(), colour='red')


class TestWhatsAppService:

    @patch('services.whatsapp_service.requests.post')
    def test_send_template(self, mock_post):
        mock_response = Mock()
        mock_response.json.return_value = {'messages': [{'id': 'wamid.1'}]}
        mock_response.raise_for_status.return_value = None
        mock_post.return_value = mock_response

        service = WhatsAppService.from_credentials(
            {'phoneNumberId': '123', 'accessToken': 'token'}, api_endpoint='https://graph.example/v17.0/'
        )
        result = service.send('447700900000', 'order_shipped', [{'type': 'body'}])

        assert result == {'messages': [{'id': 'wamid.1'}]}
        args, kwargs = mock_post.call_args
        assert args == ('https://graph.example/v17.0/123/messages',)
        assert kwargs['headers'] == {'Authorization': 'Bearer token'}
        assert kwargs['json']['template']['name'] == 'order_shipped'
        assert kwargs['json']['template']['language'] == {'code': 'en_GB'}
        assert kwargs['timeout'] == 30

    @patch('services.whatsapp_service.requests.post')
    def test_send_failure_reraises(self, mock_post):
        mock_post.side_effect = requests.ConnectionError('down')
        service = WhatsAppService('123', 'token', api_endpoint='https://graph.example')
        with pytest.raises(requests.RequestException):
            service.send('447700900000', 'order_shipped')


class TestTicketTailorService:

    @patch('services.tickettailor_service.requests.request')
    def test_get_uses_basic_auth(self, mock_request):
        mock_request.return_value.json.return_value = {'data': []}
        service = TicketTailorService('sk_123', api_domain='https://api.example')

        assert service.get('/v1/events', {'status': 'published'}) == {'data': []}
        args, kwargs = mock_request.call_args
        assert args == ('GET', 'https://api.example/v1/events')
        assert kwargs['params'] == {'status': 'published'}
        assert kwargs['auth'].username == 'sk_123'
        assert kwargs['auth'].password == ''

    @patch('services.tickettailor_service.requests.request')
    def test_post_json(self, mock_request):
        mock_request.return_value.json.return_value = {'id': 'ev_1'}
        service = TicketTailorService('sk_123', api_domain='https://api.example')
        assert service.post('v1/events', {'name': 'Gig'}) == {'id': 'ev_1'}
        _, kwargs = mock_request.call_args
        assert kwargs['json'] == {'name': 'Gig'}

    @patch('services.tickettailor_service.requests.request')
    def test_http_error_reraises(self, mock_request):
        mock_request.return_value.raise_for_status.side_effect = requests.HTTPError('401')
        service = TicketTailorService('sk_123', api_domain='https://api.example')
        with pytest.raises(requests.HTTPError):
            service.get('/v1/events')
