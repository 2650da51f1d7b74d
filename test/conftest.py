import os

import boto3
import pytest
from chalice.test import Client
from moto import mock_aws

from chalicelib.utils import db as utils_db
from chalicelib.utils.boto_clients import ses_client

PROJECT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

TEST_ENVIRONMENT = {
    'GEN_TABLE_NAME': 'takuma-eat-test',
    'LOG_LEVEL': 'DEBUG',
    'SESSION_SECRET': 'test-session-secret',
    'SESSION_TTL_DAYS': '30',
    'MIDTRANS_SERVER_KEY': 'SB-Mid-server-test',
    'MIDTRANS_BASE_URL': 'https://app.sandbox.midtrans.com',
    'APP_BASE_URL': 'http://localhost:3000',
    'EMAIL_FROM': 'no-reply@takumaeat.com',
    'MAIN_BOTO_REGION': 'ap-southeast-1',
    'AWS_DEFAULT_REGION': 'ap-southeast-1',
    'AWS_ACCESS_KEY_ID': 'testing',
    'AWS_SECRET_ACCESS_KEY': 'testing',
    'AWS_SECURITY_TOKEN': 'testing',
    'AWS_SESSION_TOKEN': 'testing',
}


@pytest.fixture(autouse=True)
def aws(monkeypatch):
    for key, value in TEST_ENVIRONMENT.items():
        monkeypatch.setenv(key, value)
    monkeypatch.delenv('ENDPOINT_URL', raising=False)
    monkeypatch.delenv('AWS_REGION', raising=False)

    with mock_aws():
        utils_db._TABLES.clear()
        ses_client.cache_clear()
        boto3.resource('dynamodb', region_name='ap-southeast-1').create_table(
            TableName=TEST_ENVIRONMENT['GEN_TABLE_NAME'],
            KeySchema=[
                {'AttributeName': 'partkey', 'KeyType': 'HASH'},
                {'AttributeName': 'sortkey', 'KeyType': 'RANGE'}
            ],
            AttributeDefinitions=[
                {'AttributeName': 'partkey', 'AttributeType': 'S'},
                {'AttributeName': 'sortkey', 'AttributeType': 'S'}
            ],
            BillingMode='PAY_PER_REQUEST'
        )
        boto3.client('ses', region_name='ap-southeast-1').verify_email_identity(
            EmailAddress=TEST_ENVIRONMENT['EMAIL_FROM'])
        yield
        utils_db._TABLES.clear()
        ses_client.cache_clear()


@pytest.fixture
def client():
    from app import app
    with Client(app, stage_name='test', project_dir=PROJECT_DIR) as test_client:
        yield test_client
