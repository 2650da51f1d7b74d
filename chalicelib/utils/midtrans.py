import os
from typing import Dict

import requests

from chalicelib.utils import exceptions
from chalicelib.utils.logger import logger

DEFAULT_MIDTRANS_BASE_URL = 'https://app.sandbox.midtrans.com'
REQUEST_TIMEOUT_SECONDS = 30


def server_key() -> str:
    return os.environ.get('MIDTRANS_SERVER_KEY', '')


def base_url() -> str:
    return os.environ.get('MIDTRANS_BASE_URL') or DEFAULT_MIDTRANS_BASE_URL


def app_base_url() -> str:
    return (os.environ.get('APP_BASE_URL') or 'http://localhost:3000').rstrip('/')


def create_snap_transaction(payload: Dict) -> Dict:
    """
    Creates a Snap transaction, returns the gateway answer with token and redirect_url
    """
    key = server_key()
    if not key:
        raise exceptions.PaymentGatewayNotConfigured('MIDTRANS_SERVER_KEY is not set')
    order_id = payload.get('transaction_details', {}).get('order_id')
    logger.info(f'create_snap_transaction ::: creating transaction for {order_id=}')
    try:
        response = requests.post(
            f'{base_url()}/snap/v1/transactions',
            json=payload,
            headers={'Accept': 'application/json', 'Content-Type': 'application/json'},
            auth=(key, ''),
            timeout=REQUEST_TIMEOUT_SECONDS
        )
    except requests.RequestException as error:
        logger.error(f'create_snap_transaction ::: connection error {error}')
        raise exceptions.PaymentGatewayError(f'Midtrans connection error: {error}')

    if not response.ok:
        logger.error(f'create_snap_transaction ::: {response.status_code=} {response.text}')
        raise exceptions.PaymentGatewayError(f'Midtrans error: {response.status_code} {response.text}')

    result = response.json()
    logger.info(f'create_snap_transaction ::: transaction for {order_id=} created')
    return result
