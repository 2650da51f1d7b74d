import hashlib
import hmac
from decimal import Decimal
from typing import Dict, Optional, Tuple

from chalice import Response

from chalicelib.constants.constants import NOTIFICATION_CATEGORY_PAYMENT, TAX_RATE
from chalicelib.constants.status_codes import http200
from chalicelib.notifications import create_notification
from chalicelib.orders import Order
from chalicelib.utils import auth as utils_auth, app as utils_app, data as utils_data, \
    midtrans as utils_midtrans, exceptions
from chalicelib.utils.logger import logger

# transaction_status -> (payment_status, order status)
TRANSACTION_STATUSES = {
    'settlement': ('paid', 'processing'),
    'pending': ('unpaid', 'pending_payment'),
    'deny': ('failed', 'cancelled'),
    'cancel': ('cancelled', 'cancelled'),
    'expire': ('expired', 'cancelled'),
    'refund': ('refunded', 'refunded'),
    'partial_refund': ('partial_refund', 'refunded'),
    'failure': ('failed', 'cancelled'),
}
DEFAULT_STATUSES = ('unpaid', 'pending_payment')

NOTIFICATION_REQUIRED_FIELDS = ('order_id', 'transaction_status', 'signature_key', 'status_code', 'gross_amount')


def resolve_statuses(transaction_status: str, fraud_status: Optional[str] = None) -> Tuple[str, str]:
    """
    Maps gateway transaction and fraud statuses onto local statuses
    :return:
    (payment_status, order status)
    """
    transaction_status = str(transaction_status or '').lower()
    if transaction_status == 'capture':
        if str(fraud_status or '').lower() == 'challenge':
            return 'pending_review', 'pending_payment'
        return 'paid', 'processing'
    return TRANSACTION_STATUSES.get(transaction_status, DEFAULT_STATUSES)


def compute_signature(payload: Dict, server_key: str) -> Optional[str]:
    parts = [payload.get('order_id'), payload.get('status_code'), payload.get('gross_amount'), server_key]
    if any(part is None or part == '' for part in parts):
        return None
    return hashlib.sha512(''.join(str(part) for part in parts).encode('utf-8')).hexdigest()


def get_payment_channel(payload: Dict) -> str:
    payment_type = payload.get('payment_type')
    bank = (payload.get('bank') or '').upper()
    if payment_type == 'credit_card':
        return f"Credit Card ({bank or 'Card'})"
    if payment_type == 'bank_transfer':
        va_numbers = payload.get('va_numbers') or [{}]
        return (va_numbers[0].get('bank') or '').upper() or bank or 'Bank Transfer'
    if payment_type == 'cstore':
        return (payload.get('store') or '').upper() or 'Convenience Store'
    if payment_type == 'echannel':
        return 'Mandiri Bill'
    if payment_type:
        channel = payment_type.replace('_', ' ').upper()
        if payload.get('acquirer'):
            channel = f"{channel} ({payload['acquirer'].upper()})"
        return channel
    return 'Midtrans'


def get_payment_notification_text(payment_status: str, order_number: str) -> Tuple[str, str]:
    if payment_status == 'paid':
        return 'Payment Successful!', f'Thank you! Payment for order {order_number} has been received.'
    if payment_status in ('failed', 'expired'):
        return 'Payment Failed', f'Sorry, payment for order {order_number} was not successful or has expired.'
    return 'Payment Update', f'Payment status of order {order_number} has been updated to {payment_status}.'


@utils_app.request_exception_handler
@utils_auth.authenticate
@utils_app.log_start_finish
def endpoint_create_transaction(request) -> Response:
    order_id = utils_data.parse_raw_body(request).get('order_id')
    if not order_id:
        raise exceptions.MandatoryFieldsAreNotFilled('order_id is required')
    order = Order.init_get_by_id(order_id)
    if order.user_id != request.auth_result['user_id'] and not utils_auth.is_admin(request):
        raise exceptions.AccessDenied(f'Order {order_id} belongs to another user')
    result = order.create_snap_transaction()
    return Response(status_code=http200, body=result)


@utils_app.request_exception_handler
@utils_app.log_start_finish
def endpoint_payment_notification(request) -> Response:
    """
    Gateway webhook, the payload is trusted only when its signature matches the server key
    """
    server_key = utils_midtrans.server_key()
    if not server_key:
        raise exceptions.PaymentGatewayNotConfigured('Midtrans is not configured')
    payload = utils_data.parse_raw_body(request)
    if any(not payload.get(field) for field in NOTIFICATION_REQUIRED_FIELDS):
        raise exceptions.ValidationException('Invalid Midtrans payload')

    expected_signature = compute_signature(payload, server_key)
    if not expected_signature or not hmac.compare_digest(
            expected_signature.encode(), str(payload['signature_key']).encode()):
        logger.error(f"endpoint_payment_notification ::: signature mismatch for order {payload['order_id']}")
        raise exceptions.InvalidSignature('Invalid signature')

    order = Order.init_get_by_id(payload['order_id'])
    payment_status, status = resolve_statuses(payload['transaction_status'], payload.get('fraud_status'))
    payment_channel = get_payment_channel(payload)

    status_changed = payment_status != order.payment_status or status != order.status
    metadata_missing = not order.payment_channel or not order.tax_amount
    if not status_changed and not metadata_missing:
        logger.info(f"endpoint_payment_notification ::: order {order.id_} is up to date")
        return Response(status_code=http200, body={'success': True})

    tax_amount = order.tax_amount if order.tax_amount and order.tax_amount > 0 \
        else utils_data.round_amount((order.total_amount or Decimal('0')) * TAX_RATE)
    order.update_payment(
        payment_status=payment_status,
        status=status,
        payment_channel=order.payment_channel or payment_channel,
        tax_amount=tax_amount
    )
    logger.info(f"endpoint_payment_notification ::: order {order.id_} updated, {payment_status=} {status=} "
                f"{payment_channel=} {status_changed=} {metadata_missing=}")

    title, description = get_payment_notification_text(payment_status, order.order_number)
    create_notification(order.user_id, title, description, NOTIFICATION_CATEGORY_PAYMENT, f'/orders/{order.id_}')
    return Response(status_code=http200, body={'success': True})
