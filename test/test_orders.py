from datetime import datetime, timezone, timedelta
from decimal import Decimal
from unittest import mock
from uuid import uuid4

import pytest

from chalicelib.constants.status_codes import http200, http201, http400, http403, http404, http500, http502
from chalicelib.menu_items import MenuItem
from chalicelib.notifications import get_user_notifications
from chalicelib.orders import Order, get_order_items, month_starts, stat_change
from chalicelib.promos import Promo
from chalicelib.utils import data as utils_data
from test.utils.fixtures import create_test_user, create_test_admin, create_test_category, create_test_menu_item
from test.utils.request_utils import make_request

DELIVERY = {'full_name': 'Budi Santoso', 'phone': '081234567', 'address_line': 'Jl. Merdeka 1', 'schedule_type': 'ASAP'}


@pytest.fixture
def menu_item_id():
    return create_test_menu_item(create_test_category(), price=50000, stock=10)


def delivery_order(menu_item_id, quantity=2, payment_method='cod', **kwargs):
    return {
        'order_type': 'delivery',
        'payment_method': payment_method,
        'items': [{'menu_item_id': menu_item_id, 'quantity': quantity, 'note': 'extra spicy'}],
        'delivery': DELIVERY,
        **kwargs
    }


def takeaway_order(menu_item_id, quantity=1, payment_method='midtrans', **kwargs):
    return {
        'order_type': 'takeaway',
        'payment_method': payment_method,
        'items': [{'menu_item_id': menu_item_id, 'quantity': quantity}],
        'takeaway': {'branch_id': 'jakarta', 'pickup_type': 'NOW'},
        **kwargs
    }


def gateway_mock(post, ok=True):
    post.return_value.ok = ok
    post.return_value.status_code = 201 if ok else 500
    post.return_value.text = 'gateway error'
    post.return_value.json.return_value = {'token': 'snap-token-1', 'redirect_url': 'https://pay.example/snap-1'}


def store_order(user_id, date_created=None, status='pending_payment', total=50000, **kwargs):
    order = Order(
        id_=str(uuid4()),
        user_id=user_id,
        order_type=kwargs.pop('order_type', 'takeaway'),
        payment_method='cod',
        payment_status='cod_pending',
        status=status,
        subtotal=Decimal(total),
        total_amount=Decimal(total),
        date_created=date_created,
        **kwargs
    )
    order._create_db_record()
    return order


def test_create_delivery_cod_order(client, menu_item_id):
    admin_id, _ = create_test_admin()
    user_id, token = create_test_user()
    response = make_request(client, '/orders', 'POST', json_body=delivery_order(menu_item_id), token=token)
    assert response.status_code == http201, response.json_body
    assert response.json_body['payment'] == {'method': 'cod', 'snap_token': None}

    order = Order.init_get_by_id(response.json_body['order_id'])
    assert order.user_id == user_id
    assert order.subtotal == Decimal('100000')
    assert order.delivery_fee == Decimal('15000')
    assert order.total_amount == Decimal('115000')
    assert (order.status, order.payment_status) == ('pending_payment', 'cod_pending')
    assert order.delivery_address['full_name'] == 'Budi Santoso'
    assert order.order_number == order.id_[:8].upper()

    items = get_order_items(order.id_)
    assert [(item.name, item.price, item.quantity, item.note) for item in items] == \
        [('Shoyu Ramen', Decimal('50000'), Decimal('2'), 'extra spicy')]
    assert items[0].image_url == 'https://img/ramen.png'
    assert MenuItem.init_get_by_id(menu_item_id).stock == Decimal('8')

    assert [n.title for n in get_user_notifications(user_id)] == ['Order Created']
    assert [n.title for n in get_user_notifications(admin_id)] == ['New Order']


def test_create_midtrans_takeaway_order(client, menu_item_id):
    _, token = create_test_user()
    with mock.patch('chalicelib.utils.midtrans.requests.post') as post:
        gateway_mock(post)
        response = make_request(client, '/orders', 'POST', json_body=takeaway_order(menu_item_id), token=token)

    assert response.status_code == http201, response.json_body
    assert response.json_body['payment'] == {'method': 'midtrans', 'snap_token': 'snap-token-1'}
    order = Order.init_get_by_id(response.json_body['order_id'])
    assert order.delivery_fee == Decimal('0')
    assert order.total_amount == Decimal('50000')
    assert order.payment_status == 'unpaid'
    assert order.pickup_branch_id == 'jakarta'
    assert order.snap_redirect_url == 'https://pay.example/snap-1'
    assert post.call_args[1]['json']['transaction_details'] == {'order_id': order.id_, 'gross_amount': 50000}


def test_snap_transaction_sends_whole_amount(client):
    user_id, _ = create_test_user()
    order = store_order(user_id, total='9.5')
    with mock.patch('chalicelib.utils.midtrans.requests.post') as post:
        gateway_mock(post)
        order.create_snap_transaction()
    assert post.call_args[1]['json']['transaction_details']['gross_amount'] == 10


def test_create_order_gateway_failure(client, menu_item_id):
    _, token = create_test_user()
    with mock.patch('chalicelib.utils.midtrans.requests.post') as post:
        gateway_mock(post, ok=False)
        response = make_request(client, '/orders', 'POST', json_body=takeaway_order(menu_item_id), token=token)
    assert response.status_code == http502
    assert 'Midtrans error' in response.json_body['error']


def test_create_order_gateway_not_configured(client, menu_item_id, monkeypatch):
    monkeypatch.setenv('MIDTRANS_SERVER_KEY', '')
    _, token = create_test_user()
    response = make_request(client, '/orders', 'POST', json_body=takeaway_order(menu_item_id), token=token)
    assert response.status_code == http500


def test_create_order_from_cart(client, menu_item_id):
    _, token = create_test_user()
    response = make_request(client, '/cart', 'POST', json_body={'menu_item_id': menu_item_id, 'qty': 3}, token=token)
    assert response.status_code == http200

    body = delivery_order(menu_item_id)
    body.pop('items')
    response = make_request(client, '/orders', 'POST', json_body=body, token=token)
    assert response.status_code == http201, response.json_body
    assert Order.init_get_by_id(response.json_body['order_id']).subtotal == Decimal('150000')

    response = make_request(client, '/cart', token=token)
    assert response.json_body['cart']['items'] == []


def test_create_order_with_empty_cart(client):
    _, token = create_test_user()
    body = {'order_type': 'delivery', 'payment_method': 'cod', 'delivery': DELIVERY}
    response = make_request(client, '/orders', 'POST', json_body=body, token=token)
    assert response.status_code == http400


@pytest.mark.parametrize('changes, message', [
    ({'order_type': 'dine_in'}, 'Invalid order type'),
    ({'payment_method': 'cash'}, 'Invalid payment method'),
    ({'items': []}, 'Invalid cart items'),
    ({'items': [{'menu_item_id': 'x', 'quantity': 0}]}, 'Invalid cart items'),
    ({'items': [{'menu_item_id': 'x', 'quantity': 1.5}]}, 'Invalid cart items'),
    ({'delivery': {'full_name': 'Budi'}}, 'Incomplete delivery information'),
])
def test_create_order_validation(client, menu_item_id, changes, message):
    _, token = create_test_user()
    response = make_request(client, '/orders', 'POST', json_body={**delivery_order(menu_item_id), **changes},
                            token=token)
    assert response.status_code == http400
    assert response.json_body['error'] == message


def test_create_takeaway_without_branch(client, menu_item_id):
    _, token = create_test_user()
    body = takeaway_order(menu_item_id, payment_method='cod', takeaway={'pickup_type': 'NOW'})
    response = make_request(client, '/orders', 'POST', json_body=body, token=token)
    assert response.status_code == http400
    assert response.json_body['error'] == 'Branch selection required'


def test_create_order_insufficient_stock(client, menu_item_id):
    _, token = create_test_user()
    response = make_request(client, '/orders', 'POST', json_body=delivery_order(menu_item_id, quantity=11),
                            token=token)
    assert response.status_code == http400
    assert response.json_body['exception'] == 'InsufficientStock'
    assert MenuItem.init_get_by_id(menu_item_id).stock == Decimal('10')


def test_create_order_unknown_menu_item(client):
    _, token = create_test_user()
    response = make_request(client, '/orders', 'POST', json_body=delivery_order(str(uuid4())), token=token)
    assert response.status_code == http404


def test_create_order_sells_out_item(client):
    menu_item_id = create_test_menu_item(create_test_category(), stock=2)
    _, token = create_test_user()
    response = make_request(client, '/orders', 'POST', json_body=delivery_order(menu_item_id, quantity=2),
                            token=token)
    assert response.status_code == http201
    menu_item = MenuItem.init_get_by_id(menu_item_id)
    assert menu_item.stock == Decimal('0')
    assert menu_item.status == 'out_of_stock'


def test_create_order_with_saved_address(client, menu_item_id):
    _, token = create_test_user()
    response = make_request(client, '/user/addresses', 'POST', token=token, json_body={
        'recipient_name': 'Sari', 'phone_number': '0899', 'address_line': 'Jl. Kenanga 5', 'latitude': -6.2
    })
    address_id = response.json_body['address']['id']

    body = delivery_order(menu_item_id, delivery={'address_id': address_id, 'notes': 'ring the bell'})
    response = make_request(client, '/orders', 'POST', json_body=body, token=token)
    assert response.status_code == http201, response.json_body
    order = Order.init_get_by_id(response.json_body['order_id'])
    assert order.delivery_address['full_name'] == 'Sari'
    assert order.delivery_address['address_line'] == 'Jl. Kenanga 5'
    assert order.notes == 'ring the bell'


def test_create_order_with_foreign_address(client, menu_item_id):
    _, owner_token = create_test_user()
    _, token = create_test_user()
    response = make_request(client, '/user/addresses', 'POST', token=owner_token, json_body={
        'recipient_name': 'Sari', 'phone_number': '0899', 'address_line': 'Jl. Kenanga 5'
    })
    body = delivery_order(menu_item_id, delivery={'address_id': response.json_body['address']['id']})
    response = make_request(client, '/orders', 'POST', json_body=body, token=token)
    assert response.status_code == http404


def test_create_order_with_promo(client, menu_item_id):
    Promo(id_='HEMAT', name='Hemat', discount_type='Fixed', discount_value=10000,
          start_date='2020-01-01T00:00:00Z', end_date='2099-01-01T00:00:00Z')._create_db_record()
    _, token = create_test_user()
    response = make_request(client, '/orders', 'POST', json_body=delivery_order(menu_item_id, promo_code='hemat'),
                            token=token)
    assert response.status_code == http201
    order = Order.init_get_by_id(response.json_body['order_id'])
    assert order.discount_amount == Decimal('10000')
    assert order.promo_code == 'HEMAT'
    assert order.total_amount == Decimal('105000')
    assert Promo.init_get_by_code('HEMAT').usage_count == 1


def test_percentage_promo_total_matches_gateway_amount(client):
    menu_item_id = create_test_menu_item(create_test_category(), price=33333, stock=5)
    Promo(id_='PERSEN', name='Persen', discount_type='Percentage', discount_value=Decimal('10'),
          start_date='2020-01-01T00:00:00Z', end_date='2099-01-01T00:00:00Z')._create_db_record()
    _, token = create_test_user()
    with mock.patch('chalicelib.utils.midtrans.requests.post') as post:
        gateway_mock(post)
        response = make_request(client, '/orders', 'POST', token=token,
                                json_body=takeaway_order(menu_item_id, promo_code='PERSEN'))
    assert response.status_code == http201, response.json_body
    order = Order.init_get_by_id(response.json_body['order_id'])
    assert (order.discount_amount, order.total_amount) == (Decimal('3333'), Decimal('30000'))
    assert post.call_args[1]['json']['transaction_details']['gross_amount'] == 30000


def test_create_order_ignores_invalid_promo(client, menu_item_id):
    _, token = create_test_user()
    response = make_request(client, '/orders', 'POST', json_body=delivery_order(menu_item_id, promo_code='NOPE'),
                            token=token)
    assert response.status_code == http201
    order = Order.init_get_by_id(response.json_body['order_id'])
    assert order.discount_amount == Decimal('0')
    assert order.promo_code is None
    assert order.total_amount == Decimal('115000')


def test_create_order_scheduled_pickup(client, menu_item_id):
    _, token = create_test_user()
    body = takeaway_order(menu_item_id, payment_method='cod', takeaway={
        'branch_id': 'jakarta', 'pickup_type': 'SCHEDULED', 'pickup_at': '2030-01-01T10:00:00+07:00'
    })
    response = make_request(client, '/orders', 'POST', json_body=body, token=token)
    assert response.status_code == http201
    assert Order.init_get_by_id(response.json_body['order_id']).schedule_at == '2030-01-01T03:00:00+00:00'


def test_get_orders_and_detail(client, menu_item_id):
    user_id, token = create_test_user()
    _, other_token = create_test_user()
    older = store_order(user_id, date_created='2024-01-01T10:00:00+00:00', pickup_branch_id='jakarta')
    newer = store_order(user_id, date_created='2024-02-01T10:00:00+00:00', pickup_branch_id='jakarta')

    response = make_request(client, '/orders', token=token)
    assert response.status_code == http200
    assert [order['id'] for order in response.json_body['orders']] == [newer.id_, older.id_]
    assert make_request(client, '/orders', token=other_token).json_body['orders'] == []

    response = make_request(client, f'/orders/{newer.id_}', token=token)
    assert response.status_code == http200
    assert response.json_body['order']['pickup_branch_name'] == 'TakumaEat Jakarta'
    assert response.json_body['items'] == []

    assert make_request(client, f'/orders/{newer.id_}', token=other_token).status_code == http404


def test_customer_status_update(client):
    user_id, token = create_test_user()
    _, other_token = create_test_user()
    order = store_order(user_id)

    response = make_request(client, f'/orders/{order.id_}/status', 'PATCH',
                            json_body={'status': 'cancelled', 'payment_status': 'cancelled'}, token=token)
    assert response.status_code == http200
    assert response.json_body['order']['status'] == 'cancelled'
    order = Order.init_get_by_id(order.id_)
    assert (order.status, order.payment_status) == ('cancelled', 'cancelled')

    url = f'/orders/{order.id_}/status'
    assert make_request(client, url, 'PATCH', json_body={}, token=token).status_code == http400
    assert make_request(client, url, 'PATCH', json_body={'status': 'lost'}, token=token).status_code == http400
    assert make_request(client, url, 'PATCH', json_body={'payment_status': 'x'}, token=token).status_code == http400
    assert make_request(client, url, 'PATCH', json_body={'status': 'completed'},
                        token=other_token).status_code == http403
    assert make_request(client, f'/orders/{uuid4()}/status', 'PATCH', json_body={'status': 'completed'},
                        token=token).status_code == http404


def test_admin_orders_list_filters(client):
    user_id, _ = create_test_user(name='Customer One')
    _, admin_token = create_test_admin()
    processing = store_order(user_id, status='processing', order_type='delivery', notes='leave at door')
    store_order(user_id, status='pending_payment')

    response = make_request(client, '/admin/orders', token=admin_token)
    assert response.status_code == http200
    assert len(response.json_body['orders']) == 2
    assert response.json_body['orders'][0]['customer']['name'] == 'Customer One'

    response = make_request(client, '/admin/orders', query='status=processing', token=admin_token)
    assert [order['id'] for order in response.json_body['orders']] == [processing.id_]
    response = make_request(client, '/admin/orders', query='type=delivery&status=All', token=admin_token)
    assert [order['id'] for order in response.json_body['orders']] == [processing.id_]
    response = make_request(client, '/admin/orders', query='search=DOOR', token=admin_token)
    assert [order['id'] for order in response.json_body['orders']] == [processing.id_]
    response = make_request(client, '/admin/orders', query=f'search={processing.id_[:8]}', token=admin_token)
    assert [order['id'] for order in response.json_body['orders']] == [processing.id_]


def test_admin_order_detail_update_delete(client, menu_item_id):
    user_id, token = create_test_user(name='Customer One', email='one@example.com')
    _, admin_token = create_test_admin()
    response = make_request(client, '/orders', 'POST', json_body=delivery_order(menu_item_id), token=token)
    order_id = response.json_body['order_id']

    response = make_request(client, f'/admin/orders/{order_id}', token=admin_token)
    assert response.status_code == http200
    assert response.json_body['order']['customer'] == {'name': 'Customer One', 'email': 'one@example.com'}
    assert len(response.json_body['items']) == 1

    response = make_request(client, f'/admin/orders/{order_id}', 'PATCH',
                            json_body={'status': 'preparing', 'payment_status': 'paid'}, token=admin_token)
    assert response.status_code == http200
    assert response.json_body['order']['status'] == 'preparing'
    titles = [n.title for n in get_user_notifications(user_id)]
    assert 'Order Update' in titles
    assert 'Payment Received' in titles

    response = make_request(client, f'/admin/orders/{order_id}', 'PATCH', json_body={'status': 'x'},
                            token=admin_token)
    assert response.status_code == http400
    assert make_request(client, f'/admin/orders/{order_id}', token=token).status_code == http403

    response = make_request(client, f'/admin/orders/{order_id}', 'DELETE', token=admin_token)
    assert response.status_code == http200
    assert get_order_items(order_id) == []
    assert make_request(client, f'/admin/orders/{order_id}', token=admin_token).status_code == http404


def test_month_starts():
    assert month_starts(datetime(2024, 1, 15, 12, tzinfo=timezone.utc)) == (
        datetime(2024, 1, 1, tzinfo=timezone.utc), datetime(2023, 12, 1, tzinfo=timezone.utc))


def test_stat_change():
    assert stat_change(Decimal('50'), Decimal('100')) == {'value': Decimal('50'), 'change': '-50.0%',
                                                          'is_positive': False}
    assert stat_change(3, 2)['change'] == '+50.0%'
    assert stat_change(0, 0) == {'value': 0, 'change': '+100.0%', 'is_positive': True}


def test_admin_stats(client):
    user_id, _ = create_test_user()
    _, admin_token = create_test_admin()
    this_month, _ = month_starts(datetime.now(timezone.utc))
    last_month_day = utils_data.to_iso((this_month - timedelta(days=3)).isoformat())
    store_order(user_id, total=100000, status='processing')
    store_order(user_id, total=50000, status='cancelled')
    store_order(user_id, total=50000, status='completed', date_created=last_month_day)

    response = make_request(client, '/admin/stats', token=admin_token)
    assert response.status_code == http200
    stats = response.json_body['stats']
    assert stats['total_orders'] == {'value': 2, 'change': '+100.0%', 'is_positive': True}
    assert stats['revenue'] == {'value': 100000, 'change': '+100.0%', 'is_positive': True}
    assert stats['new_customers']['value'] == 1

    _, user_token = create_test_user()
    assert make_request(client, '/admin/stats', token=user_token).status_code == http403
