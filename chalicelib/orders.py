from datetime import datetime, timezone, timedelta
from decimal import Decimal
from typing import Tuple, List, Dict, Optional
from uuid import uuid4

from boto3.dynamodb.conditions import Attr
from chalice import Response

from chalicelib.addresses import get_user_address
from chalicelib.base_class_entity import EntityBase
from chalicelib.branches import Branch
from chalicelib.carts import Cart
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import ORDER_TYPES, PAYMENT_METHODS, ORDER_STATUSES, PAYMENT_STATUSES, \
    ORDER_TYPE_DELIVERY, PAYMENT_METHOD_MIDTRANS, ORDER_STATUS_CANCELLED, SCHEDULE_TYPE_SCHEDULED, DELIVERY_FEE, \
    DEFAULT_BRANCHES, DEFAULT_CUSTOMER_NAME, ROLE_CUSTOMER
from chalicelib.constants.status_codes import http200, http201
from chalicelib.menu_items import MenuItem
from chalicelib.notifications import create_notification, notify_admins
from chalicelib.promos import check_promo_code
from chalicelib.utils import auth as utils_auth, app as utils_app, data as utils_data, db as utils_db, \
    midtrans as utils_midtrans, exceptions
from chalicelib.utils.logger import logger

ORDER_STATUS_PENDING_PAYMENT = 'pending_payment'
PAYMENT_STATUS_UNPAID = 'unpaid'
PAYMENT_STATUS_COD_PENDING = 'cod_pending'
PAYMENT_STATUS_PAID = 'paid'
FILTER_ALL = 'All'


class OrderItem(EntityBase):
    pk = keys_structure.order_items_pk
    sk = keys_structure.order_items_sk
    skip_empty_fields = True

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'order_id': lambda x: isinstance(x, str),
        'name': lambda x: isinstance(x, str) and len(x) > 0,
        'price': lambda x: isinstance(x, Decimal) and x >= 0,
        'quantity': lambda x: isinstance(x, Decimal) and x > 0,
        'date_created': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'menu_item_id': lambda x: isinstance(x, str),
        'note': lambda x: isinstance(x, str),
        'image_url': lambda x: isinstance(x, str),
        'position': lambda x: isinstance(x, Decimal)
    }

    def __init__(self, id_, order_id, **kwargs):
        EntityBase.__init__(self, id_)

        self.order_id: str = order_id
        self.menu_item_id: str = kwargs.get('menu_item_id')
        self.name: str = kwargs.get('name')
        self.price: Decimal = utils_data.to_decimal(kwargs.get('price'))
        self.quantity: Decimal = utils_data.to_decimal(kwargs.get('quantity'))
        self.note: str = kwargs.get('note')
        self.image_url: str = kwargs.get('image_url')
        self.position: Decimal = utils_data.to_decimal(kwargs.get('position'), Decimal('0'))
        self.date_created: str = kwargs.get('date_created') or utils_data.now_iso()
        self.record_type = 'order_item'

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(order_id=self.order_id, order_item_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'order_id': self.order_id,
            'menu_item_id': self.menu_item_id,
            'name': self.name,
            'price': self.price,
            'quantity': self.quantity,
            'note': self.note,
            'image_url': self.image_url,
            'position': self.position,
            'date_created': self.date_created
        }


def get_order_items(order_id) -> List[OrderItem]:
    records = utils_db.query_partition_prefix(OrderItem.pk, f'{order_id}_')
    return sorted([OrderItem(**record) for record in records], key=lambda i: i.position)


class Order(EntityBase):
    pk = keys_structure.orders_pk
    sk = keys_structure.orders_sk
    skip_empty_fields = True

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'user_id': lambda x: isinstance(x, str),
        'order_number': lambda x: isinstance(x, str),
        'order_type': lambda x: x in ORDER_TYPES,
        'payment_method': lambda x: x in PAYMENT_METHODS,
        'date_created': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'status': lambda x: x in ORDER_STATUSES,
        'payment_status': lambda x: x in PAYMENT_STATUSES,
        'subtotal': lambda x: isinstance(x, Decimal) and x >= 0,
        'delivery_fee': lambda x: isinstance(x, Decimal) and x >= 0,
        'discount_amount': lambda x: isinstance(x, Decimal) and x >= 0,
        'total_amount': lambda x: isinstance(x, Decimal) and x >= 0,
        'date_updated': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'promo_code': lambda x: isinstance(x, str),
        'delivery_address': lambda x: isinstance(x, dict),
        'pickup_branch_id': lambda x: isinstance(x, str),
        'schedule_at': lambda x: isinstance(x, str),
        'notes': lambda x: isinstance(x, str),
        'snap_token': lambda x: isinstance(x, str),
        'snap_redirect_url': lambda x: isinstance(x, str),
        'payment_channel': lambda x: isinstance(x, str),
        'tax_amount': lambda x: isinstance(x, Decimal) and x >= 0,
        'updated_by': lambda x: isinstance(x, str)
    }

    def __init__(self, id_, user_id=None, **kwargs):
        EntityBase.__init__(self, id_)

        self.request_data = kwargs.get('request_data')
        self.order_items: List[OrderItem] = []

        self.user_id: str = user_id
        self.order_type: str = kwargs.get('order_type')
        self.payment_method: str = kwargs.get('payment_method')
        self.status: str = kwargs.get('status', ORDER_STATUS_PENDING_PAYMENT)
        self.payment_status: str = kwargs.get('payment_status', PAYMENT_STATUS_UNPAID)
        self.subtotal: Decimal = utils_data.to_decimal(kwargs.get('subtotal'), Decimal('0'))
        self.delivery_fee: Decimal = utils_data.to_decimal(kwargs.get('delivery_fee'), Decimal('0'))
        self.discount_amount: Decimal = utils_data.to_decimal(kwargs.get('discount_amount'), Decimal('0'))
        self.total_amount: Decimal = utils_data.to_decimal(kwargs.get('total_amount'), Decimal('0'))
        self.promo_code: str = kwargs.get('promo_code')
        self.delivery_address: Dict = kwargs.get('delivery_address')
        self.pickup_branch_id: str = kwargs.get('pickup_branch_id')
        self.schedule_at: str = kwargs.get('schedule_at')
        self.notes: str = kwargs.get('notes')
        self.snap_token: str = kwargs.get('snap_token')
        self.snap_redirect_url: str = kwargs.get('snap_redirect_url')
        self.payment_channel: str = kwargs.get('payment_channel')
        self.tax_amount: Decimal = utils_data.to_decimal(kwargs.get('tax_amount'))
        self.order_number: str = kwargs.get('order_number') or (id_ or '')[:8].upper()
        self.updated_by: str = kwargs.get('updated_by')
        self.date_created: str = kwargs.get('date_created') or utils_data.now_iso()
        self.date_updated: str = kwargs.get('date_updated') or self.date_created
        self.record_type = 'order'

    @classmethod
    def init_get_by_id(cls, order_id):
        return cls(id_=order_id)._load('Order not found', exceptions.OrderNotFound)

    @classmethod
    @utils_auth.authenticate_class
    def init_request_create(cls, request):
        logger.info("init_request_create ::: started")
        return cls(
            id_=str(uuid4()),
            user_id=request.auth_result['user_id'],
            request_data={'auth_result': request.auth_result, 'body': utils_data.parse_raw_body(request)}
        )

    @classmethod
    @utils_auth.authenticate_class
    def init_request_get(cls, request, order_id):
        logger.info("init_request_get ::: started")
        c = cls.init_get_by_id(order_id)
        if c.user_id != request.auth_result['user_id']:
            logger.warning(f"init_request_get ::: order {order_id} doesn't belong to the user")
            raise exceptions.OrderNotFound('Order not found')
        c.request_data = {'auth_result': request.auth_result}
        return c

    @classmethod
    @utils_auth.authenticate_class
    def init_request_update_status(cls, request, order_id):
        logger.info("init_request_update_status ::: started")
        return cls(
            id_=order_id,
            user_id=request.auth_result['user_id'],
            request_data={'auth_result': request.auth_result, 'body': utils_data.parse_raw_body(request)}
        )

    @classmethod
    @utils_auth.authenticate_admin_class
    def init_request_admin(cls, request, order_id):
        logger.info("init_request_admin ::: started")
        c = cls.init_get_by_id(order_id)
        c.request_data = {'auth_result': request.auth_result, 'body': utils_data.parse_raw_body(request)}
        return c

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_create_order(self) -> Response:
        request_body: Dict = self.request_data['body']
        self.order_type = request_body.get('order_type')
        self.payment_method = request_body.get('payment_method')
        if self.order_type not in ORDER_TYPES:
            raise exceptions.ValidationException('Invalid order type')
        if self.payment_method not in PAYMENT_METHODS:
            raise exceptions.ValidationException('Invalid payment method')

        cart = None
        items = request_body.get('items')
        if items is None:
            cart = Cart.init_by_user_id(self.user_id)
            items = cart.get_order_lines()
        validate_order_lines(items)

        if self.order_type == ORDER_TYPE_DELIVERY:
            self._fill_delivery(request_body.get('delivery'))
        else:
            self._fill_takeaway(request_body.get('takeaway'))

        menu_items = self._check_stock(items)
        self._fill_order_items(items, menu_items)
        self.subtotal = sum([item.price * item.quantity for item in self.order_items], Decimal('0'))
        self.delivery_fee = DELIVERY_FEE if self.order_type == ORDER_TYPE_DELIVERY else Decimal('0')
        promo = self._apply_promo(request_body.get('promo_code'))
        self.total_amount = utils_data.round_amount(
            max(Decimal('0'), self.subtotal - self.discount_amount + self.delivery_fee))

        for item_id, quantity in self._quantities_by_item(items).items():
            menu_items[item_id].deduct_stock(quantity)

        self.status = ORDER_STATUS_PENDING_PAYMENT
        self.payment_status = PAYMENT_STATUS_UNPAID \
            if self.payment_method == PAYMENT_METHOD_MIDTRANS else PAYMENT_STATUS_COD_PENDING
        self._create_db_record()
        for order_item in self.order_items:
            order_item._create_db_record()
        if promo is not None:
            promo.increment_usage()

        self._send_created_notifications()

        if self.payment_method == PAYMENT_METHOD_MIDTRANS:
            self.create_snap_transaction()

        (cart or Cart.init_by_user_id(self.user_id)).delete_db_record()
        logger.info(f"endpoint_create_order ::: order {self.id_} created, total={self.total_amount}")
        return Response(status_code=http201, body={
            'order_id': self.id_,
            'payment': {'method': self.payment_method, 'snap_token': self.snap_token}
        })

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_get_order(self) -> Response:
        order = self._to_ui()
        order['pickup_branch_name'] = get_branch_name(self.pickup_branch_id)
        items = [item.to_ui() for item in get_order_items(self.id_)]
        return Response(status_code=http200, body={'order': order, 'items': items})

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_update_status(self) -> Response:
        update_dict = get_status_update_dict(self.request_data['body'])
        caller_id = self.user_id
        self._load('Order not found', exceptions.OrderNotFound)
        if self.user_id != caller_id:
            raise exceptions.AccessDenied('Forbidden')
        self._save_statuses(update_dict)
        return Response(status_code=http200, body={'order': self.to_ui_short()})

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_admin_get_order(self) -> Response:
        order = self._to_ui()
        order['pickup_branch_name'] = get_branch_name(self.pickup_branch_id)
        order['customer'] = get_customer(self.user_id)
        items = [item.to_ui() for item in get_order_items(self.id_)]
        return Response(status_code=http200, body={'order': order, 'items': items})

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_admin_update_order(self) -> Response:
        update_dict = get_status_update_dict(self.request_data['body'])
        self._save_statuses(update_dict)
        if 'status' in update_dict:
            create_notification(
                self.user_id,
                'Order Update',
                f'Status of order #{self.order_number} has changed to {self.status}',
                action_url=f'/orders/{self.id_}'
            )
        if update_dict.get('payment_status') == PAYMENT_STATUS_PAID:
            create_notification(
                self.user_id,
                'Payment Received',
                f'Payment for order #{self.order_number} has been confirmed.',
                action_url=f'/orders/{self.id_}'
            )
        return Response(status_code=http200, body={'order': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_admin_delete_order(self) -> Response:
        for item in get_order_items(self.id_):
            item._delete_db_record()
        self._delete_db_record()
        return Response(status_code=http200, body={'message': 'Order deleted successfully'})

    def create_snap_transaction(self) -> Dict:
        """
        Registers the order at the payment gateway, snap token and redirect url are stored on the order
        """
        finish_url = f'{utils_midtrans.app_base_url()}/orders/{self.id_}'
        full_name = (self.delivery_address or {}).get('full_name')
        result = utils_midtrans.create_snap_transaction({
            'transaction_details': {
                'order_id': self.id_,
                'gross_amount': int(utils_data.round_amount(self.total_amount))
            },
            'customer_details': {
                'first_name': full_name or DEFAULT_CUSTOMER_NAME
            },
            'callbacks': {
                'finish': finish_url,
                'error': finish_url,
                'unfinish': finish_url
            }
        })
        self.snap_token = result.get('token')
        self.snap_redirect_url = result.get('redirect_url')
        self._update_db_record(update_dict={
            'snap_token': self.snap_token,
            'snap_redirect_url': self.snap_redirect_url,
            'date_updated': utils_data.now_iso()
        })
        return result

    def update_payment(self, payment_status, status, payment_channel, tax_amount):
        self.payment_status = payment_status
        self.status = status
        self.payment_channel = payment_channel
        self.tax_amount = tax_amount
        self._update_db_record(update_dict={
            'payment_status': payment_status,
            'status': status,
            'payment_channel': payment_channel,
            'tax_amount': tax_amount,
            'date_updated': utils_data.now_iso()
        })

    def _save_statuses(self, update_dict: Dict):
        for key, value in update_dict.items():
            setattr(self, key, value)
        update_dict['date_updated'] = utils_data.now_iso()
        self._update_db_record(update_dict=update_dict)
        logger.info(f"_save_statuses ::: order {self.id_} {update_dict=}")

    def _fill_delivery(self, delivery: Optional[Dict]):
        delivery = delivery if isinstance(delivery, dict) else {}
        address_id = delivery.get('address_id')
        if not address_id and (not delivery.get('full_name') or not delivery.get('address_line')):
            raise exceptions.ValidationException('Incomplete delivery information')
        if address_id:
            address = get_user_address(self.user_id, address_id)
            self.delivery_address = {
                'full_name': address.recipient_name,
                'phone': address.phone_number,
                'address_line': address.address_line,
                'detail': address.detail or '',
                'latitude': address.latitude,
                'longitude': address.longitude
            }
        else:
            self.delivery_address = {
                'full_name': delivery.get('full_name'),
                'phone': delivery.get('phone'),
                'address_line': delivery.get('address_line'),
                'detail': delivery.get('detail') or ''
            }
        self.delivery_address.update({
            'schedule_type': delivery.get('schedule_type'),
            'scheduled_at': delivery.get('scheduled_at'),
            'notes': delivery.get('notes') or ''
        })
        if delivery.get('schedule_type') == SCHEDULE_TYPE_SCHEDULED and delivery.get('scheduled_at'):
            self.schedule_at = utils_data.to_iso(delivery['scheduled_at'])
        self.notes = delivery.get('notes')

    def _fill_takeaway(self, takeaway: Optional[Dict]):
        takeaway = takeaway if isinstance(takeaway, dict) else {}
        branch_id = takeaway.get('branch_id')
        if not isinstance(branch_id, str) or not branch_id.strip():
            raise exceptions.ValidationException('Branch selection required')
        self.pickup_branch_id = branch_id
        self.notes = takeaway.get('notes')
        if takeaway.get('pickup_type') == SCHEDULE_TYPE_SCHEDULED and takeaway.get('pickup_at'):
            self.schedule_at = utils_data.to_iso(takeaway['pickup_at'])

    @staticmethod
    def _quantities_by_item(items: List[Dict]) -> Dict[str, int]:
        quantities = {}
        for item in items:
            quantities[item['menu_item_id']] = quantities.get(item['menu_item_id'], 0) + int(item['quantity'])
        return quantities

    def _check_stock(self, items: List[Dict]) -> Dict[str, MenuItem]:
        menu_items = {}
        for item_id, quantity in self._quantities_by_item(items).items():
            menu_item = MenuItem.init_get_by_id(item_id)
            if menu_item.stock < quantity:
                raise exceptions.InsufficientStock(
                    f'Not enough stock for {menu_item.name} (left: {menu_item.stock})')
            menu_items[item_id] = menu_item
        return menu_items

    def _fill_order_items(self, items: List[Dict], menu_items: Dict[str, MenuItem]):
        self.order_items = []
        for position, item in enumerate(items):
            menu_item = menu_items[item['menu_item_id']]
            self.order_items.append(OrderItem(
                id_=str(uuid4()),
                order_id=self.id_,
                menu_item_id=menu_item.id_,
                name=menu_item.name,
                price=menu_item.price,
                quantity=item['quantity'],
                note=item.get('note'),
                image_url=menu_item.image_url,
                position=position
            ))

    def _apply_promo(self, promo_code):
        if not isinstance(promo_code, str) or not promo_code.strip():
            return None
        valid, message, discount, promo = check_promo_code(promo_code, self.subtotal)
        if not valid:
            logger.warning(f"_apply_promo ::: promo {promo_code} ignored, {message}")
            return None
        self.discount_amount = discount
        self.promo_code = promo.code
        return promo

    def _send_created_notifications(self):
        create_notification(
            self.user_id,
            'Order Created',
            f'Order #{self.order_number} was created successfully. Please complete the payment.',
            action_url=f'/orders/{self.id_}'
        )
        notify_admins(
            'New Order',
            f'New order #{self.order_number} of Rp {self.total_amount:,.0f}',
            action_url='/admin/orders'
        )

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(order_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'user_id': self.user_id,
            'order_number': self.order_number,
            'order_type': self.order_type,
            'payment_method': self.payment_method,
            'status': self.status,
            'payment_status': self.payment_status,
            'subtotal': self.subtotal,
            'delivery_fee': self.delivery_fee,
            'discount_amount': self.discount_amount,
            'total_amount': self.total_amount,
            'promo_code': self.promo_code,
            'delivery_address': self.delivery_address,
            'pickup_branch_id': self.pickup_branch_id,
            'schedule_at': self.schedule_at,
            'notes': self.notes,
            'snap_token': self.snap_token,
            'snap_redirect_url': self.snap_redirect_url,
            'payment_channel': self.payment_channel,
            'tax_amount': self.tax_amount,
            'updated_by': self.updated_by,
            'date_created': self.date_created,
            'date_updated': self.date_updated
        }

    def to_ui_short(self) -> Dict:
        return {
            'id': self.id_,
            'order_number': self.order_number,
            'status': self.status,
            'payment_status': self.payment_status,
            'payment_method': self.payment_method,
            'order_type': self.order_type,
            'total_amount': self.total_amount,
            'date_created': self.date_created
        }


def validate_order_lines(items):
    if not isinstance(items, list) or len(items) == 0:
        raise exceptions.ValidationException('Invalid cart items')
    for item in items:
        if not isinstance(item, dict) \
                or not isinstance(item.get('menu_item_id'), str) or not item['menu_item_id'] \
                or isinstance(item.get('quantity'), bool) or not isinstance(item.get('quantity'), int) \
                or item['quantity'] <= 0 \
                or (item.get('note') is not None and not isinstance(item['note'], str)):
            raise exceptions.ValidationException('Invalid cart items')


def get_status_update_dict(request_body: Dict) -> Dict:
    status, payment_status = request_body.get('status'), request_body.get('payment_status')
    if not status and not payment_status:
        raise exceptions.ValidationException('No status provided')
    if payment_status and payment_status not in PAYMENT_STATUSES:
        raise exceptions.ValidationException('Invalid payment status')
    if status and status not in ORDER_STATUSES:
        raise exceptions.ValidationException('Invalid order status')
    update_dict = {}
    if status:
        update_dict['status'] = status
    if payment_status:
        update_dict['payment_status'] = payment_status
    return update_dict


def get_branch_name(branch_id) -> Optional[str]:
    if not branch_id:
        return None
    try:
        return Branch.init_get_by_id(branch_id).name
    except exceptions.RecordNotFound:
        default = [branch for branch in DEFAULT_BRANCHES if branch['id'] == branch_id]
        return default[0]['name'] if default else None


def get_customer(user_id) -> Optional[Dict]:
    try:
        record = utils_db.get_db_item(keys_structure.profiles_pk, keys_structure.profiles_sk.format(user_id=user_id))
    except exceptions.RecordNotFound:
        return None
    return {'name': record.get('name'), 'email': record.get('email')}


def get_all_orders() -> List[Order]:
    orders = [Order(**record) for record in utils_db.query_partition(Order.pk)]
    return sorted(orders, key=lambda o: o.date_created, reverse=True)


def get_user_orders(user_id) -> List[Order]:
    records = utils_db.query_partition(Order.pk, filter_expression=Attr('user_id').eq(user_id))
    return sorted([Order(**record) for record in records], key=lambda o: o.date_created, reverse=True)


@utils_app.request_exception_handler
@utils_auth.authenticate
@utils_app.log_start_finish
def endpoint_get_orders(request) -> Response:
    orders: List[Dict] = [order.to_ui_short() for order in get_user_orders(request.auth_result['user_id'])]
    return Response(status_code=http200, body={'orders': orders})


@utils_app.request_exception_handler
@utils_auth.authenticate_admin
@utils_app.log_start_finish
def endpoint_admin_get_orders(request) -> Response:
    qp = request.query_params or {}
    status, order_type, search = qp.get('status'), qp.get('type'), (qp.get('search') or '').strip().lower()
    orders = get_all_orders()
    if status and status != FILTER_ALL:
        orders = [order for order in orders if order.status == status]
    if order_type and order_type != FILTER_ALL:
        orders = [order for order in orders if order.order_type == order_type]
    if search:
        orders = [order for order in orders
                  if search in order.id_.lower() or search in (order.notes or '').lower()]

    customers = {record['id_']: {'name': record.get('name'), 'email': record.get('email')}
                 for record in utils_db.query_partition(keys_structure.profiles_pk)}
    body = []
    for order in orders:
        item = order.to_ui()
        item['customer'] = customers.get(order.user_id)
        body.append(item)
    logger.info(f"endpoint_admin_get_orders ::: returning {len(body)} orders")
    return Response(status_code=http200, body={'orders': body})


def month_starts(now: datetime) -> Tuple[datetime, datetime]:
    this_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    last_month = (this_month - timedelta(days=1)).replace(day=1)
    return this_month, last_month


def stat_change(current: Decimal, previous: Decimal) -> Dict:
    if previous == 0:
        change = Decimal('100')
    else:
        change = (Decimal(current) - Decimal(previous)) / Decimal(previous) * 100
    return {
        'value': current,
        'change': f"{'+' if change >= 0 else ''}{change:.1f}%",
        'is_positive': change >= 0
    }


def get_stats(now: datetime = None) -> Dict:
    now = now or datetime.now(timezone.utc)
    this_month, last_month = month_starts(now)

    def period(date_created):
        created = utils_data.parse_iso(date_created)
        if created >= this_month:
            return 'current'
        if created >= last_month:
            return 'previous'
        return None

    orders = {'current': [], 'previous': []}
    for order in get_all_orders():
        key = period(order.date_created)
        if key:
            orders[key].append(order)

    def revenue(period_orders):
        return sum([order.total_amount for order in period_orders if order.status != ORDER_STATUS_CANCELLED],
                   Decimal('0'))

    customers = {'current': 0, 'previous': 0}
    for record in utils_db.query_partition(keys_structure.profiles_pk):
        if record.get('role', ROLE_CUSTOMER) != ROLE_CUSTOMER or not record.get('date_created'):
            continue
        key = period(record['date_created'])
        if key:
            customers[key] += 1

    return {
        'total_orders': stat_change(len(orders['current']), len(orders['previous'])),
        'revenue': stat_change(revenue(orders['current']), revenue(orders['previous'])),
        'new_customers': stat_change(customers['current'], customers['previous'])
    }


@utils_app.request_exception_handler
@utils_auth.authenticate_admin
@utils_app.log_start_finish
def endpoint_admin_get_stats(request) -> Response:
    return Response(status_code=http200, body={'stats': get_stats()})
