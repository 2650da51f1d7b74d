from datetime import datetime, timezone
from decimal import Decimal
from typing import Tuple, List, Dict, Optional

from chalice import Response

from chalicelib.base_class_entity import EntityBase
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import DISCOUNT_TYPES, DISCOUNT_TYPE_FIXED
from chalicelib.constants.status_codes import http200, http201, http400
from chalicelib.utils import auth as utils_auth, app as utils_app, data as utils_data, db as utils_db, exceptions
from chalicelib.utils.logger import logger


def calculate_discount(discount_type: str, discount_value: Decimal, cart_total: Decimal,
                       max_discount: Optional[Decimal] = None) -> Decimal:
    """
    Fixed promos give their value, percentage promos a share of the cart total capped by max_discount.
    The discount never exceeds the cart total and is floored to a whole currency unit
    """
    discount_value = utils_data.to_decimal(discount_value, Decimal('0'))
    cart_total = utils_data.to_decimal(cart_total, Decimal('0'))
    if discount_type == DISCOUNT_TYPE_FIXED:
        discount = discount_value
    else:
        discount = cart_total * discount_value / 100
        max_discount = utils_data.to_decimal(max_discount)
        if max_discount and discount > max_discount:
            discount = max_discount
    if discount > cart_total:
        discount = cart_total
    return utils_data.floor_amount(discount)


class Promo(EntityBase):
    pk = keys_structure.promos_pk
    sk = keys_structure.promos_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str) and len(x) > 0,
        'date_created': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'name': lambda x: isinstance(x, str) and len(x) > 0,
        'discount_type': lambda x: x in DISCOUNT_TYPES,
        'discount_value': lambda x: isinstance(x, Decimal) and x >= 0,
        'min_purchase': lambda x: isinstance(x, Decimal) and x >= 0,
        'start_date': lambda x: isinstance(x, str),
        'end_date': lambda x: isinstance(x, str),
        'usage_limit': lambda x: isinstance(x, Decimal) and x >= 0,
        'is_active': lambda x: isinstance(x, bool),
        'date_updated': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'description': lambda x: isinstance(x, str),
        'max_discount': lambda x: isinstance(x, Decimal) and x >= 0
    }

    deletable_fields = ['description']

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, (id_ or '').strip().upper())

        self.request_data = kwargs.get('request_data')
        self.name: str = kwargs.get('name')
        self.description: str = kwargs.get('description')
        self.discount_type: str = kwargs.get('discount_type')
        self.discount_value: Decimal = utils_data.to_decimal(kwargs.get('discount_value'))
        self.min_purchase: Decimal = utils_data.to_decimal(kwargs.get('min_purchase'), Decimal('0'))
        self.max_discount: Decimal = utils_data.to_decimal(kwargs.get('max_discount'))
        self.start_date: str = kwargs.get('start_date')
        self.end_date: str = kwargs.get('end_date')
        self.usage_limit: Decimal = utils_data.to_decimal(kwargs.get('usage_limit'), Decimal('0'))
        self.usage_count: Decimal = utils_data.to_decimal(kwargs.get('usage_count'), Decimal('0'))
        self.is_active: bool = kwargs.get('is_active', True)
        self.date_created: str = kwargs.get('date_created') or utils_data.now_iso()
        self.date_updated: str = kwargs.get('date_updated') or self.date_created
        self.record_type = 'promo'

    @property
    def code(self) -> str:
        return self.id_

    @classmethod
    def init_get_by_code(cls, code):
        c = cls(id_=code)
        return c._load(f'Promo {c.code} not found')

    @classmethod
    @utils_auth.authenticate_admin_class
    def init_request_create(cls, request):
        logger.info("init_request_create ::: started")
        request_body = utils_data.pop_protected_keys(utils_data.parse_raw_body(request))
        request_body.pop('usage_count', None)
        code = request_body.pop('code', None)
        if not isinstance(code, str) or not code.strip():
            raise exceptions.MandatoryFieldsAreNotFilled('Promo code is required')
        c = cls(id_=code, request_data={'auth_result': request.auth_result}, **request_body)
        c._normalize_dates()
        return c

    @classmethod
    @utils_auth.authenticate_admin_class
    def init_request_update(cls, request, code):
        logger.info("init_request_update ::: started")
        request_body = utils_data.pop_protected_keys(utils_data.parse_raw_body(request))
        request_body.pop('usage_count', None)
        c = cls.init_get_by_code(code)
        c.request_data = {'auth_result': request.auth_result, 'previous_code': c.code}
        new_code = request_body.pop('code', None)
        if not isinstance(new_code, str) or not new_code.strip():
            new_code = c.code
        c.__init__(**{**c._to_dict(), **request_body, 'id_': new_code, 'request_data': c.request_data})
        c._normalize_dates()
        return c

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_create(self) -> Response:
        self._check_code_is_free()
        self._create_db_record()
        return Response(status_code=http201, body={'promo': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_update(self) -> Response:
        previous_code = self.request_data['previous_code']
        if previous_code != self.code:
            # the code is the sort key, so a renamed promo is moved to a new record
            self._check_code_is_free()
            self._create_db_record()
            Promo(id_=previous_code)._delete_db_record()
        else:
            self._validate_dates_order()
            self._update_db_record()
        return Response(status_code=http200, body={'promo': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_delete(self) -> Response:
        self._delete_db_record()
        return Response(status_code=http200, body={'message': 'Deleted successfully'})

    def _check_code_is_free(self):
        try:
            self._get_db_item()
        except exceptions.RecordNotFound:
            return
        raise exceptions.AlreadyExists(f'Promo code {self.code} already exists')

    def _normalize_dates(self):
        for field in ('start_date', 'end_date'):
            value = getattr(self, field)
            if value is None:
                continue
            setattr(self, field, utils_data.to_iso(value))

    def _validate_dates_order(self):
        if self.start_date and self.end_date and \
                utils_data.parse_iso(self.start_date) > utils_data.parse_iso(self.end_date):
            raise exceptions.ValidationException('start_date must be before end_date')

    def _create_db_record(self) -> None:
        self._validate_dates_order()
        EntityBase._create_db_record(self)

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(code=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'name': self.name,
            'description': self.description,
            'discount_type': self.discount_type,
            'discount_value': self.discount_value,
            'min_purchase': self.min_purchase,
            'max_discount': self.max_discount,
            'start_date': self.start_date,
            'end_date': self.end_date,
            'usage_limit': self.usage_limit,
            'usage_count': self.usage_count,
            'is_active': self.is_active,
            'date_created': self.date_created,
            'date_updated': self.date_updated
        }

    def _to_ui(self) -> Dict:
        item = EntityBase._to_ui(self)
        item['code'] = self.code
        return item

    def is_within_validity_window(self, now: datetime = None) -> bool:
        now = now or datetime.now(timezone.utc)
        if not self.start_date or not self.end_date:
            return False
        return utils_data.parse_iso(self.start_date) <= now <= utils_data.parse_iso(self.end_date)

    def is_usage_exhausted(self) -> bool:
        return self.usage_limit > 0 and self.usage_count >= self.usage_limit

    def check(self, cart_total: Decimal) -> Tuple[bool, str, Decimal]:
        """
        :return:
        (valid, message, discount_amount)
        """
        if not self.is_active:
            return False, 'Promo code is not active', Decimal('0')
        if not self.is_within_validity_window():
            return False, 'Promo code has expired or has not started yet', Decimal('0')
        if self.is_usage_exhausted():
            return False, 'Promo quota has been used up', Decimal('0')
        if cart_total < self.min_purchase:
            return False, f'Minimum purchase is Rp {self.min_purchase:,.0f}', Decimal('0')
        discount = calculate_discount(self.discount_type, self.discount_value, cart_total, self.max_discount)
        return True, 'Promo applied successfully', discount

    def increment_usage(self):
        pk, sk = self._get_pk_sk()
        self.usage_count = utils_db.increment_db_attribute({'partkey': pk, 'sortkey': sk}, 'usage_count')
        logger.info(f"increment_usage ::: promo {self.code} usage_count={self.usage_count}")


def check_promo_code(code: str, cart_total: Decimal) -> Tuple[bool, str, Decimal, Optional[Promo]]:
    try:
        promo = Promo.init_get_by_code(code)
    except exceptions.RecordNotFound:
        return False, 'Promo code not found', Decimal('0'), None
    valid, message, discount = promo.check(cart_total)
    logger.info(f"check_promo_code ::: {promo.code} {valid=} {message=} {discount=}")
    return valid, message, discount, promo


def get_all_promos() -> List[Promo]:
    return [Promo(**record) for record in utils_db.query_partition(Promo.pk)]


@utils_app.request_exception_handler
@utils_app.log_start_finish
def endpoint_check_promo(request) -> Response:
    request_body = utils_data.parse_raw_body(request)
    code, cart_total = request_body.get('code'), request_body.get('cart_total')
    if not isinstance(code, str) or not code.strip() or isinstance(cart_total, bool) \
            or not isinstance(cart_total, (int, Decimal)):
        return Response(status_code=http400, body={'valid': False, 'message': 'Invalid request'})

    valid, message, discount, promo = check_promo_code(code, Decimal(cart_total))
    if not valid:
        return Response(status_code=http200, body={'valid': False, 'message': message})
    return Response(status_code=http200, body={
        'valid': True,
        'promo_code': promo.code,
        'discount_amount': discount,
        'message': message
    })


@utils_app.request_exception_handler
@utils_app.log_start_finish
def endpoint_get_promos(request) -> Response:
    promos = [promo for promo in get_all_promos() if promo.is_active and promo.is_within_validity_window()]
    promos = sorted(promos, key=lambda p: p.end_date)
    return Response(status_code=http200, body={'promos': [promo.to_ui() for promo in promos]})


@utils_app.request_exception_handler
@utils_auth.authenticate_admin
@utils_app.log_start_finish
def endpoint_admin_get_promos(request) -> Response:
    promos = sorted(get_all_promos(), key=lambda p: p.date_created, reverse=True)
    return Response(status_code=http200, body={'promos': [promo.to_ui() for promo in promos]})
