from decimal import Decimal
from typing import Tuple, List, Dict, Any, Optional

from boto3.dynamodb.conditions import Attr
from chalice import Response

from chalicelib.base_class_entity import EntityBase
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import ROLE_CUSTOMER, ROLES, ORDER_STATUS_CANCELLED, USER_DETAIL_RECENT_ORDERS
from chalicelib.constants.status_codes import http200
from chalicelib.orders import get_all_orders, get_user_orders
from chalicelib.utils import auth as utils_auth, app as utils_app, data as utils_data, db as utils_db, exceptions
from chalicelib.utils.logger import logger

PRIVATE_FIELDS = ('password_hash', 'reset_token_hash', 'reset_token_expires')


class Profile(EntityBase):
    pk = keys_structure.profiles_pk
    sk = keys_structure.profiles_sk
    skip_empty_fields = True

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'email': lambda x: isinstance(x, str) and '@' in x,
        'date_created': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'name': lambda x: isinstance(x, str) and len(x) > 0,
        'role': lambda x: x in ROLES,
        'is_active': lambda x: isinstance(x, bool),
        'password_hash': lambda x: isinstance(x, str),
        'date_updated': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'phone': lambda x: isinstance(x, str),
        'reset_token_hash': lambda x: isinstance(x, str),
        'reset_token_expires': lambda x: isinstance(x, str)
    }

    deletable_fields = ['phone', 'reset_token_hash', 'reset_token_expires']

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)

        self.request_data = kwargs.get('request_data')
        self.name: str = kwargs.get('name')
        self.email: str = kwargs.get('email')
        self.phone: str = kwargs.get('phone')
        self.role: str = kwargs.get('role', ROLE_CUSTOMER)
        self.is_active: bool = kwargs.get('is_active', True)
        self.password_hash: str = kwargs.get('password_hash')
        self.reset_token_hash: str = kwargs.get('reset_token_hash')
        self.reset_token_expires: str = kwargs.get('reset_token_expires')
        self.date_created: str = kwargs.get('date_created') or utils_data.now_iso()
        self.date_updated: str = kwargs.get('date_updated') or self.date_created
        self.record_type = 'profile'

    @classmethod
    def init_by_id(cls, id_):
        return cls(id_)._load()

    @classmethod
    @utils_auth.authenticate_class
    def init_request_profile(cls, request):
        logger.info("init_request_profile ::: started")
        c = cls.init_by_id(request.auth_result['user_id'])
        c.request_data = {'auth_result': request.auth_result}
        return c

    @classmethod
    @utils_auth.authenticate_admin_class
    def init_request_admin(cls, request, user_id):
        logger.info("init_request_admin ::: started")
        try:
            c = cls.init_by_id(user_id)
        except exceptions.RecordNotFound:
            raise exceptions.RecordNotFound('User not found')
        c.request_data = {'auth_result': request.auth_result, 'body': utils_data.parse_raw_body(request)}
        return c

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_get_profile(self) -> Response:
        return Response(status_code=http200, body={'profile': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_update_profile(self, request_body: Dict) -> Response:
        update_dict = {}
        if isinstance(request_body.get('name'), str) and request_body['name'].strip():
            self.name = request_body['name'].strip()
            update_dict['name'] = self.name
        if isinstance(request_body.get('phone'), str):
            self.phone = request_body['phone'].strip()
            update_dict['phone'] = self.phone
        if not update_dict:
            raise exceptions.ValidationException('Nothing to update, name or phone expected')
        update_dict['date_updated'] = utils_data.now_iso()
        self._update_db_record(update_dict=update_dict)
        return Response(status_code=http200, body={'message': 'Profile was successfully updated',
                                                   'profile': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_admin_get_user(self) -> Response:
        orders = get_user_orders(self.id_)
        return Response(status_code=http200, body={
            'profile': self._to_ui(),
            'stats': get_user_stats(orders),
            'orders': [order.to_ui_short() for order in orders[:USER_DETAIL_RECENT_ORDERS]]
        })

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_admin_update_user(self) -> Response:
        request_body = self.request_data['body']
        update_dict = {}
        role = request_body.get('role')
        if role:
            if not isinstance(role, str) or role.lower() not in ROLES:
                raise exceptions.ValidationException(f'Wrong role {role}, allowed roles: {ROLES}')
            update_dict['role'] = role.lower()
        if isinstance(request_body.get('is_active'), bool):
            update_dict['is_active'] = request_body['is_active']
        if not update_dict:
            raise exceptions.ValidationException('No updates provided')
        update_dict['date_updated'] = utils_data.now_iso()
        self._update_db_record(update_dict=update_dict)
        return Response(status_code=http200, body={'message': 'User updated successfully', 'id': self.id_})

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_admin_delete_user(self) -> Response:
        if self.id_ == self.request_data['auth_result']['user_id']:
            raise exceptions.ValidationException('Cannot delete your own account')
        self._delete_db_record()
        return Response(status_code=http200, body={'message': 'User deleted successfully'})

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(user_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'role': self.role,
            'is_active': self.is_active,
            'password_hash': self.password_hash,
            'reset_token_hash': self.reset_token_hash,
            'reset_token_expires': self.reset_token_expires,
            'date_created': self.date_created,
            'date_updated': self.date_updated
        }

    def _to_ui(self) -> Dict:
        item = EntityBase._to_ui(self)
        for field in PRIVATE_FIELDS:
            item.pop(field, None)
        return item


def normalize_email(email: Any) -> str:
    return email.strip().lower() if isinstance(email, str) else ''


def get_profile_by_email(email: str) -> Optional[Profile]:
    records = utils_db.query_partition(Profile.pk, filter_expression=Attr('email').eq(normalize_email(email)))
    if not records:
        return None
    return Profile(**records[0])


def get_all_profiles() -> List[Profile]:
    return [Profile(**record) for record in utils_db.query_partition(Profile.pk)]


def get_user_stats(orders: List) -> Dict:
    """ orders are expected newest first """
    relevant_orders = [order for order in orders if order.status != ORDER_STATUS_CANCELLED]
    total_spent = sum([order.total_amount or Decimal('0') for order in relevant_orders], Decimal('0'))
    success_count = len(relevant_orders)
    return {
        'total_spent': total_spent,
        'order_count': len(orders),
        'success_count': success_count,
        'last_order_date': orders[0].date_created if orders else None,
        'avg_order_value': total_spent / success_count if success_count > 0 else Decimal('0')
    }


@utils_app.request_exception_handler
@utils_auth.authenticate_admin
@utils_app.log_start_finish
def endpoint_admin_get_users(request) -> Response:
    stats_map: Dict[str, Dict] = {}
    for order in get_all_orders():
        if order.status == ORDER_STATUS_CANCELLED:
            continue
        current = stats_map.setdefault(order.user_id, {'total_orders': 0, 'total_spent': Decimal('0')})
        current['total_orders'] += 1
        current['total_spent'] += order.total_amount or Decimal('0')

    profiles = sorted(get_all_profiles(), key=lambda p: p.date_created, reverse=True)
    users = []
    for profile in profiles:
        user = profile.to_ui()
        user.update(stats_map.get(profile.id_, {'total_orders': 0, 'total_spent': Decimal('0')}))
        users.append(user)
    logger.info(f"endpoint_admin_get_users ::: returning {len(users)} users")
    return Response(status_code=http200, body={'users': users})
