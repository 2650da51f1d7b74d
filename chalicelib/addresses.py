from decimal import Decimal
from typing import Tuple, List, Dict
from uuid import uuid4

from chalice import Response

from chalicelib.base_class_entity import EntityBase
from chalicelib.constants import keys_structure
from chalicelib.constants.status_codes import http200, http201
from chalicelib.utils import auth as utils_auth, app as utils_app, data as utils_data, db as utils_db, exceptions
from chalicelib.utils.logger import logger


class UserAddress(EntityBase):
    pk = keys_structure.user_addresses_pk
    sk = keys_structure.user_addresses_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'user_id': lambda x: isinstance(x, str),
        'date_created': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'recipient_name': lambda x: isinstance(x, str) and len(x) > 0,
        'phone_number': lambda x: isinstance(x, str) and len(x) > 0,
        'address_line': lambda x: isinstance(x, str) and len(x) > 0,
        'is_default': lambda x: isinstance(x, bool),
        'date_updated': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'detail': lambda x: isinstance(x, str),
        'latitude': lambda x: isinstance(x, Decimal),
        'longitude': lambda x: isinstance(x, Decimal),
        'updated_by': lambda x: isinstance(x, str)
    }

    deletable_fields = ['detail', 'latitude', 'longitude']

    def __init__(self, id_, user_id, **kwargs):
        EntityBase.__init__(self, id_)

        self.request_data = kwargs.get('request_data')
        self.user_id: str = user_id
        self.recipient_name: str = kwargs.get('recipient_name')
        self.phone_number: str = kwargs.get('phone_number')
        self.address_line: str = kwargs.get('address_line')
        self.detail: str = kwargs.get('detail')
        self.latitude: Decimal = utils_data.to_decimal(kwargs.get('latitude'))
        self.longitude: Decimal = utils_data.to_decimal(kwargs.get('longitude'))
        self.is_default: bool = kwargs.get('is_default', False)
        self.updated_by: str = kwargs.get('updated_by')
        self.date_created: str = kwargs.get('date_created') or utils_data.now_iso()
        self.date_updated: str = kwargs.get('date_updated') or self.date_created
        self.record_type = 'user_address'

    @classmethod
    def init_get_by_id(cls, user_id, address_id):
        c = cls(id_=address_id, user_id=user_id)
        return c._load(f'Address {address_id} not found', exceptions.AddressNotFound)

    @classmethod
    @utils_auth.authenticate_class
    def init_request_create(cls, request):
        logger.info("init_request_create ::: started")
        request_body = utils_data.pop_protected_keys(utils_data.parse_raw_body(request))
        request_body.pop('user_id', None)
        missing = [field for field in ('recipient_name', 'phone_number', 'address_line')
                   if not isinstance(request_body.get(field), str) or not request_body[field].strip()]
        if missing:
            raise exceptions.MandatoryFieldsAreNotFilled(f'Missing required fields: {", ".join(missing)}')
        return cls(
            id_=str(uuid4()),
            user_id=request.auth_result['user_id'],
            request_data={'auth_result': request.auth_result},
            **request_body
        )

    @classmethod
    @utils_auth.authenticate_class
    def init_request_update(cls, request, address_id):
        logger.info("init_request_update ::: started")
        request_body = utils_data.pop_protected_keys(utils_data.parse_raw_body(request))
        request_body.pop('user_id', None)
        c = cls.init_get_by_id(request.auth_result['user_id'], address_id)
        c.__init__(**{**c._to_dict(), **request_body})
        c.request_data = {'auth_result': request.auth_result}
        return c

    @classmethod
    @utils_auth.authenticate_class
    def init_request_delete(cls, request, address_id):
        logger.info("init_request_delete ::: started")
        c = cls.init_get_by_id(request.auth_result['user_id'], address_id)
        c.request_data = {'auth_result': request.auth_result}
        return c

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_create(self) -> Response:
        self._create_db_record()
        if self.is_default:
            self._clear_other_defaults()
        return Response(status_code=http201, body={'address': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_update(self) -> Response:
        self._update_db_record()
        if self.is_default:
            self._clear_other_defaults()
        return Response(status_code=http200, body={'address': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_delete(self) -> Response:
        self._delete_db_record()
        return Response(status_code=http200, body={'message': 'Address deleted'})

    def _clear_other_defaults(self):
        for address in get_user_addresses(self.user_id):
            if address.id_ != self.id_ and address.is_default:
                address._update_db_record(update_dict={'is_default': False, 'date_updated': utils_data.now_iso()})
                logger.info(f"_clear_other_defaults ::: address {address.id_} is not default anymore")

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk.format(user_id=self.user_id), self.sk.format(address_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'user_id': self.user_id,
            'recipient_name': self.recipient_name,
            'phone_number': self.phone_number,
            'address_line': self.address_line,
            'detail': self.detail,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'is_default': self.is_default,
            'updated_by': self.updated_by,
            'date_created': self.date_created,
            'date_updated': self.date_updated
        }


def get_user_addresses(user_id) -> List[UserAddress]:
    records = utils_db.query_partition(UserAddress.pk.format(user_id=user_id))
    return [UserAddress(**record) for record in records]


def get_user_address(user_id, address_id) -> UserAddress:
    return UserAddress.init_get_by_id(user_id, address_id)


@utils_app.request_exception_handler
@utils_auth.authenticate
@utils_app.log_start_finish
def endpoint_get_addresses(request) -> Response:
    addresses = sorted(get_user_addresses(request.auth_result['user_id']),
                       key=lambda a: a.date_created, reverse=True)
    addresses = sorted(addresses, key=lambda a: not a.is_default)
    body: List[Dict] = [address.to_ui() for address in addresses]
    return Response(status_code=http200, body={'addresses': body})
