from decimal import Decimal
from typing import Tuple, List, Dict
from uuid import uuid4

from chalice import Response

from chalicelib.base_class_entity import EntityBase
from chalicelib.constants import keys_structure
from chalicelib.constants.status_codes import http200, http201
from chalicelib.utils import auth as utils_auth, app as utils_app, data as utils_data, db as utils_db, exceptions
from chalicelib.utils.logger import logger


class Category(EntityBase):
    pk = keys_structure.categories_pk
    sk = keys_structure.categories_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'date_created': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'name': lambda x: isinstance(x, str) and len(x) > 0,
        'priority': lambda x: isinstance(x, Decimal),
        'date_updated': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'description': lambda x: isinstance(x, str),
        'color': lambda x: isinstance(x, str),
        'icon': lambda x: isinstance(x, str)
    }

    deletable_fields = ['description', 'color', 'icon']

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)

        self.request_data = kwargs.get('request_data')
        self.name: str = kwargs.get('name')
        self.description: str = kwargs.get('description')
        self.color: str = kwargs.get('color')
        self.icon: str = kwargs.get('icon')
        self.priority: Decimal = utils_data.to_decimal(kwargs.get('priority'), Decimal('0'))
        self.date_created: str = kwargs.get('date_created') or utils_data.now_iso()
        self.date_updated: str = kwargs.get('date_updated') or self.date_created
        self.record_type = 'category'

    @classmethod
    def init_get_by_id(cls, category_id):
        return cls(id_=category_id)._load(f'Category {category_id} not found')

    @classmethod
    @utils_auth.authenticate_admin_class
    def init_request_create(cls, request):
        logger.info("init_request_create ::: started")
        request_body = utils_data.pop_protected_keys(utils_data.parse_raw_body(request))
        if not isinstance(request_body.get('name'), str) or not request_body['name'].strip():
            raise exceptions.MandatoryFieldsAreNotFilled('Name is required')
        return cls(id_=str(uuid4()), request_data={'auth_result': request.auth_result}, **request_body)

    @classmethod
    @utils_auth.authenticate_admin_class
    def init_request_update(cls, request, category_id):
        logger.info("init_request_update ::: started")
        request_body = utils_data.pop_protected_keys(utils_data.parse_raw_body(request))
        c = cls.init_get_by_id(category_id)
        c.__init__(**{**c._to_dict(), **request_body})
        c.request_data = {'auth_result': request.auth_result}
        return c

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_create(self) -> Response:
        self._create_db_record()
        return Response(status_code=http201, body={'category': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_update(self) -> Response:
        self._update_db_record()
        return Response(status_code=http200, body={'category': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_delete(self) -> Response:
        self._delete_db_record()
        return Response(status_code=http200, body={'message': 'Category deleted'})

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(category_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'name': self.name,
            'description': self.description,
            'color': self.color,
            'icon': self.icon,
            'priority': self.priority,
            'date_created': self.date_created,
            'date_updated': self.date_updated
        }


def get_all_categories() -> List[Category]:
    return [Category(**record) for record in utils_db.query_partition(Category.pk)]


def get_categories_map() -> Dict[str, Category]:
    return {category.id_: category for category in get_all_categories()}


@utils_app.request_exception_handler
@utils_app.log_start_finish
def endpoint_get_categories(request) -> Response:
    categories = sorted(get_all_categories(), key=lambda c: (-c.priority, (c.name or '').lower()))
    return Response(status_code=http200, body={'categories': [category.to_ui() for category in categories]})
