from collections import Counter
from decimal import Decimal
from typing import List, Dict, Tuple
from uuid import uuid4

from chalice import Response

from chalicelib.base_class_entity import EntityBase
from chalicelib.categories import get_categories_map
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import MENU_ITEM_AVAILABLE, MENU_ITEM_OUT_OF_STOCK, POPULAR_ITEMS_LIMIT
from chalicelib.constants.status_codes import http200, http201
from chalicelib.utils import auth as utils_auth, data as utils_data, exceptions, db as utils_db, app as utils_app
from chalicelib.utils.logger import logger

MENU_ITEM_STATUSES = [MENU_ITEM_AVAILABLE, MENU_ITEM_OUT_OF_STOCK]


def status_by_stock(stock) -> str:
    return MENU_ITEM_AVAILABLE if stock and stock > 0 else MENU_ITEM_OUT_OF_STOCK


class MenuItem(EntityBase):
    pk = keys_structure.menu_items_pk
    sk = keys_structure.menu_items_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        "date_created": lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'name': lambda x: isinstance(x, str) and len(x) > 0,
        'category_id': lambda x: isinstance(x, str) and len(x) > 0,
        'price': lambda x: isinstance(x, Decimal) and x >= 0 and x == x.to_integral_value(),
        'stock': lambda x: isinstance(x, Decimal) and x >= 0,
        'status': lambda x: x in MENU_ITEM_STATUSES,
        "date_updated": lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'description': lambda x: isinstance(x, str),
        'image_url': lambda x: isinstance(x, str),
        'highlights': lambda x: isinstance(x, list),
        'calories': lambda x: isinstance(x, Decimal),
        "updated_by": lambda x: isinstance(x, str)
    }

    deletable_fields = ['description', 'image_url', 'calories']

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)

        self.request_data = kwargs.get('request_data')

        self.name: str = kwargs.get('name')
        self.category_id: str = kwargs.get('category_id')
        self.description: str = kwargs.get('description')
        self.image_url: str = kwargs.get('image_url')
        self.price: Decimal = utils_data.to_decimal(kwargs.get('price'))
        self.stock: Decimal = utils_data.to_decimal(kwargs.get('stock'), Decimal('0'))
        self.status: str = kwargs.get('status') or status_by_stock(self.stock)
        self.highlights: list = kwargs.get('highlights') or []
        self.calories: Decimal = utils_data.to_decimal(kwargs.get('calories'))
        self.updated_by: str = kwargs.get('updated_by')
        self.date_created: str = kwargs.get('date_created') or utils_data.now_iso()
        self.date_updated: str = kwargs.get('date_updated') or self.date_created
        self.record_type = 'menu_item'

    @classmethod
    @utils_auth.authenticate_admin_class
    def init_request_create(cls, request):
        logger.info("init_request_create ::: started")
        request_body = utils_data.pop_protected_keys(utils_data.parse_raw_body(request))
        request_body.pop('category', None)
        if not request_body.get('name') or not request_body.get('category_id') or request_body.get('price') is None:
            raise exceptions.MandatoryFieldsAreNotFilled('Missing required fields: name, category_id, price')
        return cls(id_=str(uuid4()), request_data={'auth_result': request.auth_result}, **request_body)

    @classmethod
    @utils_auth.authenticate_admin_class
    def init_request_update(cls, request, menu_item_id):
        logger.info("init_request_update ::: started")
        request_body = utils_data.pop_protected_keys(utils_data.parse_raw_body(request))
        request_body.pop('category', None)
        c = cls.init_get_by_id(menu_item_id)
        if 'stock' in request_body and 'status' not in request_body:
            request_body['status'] = status_by_stock(utils_data.to_decimal(request_body['stock']))
        c.__init__(**{**c._to_dict(), **request_body})
        c.request_data = {'auth_result': request.auth_result}
        return c

    @classmethod
    def init_get_by_id(cls, menu_item_id):
        logger.info("init_get_by_id ::: started")
        return cls(id_=menu_item_id)._load(f'Menu item {menu_item_id} not found', exceptions.MenuItemNotFound)

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_create_menu_item(self) -> Response:
        self._create_db_record()
        return Response(status_code=http201, body={'menu_item': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_update_menu_item(self) -> Response:
        self._update_db_record()
        return Response(status_code=http200, body={'menu_item': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_delete_menu_item(self) -> Response:
        self._delete_db_record()
        return Response(status_code=http200, body={'message': 'Menu item deleted'})

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(menu_item_id=self.id_)

    @property
    def is_available(self) -> bool:
        return self.status == MENU_ITEM_AVAILABLE and self.stock > 0

    def deduct_stock(self, quantity):
        self.stock = max(Decimal('0'), self.stock - Decimal(quantity))
        update_dict = {'stock': self.stock, 'date_updated': utils_data.now_iso()}
        if self.stock == 0:
            self.status = MENU_ITEM_OUT_OF_STOCK
            update_dict['status'] = self.status
        self._update_db_record(update_dict=update_dict)
        logger.info(f"deduct_stock ::: {self.id_=} {quantity=} stock left {self.stock}")

    def _to_dict(self):
        return {
            'id_': self.id_,
            'name': self.name,
            'category_id': self.category_id,
            'description': self.description,
            'image_url': self.image_url,
            'price': self.price,
            'stock': self.stock,
            'status': self.status,
            'highlights': self.highlights,
            'calories': self.calories,
            "date_created": self.date_created,
            "date_updated": self.date_updated,
            'updated_by': self.updated_by
        }

    def to_ui_with_category(self, categories_map: Dict) -> Dict:
        item = self._to_ui()
        category = categories_map.get(self.category_id)
        item['category'] = {'name': category.name, 'icon': category.icon} if category else None
        return item


def get_all_menu_items() -> List[MenuItem]:
    return [MenuItem(**record) for record in utils_db.query_partition(MenuItem.pk)]


@utils_app.request_exception_handler
@utils_app.log_start_finish
def endpoint_get_menu_items(request) -> Response:
    category_id = (request.query_params or {}).get('category_id')
    menu_items = sorted(get_all_menu_items(), key=lambda m: (m.name or '').lower())
    if category_id:
        menu_items = [item for item in menu_items if item.category_id == category_id]
    categories_map = get_categories_map()
    body: List[Dict] = [item.to_ui_with_category(categories_map) for item in menu_items]
    logger.info(f"endpoint_get_menu_items ::: returning {len(body)} menu items")
    return Response(status_code=http200, body={'menu_items': body})


def get_popular_menu_items(limit=POPULAR_ITEMS_LIMIT) -> List[MenuItem]:
    """
    Most ordered item names mapped to menu items,
    available items when there is no order history yet
    """
    order_items = utils_db.query_partition(keys_structure.order_items_pk)
    menu_items = get_all_menu_items()
    counter = Counter([record.get('name') for record in order_items if record.get('name')])
    if counter:
        by_name = {}
        for item in menu_items:
            by_name.setdefault(item.name, item)
        popular = [by_name[name] for name, _ in counter.most_common() if name in by_name]
        return popular[:limit]
    available = sorted([item for item in menu_items if item.status == MENU_ITEM_AVAILABLE],
                       key=lambda m: (m.name or '').lower())
    return available[:limit]


@utils_app.request_exception_handler
@utils_app.log_start_finish
def endpoint_get_popular_menu_items(request) -> Response:
    categories_map = get_categories_map()
    items = [item.to_ui_with_category(categories_map) for item in get_popular_menu_items()]
    return Response(status_code=http200, body={'items': items})
