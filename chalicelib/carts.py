from decimal import Decimal
from typing import Tuple, List, Dict

from chalice import Response

from chalicelib.base_class_entity import EntityBase
from chalicelib.constants import keys_structure
from chalicelib.constants.status_codes import http200
from chalicelib.menu_items import MenuItem
from chalicelib.utils import auth as utils_auth, app as utils_app, data as utils_data, db as utils_db, exceptions
from chalicelib.utils.logger import logger

UNAVAILABLE_ITEMS_MESSAGE = 'Some items in your cart are no longer available and were deleted from the cart'


class Cart(EntityBase):
    pk = keys_structure.carts_pk
    sk = keys_structure.carts_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
    }

    required_mutable_fields_validation = {
        'menu_items': lambda x: isinstance(x, dict),
        'date_updated': lambda x: isinstance(x, str)
    }

    def __init__(self, id_, request_body=None):
        EntityBase.__init__(self, id_)

        if request_body is None:
            request_body = {}

        self.request_body = request_body
        self.menu_items: Dict = {}
        self.date_updated: str = utils_data.now_iso()
        self.record_type: str = 'cart'

    def _fill_db_item(self):
        try:
            self.db_record = self._get_db_item()
            self.menu_items = self.db_record.get('menu_items') or {}
        except exceptions.RecordNotFound:
            self.menu_items = {}

    @classmethod
    def init_by_user_id(cls, user_id):
        c = cls(id_=user_id)
        c._fill_db_item()
        return c

    @classmethod
    @utils_auth.authenticate_class
    def init_endpoint(cls, request):
        logger.info("init_endpoint ::: started")
        return cls(
            id_=request.auth_result['user_id'],
            request_body=utils_data.parse_raw_body(request)
        )

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_get_cart(self):
        self._fill_db_item()
        return Response(status_code=http200, body={'cart': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_add_item_to_cart(self):
        self._fill_db_item()
        menu_item_id = self.request_body.get('menu_item_id')
        qty = self.request_body.get('qty')
        if not isinstance(menu_item_id, str) or not menu_item_id:
            raise exceptions.MandatoryFieldsAreNotFilled('menu_item_id is required')
        if isinstance(qty, bool) or not isinstance(qty, int) or qty < 0:
            raise exceptions.ValidationException('qty must be a non negative integer')
        MenuItem.init_get_by_id(menu_item_id)

        if qty == 0:
            self.menu_items.pop(menu_item_id, None)
        else:
            line = {'id': menu_item_id, 'qty': qty}
            if isinstance(self.request_body.get('note'), str):
                line['note'] = self.request_body['note']
            self.menu_items[menu_item_id] = line
        return self._save_and_respond()

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_remove_item_from_cart(self, menu_item_id):
        self._fill_db_item()
        if self.menu_items.pop(menu_item_id, None) is None:
            raise exceptions.RecordNotFound(f'Menu item {menu_item_id} is not in the cart')
        return self._save_and_respond()

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_clear_cart(self):
        self.delete_db_record()
        return Response(status_code=http200, body={'message': 'Cart was successfully cleared'})

    def _save_and_respond(self) -> Response:
        all_items_available: bool = self._check_and_update_available_items()
        self._save()
        ui_message = None
        if not all_items_available:
            ui_message = UNAVAILABLE_ITEMS_MESSAGE
        return Response(status_code=http200, body={'cart': self._to_ui(), 'message': ui_message})

    def _save(self):
        self.date_updated = utils_data.now_iso()
        self._init_db_record()
        self._validate_mandatory_fields()
        utils_db.put_db_record(self.db_record)

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(user_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'menu_items': self.menu_items,
            'date_updated': self.date_updated
        }

    def _to_ui(self) -> Dict:
        item = EntityBase._to_ui(self)
        item['items'] = [
            {'menu_item_id': item_id, 'qty': line['qty'], 'note': line.get('note')}
            for item_id, line in self.menu_items.items()
        ]
        item.pop('menu_items', None)
        return item

    def _check_and_update_available_items(self) -> bool:
        items_qnt = len(self.menu_items)
        available = {}
        for item_id, info in self.menu_items.items():
            try:
                if MenuItem.init_get_by_id(item_id).is_available:
                    available[item_id] = info
            except exceptions.MenuItemNotFound:
                logger.warning(f"_check_and_update_available_items ::: menu item {item_id} was deleted")
        self.menu_items = available
        return True if items_qnt == len(self.menu_items) else False

    def get_order_lines(self) -> List[Dict]:
        """ Cart lines in the checkout item format """
        return [
            {'menu_item_id': item_id, 'quantity': int(Decimal(line['qty'])), 'note': line.get('note')}
            for item_id, line in self.menu_items.items()
        ]

    def delete_db_record(self):
        self._delete_db_record()
        logger.info(f"delete_db_record ::: cart of user {self.id_} was cleared")
