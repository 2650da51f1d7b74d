from typing import Tuple, List, Dict
from uuid import uuid4

from chalice import Response

from chalicelib.base_class_entity import EntityBase
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import DEFAULT_BRANCHES
from chalicelib.constants.status_codes import http200, http201
from chalicelib.utils import auth as utils_auth, app as utils_app, data as utils_data, db as utils_db
from chalicelib.utils.logger import logger


class Branch(EntityBase):
    pk = keys_structure.branches_pk
    sk = keys_structure.branches_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'date_created': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'name': lambda x: isinstance(x, str) and len(x) > 0,
        'is_active': lambda x: isinstance(x, bool),
        'date_updated': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'address': lambda x: isinstance(x, str),
        'phone': lambda x: isinstance(x, str),
        'operation_hours': lambda x: isinstance(x, str),
        'map_url': lambda x: isinstance(x, str)
    }

    deletable_fields = ['address', 'phone', 'operation_hours', 'map_url']

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)

        self.request_data = kwargs.get('request_data')
        self.name: str = kwargs.get('name')
        self.address: str = kwargs.get('address')
        self.phone: str = kwargs.get('phone')
        self.operation_hours: str = kwargs.get('operation_hours')
        self.map_url: str = kwargs.get('map_url')
        self.is_active: bool = kwargs.get('is_active', True)
        self.date_created: str = kwargs.get('date_created') or utils_data.now_iso()
        self.date_updated: str = kwargs.get('date_updated') or self.date_created
        self.record_type = 'branch'

    @classmethod
    def init_get_by_id(cls, branch_id):
        return cls(id_=branch_id)._load(f'Branch {branch_id} not found')

    @classmethod
    @utils_auth.authenticate_admin_class
    def init_request_create(cls, request):
        logger.info("init_request_create ::: started")
        request_body = utils_data.pop_protected_keys(utils_data.parse_raw_body(request))
        return cls(id_=str(uuid4()), request_data={'auth_result': request.auth_result}, **request_body)

    @classmethod
    @utils_auth.authenticate_admin_class
    def init_request_update(cls, request, branch_id):
        logger.info("init_request_update ::: started")
        request_body = utils_data.pop_protected_keys(utils_data.parse_raw_body(request))
        c = cls.init_get_by_id(branch_id)
        c.__init__(**{**c._to_dict(), **request_body})
        c.request_data = {'auth_result': request.auth_result}
        return c

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_create(self) -> Response:
        self._create_db_record()
        return Response(status_code=http201, body={'branch': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_update(self) -> Response:
        self._update_db_record()
        return Response(status_code=http200, body={'branch': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_delete(self) -> Response:
        self._delete_db_record()
        return Response(status_code=http200, body={'message': 'Deleted successfully'})

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(branch_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'name': self.name,
            'address': self.address,
            'phone': self.phone,
            'operation_hours': self.operation_hours,
            'map_url': self.map_url,
            'is_active': self.is_active,
            'date_created': self.date_created,
            'date_updated': self.date_updated
        }


def get_all_branches() -> List[Branch]:
    return [Branch(**record) for record in utils_db.query_partition(Branch.pk)]


@utils_app.log_start_finish
def endpoint_get_branches(request) -> Response:
    """
    Public list, falls back to the built-in branches when the store has none or can't be read
    """
    try:
        branches = sorted(get_all_branches(), key=lambda b: (b.name or '').lower())
    except Exception as error:
        logger.warning(f'endpoint_get_branches ::: falling back to defaults, {error=}')
        branches = []
    if not branches:
        return Response(status_code=http200, body={'branches': DEFAULT_BRANCHES, 'fallback': True})
    body = [
        {key: branch.to_ui()[key] for key in ('id', 'name', 'address', 'operation_hours')}
        for branch in branches
    ]
    return Response(status_code=http200, body={'branches': body, 'fallback': False})


@utils_app.request_exception_handler
@utils_auth.authenticate_admin
@utils_app.log_start_finish
def endpoint_admin_get_branches(request) -> Response:
    branches: List[Dict] = [
        branch.to_ui() for branch in sorted(get_all_branches(), key=lambda b: b.date_created, reverse=True)
    ]
    return Response(status_code=http200, body={'branches': branches})
