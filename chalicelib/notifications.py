from typing import Tuple, List, Dict
from uuid import uuid4

from boto3.dynamodb.conditions import Attr
from chalice import Response

from chalicelib.base_class_entity import EntityBase
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import NOTIFICATION_UNREAD, NOTIFICATION_READ, ROLE_ADMIN, \
    NOTIFICATION_CATEGORY_ORDER, NOTIFICATION_CATEGORY_PAYMENT
from chalicelib.constants.status_codes import http200
from chalicelib.utils import auth as utils_auth, app as utils_app, data as utils_data, db as utils_db, exceptions
from chalicelib.utils.logger import logger

NOTIFICATION_CATEGORIES = [NOTIFICATION_CATEGORY_ORDER, NOTIFICATION_CATEGORY_PAYMENT]
NOTIFICATION_STATUSES = [NOTIFICATION_UNREAD, NOTIFICATION_READ]


class Notification(EntityBase):
    pk = keys_structure.notifications_pk
    sk = keys_structure.notifications_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'user_id': lambda x: isinstance(x, str),
        'title': lambda x: isinstance(x, str),
        'category': lambda x: x in NOTIFICATION_CATEGORIES,
        'date_created': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'status': lambda x: x in NOTIFICATION_STATUSES
    }

    optional_fields_validation = {
        'description': lambda x: isinstance(x, str),
        'action_url': lambda x: isinstance(x, str)
    }

    def __init__(self, id_, user_id, **kwargs):
        EntityBase.__init__(self, id_)

        self.user_id: str = user_id
        self.title: str = kwargs.get('title')
        self.description: str = kwargs.get('description')
        self.category: str = kwargs.get('category', NOTIFICATION_CATEGORY_ORDER)
        self.status: str = kwargs.get('status', NOTIFICATION_UNREAD)
        self.action_url: str = kwargs.get('action_url')
        self.date_created: str = kwargs.get('date_created') or utils_data.now_iso()
        self.record_type = 'notification'

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk.format(user_id=self.user_id), self.sk.format(notification_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'user_id': self.user_id,
            'title': self.title,
            'description': self.description,
            'category': self.category,
            'status': self.status,
            'action_url': self.action_url,
            'date_created': self.date_created
        }

    def mark(self, status):
        self.status = status
        self._update_db_record(update_dict={'status': status})


def create_notification(user_id, title, description, category=NOTIFICATION_CATEGORY_ORDER, action_url=None):
    """
    Notifications are a side effect of other operations,
    a failure is logged and never breaks the caller
    """
    try:
        notification = Notification(
            id_=str(uuid4()),
            user_id=user_id,
            title=title,
            description=description,
            category=category,
            action_url=action_url
        )
        notification._create_db_record()
        return notification
    except Exception as error:
        logger.exception(f'create_notification ::: failed to notify {user_id=}, {error=}')
        return None


def get_admin_user_ids() -> List[str]:
    records = utils_db.query_partition(keys_structure.profiles_pk, filter_expression=Attr('role').eq(ROLE_ADMIN))
    return [record['id_'] for record in records]


def notify_admins(title, description, category=NOTIFICATION_CATEGORY_ORDER, action_url=None):
    try:
        admin_ids = get_admin_user_ids()
    except Exception as error:
        logger.exception(f'notify_admins ::: failed to load admins, {error=}')
        return
    for admin_id in admin_ids:
        create_notification(admin_id, title, description, category, action_url)


def get_user_notifications(user_id) -> List[Notification]:
    records = utils_db.query_partition(Notification.pk.format(user_id=user_id))
    notifications = [Notification(**record) for record in records]
    return sorted(notifications, key=lambda n: n.date_created, reverse=True)


@utils_app.request_exception_handler
@utils_auth.authenticate
@utils_app.log_start_finish
def endpoint_get_notifications(request) -> Response:
    user_id = request.auth_result['user_id']
    notifications: List[Dict] = [n.to_ui() for n in get_user_notifications(user_id)]
    return Response(status_code=http200, body={'notifications': notifications})


@utils_app.request_exception_handler
@utils_auth.authenticate
@utils_app.log_start_finish
def endpoint_update_notifications(request) -> Response:
    """
    Marks one notification (id in body) or all user's notifications with the status, read by default
    """
    user_id = request.auth_result['user_id']
    request_body = utils_data.parse_raw_body(request)
    status = request_body.get('status') or NOTIFICATION_READ
    if status not in NOTIFICATION_STATUSES:
        raise exceptions.ValidationException(f'Wrong notification status {status}')

    notification_id = request_body.get('id')
    if notification_id:
        notification = Notification(id_=notification_id, user_id=user_id)
        notification.__init__(**notification._get_db_item())
        notification.mark(status)
        updated = 1
    else:
        notifications = [n for n in get_user_notifications(user_id) if n.status != status]
        for notification in notifications:
            notification.mark(status)
        updated = len(notifications)
    logger.info(f'endpoint_update_notifications ::: {updated} notifications of {user_id=} marked as {status}')
    return Response(status_code=http200, body={'message': 'Notifications updated', 'updated': updated})
