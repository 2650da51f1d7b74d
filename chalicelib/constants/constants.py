from decimal import Decimal

APP_NAME = 'TakumaEat'
DEFAULT_CUSTOMER_NAME = 'TakumaEat Customer'

ROLE_CUSTOMER = 'customer'
ROLE_ADMIN = 'admin'
ROLES = [ROLE_CUSTOMER, ROLE_ADMIN]

ORDER_TYPE_DELIVERY = 'delivery'
ORDER_TYPE_TAKEAWAY = 'takeaway'
ORDER_TYPES = [ORDER_TYPE_DELIVERY, ORDER_TYPE_TAKEAWAY]

PAYMENT_METHOD_MIDTRANS = 'midtrans'
PAYMENT_METHOD_COD = 'cod'
PAYMENT_METHODS = [PAYMENT_METHOD_MIDTRANS, PAYMENT_METHOD_COD]

PAYMENT_STATUSES = [
    'unpaid',
    'waiting_for_payment',
    'pending_payment',
    'pending_review',
    'paid',
    'failed',
    'cancelled',
    'expired',
    'refunded',
    'partial_refund',
    'cod_pending'
]

ORDER_STATUSES = [
    'pending_payment',
    'processing',
    'preparing',
    'ready_for_pickup',
    'out_for_delivery',
    'completed',
    'cancelled',
    'refunded'
]

ORDER_STATUS_CANCELLED = 'cancelled'

SCHEDULE_TYPE_SCHEDULED = 'SCHEDULED'

MENU_ITEM_AVAILABLE = 'available'
MENU_ITEM_OUT_OF_STOCK = 'out_of_stock'

DISCOUNT_TYPE_FIXED = 'Fixed'
DISCOUNT_TYPE_PERCENTAGE = 'Percentage'
DISCOUNT_TYPES = [DISCOUNT_TYPE_FIXED, DISCOUNT_TYPE_PERCENTAGE]

NOTIFICATION_CATEGORY_ORDER = 'order'
NOTIFICATION_CATEGORY_PAYMENT = 'payment'
NOTIFICATION_UNREAD = 'unread'
NOTIFICATION_READ = 'read'

DELIVERY_FEE = Decimal('15000')
TAX_RATE = Decimal('0.1')

POPULAR_ITEMS_LIMIT = 8
USER_DETAIL_RECENT_ORDERS = 10

MIN_PASSWORD_LENGTH = 8
RESET_TOKEN_TTL_SECONDS = 3600
DEFAULT_SESSION_TTL_DAYS = 30

DEFAULT_BRANCHES = [
    {
        'id': 'jakarta',
        'name': 'TakumaEat Jakarta',
        'address': 'Jl. Sudirman No. 21, Jakarta',
        'operation_hours': '10.00 - 22.00 WIB'
    },
    {
        'id': 'surabaya',
        'name': 'TakumaEat Surabaya',
        'address': 'Jl. Darmo No. 12, Surabaya',
        'operation_hours': '11.00 - 23.00 WIB'
    }
]
