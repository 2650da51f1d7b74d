from chalice import Chalice

from chalicelib import auth, profiles, branches, categories, menu_items, carts, promos, orders, payments, \
    notifications, addresses
from chalicelib.utils import app as utils_app, data as utils_data
from chalicelib.utils.logger import set_request_id, log_request

app = Chalice(app_name='takuma-eat')


@app.middleware('http')
def request_logging(event, get_response):
    set_request_id(event)
    log_request(event)
    return get_response(event)


# AUTH
@app.route('/auth/register', methods=['POST'], cors=True)
@utils_app.request_exception_handler
def register():
    return auth.endpoint_register(app.current_request)


@app.route('/auth/login', methods=['POST'], cors=True)
@utils_app.request_exception_handler
def login():
    return auth.endpoint_login(app.current_request)


@app.route('/auth/forgot-password', methods=['POST'], cors=True)
@utils_app.request_exception_handler
def forgot_password():
    return auth.endpoint_forgot_password(app.current_request)


@app.route('/auth/reset-password', methods=['POST'], cors=True)
@utils_app.request_exception_handler
def reset_password():
    return auth.endpoint_reset_password(app.current_request)


# PROFILE
@app.route('/profile', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def get_profile():
    return profiles.Profile.init_request_profile(app.current_request).endpoint_get_profile()


@app.route('/profile', methods=['PUT'], cors=True)
@utils_app.request_exception_handler
def update_profile():
    request = app.current_request
    return profiles.Profile.init_request_profile(request).endpoint_update_profile(utils_data.parse_raw_body(request))


# BRANCHES
@app.route('/branches', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def get_branches():
    return branches.endpoint_get_branches(app.current_request)


# CATEGORIES
@app.route('/categories', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def get_categories():
    return categories.endpoint_get_categories(app.current_request)


# MENU ITEMS
@app.route('/menu-items', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def get_menu_items():
    return menu_items.endpoint_get_menu_items(app.current_request)


@app.route('/menu-items/popular', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def get_popular_menu_items():
    return menu_items.endpoint_get_popular_menu_items(app.current_request)


# CART
@app.route('/cart', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def get_cart():
    return carts.Cart.init_endpoint(app.current_request).endpoint_get_cart()


@app.route('/cart', methods=['POST'], cors=True)
@utils_app.request_exception_handler
def add_item_to_cart():
    return carts.Cart.init_endpoint(app.current_request).endpoint_add_item_to_cart()


@app.route('/cart/{menu_item_id}', methods=['DELETE'], cors=True)
@utils_app.request_exception_handler
def remove_item_from_cart(menu_item_id):
    return carts.Cart.init_endpoint(app.current_request).endpoint_remove_item_from_cart(menu_item_id)


@app.route('/cart', methods=['DELETE'], cors=True)
@utils_app.request_exception_handler
def clear_cart():
    return carts.Cart.init_endpoint(app.current_request).endpoint_clear_cart()


# PROMOS
@app.route('/promos', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def get_promos():
    return promos.endpoint_get_promos(app.current_request)


@app.route('/promos/check', methods=['POST'], cors=True)
@utils_app.request_exception_handler
def check_promo():
    return promos.endpoint_check_promo(app.current_request)


# ORDERS
@app.route('/orders', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def get_orders():
    """
    customer's own orders, newest first
    """
    return orders.endpoint_get_orders(app.current_request)


@app.route('/orders', methods=['POST'], cors=True)
@utils_app.request_exception_handler
def create_order():
    """
    checkout, items are taken from the cart when the body has none
    """
    return orders.Order.init_request_create(app.current_request).endpoint_create_order()


@app.route('/orders/{order_id}', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def get_order(order_id):
    return orders.Order.init_request_get(app.current_request, order_id).endpoint_get_order()


@app.route('/orders/{order_id}/status', methods=['PATCH'], cors=True)
@utils_app.request_exception_handler
def update_order_status(order_id):
    return orders.Order.init_request_update_status(app.current_request, order_id).endpoint_update_status()


# PAYMENT
@app.route('/payment/create-transaction', methods=['POST'], cors=True)
@utils_app.request_exception_handler
def create_transaction():
    return payments.endpoint_create_transaction(app.current_request)


@app.route('/payment/notification', methods=['POST'], cors=True)
@utils_app.request_exception_handler
def payment_notification():
    """
    Midtrans webhook, authorization is not needed, the payload signature is checked instead
    """
    return payments.endpoint_payment_notification(app.current_request)


# NOTIFICATIONS
@app.route('/notifications', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def get_notifications():
    return notifications.endpoint_get_notifications(app.current_request)


@app.route('/notifications', methods=['PATCH'], cors=True)
@utils_app.request_exception_handler
def update_notifications():
    return notifications.endpoint_update_notifications(app.current_request)


# ADDRESSES
@app.route('/user/addresses', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def get_addresses():
    return addresses.endpoint_get_addresses(app.current_request)


@app.route('/user/addresses', methods=['POST'], cors=True)
@utils_app.request_exception_handler
def create_address():
    return addresses.UserAddress.init_request_create(app.current_request).endpoint_create()


@app.route('/user/addresses/{address_id}', methods=['PUT', 'PATCH'], cors=True)
@utils_app.request_exception_handler
def update_address(address_id):
    return addresses.UserAddress.init_request_update(app.current_request, address_id).endpoint_update()


@app.route('/user/addresses/{address_id}', methods=['DELETE'], cors=True)
@utils_app.request_exception_handler
def delete_address(address_id):
    return addresses.UserAddress.init_request_delete(app.current_request, address_id).endpoint_delete()


# ADMIN: BRANCHES
@app.route('/admin/branches', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def admin_get_branches():
    return branches.endpoint_admin_get_branches(app.current_request)


@app.route('/admin/branches', methods=['POST'], cors=True)
@utils_app.request_exception_handler
def admin_create_branch():
    return branches.Branch.init_request_create(app.current_request).endpoint_create()


@app.route('/admin/branches/{branch_id}', methods=['PUT', 'PATCH'], cors=True)
@utils_app.request_exception_handler
def admin_update_branch(branch_id):
    return branches.Branch.init_request_update(app.current_request, branch_id).endpoint_update()


@app.route('/admin/branches/{branch_id}', methods=['DELETE'], cors=True)
@utils_app.request_exception_handler
def admin_delete_branch(branch_id):
    return branches.Branch.init_request_update(app.current_request, branch_id).endpoint_delete()


# ADMIN: CATEGORIES
@app.route('/admin/categories', methods=['POST'], cors=True)
@utils_app.request_exception_handler
def admin_create_category():
    return categories.Category.init_request_create(app.current_request).endpoint_create()


@app.route('/admin/categories/{category_id}', methods=['PUT', 'PATCH'], cors=True)
@utils_app.request_exception_handler
def admin_update_category(category_id):
    return categories.Category.init_request_update(app.current_request, category_id).endpoint_update()


@app.route('/admin/categories/{category_id}', methods=['DELETE'], cors=True)
@utils_app.request_exception_handler
def admin_delete_category(category_id):
    return categories.Category.init_request_update(app.current_request, category_id).endpoint_delete()


# ADMIN: MENU ITEMS
@app.route('/admin/menu-items', methods=['POST'], cors=True)
@utils_app.request_exception_handler
def admin_create_menu_item():
    return menu_items.MenuItem.init_request_create(app.current_request).endpoint_create_menu_item()


@app.route('/admin/menu-items/{menu_item_id}', methods=['PUT', 'PATCH'], cors=True)
@utils_app.request_exception_handler
def admin_update_menu_item(menu_item_id):
    return menu_items.MenuItem.init_request_update(app.current_request, menu_item_id).endpoint_update_menu_item()


@app.route('/admin/menu-items/{menu_item_id}', methods=['DELETE'], cors=True)
@utils_app.request_exception_handler
def admin_delete_menu_item(menu_item_id):
    return menu_items.MenuItem.init_request_update(app.current_request, menu_item_id).endpoint_delete_menu_item()


# ADMIN: PROMOS
@app.route('/admin/promos', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def admin_get_promos():
    return promos.endpoint_admin_get_promos(app.current_request)


@app.route('/admin/promos', methods=['POST'], cors=True)
@utils_app.request_exception_handler
def admin_create_promo():
    return promos.Promo.init_request_create(app.current_request).endpoint_create()


@app.route('/admin/promos/{code}', methods=['PUT', 'PATCH'], cors=True)
@utils_app.request_exception_handler
def admin_update_promo(code):
    return promos.Promo.init_request_update(app.current_request, code).endpoint_update()


@app.route('/admin/promos/{code}', methods=['DELETE'], cors=True)
@utils_app.request_exception_handler
def admin_delete_promo(code):
    return promos.Promo.init_request_update(app.current_request, code).endpoint_delete()


# ADMIN: ORDERS
@app.route('/admin/orders', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def admin_get_orders():
    """
    query params: status, type, search (order id or notes)
    """
    return orders.endpoint_admin_get_orders(app.current_request)


@app.route('/admin/orders/{order_id}', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def admin_get_order(order_id):
    return orders.Order.init_request_admin(app.current_request, order_id).endpoint_admin_get_order()


@app.route('/admin/orders/{order_id}', methods=['PATCH'], cors=True)
@utils_app.request_exception_handler
def admin_update_order(order_id):
    return orders.Order.init_request_admin(app.current_request, order_id).endpoint_admin_update_order()


@app.route('/admin/orders/{order_id}', methods=['DELETE'], cors=True)
@utils_app.request_exception_handler
def admin_delete_order(order_id):
    return orders.Order.init_request_admin(app.current_request, order_id).endpoint_admin_delete_order()


@app.route('/admin/stats', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def admin_get_stats():
    return orders.endpoint_admin_get_stats(app.current_request)


# ADMIN: USERS
@app.route('/admin/users', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def admin_get_users():
    return profiles.endpoint_admin_get_users(app.current_request)


@app.route('/admin/users/{user_id}', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def admin_get_user(user_id):
    return profiles.Profile.init_request_admin(app.current_request, user_id).endpoint_admin_get_user()


@app.route('/admin/users/{user_id}', methods=['PATCH', 'PUT'], cors=True)
@utils_app.request_exception_handler
def admin_update_user(user_id):
    return profiles.Profile.init_request_admin(app.current_request, user_id).endpoint_admin_update_user()


@app.route('/admin/users/{user_id}', methods=['DELETE'], cors=True)
@utils_app.request_exception_handler
def admin_delete_user(user_id):
    return profiles.Profile.init_request_admin(app.current_request, user_id).endpoint_admin_delete_user()
