from decimal import Decimal
from uuid import uuid4

from chalicelib.constants.status_codes import http200, http201, http400, http403, http404
from chalicelib.menu_items import MenuItem, status_by_stock
from chalicelib.orders import OrderItem
from test.utils.fixtures import create_test_user, create_test_admin, create_test_category, create_test_menu_item
from test.utils.request_utils import make_request


def store_order_item(name, quantity=1):
    OrderItem(id_=str(uuid4()), order_id=str(uuid4()), name=name, price=Decimal('10000'),
              quantity=quantity)._create_db_record()


def test_status_by_stock():
    assert status_by_stock(Decimal('3')) == 'available'
    assert status_by_stock(Decimal('0')) == 'out_of_stock'
    assert status_by_stock(None) == 'out_of_stock'


def test_admin_create_menu_item(client):
    category_id = create_test_category()
    _, admin_token = create_test_admin()
    response = make_request(client, '/admin/menu-items', 'POST', token=admin_token, json_body={
        'name': 'Tonkotsu Ramen', 'category_id': category_id, 'price': 55000, 'stock': 5,
        'highlights': ['rich broth', 'chashu'], 'calories': 650
    })
    assert response.status_code == http201
    menu_item = response.json_body['menu_item']
    assert menu_item['status'] == 'available'
    assert menu_item['highlights'] == ['rich broth', 'chashu']

    response = make_request(client, '/admin/menu-items', 'POST', token=admin_token,
                            json_body={'name': 'Mochi', 'category_id': category_id, 'price': 15000})
    assert response.status_code == http201
    assert response.json_body['menu_item']['status'] == 'out_of_stock'
    assert response.json_body['menu_item']['stock'] == 0


def test_admin_create_menu_item_missing_price(client):
    _, admin_token = create_test_admin()
    response = make_request(client, '/admin/menu-items', 'POST', token=admin_token,
                            json_body={'name': 'Mochi', 'category_id': create_test_category()})
    assert response.status_code == http400


def test_menu_item_price_must_be_whole(client):
    category_id = create_test_category()
    _, admin_token = create_test_admin()
    response = make_request(client, '/admin/menu-items', 'POST', token=admin_token,
                            json_body={'name': 'Mochi', 'category_id': category_id, 'price': 9.99})
    assert response.status_code == http400
    assert response.json_body['error'] == 'Validation error occurred while validating field=price'

    menu_item_id = create_test_menu_item(category_id, price=15000)
    response = make_request(client, f'/admin/menu-items/{menu_item_id}', 'PATCH', token=admin_token,
                            json_body={'price': 14999.5, 'stock': 3})
    assert response.status_code == http400
    menu_item = MenuItem.init_get_by_id(menu_item_id)
    assert (menu_item.price, menu_item.stock) == (Decimal('15000'), Decimal('10'))


def test_admin_update_menu_item_stock(client):
    menu_item_id = create_test_menu_item(create_test_category(), stock=4)
    _, admin_token = create_test_admin()

    response = make_request(client, f'/admin/menu-items/{menu_item_id}', 'PUT', token=admin_token,
                            json_body={'stock': 0})
    assert response.status_code == http200
    menu_item = MenuItem.init_get_by_id(menu_item_id)
    assert (menu_item.stock, menu_item.status) == (Decimal('0'), 'out_of_stock')
    assert menu_item.is_available is False

    response = make_request(client, f'/admin/menu-items/{menu_item_id}', 'PATCH', token=admin_token,
                            json_body={'stock': 6, 'price': 52000, 'image_url': ''})
    assert response.status_code == http200
    menu_item = MenuItem.init_get_by_id(menu_item_id)
    assert (menu_item.stock, menu_item.status, menu_item.price) == (Decimal('6'), 'available', Decimal('52000'))
    assert menu_item.image_url is None

    response = make_request(client, f'/admin/menu-items/{uuid4()}', 'PUT', token=admin_token,
                            json_body={'stock': 1})
    assert response.status_code == http404


def test_deduct_stock():
    menu_item = MenuItem.init_get_by_id(create_test_menu_item(create_test_category(), stock=3))
    menu_item.deduct_stock(2)
    assert MenuItem.init_get_by_id(menu_item.id_).status == 'available'
    menu_item.deduct_stock(5)
    stored = MenuItem.init_get_by_id(menu_item.id_)
    assert (stored.stock, stored.status) == (Decimal('0'), 'out_of_stock')


def test_get_menu_items_with_category(client):
    ramen_id = create_test_category('Ramen', icon='bowl')
    drinks_id = create_test_category('Drinks', icon='cup')
    create_test_menu_item(ramen_id, name='Shoyu Ramen')
    create_test_menu_item(drinks_id, name='Matcha Latte')
    create_test_menu_item('deleted-category', name='Mystery')

    response = make_request(client, '/menu-items')
    assert response.status_code == http200
    menu_items = response.json_body['menu_items']
    assert [item['name'] for item in menu_items] == ['Matcha Latte', 'Mystery', 'Shoyu Ramen']
    assert menu_items[0]['category'] == {'name': 'Drinks', 'icon': 'cup'}
    assert menu_items[1]['category'] is None

    response = make_request(client, '/menu-items', query=f'category_id={ramen_id}')
    assert [item['name'] for item in response.json_body['menu_items']] == ['Shoyu Ramen']


def test_popular_menu_items_without_orders(client):
    category_id = create_test_category()
    create_test_menu_item(category_id, name='Udon')
    create_test_menu_item(category_id, name='Gyoza')
    create_test_menu_item(category_id, name='Sold Out', stock=0)

    response = make_request(client, '/menu-items/popular')
    assert response.status_code == http200
    assert [item['name'] for item in response.json_body['items']] == ['Gyoza', 'Udon']


def test_popular_menu_items_by_orders(client):
    category_id = create_test_category('Sides', icon='plate')
    create_test_menu_item(category_id, name='Udon')
    create_test_menu_item(category_id, name='Gyoza')
    create_test_menu_item(category_id, name='Edamame')
    for _ in range(3):
        store_order_item('Gyoza')
    store_order_item('Udon')
    store_order_item('Removed Dish')

    response = make_request(client, '/menu-items/popular')
    items = response.json_body['items']
    assert [item['name'] for item in items] == ['Gyoza', 'Udon']
    assert items[0]['category'] == {'name': 'Sides', 'icon': 'plate'}


def test_admin_delete_menu_item(client):
    menu_item_id = create_test_menu_item(create_test_category())
    _, admin_token = create_test_admin()
    response = make_request(client, f'/admin/menu-items/{menu_item_id}', 'DELETE', token=admin_token)
    assert response.status_code == http200
    response = make_request(client, f'/admin/menu-items/{menu_item_id}', 'DELETE', token=admin_token)
    assert response.status_code == http404


def test_admin_menu_items_are_role_gated(client):
    _, user_token = create_test_user()
    response = make_request(client, '/admin/menu-items', 'POST', token=user_token,
                            json_body={'name': 'Mochi', 'category_id': 'x', 'price': 1})
    assert response.status_code == http403
