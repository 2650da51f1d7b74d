from decimal import Decimal
from uuid import uuid4

from werkzeug.security import generate_password_hash

from chalicelib.categories import Category
from chalicelib.constants.constants import ROLE_CUSTOMER, ROLE_ADMIN
from chalicelib.menu_items import MenuItem
from chalicelib.profiles import Profile
from chalicelib.utils.auth import create_session_token

TEST_PASSWORD = 'secret-password'


def create_test_user(role=ROLE_CUSTOMER, email=None, name='Test User', is_active=True, date_created=None):
    """
    Stores a profile and returns (user_id, session token)
    """
    profile = Profile(
        id_=str(uuid4()),
        name=name,
        email=email or f'{uuid4().hex[:8]}@example.com',
        role=role,
        is_active=is_active,
        password_hash=generate_password_hash(TEST_PASSWORD),
        date_created=date_created
    )
    profile._create_db_record()
    return profile.id_, create_session_token(profile.id_, profile.role, profile.email)


def create_test_admin(**kwargs):
    return create_test_user(role=ROLE_ADMIN, name='Test Admin', **kwargs)


def create_test_category(name='Ramen', priority=0, icon='bowl'):
    category = Category(id_=str(uuid4()), name=name, priority=priority, icon=icon)
    category._create_db_record()
    return category.id_


def create_test_menu_item(category_id, name='Shoyu Ramen', price=50000, stock=10, image_url='https://img/ramen.png'):
    menu_item = MenuItem(
        id_=str(uuid4()),
        name=name,
        category_id=category_id,
        price=Decimal(price),
        stock=Decimal(stock),
        image_url=image_url
    )
    menu_item._create_db_record()
    return menu_item.id_
