profiles_pk = 'profiles'
profiles_sk = '{user_id}'

branches_pk = 'branches'
branches_sk = '{branch_id}'

categories_pk = 'categories'
categories_sk = '{category_id}'

menu_items_pk = 'menu_items'
menu_items_sk = '{menu_item_id}'

promos_pk = 'promos'
promos_sk = '{code}'

carts_pk = 'carts'
carts_sk = '{user_id}'

orders_pk = 'orders'
orders_sk = '{order_id}'

order_items_pk = 'order_items'
order_items_sk = '{order_id}_{order_item_id}'

notifications_pk = 'notifications_{user_id}'
notifications_sk = '{notification_id}'

user_addresses_pk = 'user_addresses_{user_id}'
user_addresses_sk = '{address_id}'
