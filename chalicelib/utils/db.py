import functools
import os
from random import uniform
from time import sleep
from typing import Dict, List

import boto3 as boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from chalicelib.constants import substitute_keys
from chalicelib.utils import data
from chalicelib.utils import exceptions
from chalicelib.utils.boto_clients import aws_config_ddb
from chalicelib.utils.logger import logger, log_exception

# For safe db operations
RETRY_EXCEPTIONS = ('ProvisionedThroughputExceededException', 'ThrottlingException')
need_return_capacity = ('put_item', 'get_item', 'update_item', 'delete_item', 'query')

_TABLES: Dict = {}


def exp_db_backoff(func):
    """
        should be used for any atomic
        get/put item in the code
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger.debug(f'{func.__name__}:: args={args}, kwargs={kwargs}')
        max_retries = 15
        timeout_seed = uniform(0.1, 0.99)

        if func.__name__ not in need_return_capacity:
            raise RuntimeError("This decorator only for DynamoDB methods")
        kwargs.update({'ReturnConsumedCapacity': 'TOTAL'})

        for retries in range(max_retries):
            try:
                result = func(*args, **kwargs)
                logger.info(f'{func.__name__}:: SUCCESS')
                return result

            except ClientError as e:
                if e.response['Error']['Code'] not in RETRY_EXCEPTIONS:
                    log_exception(e, msg=f'Got exception while trying to {func.__name__}: ')
                    raise
                logger.warning(f'{func.__name__}:: throttled, retry {retries + 1} of {max_retries}')
                sleep(min(timeout_seed * 2 ** retries, 5))

        raise exceptions.NumberOfRetriesExceeded(
            f"MaxNumber={max_retries} of DB retries has exceeded"
        )

    return wrapper


def get_table(table_name: str) -> boto3.session.Session.resource:
    gl_table = _TABLES.get(table_name)
    if gl_table is None:
        if os.environ.get('ENDPOINT_URL'):
            gl_table = boto3.resource('dynamodb', endpoint_url=os.environ.get('ENDPOINT_URL')).Table(table_name)
        else:
            gl_table = boto3.resource('dynamodb', config=aws_config_ddb()).Table(table_name)

        gl_table.put_item = exp_db_backoff(gl_table.put_item)
        gl_table.get_item = exp_db_backoff(gl_table.get_item)
        gl_table.update_item = exp_db_backoff(gl_table.update_item)
        gl_table.delete_item = exp_db_backoff(gl_table.delete_item)
        gl_table.query = exp_db_backoff(gl_table.query)
        _TABLES[table_name] = gl_table

    return gl_table


def get_gen_table():
    return get_table(os.environ.get('GEN_TABLE_NAME'))


def put_db_record(item: dict, table=get_gen_table):
    table().put_item(Item=item)


def delete_db_record(key: dict, table=get_gen_table):
    table().delete_item(Key=key)
    logger.info(f"delete_db_record ::: record partkey={key.get('partkey')} sortkey={key.get('sortkey')} deleted")


def update_db_record(key: dict, update_body: dict, allowed_attrs_to_update: list,
                     allowed_attrs_to_delete: list, table=get_gen_table):
    data.substitute_keys(dict_to_process=update_body, base_keys=substitute_keys.to_db)
    set_expr, expr_attr_values, remove_expr, set_attr_names, remove_attr_names = generate_update_expression(
        update_body=update_body,
        allowed_attrs_to_update=allowed_attrs_to_update,
        allowed_attrs_to_delete=allowed_attrs_to_delete
    )
    update_item_dict = {"Key": key, "ReturnValues": "UPDATED_NEW", }

    set_response = None
    if set_expr:
        set_item_dict = {
            **update_item_dict,
            "UpdateExpression": set_expr,
            "ExpressionAttributeValues": expr_attr_values,
            "ExpressionAttributeNames": set_attr_names
        }
        set_response = table().update_item(**set_item_dict)

    remove_response = None
    if remove_expr:
        remove_item_dict = {
            **update_item_dict,
            "UpdateExpression": remove_expr,
            "ExpressionAttributeNames": remove_attr_names
        }
        remove_response = table().update_item(**remove_item_dict)

    return set_response, remove_response


def generate_update_expression(update_body: dict, allowed_attrs_to_update: list, allowed_attrs_to_delete: list):
    """
    Generate expressions to update and delete attributes.
    if a key of update_body is empty - the attribute is deleted, else - attribute is updated.
    Attribute names go through placeholders, so reserved words (status, name) can be used
    """
    expr_attr_values = {}
    set_attr_names = {}
    remove_attr_names = {}
    return_value = [None, None, None, None, None]
    for field in allowed_attrs_to_update:
        field_value = update_body.get(field, None)
        if field_value is None:
            continue
        # if field is in update_body but is equal to empty string, list etc. - delete field
        if field_value in ['', [], {}] and field in allowed_attrs_to_delete:
            remove_attr_names[f'#{field}'] = field
        else:
            expr_attr_values[f':{field}'] = field_value
            set_attr_names[f'#{field}'] = field

    if set_attr_names:
        return_value[0] = 'SET ' + ', '.join(f'{name}=:{field}' for name, field in set_attr_names.items())
        return_value[1] = expr_attr_values
        return_value[3] = set_attr_names

    if remove_attr_names:
        return_value[2] = 'REMOVE ' + ', '.join(remove_attr_names.keys())
        return_value[4] = remove_attr_names

    return return_value


def increment_db_attribute(key: dict, attribute: str, value=1, table=get_gen_table):
    """ Atomic counter update, returns the new value of the attribute """
    response = table().update_item(
        Key=key,
        UpdateExpression='ADD #attr :inc',
        ExpressionAttributeNames={'#attr': attribute},
        ExpressionAttributeValues={':inc': value},
        ReturnValues='UPDATED_NEW'
    )
    return response.get('Attributes', {}).get(attribute)


def get_db_item(partkey, sortkey, table=get_gen_table):
    result = table().get_item(
        Key={
            'partkey': partkey,
            'sortkey': sortkey
        }
    )

    if result.__contains__('Item'):
        return result['Item']
    else:
        logger.warning(f"get_db_item ::: record partkey={partkey} sortkey={sortkey} not found")
        raise exceptions.RecordNotFound(f'record partkey={partkey} sortkey={sortkey} not found')


def query_items_page(key_condition_expression, filter_expression=None, start_key=None, table=get_gen_table):
    kwargs = {'KeyConditionExpression': key_condition_expression}
    if filter_expression is not None:
        kwargs['FilterExpression'] = filter_expression
    if start_key:
        kwargs['ExclusiveStartKey'] = start_key
    resp = table().query(**kwargs)
    return resp['Items'], resp.get('LastEvaluatedKey')


def query_all_items(key_condition_expression, filter_expression=None, table=get_gen_table) -> List[Dict]:
    """ Follows LastEvaluatedKey until the whole result set is read """
    items, last_evaluated_key = query_items_page(key_condition_expression, filter_expression, table=table)
    while last_evaluated_key is not None:
        page, last_evaluated_key = query_items_page(
            key_condition_expression, filter_expression, start_key=last_evaluated_key, table=table)
        items.extend(page)
    return items


def query_partition(partkey: str, filter_expression=None) -> List[Dict]:
    return query_all_items(Key('partkey').eq(partkey), filter_expression=filter_expression)


def query_partition_prefix(partkey: str, sortkey_prefix: str) -> List[Dict]:
    return query_all_items(Key('partkey').eq(partkey) & Key('sortkey').begins_with(sortkey_prefix))
