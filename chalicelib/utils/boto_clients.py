import functools
import os
import boto3

from botocore.config import Config


def main_boto_region():
    return os.environ.get('MAIN_BOTO_REGION', 'ap-southeast-1')


def aws_config_ddb():
    return Config(retries={'max_attempts': 30}, region_name=os.environ.get('AWS_REGION', main_boto_region()))


# Simple Email Service Client.
# Created on first use, so the region and credentials of the current stage are picked up.
@functools.lru_cache(maxsize=None)
def ses_client():
    return boto3.client('ses', config=Config(retries={'max_attempts': 30}, region_name=main_boto_region()))
