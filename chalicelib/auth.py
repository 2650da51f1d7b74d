import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from boto3.dynamodb.conditions import Attr
from chalice import Response
from werkzeug.security import generate_password_hash, check_password_hash

from chalicelib.constants.constants import ROLE_CUSTOMER, MIN_PASSWORD_LENGTH, RESET_TOKEN_TTL_SECONDS
from chalicelib.constants.status_codes import http200, http201
from chalicelib.profiles import Profile, get_profile_by_email, normalize_email
from chalicelib.utils import app as utils_app, \
    auth as utils_auth, \
    data as utils_data, \
    db as utils_db, \
    email_templates, \
    exceptions, \
    midtrans as utils_midtrans, \
    notifications as utils_notifications
from chalicelib.utils.logger import logger

FORGOT_PASSWORD_MESSAGE = 'If the email is registered, password reset instructions will be sent to it.'
INVALID_CREDENTIALS_MESSAGE = 'Invalid email or password'


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


@utils_app.request_exception_handler
@utils_app.log_start_finish
def endpoint_register(request) -> Response:
    request_body = utils_data.parse_raw_body(request)
    name, email, password = request_body.get('name'), request_body.get('email'), request_body.get('password')
    if not all(isinstance(value, str) and value.strip() for value in (name, email, password)):
        raise exceptions.MandatoryFieldsAreNotFilled('Name, email and password are required')

    email = normalize_email(email)
    if get_profile_by_email(email) is not None:
        raise exceptions.AlreadyExists('Email is already registered')

    phone = request_body.get('phone')
    profile = Profile(
        id_=str(uuid4()),
        name=name.strip(),
        email=email,
        phone=phone if isinstance(phone, str) and phone else None,
        role=ROLE_CUSTOMER,
        is_active=True,
        password_hash=generate_password_hash(password)
    )
    profile._create_db_record()
    logger.info(f'endpoint_register ::: user {profile.id_} registered')
    return Response(status_code=http201, body={'message': 'Registration successful', 'id': profile.id_})


@utils_app.request_exception_handler
@utils_app.log_start_finish
def endpoint_login(request) -> Response:
    request_body = utils_data.parse_raw_body(request)
    email, password = request_body.get('email'), request_body.get('password')
    if not isinstance(email, str) or not isinstance(password, str) or not email or not password:
        raise exceptions.NotAuthorizedException(INVALID_CREDENTIALS_MESSAGE)

    profile = get_profile_by_email(email)
    if profile is None or not profile.password_hash or not check_password_hash(profile.password_hash, password):
        logger.warning('endpoint_login ::: wrong credentials')
        raise exceptions.NotAuthorizedException(INVALID_CREDENTIALS_MESSAGE)
    if not profile.is_active:
        raise exceptions.AccessDenied('User account is deactivated')

    token = utils_auth.create_session_token(profile.id_, profile.role, profile.email)
    logger.info(f'endpoint_login ::: user {profile.id_} logged in')
    return Response(status_code=http200, body={'token': token, 'user': profile.to_ui()})


def send_reset_password_email(profile: Profile, token: str):
    reset_link = f'{utils_midtrans.app_base_url()}/reset-password?token={token}'
    try:
        utils_notifications.send_email_ses(
            emails_to=[profile.email],
            email_from=utils_notifications.email_from(),
            subject=email_templates.get_reset_password_subject(),
            message=email_templates.get_reset_password_message(profile.name, reset_link)
        )
    except Exception as error:
        logger.exception(f'send_reset_password_email ::: failed to send email to user {profile.id_}, {error=}')


@utils_app.request_exception_handler
@utils_app.log_start_finish
def endpoint_forgot_password(request) -> Response:
    request_body = utils_data.parse_raw_body(request)
    email = normalize_email(request_body.get('email'))
    if not email:
        raise exceptions.MandatoryFieldsAreNotFilled('Email is required')

    success_response = Response(status_code=http200, body={'message': FORGOT_PASSWORD_MESSAGE})
    profile = get_profile_by_email(email)
    if profile is None:
        logger.info('endpoint_forgot_password ::: unknown email, nothing to send')
        return success_response

    token = secrets.token_hex(32)
    expires = datetime.now(timezone.utc) + timedelta(seconds=RESET_TOKEN_TTL_SECONDS)
    try:
        profile._update_db_record(update_dict={
            'reset_token_hash': hash_reset_token(token),
            'reset_token_expires': expires.isoformat(timespec='seconds')
        })
    except Exception as error:
        logger.exception(f'endpoint_forgot_password ::: failed to store reset token of {profile.id_}, {error=}')
        return success_response

    send_reset_password_email(profile, token)
    return success_response


@utils_app.request_exception_handler
@utils_app.log_start_finish
def endpoint_reset_password(request) -> Response:
    request_body = utils_data.parse_raw_body(request)
    token, password = request_body.get('token'), request_body.get('password')
    if not isinstance(token, str) or not isinstance(password, str) or not token or not password:
        raise exceptions.MandatoryFieldsAreNotFilled('Token and new password are required')
    if len(password) < MIN_PASSWORD_LENGTH:
        raise exceptions.ValidationException(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')

    records = utils_db.query_partition(
        Profile.pk, filter_expression=Attr('reset_token_hash').eq(hash_reset_token(token)))
    if not records:
        raise exceptions.ValidationException('Token is invalid or has expired')
    profile = Profile(**records[0])
    expires = profile.reset_token_expires
    if not expires or utils_data.parse_iso(expires) < datetime.now(timezone.utc):
        raise exceptions.ValidationException('Token has expired')

    profile._update_db_record(update_dict={
        'password_hash': generate_password_hash(password),
        'reset_token_hash': '',
        'reset_token_expires': ''
    })
    logger.info(f'endpoint_reset_password ::: password of user {profile.id_} updated')
    return Response(status_code=http200, body={'message': 'Password was successfully updated'})
