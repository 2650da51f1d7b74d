import functools
import os
from datetime import datetime, timedelta, timezone
from typing import Dict

import jwt
from chalice.app import Request

from chalicelib.constants import keys_structure
from chalicelib.constants.constants import DEFAULT_SESSION_TTL_DAYS, ROLE_ADMIN
from chalicelib.utils import exceptions as utils_exceptions, db as utils_db
from chalicelib.utils.logger import logger

JWT_ALGORITHM = 'HS256'


def session_secret() -> str:
    return os.environ['SESSION_SECRET']


def session_ttl() -> timedelta:
    return timedelta(days=int(os.environ.get('SESSION_TTL_DAYS', DEFAULT_SESSION_TTL_DAYS)))


def create_session_token(user_id: str, role: str, email: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        'sub': user_id,
        'role': role,
        'email': email,
        'iat': now,
        'exp': now + session_ttl()
    }
    return jwt.encode(payload, session_secret(), algorithm=JWT_ALGORITHM)


def decode_session_token(token: str) -> Dict:
    try:
        return jwt.decode(token, session_secret(), algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise utils_exceptions.NotAuthorizedException('Session has expired, please log in again')
    except jwt.InvalidTokenError as error:
        logger.warning(f'decode_session_token ::: invalid token, {error=}')
        raise utils_exceptions.NotAuthorizedException('Invalid session token')


def get_token_from_request(request: Request) -> str:
    header = (request.headers or {}).get('authorization') or ''
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        raise utils_exceptions.NotAuthorizedException('Authorization token is missing')
    return token.strip()


def get_auth_result(request: Request) -> Dict:
    claims = decode_session_token(get_token_from_request(request))
    user_id = claims.get('sub')
    try:
        profile = utils_db.get_db_item(
            partkey=keys_structure.profiles_pk,
            sortkey=keys_structure.profiles_sk.format(user_id=user_id)
        )
    except utils_exceptions.RecordNotFound:
        raise utils_exceptions.NotAuthorizedException('User of the session does not exist')
    if not profile.get('is_active', True):
        raise utils_exceptions.NotAuthorizedException('User account is deactivated')
    return {
        'user_id': user_id,
        'role': profile.get('role'),
        'email': profile.get('email'),
        'name': profile.get('name')
    }


def authorize_request(request: Request, admin_only: bool = False) -> Dict:
    auth_result = get_auth_result(request)
    if admin_only and auth_result['role'] != ROLE_ADMIN:
        logger.warning(f"authorize_request ::: user {auth_result['user_id']} is not an admin")
        raise utils_exceptions.AccessDenied('Admin role is required')
    setattr(request, 'auth_result', auth_result)
    return auth_result


def _request_authenticator(request_position: int, admin_only: bool):
    def decorator(func):
        @functools.wraps(func)
        def result_auth(*args, **kwargs):
            request = args[request_position]
            try:
                authorize_request(request, admin_only=admin_only)
            except Exception as err:
                logger.error(f"authenticate ::: {func.__name__} {str(err)}")
                raise
            logger.info(f'authenticate ::: SUCCESS, func.__name__ {func.__name__}')
            return func(*args, **kwargs)
        return result_auth
    return decorator


# Wrapper for functions which require user's authentication, request is the first argument
authenticate = _request_authenticator(request_position=0, admin_only=False)

# Wrapper for class methods which require user's authentication, request follows cls/self
authenticate_class = _request_authenticator(request_position=1, admin_only=False)

# The same wrappers for the back office routes
authenticate_admin = _request_authenticator(request_position=0, admin_only=True)
authenticate_admin_class = _request_authenticator(request_position=1, admin_only=True)


def is_admin(request: Request) -> bool:
    return getattr(request, 'auth_result', {}).get('role') == ROLE_ADMIN
