import functools
from typing import Callable

from chalice import Response

from chalicelib.constants import status_codes
from chalicelib.utils.exceptions import MandatoryFieldsAreNotFilled, ValidationException, RecordNotFound, \
    AccessDenied, NotAuthorizedException, AlreadyExists, PaymentGatewayError
from chalicelib.utils.logger import logger, log_exception

# Order matters: subclasses are listed before their base classes
EXCEPTION_STATUS_CODES = (
    (MandatoryFieldsAreNotFilled, status_codes.http400),
    (ValidationException, status_codes.http400),
    (NotAuthorizedException, status_codes.http401),
    (AccessDenied, status_codes.http403),
    (RecordNotFound, status_codes.http404),
    (AlreadyExists, status_codes.http409),
    (PaymentGatewayError, status_codes.http502),
)


def error_response(error: Exception, msg: str = "", status_code: int = 400, *args, **kwargs):
    log_exception(error=error, msg=msg, status_code=status_code, *args, **kwargs)
    return Response(
        body={
            'error': str(error),
            'exception': error.__class__.__name__,
            "message": str(msg),
            'error_id': getattr(logger, 'current_request_id'),
            'level': getattr(error, 'LEVEL', 'exception')
        },
        status_code=status_code,
        headers={'Content-Type': 'application/json'}
    )


def get_status_code(error: Exception) -> int:
    for exception_class, status_code in EXCEPTION_STATUS_CODES:
        if isinstance(error, exception_class):
            return status_code
    return status_codes.http500


def request_exception_handler(func: Callable):
    @functools.wraps(func)
    def result(*args, **kwargs):
        try:
            logger.info(f'Calling function {func.__name__}')
            return func(*args, **kwargs)
        except AccessDenied as access_denied:
            return error_response(
                error=access_denied,
                msg="You don't have permissions to access this resource",
                status_code=status_codes.http403)
        except Exception as exception:
            return error_response(
                error=exception,
                msg=f'function = {func.__name__}, error = {exception}',
                status_code=get_status_code(exception))
    return result


def log_start_finish(func: Callable):
    @functools.wraps(func)
    def result(*args, **kwargs):
        logger.info(f'{func.__name__} ::: started')
        response = func(*args, **kwargs)
        logger.info(f'{func.__name__} ::: finished')
        return response
    return result
