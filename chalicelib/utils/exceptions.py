__all__ = ["NotAuthorizedException", "AccessDenied", "RecordNotFound", "NumberOfRetriesExceeded",
           "MandatoryFieldsAreNotFilled", "ValidationException", "AlreadyExists", "InsufficientStock",
           "OrderNotFound", "AddressNotFound", "MenuItemNotFound",
           "PaymentGatewayError", "PaymentGatewayNotConfigured", "InvalidSignature"]


class NotAuthorizedException(Exception):
    pass


# Generic Exceptions
class AccessDenied(Exception):
    pass


class MandatoryFieldsAreNotFilled(Exception):
    pass


class AlreadyExists(Exception):
    pass


# DynamoDB exceptions
class RecordNotFound(Exception):
    LEVEL = 'warning'


# DB Performance Exception
class NumberOfRetriesExceeded(Exception):
    pass


# Validations exceptions
class ValidationException(Exception):
    LEVEL = 'warning'


class InsufficientStock(ValidationException):
    pass


# Not found exceptions
class OrderNotFound(RecordNotFound):
    pass


class AddressNotFound(RecordNotFound):
    pass


class MenuItemNotFound(RecordNotFound):
    pass


# Payment gateway exceptions
class PaymentGatewayError(Exception):
    pass


class PaymentGatewayNotConfigured(Exception):
    pass


class InvalidSignature(NotAuthorizedException):
    pass
