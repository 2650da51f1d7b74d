from chalicelib.constants.constants import APP_NAME, RESET_TOKEN_TTL_SECONDS


def get_reset_password_subject():
    return f'{APP_NAME} - reset your password'


def get_reset_password_message(name, reset_link):
    return f"""
        Hi {name or 'there'},\n
        We received a request to reset the password of your {APP_NAME} account.\n
        Open the link below to choose a new password:\n
        {reset_link}\n
        The link is valid for {RESET_TOKEN_TTL_SECONDS // 60} minutes.
        If you did not request a password reset, you can ignore this email.
    """
