class AuthError(Exception):
    pass


class AccountAlreadyExistsError(AuthError):
    pass


class InvalidCredentialsError(AuthError):
    pass


class AccountNotFoundError(AuthError):
    pass


class IncorrectPasswordError(AuthError):
    pass


class InvalidResetCodeError(AuthError):
    pass
