"""Exceptions raised by the document and credential stores.

The string form of every exception is the message shown to the visitor.
"""


class DocVaultError(Exception):
    pass


class DocumentNotFound(DocVaultError):

    def __init__(self, filename: str):
        super().__init__(f"{filename} does not exist.")
        self.filename = filename


class ValidationError(DocVaultError):
    pass


class EmptyName(ValidationError):

    def __init__(self, message: str = "A name is required."):
        super().__init__(message)


class InvalidName(ValidationError):

    def __init__(self, filename: str):
        super().__init__(f"{filename} is not a valid file name.")
        self.filename = filename


class InvalidExtension(ValidationError):

    def __init__(self, filename: str):
        super().__init__("Invalid file type.")
        self.filename = filename


class UsernameTaken(ValidationError):

    def __init__(self, username: str):
        super().__init__("Username already exists.")
        self.username = username


class NotAuthenticated(DocVaultError):

    def __init__(self, message: str = "You must be signed in to do that."):
        super().__init__(message)


class UnsupportedType(DocVaultError):

    def __init__(self, filename: str):
        super().__init__(f"{filename} cannot be displayed.")
        self.filename = filename


class StoreUnavailable(DocVaultError):
    pass


class WriteError(DocVaultError):
    pass


class PasswordTooLong(ValidationError):

    def __init__(self, limit: int):
        super().__init__(f"Passwords can be at most {limit} bytes long.")
        self.limit = limit
