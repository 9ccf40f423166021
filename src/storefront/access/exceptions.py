"""Access-control failures.

Messages are deliberately generic: a denial never says whether the target
resource exists.
"""


class Unauthenticated(Exception):
    """The presented credential could not be verified."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)
        self.message = message


class Forbidden(Exception):
    """The caller is known but not allowed to perform the operation."""

    def __init__(self, message: str = "You are not allowed to access this resource"):
        super().__init__(message)
        self.message = message
