"""Exception classes for borrowlist."""


class BorrowListError(Exception):
    """Base exception for all borrowlist errors."""


class BorrowError(BorrowListError):
    """Raised when a shared borrow is requested while the value is mutably borrowed."""


class BorrowMutError(BorrowListError):
    """Raised when an exclusive borrow is requested while any other borrow is outstanding."""


class OwnershipError(BorrowListError):
    """Raised when a handle is unwrapped while other owners of the allocation still exist."""


class ReleasedError(BorrowListError):
    """Raised when a guard or handle is used after it was released."""
