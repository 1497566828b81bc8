"""Domain error codes for the party bar."""

from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    COIN_CODE_NOT_FOUND = "COIN_CODE_NOT_FOUND"
    ALREADY_REDEEMED = "ALREADY_REDEEMED"
    COIN_CODE_EXHAUSTED = "COIN_CODE_EXHAUSTED"
    DUPLICATE_COIN_CODE = "DUPLICATE_COIN_CODE"
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    DRINK_NOT_FOUND = "DRINK_NOT_FOUND"
    INSUFFICIENT_COINS = "INSUFFICIENT_COINS"
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    WRONG_ROLE = "WRONG_ROLE"
    NO_ACTIVE_EVENT = "NO_ACTIVE_EVENT"
    EVENT_ENDED = "EVENT_ENDED"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    CONFLICT = "CONFLICT"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class CoinCodeNotFoundError(DomainError):
    """Raised when a redeemed code does not exist."""

    def __init__(self, code: str) -> None:
        super().__init__(ErrorCode.COIN_CODE_NOT_FOUND, "Invalid code")
        self.coin_code = code


class AlreadyRedeemedError(DomainError):
    """Raised when a user redeems the same code a second time."""

    def __init__(self, code: str, user_id: str) -> None:
        super().__init__(ErrorCode.ALREADY_REDEEMED, "You have already used this code")
        self.coin_code = code
        self.user_id = user_id


class CoinCodeExhaustedError(DomainError):
    """Raised when a code has reached its redemption cap."""

    def __init__(self, code: str) -> None:
        super().__init__(ErrorCode.COIN_CODE_EXHAUSTED, "This code can no longer be redeemed")
        self.coin_code = code


class DuplicateCoinCodeError(DomainError):
    """Raised when issuing a code that is already active."""

    def __init__(self, code: str) -> None:
        super().__init__(ErrorCode.DUPLICATE_COIN_CODE, "A code with this value already exists")
        self.coin_code = code


class OrderNotFoundError(DomainError):
    def __init__(self, order_id: str) -> None:
        super().__init__(ErrorCode.ORDER_NOT_FOUND, "Order not found")
        self.order_id = order_id


class DrinkNotFoundError(DomainError):
    def __init__(self, drink_id: str) -> None:
        super().__init__(ErrorCode.DRINK_NOT_FOUND, "Drink not found")
        self.drink_id = drink_id


class InsufficientCoinsError(DomainError):
    """Raised when the balance is below the drink cost."""

    def __init__(self, balance: int, cost: int) -> None:
        super().__init__(ErrorCode.INSUFFICIENT_COINS, "You do not have enough coins")
        self.balance = balance
        self.cost = cost


class NotAuthenticatedError(DomainError):
    def __init__(self) -> None:
        super().__init__(ErrorCode.NOT_AUTHENTICATED, "Please log in")
        self.redirect = "/"


class SessionExpiredError(DomainError):
    """Raised when a guest acts after the event has ended. The session is already cleared."""

    def __init__(self) -> None:
        super().__init__(ErrorCode.SESSION_EXPIRED, "Session expired! The event is over.")
        self.redirect = "/"


class WrongRoleError(DomainError):
    """Raised when a surface is reached with another role; ``redirect`` is that role's own surface."""

    def __init__(self, role, required, redirect: str) -> None:
        super().__init__(ErrorCode.WRONG_ROLE, "This area is not available for your role")
        self.role = role
        self.required = required
        self.redirect = redirect


class NoActiveEventError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            ErrorCode.NO_ACTIVE_EVENT,
            "No active event right now. Ask the admin to set one up.",
        )


class EventEndedError(DomainError):
    def __init__(self) -> None:
        super().__init__(ErrorCode.EVENT_ENDED, "This event has already ended")


class InvalidAmountError(DomainError):
    def __init__(self, amount) -> None:
        super().__init__(ErrorCode.INVALID_AMOUNT, "Amount must be a positive whole number")
        self.amount = amount


class ConflictError(DomainError):
    """Raised when a record changed between read and write."""

    def __init__(self, collection: str, key: str, expected: int, actual: int) -> None:
        super().__init__(ErrorCode.CONFLICT, "The record was changed by someone else, try again")
        self.collection = collection
        self.key = key
        self.expected = expected
        self.actual = actual
