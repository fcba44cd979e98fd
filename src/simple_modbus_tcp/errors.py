"""Clear exceptions for simple-modbus-tcp: connection, argument, response and server errors."""

from .types import ModbusErrorKind


class ModbusError(Exception):
    """Base exception for simple-modbus-tcp. ``kind`` tags the failure."""

    kind: ModbusErrorKind = ModbusErrorKind.UNKNOWN

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class ModbusConnectionError(ModbusError, ConnectionError):
    """Raised when there is no socket, connect retries ran out, or the stream broke."""

    kind = ModbusErrorKind.CONNECTION_FAILURE


class ModbusTimeoutError(ModbusConnectionError, TimeoutError):
    """Raised when the server does not answer within the configured read timeout."""

    kind = ModbusErrorKind.TIMEOUT


class InvalidArgumentError(ModbusError, ValueError):
    """Raised before any I/O when an address, quantity or value is out of range."""

    kind = ModbusErrorKind.INVALID_ARGUMENT


class InvalidResponseError(ModbusError):
    """Raised when a response frame is truncated or does not match the request."""

    kind = ModbusErrorKind.INVALID_RESPONSE

    def __init__(
        self,
        message: str,
        *,
        frame: bytes | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.frame = frame
        super().__init__(message, cause=cause)


class ModbusProtocolError(ModbusError):
    """
    Raised when the server answers with an exception frame.
    Used as-is for exception codes without a dedicated subclass.
    """

    kind = ModbusErrorKind.UNKNOWN
    default_message = "Unknown error"

    def __init__(
        self,
        message: str | None = None,
        *,
        exception_code: int,
        function_code: int,
    ) -> None:
        self.exception_code = exception_code
        self.function_code = function_code
        msg = message or (
            f"{self.default_message} (function 0x{function_code:02X}, exception code 0x{exception_code:02X})"
        )
        super().__init__(msg)


class FunctionCodeNotSupportedError(ModbusProtocolError):
    kind = ModbusErrorKind.FUNCTION_CODE_NOT_SUPPORTED
    default_message = "Function code not supported"


class IllegalDataAddressError(ModbusProtocolError):
    kind = ModbusErrorKind.ILLEGAL_DATA_ADDRESS
    default_message = "Starting address or quantity invalid"


class IllegalDataValueError(ModbusProtocolError):
    kind = ModbusErrorKind.ILLEGAL_DATA_VALUE
    default_message = "Quantity or value invalid"


class ServerDeviceFailureError(ModbusProtocolError):
    kind = ModbusErrorKind.SERVER_DEVICE_FAILURE
    default_message = "Server device failure"
