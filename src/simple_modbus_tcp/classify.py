"""Error classification of response frames: exception bit and exception-code mapping."""

import logging

from .codec import MIN_RESPONSE_LENGTH, hexdump
from .errors import (
    FunctionCodeNotSupportedError,
    IllegalDataAddressError,
    IllegalDataValueError,
    InvalidResponseError,
    ModbusConnectionError,
    ModbusProtocolError,
    ServerDeviceFailureError,
)
from .types import ModbusErrorKind

logger = logging.getLogger(__name__)

EXCEPTION_BIT = 0x80

_EXCEPTION_CODES: dict[int, ModbusErrorKind] = {
    0x01: ModbusErrorKind.FUNCTION_CODE_NOT_SUPPORTED,
    0x02: ModbusErrorKind.ILLEGAL_DATA_ADDRESS,
    0x03: ModbusErrorKind.ILLEGAL_DATA_VALUE,
    0x04: ModbusErrorKind.SERVER_DEVICE_FAILURE,
}

_ERROR_CLASSES: dict[ModbusErrorKind, type[ModbusProtocolError]] = {
    ModbusErrorKind.FUNCTION_CODE_NOT_SUPPORTED: FunctionCodeNotSupportedError,
    ModbusErrorKind.ILLEGAL_DATA_ADDRESS: IllegalDataAddressError,
    ModbusErrorKind.ILLEGAL_DATA_VALUE: IllegalDataValueError,
    ModbusErrorKind.SERVER_DEVICE_FAILURE: ServerDeviceFailureError,
}


def is_exception_frame(frame: bytes) -> bool:
    """True when the echoed function code (byte 7) has the high bit set."""
    return len(frame) > 7 and bool(frame[7] & EXCEPTION_BIT)


def classify_exception_code(code: int) -> ModbusErrorKind:
    """Map a Modbus exception code to its error kind; anything unlisted is UNKNOWN."""
    return _EXCEPTION_CODES.get(code, ModbusErrorKind.UNKNOWN)


def exception_for_code(exception_code: int, function_code: int) -> ModbusProtocolError:
    kind = classify_exception_code(exception_code)
    error_class = _ERROR_CLASSES.get(kind, ModbusProtocolError)
    return error_class(exception_code=exception_code, function_code=function_code)


def raise_for_exception(frame: bytes | None, function_code: int) -> None:
    """
    Check a raw response before decoding.

    Raises ModbusConnectionError for an empty read, InvalidResponseError for a
    truncated frame or a function code that does not echo the request, and a
    ModbusProtocolError subclass for a server exception frame.
    """
    if not frame:
        raise ModbusConnectionError("Connection error (stream is null)")
    if len(frame) < MIN_RESPONSE_LENGTH:
        raise InvalidResponseError(
            f"Response too short: {len(frame)} bytes (minimum {MIN_RESPONSE_LENGTH})",
            frame=frame,
        )
    if is_exception_frame(frame):
        logger.debug("Exception frame for function 0x%02X: %s", function_code, hexdump(frame))
        raise exception_for_code(frame[8], function_code)
    if frame[7] != function_code:
        raise InvalidResponseError(
            f"Function code mismatch: sent 0x{function_code:02X}, got 0x{frame[7]:02X}",
            frame=frame,
        )
