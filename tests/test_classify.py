"""Tests for exception-frame detection and classification."""

import pytest

from simple_modbus_tcp.classify import (
    classify_exception_code,
    is_exception_frame,
    raise_for_exception,
)
from simple_modbus_tcp.errors import (
    FunctionCodeNotSupportedError,
    IllegalDataAddressError,
    IllegalDataValueError,
    InvalidResponseError,
    ModbusConnectionError,
    ModbusProtocolError,
    ServerDeviceFailureError,
)
from simple_modbus_tcp.types import ModbusErrorKind


def exception_frame(function_code: int, code: int) -> bytes:
    return bytes([0, 1, 0, 0, 0, 3, 0, function_code | 0x80, code])


@pytest.mark.parametrize(
    ("code", "kind"),
    [
        (0x01, ModbusErrorKind.FUNCTION_CODE_NOT_SUPPORTED),
        (0x02, ModbusErrorKind.ILLEGAL_DATA_ADDRESS),
        (0x03, ModbusErrorKind.ILLEGAL_DATA_VALUE),
        (0x04, ModbusErrorKind.SERVER_DEVICE_FAILURE),
        (0x05, ModbusErrorKind.UNKNOWN),
        (0x0B, ModbusErrorKind.UNKNOWN),
    ],
)
def test_classify_exception_code(code: int, kind: ModbusErrorKind) -> None:
    assert classify_exception_code(code) == kind


def test_is_exception_frame() -> None:
    assert is_exception_frame(exception_frame(0x01, 0x02))
    assert not is_exception_frame(bytes([0, 1, 0, 0, 0, 4, 0, 0x01, 1, 0]))
    assert not is_exception_frame(b"")


def test_illegal_data_address_from_read_coils() -> None:
    with pytest.raises(IllegalDataAddressError) as exc_info:
        raise_for_exception(exception_frame(0x01, 0x02), 0x01)
    err = exc_info.value
    assert err.kind == ModbusErrorKind.ILLEGAL_DATA_ADDRESS
    assert err.exception_code == 0x02
    assert err.function_code == 0x01


@pytest.mark.parametrize(
    ("code", "error_class"),
    [
        (0x01, FunctionCodeNotSupportedError),
        (0x03, IllegalDataValueError),
        (0x04, ServerDeviceFailureError),
    ],
)
def test_exception_codes_map_to_error_classes(code: int, error_class: type) -> None:
    with pytest.raises(error_class):
        raise_for_exception(exception_frame(0x03, code), 0x03)


def test_unknown_exception_code_keeps_code() -> None:
    with pytest.raises(ModbusProtocolError) as exc_info:
        raise_for_exception(exception_frame(0x06, 0x0A), 0x06)
    assert type(exc_info.value) is ModbusProtocolError
    assert exc_info.value.kind == ModbusErrorKind.UNKNOWN
    assert exc_info.value.exception_code == 0x0A
    assert "0x0A" in str(exc_info.value)


@pytest.mark.parametrize("frame", [b"", None])
def test_empty_response_is_connection_failure(frame: bytes | None) -> None:
    with pytest.raises(ModbusConnectionError, match="stream is null") as exc_info:
        raise_for_exception(frame, 0x03)
    assert exc_info.value.kind == ModbusErrorKind.CONNECTION_FAILURE


def test_short_response_is_invalid() -> None:
    with pytest.raises(InvalidResponseError, match="too short"):
        raise_for_exception(bytes([0, 1, 0, 0, 0, 2, 0, 0x83]), 0x03)


def test_function_code_mismatch_is_invalid() -> None:
    with pytest.raises(InvalidResponseError, match="mismatch"):
        raise_for_exception(bytes([0, 1, 0, 0, 0, 3, 0, 0x04, 0]), 0x03)


def test_normal_response_passes() -> None:
    raise_for_exception(bytes([0, 1, 0, 0, 0, 5, 0, 0x03, 2, 0, 7]), 0x03)
