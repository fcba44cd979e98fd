"""
Frame codec: build MBAP request frames and decode response payloads.

Pure functions, no I/O. Response offsets are positional: MBAP header at 0-6,
function code at 7, byte count at 8, data from 9.
"""

import struct
from typing import Sequence

from .errors import InvalidResponseError
from .types import FunctionCode, TransactionHeader

MBAP_HEADER = struct.Struct(">HHHB")
UINT16 = struct.Struct(">H")
INT16 = struct.Struct(">h")

DATA_OFFSET = 9
MIN_RESPONSE_LENGTH = 9

COIL_ON = 0xFF00
COIL_OFF = 0x0000

READ_FUNCTIONS = frozenset(
    {
        FunctionCode.READ_COILS,
        FunctionCode.READ_DISCRETE_INPUTS,
        FunctionCode.READ_HOLDING_REGISTERS,
        FunctionCode.READ_INPUT_REGISTERS,
    }
)


def encode_frame(header: TransactionHeader, function_code: int, payload: bytes = b"") -> bytes:
    """
    Wrap a PDU in the MBAP header. The length field counts unit id, function
    code and payload.
    """
    length = 2 + len(payload)
    return (
        MBAP_HEADER.pack(header.transaction_id, header.protocol_id, length, header.unit_id)
        + bytes([function_code])
        + payload
    )


def encode_read_request(
    header: TransactionHeader,
    function_code: FunctionCode,
    starting: int,
    quantity: int,
) -> bytes:
    """Request for function codes 0x01-0x04: starting(2) quantity(2)."""
    if function_code not in READ_FUNCTIONS:
        raise ValueError(f"Not a read function: {function_code!r}")
    return encode_frame(header, function_code, struct.pack(">HH", starting, quantity))


def encode_write_single_coil(header: TransactionHeader, starting: int, value: bool) -> bytes:
    payload = struct.pack(">HH", starting, COIL_ON if value else COIL_OFF)
    return encode_frame(header, FunctionCode.WRITE_SINGLE_COIL, payload)


def encode_write_single_register(header: TransactionHeader, starting: int, value: int) -> bytes:
    payload = struct.pack(">HH", starting, value & 0xFFFF)
    return encode_frame(header, FunctionCode.WRITE_SINGLE_REGISTER, payload)


def pack_coils(values: Sequence[bool]) -> bytes:
    """
    Pack booleans LSB first: value i goes to bit (i % 8) of byte (i // 8).
    Unused high bits of the last byte stay zero.
    """
    packed = bytearray((len(values) + 7) // 8)
    for i, value in enumerate(values):
        if value:
            packed[i // 8] |= 1 << (i % 8)
    return bytes(packed)


def encode_write_multiple_coils(header: TransactionHeader, starting: int, values: Sequence[bool]) -> bytes:
    packed = pack_coils(values)
    payload = struct.pack(">HHB", starting, len(values), len(packed)) + packed
    return encode_frame(header, FunctionCode.WRITE_MULTIPLE_COILS, payload)


def encode_write_multiple_registers(header: TransactionHeader, starting: int, values: Sequence[int]) -> bytes:
    data = b"".join(UINT16.pack(v & 0xFFFF) for v in values)
    payload = struct.pack(">HHB", starting, len(values), len(data)) + data
    return encode_frame(header, FunctionCode.WRITE_MULTIPLE_REGISTERS, payload)


def _require_length(frame: bytes, needed: int, what: str) -> None:
    if len(frame) < needed:
        raise InvalidResponseError(
            f"Short response: {what} needs {needed} bytes, got {len(frame)}",
            frame=frame,
        )


def decode_bits(frame: bytes, quantity: int) -> list[bool]:
    """Coils / discrete inputs: bit (i % 8) of byte 9 + i // 8, LSB first."""
    _require_length(frame, DATA_OFFSET + (quantity + 7) // 8, f"{quantity} bits")
    return [bool(frame[DATA_OFFSET + i // 8] & (1 << (i % 8))) for i in range(quantity)]


def decode_registers(frame: bytes, quantity: int, signed: bool = True) -> list[int]:
    """
    Holding / input registers: big-endian 16-bit words from offset 9.
    With signed=True values >= 0x8000 come back negative.
    """
    _require_length(frame, DATA_OFFSET + 2 * quantity, f"{quantity} registers")
    fmt = INT16 if signed else UINT16
    return [fmt.unpack_from(frame, DATA_OFFSET + 2 * i)[0] for i in range(quantity)]


def hexdump(frame: bytes) -> str:
    return frame.hex(" ")
