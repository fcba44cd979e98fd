"""Core data model: function codes, error kinds, client configuration, MBAP header."""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Mapping


class FunctionCode(IntEnum):
    """Modbus function codes supported by the client."""

    READ_COILS = 0x01
    READ_DISCRETE_INPUTS = 0x02
    READ_HOLDING_REGISTERS = 0x03
    READ_INPUT_REGISTERS = 0x04
    WRITE_SINGLE_COIL = 0x05
    WRITE_SINGLE_REGISTER = 0x06
    WRITE_MULTIPLE_COILS = 0x0F
    WRITE_MULTIPLE_REGISTERS = 0x10


class ModbusErrorKind(str, Enum):
    """Tag attached to every error raised by the client."""

    FUNCTION_CODE_NOT_SUPPORTED = "function_code_not_supported"
    ILLEGAL_DATA_ADDRESS = "illegal_data_address"
    ILLEGAL_DATA_VALUE = "illegal_data_value"
    SERVER_DEVICE_FAILURE = "server_device_failure"
    UNKNOWN = "unknown"
    CONNECTION_FAILURE = "connection_failure"
    TIMEOUT = "timeout"
    INVALID_ARGUMENT = "invalid_argument"
    INVALID_RESPONSE = "invalid_response"


# Protocol limits per request (Modbus Application Protocol v1.1b3).
DEFAULT_MAX_QUANTITY: Mapping[FunctionCode, int] = MappingProxyType(
    {
        FunctionCode.READ_COILS: 2000,
        FunctionCode.READ_DISCRETE_INPUTS: 2000,
        FunctionCode.READ_HOLDING_REGISTERS: 125,
        FunctionCode.READ_INPUT_REGISTERS: 125,
        FunctionCode.WRITE_MULTIPLE_COILS: 1968,
        FunctionCode.WRITE_MULTIPLE_REGISTERS: 123,
    }
)

# Largest quantity the request frame can carry: write-multiple requests have a
# one-byte byte count, everything else a 16-bit quantity field.
ENCODABLE_MAX_QUANTITY: Mapping[FunctionCode, int] = MappingProxyType(
    {
        FunctionCode.WRITE_MULTIPLE_COILS: 255 * 8,
        FunctionCode.WRITE_MULTIPLE_REGISTERS: 255 // 2,
    }
)


@dataclass(frozen=True)
class TransactionHeader:
    """MBAP header fields that precede every request PDU."""

    transaction_id: int = 1
    unit_id: int = 0
    protocol_id: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.transaction_id <= 0xFFFF:
            raise ValueError(f"transaction_id must be 0-65535, got {self.transaction_id}")
        if not 0 <= self.unit_id <= 0xFF:
            raise ValueError(f"unit_id must be 0-255, got {self.unit_id}")
        if self.protocol_id != 0:
            raise ValueError(f"protocol_id must be 0 for Modbus, got {self.protocol_id}")


@dataclass(frozen=True)
class ClientConfig:
    """
    Connection settings for one client. Immutable; the client swaps in a new
    instance (dataclasses.replace) when a setter is used.
    """

    host: str | None = None
    port: int = 502
    connect_timeout: float = 0.4
    connect_retries: int = 1
    read_timeout: float | None = None
    unit_id: int = 0
    transaction_id: int = 1
    signed_registers: bool = True
    max_quantity: Mapping[FunctionCode, int] = field(default_factory=lambda: DEFAULT_MAX_QUANTITY)

    def __post_init__(self) -> None:
        if not 0 <= self.port <= 0xFFFF:
            raise ValueError(f"port must be 0-65535, got {self.port}")
        if self.connect_timeout <= 0:
            raise ValueError(f"connect_timeout must be > 0, got {self.connect_timeout}")
        if self.connect_retries < 0:
            raise ValueError(f"connect_retries must be >= 0, got {self.connect_retries}")
        if self.read_timeout is not None and self.read_timeout <= 0:
            raise ValueError(f"read_timeout must be > 0 or None, got {self.read_timeout}")
        for function_code, limit in self.max_quantity.items():
            cap = ENCODABLE_MAX_QUANTITY.get(FunctionCode(function_code), 0xFFFF)
            if not 0 <= limit <= cap:
                raise ValueError(
                    f"max_quantity for {FunctionCode(function_code).name} must be 0-{cap}, got {limit}"
                )
        # Header validates unit_id / transaction_id ranges
        self.header()

    def header(self) -> TransactionHeader:
        return TransactionHeader(transaction_id=self.transaction_id, unit_id=self.unit_id)

    def limit_for(self, function_code: FunctionCode) -> int:
        """Largest quantity accepted for function_code (0xFFFF when unlisted)."""
        return self.max_quantity.get(function_code, 0xFFFF)
