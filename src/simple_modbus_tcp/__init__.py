"""simple-modbus-tcp: a small synchronous Modbus TCP client with its own MBAP codec."""

__version__ = "0.1.0"

from .client import ModbusTcpClient
from .errors import (
    FunctionCodeNotSupportedError,
    IllegalDataAddressError,
    IllegalDataValueError,
    InvalidArgumentError,
    InvalidResponseError,
    ModbusConnectionError,
    ModbusError,
    ModbusProtocolError,
    ModbusTimeoutError,
    ServerDeviceFailureError,
)
from .transport import TcpTransport
from .types import ClientConfig, FunctionCode, ModbusErrorKind, TransactionHeader

__all__ = [
    "__version__",
    "ModbusTcpClient",
    "TcpTransport",
    "ClientConfig",
    "FunctionCode",
    "ModbusErrorKind",
    "TransactionHeader",
    "ModbusError",
    "ModbusConnectionError",
    "ModbusTimeoutError",
    "InvalidArgumentError",
    "InvalidResponseError",
    "ModbusProtocolError",
    "FunctionCodeNotSupportedError",
    "IllegalDataAddressError",
    "IllegalDataValueError",
    "ServerDeviceFailureError",
]
