"""ModbusTcpClient: validates requests, encodes them, exchanges frames and decodes typed results."""

import dataclasses
import logging
from typing import Any, Sequence

from . import codec
from .classify import raise_for_exception
from .errors import InvalidArgumentError, ModbusConnectionError
from .transport import TcpTransport
from .types import ClientConfig, FunctionCode

logger = logging.getLogger(__name__)


def _replace_config(config: ClientConfig, changes: dict[str, Any]) -> ClientConfig:
    """Return config with changes applied; out-of-range settings raise InvalidArgumentError."""
    try:
        return dataclasses.replace(config, **changes)
    except ValueError as e:
        raise InvalidArgumentError(str(e), cause=e) from e


class ModbusTcpClient:
    """
    Synchronous Modbus TCP client: one connection, one outstanding transaction.

    Settings live in an immutable ClientConfig; the property setters replace it.
    Not safe to share between threads without external locking. Calling
    disconnect() while a request is waiting aborts it with ModbusConnectionError.
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        *,
        config: ClientConfig | None = None,
        **settings: Any,
    ) -> None:
        """
        Keyword settings (connect_timeout, connect_retries, read_timeout,
        unit_id, ...) override the matching ClientConfig fields.
        """
        if host is not None:
            settings["host"] = host
        if port is not None:
            settings["port"] = port
        base = config if config is not None else ClientConfig()
        config = _replace_config(base, settings) if settings else base
        self._config = config
        self._transport = TcpTransport(
            connect_timeout=config.connect_timeout,
            connect_retries=config.connect_retries,
            read_timeout=config.read_timeout,
        )

    # -- configuration -----------------------------------------------------

    @property
    def config(self) -> ClientConfig:
        return self._config

    def _update(self, **changes: Any) -> None:
        self._config = _replace_config(self._config, changes)
        self._transport.connect_timeout = self._config.connect_timeout
        self._transport.connect_retries = self._config.connect_retries
        self._transport.read_timeout = self._config.read_timeout

    @property
    def host(self) -> str | None:
        return self._config.host

    @host.setter
    def host(self, value: str | None) -> None:
        self._update(host=value)

    @property
    def port(self) -> int:
        return self._config.port

    @port.setter
    def port(self, value: int) -> None:
        self._update(port=value)

    @property
    def connect_timeout(self) -> float:
        """Seconds to wait for each TCP connect attempt."""
        return self._config.connect_timeout

    @connect_timeout.setter
    def connect_timeout(self, value: float) -> None:
        self._update(connect_timeout=value)

    @property
    def connect_retries(self) -> int:
        """Extra connect attempts after a timeout (total attempts = retries + 1)."""
        return self._config.connect_retries

    @connect_retries.setter
    def connect_retries(self, value: int) -> None:
        self._update(connect_retries=value)

    @property
    def read_timeout(self) -> float | None:
        return self._config.read_timeout

    @read_timeout.setter
    def read_timeout(self, value: float | None) -> None:
        # Also applied to an open connection
        self._update(read_timeout=value)

    @property
    def unit_id(self) -> int:
        return self._config.unit_id

    @unit_id.setter
    def unit_id(self, value: int) -> None:
        self._update(unit_id=value)

    # -- connection --------------------------------------------------------

    def connect(self, host: str | None = None, port: int | None = None) -> None:
        """Connect to the server, optionally overriding host and port first."""
        changes: dict[str, Any] = {}
        if host is not None:
            changes["host"] = host
        if port is not None:
            changes["port"] = port
        if changes:
            self._update(**changes)
        if not self._config.host:
            raise ModbusConnectionError("No host configured")
        self._transport.connect(self._config.host, self._config.port)
        logger.info("Connected to %s:%s (unit %d)", self._config.host, self._config.port, self._config.unit_id)

    def disconnect(self) -> None:
        """Close the TCP connection."""
        self._transport.disconnect()

    close = disconnect

    def is_connected(self) -> bool:
        return self._transport.is_connected()

    def __enter__(self) -> "ModbusTcpClient":
        self.connect()
        return self

    def __exit__(self, *args: Any) -> None:
        self.disconnect()

    # -- request plumbing --------------------------------------------------

    def _check_connected(self) -> None:
        if not self._transport.is_connected():
            raise ModbusConnectionError("Connection error (socket is null)")

    def _check_params(self, function_code: FunctionCode, starting: int, quantity: int) -> None:
        self._check_connected()
        if not 0 <= starting <= 0xFFFF:
            raise InvalidArgumentError(f"Starting address must be 0 - 65535, got {starting}")
        limit = self._config.limit_for(function_code)
        if not 0 <= quantity <= limit:
            raise InvalidArgumentError(
                f"Quantity for {function_code.name} must be 0 - {limit}, got {quantity}"
            )

    @staticmethod
    def _check_register_value(value: int) -> None:
        if not -0x8000 <= value <= 0xFFFF:
            raise InvalidArgumentError(f"Register value must be -32768 - 65535, got {value}")

    def _execute(self, function_code: FunctionCode, frame: bytes) -> bytes:
        response = self._transport.send_and_receive(frame)
        raise_for_exception(response, function_code)
        return response

    def _read_bits(self, function_code: FunctionCode, starting: int, quantity: int) -> list[bool]:
        self._check_params(function_code, starting, quantity)
        frame = codec.encode_read_request(self._config.header(), function_code, starting, quantity)
        return codec.decode_bits(self._execute(function_code, frame), quantity)

    def _read_registers(self, function_code: FunctionCode, starting: int, quantity: int) -> list[int]:
        self._check_params(function_code, starting, quantity)
        frame = codec.encode_read_request(self._config.header(), function_code, starting, quantity)
        response = self._execute(function_code, frame)
        return codec.decode_registers(response, quantity, signed=self._config.signed_registers)

    # -- public operations -------------------------------------------------

    def read_coils(self, starting: int, quantity: int) -> list[bool]:
        """Read coils (0x01)."""
        return self._read_bits(FunctionCode.READ_COILS, starting, quantity)

    def read_discrete_inputs(self, starting: int, quantity: int) -> list[bool]:
        """Read discrete inputs (0x02)."""
        return self._read_bits(FunctionCode.READ_DISCRETE_INPUTS, starting, quantity)

    def read_holding_registers(self, starting: int, quantity: int) -> list[int]:
        """Read holding registers (0x03); signed 16-bit values unless signed_registers is off."""
        return self._read_registers(FunctionCode.READ_HOLDING_REGISTERS, starting, quantity)

    def read_input_registers(self, starting: int, quantity: int) -> list[int]:
        """Read input registers (0x04)."""
        return self._read_registers(FunctionCode.READ_INPUT_REGISTERS, starting, quantity)

    def write_single_coil(self, starting: int, value: bool) -> None:
        """Write one coil (0x05): 0xFF00 for on, 0x0000 for off."""
        self._check_params(FunctionCode.WRITE_SINGLE_COIL, starting, 0)
        frame = codec.encode_write_single_coil(self._config.header(), starting, bool(value))
        self._execute(FunctionCode.WRITE_SINGLE_COIL, frame)

    def write_single_register(self, starting: int, value: int) -> None:
        """Write one holding register (0x06); value is truncated to 16 bits."""
        self._check_params(FunctionCode.WRITE_SINGLE_REGISTER, starting, 0)
        self._check_register_value(value)
        frame = codec.encode_write_single_register(self._config.header(), starting, value)
        self._execute(FunctionCode.WRITE_SINGLE_REGISTER, frame)

    def write_multiple_coils(self, starting: int, values: Sequence[bool]) -> None:
        """Write consecutive coils (0x0F)."""
        self._check_params(FunctionCode.WRITE_MULTIPLE_COILS, starting, len(values))
        frame = codec.encode_write_multiple_coils(self._config.header(), starting, [bool(v) for v in values])
        self._execute(FunctionCode.WRITE_MULTIPLE_COILS, frame)

    def write_multiple_registers(self, starting: int, values: Sequence[int]) -> None:
        """Write consecutive holding registers (0x10)."""
        self._check_params(FunctionCode.WRITE_MULTIPLE_REGISTERS, starting, len(values))
        for v in values:
            self._check_register_value(v)
        frame = codec.encode_write_multiple_registers(self._config.header(), starting, values)
        self._execute(FunctionCode.WRITE_MULTIPLE_REGISTERS, frame)
