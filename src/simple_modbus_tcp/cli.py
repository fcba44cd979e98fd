#!/usr/bin/env python3
"""Command line front end for simple-modbus-tcp using Typer."""

import json
import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import typer
from typing_extensions import Annotated

from . import __version__  # type: ignore
from .client import ModbusTcpClient
from .errors import (
    InvalidArgumentError,
    InvalidResponseError,
    ModbusConnectionError,
    ModbusProtocolError,
)

app = typer.Typer(
    name="smbtcp",
    help="Read and write coils and registers on a Modbus TCP server.",
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)

EXIT_INVALID_ARGUMENT = 2
EXIT_CONNECTION = 3
EXIT_MODBUS = 4

DEFAULT_READ_TIMEOUT = 3.0

# ============================================================================
# Shared options and helpers
# ============================================================================

HostOption = Annotated[
    Optional[str],
    typer.Option("--host", "-h", help="Server hostname or IP address", envvar="SMBTCP_HOST"),
]
PortOption = Annotated[
    int,
    typer.Option("--port", "-p", help="Modbus TCP port", envvar="SMBTCP_PORT"),
]
UnitIdOption = Annotated[
    int,
    typer.Option("--unit-id", "-u", help="Modbus unit identifier", envvar="SMBTCP_UNIT_ID"),
]
TimeoutOption = Annotated[
    float,
    typer.Option("--timeout", "-t", help="Connect timeout in seconds", envvar="SMBTCP_TIMEOUT"),
]
RetriesOption = Annotated[
    int,
    typer.Option("--retries", "-r", help="Extra connect attempts after a timeout", envvar="SMBTCP_RETRIES"),
]
ReadTimeoutOption = Annotated[
    Optional[float],
    typer.Option("--read-timeout", help="Seconds to wait for a response", envvar="SMBTCP_READ_TIMEOUT"),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output as JSON"),
]
UnsignedOption = Annotated[
    bool,
    typer.Option("--unsigned", help="Return register values as unsigned 16-bit integers"),
]
StartingArgument = Annotated[int, typer.Argument(help="Starting address (0-65535)")]
QuantityArgument = Annotated[int, typer.Argument(help="Number of items to read")]


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbose flag."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if not verbose else "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def create_client(
    host: Optional[str],
    port: int,
    unit_id: int,
    timeout: float,
    retries: int,
    read_timeout: Optional[float] = DEFAULT_READ_TIMEOUT,
    signed: bool = True,
) -> ModbusTcpClient:
    """Create and return a ModbusTcpClient instance (not yet connected)."""
    if not host:
        typer.echo("Error: --host is required for this command", err=True)
        raise typer.Exit(EXIT_INVALID_ARGUMENT)
    try:
        return ModbusTcpClient(
            host=host,
            port=port,
            unit_id=unit_id,
            connect_timeout=timeout,
            connect_retries=retries,
            read_timeout=read_timeout,
            signed_registers=signed,
        )
    except ValueError as e:
        typer.echo(f"Error: Invalid option: {e}", err=True)
        raise typer.Exit(EXIT_INVALID_ARGUMENT)


@contextmanager
def exit_on_error(verbose: bool) -> Iterator[None]:
    """Translate client exceptions into an error message and exit code."""
    try:
        yield
    except typer.Exit:
        raise
    except (InvalidArgumentError, ValueError) as e:
        typer.echo(f"Error: Invalid argument: {e}", err=True)
        raise typer.Exit(EXIT_INVALID_ARGUMENT)
    except ModbusConnectionError as e:
        typer.echo(f"Error: Connection error: {e}", err=True)
        raise typer.Exit(EXIT_CONNECTION)
    except (ModbusProtocolError, InvalidResponseError) as e:
        typer.echo(f"Error: Modbus error: {e}", err=True)
        raise typer.Exit(EXIT_MODBUS)
    except Exception as e:
        typer.echo(f"Error: Unexpected error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        raise typer.Exit(EXIT_MODBUS)


def parse_bool(value: str) -> bool:
    """Parse boolean value from string."""
    v = value.lower().strip()
    if v in ("true", "1", "on", "yes"):
        return True
    if v in ("false", "0", "off", "no"):
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")


def parse_int(value: str) -> int:
    """Parse a register value (decimal or 0x hex); accepts -32768 to 65535."""
    v = value.strip()
    if v.lower().startswith("0x"):
        num = int(v, 16)
    else:
        num = int(v)
    if not (-32768 <= num <= 65535):
        raise ValueError(f"16-bit register value out of range: {num}")
    return num


def format_value(value: bool | int) -> str:
    """Format value for display."""
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


def emit_values(function: str, starting: int, values: list[Any], json_output: bool) -> None:
    if json_output:
        typer.echo(json.dumps({"function": function, "starting": starting, "values": values}))
        return
    for i, value in enumerate(values):
        typer.echo(f"{starting + i}: {format_value(value)}")


# ============================================================================
# Commands
# ============================================================================

@app.command()
def ping(
    host: HostOption = None,
    port: PortOption = 502,
    unit_id: UnitIdOption = 0,
    timeout: TimeoutOption = 0.4,
    retries: RetriesOption = 1,
    read_timeout: ReadTimeoutOption = DEFAULT_READ_TIMEOUT,
    verbose: VerboseOption = False,
) -> None:
    """
    Test connectivity by reading holding register 0.

    A Modbus exception reply still proves the server is reachable.
    """
    setup_logging(verbose)

    with exit_on_error(verbose):
        client = create_client(host, port, unit_id, timeout, retries, read_timeout)
        with client:
            try:
                client.read_holding_registers(0, 1)
            except ModbusProtocolError as e:
                typer.echo(f"OK: Connected to {host}:{port} (server replied: {e})")
                return
            typer.echo(f"OK: Connected to {host}:{port}")


def _read_command(
    function: str,
    starting: int,
    quantity: int,
    host: Optional[str],
    port: int,
    unit_id: int,
    timeout: float,
    retries: int,
    read_timeout: Optional[float],
    verbose: bool,
    json_output: bool,
    unsigned: bool = False,
) -> None:
    setup_logging(verbose)

    with exit_on_error(verbose):
        client = create_client(host, port, unit_id, timeout, retries, read_timeout, signed=not unsigned)
        with client:
            values = getattr(client, function)(starting, quantity)
        emit_values(function, starting, values, json_output)


@app.command(name="read-coils")
def read_coils(
    starting: StartingArgument,
    quantity: QuantityArgument,
    host: HostOption = None,
    port: PortOption = 502,
    unit_id: UnitIdOption = 0,
    timeout: TimeoutOption = 0.4,
    retries: RetriesOption = 1,
    read_timeout: ReadTimeoutOption = DEFAULT_READ_TIMEOUT,
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """Read coils (function 0x01)."""
    _read_command("read_coils", starting, quantity, host, port, unit_id, timeout, retries, read_timeout, verbose, json_output)


@app.command(name="read-discrete-inputs")
def read_discrete_inputs(
    starting: StartingArgument,
    quantity: QuantityArgument,
    host: HostOption = None,
    port: PortOption = 502,
    unit_id: UnitIdOption = 0,
    timeout: TimeoutOption = 0.4,
    retries: RetriesOption = 1,
    read_timeout: ReadTimeoutOption = DEFAULT_READ_TIMEOUT,
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """Read discrete inputs (function 0x02)."""
    _read_command(
        "read_discrete_inputs", starting, quantity, host, port, unit_id, timeout, retries, read_timeout, verbose, json_output
    )


@app.command(name="read-holding-registers")
def read_holding_registers(
    starting: StartingArgument,
    quantity: QuantityArgument,
    host: HostOption = None,
    port: PortOption = 502,
    unit_id: UnitIdOption = 0,
    timeout: TimeoutOption = 0.4,
    retries: RetriesOption = 1,
    read_timeout: ReadTimeoutOption = DEFAULT_READ_TIMEOUT,
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
    unsigned: UnsignedOption = False,
) -> None:
    """
    Read holding registers (function 0x03).

    Values are signed 16-bit by default; use --unsigned for 0-65535.
    """
    _read_command(
        "read_holding_registers", starting, quantity, host, port, unit_id, timeout, retries, read_timeout,
        verbose, json_output, unsigned,
    )


@app.command(name="read-input-registers")
def read_input_registers(
    starting: StartingArgument,
    quantity: QuantityArgument,
    host: HostOption = None,
    port: PortOption = 502,
    unit_id: UnitIdOption = 0,
    timeout: TimeoutOption = 0.4,
    retries: RetriesOption = 1,
    read_timeout: ReadTimeoutOption = DEFAULT_READ_TIMEOUT,
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
    unsigned: UnsignedOption = False,
) -> None:
    """Read input registers (function 0x04)."""
    _read_command(
        "read_input_registers", starting, quantity, host, port, unit_id, timeout, retries, read_timeout,
        verbose, json_output, unsigned,
    )


@app.command(name="write-coil")
def write_coil(
    starting: StartingArgument,
    value: Annotated[str, typer.Argument(help="true/false, 1/0, on/off, yes/no")],
    host: HostOption = None,
    port: PortOption = 502,
    unit_id: UnitIdOption = 0,
    timeout: TimeoutOption = 0.4,
    retries: RetriesOption = 1,
    read_timeout: ReadTimeoutOption = DEFAULT_READ_TIMEOUT,
    verbose: VerboseOption = False,
) -> None:
    """Write a single coil (function 0x05)."""
    setup_logging(verbose)

    with exit_on_error(verbose):
        parsed = parse_bool(value)
        client = create_client(host, port, unit_id, timeout, retries, read_timeout)
        with client:
            client.write_single_coil(starting, parsed)
        typer.echo(f"OK: Wrote coil {starting} = {format_value(parsed)}")


@app.command(name="write-register")
def write_register(
    starting: StartingArgument,
    value: Annotated[str, typer.Argument(help="Decimal or 0x hex; negative values need a preceding --")],
    host: HostOption = None,
    port: PortOption = 502,
    unit_id: UnitIdOption = 0,
    timeout: TimeoutOption = 0.4,
    retries: RetriesOption = 1,
    read_timeout: ReadTimeoutOption = DEFAULT_READ_TIMEOUT,
    verbose: VerboseOption = False,
) -> None:
    """Write a single holding register (function 0x06)."""
    setup_logging(verbose)

    with exit_on_error(verbose):
        parsed = parse_int(value)
        client = create_client(host, port, unit_id, timeout, retries, read_timeout)
        with client:
            client.write_single_register(starting, parsed)
        typer.echo(f"OK: Wrote register {starting} = {parsed}")


@app.command(name="write-coils")
def write_coils(
    starting: StartingArgument,
    values: Annotated[list[str], typer.Argument(help="Coil values (space-separated)")],
    host: HostOption = None,
    port: PortOption = 502,
    unit_id: UnitIdOption = 0,
    timeout: TimeoutOption = 0.4,
    retries: RetriesOption = 1,
    read_timeout: ReadTimeoutOption = DEFAULT_READ_TIMEOUT,
    verbose: VerboseOption = False,
) -> None:
    """Write consecutive coils (function 0x0F)."""
    setup_logging(verbose)

    with exit_on_error(verbose):
        parsed = [parse_bool(v) for v in values]
        client = create_client(host, port, unit_id, timeout, retries, read_timeout)
        with client:
            client.write_multiple_coils(starting, parsed)
        typer.echo(f"OK: Wrote {len(parsed)} coils from {starting}")


@app.command(name="write-registers")
def write_registers(
    starting: StartingArgument,
    values: Annotated[list[str], typer.Argument(help="Register values (space-separated)")],
    host: HostOption = None,
    port: PortOption = 502,
    unit_id: UnitIdOption = 0,
    timeout: TimeoutOption = 0.4,
    retries: RetriesOption = 1,
    read_timeout: ReadTimeoutOption = DEFAULT_READ_TIMEOUT,
    verbose: VerboseOption = False,
) -> None:
    """Write consecutive holding registers (function 0x10)."""
    setup_logging(verbose)

    with exit_on_error(verbose):
        parsed = [parse_int(v) for v in values]
        client = create_client(host, port, unit_id, timeout, retries, read_timeout)
        with client:
            client.write_multiple_registers(starting, parsed)
        typer.echo(f"OK: Wrote {len(parsed)} registers from {starting}")


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"simple-modbus-tcp {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version and exit"),
    ] = None,
) -> None:
    """smbtcp - Modbus TCP client for coils and registers."""
    pass


if __name__ == "__main__":
    app()
