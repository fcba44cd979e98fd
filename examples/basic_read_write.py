#!/usr/bin/env python3
"""Example: connect to a Modbus TCP server, write one holding register and read three back."""

import sys

from simple_modbus_tcp import ModbusTcpClient
from simple_modbus_tcp.errors import InvalidArgumentError, ModbusConnectionError, ModbusProtocolError


def main() -> None:
    host = "localhost"  # change to your server (e.g. a Modbus simulator)
    port = 502

    try:
        with ModbusTcpClient(host, port, connect_retries=1) as mb:
            mb.write_single_register(19, 111)
            print(f"Read: {mb.read_holding_registers(18, 3)}")

            mb.write_multiple_coils(0, [True, False, True])
            print(f"Coils: {mb.read_coils(0, 3)}")
    except InvalidArgumentError as e:
        print(f"Invalid argument: {e}", file=sys.stderr)
        sys.exit(1)
    except ModbusConnectionError as e:
        print(f"Connection error: {e}", file=sys.stderr)
        sys.exit(1)
    except ModbusProtocolError as e:
        print(f"Server rejected request: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
