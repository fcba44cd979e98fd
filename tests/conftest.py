"""Loopback Modbus TCP server fixture backed by in-memory coil and register banks."""

import socketserver
import struct
import threading
from typing import Callable, Iterator

import pytest

BANK_SIZE = 256


class _Handler(socketserver.BaseRequestHandler):
    def handle(self) -> None:
        while True:
            try:
                data = self.request.recv(2100)
            except OSError:
                return
            if not data:
                return
            self.server.requests.append(data)
            try:
                self.request.sendall(self.server.responder(data))
            except OSError:
                return


class FakeModbusServer(socketserver.ThreadingTCPServer):
    """
    Minimal Modbus TCP server for end-to-end tests. Answers functions 0x01-0x06,
    0x0F and 0x10 from its banks; set ``responder`` to script raw replies.
    """

    daemon_threads = True
    allow_reuse_address = True
    block_on_close = False

    def __init__(self) -> None:
        super().__init__(("127.0.0.1", 0), _Handler)
        self.coils = [False] * BANK_SIZE
        self.discrete_inputs = [False] * BANK_SIZE
        self.holding_registers = [0] * BANK_SIZE
        self.input_registers = [0] * BANK_SIZE
        self.requests: list[bytes] = []
        self.responder: Callable[[bytes], bytes] = self.answer

    @property
    def port(self) -> int:
        return self.server_address[1]

    @staticmethod
    def reply(request: bytes, pdu: bytes) -> bytes:
        tid, pid, _length, unit = struct.unpack(">HHHB", request[:7])
        return struct.pack(">HHHB", tid, pid, 1 + len(pdu), unit) + pdu

    def exception(self, request: bytes, code: int) -> bytes:
        return self.reply(request, bytes([request[7] | 0x80, code]))

    def answer(self, request: bytes) -> bytes:
        fc = request[7]
        start, arg = struct.unpack(">HH", request[8:12])
        if fc in (0x01, 0x02):
            bank = self.coils if fc == 0x01 else self.discrete_inputs
            if start + arg > BANK_SIZE:
                return self.exception(request, 0x02)
            packed = bytearray((arg + 7) // 8)
            for i, bit in enumerate(bank[start:start + arg]):
                if bit:
                    packed[i // 8] |= 1 << (i % 8)
            return self.reply(request, bytes([fc, len(packed)]) + bytes(packed))
        if fc in (0x03, 0x04):
            bank = self.holding_registers if fc == 0x03 else self.input_registers
            if start + arg > BANK_SIZE:
                return self.exception(request, 0x02)
            data = b"".join(struct.pack(">H", v) for v in bank[start:start + arg])
            return self.reply(request, bytes([fc, len(data)]) + data)
        if fc == 0x05:
            if arg not in (0xFF00, 0x0000):
                return self.exception(request, 0x03)
            self.coils[start] = arg == 0xFF00
            return self.reply(request, request[7:12])
        if fc == 0x06:
            self.holding_registers[start] = arg
            return self.reply(request, request[7:12])
        if fc == 0x0F:
            for i in range(arg):
                self.coils[start + i] = bool(request[13 + i // 8] & (1 << (i % 8)))
            return self.reply(request, request[7:12])
        if fc == 0x10:
            for i in range(arg):
                self.holding_registers[start + i] = struct.unpack_from(">H", request, 13 + 2 * i)[0]
            return self.reply(request, request[7:12])
        return self.exception(request, 0x01)


@pytest.fixture
def modbus_server() -> Iterator[FakeModbusServer]:
    server = FakeModbusServer()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server
    finally:
        server.shutdown()
        server.server_close()
