"""Byte transports between the host and the embedded controller."""

from __future__ import annotations

from abc import ABC, abstractmethod

import serial

_SUPPORTED_SPEEDS = frozenset({115200, 19200, 9600, 4800, 2400, 1200, 300})

_DATABITS = {
    5: serial.FIVEBITS,
    6: serial.SIXBITS,
    7: serial.SEVENBITS,
    8: serial.EIGHTBITS,
}

_PARITIES = {
    "N": serial.PARITY_NONE,
    "O": serial.PARITY_ODD,
    "E": serial.PARITY_EVEN,
    # Space parity is configured as no parity with one stop bit.
    "S": serial.PARITY_NONE,
}

_STOPBITS = {1: serial.STOPBITS_ONE, 2: serial.STOPBITS_TWO}


class Transporter(ABC):
    """A device that carries raw bytes between an embedded system and the host."""

    @abstractmethod
    def open(self) -> bool:
        """Open the device; return False and record an error message on failure."""

    @abstractmethod
    def close(self) -> None:
        """Close the device."""

    @abstractmethod
    def is_open(self) -> bool:
        """Whether the device is open."""

    @abstractmethod
    def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes; raise OSError on failure."""

    @abstractmethod
    def write(self, data: bytes) -> int:
        """Write ``data`` and return the number of bytes written; raise OSError on failure."""

    @abstractmethod
    def error_message(self) -> str:
        """The message of the last failure of ``open``."""


class UartTransporter(Transporter):
    """A serial port transport."""

    def __init__(
        self,
        device_path: str = "/dev/ttyUSB0",
        speed: int = 115200,
        flow_ctrl: int = 0,
        databits: int = 8,
        stopbits: int = 1,
        parity: str = "N",
    ) -> None:
        self.device_path = device_path
        self.speed = speed
        self.flow_ctrl = flow_ctrl
        self.databits = databits
        self.stopbits = stopbits
        self.parity = parity
        self._port: serial.SerialBase | None = None
        self._error_message = ""

    def _configure(self, port: serial.SerialBase) -> bool:
        if self.speed in _SUPPORTED_SPEEDS:
            port.baudrate = self.speed
        port.rtscts = self.flow_ctrl == 1
        port.xonxoff = self.flow_ctrl == 2

        bytesize = _DATABITS.get(self.databits)
        if bytesize is None:
            self._error_message = "Unsupported data size"
            return False
        port.bytesize = bytesize

        parity_key = str(self.parity).upper()
        if parity_key not in _PARITIES:
            self._error_message = "Unsupported parity"
            return False
        port.parity = _PARITIES[parity_key]

        stopbits = _STOPBITS.get(self.stopbits)
        if stopbits is None:
            self._error_message = "Unsupported stop bits"
            return False
        port.stopbits = serial.STOPBITS_ONE if parity_key == "S" else stopbits

        # Block for the first byte, then return after a tenth of a second of silence.
        port.timeout = None
        port.inter_byte_timeout = 0.1
        return True

    def open(self) -> bool:
        if self.is_open():
            return True
        try:
            port = serial.serial_for_url(self.device_path, do_not_open=True)
        except (serial.SerialException, ValueError):
            self._error_message = f"can't open uart device: {self.device_path}"
            return False
        if not self._configure(port):
            return False
        try:
            port.open()
        except (serial.SerialException, OSError, ValueError):
            self._error_message = f"can't open uart device: {self.device_path}"
            return False
        port.reset_input_buffer()
        self._port = port
        return True

    def close(self) -> None:
        if self._port is None:
            return
        self._port.close()
        self._port = None

    def is_open(self) -> bool:
        return self._port is not None and self._port.is_open

    def _require_port(self) -> serial.SerialBase:
        if not self.is_open():
            raise OSError(f"uart device {self.device_path} is not open")
        assert self._port is not None
        return self._port

    def read(self, size: int) -> bytes:
        return bytes(self._require_port().read(size))

    def write(self, data: bytes) -> int:
        written = self._require_port().write(data)
        return len(data) if written is None else written

    def error_message(self) -> str:
        return self._error_message