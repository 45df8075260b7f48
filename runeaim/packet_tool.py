"""Sending and receiving fixed-length frames over a transport."""

from __future__ import annotations

import logging
import queue
import threading

from .packet import HEAD_BYTE, TAIL_BYTE, FixedPacket
from .transport import Transporter

_log = logging.getLogger("runeaim.serial_driver")


def check_packet(buffer: bytes | bytearray, capacity: int) -> bool:
    """Whether ``buffer`` is one whole frame of ``capacity`` bytes."""
    return len(buffer) == capacity and buffer[0] == HEAD_BYTE and buffer[capacity - 1] == TAIL_BYTE


class FixedPacketTool:
    """Frames packets onto a transport and reassembles broken frames on receipt."""

    def __init__(self, transporter: Transporter, capacity: int = 16) -> None:
        if transporter is None:
            raise ValueError("transporter is None")
        self._transporter = transporter
        self.capacity = capacity
        self._recv_buffer = bytearray()
        self._print_data = False
        self._queue: queue.Queue[FixedPacket] = queue.Queue()
        self._running = threading.Event()
        self._thread: threading.Thread | None = None

    def __enter__(self) -> FixedPacketTool:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        """Stop the realtime sending thread, if any."""
        self.enable_realtime_send(False)

    def is_open(self) -> bool:
        return self._transporter.is_open()

    def error_message(self) -> str:
        return self._transporter.error_message()

    def enable_data_print(self, enable: bool) -> None:
        """Print every received chunk as hex when ``enable`` is true."""
        self._print_data = enable

    def enable_realtime_send(self, enable: bool) -> None:
        """Send packets from a background thread instead of in the caller."""
        if enable == (self._thread is not None):
            return
        if enable:
            self._running.set()
            self._thread = threading.Thread(target=self._send_loop, daemon=True)
            self._thread.start()
        else:
            self._running.clear()
            assert self._thread is not None
            self._thread.join()
            self._thread = None

    def _send_loop(self) -> None:
        while self._running.is_set():
            try:
                packet = self._queue.get(timeout=0.001)
            except queue.Empty:
                continue
            self._send_now(packet)

    def _reconnect(self) -> None:
        self._transporter.close()
        self._transporter.open()

    def _send_now(self, packet: FixedPacket) -> bool:
        try:
            written = self._transporter.write(packet.buffer)
        except OSError:
            written = -1
        if written == self.capacity:
            return True
        _log.error("transporter write failed")
        self._reconnect()
        return False

    def _make_packet(self, data: bytes | bytearray) -> FixedPacket:
        packet = FixedPacket(self.capacity)
        packet.copy_from(data)
        return packet

    def send_packet(self, packet: FixedPacket) -> bool:
        """Send ``packet``; in realtime mode it is queued and True is returned."""
        if packet.capacity != self.capacity:
            raise ValueError(
                f"packet capacity {packet.capacity} does not match tool capacity {self.capacity}"
            )
        if self._thread is not None:
            self._queue.put(self._make_packet(packet.buffer))
            return True
        return self._send_now(packet)

    def recv_packet(self) -> FixedPacket | None:
        """Read one frame; return None when no valid frame could be had."""
        try:
            data = self._transporter.read(self.capacity)
        except OSError:
            data = b""
        if not data:
            _log.error("transporter read failed")
            self._reconnect()
            return None

        if self._print_data:
            print("".join(f"{byte:x} " for byte in data))

        if check_packet(data, self.capacity):
            return self._make_packet(data)

        _log.info("check_packet failed, checking for a broken frame")
        if len(self._recv_buffer) + len(data) > self.capacity * 2:
            self._recv_buffer.clear()
        self._recv_buffer.extend(data)

        start = self._recv_buffer.find(HEAD_BYTE)
        while start != -1 and start + self.capacity <= len(self._recv_buffer):
            end = start + self.capacity
            frame = self._recv_buffer[start:end]
            if frame[-1] == TAIL_BYTE:
                del self._recv_buffer[:end]
                return self._make_packet(frame)
            start = self._recv_buffer.find(HEAD_BYTE, start + 1)

        _log.warning(
            "check_packet failed with recv_len:%d, frame head:%d, frame end:%d",
            len(data),
            data[0],
            data[-1],
        )
        return None