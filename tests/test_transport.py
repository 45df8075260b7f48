import pytest

from runeaim.transport import Transporter, UartTransporter


def test_transporter_is_abstract():
    with pytest.raises(TypeError):
        Transporter()


def test_open_missing_device_reports_path():
    transporter = UartTransporter("/nonexistent/ttyFAKE0")
    assert transporter.open() is False
    assert transporter.error_message() == "can't open uart device: /nonexistent/ttyFAKE0"
    assert transporter.is_open() is False


def test_unsupported_databits():
    transporter = UartTransporter("loop://", databits=9)
    assert transporter.open() is False
    assert transporter.error_message() == "Unsupported data size"
    assert transporter.is_open() is False


def test_unsupported_parity():
    transporter = UartTransporter("loop://", parity="X")
    assert transporter.open() is False
    assert transporter.error_message() == "Unsupported parity"


def test_unsupported_stopbits():
    transporter = UartTransporter("loop://", stopbits=3)
    assert transporter.open() is False
    assert transporter.error_message() == "Unsupported stop bits"


@pytest.mark.parametrize("parity", ["n", "N", "o", "E", "s"])
def test_supported_parities_open(parity):
    transporter = UartTransporter("loop://", parity=parity)
    try:
        assert transporter.open() is True
        assert transporter.is_open() is True
    finally:
        transporter.close()


def test_loop_round_trip():
    transporter = UartTransporter("loop://")
    assert transporter.open() is True
    try:
        assert transporter.write(b"\xff\x01\x0d") == 3
        assert transporter.read(3) == b"\xff\x01\x0d"
    finally:
        transporter.close()
    assert transporter.is_open() is False


def test_open_twice_is_true():
    transporter = UartTransporter("loop://")
    try:
        assert transporter.open() is True
        assert transporter.open() is True
        assert transporter.is_open() is True
    finally:
        transporter.close()


def test_close_when_not_open_keeps_closed():
    transporter = UartTransporter("loop://")
    transporter.close()
    assert transporter.is_open() is False


def test_read_when_closed_raises():
    with pytest.raises(OSError):
        UartTransporter("loop://").read(1)


def test_write_when_closed_raises():
    with pytest.raises(OSError):
        UartTransporter("loop://").write(b"x")


def test_reopen_after_close():
    transporter = UartTransporter("loop://")
    assert transporter.open() is True
    transporter.close()
    assert transporter.open() is True
    try:
        assert transporter.write(b"ab") == 2
        assert transporter.read(2) == b"ab"
    finally:
        transporter.close()