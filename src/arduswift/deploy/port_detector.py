"""
Serial port detection.

Finds the port of the attached board for a given FQBN. Three sources are
tried in order:

1. ``arduino-cli board list --format json``: for each ``"address"`` field a
   text window around it is searched for the FQBN or its last segment. A
   USB serial match wins immediately.
2. ``arduino-cli board list`` table: the first column of the line naming the
   board, else any USB serial port in the table.
3. pyserial's ``comports()``: the first USB serial device.

Bluetooth, network and debug pseudo-ports are never returned.
"""

import os
import re
from typing import Callable, List, Optional

from ..build_log import get_logger
from ..errors import PortDetectionError
from ..packages.arduino_core import ArduinoCli

log = get_logger(__name__)

PORT_ENV = "PORT"

REJECTED_MARKERS = ("Bluetooth", "Incoming", "rfcomm", "debug-console")
USB_MARKERS = ("usbmodem", "usbserial", "ttyACM", "ttyUSB")

WINDOW_BEFORE = 600
WINDOW_AFTER = 1200

_ADDRESS_RE = re.compile(r'"address"\s*:\s*"([^"]*)"')


def is_rejected_port(port: str) -> bool:
    """True for empty names and Bluetooth/network/debug pseudo-ports."""
    if not port:
        return True
    return any(marker in port for marker in REJECTED_MARKERS)


def is_usb_port(port: str) -> bool:
    return any(marker in port for marker in USB_MARKERS)


def fqbn_base_token(fqbn: str) -> str:
    """Last ``:`` segment of an FQBN."""
    return fqbn.rsplit(":", 1)[-1] if fqbn else ""


def port_from_json_listing(listing: str, fqbn: str) -> Optional[str]:
    """Pick a port from ``board list --format json`` output.

    A non-USB match is only kept until a USB match shows up.
    """
    base = fqbn_base_token(fqbn)
    best: Optional[str] = None
    best_is_usb = False

    for match in _ADDRESS_RE.finditer(listing):
        address = match.group(1)
        if is_rejected_port(address):
            continue

        start = match.start()
        window = listing[max(0, start - WINDOW_BEFORE): start + WINDOW_AFTER]
        if not ((fqbn and fqbn in window) or (base and base in window)):
            continue

        usb = is_usb_port(address)
        if best is None or (usb and not best_is_usb):
            best, best_is_usb = address, usb
            if usb:
                break

    return best


def _first_line_containing(lines: List[str], token: str) -> Optional[str]:
    if not token:
        return None
    for line in lines:
        if token in line:
            return line
    return None


def port_from_table_listing(listing: str, fqbn: str) -> Optional[str]:
    """Pick a port from the human-readable ``board list`` table."""
    lines = listing.splitlines()
    hit = _first_line_containing(lines, fqbn) or _first_line_containing(
        lines, fqbn_base_token(fqbn)
    )
    if hit:
        fields = hit.split()
        if fields and not is_rejected_port(fields[0]):
            return fields[0]

    for marker in USB_MARKERS:
        for line in lines:
            for field in line.split():
                if marker in field and not is_rejected_port(field):
                    return field
    return None


def _pyserial_ports() -> List[str]:
    import serial.tools.list_ports

    return [p.device for p in serial.tools.list_ports.comports()]


class PortDetector:
    """Detects the serial port of the board matching an FQBN."""

    def __init__(
        self,
        arduino_cli: Optional[ArduinoCli] = None,
        list_ports: Optional[Callable[[], List[str]]] = None,
    ):
        """
        Args:
            arduino_cli: arduino-cli wrapper used for ``board list``
            list_ports: Serial device enumerator (default: pyserial comports)
        """
        self.arduino_cli = arduino_cli or ArduinoCli()
        self.list_ports = list_ports or _pyserial_ports

    def detect(self, fqbn: str) -> str:
        """Return the port of the attached board.

        Raises:
            PortDetectionError: If no usable port is found
        """
        json_listing = self.arduino_cli.board_list(as_json=True)
        port = port_from_json_listing(json_listing, fqbn)
        if port:
            log.debug(f"port from board list (json): {port}")
            return port

        table_listing = self.arduino_cli.board_list()
        port = port_from_table_listing(table_listing, fqbn)
        if port:
            log.debug(f"port from board list (table): {port}")
            return port

        for device in self.list_ports():
            if is_usb_port(device) and not is_rejected_port(device):
                log.debug(f"port from serial enumeration: {device}")
                return device

        raise PortDetectionError(fqbn, listing=table_listing or json_listing)

    def resolve(self, fqbn: str, explicit: Optional[str] = None) -> str:
        """Explicit port (argument, then PORT env var) or auto-detection.

        Raises:
            PortDetectionError: If detection is needed and fails
        """
        port = explicit or os.environ.get(PORT_ENV, "")
        if port:
            log.info(f"Using PORT: {port}")
            return port
        port = self.detect(fqbn)
        log.info(f"Detected port: {port}")
        return port
