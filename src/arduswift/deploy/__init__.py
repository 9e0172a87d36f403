"""
Device-facing commands for arduswift.

This package provides port detection, firmware upload and the serial monitor.
"""

from .deployer import Deployer
from .monitor import SerialMonitor
from .port_detector import PortDetector

__all__ = [
    "Deployer",
    "PortDetector",
    "SerialMonitor",
]
