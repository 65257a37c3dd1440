"""
Lutron RadioRA2 Gateway Simulator

A small stand-in for a RadioRA2 main repeater's integration telnet port, used
for development and integration testing without real hardware.
"""

from lutronbridge.simulator.server import LutronSimulatorServer
from lutronbridge.simulator.state import GatewayState

__all__ = ['LutronSimulatorServer', 'GatewayState']
