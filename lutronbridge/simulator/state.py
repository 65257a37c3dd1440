#!/usr/bin/env python3
"""
Lutron Simulator State Management

This module keeps the levels of the simulated gateway's outputs.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

__all__ = ['SimulatedOutput', 'GatewayState']


@dataclass
class SimulatedOutput:
    output_id: int
    name: str
    level: float = 0.0
    last_updated: float = field(default_factory=time.time)


class GatewayState:
    """
    Maintains the state of the simulated gateway.
    """

    def __init__(self):
        # A handful of dimmers, all off
        self.outputs: Dict[int, SimulatedOutput] = {
            oid: SimulatedOutput(oid, f'Output {oid}') for oid in range(1, 5)
        }
        self.username = 'lutron'
        self.password = 'integration'

        # Command history
        self.command_history = []
        self.max_command_history = 100

    def apply_configuration(self, config: Dict[str, Any]) -> None:
        """
        Apply configuration to the simulator state.

        Args:
            config: Configuration dictionary, eg:
                ``{"outputs": [{"output_id": 5, "name": "Kitchen", "level": 100}]}``
        """
        if "login" in config:
            self.username = config["login"].get("username", self.username)
            self.password = config["login"].get("password", self.password)

        if "outputs" in config:
            self.outputs = {}
            for out_cfg in config["outputs"]:
                oid = out_cfg.get("output_id")
                if oid is None:
                    continue
                self.outputs[oid] = SimulatedOutput(
                    output_id=oid,
                    name=out_cfg.get("name", f"Output {oid}"),
                    level=float(out_cfg.get("level", 0.0)),
                )

        logger.info(f"Configuration applied. {len(self.outputs)} outputs configured.")

    def get_level(self, output_id: int) -> Optional[float]:
        output = self.outputs.get(output_id)
        return output.level if output else None

    def set_level(self, output_id: int, level: float) -> bool:
        """
        Set an output level.

        Returns:
            False if the output does not exist.
        """
        output = self.outputs.get(output_id)
        if output is None:
            logger.warning(f"Attempt to set unknown output {output_id}")
            return False
        output.level = level
        output.last_updated = time.time()
        logger.info(f"Output {output_id} set to {level:.2f}")
        return True

    def add_command_to_history(self, command: str) -> None:
        self.command_history.append({"timestamp": time.time(), "command": command})
        if len(self.command_history) > self.max_command_history:
            self.command_history = self.command_history[-self.max_command_history:]
