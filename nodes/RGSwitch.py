"""
remote-gateway-pg3x NodeServer/Plugin for EISY/Polisy for a stateless relay switch.

(C) 2025

Node: RGSwitch
"""

# std libraries
from typing import Callable, Optional

# external libraries
from udi_interface import Node, LOGGER

# personal libraries
from nodes.GateDevice import GateDevice

# constants
ON = 1


class RGSwitch(Node):
    """
    Momentary relay on the remote gateway.

    The switch has no state of its own: it always reads as on and every
    DON or DOF sends one trigger to the relay.
    """
    id = 'RGSW'

    def __init__(self, polyglot, primary: str, address: str, name: str, device: GateDevice):
        """
        Initializes the RGSwitch node.

        Args:
            polyglot: The Polyglot interface instance.
            primary: The address of the parent node.
            address: The address of this node.
            name: The name of this node.
            device: Immutable configuration holding the trigger url.
        """
        super().__init__(polyglot, primary, address, name)
        self.controller = self.poly.getNode(self.primary)
        self.device = device
        self.lpfx = f'{address}:{name}'


    def send_trigger(self):
        """Publishes one trigger to the relay, if a url is configured."""
        LOGGER.info(f"{self.lpfx} switch {self.device.display_name}")
        if self.device.trigger_url:
            self.controller.cmd_publish(
                self.device.trigger_url, self.device.trigger_method, self.device.trigger_payload
            )
        else:
            LOGGER.warning(f"{self.lpfx} no trigger url, pulse dropped")


    def handle_on_get(self, callback: Callable):
        LOGGER.debug(f"{self.lpfx} GET On")
        callback(None, ON)


    def handle_on_set(self, value, callback: Callable):
        """Sends one trigger regardless of value and acknowledges at once."""
        LOGGER.debug(f"{self.lpfx} SET On: {value}")
        try:
            self.send_trigger()
        except Exception as ex:
            LOGGER.error(f"{self.lpfx} trigger failed: {ex}", exc_info=True)
            callback(ex)
            return
        callback(None)


    def cmd_on(self, command: Optional[dict] = None):
        """
        Handles the 'DON' command from the ISY controller.

        Args:
            command: The command dictionary from the ISY.
        """
        LOGGER.info(f"{self.lpfx}, {command}")
        self.handle_on_set(1, self._log_result)
        LOGGER.debug("Exit")


    def cmd_off(self, command: Optional[dict] = None):
        """
        Handles the 'DOF' command; a stateless switch triggers the same way.

        Args:
            command: The command dictionary from the ISY.
        """
        LOGGER.info(f"{self.lpfx}, {command}")
        self.handle_on_set(0, self._log_result)
        LOGGER.debug("Exit")


    def query(self, command: Optional[dict] = None):
        LOGGER.info(f"{self.lpfx}, {command}")
        self.setDriver("ST", ON)
        self.reportDrivers()
        LOGGER.debug("Exit")


    def _log_result(self, error=None):
        if error is not None:
            LOGGER.error(f"{self.lpfx} command failed: {error}")


    hint = '0x01040200'
    # home, relay, on/off power strip
    # Hints See: https://github.com/UniversalDevicesInc/hints


    """
    UOM 2 is boolean so the ISY will display 'True/False'
    """
    drivers = [
        {"driver": "ST", "value": ON, "uom": 2, "name": "Status"}
    ]


    commands = {
        "DON": cmd_on,
        "DOF": cmd_off,
        'QUERY': query,
    }
