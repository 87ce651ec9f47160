"""
remote-gateway-pg3x NodeServer/Plugin for EISY/Polisy

(C) 2025

node RGGate

Gate / garage door opener driven by a remote relay. Position samples arrive
over MQTT on the gate's key topic; open and close requests become HTTP
relay pulses through the controller.
"""

# std libraries
import json
from typing import Callable

# external libraries
from udi_interface import Node, LOGGER

# personal libraries
from nodes.GateDevice import GateDevice
from nodes.GateState import (
    GateStateMachine,
    DOOR_STATE_OPEN,
    DOOR_STATE_CLOSED,
)


def parse_position(payload) -> int:
    """Converts a position feed payload into an integer sample.

    Accepts plain numbers ("42", " 42 ", "42.7") and JSON objects carrying
    a 'position' field.

    Raises:
        ValueError: if no number can be read from the payload.
    """
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8")
    if isinstance(payload, bool):
        raise ValueError(f"not a position: {payload!r}")
    if isinstance(payload, (int, float)):
        return int(payload)
    text = str(payload).strip()
    if text.startswith("{"):
        try:
            data = json.loads(text)
        except json.JSONDecodeError as ex:
            raise ValueError(f"not a position: {payload!r}") from ex
        if "position" not in data:
            raise ValueError(f"no position in {payload!r}")
        return parse_position(data["position"])
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return int(float(text))
    except OverflowError as ex:
        raise ValueError(f"not a position: {payload!r}") from ex


class RGGate(Node):
    """Node representing a relay driven gate."""
    id = 'rggate'

    def __init__(self, polyglot, primary, address, name, device: GateDevice):
        """Initializes the RGGate node.

        Args:
            polyglot: Reference to the Polyglot interface.
            primary: The address of the parent node.
            address: The address of this node.
            name: The name of this node.
            device: Immutable configuration of this gate.
        """
        super().__init__(polyglot, primary, address, name)
        self.controller = self.poly.getNode(self.primary)
        self.lpfx = f'{address}:{name}'
        self.device = device
        self.gate = GateStateMachine(self.lpfx, self.send_trigger)
        self.gate.add_listener(self.update_drivers)


    def updateInfo(self, payload: str, topic: str):
        """Feeds a position sample from the MQTT feed to the state machine."""
        LOGGER.info(f"{self.lpfx} topic:{topic}, payload:{payload}")
        try:
            position = parse_position(payload)
        except (ValueError, TypeError) as ex:
            LOGGER.error(f"{self.lpfx} rejected position payload: {ex}")
            return
        self.gate.on_position_update(position)
        LOGGER.debug(f"{self.lpfx} Exit updateInfo")


    def send_trigger(self):
        """Publishes one relay pulse for this gate."""
        LOGGER.info(f"{self.lpfx} switch {self.device.display_name}")
        if self.device.trigger_url:
            self.controller.cmd_publish(
                self.device.trigger_url, self.device.trigger_method, self.device.trigger_payload
            )
        else:
            LOGGER.warning(f"{self.lpfx} no trigger url, pulse dropped")


    def update_drivers(self):
        """Reads the gate through its read path and mirrors it to the drivers."""
        self.setDriver("ST", self.gate.get_current_state())
        self.setDriver("GV0", self.gate.get_target_state())
        self.setDriver("GV1", int(self.gate.get_obstruction_detected()))


    def shutdown(self):
        self.gate.shutdown()


    # callback style accessors, callback(error, value) exactly once
    def handle_current_door_state_get(self, callback: Callable):
        self._complete(callback, self.gate.get_current_state)


    def handle_target_door_state_get(self, callback: Callable):
        value = self.gate.get_target_state()
        LOGGER.info(f"{self.lpfx} GET target state: {value}")
        callback(None, value)


    def handle_target_door_state_set(self, value, callback: Callable):
        LOGGER.info(f"{self.lpfx} SET target state: {value}")
        self._complete(callback, self._set_target, value)


    def handle_obstruction_detected_get(self, callback: Callable):
        callback(None, self.gate.get_obstruction_detected())


    def _set_target(self, value):
        self.gate.set_target_state(int(value))
        self.setDriver("GV0", self.gate.get_target_state())


    def _complete(self, callback: Callable, func: Callable, *args):
        try:
            value = func(*args)
        except Exception as ex:
            LOGGER.error(f"{self.lpfx} {func.__name__} failed: {ex}", exc_info=True)
            callback(ex, None)
            return
        callback(None, value)


    def _log_result(self, error, _value=None):
        if error is not None:
            LOGGER.error(f"{self.lpfx} command failed: {error}")


    def dr_open(self, command=None):
        """Handles the 'OPEN' command to open the gate."""
        LOGGER.info(f"{self.lpfx} {command}")
        self.handle_target_door_state_set(DOOR_STATE_OPEN, self._log_result)
        LOGGER.debug(f"{self.lpfx} Exit dr_open")


    def dr_close(self, command=None):
        """Handles the 'CLOSE' command to close the gate."""
        LOGGER.info(f"{self.lpfx} {command}")
        self.handle_target_door_state_set(DOOR_STATE_CLOSED, self._log_result)
        LOGGER.debug(f"{self.lpfx} Exit dr_close")


    def query(self, command=None):
        """Handles the 'QUERY' command from ISY.

        Refreshes drivers from the gate and reports them all.
        """
        LOGGER.info(f"{self.lpfx} {command}")
        self.update_drivers()
        self.reportDrivers()
        LOGGER.debug(f"{self.lpfx} Exit query")


    # UOMs of interest:
    # 2: boolean
    # 25: index
    #
    # ST: current door state 0 open, 1 closed, 2 opening, 3 closing
    # GV0: target door state 0 open, 1 closed
    # GV1: obstruction
    drivers = [
        {"driver": "ST", "value": DOOR_STATE_CLOSED, "uom": 25, "name": "Door State"},
        {"driver": "GV0", "value": DOOR_STATE_CLOSED, "uom": 25, "name": "Target State"},
        {"driver": "GV1", "value": 0, "uom": 2, "name": "Obstruction"},
    ]


    """
    This is a dictionary of commands. If ISY sends a command to the NodeServer,
    this tells it which method to call.
    """
    commands = {
        "QUERY": query,
        "OPEN": dr_open,
        "CLOSE": dr_close,
    }
