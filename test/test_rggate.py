"""
Comprehensive test suite for RGGate node.

Tests cover:
- Initialization
- Position payload parsing and rejection
- MQTT position updates driving the state machine
- Driver refresh on state changes
- Callback style get/set accessors
- Command handlers (OPEN/CLOSE/QUERY)
- Trigger publishing through the controller
"""

import pytest
from unittest.mock import Mock
from nodes.RGGate import RGGate, parse_position
from nodes.GateDevice import GateDevice
from nodes.GateState import (
    GateStateMachine,
    DOOR_STATE_OPEN,
    DOOR_STATE_CLOSED,
    DOOR_STATE_OPENING,
    DOOR_STATE_CLOSING,
    PULSE_DELAY,
)


class FakeTimer:
    """Stand-in for threading.Timer fired by hand."""

    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.daemon = False
        self.cancelled = False

    def start(self):
        pass

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.function()


def make_device(**overrides):
    config = {
        "key": "gate/front/position",
        "type": "gate",
        "displayName": "Front Gate",
        "triggerUrl": "http://relay.local/toggle",
        "triggerMethod": "POST",
        "triggerPayload": "pulse",
    }
    config.update(overrides)
    return GateDevice.from_config(config)


@pytest.fixture
def controller():
    controller = Mock()
    controller.cmd_publish = Mock(return_value=True)
    return controller


@pytest.fixture
def gate(controller):
    """Create a RGGate whose state machine uses fake timers."""
    poly = Mock()
    poly.db_getNodeDrivers = Mock(return_value=[])
    poly.subscribe = Mock()
    poly.getNode.return_value = controller

    node = RGGate(poly, "controller", "gate1", "Front Gate", make_device())
    node.gate = GateStateMachine(node.lpfx, node.send_trigger, timer_factory=FakeTimer)
    node.gate.add_listener(node.update_drivers)
    node.setDriver = Mock()
    node.reportDrivers = Mock()
    return node


class TestParsePosition:
    """Tests for parse_position."""

    def test_plain_integer(self):
        assert parse_position("42") == 42

    def test_whitespace(self):
        assert parse_position(" 17\n") == 17

    def test_negative(self):
        assert parse_position("-3") == -3

    def test_fraction_truncated(self):
        assert parse_position("42.9") == 42

    def test_bytes(self):
        assert parse_position(b"55") == 55

    def test_int_passthrough(self):
        assert parse_position(7) == 7

    def test_json_object(self):
        assert parse_position('{"position": 63}') == 63

    def test_json_string_position(self):
        assert parse_position('{"position": "12"}') == 12

    @pytest.mark.parametrize("payload", ["", "open", "abc12", '{"state": "open"}', "{bad", "inf", "nan", True])
    def test_rejects_non_numeric(self, payload):
        with pytest.raises(ValueError):
            parse_position(payload)


class TestRGGateInitialization:
    """Tests for RGGate initialization."""

    def test_initialization_basic(self, controller):
        poly = Mock()
        poly.db_getNodeDrivers = Mock(return_value=[])
        poly.subscribe = Mock()
        poly.getNode.return_value = controller
        device = make_device()

        node = RGGate(poly, "controller", "gate1", "Front Gate", device)

        assert node.id == "rggate"
        assert node.address == "gate1"
        assert node.name == "Front Gate"
        assert node.lpfx == "gate1:Front Gate"
        assert node.device is device
        assert node.controller is controller
        assert isinstance(node.gate, GateStateMachine)
        assert node.gate.current_state == DOOR_STATE_CLOSED
        poly.getNode.assert_called_once_with("controller")

    def test_drivers_and_commands(self):
        drivers = {d["driver"]: d for d in RGGate.drivers}
        assert drivers["ST"]["value"] == DOOR_STATE_CLOSED
        assert drivers["ST"]["uom"] == 25
        assert drivers["GV0"]["uom"] == 25
        assert drivers["GV1"]["uom"] == 2
        assert set(RGGate.commands) == {"QUERY", "OPEN", "CLOSE"}


class TestRGGateUpdateInfo:
    """Tests for updateInfo (position feed)."""

    def test_opening_sample(self, gate):
        gate.updateInfo("50", "gate/front/position")
        gate.updateInfo("30", "gate/front/position")

        assert gate.gate.current_state == DOOR_STATE_OPENING
        gate.setDriver.assert_any_call("ST", DOOR_STATE_OPENING)
        gate.setDriver.assert_any_call("GV0", DOOR_STATE_OPEN)

    def test_settle_updates_drivers(self, gate):
        gate.updateInfo("50", "t")
        gate.updateInfo("30", "t")
        gate.setDriver.reset_mock()

        gate.gate._settle_timer.fire()

        gate.setDriver.assert_any_call("ST", DOOR_STATE_OPEN)
        gate.setDriver.assert_any_call("GV0", DOOR_STATE_OPEN)
        gate.setDriver.assert_any_call("GV1", 0)

    def test_obstruction_driver(self, gate):
        for sample in ("50", "30", "40"):
            gate.updateInfo(sample, "t")

        gate.setDriver.assert_any_call("GV1", 1)
        assert gate.gate.current_state == DOOR_STATE_CLOSING

    def test_malformed_payload_rejected(self, gate):
        gate.updateInfo("20", "t")

        gate.updateInfo("garbage", "t")

        assert gate.gate.last_position == 20
        assert gate.gate.current_state == DOOR_STATE_CLOSING

    def test_malformed_payload_no_driver_update(self, gate):
        gate.updateInfo("garbage", "t")

        gate.setDriver.assert_not_called()


class TestRGGateCallbacks:
    """Tests for callback style accessors."""

    def test_current_state_get_syncs_target(self, gate):
        gate.gate.current_state = DOOR_STATE_CLOSING
        gate.gate.target_state = DOOR_STATE_OPEN
        callback = Mock()

        gate.handle_current_door_state_get(callback)

        callback.assert_called_once_with(None, DOOR_STATE_CLOSING)
        assert gate.gate.target_state == DOOR_STATE_CLOSED

    def test_target_state_get(self, gate):
        callback = Mock()

        gate.handle_target_door_state_get(callback)

        callback.assert_called_once_with(None, DOOR_STATE_CLOSED)

    def test_obstruction_get(self, gate):
        callback = Mock()

        gate.handle_obstruction_detected_get(callback)

        callback.assert_called_once_with(None, False)

    def test_target_set_open_publishes_once(self, gate, controller):
        callback = Mock()

        gate.handle_target_door_state_set(DOOR_STATE_OPEN, callback)

        callback.assert_called_once_with(None, None)
        controller.cmd_publish.assert_called_once_with(
            "http://relay.local/toggle", "POST", "pulse"
        )
        gate.setDriver.assert_called_with("GV0", DOOR_STATE_OPEN)

    def test_target_set_same_value_no_publish(self, gate, controller):
        callback = Mock()

        gate.handle_target_door_state_set(DOOR_STATE_CLOSED, callback)

        callback.assert_called_once_with(None, None)
        controller.cmd_publish.assert_not_called()

    def test_target_set_error_goes_to_callback(self, gate):
        gate.gate.set_target_state = Mock(side_effect=RuntimeError("boom"))
        callback = Mock()

        gate.handle_target_door_state_set(DOOR_STATE_OPEN, callback)

        callback.assert_called_once()
        error, value = callback.call_args[0]
        assert isinstance(error, RuntimeError)
        assert value is None

    def test_target_set_bad_value_goes_to_callback(self, gate):
        callback = Mock()

        gate.handle_target_door_state_set("open", callback)

        assert isinstance(callback.call_args[0][0], ValueError)


class TestRGGateCommands:
    """Tests for command handlers."""

    def test_open_command(self, gate, controller):
        gate.dr_open({"cmd": "OPEN"})

        assert gate.gate.target_state == DOOR_STATE_OPEN
        controller.cmd_publish.assert_called_once()

    def test_close_while_opening_pulses_twice(self, gate, controller):
        gate.updateInfo("50", "t")
        gate.updateInfo("30", "t")
        gate.gate.get_current_state()

        gate.dr_close({"cmd": "CLOSE"})

        assert controller.cmd_publish.call_count == 1
        pulse = gate.gate._pulse_timer
        assert pulse.interval == PULSE_DELAY
        pulse.fire()
        assert controller.cmd_publish.call_count == 2

    def test_close_when_open_pulses_once(self, gate, controller):
        gate.gate.current_state = DOOR_STATE_OPEN
        gate.gate.target_state = DOOR_STATE_OPEN

        gate.dr_close()

        controller.cmd_publish.assert_called_once()
        assert gate.gate._pulse_timer is None

    def test_query_refreshes_and_reports(self, gate):
        gate.gate.current_state = DOOR_STATE_OPEN

        gate.query()

        gate.setDriver.assert_any_call("ST", DOOR_STATE_OPEN)
        gate.setDriver.assert_any_call("GV0", DOOR_STATE_OPEN)
        gate.reportDrivers.assert_called_once()

    def test_missing_url_drops_pulse(self, gate, controller):
        gate.device = make_device(triggerUrl=None)

        gate.dr_open()

        controller.cmd_publish.assert_not_called()
        assert gate.gate.target_state == DOOR_STATE_OPEN

    def test_shutdown_cancels_timers(self, gate):
        gate.updateInfo("10", "t")
        settle = gate.gate._settle_timer

        gate.shutdown()

        assert settle.cancelled is True
