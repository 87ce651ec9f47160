"""
remote-gateway-pg3x NodeServer/Plugin for EISY/Polisy

(C) 2025

GateStateMachine

Infers gate motion from position samples and decides how many relay pulses
are needed to reach a requested target. A single relay pulse toggles the
motor, so a gate moving away from the target needs two pulses: one to
reverse it and one, after PULSE_DELAY, to start it towards the target.

All three timers are single slot per gate. Each timer callback checks that
it still owns its slot before acting, so a timer cancelled while already
running does nothing.
"""

# std libraries
from threading import Lock, Timer
from typing import Callable, List, Optional

# external libraries
from udi_interface import LOGGER

# personal libraries
pass

# Door states, encoded as the CurrentDoorState / TargetDoorState values
DOOR_STATE_OPEN = 0
DOOR_STATE_CLOSED = 1
DOOR_STATE_OPENING = 2
DOOR_STATE_CLOSING = 3

DOOR_STATE_NAMES = {
    DOOR_STATE_OPEN: "open",
    DOOR_STATE_CLOSED: "closed",
    DOOR_STATE_OPENING: "opening",
    DOOR_STATE_CLOSING: "closing",
}

# target implied by the observed state
TARGET_FOR_STATE = {
    DOOR_STATE_OPEN: DOOR_STATE_OPEN,
    DOOR_STATE_OPENING: DOOR_STATE_OPEN,
    DOOR_STATE_CLOSED: DOOR_STATE_CLOSED,
    DOOR_STATE_CLOSING: DOOR_STATE_CLOSED,
}

SETTLED_STATE = {
    DOOR_STATE_OPENING: DOOR_STATE_OPEN,
    DOOR_STATE_CLOSING: DOOR_STATE_CLOSED,
}

# (desired target, observed state) -> pulses; missing pairs need none
PULSES_NEEDED = {
    (DOOR_STATE_CLOSED, DOOR_STATE_OPEN): 1,
    (DOOR_STATE_CLOSED, DOOR_STATE_OPENING): 2,
    (DOOR_STATE_OPEN, DOOR_STATE_CLOSED): 1,
    (DOOR_STATE_OPEN, DOOR_STATE_CLOSING): 2,
}

# seconds
SETTLE_DELAY = 2.0
OBSTRUCTION_WINDOW = 3.0
PULSE_DELAY = 1.5


class GateStateMachine:
    """Runtime state of one gate.

    Args:
        name: Label used in log lines.
        trigger: Called with no arguments once per relay pulse.
        settle_delay: Seconds of input silence before a motion state settles.
        obstruction_window: Seconds an obstruction stays asserted.
        pulse_delay: Seconds between the two pulses of a reversal.
        timer_factory: Callable(interval, function) returning a startable,
            cancellable timer. Defaults to threading.Timer.
    """

    def __init__(self, name: str, trigger: Callable[[], None],
                 settle_delay: float = SETTLE_DELAY,
                 obstruction_window: float = OBSTRUCTION_WINDOW,
                 pulse_delay: float = PULSE_DELAY,
                 timer_factory: Callable = Timer):
        self.name = name
        self.trigger = trigger
        self.settle_delay = settle_delay
        self.obstruction_window = obstruction_window
        self.pulse_delay = pulse_delay
        self._timer_factory = timer_factory
        self._lock = Lock()
        self._listeners: List[Callable[[], None]] = []

        self.last_position = 0
        self.current_state = DOOR_STATE_CLOSED
        self.target_state = DOOR_STATE_CLOSED
        self.obstruction_detected = False

        self._settle_timer = None
        self._obstruction_timer = None
        self._pulse_timer = None


    def add_listener(self, listener: Callable[[], None]):
        """Registers a callable run after every change of inferred state."""
        self._listeners.append(listener)


    def on_position_update(self, position: int):
        """Processes one raw position sample.

        A lower value than the previous sample means opening, anything else
        means closing. Reversing to closing while opening flags an
        obstruction for the obstruction window.
        """
        with self._lock:
            self._cancel(self._settle_timer)
            previous = self.current_state
            state = DOOR_STATE_OPENING if position < self.last_position else DOOR_STATE_CLOSING

            if previous == DOOR_STATE_OPENING and state == DOOR_STATE_CLOSING:
                LOGGER.warning(f"{self.name} reversed while opening, obstruction detected")
                self.obstruction_detected = True
                self._cancel(self._obstruction_timer)
                self._obstruction_timer = self._schedule(self.obstruction_window, self._clear_obstruction)

            self._set_current(state)
            LOGGER.info(f"{self.name} {self.last_position} -> {position} = {DOOR_STATE_NAMES[state]}")
            self._settle_timer = self._schedule(self.settle_delay, self._settle)
            self.last_position = position
        self._notify()


    def get_current_state(self) -> int:
        """Returns the encoded current state and syncs the target to it.

        Open and opening imply an open target, closed and closing a closed
        one. This keeps the target honest without a separate settle event.
        """
        with self._lock:
            self.target_state = TARGET_FOR_STATE[self.current_state]
            return self.current_state


    def get_target_state(self) -> int:
        return self.target_state


    def get_obstruction_detected(self) -> bool:
        return self.obstruction_detected


    def set_target_state(self, value: int) -> int:
        """Requests a target (0 open, 1 closed) and pulses the relay as needed.

        Returns:
            int: number of pulses decided, 0 for a no-op.
        """
        desired = DOOR_STATE_OPEN if value == DOOR_STATE_OPEN else DOOR_STATE_CLOSED
        with self._lock:
            if desired == self.target_state:
                LOGGER.debug(f"{self.name} target already {DOOR_STATE_NAMES[desired]}")
                return 0
            self.target_state = desired
            pulses = PULSES_NEEDED.get((desired, self.current_state), 0)
            LOGGER.info(f"{self.name} target {DOOR_STATE_NAMES[desired]}, "
                        f"state {DOOR_STATE_NAMES[self.current_state]}, pulses {pulses}")

            # a newer request supersedes a pending second pulse
            self._cancel(self._pulse_timer)
            self._pulse_timer = None
            if pulses == 2:
                self._pulse_timer = self._schedule(self.pulse_delay, self._second_pulse)

        if pulses:
            self.trigger()
        return pulses


    def shutdown(self):
        """Cancels every pending timer."""
        with self._lock:
            for timer in (self._settle_timer, self._obstruction_timer, self._pulse_timer):
                self._cancel(timer)
            self._settle_timer = self._obstruction_timer = self._pulse_timer = None


    def _settle(self, timer):
        with self._lock:
            if timer is not self._settle_timer:
                return
            self._settle_timer = None
            LOGGER.info(f"{self.name} settled after {self.settle_delay}s at {self.last_position}")
            self._set_current(SETTLED_STATE.get(self.current_state, self.current_state))
            self.obstruction_detected = False
            self._cancel(self._obstruction_timer)
            self._obstruction_timer = None
        self._notify()


    def _clear_obstruction(self, timer):
        with self._lock:
            if timer is not self._obstruction_timer:
                return
            self._obstruction_timer = None
            self.obstruction_detected = False
            LOGGER.info(f"{self.name} obstruction cleared")
        self._notify()


    def _second_pulse(self, timer):
        with self._lock:
            if timer is not self._pulse_timer:
                return
            self._pulse_timer = None
        LOGGER.info(f"{self.name} second pulse")
        self.trigger()


    def _set_current(self, state: int):
        if self.current_state != state:
            LOGGER.info(f"{self.name} state {DOOR_STATE_NAMES[self.current_state]} -> {DOOR_STATE_NAMES[state]}")
            self.current_state = state


    def _schedule(self, delay: float, callback: Callable):
        timer = self._timer_factory(delay, lambda: callback(timer))
        timer.daemon = True
        timer.start()
        return timer


    @staticmethod
    def _cancel(timer: Optional[Timer]):
        if timer is not None:
            timer.cancel()


    def _notify(self):
        for listener in self._listeners:
            try:
                listener()
            except Exception as ex:
                LOGGER.error(f"{self.name} listener failed: {ex}", exc_info=True)
