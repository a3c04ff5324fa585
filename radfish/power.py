"""
Power-state convergence.

Vendor power commands return as soon as the BMC accepts them and the
reported state lags behind. PowerConvergence polls the observed state until
it reaches the requested target or an attempt budget runs out. The BMC may
drop off the network mid-transition, so failed polls are logged and retried.
Running out of attempts is not an error; callers get the vendor command's
own result either way.
"""

import logging
import time
from enum import Enum
from typing import Callable, Optional, Tuple

from .config import settings


class PowerTarget(str, Enum):
    ON = "On"
    OFF = "Off"


# Reset type -> power states to observe, in order
POWER_TARGETS = {
    "On": (PowerTarget.ON,),
    "ForceOn": (PowerTarget.ON,),
    "GracefulShutdown": (PowerTarget.OFF,),
    "ForceOff": (PowerTarget.OFF,),
    "GracefulRestart": (PowerTarget.OFF, PowerTarget.ON),
    "ForceRestart": (PowerTarget.OFF, PowerTarget.ON),
    "PowerCycle": (PowerTarget.OFF, PowerTarget.ON),
}

RESET_TYPES = ["On", "ForceOff", "GracefulShutdown", "GracefulRestart", "ForceRestart", "Nmi", "PushPowerButton"]


def targets_for(reset_type: str) -> Tuple[PowerTarget, ...]:
    """Power states a reset type should pass through. Unknown types yield ()."""
    return POWER_TARGETS.get(reset_type, ())


class PowerConvergence:
    """Polls observed power state until it matches a target."""

    def __init__(
        self,
        query_state: Callable[[], str],
        logger: Optional[logging.Logger] = None,
        interval: Optional[float] = None,
        attempts: Optional[int] = None,
        reboot_attempts: Optional[int] = None,
        settle: Optional[float] = None,
    ):
        """
        Args:
            query_state: Returns the current power state string ("On"/"Off")
            logger: Logger for progress and swallowed poll failures
            interval: Seconds slept before each poll
            attempts: Poll budget for a single transition
            reboot_attempts: Poll budget for a down-then-up transition
            settle: Seconds slept between the halves of a power cycle
        """
        self.query_state = query_state
        self.logger = logger or logging.getLogger(__name__)
        self.interval = settings.power_poll_interval if interval is None else interval
        self.attempts = settings.power_poll_attempts if attempts is None else attempts
        self.reboot_attempts = settings.reboot_poll_attempts if reboot_attempts is None else reboot_attempts
        self.settle_seconds = settings.power_cycle_settle if settle is None else settle

    def _poll(self) -> Optional[str]:
        time.sleep(self.interval)
        try:
            return self.query_state()
        except Exception as e:
            # BMC might be temporarily unavailable during power operations
            self.logger.debug(f"Waiting for BMC to respond: {e}")
            return None

    def wait_for_state(self, target: PowerTarget, attempts: Optional[int] = None) -> bool:
        """
        Poll until the observed state equals ``target``.

        Returns:
            bool: True if the target was observed within the budget
        """
        attempts = self.attempts if attempts is None else attempts
        for attempt in range(1, attempts + 1):
            if self._poll() == target.value:
                self.logger.info(f"Power state {target.value} reached after {attempt} poll(s)")
                return True
        self.logger.warning(f"Power state {target.value} not observed after {attempts} polls")
        return False

    def wait_for_restart(self, attempts: Optional[int] = None) -> bool:
        """
        Poll until the system has been seen Off and then On again.

        An On observation only counts once Off was seen at least once, so a
        BMC that still reports On right after the restart request does not
        end the wait early.

        Returns:
            bool: True if both transitions were observed within the budget
        """
        attempts = self.reboot_attempts if attempts is None else attempts
        went_down = False
        for attempt in range(1, attempts + 1):
            state = self._poll()
            if state == PowerTarget.OFF.value and not went_down:
                went_down = True
                self.logger.info(f"System went down after {attempt} poll(s)")
            elif went_down and state == PowerTarget.ON.value:
                self.logger.info(f"System back up after {attempt} poll(s)")
                return True
        self.logger.warning(f"Restart not observed after {attempts} polls (went_down={went_down})")
        return False

    def converge(self, reset_type: str, fallback: Tuple[PowerTarget, ...] = ()) -> bool:
        """
        Wait for whatever transition ``reset_type`` implies.

        Args:
            reset_type: Redfish reset type that was issued
            fallback: Targets to use when the reset type has no known mapping
        """
        targets = targets_for(reset_type) or fallback
        if len(targets) == 1:
            return self.wait_for_state(targets[0])
        if len(targets) == 2:
            return self.wait_for_restart()
        self.logger.debug(f"No observable power transition for reset type {reset_type}")
        return False

    def settle(self):
        """Pause between the off and on halves of a power cycle."""
        time.sleep(self.settle_seconds)
