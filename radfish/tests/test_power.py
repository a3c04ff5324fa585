import unittest
from unittest.mock import MagicMock, patch

from radfish.power import PowerConvergence, PowerTarget, targets_for


class PowerConvergenceTests(unittest.TestCase):
    def setUp(self):
        patcher = patch("radfish.power.time.sleep")
        self.sleep = patcher.start()
        self.addCleanup(patcher.stop)
        self.query = MagicMock()
        self.power = PowerConvergence(self.query, interval=2, attempts=30, reboot_attempts=60, settle=5)

    def test_target_reached_after_transient_failures(self):
        self.query.side_effect = [ConnectionError("BMC busy"), "Off", "On"]

        self.assertTrue(self.power.wait_for_state(PowerTarget.ON))

        self.assertEqual(self.query.call_count, 3)
        self.sleep.assert_called_with(2)
        self.assertEqual(self.sleep.call_count, 3)

    def test_budget_exhaustion_is_not_an_error(self):
        self.query.return_value = "On"

        self.assertFalse(self.power.wait_for_state(PowerTarget.OFF, attempts=5))

        self.assertEqual(self.query.call_count, 5)

    def test_zero_attempts_is_honoured(self):
        power = PowerConvergence(self.query, interval=0, attempts=0, reboot_attempts=0)

        self.assertEqual((power.attempts, power.reboot_attempts), (0, 0))
        self.assertFalse(power.wait_for_state(PowerTarget.ON))
        self.assertFalse(power.wait_for_restart())
        self.assertFalse(self.power.wait_for_state(PowerTarget.ON, attempts=0))

        self.query.assert_not_called()

    def test_restart_needs_off_before_on(self):
        self.query.side_effect = ["On", "Off", RuntimeError("rebooting"), "On"]

        self.assertTrue(self.power.wait_for_restart())

        self.assertEqual(self.query.call_count, 4)

    def test_restart_never_going_down_uses_full_budget(self):
        self.query.return_value = "On"

        self.assertFalse(self.power.wait_for_restart())

        self.assertEqual(self.query.call_count, 60)

    def test_converge_follows_reset_type(self):
        self.query.side_effect = ["Off"]
        self.assertTrue(self.power.converge("GracefulShutdown"))

        self.query.reset_mock()
        self.query.side_effect = ["Off", "On"]
        self.assertTrue(self.power.converge("ForceRestart"))
        self.assertEqual(self.query.call_count, 2)

    def test_converge_unknown_reset_type_does_not_poll(self):
        self.assertFalse(self.power.converge("Nmi"))

        self.query.assert_not_called()

    def test_converge_fallback_targets(self):
        self.query.side_effect = ["On", "Off"]

        self.assertTrue(self.power.converge("PushPowerButton", fallback=(PowerTarget.OFF,)))

    def test_settle_sleeps_settle_interval(self):
        self.power.settle()

        self.sleep.assert_called_once_with(5)

    def test_targets_for(self):
        self.assertEqual(targets_for("On"), (PowerTarget.ON,))
        self.assertEqual(targets_for("ForceOff"), (PowerTarget.OFF,))
        self.assertEqual(targets_for("GracefulRestart"), (PowerTarget.OFF, PowerTarget.ON))
        self.assertEqual(targets_for("Nmi"), ())


if __name__ == "__main__":
    unittest.main()
