import unittest

from sleep_policy_sim.errors import PolicyConfigError
from sleep_policy_sim.simulation.policy import DaySet, PolicySchedule, PowerPolicy


class TestPowerPolicy(unittest.TestCase):
    def setUp(self):
        self.p = PowerPolicy(timeout1=45, timeout2=120, boundary1=480, boundary2=1020, wake_time=None)

    def test_threshold_windows_are_half_open(self):
        self.assertEqual(self.p.threshold_at(0), 45)
        self.assertEqual(self.p.threshold_at(480), 45)
        self.assertEqual(self.p.threshold_at(481), 120)
        self.assertEqual(self.p.threshold_at(1020), 120)
        self.assertEqual(self.p.threshold_at(1021), 45)
        self.assertEqual(self.p.threshold_at(1439), 45)

    def test_segment_start_is_minute_after_each_boundary(self):
        starts = [m for m in range(1440) if self.p.is_segment_start(m)]
        self.assertEqual(starts, [481, 1021])

    def test_never_wake(self):
        self.assertFalse(any(self.p.wakes_at(m) for m in range(1440)))
        p = PowerPolicy(45, 120, 480, 1020, wake_time=480)
        self.assertTrue(p.wakes_at(480))
        self.assertFalse(p.wakes_at(481))

    def test_validation_errors(self):
        bad = [
            PowerPolicy(45, 120, 900, 100),
            PowerPolicy(45, 120, 480, 1440),
            PowerPolicy(45, 120, -1, 1020),
            PowerPolicy(0, 120, 480, 1020),
            PowerPolicy(45, 120, 480, 1020, wake_time=1440),
            PowerPolicy(45, 120, 480, 1020, wake_time=-5),
        ]
        for policy in bad:
            with self.subTest(policy=policy):
                with self.assertRaises(PolicyConfigError):
                    policy.validate()

    def test_equal_boundaries_allowed(self):
        PowerPolicy(45, 45, 480, 480).validate()

    def test_from_dict_maps_legacy_never_sentinel(self):
        p = PowerPolicy.from_dict({"timeout1": 45, "timeout2": 45, "boundary1": 480, "boundary2": 480, "wake_time": -1})
        self.assertIsNone(p.wake_time)

    def test_from_dict_rejects_values_that_are_not_plain_integers(self):
        base = {"timeout1": 45, "timeout2": 120, "boundary1": 480, "boundary2": 1020, "wake_time": 480}
        for key, value in [
            ("timeout1", 45.9),
            ("timeout2", 120.0),
            ("boundary1", "480"),
            ("boundary2", True),
            ("wake_time", True),
            ("wake_time", 480.5),
        ]:
            with self.subTest(key=key, value=value):
                with self.assertRaises(PolicyConfigError):
                    PowerPolicy.from_dict({**base, key: value})

    def test_from_dict_missing_or_bad_keys(self):
        with self.assertRaises(PolicyConfigError):
            PowerPolicy.from_dict({"timeout1": 45})
        with self.assertRaises(PolicyConfigError):
            PowerPolicy.from_dict({"timeout1": "soon", "timeout2": 1, "boundary1": 1, "boundary2": 2})


class TestPolicySchedule(unittest.TestCase):
    def test_policy_for_day_uses_weekend_set(self):
        wd = PowerPolicy(45, 480, 480, 1080, 480)
        we = PowerPolicy(10, 10, 480, 480)
        sched = PolicySchedule(weekday=wd, weekend=we, weekend_days=DaySet.of([1, 2]))
        self.assertIs(sched.policy_for_day(0), wd)
        self.assertIs(sched.policy_for_day(1), we)
        self.assertIs(sched.policy_for_day(2), we)
        self.assertIs(sched.policy_for_day(6), wd)

    def test_default_weekend_days(self):
        self.assertEqual(PolicySchedule().weekend_days.days, frozenset({1, 2}))

    def test_from_config(self):
        cfg = {
            "policy": {
                "weekend_days": [5, 6],
                "weekday": {"timeout1": 30, "timeout2": 60, "boundary1": 420, "boundary2": 1140, "wake_time": 420},
                "weekend": {"timeout1": 15, "timeout2": 15, "boundary1": 0, "boundary2": 0, "wake_time": None},
            }
        }
        sched = PolicySchedule.from_config(cfg)
        self.assertEqual(sched.weekend_days, DaySet.of([5, 6]))
        self.assertEqual(sched.weekday.wake_time, 420)
        self.assertEqual(sched.weekend.timeout1, 15)

    def test_from_config_rejects_bad_weekend_days(self):
        with self.assertRaises(PolicyConfigError):
            PolicySchedule.from_config({"policy": {"weekend_days": [7]}})
        with self.assertRaises(PolicyConfigError):
            PolicySchedule.from_config({"policy": {"weekend_days": 1}})
        with self.assertRaises(PolicyConfigError):
            PolicySchedule.from_config({"policy": {"weekend_days": [1.0, 2]}})

    def test_from_config_rejects_inverted_boundaries(self):
        cfg = {"policy": {"weekday": {"timeout1": 45, "timeout2": 120, "boundary1": 1000, "boundary2": 500}}}
        with self.assertRaises(PolicyConfigError):
            PolicySchedule.from_config(cfg)


if __name__ == "__main__":
    unittest.main()
