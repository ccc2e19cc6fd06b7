"""Unit tests for the notification decision engine."""

import unittest
from datetime import datetime, timedelta
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from package_detector.models.detection import Classification, DecisionReason, MuteState
from package_detector.services.decision_engine import (
    decide, is_match, is_muted, NotificationDecisionEngine
)

T0 = datetime(2024, 5, 1, 12, 0, 0)


class TestDecide(unittest.TestCase):
    """Test cases for decide()."""

    def setUp(self):
        """Set up test fixtures."""
        self.mute_state = MuteState()
        self.package = [Classification("package", 0.80)]

    def run_decide(self, results, now, force_notify=False, mute_minutes=60, threshold=75):
        return decide(results, force_notify, "package", threshold, self.mute_state, now, mute_minutes)

    def test_mute_window(self):
        """Detect at t=0, stay quiet at 30 min, notify again at 61 min."""
        first = self.run_decide(self.package, T0)
        self.assertEqual(len(first), 1)
        self.assertEqual(first[0].reason, DecisionReason.DETECTED)
        self.assertTrue(first[0].should_notify)
        self.assertEqual(self.mute_state.last_notified_at, T0)

        muted = self.run_decide(self.package, T0 + timedelta(minutes=30))
        self.assertEqual(muted, [])
        self.assertEqual(self.mute_state.last_notified_at, T0)

        later = T0 + timedelta(minutes=61)
        again = self.run_decide(self.package, later)
        self.assertEqual(len(again), 1)
        self.assertEqual(again[0].reason, DecisionReason.DETECTED)
        self.assertEqual(self.mute_state.last_notified_at, later)

    def test_mute_window_edge_is_exclusive(self):
        """Exactly at the end of the mute window is still muted."""
        self.run_decide(self.package, T0)
        self.assertEqual(self.run_decide(self.package, T0 + timedelta(minutes=60)), [])

    def test_threshold_is_strict(self):
        """Confidence equal to the threshold does not notify."""
        at_threshold = [Classification("package", 0.5)]
        self.assertEqual(self.run_decide(at_threshold, T0, threshold=50), [])
        self.assertIsNone(self.mute_state.last_notified_at)

        above = [Classification("package", 0.5001)]
        decisions = self.run_decide(above, T0, threshold=50)
        self.assertEqual(len(decisions), 1)
        self.assertEqual(decisions[0].reason, DecisionReason.DETECTED)

    def test_threshold_equal_confidence_never_matches(self):
        """Confidence equal to any whole-number threshold does not notify."""
        for threshold in range(0, 101):
            with self.subTest(threshold=threshold):
                results = [Classification("package", threshold / 100)]
                self.assertEqual(
                    decide(results, False, "package", threshold, MuteState(), T0, 60), [])

    def test_threshold_just_above_matches(self):
        for threshold in range(0, 100):
            with self.subTest(threshold=threshold):
                results = [Classification("package", threshold / 100 + 0.001)]
                decisions = decide(results, False, "package", threshold, MuteState(), T0, 60)
                self.assertEqual([d.reason for d in decisions], [DecisionReason.DETECTED])

    def test_label_must_match(self):
        """Other labels never notify, whatever their confidence."""
        results = [Classification("empty", 0.99), Classification("Package", 0.99)]
        self.assertEqual(self.run_decide(results, T0), [])

    def test_forced_with_empty_results(self):
        """A forced startup cycle notifies even with no results."""
        decisions = self.run_decide([], T0, force_notify=True)
        self.assertEqual(len(decisions), 1)
        self.assertEqual(decisions[0].reason, DecisionReason.FORCED_STARTUP)
        self.assertEqual(decisions[0].label, "")
        self.assertEqual(decisions[0].confidence, 0.0)

    def test_forced_once_per_cycle(self):
        """Many non-matching results still produce a single forced decision."""
        results = [Classification("empty", 0.9), Classification("car", 0.4), Classification("package", 0.1)]
        decisions = self.run_decide(results, T0, force_notify=True)
        self.assertEqual(len(decisions), 1)
        self.assertEqual(decisions[0].reason, DecisionReason.FORCED_STARTUP)
        self.assertEqual(decisions[0].label, "empty")
        self.assertAlmostEqual(decisions[0].confidence, 0.9)

    def test_forced_ignores_mute_and_does_not_update_it(self):
        """Forced notifications bypass the mute window and leave it untouched."""
        self.mute_state.last_notified_at = T0
        decisions = self.run_decide([Classification("empty", 0.9)], T0 + timedelta(minutes=1), force_notify=True)
        self.assertEqual(len(decisions), 1)
        self.assertEqual(decisions[0].reason, DecisionReason.FORCED_STARTUP)
        self.assertEqual(self.mute_state.last_notified_at, T0)

    def test_forced_with_detection_sends_detection(self):
        """A detection during a forced cycle is reported as a detection."""
        decisions = self.run_decide(self.package, T0, force_notify=True)
        self.assertEqual([d.reason for d in decisions], [DecisionReason.DETECTED])

    def test_duplicate_matches_in_one_cycle(self):
        """The mute window applies within a cycle too."""
        results = [Classification("package", 0.9), Classification("package", 0.85)]
        decisions = self.run_decide(results, T0)
        self.assertEqual(len(decisions), 1)
        self.assertAlmostEqual(decisions[0].confidence, 0.9)

    def test_helpers(self):
        """Test is_match and is_muted."""
        self.assertTrue(is_match(Classification("package", 0.76), "package", 75))
        self.assertFalse(is_match(Classification("package", 0.75), "package", 75))
        self.assertFalse(is_muted(MuteState(), T0, 60))
        self.assertTrue(is_muted(MuteState(T0), T0 + timedelta(minutes=59), 60))
        self.assertFalse(is_muted(MuteState(T0), T0 + timedelta(minutes=61), 60))


class TestNotificationDecisionEngine(unittest.TestCase):
    """Test cases for NotificationDecisionEngine."""

    def test_engine_keeps_mute_state(self):
        """The engine remembers notifications between cycles."""
        engine = NotificationDecisionEngine("package", 75, 60)
        self.assertIsNone(engine.muted_until())

        results = [Classification("package", 0.8)]
        self.assertEqual(len(engine.evaluate(results, now=T0)), 1)
        self.assertEqual(engine.muted_until(), T0 + timedelta(minutes=60))
        self.assertEqual(engine.evaluate(results, now=T0 + timedelta(minutes=5)), [])

    def test_mute_state_starts_empty(self):
        """A new engine is never muted."""
        engine = NotificationDecisionEngine("package", 75, 60)
        self.assertIsNone(engine.mute_state.last_notified_at)


if __name__ == '__main__':
    unittest.main()
