"""Tests for the logging setup."""

import logging
import os
import shutil
import sys
import tempfile
import unittest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from package_detector.logging_config import get_logger, log_with_context, setup_logging


class TestLoggingConfig(unittest.TestCase):
    """Test cases for setup_logging and component loggers."""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        # Leave a console-only configuration behind for other tests
        setup_logging("WARNING")
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_component_logger_namespace(self):
        logger = get_logger("image_fetcher")
        self.assertEqual(logger.name, "package_detector.image_fetcher")
        self.assertIs(get_logger("image_fetcher"), logger)

    def test_log_files_written(self):
        """A log directory gets a main log and an error-only log."""
        manager = setup_logging("DEBUG", self.test_dir)
        logger = get_logger("test_component")

        logger.info("cycle finished")
        logger.error("fetch failed")
        for handler in logging.getLogger("package_detector").handlers:
            handler.flush()

        with open(os.path.join(self.test_dir, "package_detector.log")) as f:
            main_log = f.read()
        with open(os.path.join(self.test_dir, "errors.log")) as f:
            error_log = f.read()

        self.assertIn("cycle finished", main_log)
        self.assertIn("fetch failed", main_log)
        self.assertNotIn("cycle finished", error_log)
        self.assertIn("fetch failed", error_log)

        stats = manager.get_log_stats()
        self.assertEqual(stats["log_level"], "DEBUG")
        self.assertIn("errors.log", stats["log_files"])

    def test_debug_reaches_file_log_at_info_console_level(self):
        """The console level does not filter what the main log file receives."""
        setup_logging("INFO", self.test_dir)
        logger = get_logger("test_component")

        logger.debug("motion line parsed")
        for handler in logging.getLogger("package_detector").handlers:
            handler.flush()

        with open(os.path.join(self.test_dir, "package_detector.log")) as f:
            self.assertIn("motion line parsed", f.read())

    def test_context_in_file_log(self):
        """Structured context is appended to file log lines."""
        setup_logging("INFO", self.test_dir)
        logger = get_logger("test_component")

        log_with_context(logger, logging.INFO, "Detection cycle finished", {"source": "timer"})
        for handler in logging.getLogger("package_detector").handlers:
            handler.flush()

        with open(os.path.join(self.test_dir, "package_detector.log")) as f:
            self.assertIn("source", f.read())


if __name__ == '__main__':
    unittest.main()
