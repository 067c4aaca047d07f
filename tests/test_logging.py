import logging
import unittest
from unittest.mock import patch

from practice_coach import run_server
from practice_coach.config import Config
from practice_coach.logging import BASE_LOGGER, _LevelColorFormatter, get_logger, route_server_logs


class LoggingTests(unittest.TestCase):
    def test_module_loggers_are_children_of_the_base(self) -> None:
        log = get_logger("session")
        self.assertEqual(log.name, f"{BASE_LOGGER}.session")
        self.assertTrue(logging.getLogger(BASE_LOGGER).handlers)

    def test_server_loggers_share_the_project_handler(self) -> None:
        route_server_logs(["uvicorn.test-route"])
        base = logging.getLogger(BASE_LOGGER)
        routed = logging.getLogger("uvicorn.test-route")
        self.assertEqual(routed.handlers, base.handlers)
        self.assertFalse(routed.propagate)
        self.assertEqual(routed.level, base.level)

    def test_color_does_not_leak_into_the_shared_record(self) -> None:
        record = logging.makeLogRecord({"name": "x", "levelno": logging.WARNING, "levelname": "WARNING", "msg": "hi"})
        line = _LevelColorFormatter(use_color=True).format(record)
        self.assertIn("\x1b[33mWARNING", line)
        self.assertEqual(record.levelname, "WARNING")
        self.assertNotIn("\x1b[", _LevelColorFormatter(use_color=False).format(record))

    def test_server_entry_point_keeps_routed_handlers(self) -> None:
        with patch.object(run_server.uvicorn, "run") as run:
            run_server.main()
        run.assert_called_once_with(
            "practice_coach.main:app", host=Config.HOST, port=Config.PORT, log_config=None
        )
        self.assertEqual(logging.getLogger("uvicorn.access").handlers, logging.getLogger(BASE_LOGGER).handlers)


if __name__ == "__main__":
    unittest.main()
