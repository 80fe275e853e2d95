"""
Tests for unified logging.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

import logging

import pytest

from nested_set.core.exceptions import ConsistencyViolation, NodeNotFoundError
from nested_set.core.service import NestedSetService
from nested_set.core.store.memory import InMemoryNodeStore
from nested_set.logging import (
    ROOT_LOGGER_NAME,
    UnifiedFormatter,
    configure_logging,
    create_unified_formatter,
    importance_from_level,
    install_unified_record_factory,
)


@pytest.fixture
def restore_logging():
    """Remove handlers installed by configure_logging after the test."""
    factory = logging.getLogRecordFactory()
    yield
    logging.setLogRecordFactory(factory)
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_nested_set_handler", False):
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(logging.NOTSET)


def _record(level=logging.INFO, msg="hello"):
    return logging.LogRecord("nested_set.test", level, __file__, 1, msg, None, None)


class TestImportance:
    """Test importance mapping."""

    @pytest.mark.parametrize(
        "level, expected",
        [("DEBUG", 2), ("info", 4), ("WARNING", 6), ("ERROR", 8), ("CRITICAL", 10), ("bogus", 4), ("", 4)],
    )
    def test_importance_from_level(self, level, expected):
        assert importance_from_level(level) == expected


class TestUnifiedFormatter:
    """Test UnifiedFormatter output."""

    def test_format_includes_importance_and_logger(self):
        formatter = create_unified_formatter()
        line = formatter.format(_record(logging.WARNING, "shifted"))
        parts = [part.strip() for part in line.split("|")]
        assert parts[1] == "WARNING"
        assert parts[2] == "6"
        assert parts[3] == "nested_set.test"
        assert parts[4] == "shifted"

    def test_explicit_importance_kept(self):
        record = _record()
        record.importance = 9
        line = UnifiedFormatter(fmt="%(importance)s").format(record)
        assert line == "9"

    def test_record_factory(self, restore_logging):
        install_unified_record_factory()
        record = logging.getLogRecordFactory()(
            "x", logging.ERROR, __file__, 1, "m", None, None
        )
        assert record.importance == 8


class TestConfigureLogging:
    """Test configure_logging."""

    def test_installs_handlers(self, restore_logging, tmp_path):
        log_file = tmp_path / "logs" / "engine.log"
        logger = configure_logging("debug", str(log_file))
        assert logger.name == ROOT_LOGGER_NAME
        assert logger.level == logging.DEBUG
        ours = [h for h in logger.handlers if getattr(h, "_nested_set_handler", False)]
        assert len(ours) == 2

        logging.getLogger("nested_set.core.service").info("created node")
        for handler in ours:
            handler.flush()
        content = log_file.read_text(encoding="utf-8")
        assert "created node" in content
        assert "| INFO     | 4 | nested_set.core.service |" in content

    def test_reconfigure_replaces_handlers(self, restore_logging):
        configure_logging("INFO")
        logger = configure_logging("WARNING")
        ours = [h for h in logger.handlers if getattr(h, "_nested_set_handler", False)]
        assert len(ours) == 1
        assert logger.level == logging.WARNING

    def test_installs_record_factory_once(self, restore_logging):
        configure_logging("INFO")
        factory = logging.getLogRecordFactory()
        assert getattr(factory, "_nested_set_factory", False)

        configure_logging("INFO")
        assert logging.getLogRecordFactory() is factory
        record = factory("x", logging.WARNING, __file__, 1, "m", None, None)
        assert record.importance == 6


class TestRollbackLogging:
    """Rolled-back units are logged with an importance by error family."""

    def test_importance_by_error_family(self, restore_logging, caplog):
        configure_logging("INFO")
        service = NestedSetService(InMemoryNodeStore())
        root = service.create_node(None, {"name": "Root"})
        service.create_node(root, {"name": "Child"})
        service.store.delete_all([root])

        with caplog.at_level(logging.ERROR, logger=ROOT_LOGGER_NAME):
            with pytest.raises(NodeNotFoundError):
                service.create_node(999)
            with pytest.raises(ConsistencyViolation):
                service.rebuild()

        rolled_back = [r for r in caplog.records if "rolled back" in r.getMessage()]
        assert [r.importance for r in rolled_back] == [8, 9]
        assert rolled_back[1].getMessage().startswith("rebuild rolled back")
