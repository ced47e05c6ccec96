import io
import logging
import pytest

from spend_sorter.logging_setup import LOG_LEVEL_ENV, configure_logging, get_logger

@pytest.fixture
def stream():
    buffer = io.StringIO()
    yield buffer
    # Hand the handler back to stderr so later tests don't write into a closed buffer
    configure_logging(stream=None)

@pytest.mark.unit
class TestConfigureLogging:

    def test_package_logs_reach_stream(self, stream):
        # Arrange
        configure_logging(logging.INFO, stream=stream)
        logger = get_logger("spend_sorter.sources.loader")

        # Act
        logger.info("Loaded %d categories", 2)
        logger.debug("hidden")

        # Assert
        output = stream.getvalue()
        assert "spend_sorter.sources.loader INFO Loaded 2 categories" in output
        assert "hidden" not in output

    def test_level_from_environment(self, stream, monkeypatch):
        monkeypatch.setenv(LOG_LEVEL_ENV, "debug")

        configure_logging(stream=stream)

        assert logging.getLogger("spend_sorter").level == logging.DEBUG

    def test_bad_environment_level_falls_back_to_warning(self, stream, monkeypatch):
        monkeypatch.setenv(LOG_LEVEL_ENV, "chatty")

        configure_logging(stream=stream)

        assert logging.getLogger("spend_sorter").level == logging.WARNING

    def test_switching_streams_flushes_the_old_one(self, stream, mocker):
        # Arrange
        old_stream = mocker.Mock()
        configure_logging(stream=old_stream)
        old_stream.flush.reset_mock()

        # Act
        configure_logging(stream=stream)
        get_logger("spend_sorter.cli").warning("after switch")

        # Assert
        old_stream.flush.assert_called()
        old_stream.write.assert_not_called()
        assert "after switch" in stream.getvalue()

    def test_repeat_calls_keep_one_handler(self, stream):
        configure_logging(stream=stream)
        configure_logging("ERROR", stream=stream)

        handlers = logging.getLogger("spend_sorter").handlers
        assert len(handlers) == 1
        assert logging.getLogger("spend_sorter").level == logging.ERROR
