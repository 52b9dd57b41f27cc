import logging

from chat_app.logs import LOGGER_NAME, configure_logging


def test_file_handler_is_added_once(tmp_path):
    logger = logging.getLogger(LOGGER_NAME)
    before = list(logger.handlers)
    path = tmp_path / "logs" / "chat.log"
    try:
        configure_logging(path, debug=True)
        configure_logging(path, debug=True)
        added = [h for h in logger.handlers if h not in before]
        assert len(added) == 1
        assert logger.level == logging.DEBUG
        assert logger.propagate is False

        logging.getLogger("chat_app.runtime").info("hello from runtime")
        added[0].flush()
        assert "hello from runtime" in path.read_text(encoding="utf-8")
    finally:
        for handler in logger.handlers[:]:
            if handler not in before:
                logger.removeHandler(handler)
                handler.close()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)
