import logging

from impromptu.logging import (
    LoggingContextFilter,
    ensure_logging_context_filter,
    get_logging_context,
    logging_context,
    update_logging_context,
)


def test_update_logging_context_ignores_invalid_key():
    update_logging_context(invalid_key="test")
    assert "invalid_key" not in get_logging_context()


def test_should_inject_and_reset_logging_context():
    assert get_logging_context() == {}

    with logging_context(member="greet", interface="Greeter"):
        ctx = get_logging_context()
        assert ctx["member"] == "greet"
        assert ctx["interface"] == "Greeter"

    assert get_logging_context() == {}


def test_should_set_none_in_update_logging_context():
    update_logging_context(operation="invoke_method")
    assert get_logging_context()["operation"] == "invoke_method"
    update_logging_context(operation=None)
    assert get_logging_context() == {}


def test_package_logger_has_context_filter():
    import impromptu  # noqa: F401

    logger = logging.getLogger("impromptu")
    assert any(isinstance(f, LoggingContextFilter) for f in logger.filters)


def test_should_attach_filter_once_and_inject_context():
    logger = logging.getLogger("impromptu.test")
    logger.filters = [f for f in logger.filters if not isinstance(f, LoggingContextFilter)]

    ensure_logging_context_filter(logger_name="impromptu.test")
    ensure_logging_context_filter(logger_name="impromptu.test")

    filters = [f for f in logger.filters if isinstance(f, LoggingContextFilter)]
    assert len(filters) == 1

    record = logging.LogRecord(
        name=logger.name,
        level=logging.DEBUG,
        pathname=__file__,
        lineno=0,
        msg="msg",
        args=(),
        exc_info=None,
    )
    with logging_context(adapter_type="ActLike_Greeter"):
        assert filters[0].filter(record) is True
    assert getattr(record, "adapter_type") == "ActLike_Greeter"
    assert getattr(record, "member") is None

    logger.filters = [f for f in logger.filters if not isinstance(f, LoggingContextFilter)]
