import pytest
import structlog

from onsite_finsight.log import configure_logging, get_logger


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


def test_unknown_level_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown logging level"):
        configure_logging("VERBOSE")


def test_json_logs_go_to_stderr(capsys) -> None:
    configure_logging("INFO", format_json=True)

    get_logger("onsite_finsight.test").info("report_built", periods=6)

    captured = capsys.readouterr()
    assert captured.out == ""
    assert '"event": "report_built"' in captured.err
    assert '"periods": 6' in captured.err


def test_level_filters_debug_events(capsys) -> None:
    configure_logging("WARNING")

    get_logger("onsite_finsight.test").debug("buckets_built")

    assert "buckets_built" not in capsys.readouterr().err
