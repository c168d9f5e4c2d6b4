"""Tests for the core helpers."""

import logging

import pytest

from k8s_discovery.core.utils import body_snippet, retry_with_backoff, setup_logging, split_strings


class TestRetryWithBackoff:
    """Tests for the retry decorator."""

    def test_attempts_are_bounded(self) -> None:
        calls = []

        @retry_with_backoff(max_retries=3, backoff_seconds=0, retry_on=(ConnectionError,))
        def flaky():
            calls.append(1)
            raise ConnectionError("down")

        with pytest.raises(ConnectionError):
            flaky()

        assert len(calls) == 3

    def test_other_errors_are_not_retried(self) -> None:
        calls = []

        @retry_with_backoff(max_retries=3, backoff_seconds=0, retry_on=(ConnectionError,))
        def broken():
            calls.append(1)
            raise ValueError("bad")

        with pytest.raises(ValueError):
            broken()

        assert len(calls) == 1

    def test_returns_first_success(self) -> None:
        results = iter([ConnectionError("down"), "ok"])

        @retry_with_backoff(max_retries=2, backoff_seconds=0, retry_on=(ConnectionError,))
        def eventually():
            result = next(results)
            if isinstance(result, Exception):
                raise result
            return result

        assert eventually() == "ok"

    def test_waits_grow_linearly(self) -> None:
        waits = []

        @retry_with_backoff(
            max_retries=4,
            backoff_seconds=0.01,
            retry_on=(ConnectionError,),
            before_sleep=lambda retry_state: waits.append(retry_state.next_action.sleep),
        )
        def down():
            raise ConnectionError("down")

        with pytest.raises(ConnectionError):
            down()

        assert waits == pytest.approx([0.01, 0.02, 0.03])


class TestHelpers:
    def test_split_strings(self) -> None:
        assert split_strings(" a, b ,,c ") == ["a", "b", "c"]
        assert split_strings("") == []
        assert split_strings(None) == []

    def test_body_snippet(self) -> None:
        assert body_snippet(b" forbidden \n") == "forbidden"
        assert body_snippet("x" * 600, limit=10) == "x" * 10 + "..."
        assert body_snippet(None) == ""


def test_setup_logging_from_yaml(tmp_path) -> None:
    config = tmp_path / "logging.yaml"
    config.write_text(
        "version: 1\n"
        "disable_existing_loggers: false\n"
        "handlers:\n"
        "  discard:\n"
        "    class: logging.NullHandler\n"
        "loggers:\n"
        "  k8s_discovery:\n"
        "    level: INFO\n"
        "    handlers: [discard]\n"
    )

    setup_logging(config)

    assert logging.getLogger("k8s_discovery").level == logging.INFO
