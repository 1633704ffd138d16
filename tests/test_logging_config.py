import logging

import pytest

from collab_match.utils.logging_config import PerformanceMonitor, get_logger, log_function_call


class TestGetLogger:

    def test_module_names_are_nested_under_service_root(self):
        assert get_logger("routers.matching").name == "collab_match.routers.matching"

    def test_package_names_are_kept(self):
        assert get_logger("collab_match.services.store").name == "collab_match.services.store"
        assert get_logger("collab_match").name == "collab_match"


class TestLogFunctionCall:

    def test_sync_function(self, caplog):
        @log_function_call
        def add(a, b):
            return a + b

        with caplog.at_level(logging.DEBUG, logger="collab_match"):
            assert add(2, 3) == 5

        assert any("finished in" in r.message for r in caplog.records)

    @pytest.mark.asyncio
    async def test_async_function_is_awaited(self, caplog):
        @log_function_call
        async def fetch():
            return "done"

        with caplog.at_level(logging.DEBUG, logger="collab_match"):
            assert await fetch() == "done"

        assert any("Calling" in r.message for r in caplog.records)

    @pytest.mark.asyncio
    async def test_async_failure_is_logged_and_raised(self, caplog):
        @log_function_call
        async def explode():
            raise RuntimeError("boom")

        with caplog.at_level(logging.DEBUG, logger="collab_match"):
            with pytest.raises(RuntimeError):
                await explode()

        assert any(r.levelno == logging.ERROR and "boom" in r.message for r in caplog.records)


class TestPerformanceMonitor:

    def test_slow_block_warns(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="collab_match"):
            with PerformanceMonitor("slow_op", threshold_ms=-1):
                pass

        assert any(r.levelno == logging.WARNING and "slow_op" in r.message for r in caplog.records)

    def test_exception_is_not_swallowed(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="collab_match"):
            with pytest.raises(ValueError):
                with PerformanceMonitor("bad_op"):
                    raise ValueError("nope")

        assert any(r.levelno == logging.ERROR and "bad_op" in r.message for r in caplog.records)
