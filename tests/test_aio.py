"""
tests/test_aio.py — Tests for the asyncio bridge (aio.py).

Each test drives its own event loop with ``asyncio.run``.
"""

import asyncio
import os
import sys

import pytest

REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, REPO_ROOT)

from qpromise import config
from qpromise.aio import from_future, loop_hook, to_future
from qpromise.errors import RejectedValueError
from qpromise.promise import Promise, resolved


@pytest.fixture(autouse=True)
def default_config():
    config.reset()
    yield
    config.reset()


class TestLoopHook:
    def test_dispatch_deferred_to_next_iteration(self):
        async def main():
            seen = []
            with config.finish_hook(loop_hook()):
                p = Promise()
                p.attach(seen.append)
                p.finish(1)
                before = list(seen)
                await asyncio.sleep(0)
            return before, seen

        before, after = asyncio.run(main())
        assert before == []
        assert after == [1]

    def test_threadsafe_hook_from_worker_thread(self):
        async def main():
            loop = asyncio.get_running_loop()
            with config.finish_hook(loop_hook(loop, threadsafe=True)):
                p = Promise()
                future = to_future(p)
                await loop.run_in_executor(None, p.finish, "from thread")
                return await asyncio.wait_for(future, timeout=5)

        assert asyncio.run(main()) == "from thread"


class TestToFuture:
    def test_single_value(self):
        async def main():
            p = Promise()
            future = to_future(p)
            p.finish(5)
            return await future

        assert asyncio.run(main()) == 5

    def test_multiple_values_become_tuple(self):
        async def main():
            return await to_future(resolved(1, 2))

        assert asyncio.run(main()) == (1, 2)

    def test_no_values_become_none(self):
        async def main():
            return await to_future(resolved())

        assert asyncio.run(main()) is None

    def test_exception_is_raised(self):
        async def main():
            p = Promise()
            future = to_future(p)
            p.signal_error(KeyError("k"))
            await future

        with pytest.raises(KeyError):
            asyncio.run(main())

    def test_non_exception_rejection_is_wrapped(self):
        async def main():
            p = Promise()
            future = to_future(p)
            p.signal_error("reason")
            try:
                await future
            except RejectedValueError as exc:
                return exc.reason

        assert asyncio.run(main()) == "reason"


class TestFromFuture:
    def test_result(self):
        async def main():
            future = asyncio.get_running_loop().create_future()
            p = from_future(future)
            future.set_result(3)
            await asyncio.sleep(0)
            return p

        assert asyncio.run(main()).values == (3,)

    def test_exception(self):
        async def main():
            future = asyncio.get_running_loop().create_future()
            p = from_future(future)
            future.set_exception(ValueError("failed"))
            await asyncio.sleep(0)
            return p

        assert isinstance(asyncio.run(main()).error, ValueError)

    def test_cancelled(self):
        async def main():
            future = asyncio.get_running_loop().create_future()
            p = from_future(future)
            future.cancel()
            await asyncio.sleep(0)
            return p

        assert isinstance(asyncio.run(main()).error, asyncio.CancelledError)

    def test_round_trip_through_coroutine(self):
        async def compute():
            await asyncio.sleep(0)
            return 40

        async def main():
            p = from_future(asyncio.ensure_future(compute()))
            return await to_future(p.attach(lambda x: x + 2))

        assert asyncio.run(main()) == 42
