import asyncio

from .loggable import Loggable


class BackgroundJobs(Loggable):
    """Single-flight registry of background tasks, keyed by job name.

    Submitting a job whose name is already running joins the running task
    instead of starting another. Job failures are logged, never raised.
    """

    def __init__(self, logging: bool = True):
        self._tasks: dict[str, asyncio.Task] = {}
        self._logging = logging

    def submit(self, name: str, factory) -> asyncio.Task:
        """Run ``factory()`` (a coroutine function) under ``name`` unless it is already running."""
        task = self._tasks.get(name)
        if task is not None and not task.done():
            self._log(f"Background job '{name}' already running, joining it")
            return task
        task = asyncio.create_task(self._run(name, factory), name=f"warmerator:{name}")
        self._tasks[name] = task
        task.add_done_callback(lambda t: self._forget(name, t))
        return task

    def _forget(self, name: str, task: asyncio.Task):
        if self._tasks.get(name) is task:
            del self._tasks[name]

    async def _run(self, name: str, factory):
        self._log(f"Background job '{name}' started")
        try:
            result = await factory()
        except asyncio.CancelledError:
            self._log(f"Background job '{name}' cancelled")
            raise
        except Exception as e:
            self._log_error(f"Error in background job '{name}': {e!r}")
            return None
        self._log(f"Background job '{name}' finished")
        return result

    def is_running(self, name: str) -> bool:
        task = self._tasks.get(name)
        return task is not None and not task.done()

    def running(self) -> list[str]:
        return sorted(name for name, task in self._tasks.items() if not task.done())

    async def wait(self, name: str = None):
        """Wait for one job, or for every job currently registered."""
        if name is not None:
            tasks = [self._tasks[name]] if name in self._tasks else []
        else:
            tasks = list(self._tasks.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def shutdown(self):
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
