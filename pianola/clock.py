"""Clock services for the playback scheduler.

The scheduler never sleeps on its own: it asks a clock for the current time
and to wake it at an absolute instant. Two clocks are provided.

- ``AsyncioClock`` follows the wall clock (``time.perf_counter``) and waits
  with ``asyncio.sleep``. This is what a running service uses.
- ``ManualClock`` only moves when ``advance()`` is awaited. Waiters are woken
  in time order with the clock set to each waiter's instant, so timestamps
  seen by the scheduler are exact. Use it for offline rendering and tests.
"""

import asyncio
import heapq
import itertools
import time
import typing


@typing.runtime_checkable
class Clock (typing.Protocol):

	"""
	Protocol for the timed-callback service consumed by the scheduler.
	"""

	def now (self) -> float:

		"""Current time in seconds."""

		...


	async def sleep_until (self, when: float) -> None:

		"""Return once the clock has reached ``when``."""

		...


class AsyncioClock:

	"""Wall clock backed by ``time.perf_counter`` and ``asyncio.sleep``."""

	def now (self) -> float:
		return time.perf_counter()


	async def sleep_until (self, when: float) -> None:

		delay = when - time.perf_counter()

		# Late or due: still yield once so a looping caller never starves the loop.
		await asyncio.sleep(delay if delay > 0 else 0)


class ManualClock:

	"""
	Simulated clock that advances only on request.

	Example:
		```python
		clock = ManualClock()
		device.play()
		await clock.advance(1.5)   # runs every tick due in the next 1.5 s
		```
	"""

	def __init__ (self, start: float = 0.0, settle_passes: int = 4) -> None:

		"""
		Parameters:
			start: Initial time in seconds.
			settle_passes: How many times ``advance`` yields to the event loop
				after each wake-up so the woken task can register its next wait.
		"""

		self._now = start
		self._settle_passes = settle_passes
		self._waiters: typing.List[typing.Tuple[float, int, asyncio.Future]] = []
		self._counter = itertools.count()


	def now (self) -> float:
		return self._now


	async def sleep_until (self, when: float) -> None:

		future: asyncio.Future = asyncio.get_running_loop().create_future()
		heapq.heappush(self._waiters, (when, next(self._counter), future))

		await future


	@property
	def pending (self) -> int:

		"""Number of waiters that have not been woken or cancelled."""

		return sum(1 for _, _, future in self._waiters if not future.done())


	async def advance (self, seconds: float) -> None:

		"""Move time forward, waking every waiter due on the way in time order."""

		if seconds < 0:
			raise ValueError("Cannot advance a clock backwards")

		target = self._now + seconds

		await self._settle()

		while self._waiters and self._waiters[0][0] <= target:

			when, _, future = heapq.heappop(self._waiters)

			if future.done():
				continue

			self._now = max(self._now, when)
			future.set_result(None)

			await self._settle()

		self._now = target


	async def _settle (self) -> None:

		for _ in range(self._settle_passes):
			await asyncio.sleep(0)
