import asyncio
import dataclasses
import enum
import logging
import math
import typing

import pianola.clock
import pianola.constants.timing
import pianola.errors
import pianola.event_emitter
import pianola.instruments
import pianola.notation
import pianola.output


logger = logging.getLogger(__name__)


class PlaybackState (enum.Enum):

	"""
	Playback lifecycle of one device.

	``ARMED`` is held between validation and launch, so an ensemble can check
	every member before any of them starts.
	"""

	IDLE = "idle"
	ARMED = "armed"
	PLAYING = "playing"
	STOPPING = "stopping"


BUSY_STATES: typing.FrozenSet[PlaybackState] = frozenset({
	PlaybackState.ARMED,
	PlaybackState.PLAYING,
	PlaybackState.STOPPING,
})


class LoopMode (enum.Enum):

	"""
	Looping policy.

	``OFF`` and ``ON`` toggle freely while idle. ``LOCKED`` is reached with
	``PlaybackScheduler.lock_loop()`` and has no way back: the loop control is
	gone and playback always ends at the end of the schedule.
	"""

	OFF = "off"
	ON = "on"
	LOCKED = "locked"


def coerce_timing (value: typing.Union[str, float, int]) -> float:

	"""
	Validate a seconds-per-tick value from a number or a numeric string.

	Raises:
		OutOfRange: If the value is not a finite number within
			``MIN_TIMING`` .. ``MAX_TIMING`` (inclusive).
	"""

	try:
		timing = float(value)
	except (TypeError, ValueError):
		raise pianola.errors.OutOfRange(f"timing must be a number, got {value!r}") from None

	low = pianola.constants.timing.MIN_TIMING
	high = pianola.constants.timing.MAX_TIMING

	if not math.isfinite(timing) or not low <= timing <= high:
		raise pianola.errors.OutOfRange(f"timing {value} is outside {low}..{high} seconds")

	return timing


@dataclasses.dataclass (frozen=True)
class Performance:

	"""The content an armed scheduler will play, fixed at arm time."""

	schedule: pianola.notation.Schedule
	timing: float
	instrument: str
	program: int


class PlaybackScheduler:

	"""
	Plays a schedule one token at a time on a clock.

	Tick ``k`` of a performance falls at ``start_at + k * timing``. A token of
	``n`` ticks is dispatched on its first tick and released when its ticks run
	out. One asyncio task drives each performance; it sleeps on the clock
	between ticks and is cancelled by ``reset()``.
	"""

	def __init__ (
		self,
		device_id: int,
		clock: pianola.clock.Clock,
		output: pianola.output.SoundOutput,
		events: pianola.event_emitter.EventEmitter,
		channel: int = 0
	) -> None:

		self.device_id = device_id
		self.channel = channel

		self._clock = clock
		self._output = output
		self._events = events

		self.state = PlaybackState.IDLE
		self.loop_mode = LoopMode.OFF
		self.stop_requested = False

		# Index of the next token to dispatch, and completed passes when looping.
		self.cursor = 0
		self.passes = 0

		self._performance: typing.Optional[Performance] = None
		self._sounding: typing.Optional[int] = None
		self._task: typing.Optional[asyncio.Task] = None


	@property
	def busy (self) -> bool:
		return self.state in BUSY_STATES


	# Transitions

	def arm (self, schedule: pianola.notation.Schedule, timing: float, instrument: typing.Optional[str]) -> None:

		"""
		Validate a performance and hold it in ``ARMED``.

		Raises:
			InvalidTransition: If the scheduler is not idle.
			NotPlayable: If the schedule is empty or no instrument is bound.
		"""

		if self.state is not PlaybackState.IDLE:
			raise pianola.errors.InvalidTransition(f"cannot play while {self.state.value}")

		if len(schedule) == 0:
			raise pianola.errors.NotPlayable("no notes to play")

		if instrument is None:
			raise pianola.errors.NotPlayable("no instrument selected")

		# Fail here rather than after the state change when there is no loop to run on.
		asyncio.get_running_loop()

		self._performance = Performance(
			schedule = schedule,
			timing = timing,
			instrument = instrument,
			program = pianola.instruments.program_for(instrument)
		)

		self._set_state(PlaybackState.ARMED)


	def launch (self, start_at: typing.Optional[float] = None) -> None:

		"""
		Start an armed performance with its first tick at ``start_at``.

		Parameters:
			start_at: Clock time of tick 0. Defaults to now. Ensemble play
				passes one shared instant to every member.
		"""

		if self.state is not PlaybackState.ARMED or self._performance is None:
			raise pianola.errors.InvalidTransition("cannot launch a scheduler that is not armed")

		start = self._clock.now() if start_at is None else start_at

		self.cursor = 0
		self.passes = 0
		self.stop_requested = False

		self._set_state(PlaybackState.PLAYING)
		self._task = asyncio.get_running_loop().create_task(self._run(self._performance, start))

		logger.info(
			f"Device {self.device_id} playing {len(self._performance.schedule)} tokens "
			f"on {self._performance.instrument} at {self._performance.timing}s per tick"
		)


	def ready (
		self,
		schedule: pianola.notation.Schedule,
		timing: float,
		instrument: typing.Optional[str],
		start_at: typing.Optional[float] = None
	) -> None:

		"""Arm and launch in one step."""

		self.arm(schedule, timing, instrument)
		self.launch(start_at)


	def request_stop (self) -> bool:

		"""
		Ask a playing scheduler to stop at its next tick boundary.

		Returns True if a stop was requested, False (a no-op) when not playing.
		"""

		if self.state is not PlaybackState.PLAYING:
			return False

		if not self.stop_requested:
			self.stop_requested = True
			logger.info(f"Device {self.device_id} stop requested")

		return True


	def reset (self) -> None:

		"""Cancel any performance immediately and return to ``IDLE``. Safe in any state."""

		task = self._task
		self._task = None

		if task is not None and not task.done():
			task.cancel()

		self._release()
		self._performance = None
		self.cursor = 0
		self.stop_requested = False

		if self.state is not PlaybackState.IDLE:
			logger.info(f"Device {self.device_id} reset")
			self._set_state(PlaybackState.IDLE)


	# Looping

	def toggle_loop (self) -> LoopMode:

		"""
		Switch between ``OFF`` and ``ON``.

		Raises:
			InvalidTransition: If the loop mode is locked or a performance is running.
		"""

		if self.loop_mode is LoopMode.LOCKED:
			raise pianola.errors.InvalidTransition("loop mode is locked")

		if self.busy:
			raise pianola.errors.InvalidTransition(f"cannot toggle looping while {self.state.value}")

		self.loop_mode = LoopMode.ON if self.loop_mode is LoopMode.OFF else LoopMode.OFF

		return self.loop_mode


	def lock_loop (self) -> None:

		"""
		Permanently disable looping. There is no inverse.

		A running performance finishes its current pass and stops.
		"""

		if self.loop_mode is LoopMode.LOCKED:
			raise pianola.errors.InvalidTransition("loop mode is already locked")

		self.loop_mode = LoopMode.LOCKED

		logger.info(f"Device {self.device_id} loop mode locked")


	# Internals

	async def _run (self, performance: Performance, start: float) -> None:

		"""
		Timer task: one iteration per tick until the schedule ends or a stop is seen.

		A failing listener or output ends the performance and leaves the
		scheduler idle. Cancellation comes from ``reset()``, which has already
		returned the scheduler to ``IDLE``.
		"""

		try:
			await self._play_ticks(performance, start)
		except asyncio.CancelledError:
			raise
		except Exception:
			logger.exception(f"Device {self.device_id} playback failed")

		try:
			self._finish()
		except Exception:
			logger.exception(f"Device {self.device_id} failed to finish cleanly")


	async def _play_ticks (self, performance: Performance, start: float) -> None:

		schedule = performance.schedule
		tick = 0
		remaining = 0

		while True:

			await self._clock.sleep_until(start + tick * performance.timing)

			if self.stop_requested:
				self._release()
				self._set_state(PlaybackState.STOPPING)
				self.stop_requested = False
				break

			if remaining == 0:

				self._release()

				if self.cursor >= len(schedule):

					if self.loop_mode is not LoopMode.ON:
						break

					self.cursor = 0
					self.passes += 1
					logger.debug(f"Device {self.device_id} looping (pass {self.passes})")

				token = schedule[self.cursor]
				self.cursor += 1
				remaining = token.duration

				self._dispatch(performance, token)

			remaining -= 1
			tick += 1


	def _dispatch (self, performance: Performance, token: pianola.notation.NoteToken) -> None:

		if token.pitch is None:
			return

		self._output.note_on(self.channel, performance.program, token.pitch, token.velocity)
		self._sounding = token.pitch

		self._events.emit("note", self.device_id, performance.instrument, token, self._clock.now())


	def _release (self) -> None:

		pitch, self._sounding = self._sounding, None

		if pitch is not None:
			self._output.note_off(self.channel, pitch)


	def _finish (self) -> None:

		self._task = None
		self._performance = None
		self.cursor = 0
		self.stop_requested = False

		logger.info(f"Device {self.device_id} finished")

		try:
			self._release()
		finally:
			self._set_state(PlaybackState.IDLE)


	def _set_state (self, state: PlaybackState) -> None:

		self.state = state
		logger.debug(f"Device {self.device_id} -> {state.value}")
		self._events.emit("state", self.device_id, state)
