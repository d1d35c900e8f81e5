"""A playable device: one sequencer with its notes, tempo, instrument and links.

``Device`` owns a ``SequencerState``. Every operation either succeeds or
raises a ``pianola.errors.PianolaError`` before anything is changed; the one
deliberate exception is ``set_notes``, which always replaces the error log so
the operator can see why their text did not play.

Example:
	```python
	linker = pianola.linker.EnsembleLinker()
	output = pianola.output.MidiOutput()

	left = pianola.device.Device(linker, output, name="left")
	right = pianola.device.Device(linker, output, name="right", channel=1)

	left.set_notes("C4 E4 G4:2")
	right.set_notes("C3:4")
	left.link(right.device_id)

	left.play()    # both start on the same tick
	```
"""

import dataclasses
import logging
import typing

import pianola.constants.instruments
import pianola.constants.timing
import pianola.errors
import pianola.guard
import pianola.instruments
import pianola.linker
import pianola.notation
import pianola.output
import pianola.scheduler


logger = logging.getLogger(__name__)


@dataclasses.dataclass (frozen=True)
class SequencerState:

	"""A point-in-time copy of everything a device holds."""

	state: pianola.scheduler.PlaybackState
	notes_text: str
	schedule: pianola.notation.Schedule
	timing: float
	loop_mode: pianola.scheduler.LoopMode
	instrument: typing.Optional[str]
	error_log: typing.Tuple[str, ...]
	stop_requested: bool
	link_group: typing.FrozenSet[int]


class Device:

	"""
	One sequencer instance, registered with an ``EnsembleLinker``.
	"""

	def __init__ (
		self,
		linker: pianola.linker.EnsembleLinker,
		output: pianola.output.SoundOutput,
		name: typing.Optional[str] = None,
		instrument: typing.Optional[str] = pianola.constants.instruments.DEFAULT_INSTRUMENT,
		timing: typing.Union[str, float] = pianola.constants.timing.DEFAULT_TIMING,
		channel: int = 0,
		anchored: bool = True
	) -> None:

		"""
		Parameters:
			linker: Registry that assigns this device its id and holds its links.
			output: Where dispatched notes are sent.
			name: Display name (defaults to ``device-<id>``).
			instrument: Initial instrument, or None for a device that must be
				given one before it can play.
			timing: Initial seconds per tick.
			channel: MIDI channel used for this device's notes.
			anchored: Whether the device starts in an operational position.
		"""

		# Validated before registering so a rejected device never takes an id.
		self.timing = pianola.scheduler.coerce_timing(timing)
		self.instrument = pianola.instruments.InstrumentBinding(instrument)

		self.linker = linker
		self.device_id = linker.register(self)
		self.name = name if name is not None else f"device-{self.device_id}"
		self.anchored = anchored

		self.notes_text = ""
		self.schedule = pianola.notation.Schedule()
		self.error_log: typing.Tuple[str, ...] = ()

		self.scheduler = pianola.scheduler.PlaybackScheduler(
			device_id = self.device_id,
			clock = linker.clock,
			output = output,
			events = linker.events,
			channel = channel
		)

		self.guard = pianola.guard.SessionGuard(self)


	def __repr__ (self) -> str:
		return f"Device({self.device_id}, {self.name!r}, {self.state.value})"


	# Read-only views

	@property
	def state (self) -> pianola.scheduler.PlaybackState:
		return self.scheduler.state


	@property
	def busy (self) -> bool:
		return self.scheduler.busy


	@property
	def loop_mode (self) -> pianola.scheduler.LoopMode:
		return self.scheduler.loop_mode


	@property
	def peers (self) -> typing.FrozenSet[int]:
		return self.linker.peers(self.device_id)


	def snapshot (self) -> SequencerState:

		return SequencerState(
			state = self.scheduler.state,
			notes_text = self.notes_text,
			schedule = self.schedule,
			timing = self.timing,
			loop_mode = self.scheduler.loop_mode,
			instrument = self.instrument.name,
			error_log = self.error_log,
			stop_requested = self.scheduler.stop_requested,
			link_group = self.peers
		)


	def view_errors (self) -> str:

		"""The error log formatted one numbered line per entry."""

		if not self.error_log:
			return "No errors."

		return "\n".join(f"{index}. {error}" for index, error in enumerate(self.error_log, start=1))


	# Configuration

	def set_notes (self, text: str) -> pianola.notation.ParseResult:

		"""
		Parse new note text.

		The error log is always replaced. The schedule is replaced only when the
		parse found something to play.

		Raises:
			InvalidTransition: While busy (nothing changes).
			NotPlayable: When the text holds no valid tokens. The new error log
				is kept and the previous schedule stays in place.
		"""

		self.guard.check("set notes")

		result = pianola.notation.parse(text)

		self.error_log = result.errors
		self.linker.events.emit("errors", self.device_id, result.errors)

		if len(result.schedule) == 0:
			raise pianola.errors.NotPlayable("no playable notes found; see errors")

		self.notes_text = text
		self.schedule = result.schedule

		logger.info(
			f"Device {self.device_id} loaded {len(result.schedule)} tokens "
			f"({result.schedule.total_ticks} ticks, {len(result.errors)} errors)"
		)

		return result


	def set_timing (self, value: typing.Union[str, float]) -> float:

		"""
		Raises:
			InvalidTransition: While busy.
			OutOfRange: Outside ``MIN_TIMING`` .. ``MAX_TIMING``. Timing is unchanged.
		"""

		self.guard.check("set timing")

		self.timing = pianola.scheduler.coerce_timing(value)

		return self.timing


	def set_instrument (self, name: str) -> str:

		"""
		Raises:
			InvalidTransition: While busy.
			InvalidInstrument: For names outside the allow-list.
		"""

		self.guard.check("set instrument")

		self.instrument.set(name)

		return typing.cast(str, self.instrument.name)


	def toggle_loop (self) -> pianola.scheduler.LoopMode:

		self.guard.check("toggle looping")

		return self.scheduler.toggle_loop()


	def lock_loop (self) -> None:

		"""Permanently disable looping. Allowed at any time, but only once."""

		self.scheduler.lock_loop()


	def clear_notes (self) -> None:

		self.notes_text = ""
		self.schedule = pianola.notation.Schedule()
		self.error_log = ()


	# Linking

	def link (self, peer_id: int) -> bool:

		self.guard.check("link")

		return self.linker.link(self.device_id, peer_id)


	def unlink (self) -> typing.FrozenSet[int]:

		self.guard.check("unlink")

		return self.linker.unlink_all(self.device_id)


	def arm_autolink (self) -> None:

		self.guard.check("arm autolink")

		self.linker.arm_autolink(self.device_id)


	def pair (self) -> int:

		self.guard.check("pair")

		return self.linker.pair(self.device_id)


	def set_anchored (self, anchored: bool) -> None:

		"""Un-anchoring stops playback and drops every link."""

		self.anchored = anchored

		if not anchored:
			self.scheduler.reset()
			self.linker.unlink_all(self.device_id)


	# Playback

	def arm (self) -> None:

		"""Validate this device's own content and hold it ready to launch."""

		self.scheduler.arm(self.schedule, self.timing, self.instrument.name)


	def play (self) -> typing.List[int]:

		"""
		Start playing, together with every idle member of the link group.

		Returns the ids of the devices that started.

		Raises:
			NotPlayable: If unanchored, or there are no notes or no instrument.
			InvalidTransition: If this device is already busy.
		"""

		if not self.anchored:
			raise pianola.errors.NotPlayable("device is not anchored")

		return self.linker.ready_piano(self.device_id)


	def stop (self) -> typing.List[int]:

		"""Ask this device and its group to stop at the next tick. A no-op when idle."""

		return self.linker.stop_group(self.device_id)


	def reset (self, hard: bool = False) -> None:
		self.guard.reset(hard)


	def destroy (self) -> None:

		"""Forced teardown: hard reset and leave the linker."""

		self.reset(hard=True)
		self.linker.unregister(self.device_id)

		logger.info(f"Device {self.device_id} destroyed")
