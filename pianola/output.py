"""Sound dispatch.

The scheduler hands every note to a ``SoundOutput``. pianola does no audio
synthesis itself; ``MidiOutput`` turns notes into MIDI messages for whatever
synth, DAW or hardware sits on the other end of the port.
"""

import logging
import typing

import mido

import pianola.midi_utils


logger = logging.getLogger(__name__)


@typing.runtime_checkable
class SoundOutput (typing.Protocol):

	"""
	Protocol for the sink that makes dispatched notes audible.
	"""

	def note_on (self, channel: int, program: int, pitch: int, velocity: int) -> None:
		...


	def note_off (self, channel: int, pitch: int) -> None:
		...


class MidiOutput:

	"""
	Sends notes to a MIDI output port.

	A program change is sent the first time a channel plays and whenever the
	instrument on that channel changes, so each device can sit on its own
	channel with its own instrument.
	"""

	def __init__ (self, device_name: typing.Optional[str] = None) -> None:

		"""
		Parameters:
			device_name: MIDI output port name. When omitted the first available
				port is used.
		"""

		self.device_name, self.midi_out = pianola.midi_utils.select_output_device(device_name)

		self._programs: typing.Dict[int, int] = {}
		self.active_notes: typing.Set[typing.Tuple[int, int]] = set()


	def note_on (self, channel: int, program: int, pitch: int, velocity: int) -> None:

		if self._programs.get(channel) != program:
			self._send(mido.Message('program_change', channel=channel, program=program))
			self._programs[channel] = program

		self._send(mido.Message('note_on', channel=channel, note=pitch, velocity=velocity))
		self.active_notes.add((channel, pitch))


	def note_off (self, channel: int, pitch: int) -> None:

		self._send(mido.Message('note_off', channel=channel, note=pitch, velocity=0))
		self.active_notes.discard((channel, pitch))


	def panic (self) -> None:

		"""Release every sounding note and send All Notes Off on the used channels."""

		logger.info("Panic: sending all notes off.")

		for channel, pitch in list(self.active_notes):
			self.note_off(channel, pitch)

		for channel in sorted(self._programs):
			self._send(mido.Message('control_change', channel=channel, control=123, value=0))


	def close (self) -> None:

		"""Silence and close the port."""

		self.panic()

		if self.midi_out is not None:
			self.midi_out.close()
			self.midi_out = None


	def _send (self, message: mido.Message) -> None:

		if self.midi_out is None:
			logger.debug(f"No MIDI output, dropped {message}")
			return

		try:
			self.midi_out.send(message)
		except Exception:
			logger.exception("MIDI send failed (device may be disconnected)")
