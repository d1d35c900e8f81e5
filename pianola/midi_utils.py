import logging
import typing

import mido


logger = logging.getLogger(__name__)


def select_output_device (device_name: typing.Optional[str] = None) -> typing.Tuple[typing.Optional[str], typing.Optional[typing.Any]]:

	"""
	Select and open a MIDI output port for note dispatch.

	If ``device_name`` is given, only that port is opened. Otherwise the first
	available port is used. The sequencer runs as a service, so there is no
	interactive prompt: when nothing can be opened the caller gets
	``(None, None)`` and notes are dropped with a log line instead.

	Returns:
		A tuple of (device_name, midi_out) or (None, None) on failure.
	"""

	try:
		outputs = mido.get_output_names()
		logger.info(f"Available MIDI outputs: {outputs}")

		if not outputs:
			logger.error("No MIDI output devices found.")
			return None, None

		if device_name is not None and device_name not in outputs:
			logger.error(
				f"MIDI output device '{device_name}' not found. "
				f"Available devices: {outputs}"
			)
			return None, None

		selected_name = device_name if device_name is not None else outputs[0]
		midi_out = mido.open_output(selected_name)
		logger.info(f"Opened MIDI output: {selected_name}")

		return selected_name, midi_out

	except Exception as e:
		logger.error(f"Failed to open MIDI output: {e}")
		return None, None
