import logging
import typing

import pianola.errors

if typing.TYPE_CHECKING:
	from pianola.device import Device


logger = logging.getLogger(__name__)


class SessionGuard:

	"""
	Keeps playback and reconfiguration apart for one device.

	Every mutating device operation calls ``check()`` before touching state,
	so a running schedule can never be changed underneath its timer. Stop and
	reset do not go through the check.
	"""

	def __init__ (self, device: "Device") -> None:

		self._device = device


	def check (self, action: str) -> None:

		"""
		Raises:
			InvalidTransition: If the device is armed, playing or stopping.
		"""

		scheduler = self._device.scheduler

		if scheduler.busy:
			logger.debug(f"Device {self._device.device_id} refused '{action}' while {scheduler.state.value}")
			raise pianola.errors.InvalidTransition(f"cannot {action} while {scheduler.state.value}")


	def reset (self, hard: bool = False) -> None:

		"""
		Stop playback at once.

		A soft reset keeps notes, timing and instrument so the operator can
		replay. A hard reset also drops every link and clears the notes and
		error log.
		"""

		device = self._device
		device.scheduler.reset()

		if not hard:
			return

		device.linker.unlink_all(device.device_id)
		device.clear_notes()

		logger.info(f"Device {device.device_id} hard reset")
