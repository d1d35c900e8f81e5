"""Instrument selection for a device.

A device plays through one instrument at a time. Names are checked against
``pianola.constants.instruments.INSTRUMENTS``; anything else is refused and
the current selection stays in place.
"""

import logging
import typing

import pianola.constants.instruments
import pianola.errors


logger = logging.getLogger(__name__)


def normalize_name (name: str) -> str:

	"""Fold case and surrounding/inner whitespace so ``" Music  Box"`` matches ``"music box"``."""

	return " ".join(name.split()).lower()


def program_for (name: str) -> int:

	"""
	Return the General MIDI program for an allowed instrument name.

	Raises:
		InvalidInstrument: If the name is not in the allow-list.
	"""

	key = normalize_name(name)

	if key not in pianola.constants.instruments.GM_PROGRAMS:
		raise pianola.errors.InvalidInstrument(f"unknown instrument '{name}'")

	return pianola.constants.instruments.GM_PROGRAMS[key]


class InstrumentBinding:

	"""
	The instrument currently selected on a device.

	``name`` is ``None`` when the device was created without one, which makes
	the device unplayable until an instrument is set.
	"""

	def __init__ (self, name: typing.Optional[str] = pianola.constants.instruments.DEFAULT_INSTRUMENT) -> None:

		self._name: typing.Optional[str] = None

		if name is not None:
			self.set(name)


	@property
	def name (self) -> typing.Optional[str]:
		return self._name


	@property
	def program (self) -> typing.Optional[int]:

		"""GM program number of the bound instrument, or None when unset."""

		if self._name is None:
			return None

		return pianola.constants.instruments.GM_PROGRAMS[self._name]


	def set (self, name: str) -> None:

		"""
		Bind a new instrument.

		Raises:
			InvalidInstrument: If the name is not allowed. The binding is unchanged.
		"""

		program_for(name)

		self._name = normalize_name(name)

		logger.debug(f"Instrument bound: {self._name}")
