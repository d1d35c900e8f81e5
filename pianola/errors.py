"""Exceptions raised by the sequencer.

Everything derives from ``PianolaError`` so the command table can turn any
failure into a result string for the operator. Parse problems are the one
exception to the rule: the parser records them as strings in the error log
instead of raising, so a single typo never discards a whole composition.
"""


class PianolaError (Exception):

	"""Base class for all sequencer failures."""


class ParseError (PianolaError):

	"""A notation problem. Collected into the error log, not raised by ``parse``."""


class NotPlayable (PianolaError):

	"""Play was requested without a schedule or without an instrument."""


class OutOfRange (PianolaError):

	"""A timing value outside ``MIN_TIMING`` .. ``MAX_TIMING`` (or not a number)."""


class InvalidInstrument (PianolaError):

	"""The instrument name is not in the allow-list."""


class InvalidTransition (PianolaError):

	"""A reconfiguration while busy, or a change to a locked loop mode."""


class LinkRejected (PianolaError):

	"""A link attempt that would self-link, involve a busy device or exceed capacity."""
