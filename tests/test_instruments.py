import pytest

import pianola.constants.instruments
import pianola.errors
import pianola.instruments


def test_program_lookup () -> None:

	assert pianola.instruments.program_for("piano") == 0
	assert pianola.instruments.program_for("  Music   Box ") == 10
	assert pianola.instruments.program_for("STEEL DRUMS") == 114


def test_unknown_instrument () -> None:

	with pytest.raises(pianola.errors.InvalidInstrument, match="'kazoo'"):
		pianola.instruments.program_for("kazoo")


def test_every_allowed_instrument_has_a_gm_program () -> None:

	programs = pianola.constants.instruments.GM_PROGRAMS

	assert pianola.constants.instruments.INSTRUMENTS == frozenset(programs)
	assert pianola.constants.instruments.DEFAULT_INSTRUMENT in programs
	assert all(0 <= program <= 127 for program in programs.values())


def test_binding_keeps_previous_instrument_on_error () -> None:

	binding = pianola.instruments.InstrumentBinding("harp")

	with pytest.raises(pianola.errors.InvalidInstrument):
		binding.set("bagpipes")

	assert binding.name == "harp"
	assert binding.program == 46


def test_unbound_binding () -> None:

	binding = pianola.instruments.InstrumentBinding(None)

	assert binding.name is None
	assert binding.program is None

	binding.set("Marimba")

	assert binding.name == "marimba"
	assert binding.program == 12
