"""Instrument allow-list.

Only the instruments named here can be bound to a device. Each name resolves
to a General MIDI Level 1 program number (0-indexed), which the MIDI output
sends as a program change before the first note on a channel::

    import pianola.constants.instruments

    pianola.constants.instruments.GM_PROGRAMS["music box"]   # 10
"""

import typing


DEFAULT_INSTRUMENT = "piano"

GM_PROGRAMS: typing.Dict[str, int] = {
	"piano": 0,
	"bright piano": 1,
	"honky-tonk piano": 3,
	"electric piano": 4,
	"harpsichord": 6,
	"celesta": 8,
	"glockenspiel": 9,
	"music box": 10,
	"vibraphone": 11,
	"marimba": 12,
	"xylophone": 13,
	"tubular bells": 14,
	"organ": 19,
	"accordion": 21,
	"harmonica": 22,
	"guitar": 24,
	"harp": 46,
	"banjo": 105,
	"kalimba": 108,
	"steel drums": 114,
}

INSTRUMENTS: typing.FrozenSet[str] = frozenset(GM_PROGRAMS)
