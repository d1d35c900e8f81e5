"""Dynamic markings.

Notes may carry a dynamic suffix (``C4@ff``). Each marking maps to a MIDI
note-on velocity (0-127).
"""

import typing


DYNAMICS: typing.Dict[str, int] = {
	"pp": 33,
	"p": 49,
	"mp": 64,
	"mf": 80,
	"f": 96,
	"ff": 112,
}

DEFAULT_DYNAMIC = "mf"
DEFAULT_VELOCITY = DYNAMICS[DEFAULT_DYNAMIC]
