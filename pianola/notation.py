"""Note text parsing.

Turns the free text an operator types into a ``Schedule`` of ``NoteToken``
objects. Parsing never raises for bad notation: unrecognized symbols are
skipped and described in the returned error list, so a composition with one
typo still plays everything else.

**Syntax:**

- Tokens are separated by whitespace, ``,`` or ``|``.
- ``C4``, ``F#3``, ``Bb5``: a pitch (letter, optional ``#``/``b``, octave 0-8).
  The octave defaults to 4.
- ``C4:3``: the same pitch held for 3 ticks (default 1).
- ``C4@ff``: a dynamic marking (``pp p mp mf f ff``, default ``mf``).
- ``~`` or ``.``: a one-tick rest; ``~:4`` rests for 4 ticks.
- ``_``: extends the previous note or rest by one tick.

Example:
	```python
	result = parse("C4 E4 G4:2 ~ C5@ff _")
	[token.name for token in result.schedule]   # ['C4', 'E4', 'G4', '~', 'C5']
	result.schedule.total_ticks                  # 7
	```
"""

import dataclasses
import re
import typing

import pianola.constants.timing
import pianola.constants.velocity


_SEPARATORS = re.compile(r"[\s,|]+")

_PITCH = re.compile(
	r"^(?P<letter>[A-Ga-g])(?P<accidental>[#b]?)(?P<octave>[0-8])?"
	r"(?::(?P<ticks>[0-9]{1,6}))?(?:@(?P<dynamic>pp|p|mp|mf|ff|f))?$"
)

_REST = re.compile(r"^[~.](?::(?P<ticks>[0-9]{1,6}))?$")

_SUSTAIN = "_"

_LETTER_TO_PC: typing.Dict[str, int] = {
	"C": 0,
	"D": 2,
	"E": 4,
	"F": 5,
	"G": 7,
	"A": 9,
	"B": 11,
}

_ACCIDENTAL_OFFSET: typing.Dict[str, int] = {"": 0, "#": 1, "b": -1}

REST_NAME = "~"


@dataclasses.dataclass (frozen=True)
class NoteToken:

	"""
	One parsed unit of a schedule: a pitch or a rest, lasting ``duration`` ticks.
	"""

	name: str
	pitch: typing.Optional[int]
	duration: int
	velocity: int = pianola.constants.velocity.DEFAULT_VELOCITY

	def __post_init__ (self) -> None:

		if self.duration <= 0:
			raise ValueError("NoteToken duration must be positive")


	@property
	def is_rest (self) -> bool:
		return self.pitch is None


@dataclasses.dataclass (frozen=True)
class Schedule:

	"""
	An ordered, restartable sequence of tokens produced by one parse.
	"""

	tokens: typing.Tuple[NoteToken, ...] = ()

	def __len__ (self) -> int:
		return len(self.tokens)


	def __iter__ (self) -> typing.Iterator[NoteToken]:
		return iter(self.tokens)


	def __getitem__ (self, index: int) -> NoteToken:
		return self.tokens[index]


	@property
	def total_ticks (self) -> int:

		"""Total length of the schedule in ticks."""

		return sum(token.duration for token in self.tokens)


	def duration_seconds (self, timing: float) -> float:

		"""Length of one pass through the schedule at the given seconds per tick."""

		return self.total_ticks * timing


@dataclasses.dataclass (frozen=True)
class ParseResult:

	"""Output of ``parse``: the schedule plus the error log that replaces the old one."""

	schedule: Schedule
	errors: typing.Tuple[str, ...]


def parse (
	text: str,
	max_tokens: int = pianola.constants.timing.MAX_TOKENS,
	max_ticks: int = pianola.constants.timing.MAX_SCHEDULE_TICKS
) -> ParseResult:

	"""
	Parse note text into a schedule and a list of human-readable errors.

	Parameters:
		text: The raw notation.
		max_tokens: Symbols beyond this count are dropped with a truncation error.
		max_ticks: The schedule is cut before the token that would take its
			length past this many ticks.

	Returns:
		A ``ParseResult``. When nothing valid was found the schedule is empty
		and the errors are not.
	"""

	symbols = _tokenize(text)
	errors: typing.List[str] = []

	if len(symbols) > max_tokens:
		errors.append(f"composition truncated: more than {max_tokens} tokens")
		symbols = symbols[:max_tokens]

	tokens: typing.List[NoteToken] = []
	total_ticks = 0

	for position, symbol in enumerate(symbols, start=1):

		if symbol == _SUSTAIN:

			if not tokens:
				errors.append(f"nothing to sustain for '_' at position {position}")
				continue

			if total_ticks + 1 > max_ticks:
				errors.append(f"composition truncated at position {position}: longer than {max_ticks} ticks")
				break

			tokens[-1] = dataclasses.replace(tokens[-1], duration=tokens[-1].duration + 1)
			total_ticks += 1
			continue

		token = _parse_symbol(symbol)

		if token is None:
			errors.append(f"unrecognized token '{symbol}' at position {position}")
			continue

		if total_ticks + token.duration > max_ticks:
			errors.append(f"composition truncated at position {position}: longer than {max_ticks} ticks")
			break

		tokens.append(token)
		total_ticks += token.duration

	if not tokens:
		errors.append("no playable notes found")

	return ParseResult(schedule=Schedule(tuple(tokens)), errors=tuple(errors))


def pitch_number (letter: str, accidental: str = "", octave: int = pianola.constants.timing.DEFAULT_OCTAVE) -> int:

	"""
	Convert a pitch name to its MIDI note number (C4 = 60).

	Example:
		```python
		pitch_number("A", "", 4)    # 69
		pitch_number("C", "#", 4)   # 61
		```
	"""

	return (octave + 1) * 12 + _LETTER_TO_PC[letter.upper()] + _ACCIDENTAL_OFFSET[accidental]


def _tokenize (text: str) -> typing.List[str]:

	"""
	Split text into symbols.
	"C4, D4 | E4" -> ["C4", "D4", "E4"]
	"""

	return [symbol for symbol in _SEPARATORS.split(text) if symbol]


def _parse_symbol (symbol: str) -> typing.Optional[NoteToken]:

	"""Classify one symbol as a rest or a pitch. Returns None when it is neither."""

	rest = _REST.match(symbol)

	if rest:
		ticks = _ticks(rest.group("ticks"))
		if ticks is None:
			return None
		return NoteToken(name=REST_NAME, pitch=None, duration=ticks)

	match = _PITCH.match(symbol)

	if not match:
		return None

	ticks = _ticks(match.group("ticks"))

	if ticks is None:
		return None

	letter = match.group("letter").upper()
	accidental = match.group("accidental")
	octave_text = match.group("octave")
	octave = int(octave_text) if octave_text is not None else pianola.constants.timing.DEFAULT_OCTAVE

	dynamic = match.group("dynamic") or pianola.constants.velocity.DEFAULT_DYNAMIC

	return NoteToken(
		name = f"{letter}{accidental}{octave}",
		pitch = pitch_number(letter, accidental, octave),
		duration = ticks,
		velocity = pianola.constants.velocity.DYNAMICS[dynamic]
	)


def _ticks (text: typing.Optional[str]) -> typing.Optional[int]:

	if text is None:
		return pianola.constants.timing.DEFAULT_TICKS

	ticks = int(text)

	return ticks if ticks > 0 else None
