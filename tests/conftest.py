import typing

import mido
import pytest

import pianola.clock
import pianola.device
import pianola.linker
import pianola.output


class FakeMidiOut:

	"""MIDI output stub that records what was sent."""

	def __init__ (self, name: str = "Dummy MIDI") -> None:

		self.name = name
		self.messages: typing.List[mido.Message] = []
		self.closed = False


	def send (self, message: mido.Message) -> None:

		"""Keep outgoing MIDI messages for inspection."""

		self.messages.append(message)


	def close (self) -> None:

		self.closed = True


	def of_type (self, message_type: str) -> typing.List[mido.Message]:

		"""Recorded messages of one type, in send order."""

		return [message for message in self.messages if message.type == message_type]


def _fake_get_output_names () -> list[str]:

	"""Return a fixed list of MIDI output names for tests."""

	return ["Dummy MIDI", "Other MIDI"]


def _fake_open_output (name: str) -> FakeMidiOut:

	"""Return a recording fake output regardless of the name."""

	return FakeMidiOut(name)


@pytest.fixture
def patch_midi (monkeypatch: pytest.MonkeyPatch) -> None:

	"""Patch mido to use fake MIDI outputs for all tests that need it."""

	monkeypatch.setattr(mido, "get_output_names", _fake_get_output_names)
	monkeypatch.setattr(mido, "open_output", _fake_open_output)


@pytest.fixture
def clock () -> pianola.clock.ManualClock:

	"""A simulated clock starting at 0.0."""

	return pianola.clock.ManualClock()


@pytest.fixture
def linker (clock: pianola.clock.ManualClock) -> pianola.linker.EnsembleLinker:

	"""A linker whose devices all run on the manual clock."""

	return pianola.linker.EnsembleLinker(clock=clock)


@pytest.fixture
def output (patch_midi: None) -> pianola.output.MidiOutput:

	"""A MIDI output connected to a recording fake port."""

	return pianola.output.MidiOutput("Dummy MIDI")


@pytest.fixture
def make_device (linker: pianola.linker.EnsembleLinker, output: pianola.output.MidiOutput) -> typing.Callable[..., pianola.device.Device]:

	"""Factory for devices on the shared linker and output, with optional notes."""

	def _make (notes: typing.Optional[str] = None, **kwargs: typing.Any) -> pianola.device.Device:

		device = pianola.device.Device(linker, output, **kwargs)

		if notes is not None:
			device.set_notes(notes)

		return device

	return _make


@pytest.fixture
def notes_played (linker: pianola.linker.EnsembleLinker) -> typing.List[typing.Tuple[int, str, float]]:

	"""Every dispatched note as (device_id, note name, clock time)."""

	played: typing.List[typing.Tuple[int, str, float]] = []

	def on_note (device_id: int, instrument: str, token: typing.Any, when: float) -> None:
		played.append((device_id, token.name, when))

	linker.events.on("note", on_note)

	return played
