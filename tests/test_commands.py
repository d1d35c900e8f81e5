import pytest

import pianola.commands

from pianola.scheduler import LoopMode, PlaybackState


def test_command_table_names () -> None:

	assert set(pianola.commands.COMMANDS) == {
		"play", "set notes", "set timing", "set instrument", "stop", "reset",
		"view errors", "toggle loop", "lock loop", "link", "unlink", "autolink", "pair",
	}


def test_unknown_command_fails_without_side_effects (make_device) -> None:

	device = make_device("C4")
	before = device.snapshot()

	result = pianola.commands.dispatch(device, "explode")

	assert result == pianola.commands.CommandResult(ok=False, error="unknown command 'explode'")
	assert device.snapshot() == before


def test_configuration_commands (make_device) -> None:

	device = make_device()

	assert pianola.commands.dispatch(device, "set notes", "C4 D4 X").value == 2
	assert pianola.commands.dispatch(device, "set timing", "0.2").value == 0.2
	assert pianola.commands.dispatch(device, "set instrument", "organ").value == "organ"

	assert device.timing == 0.2
	assert device.instrument.name == "organ"

	result = pianola.commands.dispatch(device, "view errors")

	assert result.ok
	assert result.value == "1. unrecognized token 'X' at position 3"


def test_failures_carry_the_error_message (make_device) -> None:

	device = make_device("C4")

	result = pianola.commands.dispatch(device, "set timing", 2)

	assert not result.ok
	assert "outside" in result.error
	assert device.timing == 0.5

	result = pianola.commands.dispatch(device, "set instrument", "kazoo")

	assert result == pianola.commands.CommandResult(ok=False, error="unknown instrument 'kazoo'")

	result = pianola.commands.dispatch(device, "set instrument")

	assert not result.ok

	result = pianola.commands.dispatch(device, "set notes", "")

	assert not result.ok
	assert "no playable notes" in result.error


@pytest.mark.asyncio
async def test_play_stop_and_reset (clock, make_device) -> None:

	device = make_device("C4 D4 E4")

	result = pianola.commands.dispatch(device, "play")

	assert result.ok
	assert result.value == [device.device_id]

	result = pianola.commands.dispatch(device, "play")

	assert result == pianola.commands.CommandResult(ok=False, error="cannot play while playing")

	result = pianola.commands.dispatch(device, "set notes", "G4")

	assert result == pianola.commands.CommandResult(ok=False, error="cannot set notes while playing")

	assert pianola.commands.dispatch(device, "stop").value == [device.device_id]

	await clock.advance(0.5)

	assert device.state is PlaybackState.IDLE

	assert pianola.commands.dispatch(device, "reset", "hard").value is True
	assert len(device.schedule) == 0


@pytest.mark.parametrize("payload,hard", [
	(None, False),
	("", False),
	("soft", False),
	("hard", True),
	(" HARD ", True),
	("yes", True),
	(True, True),
	(0, False),
])
def test_reset_payload (make_device, payload, hard) -> None:

	device = make_device("C4")

	result = pianola.commands.dispatch(device, "reset", payload)

	assert result.value is hard
	assert (len(device.schedule) == 0) is hard


def test_loop_commands (make_device) -> None:

	device = make_device()

	assert pianola.commands.dispatch(device, "toggle loop").value == LoopMode.ON.value
	assert pianola.commands.dispatch(device, "lock loop").value == LoopMode.LOCKED.value

	result = pianola.commands.dispatch(device, "toggle loop")

	assert result == pianola.commands.CommandResult(ok=False, error="loop mode is locked")


def test_link_commands (linker, make_device) -> None:

	a = make_device()
	b = make_device()

	assert pianola.commands.dispatch(a, "link", str(b.device_id)).value is True
	assert a.peers == {b.device_id}

	result = pianola.commands.dispatch(a, "link", "piano")

	assert result == pianola.commands.CommandResult(ok=False, error="invalid device id 'piano'")

	assert pianola.commands.dispatch(b, "unlink").value == [a.device_id]

	assert pianola.commands.dispatch(a, "autolink").ok
	assert pianola.commands.dispatch(b, "pair").value == a.device_id
	assert linker.is_linked(a.device_id, b.device_id)

	result = pianola.commands.dispatch(b, "pair")

	assert result == pianola.commands.CommandResult(ok=False, error="no device is waiting to pair")
