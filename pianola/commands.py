"""The fixed command surface exposed to the signal bus.

External controls (an OSC message, a button, a script) never call device
methods directly. They send a command name and an optional payload to
``dispatch``, which looks the handler up in ``COMMANDS`` and turns any
``PianolaError`` into a failed ``CommandResult`` carrying the message.

| Command | Payload |
|---|---|
| ``play`` | - |
| ``set notes`` | note text |
| ``set timing`` | number or numeric string |
| ``set instrument`` | instrument name |
| ``stop`` | - |
| ``reset`` | optional ``"hard"`` |
| ``view errors`` | - |
| ``toggle loop`` / ``lock loop`` | - |
| ``link`` | peer device id |
| ``unlink`` / ``autolink`` / ``pair`` | - |
"""

import dataclasses
import logging
import typing

import pianola.errors

if typing.TYPE_CHECKING:
	from pianola.device import Device


logger = logging.getLogger(__name__)


@dataclasses.dataclass (frozen=True)
class CommandResult:

	"""Outcome of one command: success flag, error text on failure, and an optional value."""

	ok: bool
	error: typing.Optional[str] = None
	value: typing.Any = None


Handler = typing.Callable[["Device", typing.Any], typing.Any]


def _play (device: "Device", payload: typing.Any) -> typing.List[int]:
	return device.play()


def _set_notes (device: "Device", payload: typing.Any) -> int:
	return len(device.set_notes("" if payload is None else str(payload)).schedule)


def _set_timing (device: "Device", payload: typing.Any) -> float:
	return device.set_timing(payload)


def _set_instrument (device: "Device", payload: typing.Any) -> str:

	if payload is None:
		raise pianola.errors.InvalidInstrument("no instrument named")

	return device.set_instrument(str(payload))


def _stop (device: "Device", payload: typing.Any) -> typing.List[int]:
	return device.stop()


def _reset (device: "Device", payload: typing.Any) -> bool:

	hard = _is_hard(payload)
	device.reset(hard=hard)

	return hard


def _view_errors (device: "Device", payload: typing.Any) -> str:
	return device.view_errors()


def _toggle_loop (device: "Device", payload: typing.Any) -> str:
	return device.toggle_loop().value


def _lock_loop (device: "Device", payload: typing.Any) -> str:

	device.lock_loop()

	return device.loop_mode.value


def _link (device: "Device", payload: typing.Any) -> bool:

	try:
		peer_id = int(payload)
	except (TypeError, ValueError):
		raise pianola.errors.LinkRejected(f"invalid device id {payload!r}") from None

	return device.link(peer_id)


def _unlink (device: "Device", payload: typing.Any) -> typing.List[int]:
	return sorted(device.unlink())


def _autolink (device: "Device", payload: typing.Any) -> None:
	device.arm_autolink()


def _pair (device: "Device", payload: typing.Any) -> int:
	return device.pair()


def _is_hard (payload: typing.Any) -> bool:

	if isinstance(payload, str):
		return payload.strip().lower() in ("hard", "true", "1", "yes")

	return bool(payload)


COMMANDS: typing.Dict[str, Handler] = {
	"play": _play,
	"set notes": _set_notes,
	"set timing": _set_timing,
	"set instrument": _set_instrument,
	"stop": _stop,
	"reset": _reset,
	"view errors": _view_errors,
	"toggle loop": _toggle_loop,
	"lock loop": _lock_loop,
	"link": _link,
	"unlink": _unlink,
	"autolink": _autolink,
	"pair": _pair,
}


def dispatch (device: "Device", command: str, payload: typing.Any = None) -> CommandResult:

	"""
	Run one command against a device.

	Returns:
		``CommandResult(ok=True, value=...)`` on success, or
		``CommandResult(ok=False, error=...)`` for an unknown command or any
		``PianolaError``. Other exceptions propagate.
	"""

	handler = COMMANDS.get(command)

	if handler is None:
		return CommandResult(ok=False, error=f"unknown command '{command}'")

	try:
		value = handler(device, payload)
	except pianola.errors.PianolaError as e:
		logger.info(f"Device {device.device_id} '{command}' failed: {e}")
		return CommandResult(ok=False, error=str(e))

	return CommandResult(ok=True, value=value)
