import asyncio
import typing

import pytest

import pythonosc.dispatcher
import pythonosc.osc_server
import pythonosc.udp_client

import pianola.osc

from pianola.scheduler import PlaybackState


Received = typing.List[typing.Tuple[str, typing.Tuple[typing.Any, ...]]]


async def _receiver () -> typing.Tuple[asyncio.BaseTransport, int, Received]:

	"""Start a local OSC endpoint that records everything sent to it."""

	received: Received = []

	def record (address: str, *args: typing.Any) -> None:
		received.append((address, args))

	dispatcher = pythonosc.dispatcher.Dispatcher()
	dispatcher.set_default_handler(record)

	server = pythonosc.osc_server.AsyncIOOSCUDPServer(("127.0.0.1", 0), dispatcher, asyncio.get_running_loop())
	transport, _ = await server.create_serve_endpoint()

	return transport, transport.get_extra_info("sockname")[1], received


@pytest.mark.asyncio
async def test_osc_configures_a_device (linker, make_device) -> None:

	"""Underscored command names map onto the command table."""

	device = make_device()

	server = pianola.osc.OscServer(linker, receive_port=0, send_port=0)
	await server.start()

	client = pythonosc.udp_client.SimpleUDPClient("127.0.0.1", server.port)
	client.send_message(f"/pianola/{device.device_id}/set_notes", "C4 E4 G4:2")
	client.send_message(f"/pianola/{device.device_id}/set_timing", 0.25)
	client.send_message(f"/pianola/{device.device_id}/set_instrument", "celesta")

	await asyncio.sleep(0.1)

	assert [token.name for token in device.schedule] == ["C4", "E4", "G4"]
	assert device.timing == 0.25
	assert device.instrument.name == "celesta"

	await server.stop()


@pytest.mark.asyncio
async def test_osc_sends_results_and_state (clock, linker, make_device) -> None:

	transport, recv_port, received = await _receiver()

	device = make_device("C4 D4")

	server = pianola.osc.OscServer(linker, receive_port=0, send_port=recv_port)
	await server.start()

	client = pythonosc.udp_client.SimpleUDPClient("127.0.0.1", server.port)
	client.send_message(f"/pianola/{device.device_id}/play", [])

	await asyncio.sleep(0.1)

	assert device.state is PlaybackState.PLAYING

	client.send_message(f"/pianola/{device.device_id}/set_timing", 0.3)

	await asyncio.sleep(0.1)

	prefix = f"/pianola/{device.device_id}"

	assert (f"{prefix}/state", ("armed",)) in received
	assert (f"{prefix}/state", ("playing",)) in received
	assert (f"{prefix}/result", ("play", 1, str(device.device_id))) in received
	assert (f"{prefix}/result", ("set timing", 0, "cannot set timing while playing")) in received

	device.reset()

	await server.stop()
	transport.close()


@pytest.mark.asyncio
async def test_osc_unknown_device_and_command (linker, make_device) -> None:

	transport, recv_port, received = await _receiver()

	device = make_device()

	server = pianola.osc.OscServer(linker, receive_port=0, send_port=recv_port)
	await server.start()

	client = pythonosc.udp_client.SimpleUDPClient("127.0.0.1", server.port)
	client.send_message("/pianola/99/play", [])
	client.send_message(f"/pianola/{device.device_id}/dance", [])

	await asyncio.sleep(0.1)

	assert ("/pianola/99/result", ("play", 0, "no device with id 99")) in received
	assert (f"/pianola/{device.device_id}/result", ("dance", 0, "unknown command 'dance'")) in received

	await server.stop()
	transport.close()


def test_payload_joins_split_arguments () -> None:

	assert pianola.osc._payload(()) is None
	assert pianola.osc._payload((0.25,)) == 0.25
	assert pianola.osc._payload(("C4", "D4", "E4")) == "C4 D4 E4"


def test_format_value () -> None:

	assert pianola.osc._format_value(None) == ""
	assert pianola.osc._format_value([1, 2]) == "1 2"
	assert pianola.osc._format_value(True) == "True"
