"""OSC bridge from the signal bus into the command table.

The server listens on a UDP port (default 9000) for control messages and
sends results and state changes to a target host/port (default
127.0.0.1:9001).

Receive
───────
``/pianola/<device_id>/<command> [payload...]`` where ``<command>`` is a
name from ``pianola.commands.COMMANDS`` with spaces written as underscores::

    /pianola/1/set_notes "C4 E4 G4:2"
    /pianola/1/set_timing 0.25
    /pianola/1/play

Send
────
- ``/pianola/<device_id>/result <command> <ok> <text>``: after every command.
  ``<ok>`` is 1 or 0, ``<text>`` is the error on failure or the result value.
- ``/pianola/<device_id>/state <state>``: on every playback state change.
"""

import asyncio
import logging
import typing

import pythonosc.dispatcher
import pythonosc.osc_server
import pythonosc.udp_client

import pianola.commands
import pianola.errors
import pianola.linker
import pianola.scheduler


logger = logging.getLogger(__name__)

ADDRESS_PREFIX = "pianola"


class OscServer:

	"""Async OSC server/client for remote control of every device on a linker."""

	def __init__ (
		self,
		linker: pianola.linker.EnsembleLinker,
		receive_port: int = 9000,
		send_port: int = 9001,
		send_host: str = "127.0.0.1"
	) -> None:

		self._linker = linker
		self._receive_port = receive_port
		self._send_port = send_port
		self._send_host = send_host

		self._server: typing.Optional[typing.Any] = None
		self._transport: typing.Optional[asyncio.BaseTransport] = None
		self._client: typing.Optional[pythonosc.udp_client.SimpleUDPClient] = None
		self._dispatcher = pythonosc.dispatcher.Dispatcher()

		self._dispatcher.map(f"/{ADDRESS_PREFIX}/*", self._handle_command)

		self._linker.events.on("state", self._broadcast_state)


	@property
	def port (self) -> typing.Optional[int]:

		"""The bound receive port (useful when started with port 0)."""

		if self._transport is None:
			return None

		return self._transport.get_extra_info("sockname")[1]


	async def start (self) -> None:

		"""Start the OSC server and client."""

		self._client = pythonosc.udp_client.SimpleUDPClient(self._send_host, self._send_port)

		self._server = pythonosc.osc_server.AsyncIOOSCUDPServer(
			("0.0.0.0", self._receive_port),
			self._dispatcher,
			asyncio.get_running_loop()  # type: ignore[arg-type]
		)

		transport, _ = await self._server.create_serve_endpoint()
		self._transport = transport

		logger.info(f"OSC listening on :{self.port}, sending to {self._send_host}:{self._send_port}")


	async def stop (self) -> None:

		"""Stop the OSC server and stop broadcasting."""

		if self._transport:
			self._transport.close()
			self._transport = None
			logger.info("OSC server stopped")

		self._client = None


	def send (self, address: str, *args: typing.Any) -> None:

		"""Send an OSC message."""

		if self._client:
			try:
				self._client.send_message(address, list(args))
			except Exception as e:
				logger.warning(f"OSC send error: {e}")


	# Handlers

	def _handle_command (self, address: str, *args: typing.Any) -> None:

		# address is like /pianola/3/set_notes
		parts = address.strip("/").split("/")

		if len(parts) != 3:
			logger.warning(f"Ignoring OSC address {address}")
			return

		try:
			device_id = int(parts[1])
		except ValueError:
			logger.warning(f"Invalid OSC device id in {address}")
			return

		command = parts[2].replace("_", " ")

		try:
			device = self._linker.get(device_id)
		except pianola.errors.LinkRejected as e:
			self.send(f"/{ADDRESS_PREFIX}/{device_id}/result", command, 0, str(e))
			return

		result = pianola.commands.dispatch(device, command, _payload(args))

		text = result.error if not result.ok else _format_value(result.value)
		self.send(f"/{ADDRESS_PREFIX}/{device_id}/result", command, 1 if result.ok else 0, text)


	def _broadcast_state (self, device_id: int, state: pianola.scheduler.PlaybackState) -> None:
		self.send(f"/{ADDRESS_PREFIX}/{device_id}/state", state.value)


def _payload (args: typing.Tuple[typing.Any, ...]) -> typing.Any:

	"""One argument is passed through; several are joined with spaces (note text split by a sender)."""

	if not args:
		return None

	if len(args) == 1:
		return args[0]

	return " ".join(str(arg) for arg in args)


def _format_value (value: typing.Any) -> str:

	if value is None:
		return ""

	if isinstance(value, (list, tuple, set, frozenset)):
		return " ".join(str(item) for item in value)

	return str(value)
