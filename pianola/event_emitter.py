"""Observable effects of the sequencer.

Devices and the linker push what happens to them out through an
``EventEmitter`` so collaborators (an OSC bridge, a display, a test) can react
without the sequencer knowing about them. Events emitted by pianola:

- ``"state" (device_id, state)``: a scheduler changed ``PlaybackState``.
- ``"note" (device_id, instrument, token, when)``: a note was dispatched.
- ``"errors" (device_id, errors)``: a parse replaced the device's error log.
- ``"link" (device_id, peer_id)`` / ``"unlink" (device_id, peer_id)``: link membership changed.
"""

import asyncio
import typing


CallbackType = typing.Callable[..., typing.Any]


class EventEmitter:

	"""
	A small synchronous event registry.

	Playback ticks emit from inside the timer task, so listeners must be plain
	callables. Coroutine functions are refused at registration time.
	"""

	def __init__ (self) -> None:

		self._listeners: typing.Dict[str, typing.List[CallbackType]] = {}


	def on (self, event_name: str, callback: CallbackType) -> None:

		"""
		Register a callback for an event name.

		Raises ``ValueError`` for coroutine functions.
		"""

		if asyncio.iscoroutinefunction(callback):
			raise ValueError(f"Async callback cannot listen to {event_name!r}")

		self._listeners.setdefault(event_name, []).append(callback)


	def off (self, event_name: str, callback: CallbackType) -> None:

		"""
		Unregister a previously registered callback.

		Raises ``ValueError`` if the callback is not registered for the event.
		"""

		if callback not in self._listeners.get(event_name, []):
			raise ValueError(f"Callback not registered for event {event_name!r}")

		self._listeners[event_name].remove(callback)


	def listener_count (self, event_name: str) -> int:
		return len(self._listeners.get(event_name, []))


	def emit (self, event_name: str, *args: typing.Any) -> None:

		"""Call every listener for the event in registration order."""

		for callback in list(self._listeners.get(event_name, [])):
			callback(*args)
