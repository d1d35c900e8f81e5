"""Ensemble linking.

Devices that are linked form an ensemble: a play command sent to any of them
starts every idle member of its group at the same clock instant. Each member
plays its own notes at its own timing with its own instrument; only the onset
is shared. Drift after the first tick is not corrected.

Links are symmetric and stored as one adjacency set per device id. Both sides
of a pair are updated in the same synchronous call, so a one-sided link can
never be observed.
"""

import itertools
import logging
import typing
import weakref

import pianola.clock
import pianola.errors
import pianola.event_emitter

if typing.TYPE_CHECKING:
	from pianola.device import Device


logger = logging.getLogger(__name__)


class EnsembleLinker:

	"""
	Registry of devices and the links between them.

	Devices are held by weak reference: the linker tracks membership but never
	keeps a device alive.
	"""

	def __init__ (
		self,
		clock: typing.Optional[pianola.clock.Clock] = None,
		events: typing.Optional[pianola.event_emitter.EventEmitter] = None,
		max_peers: typing.Optional[int] = None
	) -> None:

		"""
		Parameters:
			clock: Shared clock for every registered device (default: wall clock).
			events: Shared emitter for device and link events.
			max_peers: Optional cap on links per device. None means unlimited.
		"""

		self.clock: pianola.clock.Clock = clock if clock is not None else pianola.clock.AsyncioClock()
		self.events = events if events is not None else pianola.event_emitter.EventEmitter()
		self.max_peers = max_peers

		self._devices: "weakref.WeakValueDictionary[int, Device]" = weakref.WeakValueDictionary()
		self._peers: typing.Dict[int, typing.Set[int]] = {}
		self._ids = itertools.count(1)
		self._autolink_armed: typing.Optional[int] = None


	# Registry

	def register (self, device: "Device") -> int:

		"""
		Add a device and return its stable id.

		A device that is garbage collected without ``unregister()`` is
		dropped, links included, when it is finalized.
		"""

		device_id = next(self._ids)

		self._devices[device_id] = device
		self._peers[device_id] = set()

		weakref.finalize(device, self.unregister, device_id)

		return device_id


	def unregister (self, device_id: int) -> None:

		"""Drop a device and every link it had."""

		if device_id in self._peers:
			self.unlink_all(device_id)
			del self._peers[device_id]

		self._devices.pop(device_id, None)


	def get (self, device_id: int) -> "Device":

		"""
		Look up a registered device.

		Raises:
			LinkRejected: If no device has that id.
		"""

		device = self._devices.get(device_id)

		if device is None:
			raise pianola.errors.LinkRejected(f"no device with id {device_id}")

		return device


	def devices (self) -> typing.List["Device"]:
		return [self._devices[device_id] for device_id in sorted(self._devices.keys())]


	# Membership

	def peers (self, device_id: int) -> typing.FrozenSet[int]:
		return frozenset(self._peers.get(device_id, ()))


	def is_linked (self, a: int, b: int) -> bool:
		return b in self._peers.get(a, ())


	def group (self, device_id: int) -> typing.FrozenSet[int]:

		"""Every device reachable through links from ``device_id``, itself included."""

		seen = {device_id}
		frontier = [device_id]

		while frontier:
			current = frontier.pop()
			for peer in self._peers.get(current, ()):
				if peer not in seen:
					seen.add(peer)
					frontier.append(peer)

		return frozenset(seen)


	def link (self, a: int, b: int) -> bool:

		"""
		Link two devices symmetrically.

		Returns False if they were already linked.

		Raises:
			LinkRejected: For a self-link, an unknown, busy or unanchored
				device, or when either side is at ``max_peers``.
		"""

		if a == b:
			raise pianola.errors.LinkRejected("a device cannot link to itself")

		for device in (self.get(a), self.get(b)):

			if device.busy:
				raise pianola.errors.LinkRejected(f"device {device.device_id} is busy")

			if not device.anchored:
				raise pianola.errors.LinkRejected(f"device {device.device_id} is not anchored")

		if b in self._peers[a]:
			return False

		if self.max_peers is not None and max(len(self._peers[a]), len(self._peers[b])) >= self.max_peers:
			raise pianola.errors.LinkRejected(f"link capacity of {self.max_peers} reached")

		self._peers[a].add(b)
		self._peers[b].add(a)

		logger.info(f"Linked devices {a} and {b}")

		self.events.emit("link", a, b)
		self.events.emit("link", b, a)

		return True


	def unlink_all (self, device_id: int) -> typing.FrozenSet[int]:

		"""Remove a device from every peer set and clear its own. Returns the former peers."""

		former = frozenset(self._peers.get(device_id, ()))

		for peer in former:
			self._peers[peer].discard(device_id)

		if device_id in self._peers:
			self._peers[device_id] = set()

		if self._autolink_armed == device_id:
			self._autolink_armed = None

		for peer in sorted(former):
			self.events.emit("unlink", device_id, peer)
			self.events.emit("unlink", peer, device_id)

		if former:
			logger.info(f"Unlinked device {device_id} from {sorted(former)}")

		return former


	# Pairing

	def arm_autolink (self, device_id: int) -> None:

		"""Make ``device_id`` accept the next ``pair()`` from another device. Does not link."""

		self.get(device_id)
		self._autolink_armed = device_id

		logger.info(f"Device {device_id} waiting to pair")


	@property
	def autolink_armed (self) -> typing.Optional[int]:
		return self._autolink_armed


	def pair (self, device_id: int) -> int:

		"""
		Complete a pairing gesture by linking ``device_id`` to the armed device.

		Returns the id of the device it was paired with.

		Raises:
			LinkRejected: If no other device is waiting, or the link itself is refused.
		"""

		armed = self._autolink_armed

		if armed is None or armed == device_id:
			raise pianola.errors.LinkRejected("no device is waiting to pair")

		self.link(armed, device_id)
		self._autolink_armed = None

		return armed


	# Group playback

	def ready_piano (self, conductor_id: int) -> typing.List[int]:

		"""
		Start the conductor and every idle, playable member of its group together.

		Returns:
			Ids of the devices that started, conductor first.

		Raises:
			Whatever the conductor's own arm raises. Peers that are busy or
			cannot play are skipped.
		"""

		conductor = self.get(conductor_id)
		conductor.arm()

		armed = [conductor]

		for peer_id in sorted(self.group(conductor_id) - {conductor_id}):

			peer = self._devices.get(peer_id)

			if peer is None:
				continue

			if peer.busy:
				logger.info(f"Ensemble play: skipping busy device {peer_id}")
				continue

			try:
				peer.arm()
			except pianola.errors.PianolaError as e:
				logger.warning(f"Ensemble play: skipping device {peer_id}: {e}")
				continue

			armed.append(peer)

		start_at = self.clock.now()

		for device in armed:
			device.scheduler.launch(start_at)

		return [device.device_id for device in armed]


	def stop_group (self, device_id: int) -> typing.List[int]:

		"""Request a stop on every playing member of the group. Returns the ids asked to stop."""

		stopped: typing.List[int] = []

		for member_id in sorted(self.group(device_id)):

			member = self._devices.get(member_id)

			if member is not None and member.scheduler.request_stop():
				stopped.append(member_id)

		return stopped
