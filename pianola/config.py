"""YAML configuration for the pianola service.

Example ``config.yaml``::

    log_level: INFO

    midi:
      device_name: "FluidSynth virtual port"

    osc:
      enabled: true
      receive_port: 9000
      send_port: 9001
      send_host: 127.0.0.1

    max_peers: 4

    devices:
      - name: parlour
        instrument: piano
        timing: 0.25
        notes: "C4 E4 G4:2 ~ C5@ff"
        loop: true
      - name: attic
        instrument: music box
        channel: 1

    links:
      - [parlour, attic]

Every key is optional. A missing file gives the defaults below.
"""

import dataclasses
import logging
import os
import typing

import yaml

import pianola.constants.instruments
import pianola.constants.timing
import pianola.device
import pianola.errors
import pianola.linker
import pianola.output


logger = logging.getLogger(__name__)


@dataclasses.dataclass
class DeviceConfig:

	"""Initial setup for one device."""

	name: str
	instrument: typing.Optional[str] = pianola.constants.instruments.DEFAULT_INSTRUMENT
	timing: float = pianola.constants.timing.DEFAULT_TIMING
	channel: int = 0
	notes: str = ""
	loop: bool = False


@dataclasses.dataclass
class Settings:

	"""Service-wide settings."""

	log_level: str = "INFO"
	midi_device: typing.Optional[str] = None
	osc_enabled: bool = False
	osc_receive_port: int = 9000
	osc_send_port: int = 9001
	osc_send_host: str = "127.0.0.1"
	max_peers: typing.Optional[int] = None
	devices: typing.List[DeviceConfig] = dataclasses.field(default_factory=list)
	links: typing.List[typing.Tuple[str, str]] = dataclasses.field(default_factory=list)


def load_config (config_path: str = 'config.yaml') -> dict:

	"""
	Load configuration from a YAML file.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return {}

	with open(config_path, 'r') as f:
		return yaml.safe_load(f) or {}


def settings_from_dict (config: typing.Dict[str, typing.Any]) -> Settings:

	"""Build ``Settings`` from a loaded config dict, applying defaults for anything missing."""

	midi = config.get('midi', {}) or {}
	osc = config.get('osc', {}) or {}

	devices = [
		DeviceConfig(
			name = str(entry.get('name', f"device-{index}")),
			instrument = entry.get('instrument', pianola.constants.instruments.DEFAULT_INSTRUMENT),
			timing = entry.get('timing', pianola.constants.timing.DEFAULT_TIMING),
			channel = int(entry.get('channel', 0)),
			notes = str(entry.get('notes', "") or ""),
			loop = bool(entry.get('loop', False))
		)
		for index, entry in enumerate(config.get('devices', []) or [], start=1)
	]

	links = [(str(pair[0]), str(pair[1])) for pair in config.get('links', []) or []]

	max_peers = config.get('max_peers')

	return Settings(
		log_level = str(config.get('log_level', "INFO")).upper(),
		midi_device = midi.get('device_name'),
		osc_enabled = bool(osc.get('enabled', False)),
		osc_receive_port = int(osc.get('receive_port', 9000)),
		osc_send_port = int(osc.get('send_port', 9001)),
		osc_send_host = str(osc.get('send_host', "127.0.0.1")),
		max_peers = int(max_peers) if max_peers is not None else None,
		devices = devices,
		links = links
	)


def build_devices (
	settings: Settings,
	linker: pianola.linker.EnsembleLinker,
	output: pianola.output.SoundOutput
) -> typing.List[pianola.device.Device]:

	"""
	Create the configured devices, load their notes and link them.

	Notes that fail to parse are logged and left for the operator to fix;
	bad timing, instrument or link settings raise.
	"""

	devices: typing.List[pianola.device.Device] = []
	by_name: typing.Dict[str, pianola.device.Device] = {}

	for entry in settings.devices:

		device = pianola.device.Device(
			linker,
			output,
			name = entry.name,
			instrument = entry.instrument,
			timing = entry.timing,
			channel = entry.channel
		)

		if entry.notes:
			try:
				device.set_notes(entry.notes)
			except pianola.errors.NotPlayable:
				logger.warning(f"Device '{entry.name}' has no playable notes:\n{device.view_errors()}")

		if entry.loop:
			device.toggle_loop()

		devices.append(device)
		by_name[entry.name] = device

	for a, b in settings.links:

		if a not in by_name or b not in by_name:
			raise pianola.errors.LinkRejected(f"cannot link unknown devices '{a}' and '{b}'")

		by_name[a].link(by_name[b].device_id)

	return devices
