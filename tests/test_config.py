import textwrap

import pytest

import pianola.config
import pianola.errors

from pianola.scheduler import LoopMode


CONFIG = textwrap.dedent("""
	log_level: debug

	midi:
	  device_name: Other MIDI

	osc:
	  enabled: true
	  receive_port: 9100

	max_peers: "2"

	devices:
	  - name: parlour
	    timing: 0.25
	    notes: "C4 E4 G4:2"
	    loop: true
	  - name: attic
	    instrument: music box
	    channel: 1
	    notes: "nonsense"

	links:
	  - [parlour, attic]
""")


def test_missing_file_gives_defaults (tmp_path) -> None:

	config = pianola.config.load_config(str(tmp_path / "absent.yaml"))
	settings = pianola.config.settings_from_dict(config)

	assert config == {}
	assert settings == pianola.config.Settings()


def test_empty_file_gives_defaults (tmp_path) -> None:

	path = tmp_path / "config.yaml"
	path.write_text("")

	assert pianola.config.load_config(str(path)) == {}


def test_settings_from_yaml (tmp_path) -> None:

	path = tmp_path / "config.yaml"
	path.write_text(CONFIG)

	settings = pianola.config.settings_from_dict(pianola.config.load_config(str(path)))

	assert settings.log_level == "DEBUG"
	assert settings.midi_device == "Other MIDI"
	assert settings.osc_enabled is True
	assert settings.osc_receive_port == 9100
	assert settings.osc_send_port == 9001
	assert settings.max_peers == 2
	assert [device.name for device in settings.devices] == ["parlour", "attic"]
	assert settings.devices[1].instrument == "music box"
	assert settings.links == [("parlour", "attic")]


def test_build_devices (tmp_path, linker, output) -> None:

	path = tmp_path / "config.yaml"
	path.write_text(CONFIG)

	settings = pianola.config.settings_from_dict(pianola.config.load_config(str(path)))
	parlour, attic = pianola.config.build_devices(settings, linker, output)

	assert parlour.timing == 0.25
	assert parlour.loop_mode is LoopMode.ON
	assert [token.name for token in parlour.schedule] == ["C4", "E4", "G4"]

	# Unplayable notes leave an empty schedule and an error log to inspect
	assert attic.instrument.name == "music box"
	assert len(attic.schedule) == 0
	assert attic.error_log[-1] == "no playable notes found"

	assert parlour.peers == {attic.device_id}


def test_unknown_link_name_is_rejected (linker, output) -> None:

	settings = pianola.config.Settings(
		devices = [pianola.config.DeviceConfig(name="solo")],
		links = [("solo", "ghost")]
	)

	with pytest.raises(pianola.errors.LinkRejected, match="ghost"):
		pianola.config.build_devices(settings, linker, output)


def test_bad_timing_is_rejected (linker, output) -> None:

	settings = pianola.config.Settings(devices=[pianola.config.DeviceConfig(name="fast", timing=0.01)])

	with pytest.raises(pianola.errors.OutOfRange):
		pianola.config.build_devices(settings, linker, output)
