"""Run pianola as a service.

Usage::

    python -m pianola --config config.yaml

Devices are created from the config file and controlled over OSC (see
``pianola.osc``). Press Ctrl+C to stop.
"""

import argparse
import asyncio
import logging

import pianola.config
import pianola.linker
import pianola.osc
import pianola.output


logger = logging.getLogger(__name__)


async def _serve (settings: pianola.config.Settings) -> None:

	"""Build the devices, start the OSC bridge and wait until cancelled."""

	output = pianola.output.MidiOutput(settings.midi_device)
	linker = pianola.linker.EnsembleLinker(max_peers=settings.max_peers)
	devices = pianola.config.build_devices(settings, linker, output)

	for device in devices:
		logger.info(f"Device {device.device_id}: {device.name} ({device.instrument.name}, {device.timing}s per tick)")

	osc_server = None

	if settings.osc_enabled:
		osc_server = pianola.osc.OscServer(
			linker,
			receive_port = settings.osc_receive_port,
			send_port = settings.osc_send_port,
			send_host = settings.osc_send_host
		)
		await osc_server.start()

	try:
		await asyncio.Event().wait()
	finally:
		for device in devices:
			device.destroy()

		if osc_server is not None:
			await osc_server.stop()

		output.close()


def main () -> None:

	"""
	Main entry point for the pianola service.
	"""

	parser = argparse.ArgumentParser(prog="pianola", description="Text-to-music sequencer service")
	parser.add_argument("--config", default="config.yaml", help="path to the YAML config file")
	args = parser.parse_args()

	settings = pianola.config.settings_from_dict(pianola.config.load_config(args.config))

	logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))

	logger.info("pianola starting...")

	try:
		asyncio.run(_serve(settings))
	except KeyboardInterrupt:
		logger.info("Stopping...")


if __name__ == "__main__":
	main()
