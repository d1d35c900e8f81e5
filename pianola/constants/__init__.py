"""Constants for pianola.

This package contains:

- ``pianola.constants.timing`` - Tick timing bounds and composition limits
- ``pianola.constants.velocity`` - Dynamic markings and their MIDI velocities
- ``pianola.constants.instruments`` - The instrument allow-list (General MIDI programs)

The timing limits are re-exported here so ``pianola.constants.MIN_TIMING``
works without importing the submodule.
"""

from pianola.constants.timing import (
	DEFAULT_TIMING,
	MAX_SCHEDULE_TICKS,
	MAX_TIMING,
	MAX_TOKENS,
	MIN_TIMING,
)
