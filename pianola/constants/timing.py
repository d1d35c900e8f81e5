"""Timing constants.

A *tick* is the scheduler's unit of time. Every note lasts a whole number of
ticks and one tick lasts ``timing`` seconds, so the timing value is the tempo
control: smaller is faster.
"""

# Seconds per tick (inclusive bounds)
MIN_TIMING = 0.1
MAX_TIMING = 0.5
DEFAULT_TIMING = 0.5

# Composition limits enforced by the parser
MAX_TOKENS = 1024
MAX_SCHEDULE_TICKS = 2048

DEFAULT_OCTAVE = 4
DEFAULT_TICKS = 1
