"""
pianola - a text-to-music player piano sequencer for Python.

Operators type notes as plain text; pianola parses them into a schedule of
timed note events and plays the schedule through an instrument, one note at a
time, on an asyncio clock. Several devices can be linked into an ensemble so
a single play command starts them all on the same tick.

What it covers:

- **Forgiving notation.** ``"C4 E4 G4:2 ~ C5@ff _"`` - pitches, durations in
  ticks, rests, sustains and dynamics. Typos are skipped and reported with
  their position instead of discarding the whole tune.
- **A strict playback state machine.** ``idle → armed → playing → stopping
  → idle``. Notes, timing, instrument, links and looping cannot be changed
  while a device plays; stop takes effect on the next tick.
- **Tempo and looping.** Seconds-per-tick timing within fixed bounds, a
  loop toggle, and a one-way lock that disables looping for good.
- **Ensembles.** Symmetric links between devices, group play with a shared
  onset, and pairing for linking by gesture.
- **Pure MIDI out.** Notes leave through ``mido`` to any synth or DAW; no
  audio engine is bundled.
- **Remote control.** A fixed command table, reachable over OSC.

Minimal example:

    ```python
    import asyncio
    import pianola

    async def main ():
        linker = pianola.EnsembleLinker()
        piano = pianola.Device(linker, pianola.MidiOutput(), instrument="piano")
        piano.set_notes("C4 D4 E4 F4 G4:4")
        piano.set_timing(0.25)
        piano.play()
        await asyncio.sleep(3)

    asyncio.run(main())
    ```

Package-level exports: ``Device``, ``EnsembleLinker``, ``MidiOutput``,
``ManualClock``, ``parse``.
"""

import pianola.clock
import pianola.device
import pianola.linker
import pianola.notation
import pianola.output


Device = pianola.device.Device
EnsembleLinker = pianola.linker.EnsembleLinker
MidiOutput = pianola.output.MidiOutput
ManualClock = pianola.clock.ManualClock
parse = pianola.notation.parse
