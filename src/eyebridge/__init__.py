"""eyebridge -- Command bridge for animatronic eyes.

This package exposes a fixed catalog of eye-control operations (move,
eyelids, blink, look, random movement, auto-blink) to a conversational
agent and delivers each call to the eye controller as a wire command,
either as a text line over a serial port or as an HTTP query.
"""

__version__ = "0.1.0"
