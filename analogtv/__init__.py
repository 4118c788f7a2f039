"""Filters, DANCE audio, Eurocrypt, copy protection pulses, file output and options for analogue television."""

__version__ = "0.1.0"