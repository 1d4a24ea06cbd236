"""
Core modules for EnergyIQ.

This package contains the device catalogue, input parsing, the
consumption calculator, tariffs, tips and the conversational dialogue.
"""
