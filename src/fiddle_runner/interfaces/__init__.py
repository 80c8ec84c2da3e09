"""
Interfaces Layer

Driving adapters that initiate runs: the fiddle-run command line.
"""
