"""
macD, a small process supervisor.

Launches the programs listed in a config file, reports their CPU and memory
usage every few seconds, and kills whatever is still running once the
configured time limit expires or a shutdown signal arrives.
"""
