"""Entry point for the E20 cache simulator.

Usage:
    python run.py program.bin                      # uncached run, prints final state
    python run.py --cache 4,1,1 program.bin        # L1 only
    python run.py --cache 4,1,1,8,2,2 program.bin  # L1 and L2
"""
import sys

from e20sim.simulation.cli import main


if __name__ == '__main__':
    sys.exit(main())
