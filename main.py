"""
Main entry point for the SMC structure engine
"""
import sys

from smc_engine.cli import main

if __name__ == '__main__':
    sys.exit(main())
