#!/usr/bin/env python3
"""
Launch script for the SMC structure engine HTTP API
"""
import sys

from smc_engine.web.app import run

if __name__ == "__main__":
    print("Starting SMC Structure Engine API...")
    print("Analyze endpoint: POST http://localhost:8000/api/analyze")
    print("Press Ctrl+C to stop")

    try:
        run(host="0.0.0.0", port=8000)
    except KeyboardInterrupt:
        print("\nAPI stopped by user")
    except OSError as e:
        print(f"\nError starting API: {e}")
        sys.exit(1)
