#!/usr/bin/env python3
"""
Main entry point for the FitTrack API client
"""

from fittrack_client.main import run

if __name__ == "__main__":
    run()
