"""
SyncWatch Application Package.

Service wiring and command line entry point.
Requires Python 3.11+.
"""

# Use: from app.main import main, SyncService
