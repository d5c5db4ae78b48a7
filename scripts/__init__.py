# Path: scripts/__init__.py
# Purpose: Package initializer for command line entrypoints.
# Layer: scripts.
# Details: Scripts are run directly; nothing is exported.
