# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/mclone/cli/commands/__init__.py

"""
Command handlers for mclone CLI operations.

This package holds the logic behind each CLI command, separated from the
CLI interface layer:

- info: Read-only report of volumes and tasks
- actions: State-changing volume and task commands
"""
