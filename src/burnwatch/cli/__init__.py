"""
CLI commands for burnwatch.
"""

from burnwatch.cli.main import build_parser, main, replay_command, rules_command, tiers_command

__all__ = [
    "build_parser",
    "main",
    "replay_command",
    "rules_command",
    "tiers_command",
]
