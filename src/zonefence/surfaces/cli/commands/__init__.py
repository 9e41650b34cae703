from .check import register_check_commands
from .rules import register_rules_commands

__all__ = ["register_check_commands", "register_rules_commands"]
