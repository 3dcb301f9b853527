"""
relaunch CLI package.

Commands are auto-discovered from ``cli/commands``: each module defines
``SUMMARY``, ``register_args(parser)`` and ``main(args) -> int``.
"""
from ._output import OutputFormatter
from ._args import add_json_flag, add_repo_root_flag, add_standard_flags, add_store_dir_flag
from ._utils import get_repo_root, load_options

__all__ = [
    "OutputFormatter",
    "add_json_flag",
    "add_repo_root_flag",
    "add_store_dir_flag",
    "add_standard_flags",
    "get_repo_root",
    "load_options",
]
