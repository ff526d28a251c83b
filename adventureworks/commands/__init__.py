from .seed_commands import seed_command
from .setup_commands import init_db_command

__all__ = ["init_db_command", "seed_command"]
