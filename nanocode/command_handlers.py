# nanocode/command_handlers.py
from nanocode.commands.quit_command import try_handle_quit_command
from nanocode.commands.clear_command import try_handle_clear_command
from nanocode.commands.init_command import try_handle_init_command
from nanocode.commands.context_command import try_handle_context_command
from nanocode.commands.set_command import try_handle_set_command
from nanocode.commands.debug_command import try_handle_debug_command
from nanocode.commands.help_command import try_handle_help_command

MAIN_LOOP_COMMAND_HANDLERS = [
    try_handle_quit_command,
    try_handle_clear_command,
    try_handle_init_command,
    try_handle_context_command,
    try_handle_set_command,
    try_handle_debug_command,
    try_handle_help_command,
]


def dispatch_command(user_input: str, app_state) -> bool:
    """Runs the first handler that accepts 'user_input'. Returns True if one did."""
    for handler_func in MAIN_LOOP_COMMAND_HANDLERS:
        if handler_func(user_input, app_state):
            return True
    return False
