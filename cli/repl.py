"""REPL with prompt_toolkit for user interaction."""

import os
import sys

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout

from common.exceptions import GalleryError
from common.logging_config import get_logger
from common.types import Notification
from cli.commands import (
    get_session,
    handle_add,
    handle_categories,
    handle_category_add,
    handle_category_delete,
    handle_category_move,
    handle_clear_completed,
    handle_copy,
    handle_delete,
    handle_gallery,
    handle_move,
    handle_queue,
    handle_refresh,
    handle_remove,
    handle_save,
    handle_select,
    handle_set_key,
    handle_status,
    handle_upload,
)
from cli.completer import GalleryCompleter
from cli.constants import (
    GREEN,
    HELP_TEXT,
    LOGO,
    PROMPT_TEXT,
    RED,
    RESET,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
)
from cli.models import (
    AddCommand,
    CategoriesCommand,
    CategoryAddCommand,
    CategoryDeleteCommand,
    CategoryMoveCommand,
    ClearCompletedCommand,
    CopyCommand,
    DeleteCommand,
    GalleryCommand,
    MoveCommand,
    QueueCommand,
    RefreshCommand,
    RemoveCommand,
    SaveCommand,
    SelectCommand,
    SetKeyCommand,
    StatusCommand,
    UploadCommand,
)
from cli.parser import ParseError, parse_command
from cli.session import GallerySession

logger = get_logger(__name__)

HANDLERS = {
    AddCommand: handle_add,
    QueueCommand: handle_queue,
    RemoveCommand: handle_remove,
    UploadCommand: handle_upload,
    ClearCompletedCommand: handle_clear_completed,
    CopyCommand: handle_copy,
    GalleryCommand: handle_gallery,
    RefreshCommand: handle_refresh,
    DeleteCommand: handle_delete,
    MoveCommand: handle_move,
    SaveCommand: handle_save,
    CategoriesCommand: handle_categories,
    SelectCommand: handle_select,
    CategoryAddCommand: handle_category_add,
    CategoryDeleteCommand: handle_category_delete,
    CategoryMoveCommand: handle_category_move,
    SetKeyCommand: handle_set_key,
    StatusCommand: handle_status,
}


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    if sys.platform == "win32":
        os.system("cls")
    else:
        os.system("clear")


def show_welcome() -> None:
    print(LOGO)
    print(WELCOME_TITLE)
    print(WELCOME_HELP)


def format_notification(notification: Notification) -> str:
    color = RED if notification.kind == "error" else GREEN
    return f"{color}{notification.message}{RESET}"


def print_notifications(session: GallerySession) -> None:
    for notification in session.drain_notifications():
        print(format_notification(notification))


async def dispatch_command(cmd_obj, session: GallerySession) -> str:
    """Dispatch parsed command to appropriate handler."""
    handler = HANDLERS.get(type(cmd_obj))
    if handler is None:
        return f"Unknown command type: {type(cmd_obj)}"
    return await handler(cmd_obj, session)


async def repl_loop() -> None:
    """Start interactive REPL with prompt_toolkit."""
    session = get_session()
    prompt: PromptSession = PromptSession(
        completer=GalleryCompleter(),
        history=InMemoryHistory(),
        clipboard=session.clipboard,
        style=STYLE,
    )

    session.on_upload_done = lambda: print_notifications(session)

    clear_screen()
    show_welcome()
    if not session.config.is_configured():
        print(f"{RED}Upload API not configured.{RESET} Run set-key <key> or set api_url and api_key in {session.config.config_path}\n")

    try:
        with patch_stdout():
            while True:
                try:
                    user_input = await prompt.prompt_async([("class:prompt", PROMPT_TEXT)])
                    command = user_input.strip()

                    if not command:
                        continue

                    if command == "exit":
                        if session.upload_running:
                            print("Warning: the running upload was cancelled.")
                        if session.gallery.dirty:
                            print("Warning: unsaved gallery order changes were discarded.")
                        print("Goodbye!")
                        break

                    if command == "help":
                        print(HELP_TEXT)
                        continue

                    if command == "clear":
                        clear_screen()
                        show_welcome()
                        continue

                    cmd_obj = parse_command(user_input)
                    result = await dispatch_command(cmd_obj, session)
                    print(result)

                except (ParseError, GalleryError) as e:
                    print(f"Error: {e}")
                except KeyboardInterrupt:
                    session.reorder.cancel()
                    continue
                except EOFError:
                    print("\nGoodbye!")
                    break
                finally:
                    print_notifications(session)
    finally:
        await session.close()
