"""Command parser for CLI input."""

import shlex

from cli.models import (
    AddCommand,
    CategoriesCommand,
    CategoryAddCommand,
    CategoryDeleteCommand,
    CategoryMoveCommand,
    ClearCompletedCommand,
    CommandRequest,
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


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


NO_ARG_COMMANDS = {
    "queue": QueueCommand,
    "upload": UploadCommand,
    "clear-completed": ClearCompletedCommand,
    "refresh": RefreshCommand,
    "save": SaveCommand,
    "categories": CategoriesCommand,
    "status": StatusCommand,
}


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name, args = tokens[0].lower(), tokens[1:]

    if command_name in NO_ARG_COMMANDS:
        if args:
            raise ParseError(f"{command_name} takes no arguments")
        return NO_ARG_COMMANDS[command_name]()
    elif command_name == "add":
        return _parse_add(args)
    elif command_name == "remove":
        return RemoveCommand(entry_ref=_single_arg("remove", args, "<n|id>"))
    elif command_name == "copy":
        return CopyCommand(entry_ref=_single_arg("copy", args, "<n|id>"))
    elif command_name == "gallery":
        return _parse_gallery(args)
    elif command_name == "delete":
        return DeleteCommand(key=_single_arg("delete", args, "<key>"))
    elif command_name == "move":
        return MoveCommand(*_parse_positions("move", args))
    elif command_name == "select":
        return _parse_select(args)
    elif command_name == "category-add":
        return _parse_category_add(args)
    elif command_name == "category-delete":
        return CategoryDeleteCommand(category_id=_single_arg("category-delete", args, "<id>"))
    elif command_name == "category-move":
        return CategoryMoveCommand(*_parse_positions("category-move", args))
    elif command_name == "set-key":
        return SetKeyCommand(key=_single_arg("set-key", args, "<key>"))
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _single_arg(command_name: str, args: list[str], usage: str) -> str:
    if len(args) != 1:
        raise ParseError(f"{command_name} requires exactly 1 argument: {usage}")
    return args[0]


def _parse_add(args: list[str]) -> AddCommand:
    """Parse 'add file-list' command."""
    if not args:
        raise ParseError("add requires at least one file")

    return AddCommand(file_list=tuple(args))


def _parse_gallery(args: list[str]) -> GalleryCommand:
    """Parse 'gallery [category]' command."""
    if len(args) > 1:
        raise ParseError("gallery takes at most 1 argument: [category] (quote titles with spaces)")

    return GalleryCommand(category=args[0] if args else None)


def _parse_positions(command_name: str, args: list[str]) -> tuple[int, int]:
    """Parse '<from> <to>' 1-based positions into zero-based indices."""
    if len(args) != 2:
        raise ParseError(f"{command_name} requires exactly 2 arguments: <from> <to>")

    try:
        positions = [int(arg) for arg in args]
    except ValueError:
        raise ParseError(f"{command_name} positions must be whole numbers")

    if any(p < 1 for p in positions):
        raise ParseError(f"{command_name} positions start at 1")

    from_pos, to_pos = positions
    return from_pos - 1, to_pos - 1


def _parse_select(args: list[str]) -> SelectCommand:
    """Parse 'select title-list' command."""
    if not args:
        raise ParseError("select requires at least one category title")

    return SelectCommand(titles=tuple(args))


def _parse_category_add(args: list[str]) -> CategoryAddCommand:
    """Parse 'category-add <title>'; unquoted words are joined."""
    title = " ".join(args).strip()
    if not title:
        raise ParseError("category-add requires a title")

    return CategoryAddCommand(title=title)
