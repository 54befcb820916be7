"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = [
    "add", "queue", "remove", "upload", "clear-completed", "copy",
    "gallery", "refresh", "delete", "move", "save",
    "categories", "select", "category-add", "category-delete", "category-move",
    "set-key", "status", "clear", "exit", "help",
]

STYLE = Style.from_dict(
    {
        "prompt": "#F48120 bold",
        "command": "#0088ff bold",
    }
)

ORANGE = "\033[38;2;244;129;32m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
RED = "\033[31m"
RESET = "\033[0m"

LOGO = f"""{ORANGE}
  ┌─┐┌─┐┬  ┬  ┌─┐┬─┐┬ ┬  ┬ ┬┌─┐┬  ┌─┐┌─┐┌┬┐┌─┐┬─┐
  │ ┬├─┤│  │  ├┤ ├┬┘└┬┘  │ │├─┘│  │ │├─┤ ││├┤ ├┬┘
  └─┘┴ ┴┴─┘┴─┘└─┘┴└─ ┴   └─┘┴  ┴─┘└─┘┴ ┴─┴┘└─┘┴└─
{RESET}"""

WELCOME_TITLE = "Gallery Uploader - R2 image gallery manager"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "gallery> "

HELP_TEXT = """Available commands:
  add <file> [file ...]           Queue image files (tagged with the selected categories)
  queue                           Show the upload queue
  remove <n|id>                   Remove a queued file
  upload                          Upload every pending file
  clear-completed                 Remove uploaded files from the queue
  copy <n|id>                     Copy an uploaded file's URL
  gallery [category]              Show the gallery in display order
  refresh                         Reload the gallery from the server
  delete <key>                    Delete a file from the gallery
  move <from> <to>                Move the item at position <from> to <to>
  save                            Save the current gallery order
  categories                      List categories (* = selected)
  select <title> [title ...]      Toggle categories for new uploads
  category-add <title>            Create a category
  category-delete <id>            Delete a category
  category-move <from> <to>       Reorder the category list
  set-key <key>                   Save the upload API key to the config file
  status                          Show configuration, server health and queue counts
  clear                           Clear screen and redisplay welcome message
  help                            Show this help
  exit                            Exit REPL

Examples:
  select Library Travel
  add photos/beach.jpg photos/sunset.png
  upload
  move 4 1
  save"""

SUPPORTED_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".avif", ".svg", ".bmp")
