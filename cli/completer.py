"""Custom completer for the gallery CLI with image path autocompletion."""

from pathlib import Path
from typing import Iterable

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from cli.constants import COMMANDS, SUPPORTED_IMAGE_EXTENSIONS


class GalleryCompleter(Completer):
    """
    Custom completer that provides:
    - Command name completion for the first token
    - Image path completion for the 'add' command, relative to the working directory
    """

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        text = document.text_before_cursor
        tokens = text.split()

        is_typing_new_token = text.endswith(" ") or not tokens

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_commands(tokens[0] if tokens else "")
            return

        command = tokens[0].lower()
        if command != "add":
            return

        current_word = "" if is_typing_new_token else tokens[-1]
        already_typed = set(tokens[1:])
        if not is_typing_new_token:
            already_typed.discard(current_word)

        yield from self._complete_image_paths(current_word, already_typed)

    def _complete_commands(self, partial: str) -> Iterable[Completion]:
        """Complete command names matching the partial input."""
        partial_lower = partial.lower()
        for cmd in COMMANDS:
            if cmd.startswith(partial_lower):
                yield Completion(cmd, start_position=-len(partial))

    def _complete_image_paths(
        self, partial: str, exclude: set
    ) -> Iterable[Completion]:
        """
        Complete directories and image files under the directory typed so far.

        Hidden entries are skipped unless the partial name starts with a dot.
        """
        directory_part, _, name_part = partial.rpartition("/")
        prefix = f"{directory_part}/" if directory_part or partial.startswith("/") else ""
        base = Path(directory_part or ("/" if partial.startswith("/") else "."))
        if not base.is_absolute():
            base = Path.cwd() / base

        if not base.is_dir():
            return

        candidates = []
        for item in base.iterdir():
            if item.name.startswith(".") and not name_part.startswith("."):
                continue
            if item.is_dir():
                candidates.append(f"{prefix}{item.name}/")
            elif item.is_file() and item.name.lower().endswith(SUPPORTED_IMAGE_EXTENSIONS):
                candidate = f"{prefix}{item.name}"
                if candidate not in exclude:
                    candidates.append(candidate)

        partial_lower = partial.lower()
        for candidate in sorted(candidates):
            if candidate.lower().startswith(partial_lower):
                yield Completion(candidate, start_position=-len(partial))
