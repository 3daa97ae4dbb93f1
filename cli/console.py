"""Terminal implementation of the ConversationIO surface."""

import asyncio
import sys
from typing import Optional, TextIO

from implementation.classes.enums import MessageTone

_RESET = "\033[0m"
_PROMPT_COLOR = "\033[94m"
_TONE_COLORS: dict[MessageTone, str] = {
    MessageTone.INFO: "",
    MessageTone.SUCCESS: "\033[32m",
    MessageTone.WARNING: "\033[33m",
    MessageTone.ERROR: "\033[31m",
    MessageTone.QUESTION: "\033[95m",
}


class ConsoleIO:
    """
    Line-oriented prompts on stdin/stdout.

    input() blocks, so it runs in a worker thread to keep the event loop free
    for background tasks (e.g. outcome recording) while the user types.
    Colors are only emitted when the output stream is a terminal.
    """

    def __init__(self, stream: TextIO = sys.stdout, use_color: Optional[bool] = None) -> None:
        self._stream = stream
        if use_color is None:
            use_color = hasattr(stream, "isatty") and stream.isatty()
        self._use_color = use_color

    def _paint(self, text: str, color: str) -> str:
        if not self._use_color or not color:
            return text
        return f"{color}{text}{_RESET}"

    async def ask(self, prompt: str) -> str:
        # EOFError propagates: a closed input stream ends the conversation.
        return await asyncio.to_thread(input, self._paint(prompt, _PROMPT_COLOR))

    def show(self, message: str, tone: MessageTone = MessageTone.INFO) -> None:
        print(self._paint(message, _TONE_COLORS[tone]), file=self._stream, flush=True)
