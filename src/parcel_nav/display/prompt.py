from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm


class UserPrompt(ABC):
    """User-facing messages and the routing confirmation gate."""

    @abstractmethod
    def alert(self, message: str) -> None: ...

    @abstractmethod
    async def confirm(self, message: str) -> bool: ...


class ConsolePrompt(UserPrompt):
    def __init__(self, console: Optional[Console] = None, assume_yes: bool = False):
        self.console = console or Console()
        self.assume_yes = assume_yes

    def alert(self, message: str) -> None:
        self.console.print(f"[bold yellow]![/] {escape(message)}")

    async def confirm(self, message: str) -> bool:
        if self.assume_yes:
            self.console.print(f"{message} [dim](yes)[/]")
            return True
        # Confirm.ask blocks on stdin; keep the loop free meanwhile
        return await asyncio.to_thread(Confirm.ask, message, console=self.console)


class AutoPrompt(UserPrompt):
    """Answers every confirmation with ``answer`` and records alerts."""

    def __init__(self, answer: bool = True):
        self.answer = answer
        self.alerts: List[str] = []
        self.questions: List[str] = []

    def alert(self, message: str) -> None:
        self.alerts.append(message)

    async def confirm(self, message: str) -> bool:
        self.questions.append(message)
        return self.answer
