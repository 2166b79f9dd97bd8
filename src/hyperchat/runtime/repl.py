import asyncio
import logging

from hyperchat.runtime.builtins import BuiltinCommands
from hyperchat.runtime.router import InputRouter

logger = logging.getLogger(__name__)


class ChatREPL:
    def __init__(self, sync):
        self.sync = sync
        self.builtins = BuiltinCommands(sync)
        self.router = InputRouter(self.builtins)
        self.draft: str | None = None

    async def send(self, text: str) -> None:
        outcome = await self.sync.submit(text)
        if outcome.ok:
            self.draft = None
            print(f"\n🤖 Assistant: {outcome.reply}")
            return
        if outcome.input_consumed:
            self.draft = None
        elif outcome.error is not None:
            # The message never reached the conversation; offer it again.
            self.draft = text
        if outcome.error is not None:
            print(f"\n❌ {outcome.error}")
            if self.draft:
                print("Press Enter to retry the unsent message.")
        else:
            print(f"\n⚠️  Not sent: {outcome.reason}")

    async def run(self) -> None:
        print(f"💬 {self.sync.title}")
        print("Commands: /help for all commands")
        print()

        while True:
            try:
                user_input = (await asyncio.to_thread(input, "\n> ")).strip()

                if not user_input:
                    if self.draft:
                        await self.send(self.draft)
                    continue

                route = self.router.route(user_input)
                if route.kind == "builtin":
                    if not await self.builtins.handle(route.name, route.args):
                        break
                    continue
                if route.kind == "unknown":
                    print(f"Unknown command: /{route.name}. Type /help for available commands.")
                    continue

                await self.send(route.args)

            except (KeyboardInterrupt, EOFError):
                break

        for warning in await self.sync.close():
            logger.warning(f"Unsaved change: {warning}")
