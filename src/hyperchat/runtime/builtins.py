from hyperchat.outcome import Outcome


def _report(outcome: Outcome, success: str) -> None:
    if outcome.ok:
        print(f"✅ {success}")
    elif outcome.error is not None:
        print(f"❌ {outcome.error}")
    else:
        print(f"⚠️  Not now: {outcome.reason}")
    for warning in outcome.warnings:
        print(f"⚠️  {warning}")


class BuiltinCommands:
    def __init__(self, sync):
        self.sync = sync
        self._handlers = {
            "quit": self.cmd_quit,
            "exit": self.cmd_quit,
            "new": self.cmd_new,
            "sessions": self.cmd_sessions,
            "load": self.cmd_load,
            "title": self.cmd_title,
            "delete": self.cmd_delete,
            "history": self.cmd_history,
            "help": self.cmd_help,
        }

    def list_commands(self) -> list[str]:
        return sorted(self._handlers.keys())

    def has_command(self, name: str) -> bool:
        return name in self._handlers

    async def handle(self, name: str, args: str) -> bool:
        handler = self._handlers.get(name)
        if not handler:
            return True
        return await handler(args)

    async def cmd_quit(self, args: str) -> bool:
        print("👋 Goodbye!")
        return False

    async def cmd_new(self, args: str) -> bool:
        _report(self.sync.new_session(), "Chat has been reset")
        return True

    async def cmd_sessions(self, args: str) -> bool:
        sessions = await self.sync.list_sessions()
        if not sessions:
            print("No saved conversations")
            return True
        print("Conversations:")
        for entry in sessions:
            marker = "*" if entry.id == self.sync.session_id else " "
            print(f" {marker} {entry.id} - {entry.title} ({entry.message_count} messages)")
        return True

    async def cmd_load(self, args: str) -> bool:
        if not args:
            print("Usage: /load <id>")
            return True
        print(f"⏳ Loading {args}...")
        outcome = await self.sync.select_session(args)
        _report(outcome, f"Loaded '{self.sync.title}' ({len(self.sync.messages)} messages)")
        if outcome.ok:
            await self.cmd_history("")
        return True

    async def cmd_title(self, args: str) -> bool:
        if not args:
            print(f"Title: {self.sync.title}")
            return True
        _report(await self.sync.rename_session(args), f"Renamed to '{self.sync.title}'")
        return True

    async def cmd_delete(self, args: str) -> bool:
        if not args:
            print("Usage: /delete <id>")
            return True
        _report(await self.sync.delete_session(args), f"Deleted {args}")
        return True

    async def cmd_history(self, args: str) -> bool:
        if not self.sync.messages:
            print("No messages yet")
        for message in self.sync.messages:
            who = "You" if message.is_user else "Assistant"
            print(f"[{message.timestamp}] {who}: {message.content}")
        return True

    async def cmd_help(self, args: str) -> bool:
        print("\nCommands:")
        for name in self.list_commands():
            print(f"  /{name}")
        print()
        return True
