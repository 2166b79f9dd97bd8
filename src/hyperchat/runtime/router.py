from dataclasses import dataclass


@dataclass(frozen=True)
class RouteResult:
    kind: str
    name: str | None
    args: str


class InputRouter:
    def __init__(self, builtins):
        self.builtins = builtins

    def route(self, user_input: str) -> RouteResult:
        if not user_input.startswith("/"):
            return RouteResult(kind="message", name=None, args=user_input)

        parts = user_input.split(maxsplit=1)
        cmd = parts[0].lstrip("/")
        args = parts[1].strip() if len(parts) > 1 else ""

        if self.builtins.has_command(cmd):
            return RouteResult(kind="builtin", name=cmd, args=args)

        return RouteResult(kind="unknown", name=cmd, args=args)
