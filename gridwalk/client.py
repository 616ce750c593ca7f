"""Terminal client for the grid movement server.

Type a direction (`up`/`down`/`left`/`right`, or `w`/`a`/`s`/`d`) and press Enter
to move; `q` quits. Server messages are printed as they arrive.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

import websockets

from gridwalk.position import Command

DEFAULT_URL = "ws://localhost:1234/ws"

_ALIASES: dict[str, Command] = {
    "w": Command.up,
    "s": Command.down,
    "a": Command.left,
    "d": Command.right,
}


def parse_input(line: str) -> Command | None:
    key = line.strip().lower()
    if key in _ALIASES:
        return _ALIASES[key]
    try:
        return Command(key)
    except ValueError:
        return None


def is_quit(line: str) -> bool:
    return line.strip().lower() in {"q", "quit", "exit"}


def render_message(data: dict[str, object]) -> str:
    kind = data.get("type")
    if kind == "initialState":
        return f"initial position: ({data.get('x')}, {data.get('y')})"
    if kind == "positionUpdate":
        return f"position: ({data.get('x')}, {data.get('y')})"
    if kind == "gameOver":
        return (
            f"game over: {data.get('gameId')} distance={data.get('distance')} "
            f"from {data.get('startTime')} to {data.get('endTime')}"
        )
    if kind == "error":
        return f"server error: {data.get('message')}"
    return f"unknown message: {data}"


async def _print_server_messages(ws: websockets.ClientConnection) -> None:
    try:
        async for raw in ws:
            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                print(f"unparseable message: {raw!r}")
                continue
            print(render_message(data))
    except websockets.exceptions.ConnectionClosed:
        print("connection closed by server")


async def run_client(url: str) -> None:
    async with websockets.connect(url) as ws:
        print(f"connected to {url}; move with up/down/left/right (or w/a/s/d), q to quit")
        listener = asyncio.create_task(_print_server_messages(ws))
        try:
            while True:
                line = await asyncio.to_thread(sys.stdin.readline)
                if not line or is_quit(line):
                    break
                command = parse_input(line)
                if command is None:
                    print(f"unknown input: {line.strip()!r}")
                    continue
                await ws.send(json.dumps({"command": command.value}))
        finally:
            listener.cancel()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--url", default=DEFAULT_URL, help=f"server WebSocket URL (default: {DEFAULT_URL})")
    args = parser.parse_args(argv)
    try:
        asyncio.run(run_client(args.url))
    except (OSError, websockets.exceptions.WebSocketException) as e:
        print(f"connection failed: {e}", file=sys.stderr)
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
