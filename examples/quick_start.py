#!/usr/bin/env python3
# Example usage of embedded_csv_db_engine

import asyncio

from pydantic import BaseModel
from rich.console import Console

from embedded_csv_db_engine import Database, match_all, where

_console = Console()


class User(BaseModel):
    id: int
    first_name: str
    last_name: str
    age: int


def progress_printer(evt):
    _console.print(f"[progress] {evt.get('phase')} {evt.get('pct')}% {evt.get('msg', '')}", highlight=False)


async def main() -> None:
    # Collections live in ./data/<name>.csv
    with Database("data", on_progress=progress_printer) as db:
        await db.insert("users", User(id=1, first_name="First", last_name="Last", age=20))
        await db.insert("users", User(id=2, first_name="Second", last_name="Last", age=15))

        adults = await db.find("users", User, lambda u: u.age >= 18)
        _console.print("Adults:", adults)

        n = await db.update("users", User(id=1, first_name="First", last_name="Last", age=21), where(id=1))
        _console.print("Updated records:", n)

        n = await db.delete("users", User, where(id=1))
        _console.print("Deleted records:", n)

        _console.print("Remaining:", await db.find("users", User, match_all))


if __name__ == "__main__":
    asyncio.run(main())
