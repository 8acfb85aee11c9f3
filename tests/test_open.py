import asyncio

import pytest
from pydantic import BaseModel
from rich.console import Console

from embedded_csv_db_engine import CollectionIOError, Database, DatabaseClosedError, match_all, where

_console = Console(force_terminal=True, color_system="standard")


def progress_printer(evt):
    phase = evt.get("phase", "")
    pct = int(evt.get("pct", 0))
    msg = evt.get("msg", "")
    parts = [phase, f"{pct}%"]
    if msg:
        parts.append(f"- {msg}")
    _console.print(f"[progress] {' '.join(parts)}", highlight=False)


class User(BaseModel):
    id: int
    first_name: str
    last_name: str
    age: int


def make_user(i, age=20):
    return User(id=i, first_name=f"First{i}", last_name="Last", age=age)


def test_insert_then_find_roundtrip(tmp_path):
    db = Database(tmp_path, on_progress=progress_printer)
    user = make_user(1)

    async def scenario():
        await db.insert("users", user)
        return await db.find("users", User, match_all)

    got = asyncio.run(scenario())
    assert got == [user]

    text = (tmp_path / "users.csv").read_text(encoding="utf-8")
    assert text == "id,first_name,last_name,age\r\n1,First1,Last,20\r\n"
    db.close()


def test_insert_accumulates_in_order(tmp_path):
    db = Database(tmp_path)
    users = [make_user(i, age=20 + i) for i in range(5)]

    async def scenario():
        for u in users:
            await db.insert("users", u)
        return await db.find("users", User, match_all)

    assert asyncio.run(scenario()) == users
    db.close()


def test_insert_allows_duplicates(tmp_path):
    db = Database(tmp_path)

    async def scenario():
        await db.insert("users", make_user(1))
        await db.insert("users", make_user(1))
        return await db.find("users", User, where(id=1))

    assert len(asyncio.run(scenario())) == 2
    db.close()


def test_find_filters_in_file_order(tmp_path):
    db = Database(tmp_path)

    async def scenario():
        for i, age in enumerate([10, 25, 17, 40]):
            await db.insert("users", make_user(i, age=age))
        adults = await db.find("users", User, lambda u: u.age >= 18)
        nobody = await db.find("users", User, lambda u: u.age > 100)
        return adults, nobody

    adults, nobody = asyncio.run(scenario())
    assert [u.id for u in adults] == [1, 3]
    assert nobody == []
    db.close()


def test_update_replaces_only_matches(tmp_path):
    db = Database(tmp_path)

    async def scenario():
        await db.insert("users", make_user(1, age=20))
        await db.insert("users", make_user(2, age=30))
        n = await db.update("users", make_user(1, age=21), where(id=1))
        return n, await db.find("users", User, match_all)

    n, got = asyncio.run(scenario())
    assert n == 1
    assert got == [make_user(1, age=21), make_user(2, age=30)]
    db.close()


def test_update_uses_same_value_for_every_match(tmp_path):
    db = Database(tmp_path)
    replacement = make_user(9, age=99)

    async def scenario():
        for i in range(3):
            await db.insert("users", make_user(i, age=50))
        await db.insert("users", make_user(3, age=10))
        n = await db.update("users", replacement, lambda u: u.age == 50)
        return n, await db.find("users", User, match_all)

    n, got = asyncio.run(scenario())
    assert n == 3
    assert got == [replacement, replacement, replacement, make_user(3, age=10)]
    db.close()


def test_update_without_match_keeps_contents(tmp_path):
    db = Database(tmp_path)
    users = [make_user(1), make_user(2)]

    async def scenario():
        for u in users:
            await db.insert("users", u)
        n = await db.update("users", make_user(7), where(id=7))
        return n, await db.find("users", User, match_all)

    n, got = asyncio.run(scenario())
    assert n == 0
    assert got == users
    db.close()


def test_delete_removes_exactly_matches(tmp_path):
    db = Database(tmp_path)

    async def scenario():
        for i in (1, 2, 3):
            await db.insert("users", make_user(i))
        n = await db.delete("users", User, where(id=2))
        return n, await db.find("users", User, match_all)

    n, got = asyncio.run(scenario())
    assert n == 1
    assert got == [make_user(1), make_user(3)]
    db.close()


def test_delete_everything_leaves_header(tmp_path):
    db = Database(tmp_path)

    async def scenario():
        await db.insert("users", make_user(1))
        await db.insert("users", make_user(2))
        n = await db.delete("users", User, match_all)
        return n, await db.find("users", User, match_all)

    n, got = asyncio.run(scenario())
    assert n == 2
    assert got == []
    assert (tmp_path / "users.csv").read_text(encoding="utf-8") == "id,first_name,last_name,age\r\n"
    db.close()


@pytest.mark.parametrize("verb", ["find", "update", "delete"])
def test_missing_collection_is_an_error(tmp_path, verb):
    db = Database(tmp_path)

    async def scenario():
        if verb == "find":
            await db.find("ghosts", User, match_all)
        elif verb == "update":
            await db.update("ghosts", make_user(1), match_all)
        else:
            await db.delete("ghosts", User, match_all)

    with pytest.raises(CollectionIOError) as exc_info:
        asyncio.run(scenario())
    assert exc_info.value.path == tmp_path / "ghosts.csv"
    assert not (tmp_path / "ghosts.csv").exists()
    db.close()


def test_custom_extension_and_nested_base_dir(tmp_path):
    base = tmp_path / "data" / "nested"
    db = Database(base, ".txt")
    assert db.extension == "txt"
    assert db.collection_path("users") == base / "users.txt"

    asyncio.run(db.insert("users", make_user(1)))
    assert (base / "users.txt").exists()
    db.close()


def test_progress_events(tmp_path):
    events = []

    def collect(evt):
        events.append(evt.get("phase"))

    db = Database(tmp_path, on_progress=collect)

    async def scenario():
        await db.insert("users", make_user(1))
        await db.find("users", User, match_all)
        await db.update("users", make_user(1, age=30), where(id=1))
        await db.delete("users", User, where(id=1))

    asyncio.run(scenario())
    assert events == [
        "insert.start", "insert.done",
        "find.start", "find.done",
        "update.start", "update.done",
        "delete.start", "delete.done",
    ]
    db.close()


def test_closed_database_rejects_work(tmp_path):
    with Database(tmp_path) as db:
        asyncio.run(db.insert("users", make_user(1)))
    assert db.closed

    with pytest.raises(DatabaseClosedError):
        asyncio.run(db.find("users", User, match_all))


def test_async_context_manager(tmp_path):
    async def scenario():
        async with Database(tmp_path) as db:
            await db.insert("users", make_user(1))
            got = await db.find("users", User, match_all)
        return db, got

    db, got = asyncio.run(scenario())
    assert got == [make_user(1)]
    assert db.closed
