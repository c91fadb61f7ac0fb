"""
Example 04: Async Support

This example demonstrates AsyncRowStore with a Pydantic record type.
"""

import asyncio
import tempfile
from pathlib import Path

from pydantic import BaseModel

from typed_rows import AsyncRowStore


class Task(BaseModel):
    id: int
    title: str
    done: bool = False


async def main():
    db_dir = Path(tempfile.mkdtemp())
    db_path = db_dir / "tasks.db"

    async with AsyncRowStore.open(str(db_path)) as store:
        print("=== Async Row Store ===\n")
        print(f"Connection ok: {await store.test_connection()}\n")

        await store.execute("CREATE TABLE Task (id INTEGER PRIMARY KEY, title TEXT, done INTEGER)")

        print("1. Async insert:")
        for i, title in enumerate(["write docs", "ship release", "celebrate"], start=1):
            await store.insert(Task(id=i, title=title))
        print("   3 tasks inserted\n")

        print("2. Async transaction:")
        async with store.transaction() as tx:
            await tx.execute("UPDATE Task SET done = 1 WHERE id = :id", {"id": 1})
        print("   task 1 marked done\n")

        print("3. Async select:")
        for task in await store.select(Task, where="ORDER BY id"):
            mark = "x" if task.done else " "
            print(f"   [{mark}] {task.title}")
        print()

    # Clean up
    for file in db_dir.iterdir():
        file.unlink()
    db_dir.rmdir()


if __name__ == "__main__":
    asyncio.run(main())
