"""
Example 01: Insert and Select

This example inserts dataclass records and reads them back with RowStore,
using synthesized INSERT and SELECT statements.
"""

from dataclasses import dataclass
import datetime
import tempfile
import uuid
from pathlib import Path

from typed_rows import RowStore, fields_of


@dataclass
class Customer:
    id: uuid.UUID
    name: str
    age: int
    joined: datetime.datetime


def main():
    db_dir = Path(tempfile.mkdtemp())
    db_path = db_dir / "shop.db"

    with RowStore.open(str(db_path)) as store:
        store.execute(
            "CREATE TABLE Customer (id TEXT PRIMARY KEY, name TEXT, age INTEGER, joined TEXT)"
        )

        print("=== Insert ===\n")
        for name, age in [("Alice", 34), ("Bob", 27), ("Charlie", 45)]:
            customer = Customer(uuid.uuid4(), name, age, datetime.datetime.now())
            store.insert(customer)
            print(f"   inserted {customer.name}")
        print()

        print("=== Select all ===\n")
        for customer in store.select(Customer):
            print(f"   {customer.name} ({customer.age}) joined {customer.joined:%Y-%m-%d}")
        print()

        print("=== Select with where, params and limit ===\n")
        older = store.select(
            Customer, where="WHERE age > :age ORDER BY age DESC", params={"age": 30}, limit=1
        )
        for customer in older:
            print(f"   oldest over 30: {customer.name}")
        print()

        print("=== Select chosen columns ===\n")
        c = fields_of(Customer)
        for customer in store.select(Customer, [c.name, c.age]):
            # id and joined were not selected and keep their zero values
            print(f"   {customer.name}: id={customer.id}")
        print()

        count = store.execute_scalar("SELECT COUNT(*) FROM Customer")
        print(f"Total customers: {count}")

    # Clean up
    for file in db_dir.iterdir():
        file.unlink()
    db_dir.rmdir()


if __name__ == "__main__":
    main()
