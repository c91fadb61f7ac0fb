"""
Example 03: Transactions

This example demonstrates transaction management with automatic rollback on errors.
"""

from dataclasses import dataclass

from typed_rows import RowStore


@dataclass
class Ledger:
    id: int
    account: str
    amount: float


def main():
    with RowStore.open(":memory:") as store:
        store.execute(
            "CREATE TABLE Ledger (id INTEGER PRIMARY KEY, account TEXT NOT NULL, amount REAL)"
        )

        print("=== Transaction Management ===\n")

        # Example 1: Successful transaction
        print("1. Successful transaction:")
        with store.transaction() as tx:
            tx.insert(Ledger(1, "alice", -25.0))
            tx.insert(Ledger(2, "bob", 25.0))
            # Commits automatically on exit
        count = store.execute_scalar("SELECT COUNT(*) FROM Ledger")
        print(f"   Entries after commit: {count}\n")

        # Example 2: Transaction with rollback on error
        print("2. Transaction with error (automatic rollback):")
        try:
            with store.transaction() as tx:
                tx.insert(Ledger(3, "carol", -10.0))
                # Duplicate primary key
                tx.insert(Ledger(1, "dave", 10.0))
        except Exception as e:
            print(f"   Error occurred: {type(e).__name__}")
            print("   Transaction was rolled back automatically\n")

        count = store.execute_scalar("SELECT COUNT(*) FROM Ledger")
        print(f"   Entries after rollback: {count} (carol was not added)\n")

        # Example 3: Reading inside a transaction
        print("3. Reading inside a transaction:")
        with store.transaction() as tx:
            tx.execute("UPDATE Ledger SET amount = amount * 2")
            total = sum(entry.amount for entry in tx.select(Ledger))
            print(f"   Balance seen inside the transaction: {total}")
            tx.rollback()
        amounts = [entry.amount for entry in store.select(Ledger)]
        print(f"   Amounts after explicit rollback: {amounts}\n")


if __name__ == "__main__":
    main()
