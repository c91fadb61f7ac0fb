"""
Example 02: Lenient Mapping and Diagnostics

Rows written by other programs may hold values that do not fit the record's
field types. This example shows how such fields are left at their zero value,
how to inspect what went wrong, and how strict mode turns it into an error.
"""

from dataclasses import dataclass
import datetime
import enum
import uuid

from typed_rows import Int32, RowMapper, RowStore, StrictModeViolation


class Plan(enum.Enum):
    FREE = "free"
    PRO = "pro"


@dataclass
class Account:
    id: uuid.UUID
    logins: Int32
    created: datetime.datetime
    plan: Plan | None = None


def main():
    with RowStore.open(":memory:") as store:
        store.execute(
            "CREATE TABLE Account (id TEXT, logins INTEGER, created TEXT, plan TEXT)"
        )
        store.execute(
            "INSERT INTO Account VALUES (:id, :logins, :created, :plan)",
            {"id": str(uuid.uuid4()), "logins": 12, "created": "2024-01-01 09:00:00", "plan": "PRO"},
        )
        # Legacy row: tick-count timestamp, oversized counter, unknown plan
        store.execute(
            "INSERT INTO Account VALUES (:id, :logins, :created, :plan)",
            {
                "id": str(uuid.uuid4()),
                "logins": 2**33 + 7,
                "created": 638396640000000000,
                "plan": "enterprise",
            },
        )

        print("=== Default mapping ===\n")
        for account in store.select(Account):
            print(f"   {account.id} logins={account.logins} plan={account.plan}")
        print()

        print("=== Mapping with diagnostics ===\n")
        rows = store.execute_query("SELECT * FROM Account")
        for mapped in RowMapper(Account).map_with_diagnostics(rows):
            if mapped.clean:
                print(f"   {mapped.record.id}: clean")
                continue
            for diagnostic in mapped.diagnostics:
                print(f"   {mapped.record.id}: {diagnostic.field} <- {diagnostic.value!r}")
                print(f"      {diagnostic.reason}")
        print()

        print("=== Strict mode ===\n")
        try:
            list(store.select(Account, strict=True))
        except StrictModeViolation as e:
            print(f"   {type(e).__name__}: {e}")


if __name__ == "__main__":
    main()
