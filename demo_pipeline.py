#!/usr/bin/env python3
"""
Pipeline Demo: ISON → Document → Validation → JSON/ISONL

Shows the full workflow:
1. Parse an ISON document
2. Validate it against a schema
3. Export to JSON and ISONL
4. Re-serialize with aligned columns
"""

from ison import DumpOptions, dumps, dumps_isonl, parse
from ison.schema import document, int_, object_, ref, string, table, boolean
from ison.serialization import document_to_json


SOURCE = """
# Team directory
table.users
id:int name:string email manager
1 Alice alice@example.com ~
2 "Bob Jones" bob@example ~
3 Carol carol@example.com :user:1

object.config
debug timeout:float
true 30
"""


def main():
    print("=" * 80)
    print("PIPELINE DEMO: ISON → Document → Validation → Export")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Parse
    # =========================================================================
    print("\n1. PARSING ISON...")
    doc = parse(SOURCE)
    for block in doc.ordered_blocks():
        print(f"   ✓ {block.kind}.{block.name}: {len(block.rows)} rows, fields {block.get_field_names()}")

    # =========================================================================
    # STEP 2: Validate
    # =========================================================================
    print("\n2. VALIDATING...")
    schema = document(
        {
            "users": table(
                "users",
                {
                    "id": int_().positive(),
                    "name": string().min(1),
                    "email": string().email(),
                    "manager": ref().namespace("user").optional(),
                },
            ),
            "config": object_({"debug": boolean(), "timeout": int_().max(60)}),
        }
    )
    result = schema.safe_parse(doc)
    if result.success:
        print("   ✓ Document is valid")
    else:
        print(f"   Errors ({len(result.error.errors)}):")
        for err in result.error:
            print(f"      - {err.error()}")

    # =========================================================================
    # STEP 3: Export
    # =========================================================================
    print("\n3. JSON OUTPUT:")
    print("-" * 80)
    for line in document_to_json(doc, indent=2).split("\n")[:12]:
        print(f"   {line}")

    print("\n   ISONL OUTPUT:")
    print("-" * 80)
    for line in dumps_isonl(doc).splitlines():
        print(f"   {line}")

    # =========================================================================
    # STEP 4: Aligned ISON
    # =========================================================================
    print("\n4. ALIGNED ISON:")
    print("-" * 80)
    for line in dumps(doc, DumpOptions(align_columns=True)).splitlines():
        print(f"   {line}")

    print("\n" + "=" * 80)
    print("PIPELINE COMPLETE!")
    print("=" * 80)


if __name__ == "__main__":
    main()
