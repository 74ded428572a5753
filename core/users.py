#!/usr/bin/env python3
"""
View ChainPay Directory Registered Profiles
===========================================
Simple utility to list registered profiles in registration order, with
their ledger balances.

Usage:
    python -m core.users [path/to/chainpay_registry.db]
"""

import os
import sys
from datetime import datetime

from config import CONFIG
from core.database import SQLiteStore
from core.ledger import Ledger
from registry.directory import Directory


def format_profiles(directory: Directory, ledger: Ledger) -> str:
    records = directory.records()
    if not records:
        return "📭 No profiles registered yet."

    lines = [
        f"{'='*80}",
        f"  ⬡ CHAINPAY DIRECTORY PROFILES: {len(records)}",
        f"{'='*80}",
    ]
    for i, record in enumerate(records):
        updated = (datetime.fromtimestamp(record.last_updated).strftime('%Y-%m-%d %H:%M')
                   if record.last_updated else 'N/A')
        lines.append("")
        lines.append(f"  #{i}  {record.name}")
        lines.append(f"  {'─'*76}")
        lines.append(f"  🆔 Address:   {record.address}")
        lines.append(f"  📱 Phone:     {record.phone_number}")
        lines.append(f"  💰 Balance:   {ledger.balance_of(record.address)}")
        lines.append(f"  📅 Updated:   {updated}")
    lines.append(f"\n{'='*80}")
    return "\n".join(lines)


def view_profiles(db_path: str) -> int:
    if not os.path.exists(db_path):
        print("❌ Database not found. Run 'python server.py' first to create it.")
        return 1

    store = SQLiteStore(db_path)
    print(format_profiles(Directory(store), Ledger(store)))
    return 0


if __name__ == "__main__":
    sys.exit(view_profiles(sys.argv[1] if len(sys.argv) > 1 else CONFIG["db_path"]))
