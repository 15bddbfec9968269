from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for entry in (REPO_ROOT, REPO_ROOT / "src" / "session_attendance"):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))

from config import get_settings_module

from session_attendance.database.bootstrap import apply_schema, list_tables


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    schema_path = sys.argv[1] if len(sys.argv) > 1 else None
    apply_schema(db_config, schema_path=schema_path)
    tables = list_tables(db_config)
    print(
        f"OK: attendance schema ready on {db_config.get('host')}:{db_config.get('port', 3306)}/"
        f"{db_config.get('database')} ({', '.join(sorted(tables))})"
    )


if __name__ == "__main__":
    main()
