SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS ledger_records (
  record_id     TEXT PRIMARY KEY,
  saved_at      TIMESTAMP NOT NULL,
  payload_json  TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS ledger_snapshots (
  record_id     TEXT PRIMARY KEY,
  saved_at      TIMESTAMP NOT NULL,
  payload_json  TEXT NOT NULL
);
"""
