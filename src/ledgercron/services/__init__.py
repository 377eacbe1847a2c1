"""Service layer for ledgercron."""
