"""Cross-cutting helpers (logging setup, timestamps, ids). No storage logic."""
