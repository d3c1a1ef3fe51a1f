"""Agent premium reporting: CSV submissions in, per-agent totals and PDF out."""
