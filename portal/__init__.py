"""Portal admin backend: access-mode reconciliation and job recovery."""
