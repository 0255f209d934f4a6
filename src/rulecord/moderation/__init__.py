"""Rule evaluation, action dispatch, flag ledger, escalation and audit log."""
