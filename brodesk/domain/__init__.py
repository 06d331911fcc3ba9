"""Ticket rules shared by the API, the board reconciler and the store."""
