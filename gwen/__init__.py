"""Gwen, the MINT Outdoor conversational retail assistant."""
