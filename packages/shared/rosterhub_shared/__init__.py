"""Pydantic schemas shared by the RosterHub server and its clients."""
