"""File boundary and command line runner for catalog reconciliation."""
