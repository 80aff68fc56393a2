"""Fixed enumerations, synonym tables and diet-violation policy."""
