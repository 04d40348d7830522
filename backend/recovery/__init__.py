"""Recovery plan lifecycle and adherence backend."""
