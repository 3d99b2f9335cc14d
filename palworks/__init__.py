"""PalWorks contract generator and addon pricing."""
