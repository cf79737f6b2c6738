"""Domain modules collaborating with the recovery core."""
